from abc import ABC, abstractmethod
from typing import Any, List, Set, Union

from .models import (
    CassandraPartition,
    CassandraTable,
    Host,
    SchemaTableName,
    SizeEstimate,
    TokenRange,
)


class CassandraSession(ABC):
    """Canonical interface the connector uses to talk to the cluster."""

    @abstractmethod
    def get_partitioner(self) -> str:
        """Return the partitioner class name of the cluster."""
        pass

    @abstractmethod
    def get_token_ranges(self) -> Set[TokenRange]:
        """Return the token ranges of the ring."""
        pass

    @abstractmethod
    def get_replicas(self, case_sensitive_schema_name: str, token_range_or_key: Union[TokenRange, bytes]) -> Set[Host]:
        """Return the replicas owning a token range or an encoded partition key."""
        pass

    @abstractmethod
    def get_case_sensitive_schema_name(self, case_insensitive_schema_name: str) -> str:
        """Resolve a schema name to the keyspace name as stored."""
        pass

    @abstractmethod
    def get_case_sensitive_schema_names(self) -> List[str]:
        """Return all keyspace names as stored."""
        pass

    @abstractmethod
    def get_case_sensitive_table_names(self, case_insensitive_schema_name: str) -> List[str]:
        """Return the table names, as stored, of a schema."""
        pass

    @abstractmethod
    def get_table(self, schema_table_name: SchemaTableName) -> CassandraTable:
        """Return the table handle and its ordered column handles."""
        pass

    @abstractmethod
    def get_partitions(self, table: CassandraTable, filter_prefix: List[Any]) -> List[CassandraPartition]:
        """Return the partitions matching a partition key prefix."""
        pass

    @abstractmethod
    def execute(self, statement: Any, *values: Any) -> List[Any]:
        """Execute a CQL string with positional values, or a statement object."""
        pass

    @abstractmethod
    def prepare(self, statement: Any) -> Any:
        """Prepare a statement."""
        pass

    @abstractmethod
    def get_size_estimates(self, keyspace_name: str, table_name: str) -> List[SizeEstimate]:
        """Return the cluster maintained size estimates of a table."""
        pass
