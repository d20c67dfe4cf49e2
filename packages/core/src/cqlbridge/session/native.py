import threading
from typing import Any, List, Optional, Set, Union

from cqlbridge_sdk import (
    CassandraPartition,
    CassandraSession,
    CassandraTable,
    ClusterClient,
    Host,
    SchemaTableName,
    SizeEstimate,
    TokenRange,
)
from cqlbridge.common.logger import get_logger
from cqlbridge.common.resilience import ResilientExecutor
from cqlbridge.configs.connectors import ConnectorProfile
from cqlbridge.discovery import discover_clients
from cqlbridge.session.identity import IdentityResolver
from cqlbridge.session.layout import ColumnLayoutBuilder
from cqlbridge.session.partitions import PartitionKeyEncoder
from cqlbridge.session.size_estimates import SizeEstimateReader

logger = get_logger(__name__)


class NativeCassandraSession(CassandraSession):
    """CassandraSession backed by a single cluster session shared by all callers.

    Every cluster call runs through one ResilientExecutor, so each call retries
    independently while the cluster is unavailable. Calls made inside
    `cancellation.cancel_scope(event)` are aborted by setting that event, without
    affecting calls made from other threads.
    """

    def __init__(
        self,
        connector_id: str,
        client: ClusterClient,
        retry_timeout: float,
        cancel_event: Optional[threading.Event] = None,
    ):
        self._connector_id = connector_id
        self._executor = ResilientExecutor(client, retry_timeout, cancel_event=cancel_event)
        self._resolver = IdentityResolver(self._executor)
        self._layout = ColumnLayoutBuilder(connector_id, self._resolver)
        self._partitions = PartitionKeyEncoder(self._executor)
        self._size_estimates = SizeEstimateReader(self._executor)

    @classmethod
    def from_profile(
        cls,
        profile: ConnectorProfile,
        client: Optional[ClusterClient] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> "NativeCassandraSession":
        """Builds a session for a connector profile.

        Without an explicit client, the installed client named by `profile.client` is used.
        """
        if client is None:
            clients = discover_clients()
            if profile.client not in clients:
                raise ValueError(
                    f"No cluster client named '{profile.client}' is installed. Available: {sorted(clients)}"
                )
            client = clients[profile.client].from_profile(profile)
        logger.info(f"Creating session for connector {profile.id}")
        return cls(profile.id, client, profile.retry_timeout, cancel_event=cancel_event)

    @property
    def connector_id(self) -> str:
        return self._connector_id

    @property
    def executor(self) -> ResilientExecutor:
        return self._executor

    def get_partitioner(self) -> str:
        return self._executor.run(lambda session: session.get_partitioner())

    def get_token_ranges(self) -> Set[TokenRange]:
        return self._executor.run(lambda session: session.get_token_ranges())

    def get_replicas(self, case_sensitive_schema_name: str, token_range_or_key: Union[TokenRange, bytes]) -> Set[Host]:
        if isinstance(token_range_or_key, TokenRange):
            return self._executor.run(
                lambda session: session.get_replicas_for_token_range(case_sensitive_schema_name, token_range_or_key)
            )
        if isinstance(token_range_or_key, (bytes, bytearray, memoryview)):
            key = bytes(token_range_or_key)
            return self._executor.run(lambda session: session.get_replicas_for_key(case_sensitive_schema_name, key))
        raise TypeError(f"Expected a TokenRange or an encoded partition key, got {type(token_range_or_key).__name__}")

    def get_case_sensitive_schema_name(self, case_insensitive_schema_name: str) -> str:
        return self._resolver.resolve_schema(case_insensitive_schema_name).name

    def get_case_sensitive_schema_names(self) -> List[str]:
        return [keyspace.name for keyspace in self._resolver.list_keyspaces()]

    def get_case_sensitive_table_names(self, case_insensitive_schema_name: str) -> List[str]:
        keyspace = self._resolver.resolve_schema(case_insensitive_schema_name)
        return [table.name for table in keyspace.tables]

    def get_table(self, schema_table_name: SchemaTableName) -> CassandraTable:
        return self._layout.build_table(schema_table_name)

    def get_partitions(self, table: CassandraTable, filter_prefix: List[Any]) -> List[CassandraPartition]:
        return self._partitions.get_partitions(table, filter_prefix)

    def execute(self, statement: Any, *values: Any) -> List[Any]:
        parameters = list(values) if values else None
        return self._executor.run(lambda session: list(session.execute(statement, parameters)))

    def prepare(self, statement: Any) -> Any:
        return self._executor.run(lambda session: session.prepare(statement))

    def get_size_estimates(self, keyspace_name: str, table_name: str) -> List[SizeEstimate]:
        return self._size_estimates.get_size_estimates(keyspace_name, table_name)

    def close(self) -> None:
        self._executor.close()
