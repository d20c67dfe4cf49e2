"""
Test doubles and the standard compliance suite for CassandraSession implementations.

`FakeClusterClient` / `FakeClusterSession` implement the ClusterClient and
ClusterSession protocols in memory so the session components can be exercised
without a live cluster. Any CassandraSession implementation MUST pass
`CassandraSessionComplianceSuite`.
"""
import threading
from collections import namedtuple
from typing import Any, Dict, Iterable, Iterator, List, Optional, Sequence, Set, Tuple, Union

import pytest

from .errors import ClusterUnavailableError
from .interfaces import CassandraSession
from .metadata import ColumnMetadata, IndexMetadata, KeyspaceMetadata, TableMetadata
from .models import UNPARTITIONED, Host, SchemaTableName, SizeEstimate, TokenRange

MURMUR3_PARTITIONER = "org.apache.cassandra.dht.Murmur3Partitioner"

ColumnSpec = Union[ColumnMetadata, Tuple[str, str], Tuple[str, str, Sequence[str]]]


def column(name: str, type_name: str = "text", *type_arguments: str) -> ColumnMetadata:
    return ColumnMetadata(name=name, type_name=type_name, type_arguments=list(type_arguments))


def table(
    keyspace_name: str,
    name: str,
    columns: Iterable[ColumnSpec],
    partition_key: Sequence[str],
    clustering_key: Sequence[str] = (),
    indexed: Sequence[str] = (),
    comment: Optional[str] = None,
) -> TableMetadata:
    """Builds a table snapshot; `columns` may mix ColumnMetadata and (name, type[, args]) tuples."""
    built = []
    for spec in columns:
        if isinstance(spec, ColumnMetadata):
            built.append(spec)
        elif len(spec) == 3:
            built.append(column(spec[0], spec[1], *spec[2]))
        else:
            built.append(column(spec[0], spec[1]))
    indexes = [IndexMetadata(name=f"{name}_{target}_idx", target=target) for target in indexed]
    return TableMetadata(
        keyspace_name=keyspace_name,
        name=name,
        columns=built,
        partition_key=list(partition_key),
        clustering_key=list(clustering_key),
        indexes=indexes,
        comment=comment,
    )


def keyspace(name: str, *tables: TableMetadata) -> KeyspaceMetadata:
    return KeyspaceMetadata(name=name, tables=list(tables))


def rows(column_names: Sequence[str], *values: Sequence[Any]) -> List[Any]:
    """Builds driver-like rows supporting both positional and attribute access."""
    Row = namedtuple("Row", column_names)
    return [Row(*value) for value in values]


def system_keyspace(with_size_estimates: bool = True) -> KeyspaceMetadata:
    tables = [
        table(
            "system",
            "local",
            [("key", "text"), ("bootstrapped", "text"), ("cluster_name", "text"), ("partitioner", "text")],
            partition_key=["key"],
        ),
    ]
    if with_size_estimates:
        tables.append(
            table(
                "system",
                "size_estimates",
                [
                    ("keyspace_name", "text"),
                    ("table_name", "text"),
                    ("range_start", "text"),
                    ("range_end", "text"),
                    ("mean_partition_size", "bigint"),
                    ("partitions_count", "bigint"),
                ],
                partition_key=["keyspace_name"],
                clustering_key=["table_name", "range_start", "range_end"],
            )
        )
    return keyspace("system", *tables)


class FakeClusterSession:
    """In-memory ClusterSession.

    Statements are answered by the first registered result whose fragment
    occurs in the statement text; everything executed is recorded.
    """

    def __init__(
        self,
        keyspaces: Optional[Iterable[KeyspaceMetadata]] = None,
        partitioner: str = MURMUR3_PARTITIONER,
        token_ranges: Optional[Iterable[TokenRange]] = None,
        replicas: Optional[Dict[Tuple[str, Any], Set[Host]]] = None,
    ):
        self.keyspaces: List[KeyspaceMetadata] = list(keyspaces) if keyspaces is not None else [system_keyspace()]
        self.partitioner = partitioner
        self.token_ranges = set(token_ranges or [])
        self.replicas = dict(replicas or {})
        self.executed: List[Tuple[str, Tuple[Any, ...]]] = []
        self.prepared: List[Any] = []
        self._results: List[Tuple[str, List[Any]]] = []
        self._lock = threading.Lock()

    def add_result(self, fragment: str, result_rows: Iterable[Any]) -> None:
        self._results.append((fragment, list(result_rows)))

    def execute(self, statement: Any, parameters: Optional[Sequence[Any]] = None) -> List[Any]:
        text = str(getattr(statement, "query_string", statement))
        with self._lock:
            self.executed.append((text, tuple(parameters or ())))
        for fragment, result_rows in self._results:
            if fragment in text:
                return list(result_rows)
        return []

    def prepare(self, statement: Any) -> Any:
        with self._lock:
            self.prepared.append(statement)
        return statement

    def get_keyspaces(self) -> List[KeyspaceMetadata]:
        return list(self.keyspaces)

    def get_keyspace(self, name: str) -> Optional[KeyspaceMetadata]:
        for candidate in self.keyspaces:
            if candidate.name == name:
                return candidate
        return None

    def get_partitioner(self) -> str:
        return self.partitioner

    def get_token_ranges(self) -> Set[TokenRange]:
        return set(self.token_ranges)

    def get_replicas_for_token_range(self, keyspace: str, token_range: TokenRange) -> Set[Host]:
        return set(self.replicas.get((keyspace, token_range), set()))

    def get_replicas_for_key(self, keyspace: str, key: bytes) -> Set[Host]:
        return set(self.replicas.get((keyspace, bytes(key)), set()))


class FakeClusterClient:
    """In-memory ClusterClient with scripted connect failures and a fixed reconnection schedule."""

    def __init__(
        self,
        session: Optional[FakeClusterSession] = None,
        reconnection_delays: Sequence[float] = (0.01,),
        connect_failures: int = 0,
    ):
        self.session = session if session is not None else FakeClusterSession()
        self.reconnection_delays = list(reconnection_delays)
        self.connect_count = 0
        self.closed = False
        self._connect_failures = connect_failures
        self._lock = threading.Lock()

    def connect(self) -> FakeClusterSession:
        with self._lock:
            self.connect_count += 1
            if self._connect_failures > 0:
                self._connect_failures -= 1
                raise ClusterUnavailableError(
                    "All host(s) tried for query failed",
                    {"127.0.0.1:9042": ConnectionRefusedError("Connection refused")},
                )
        return self.session

    def new_reconnection_schedule(self) -> Iterator[float]:
        return iter(list(self.reconnection_delays))

    def close(self) -> None:
        self.closed = True


class CassandraSessionComplianceSuite:
    """Contract tests every CassandraSession implementation must pass.

    The session under test must expose the `system` keyspace with its
    `local` and `size_estimates` tables.
    """

    @pytest.fixture
    def session(self) -> CassandraSession:
        """Override this fixture in subclass to return the session under test."""
        raise NotImplementedError

    def test_schema_names_contract(self, session):
        names = session.get_case_sensitive_schema_names()
        assert "system" in names

    def test_schema_resolution_is_case_insensitive(self, session):
        assert session.get_case_sensitive_schema_name("SYSTEM") == "system"
        assert session.get_case_sensitive_schema_name("System") == "system"

    def test_table_names_contract(self, session):
        assert "local" in session.get_case_sensitive_table_names("system")

    def test_table_contract(self, session):
        result = session.get_table(SchemaTableName(schema_name="system", table_name="local"))
        positions = [handle.ordinal_position for handle in result.columns]
        assert positions == list(range(len(positions)))
        assert result.partition_key_columns
        assert result.columns[0].partition_key

    def test_partitioner_contract(self, session):
        partitioner = session.get_partitioner()
        assert isinstance(partitioner, str) and partitioner

    def test_prefix_mismatch_is_unpartitioned(self, session):
        result = session.get_table(SchemaTableName(schema_name="system", table_name="local"))
        assert session.get_partitions(result, []) == [UNPARTITIONED]

    def test_size_estimates_contract(self, session):
        estimates = session.get_size_estimates("system", "local")
        assert isinstance(estimates, list)
        assert all(isinstance(estimate, SizeEstimate) for estimate in estimates)
