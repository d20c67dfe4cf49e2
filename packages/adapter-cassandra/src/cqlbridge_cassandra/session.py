import functools
from typing import Any, Callable, List, Optional, Sequence, Set, TypeVar

from cassandra.cluster import Cluster, NoHostAvailable, Session

from cqlbridge_sdk import ClusterUnavailableError, Host, KeyspaceMetadata, TokenRange

from .schema import keyspace_snapshot

F = TypeVar("F", bound=Callable[..., Any])


def unavailable_error(e: NoHostAvailable) -> ClusterUnavailableError:
    message = e.args[0] if e.args else str(e)
    errors = {str(host): error for host, error in (getattr(e, "errors", None) or {}).items()}
    return ClusterUnavailableError(str(message), errors)


def translate_unavailable(func: F) -> F:
    """Re-raises the driver's NoHostAvailable as ClusterUnavailableError."""
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except NoHostAvailable as e:
            raise unavailable_error(e) from e
    return wrapper


def token_string(token: Any) -> str:
    value = token.value
    if isinstance(value, (bytes, bytearray)):
        return bytes(value).hex()
    return str(value)


def host_of(host: Any) -> Host:
    return Host(address=str(host.address), datacenter=host.datacenter, rack=host.rack)


class DriverClusterSession:
    """ClusterSession over a connected cassandra-driver session."""

    def __init__(self, cluster: Cluster, session: Session):
        self._cluster = cluster
        self._session = session

    @property
    def driver_session(self) -> Session:
        return self._session

    @translate_unavailable
    def execute(self, statement: Any, parameters: Optional[Sequence[Any]] = None) -> List[Any]:
        return list(self._session.execute(statement, parameters))

    @translate_unavailable
    def prepare(self, statement: Any) -> Any:
        return self._session.prepare(statement)

    def get_keyspaces(self) -> List[KeyspaceMetadata]:
        return [keyspace_snapshot(keyspace) for keyspace in list(self._cluster.metadata.keyspaces.values())]

    def get_keyspace(self, name: str) -> Optional[KeyspaceMetadata]:
        keyspace = self._cluster.metadata.keyspaces.get(name)
        return keyspace_snapshot(keyspace) if keyspace is not None else None

    def get_partitioner(self) -> str:
        return self._cluster.metadata.partitioner

    def get_token_ranges(self) -> Set[TokenRange]:
        token_map = self._cluster.metadata.token_map
        if token_map is None or not token_map.ring:
            return set()
        ring = [token_string(token) for token in token_map.ring]
        # The first range wraps around from the last token of the ring.
        return {TokenRange(start=ring[i - 1], end=ring[i]) for i in range(len(ring))}

    def get_replicas_for_token_range(self, keyspace: str, token_range: TokenRange) -> Set[Host]:
        token_map = self._cluster.metadata.token_map
        if token_map is None:
            return set()
        # Ownership excludes the start token, so the start token resolves to this range.
        start = token_map.token_class.from_string(token_range.start)
        return {host_of(host) for host in token_map.get_replicas(keyspace, start)}

    def get_replicas_for_key(self, keyspace: str, key: bytes) -> Set[Host]:
        return {host_of(host) for host in self._cluster.metadata.get_replicas(keyspace, key)}
