from typing import Any, Iterator, List, Optional, Protocol, Sequence, Set, runtime_checkable

from .metadata import KeyspaceMetadata
from .models import Host, TokenRange


@runtime_checkable
class ClusterSession(Protocol):
    """
    A live session against the cluster.

    Implementations raise `ClusterUnavailableError` when no host can be reached;
    every other failure propagates as raised by the driver.
    """

    def execute(self, statement: Any, parameters: Optional[Sequence[Any]] = None) -> List[Any]:
        """Execute a statement and return all result rows.

        Rows support positional access and attribute access by column name.
        """
        ...

    def prepare(self, statement: Any) -> Any:
        """Prepare a statement on the cluster."""
        ...

    def get_keyspaces(self) -> List[KeyspaceMetadata]:
        """Live, unordered keyspace snapshots."""
        ...

    def get_keyspace(self, name: str) -> Optional[KeyspaceMetadata]:
        """Exact (case-sensitive) keyspace lookup."""
        ...

    def get_partitioner(self) -> str:
        ...

    def get_token_ranges(self) -> Set[TokenRange]:
        ...

    def get_replicas_for_token_range(self, keyspace: str, token_range: TokenRange) -> Set[Host]:
        ...

    def get_replicas_for_key(self, keyspace: str, key: bytes) -> Set[Host]:
        ...


@runtime_checkable
class ClusterClient(Protocol):
    """Factory for the cluster session plus the reconnection policy of the cluster."""

    def connect(self) -> ClusterSession:
        """Open a new session. Raises `ClusterUnavailableError` if no host is reachable."""
        ...

    def new_reconnection_schedule(self) -> Iterator[float]:
        """A fresh schedule of reconnection delays, in seconds."""
        ...

    def close(self) -> None:
        ...
