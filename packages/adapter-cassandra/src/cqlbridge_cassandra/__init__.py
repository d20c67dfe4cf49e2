from .client import CassandraClusterClient
from .session import DriverClusterSession

__all__ = ["CassandraClusterClient", "DriverClusterSession"]
