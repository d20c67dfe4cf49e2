from importlib.metadata import entry_points
from typing import Dict, Type

from cqlbridge.common.logger import get_logger

logger = get_logger(__name__)

CLIENT_ENTRY_POINT_GROUP = "cqlbridge.clients"


def discover_clients() -> Dict[str, Type]:
    """Discovers installed cluster clients via 'cqlbridge.clients' entry points.

    Returns:
        Dict[str, Type]: Dict mapping client name (e.g., 'cassandra') to the client class.
            Each class exposes a `from_profile(profile)` constructor returning a ClusterClient.
    """
    clients = {}
    for ep in entry_points(group=CLIENT_ENTRY_POINT_GROUP):
        try:
            clients[ep.name] = ep.load()
        except Exception as e:
            logger.error(f"Failed to load cluster client {ep.name}: {e}")
    return clients
