from cqlbridge.common.resilience import ResilientExecutor
from cqlbridge.configs import ConfigManager, ConnectorProfile
from cqlbridge.session import NativeCassandraSession

__all__ = ["ConfigManager", "ConnectorProfile", "NativeCassandraSession", "ResilientExecutor"]
