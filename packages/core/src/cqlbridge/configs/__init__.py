from .connectors import ConnectorFileConfig, ConnectorProfile
from .manager import ConfigManager

__all__ = ["ConfigManager", "ConnectorFileConfig", "ConnectorProfile"]
