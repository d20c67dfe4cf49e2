import os
import pathlib
from typing import Any, List, Optional

import yaml
from pydantic import ValidationError

from cqlbridge.common.settings import settings
from .connectors import ConnectorFileConfig, ConnectorProfile


class ConfigManager:
    """
    Reads connector profiles from YAML.

    String values may reference environment variables as ${NAME}; they are
    expanded before validation.
    """

    def __init__(self, project_root: Optional[pathlib.Path] = None):
        """
        Args:
            project_root: Optional override for project root. If None, uses CWD.
        """
        self.project_root = project_root
        root = self.project_root or pathlib.Path.cwd()
        self._connectors_path = root / settings.connector_config_path

    def load_connectors(self, path: Optional[pathlib.Path] = None) -> List[ConnectorProfile]:
        """
        Loads connector profiles from YAML.

        Raises:
            FileNotFoundError: if the file does not exist.
            ValueError: if the file is not valid YAML or fails validation.
        """
        target_path = path or self._connectors_path

        if not target_path.exists():
            raise FileNotFoundError(f"Connector config not found: {target_path}")

        try:
            raw = yaml.safe_load(target_path.read_text(encoding="utf-8")) or {}
        except yaml.YAMLError as e:
            raise ValueError(f"Failed to parse YAML from {target_path}: {e}")

        try:
            file_config = ConnectorFileConfig.model_validate(_expand_env(raw))
        except ValidationError as e:
            raise ValueError(f"Connector Configuration Invalid: {e}")

        ids = [profile.id for profile in file_config.connectors]
        duplicates = sorted({connector_id for connector_id in ids if ids.count(connector_id) > 1})
        if duplicates:
            raise ValueError(f"Duplicate connector ids in {target_path}: {duplicates}")
        return file_config.connectors

    def get_connector(self, connector_id: str, path: Optional[pathlib.Path] = None) -> ConnectorProfile:
        for profile in self.load_connectors(path):
            if profile.id == connector_id:
                return profile
        raise KeyError(f"Connector '{connector_id}' not configured")


def _expand_env(obj: Any) -> Any:
    if isinstance(obj, str):
        return os.path.expandvars(obj)
    if isinstance(obj, dict):
        return {key: _expand_env(value) for key, value in obj.items()}
    if isinstance(obj, list):
        return [_expand_env(item) for item in obj]
    return obj
