from typing import List, Optional
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from dotenv import load_dotenv

from cqlbridge.common.logger import configure_logging

# Load environment variables from .env into os.environ
load_dotenv()


class Settings(BaseSettings):
    """Application configuration settings backed by environment variables."""

    connector_id: str = Field(default="cassandra", validation_alias="CONNECTOR_ID")
    connector_config_path: str = Field(
        default="configs/connectors.yaml",
        validation_alias="CONNECTOR_CONFIG",
        description="Path to the YAML file containing connector profiles."
    )

    contact_points: str = Field(
        default="127.0.0.1",
        validation_alias="CASSANDRA_CONTACT_POINTS",
        description="Comma separated list of cluster contact points."
    )
    native_protocol_port: int = Field(default=9042, validation_alias="CASSANDRA_NATIVE_PROTOCOL_PORT")
    protocol_version: Optional[int] = Field(default=None, validation_alias="CASSANDRA_PROTOCOL_VERSION")
    username: Optional[str] = Field(default=None, validation_alias="CASSANDRA_USERNAME")
    password: Optional[str] = Field(default=None, validation_alias="CASSANDRA_PASSWORD")

    consistency_level: str = Field(default="ONE", validation_alias="CASSANDRA_CONSISTENCY_LEVEL")
    fetch_size: int = Field(default=5000, validation_alias="CASSANDRA_FETCH_SIZE")

    client_read_timeout_ms: int = Field(
        default=12000,
        validation_alias="CASSANDRA_CLIENT_READ_TIMEOUT_MS",
        description="Per request timeout of the driver."
    )
    client_connect_timeout_ms: int = Field(
        default=5000,
        validation_alias="CASSANDRA_CLIENT_CONNECT_TIMEOUT_MS",
        description="Timeout for establishing a connection to a host."
    )

    dc_aware_local_dc: Optional[str] = Field(
        default=None,
        validation_alias="CASSANDRA_DC_AWARE_LOCAL_DC",
        description="Local datacenter; enables datacenter aware load balancing when set."
    )
    token_aware: bool = Field(default=True, validation_alias="CASSANDRA_TOKEN_AWARE")

    reconnect_base_delay_ms: int = Field(default=1000, validation_alias="CASSANDRA_RECONNECT_BASE_DELAY_MS")
    reconnect_max_delay_ms: int = Field(default=60000, validation_alias="CASSANDRA_RECONNECT_MAX_DELAY_MS")

    no_host_available_retry_timeout_ms: int = Field(
        default=60000,
        validation_alias="NO_HOST_AVAILABLE_RETRY_TIMEOUT_MS",
        description="How long a call keeps retrying while no host of the cluster is reachable."
    )

    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")
    log_format: str = Field(
        default="text",
        validation_alias="LOG_FORMAT",
        description="Log output format: 'text' or 'json'."
    )
    configure_root_logger: bool = Field(
        default=False,
        validation_alias="CQLBRIDGE_CONFIGURE_LOGGING",
        description="Whether importing the package configures the root logger."
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    @property
    def contact_point_list(self) -> List[str]:
        return [point.strip() for point in self.contact_points.split(",") if point.strip()]


settings = Settings()


def configure_logging_from_settings(current: Settings = settings) -> bool:
    """Configures the root logger from `current`, if it opts in.

    Returns:
        bool: Whether logging was configured.
    """
    if not current.configure_root_logger:
        return False
    configure_logging(
        level=current.log_level,
        json_format=(current.log_format == "json")
    )
    return True


# Embedding applications own the root logger unless CQLBRIDGE_CONFIGURE_LOGGING is set
configure_logging_from_settings(settings)
