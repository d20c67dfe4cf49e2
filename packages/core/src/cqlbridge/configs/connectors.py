from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, SecretStr, field_validator, model_validator

from cqlbridge.common.settings import Settings

CONSISTENCY_LEVELS = {
    "ANY", "ONE", "TWO", "THREE", "QUORUM", "ALL", "LOCAL_QUORUM",
    "EACH_QUORUM", "SERIAL", "LOCAL_SERIAL", "LOCAL_ONE",
}


class ConnectorProfile(BaseModel):
    """Configuration for a single connector instance and the cluster it talks to."""

    id: str
    client: str = Field(default="cassandra", description="Name of the installed cluster client to use.")
    description: Optional[str] = None

    contact_points: List[str] = Field(default_factory=lambda: ["127.0.0.1"])
    native_protocol_port: int = 9042
    protocol_version: Optional[int] = None
    username: Optional[str] = None
    password: Optional[SecretStr] = None

    consistency_level: str = "ONE"
    fetch_size: int = 5000
    client_read_timeout_ms: int = 12000
    client_connect_timeout_ms: int = 5000

    dc_aware_local_dc: Optional[str] = None
    token_aware: bool = True

    reconnect_base_delay_ms: int = 1000
    reconnect_max_delay_ms: int = 60000
    no_host_available_retry_timeout_ms: int = 60000

    model_config = ConfigDict(extra="forbid")

    @field_validator("contact_points")
    @classmethod
    def _require_contact_points(cls, value: List[str]) -> List[str]:
        points = [point.strip() for point in value if point.strip()]
        if not points:
            raise ValueError("at least one contact point is required")
        return points

    @field_validator("consistency_level")
    @classmethod
    def _check_consistency_level(cls, value: str) -> str:
        level = value.upper()
        if level not in CONSISTENCY_LEVELS:
            raise ValueError(f"unknown consistency level: {value}")
        return level

    @field_validator("fetch_size", "client_read_timeout_ms", "client_connect_timeout_ms", "reconnect_base_delay_ms")
    @classmethod
    def _positive(cls, value: int) -> int:
        if value <= 0:
            raise ValueError("must be positive")
        return value

    @field_validator("no_host_available_retry_timeout_ms")
    @classmethod
    def _not_negative(cls, value: int) -> int:
        if value < 0:
            raise ValueError("must not be negative")
        return value

    @model_validator(mode="after")
    def _check_reconnect_delays(self) -> "ConnectorProfile":
        if self.reconnect_max_delay_ms < self.reconnect_base_delay_ms:
            raise ValueError("reconnect_max_delay_ms must not be smaller than reconnect_base_delay_ms")
        return self

    @property
    def retry_timeout(self) -> float:
        """Retry timeout in seconds."""
        return self.no_host_available_retry_timeout_ms / 1000.0

    @classmethod
    def from_settings(cls, settings: Settings) -> "ConnectorProfile":
        """Builds the default profile from environment backed settings."""
        return cls(
            id=settings.connector_id,
            contact_points=settings.contact_point_list,
            native_protocol_port=settings.native_protocol_port,
            protocol_version=settings.protocol_version,
            username=settings.username,
            password=settings.password,
            consistency_level=settings.consistency_level,
            fetch_size=settings.fetch_size,
            client_read_timeout_ms=settings.client_read_timeout_ms,
            client_connect_timeout_ms=settings.client_connect_timeout_ms,
            dc_aware_local_dc=settings.dc_aware_local_dc,
            token_aware=settings.token_aware,
            reconnect_base_delay_ms=settings.reconnect_base_delay_ms,
            reconnect_max_delay_ms=settings.reconnect_max_delay_ms,
            no_host_available_retry_timeout_ms=settings.no_host_available_retry_timeout_ms,
        )


class ConnectorFileConfig(BaseModel):
    """File-level schema for connectors.yaml."""
    version: int = Field(1, description="Schema version")
    connectors: List[ConnectorProfile]
