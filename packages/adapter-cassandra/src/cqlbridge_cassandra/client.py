import threading
from typing import Iterator

from cassandra import ConsistencyLevel
from cassandra.auth import PlainTextAuthProvider
from cassandra.cluster import EXEC_PROFILE_DEFAULT, Cluster, ExecutionProfile, NoHostAvailable
from cassandra.policies import (
    DCAwareRoundRobinPolicy,
    ExponentialReconnectionPolicy,
    RoundRobinPolicy,
    TokenAwarePolicy,
)

from cqlbridge.common.logger import get_logger
from cqlbridge.configs.connectors import ConnectorProfile

from .session import DriverClusterSession, unavailable_error

logger = get_logger(__name__)


class CassandraClusterClient:
    """ClusterClient backed by a cassandra-driver Cluster built from a connector profile."""

    def __init__(self, profile: ConnectorProfile):
        self._profile = profile
        self._lock = threading.Lock()
        self._cluster = self._build_cluster()

    @classmethod
    def from_profile(cls, profile: ConnectorProfile) -> "CassandraClusterClient":
        return cls(profile)

    @property
    def cluster(self) -> Cluster:
        return self._cluster

    def connect(self) -> DriverClusterSession:
        with self._lock:
            cluster = self._cluster
            try:
                session = cluster.connect()
            except NoHostAvailable as e:
                # A failed connect shuts the cluster down; the next attempt needs a new one.
                self._cluster = self._build_cluster()
                raise unavailable_error(e) from e
        session.default_fetch_size = self._profile.fetch_size
        logger.info(f"Connected to cluster {cluster.metadata.cluster_name} for connector {self._profile.id}")
        return DriverClusterSession(cluster, session)

    def new_reconnection_schedule(self) -> Iterator[float]:
        return iter(self._cluster.reconnection_policy.new_schedule())

    def close(self) -> None:
        with self._lock:
            self._cluster.shutdown()

    def _build_cluster(self) -> Cluster:
        profile = self._profile
        execution_profile = ExecutionProfile(
            load_balancing_policy=self._create_load_balancing_policy(),
            consistency_level=ConsistencyLevel.name_to_value[profile.consistency_level],
            request_timeout=profile.client_read_timeout_ms / 1000.0,
        )

        cluster_kwargs = {
            "contact_points": profile.contact_points,
            "port": profile.native_protocol_port,
            "execution_profiles": {EXEC_PROFILE_DEFAULT: execution_profile},
            "connect_timeout": profile.client_connect_timeout_ms / 1000.0,
            "reconnection_policy": ExponentialReconnectionPolicy(
                base_delay=profile.reconnect_base_delay_ms / 1000.0,
                max_delay=profile.reconnect_max_delay_ms / 1000.0,
            ),
        }
        if profile.username is not None and profile.password is not None:
            cluster_kwargs["auth_provider"] = PlainTextAuthProvider(
                username=profile.username,
                password=profile.password.get_secret_value(),
            )
        if profile.protocol_version:
            cluster_kwargs["protocol_version"] = profile.protocol_version

        return Cluster(**cluster_kwargs)

    def _create_load_balancing_policy(self):
        if self._profile.dc_aware_local_dc:
            policy = DCAwareRoundRobinPolicy(local_dc=self._profile.dc_aware_local_dc)
        else:
            policy = RoundRobinPolicy()
        if self._profile.token_aware:
            return TokenAwarePolicy(policy)
        return policy
