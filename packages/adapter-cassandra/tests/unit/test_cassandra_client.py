from unittest.mock import MagicMock, patch

import pytest
from cassandra import ConsistencyLevel
from cassandra.cluster import EXEC_PROFILE_DEFAULT, NoHostAvailable
from cassandra.policies import DCAwareRoundRobinPolicy, RoundRobinPolicy, TokenAwarePolicy

from cqlbridge.configs.connectors import ConnectorProfile
from cqlbridge_cassandra import CassandraClusterClient, DriverClusterSession
from cqlbridge_sdk import ClusterClient, ClusterUnavailableError


@pytest.fixture
def profile():
    return ConnectorProfile(
        id="cassandra",
        contact_points=["10.0.0.1", "10.0.0.2"],
        native_protocol_port=19042,
        username="app",
        password="secret",
        consistency_level="local_quorum",
        fetch_size=100,
        client_read_timeout_ms=2000,
        client_connect_timeout_ms=500,
        dc_aware_local_dc="dc1",
        reconnect_base_delay_ms=100,
        reconnect_max_delay_ms=1000,
    )


@patch("cqlbridge_cassandra.client.Cluster")
def test_cluster_built_from_profile(mock_cluster, profile):
    client = CassandraClusterClient.from_profile(profile)

    assert isinstance(client, ClusterClient)
    kwargs = mock_cluster.call_args.kwargs
    assert kwargs["contact_points"] == ["10.0.0.1", "10.0.0.2"]
    assert kwargs["port"] == 19042
    assert kwargs["connect_timeout"] == 0.5
    assert kwargs["auth_provider"].username == "app"
    assert kwargs["auth_provider"].password == "secret"
    assert "protocol_version" not in kwargs

    execution_profile = kwargs["execution_profiles"][EXEC_PROFILE_DEFAULT]
    assert execution_profile.consistency_level == ConsistencyLevel.LOCAL_QUORUM
    assert execution_profile.request_timeout == 2.0
    policy = execution_profile.load_balancing_policy
    assert isinstance(policy, TokenAwarePolicy)
    assert isinstance(policy._child_policy, DCAwareRoundRobinPolicy)

    schedule = list(kwargs["reconnection_policy"].new_schedule())
    assert 0.1 <= schedule[0] < 0.2
    assert all(0.1 <= delay <= 1.0 for delay in schedule)


@patch("cqlbridge_cassandra.client.Cluster")
def test_round_robin_without_local_dc(mock_cluster):
    CassandraClusterClient(ConnectorProfile(id="c", token_aware=False))

    kwargs = mock_cluster.call_args.kwargs
    policy = kwargs["execution_profiles"][EXEC_PROFILE_DEFAULT].load_balancing_policy
    assert isinstance(policy, RoundRobinPolicy)
    assert "auth_provider" not in kwargs


@patch("cqlbridge_cassandra.client.Cluster")
def test_connect_sets_fetch_size(mock_cluster, profile):
    driver_session = MagicMock()
    mock_cluster.return_value.connect.return_value = driver_session
    client = CassandraClusterClient(profile)

    session = client.connect()

    assert isinstance(session, DriverClusterSession)
    assert driver_session.default_fetch_size == 100


@patch("cqlbridge_cassandra.client.Cluster")
def test_failed_connect_translates_and_rebuilds_cluster(mock_cluster, profile):
    first, second = MagicMock(), MagicMock()
    first.connect.side_effect = NoHostAvailable(
        "Unable to connect to any servers", {"10.0.0.1:19042": ConnectionRefusedError("refused")}
    )
    mock_cluster.side_effect = [first, second]
    client = CassandraClusterClient(profile)

    with pytest.raises(ClusterUnavailableError) as exc_info:
        client.connect()

    assert "10.0.0.1:19042" in exc_info.value.errors
    assert client.cluster is second


@patch("cqlbridge_cassandra.client.Cluster")
def test_close_shuts_cluster_down(mock_cluster, profile):
    client = CassandraClusterClient(profile)
    client.close()
    mock_cluster.return_value.shutdown.assert_called_once()
