import threading

import pytest

from cqlbridge.common.resilience import ResilientExecutor
from cqlbridge.session.identity import IdentityResolver
from cqlbridge_sdk.testing import FakeClusterClient, FakeClusterSession, keyspace, system_keyspace, table

CONNECTOR_ID = "cassandra"


@pytest.fixture
def users_table():
    """`shop.users` with `id` as partition key and no extra metadata."""
    return table(
        "shop",
        "users",
        [("id", "int"), ("name", "text"), ("email", "text")],
        partition_key=["id"],
    )


@pytest.fixture
def cluster_session(users_table):
    return FakeClusterSession(keyspaces=[system_keyspace(), keyspace("shop", users_table)])


@pytest.fixture
def cluster_client(cluster_session):
    return FakeClusterClient(cluster_session, reconnection_delays=(0.01,))


@pytest.fixture
def cancel_event():
    return threading.Event()


@pytest.fixture
def executor(cluster_client, cancel_event):
    return ResilientExecutor(cluster_client, retry_timeout=1.0, cancel_event=cancel_event)


@pytest.fixture
def resolver(executor):
    return IdentityResolver(executor)
