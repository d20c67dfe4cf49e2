import uuid

import pytest

from cqlbridge.session.partitions import PartitionKeyEncoder, encode_composite_component, encode_partition
from cqlbridge_sdk import (
    UNPARTITIONED,
    CassandraColumnHandle,
    CassandraTable,
    CassandraTableHandle,
    CassandraType,
    NullableValue,
)
from cqlbridge_sdk.testing import rows


def _handle(name, cassandra_type, position, partition_key=True):
    return CassandraColumnHandle(
        connector_id="cassandra",
        name=name,
        ordinal_position=position,
        cassandra_type=cassandra_type,
        partition_key=partition_key,
    )


def _table(*columns):
    handle = CassandraTableHandle(connector_id="cassandra", schema_name="shop", table_name="events")
    return CassandraTable(table_handle=handle, columns=list(columns))


@pytest.fixture
def composite_table():
    return _table(
        _handle("source", CassandraType.TEXT, 0),
        _handle("kind", CassandraType.TEXT, 1),
        _handle("payload", CassandraType.TEXT, 2, partition_key=False),
    )


@pytest.fixture
def encoder(executor):
    return PartitionKeyEncoder(executor)


def test_composite_key_framing(composite_table):
    partition = encode_partition(composite_table.partition_key_columns, ("abc", "hello"))

    assert partition.key == b"\x00\x03abc\x00" + b"\x00\x05hello\x00"
    assert partition.key_hex == "000361626300000568656c6c6f00"
    assert len(partition.key) == 14
    assert partition.partition_id == "source = 'abc' AND kind = 'hello'"
    assert not partition.unpartitioned


def test_encoding_is_deterministic(composite_table):
    columns = composite_table.partition_key_columns

    first = encode_partition(columns, ("abc", "hello"))
    second = encode_partition(columns, ("abc", "hello"))

    assert first.key == second.key
    assert first.tuple_domain == second.tuple_domain


def test_single_column_key_is_unframed():
    id_column = _handle("id", CassandraType.INT, 0)

    partition = encode_partition([id_column], (1,))

    assert partition.key == b"\x00\x00\x00\x01"
    assert partition.partition_id == "id = 1"
    assert partition.tuple_domain.domains[id_column] == NullableValue(type="integer", value=1)


def test_uuid_key_literal():
    value = uuid.UUID("6ba7b810-9dad-11d1-80b4-00c04fd430c8")
    id_column = _handle("id", CassandraType.UUID, 0)

    partition = encode_partition([id_column], (value,))

    assert partition.key == value.bytes
    assert partition.partition_id == "id = 6ba7b810-9dad-11d1-80b4-00c04fd430c8"


def test_oversized_component_rejected():
    with pytest.raises(ValueError):
        encode_composite_component(b"x" * 0x8000)


def test_partitions_are_deduplicated_in_first_seen_order(encoder, cluster_session):
    # Arrange
    col = _handle("col", CassandraType.INT, 0)
    table = _table(col)
    cluster_session.add_result("SELECT DISTINCT", rows(["col"], (2,), (1,), (2,), (1,)))

    # Act
    partitions = encoder.get_partitions(table, [1])

    # Assert
    assert [partition.partition_id for partition in partitions] == ["col = 2", "col = 1"]


def test_query_binds_prefix_values(encoder, cluster_session, composite_table):
    cluster_session.add_result("SELECT DISTINCT", rows(["source", "kind"], ("web", "click")))

    partitions = encoder.get_partitions(composite_table, ["web", "click"])

    assert len(partitions) == 1
    assert cluster_session.executed == [
        ("SELECT DISTINCT source, kind FROM shop.events WHERE source = %s AND kind = %s", ("web", "click"))
    ]


@pytest.mark.parametrize("prefix", [[], ["web"], ["web", "click", "extra"]])
def test_prefix_mismatch_is_unpartitioned(encoder, cluster_session, composite_table, prefix):
    partitions = encoder.get_partitions(composite_table, prefix)

    assert partitions == [UNPARTITIONED]
    assert partitions[0].tuple_domain.is_all
    assert cluster_session.executed == []


def test_no_rows_means_no_partitions(encoder, composite_table):
    assert encoder.get_partitions(composite_table, ["web", "click"]) == []
