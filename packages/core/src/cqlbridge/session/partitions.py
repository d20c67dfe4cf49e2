"""
Partition enumeration and partition key encoding.

Partition keys are encoded the way the cluster encodes them, so replica lookups
by key agree with the cluster. A single column key is the raw cell bytes. A
composite key frames every component as:

    | length: int16, big-endian | component bytes | 0x00 |
"""
import struct
from typing import Any, Dict, List, Sequence, Set

from cqlbridge_sdk import (
    UNPARTITIONED,
    CassandraColumnHandle,
    CassandraPartition,
    CassandraTable,
    NullableValue,
    TupleDomain,
)
from cqlbridge_sdk.cql import select_distinct_from, valid_column_name, where_equals
from cqlbridge.common.logger import get_logger
from cqlbridge.common.resilience import ResilientExecutor

logger = get_logger(__name__)

_MAX_COMPONENT_LENGTH = 0x7FFF
_COMPONENT_END = b"\x00"


class PartitionKeyEncoder:
    """Lists the distinct partitions of a table for a fully bound partition key prefix."""

    def __init__(self, executor: ResilientExecutor):
        self._executor = executor

    def get_partitions(self, table: CassandraTable, filter_prefix: Sequence[Any]) -> List[CassandraPartition]:
        """
        Returns one partition per distinct partition key, in first-seen order.

        When `filter_prefix` does not bind every partition key column the
        partitions cannot be enumerated and the whole-table sentinel
        `UNPARTITIONED` is returned without querying the cluster.
        """
        partition_key_columns = table.partition_key_columns
        if len(filter_prefix) != len(partition_key_columns):
            return [UNPARTITIONED]

        result_rows = self._query_partition_keys(table, partition_key_columns, filter_prefix)

        partitions: List[CassandraPartition] = []
        unique_partition_ids: Set[str] = set()
        for row in result_rows:
            partition = encode_partition(partition_key_columns, row)
            if partition.partition_id in unique_partition_ids:
                continue
            unique_partition_ids.add(partition.partition_id)
            partitions.append(partition)

        logger.debug(f"Found {len(partitions)} partition(s) of {table.table_handle}")
        return partitions

    def _query_partition_keys(
        self,
        table: CassandraTable,
        partition_key_columns: List[CassandraColumnHandle],
        filter_prefix: Sequence[Any],
    ) -> List[Any]:
        handle = table.table_handle
        column_names = [column.name for column in partition_key_columns]
        cql = select_distinct_from(handle.schema_name, handle.table_name, column_names)
        cql += where_equals(column_names[:len(filter_prefix)])
        values = [
            column.cassandra_type.to_native_value(value)
            for column, value in zip(partition_key_columns, filter_prefix)
        ]
        return self._executor.run(lambda session: list(session.execute(cql, values)))


def encode_partition(partition_key_columns: List[CassandraColumnHandle], row: Sequence[Any]) -> CassandraPartition:
    """Builds the partition of one result row holding the partition key columns, in order."""
    is_composite = len(partition_key_columns) > 1

    key = bytearray()
    values: Dict[CassandraColumnHandle, NullableValue] = {}
    predicates: List[str] = []

    for i, column in enumerate(partition_key_columns):
        value = row[i]
        component = column.cassandra_type.to_cell_bytes(value, column.type_arguments)
        if is_composite:
            key += encode_composite_component(component)
        else:
            key += component

        values[column] = column.cassandra_type.to_partition_key_value(value, column.type_arguments)
        predicates.append(f"{valid_column_name(column.name)} = {column.cassandra_type.to_cql_literal(value)}")

    return CassandraPartition(
        key=bytes(key),
        partition_id=" AND ".join(predicates),
        tuple_domain=TupleDomain.from_fixed_values(values),
        unpartitioned=False,
    )


def encode_composite_component(component: bytes) -> bytes:
    if len(component) > _MAX_COMPONENT_LENGTH:
        raise ValueError(f"Partition key component too large to encode: {len(component)} bytes")
    return struct.pack(">h", len(component)) + component + _COMPONENT_END
