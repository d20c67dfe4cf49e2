from typing import Dict, List, Set, Tuple

from cqlbridge_sdk import (
    CassandraColumnHandle,
    CassandraTable,
    CassandraTableHandle,
    CassandraType,
    ColumnMetadata,
    SchemaTableName,
    TableMetadata,
    UnsupportedSchemaError,
)
from cqlbridge_sdk.types import resolve_type_arguments
from cqlbridge.common.logger import get_logger
from cqlbridge.session.extra_metadata import parse_comment
from cqlbridge.session.identity import IdentityResolver, check_column_names

logger = get_logger(__name__)


class ColumnLayoutBuilder:
    """
    Builds the column handles of a table.

    Partition key columns come first, clustering columns next, then the
    remaining columns. Ordinal positions follow the live column order, or the
    explicit order recorded in the table comment when there is one.
    """

    def __init__(self, connector_id: str, resolver: IdentityResolver):
        self._connector_id = connector_id
        self._resolver = resolver

    def build_table(self, schema_table_name: SchemaTableName) -> CassandraTable:
        keyspace = self._resolver.resolve_schema(schema_table_name.schema_name)
        table_meta = self._resolver.resolve_table(keyspace, schema_table_name.table_name)

        check_column_names(table_meta.columns)
        column_names, hidden_columns = order_column_names(table_meta)
        positions = {name: index for index, name in enumerate(key_columns_first(table_meta, column_names))}

        handles: List[CassandraColumnHandle] = []
        primary_key_set: Set[str] = set()

        for column in table_meta.partition_key_columns:
            primary_key_set.add(column.name)
            handles.append(self._build_column_handle(
                table_meta, column, positions[column.name], column.name in hidden_columns,
                partition_key=True,
            ))

        for column in table_meta.clustering_columns:
            primary_key_set.add(column.name)
            handles.append(self._build_column_handle(
                table_meta, column, positions[column.name], column.name in hidden_columns,
                clustering_key=True,
            ))

        for column in table_meta.columns:
            if column.name not in primary_key_set:
                handles.append(self._build_column_handle(
                    table_meta, column, positions[column.name], column.name in hidden_columns,
                ))

        handles.sort(key=lambda handle: handle.ordinal_position)

        table_handle = CassandraTableHandle(
            connector_id=self._connector_id,
            schema_name=table_meta.keyspace_name,
            table_name=table_meta.name,
        )
        return CassandraTable(table_handle=table_handle, columns=handles)

    def _build_column_handle(
        self,
        table_meta: TableMetadata,
        column: ColumnMetadata,
        ordinal_position: int,
        hidden: bool,
        partition_key: bool = False,
        clustering_key: bool = False,
    ) -> CassandraColumnHandle:
        cassandra_type = CassandraType.from_type_name(column.type_name)
        if cassandra_type is None:
            raise UnsupportedSchemaError(
                f"Unsupported type '{column.type_name}' for column {column.name} "
                f"of table {table_meta.keyspace_name}.{table_meta.name}"
            )
        type_arguments = resolve_type_arguments(cassandra_type, column.type_arguments)
        indexed = any(index.target == column.name for index in table_meta.indexes)

        return CassandraColumnHandle(
            connector_id=self._connector_id,
            name=column.name,
            ordinal_position=ordinal_position,
            cassandra_type=cassandra_type,
            type_arguments=tuple(type_arguments) if type_arguments else None,
            partition_key=partition_key,
            clustering_key=clustering_key,
            indexed=indexed,
            hidden=hidden,
        )


def order_column_names(table_meta: TableMetadata) -> Tuple[List[str], Set[str]]:
    """
    Returns the live column names in logical order and the set of hidden column names.

    Without extra metadata in the comment the live order is kept. Otherwise the
    names listed in the comment come first, in the listed order, followed by
    the remaining live columns in live order.
    """
    column_names = [column.name for column in table_meta.columns]
    extras = parse_comment(table_meta.comment)
    if extras is None:
        return column_names, set()

    hidden_columns = {extra.name for extra in extras if extra.hidden}

    explicit_order = [extra.name for extra in extras]
    listed = set(explicit_order)
    explicit_order.extend(name for name in column_names if name not in listed)

    live = set(column_names)
    stale = [name for name in explicit_order if name not in live]
    if stale:
        logger.warning(
            f"Table {table_meta.keyspace_name}.{table_meta.name} comment names missing columns: {stale}"
        )

    rank: Dict[str, int] = {}
    for index, name in enumerate(explicit_order):
        rank.setdefault(name, index)
    return sorted(column_names, key=rank.__getitem__), hidden_columns & live


def key_columns_first(table_meta: TableMetadata, column_names: List[str]) -> List[str]:
    """Moves partition key then clustering columns, in key order, ahead of the other names."""
    key_names = list(table_meta.partition_key) + list(table_meta.clustering_key)
    keys = set(key_names)
    return key_names + [name for name in column_names if name not in keys]
