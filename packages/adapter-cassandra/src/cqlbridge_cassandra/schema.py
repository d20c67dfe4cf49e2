"""Conversion of driver schema metadata into cqlbridge_sdk snapshots."""
import re
from typing import Any, List, Optional, Tuple

from cqlbridge_sdk import ColumnMetadata, IndexMetadata, KeyspaceMetadata, TableMetadata

_FROZEN = "frozen"
_INDEX_TARGET_FUNCTION = re.compile(r"^(?:keys|values|entries|full)\((.*)\)$", re.IGNORECASE)


def parse_cql_type(cql_type: str) -> Tuple[str, List[str]]:
    """
    Splits a CQL type string into its type name and top-level argument strings.

    `frozen<...>` wrappers are dropped and custom types (quoted class names)
    map to "custom".

    >>> parse_cql_type("map<text, frozen<list<int>>>")
    ('map', ['text', 'list<int>'])
    """
    cql_type = _unfreeze(cql_type.strip())
    if cql_type.startswith("'"):
        return "custom", []

    bracket = cql_type.find("<")
    if bracket < 0:
        return cql_type.lower(), []
    if not cql_type.endswith(">"):
        raise ValueError(f"Malformed CQL type: {cql_type}")

    name = cql_type[:bracket].strip().lower()
    return name, [_unfreeze(argument) for argument in _split_arguments(cql_type[bracket + 1:-1])]


def _unfreeze(cql_type: str) -> str:
    while cql_type.lower().startswith(_FROZEN + "<") and cql_type.endswith(">"):
        cql_type = cql_type[len(_FROZEN) + 1:-1].strip()
    return cql_type


def _split_arguments(arguments: str) -> List[str]:
    parts = []
    depth = 0
    start = 0
    for i, char in enumerate(arguments):
        if char == "<":
            depth += 1
        elif char == ">":
            depth -= 1
        elif char == "," and depth == 0:
            parts.append(arguments[start:i].strip())
            start = i + 1
    last = arguments[start:].strip()
    if last:
        parts.append(last)
    return parts


def index_target(target: Optional[str]) -> str:
    """Column name an index target refers to, e.g. `values("Tags")` -> `Tags`."""
    if not target:
        return ""
    target = target.strip()
    match = _INDEX_TARGET_FUNCTION.match(target)
    if match:
        target = match.group(1).strip()
    if len(target) >= 2 and target.startswith('"') and target.endswith('"'):
        target = target[1:-1].replace('""', '"')
    return target


def column_snapshot(column: Any) -> ColumnMetadata:
    type_name, type_arguments = parse_cql_type(column.cql_type)
    return ColumnMetadata(name=column.name, type_name=type_name, type_arguments=type_arguments)


def table_snapshot(table: Any) -> TableMetadata:
    indexes = [
        IndexMetadata(
            name=index.name,
            target=index_target((index.index_options or {}).get("target")),
            kind=index.kind,
        )
        for index in table.indexes.values()
    ]
    return TableMetadata(
        keyspace_name=table.keyspace_name,
        name=table.name,
        columns=[column_snapshot(column) for column in table.columns.values()],
        partition_key=[column.name for column in table.partition_key],
        clustering_key=[column.name for column in table.clustering_key],
        indexes=indexes,
        comment=(table.options or {}).get("comment") or None,
    )


def keyspace_snapshot(keyspace: Any) -> KeyspaceMetadata:
    return KeyspaceMetadata(
        name=keyspace.name,
        tables=[table_snapshot(table) for table in keyspace.tables.values()],
    )
