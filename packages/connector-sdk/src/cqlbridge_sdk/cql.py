"""CQL identifier quoting and statement text helpers."""
from typing import Iterable, List, Sequence

from cassandra.metadata import protect_name


def quote_identifier(name: str) -> str:
    return '"%s"' % name.replace('"', '""')


def valid_schema_name(name: str) -> str:
    return protect_name(name)


def valid_table_name(name: str) -> str:
    return protect_name(name)


def valid_column_name(name: str) -> str:
    return protect_name(name)


def valid_column_names(names: Iterable[str]) -> List[str]:
    return [valid_column_name(name) for name in names]


def cql_name_to_sql_name(name: str) -> str:
    """Engine-facing column name; CQL allows names the engine cannot express."""
    return name if name else "_empty"


def select_distinct_from(schema_name: str, table_name: str, column_names: Sequence[str]) -> str:
    return "SELECT DISTINCT %s FROM %s.%s" % (
        ", ".join(valid_column_names(column_names)),
        valid_schema_name(schema_name),
        valid_table_name(table_name),
    )


def where_equals(column_names: Sequence[str]) -> str:
    """Renders `WHERE a = %s AND b = %s` for positional binding, or "" when empty."""
    if not column_names:
        return ""
    return " WHERE " + " AND ".join(f"{valid_column_name(name)} = %s" for name in column_names)
