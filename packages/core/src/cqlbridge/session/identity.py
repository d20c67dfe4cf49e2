from typing import Callable, Dict, Iterable, List, TypeVar

from cqlbridge_sdk import (
    AmbiguousIdentityError,
    ColumnMetadata,
    KeyspaceMetadata,
    SchemaNotFoundError,
    SchemaTableName,
    TableMetadata,
    TableNotFoundError,
)
from cqlbridge.common.logger import get_logger
from cqlbridge.common.resilience import ResilientExecutor

logger = get_logger(__name__)

T = TypeVar("T")


class IdentityResolver:
    """
    Resolves schema and table names case-insensitively against live cluster metadata.

    Metadata is fetched on every call. Candidates are scanned in sorted name
    order so that ambiguity errors are reproducible.
    """

    def __init__(self, executor: ResilientExecutor):
        self._executor = executor

    def list_keyspaces(self) -> List[KeyspaceMetadata]:
        return self._executor.run(lambda session: session.get_keyspaces())

    def resolve_schema(self, case_insensitive_schema_name: str) -> KeyspaceMetadata:
        """
        Returns the keyspace whose name matches ignoring case.

        Raises:
            SchemaNotFoundError: if no keyspace matches.
            AmbiguousIdentityError: if more than one keyspace matches.
        """
        keyspace = _find_unique(
            self.list_keyspaces(),
            case_insensitive_schema_name,
            lambda candidate: candidate.name,
            "keyspace",
            "schema",
        )
        if keyspace is None:
            raise SchemaNotFoundError(case_insensitive_schema_name)
        logger.debug(f"Resolved schema {case_insensitive_schema_name} to keyspace {keyspace.name}")
        return keyspace

    def resolve_table(self, keyspace: KeyspaceMetadata, case_insensitive_table_name: str) -> TableMetadata:
        """
        Returns the table of `keyspace` whose name matches ignoring case.

        Raises:
            TableNotFoundError: if no table matches.
            AmbiguousIdentityError: if more than one table matches.
        """
        table = _find_unique(
            keyspace.tables,
            case_insensitive_table_name,
            lambda candidate: candidate.name,
            "table",
            "table",
        )
        if table is None:
            raise TableNotFoundError(
                SchemaTableName(schema_name=keyspace.name, table_name=case_insensitive_table_name)
            )
        return table


def check_column_names(columns: Iterable[ColumnMetadata]) -> None:
    """
    Fails if two columns have the same lower-cased name.

    Raises:
        AmbiguousIdentityError: naming the lower-cased name and both original names.
    """
    lowercase_name_to_column: Dict[str, ColumnMetadata] = {}
    for column in columns:
        lowercase_name = column.name.lower()
        if lowercase_name in lowercase_name_to_column:
            raise AmbiguousIdentityError(
                "More than one column has been found for the case insensitive column name: "
                f"{lowercase_name} -> ({lowercase_name_to_column[lowercase_name].name}, {column.name})"
            )
        lowercase_name_to_column[lowercase_name] = column


def _find_unique(
    candidates: Iterable[T],
    case_insensitive_name: str,
    name_of: Callable[[T], str],
    kind: str,
    name_kind: str,
):
    wanted = case_insensitive_name.lower()
    result = None
    for candidate in sorted(candidates, key=name_of):
        if name_of(candidate).lower() == wanted:
            if result is not None:
                raise AmbiguousIdentityError(
                    f"More than one {kind} has been found for the case insensitive {name_kind} name: "
                    f"{case_insensitive_name} -> ({name_of(result)}, {name_of(candidate)})"
                )
            result = candidate
    return result
