from __future__ import annotations

import dataclasses
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .cql import cql_name_to_sql_name, valid_column_name
from .types import CassandraType

UNPARTITIONED_ID = "<UNPARTITIONED>"


class SchemaTableName(BaseModel):
    """Engine-side (schema, table) identity. Both parts are lower-cased."""

    schema_name: str
    table_name: str

    model_config = ConfigDict(frozen=True)

    @field_validator("schema_name", "table_name")
    @classmethod
    def _lower(cls, value: str) -> str:
        if not value:
            raise ValueError("name must not be empty")
        return value.lower()

    def __str__(self) -> str:
        return f"{self.schema_name}.{self.table_name}"


class CassandraTableHandle(BaseModel):
    connector_id: str
    schema_name: str
    table_name: str

    model_config = ConfigDict(frozen=True)

    @property
    def schema_table_name(self) -> SchemaTableName:
        return SchemaTableName(schema_name=self.schema_name, table_name=self.table_name)

    def __str__(self) -> str:
        return f"{self.connector_id}:{self.schema_name}.{self.table_name}"


class EngineColumnMetadata(BaseModel):
    """Column as presented to the query engine."""

    name: str
    type: str
    comment: Optional[str] = None
    hidden: bool = False

    model_config = ConfigDict(frozen=True)


class CassandraColumnHandle(BaseModel):
    connector_id: str
    name: str
    ordinal_position: int
    cassandra_type: CassandraType
    type_arguments: Optional[Tuple[CassandraType, ...]] = None
    partition_key: bool = False
    clustering_key: bool = False
    indexed: bool = False
    hidden: bool = False

    model_config = ConfigDict(frozen=True)

    @model_validator(mode="after")
    def _check_type_arguments(self) -> "CassandraColumnHandle":
        expected = self.cassandra_type.type_argument_size
        actual = len(self.type_arguments) if self.type_arguments else 0
        if expected != actual:
            raise ValueError(
                f"Column {self.name}: {self.cassandra_type.value} takes {expected} type arguments, got {actual}"
            )
        return self

    @property
    def engine_type(self) -> str:
        return self.cassandra_type.engine_type

    @property
    def column_metadata(self) -> EngineColumnMetadata:
        return EngineColumnMetadata(
            name=cql_name_to_sql_name(self.name),
            type=self.engine_type,
            hidden=self.hidden,
        )


class CassandraTable(BaseModel):
    table_handle: CassandraTableHandle
    columns: List[CassandraColumnHandle] = Field(default_factory=list)

    model_config = ConfigDict(frozen=True)

    @property
    def partition_key_columns(self) -> List[CassandraColumnHandle]:
        return [column for column in self.columns if column.partition_key]

    @property
    def token_expression(self) -> str:
        names = ",".join(valid_column_name(column.name) for column in self.partition_key_columns)
        return f"token({names})"

    def get_column(self, name: str) -> Optional[CassandraColumnHandle]:
        for column in self.columns:
            if column.name == name:
                return column
        return None


@dataclasses.dataclass(frozen=True)
class NullableValue:
    """An engine value together with its engine type."""
    type: str
    value: Any

    @classmethod
    def as_null(cls, type: str) -> "NullableValue":
        return cls(type=type, value=None)

    @property
    def is_null(self) -> bool:
        return self.value is None


@dataclasses.dataclass(frozen=True, eq=False)
class TupleDomain:
    """Fixed per-column values, or no constraint at all when `domains` is None."""
    domains: Optional[Mapping[CassandraColumnHandle, NullableValue]] = None

    @classmethod
    def all(cls) -> "TupleDomain":
        return cls(domains=None)

    @classmethod
    def from_fixed_values(cls, values: Dict[CassandraColumnHandle, NullableValue]) -> "TupleDomain":
        return cls(domains=MappingProxyType(dict(values)))

    @property
    def is_all(self) -> bool:
        return self.domains is None

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, TupleDomain):
            return NotImplemented
        if self.domains is None or other.domains is None:
            return self.domains is None and other.domains is None
        return dict(self.domains) == dict(other.domains)

    __hash__ = None


@dataclasses.dataclass(frozen=True)
class CassandraPartition:
    """A partition of a table.

    Attributes:
        key: The encoded partition key, None for the unpartitioned sentinel.
        partition_id: Predicate text identifying the partition. Display and dedup only.
        tuple_domain: The partition key values bound for this partition.
        unpartitioned: True only for the whole-table sentinel.
    """
    key: Optional[bytes]
    partition_id: str
    tuple_domain: TupleDomain
    unpartitioned: bool = False

    @property
    def key_hex(self) -> Optional[str]:
        return self.key.hex() if self.key is not None else None

    def __str__(self) -> str:
        return self.partition_id


UNPARTITIONED = CassandraPartition(
    key=None,
    partition_id=UNPARTITIONED_ID,
    tuple_domain=TupleDomain.all(),
    unpartitioned=True,
)


class SizeEstimate(BaseModel):
    range_start: str
    range_end: str
    mean_partition_size: int
    partitions_count: int

    model_config = ConfigDict(frozen=True)


class TokenRange(BaseModel):
    """A token range of the ring; exclusive of `start`, inclusive of `end`."""
    start: str
    end: str

    model_config = ConfigDict(frozen=True)

    @property
    def is_wrap_around(self) -> bool:
        return _token_key(self.end) <= _token_key(self.start)


class Host(BaseModel):
    address: str
    datacenter: Optional[str] = None
    rack: Optional[str] = None

    model_config = ConfigDict(frozen=True)


def _token_key(token: str):
    try:
        return (0, int(token))
    except ValueError:
        return (1, token)
