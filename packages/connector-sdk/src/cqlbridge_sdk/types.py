"""
Cassandra type codec.

Maps native CQL type names to the connector's type tags and converts values
between the driver's Python representation, the engine representation used in
tuple domains, the binary cell form and CQL literals.
"""
from __future__ import annotations

import datetime
import decimal
import uuid
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence

from cassandra.cqltypes import lookup_casstype
from cassandra.encoder import Encoder

from .errors import UnsupportedSchemaError

DEFAULT_PROTOCOL_VERSION = 4

_EPOCH = datetime.datetime(1970, 1, 1, tzinfo=datetime.timezone.utc)
_encoder = Encoder()


class CassandraType(str, Enum):
    """Type tags for the CQL types the connector understands.

    Each tag carries the driver marshal class, the number of type arguments it
    takes and the engine type its values are exposed as.
    """

    ASCII = "ascii"
    BIGINT = "bigint"
    BLOB = "blob"
    CUSTOM = "custom"
    BOOLEAN = "boolean"
    COUNTER = "counter"
    DECIMAL = "decimal"
    DOUBLE = "double"
    FLOAT = "float"
    INET = "inet"
    INT = "int"
    TEXT = "text"
    TIMESTAMP = "timestamp"
    UUID = "uuid"
    TIMEUUID = "timeuuid"
    VARCHAR = "varchar"
    VARINT = "varint"
    LIST = "list"
    MAP = "map"
    SET = "set"

    @property
    def marshal_class(self) -> str:
        return _MARSHAL_CLASSES[self]

    @property
    def type_argument_size(self) -> int:
        return _TYPE_ARGUMENT_SIZES.get(self, 0)

    @property
    def engine_type(self) -> str:
        return _ENGINE_TYPES[self]

    @property
    def is_collection(self) -> bool:
        return self.type_argument_size > 0

    @classmethod
    def from_type_name(cls, type_name: str) -> Optional["CassandraType"]:
        """Returns the tag for a native type name, or None when unknown."""
        try:
            return cls(type_name.lower())
        except ValueError:
            return None

    def to_cell_bytes(
        self,
        value: Any,
        type_arguments: Optional[Sequence["CassandraType"]] = None,
        protocol_version: int = DEFAULT_PROTOCOL_VERSION,
    ) -> bytes:
        """Serializes a driver value into the cell bytes stored by the cluster."""
        if value is None:
            return b""
        return _casstype(self, type_arguments).serialize(value, protocol_version)

    def to_partition_key_value(
        self,
        value: Any,
        type_arguments: Optional[Sequence["CassandraType"]] = None,
    ) -> "NullableValue":
        """Converts a driver value into the engine value bound in a tuple domain."""
        from .models import NullableValue

        if value is None:
            return NullableValue.as_null(self.engine_type)

        if self in (CassandraType.ASCII, CassandraType.TEXT, CassandraType.VARCHAR):
            converted: Any = str(value)
        elif self in (CassandraType.INT, CassandraType.BIGINT, CassandraType.COUNTER):
            converted = int(value)
        elif self == CassandraType.BOOLEAN:
            converted = bool(value)
        elif self in (CassandraType.DOUBLE, CassandraType.FLOAT, CassandraType.DECIMAL):
            converted = float(value)
        elif self in (CassandraType.BLOB, CassandraType.CUSTOM):
            converted = bytes(value)
        elif self in (CassandraType.UUID, CassandraType.TIMEUUID, CassandraType.INET, CassandraType.VARINT):
            converted = str(value)
        elif self == CassandraType.TIMESTAMP:
            converted = _to_epoch_millis(value)
        else:
            converted = self.to_cql_literal(value)
        return NullableValue(type=self.engine_type, value=converted)

    def to_cql_literal(self, value: Any) -> str:
        """Renders a driver value as a CQL literal."""
        if value is None:
            return "NULL"
        if self == CassandraType.BOOLEAN:
            return "true" if value else "false"
        if self == CassandraType.TIMESTAMP:
            return str(_to_epoch_millis(value))
        if self == CassandraType.INET:
            return _encoder.cql_encode_str(str(value))
        return _encoder.cql_encode_all_types(value)

    def to_native_value(self, value: Any) -> Any:
        """Converts an engine value into the driver value used for statement binding."""
        if value is None:
            return None
        if self in (CassandraType.ASCII, CassandraType.TEXT, CassandraType.VARCHAR, CassandraType.INET):
            if isinstance(value, (bytes, bytearray)):
                return bytes(value).decode("utf-8")
            return str(value)
        if self in (CassandraType.INT, CassandraType.BIGINT, CassandraType.COUNTER):
            return int(value)
        if self == CassandraType.VARINT:
            return int(str(value))
        if self == CassandraType.BOOLEAN:
            return bool(value)
        if self in (CassandraType.DOUBLE, CassandraType.FLOAT):
            return float(value)
        if self == CassandraType.DECIMAL:
            return decimal.Decimal(str(value))
        if self in (CassandraType.UUID, CassandraType.TIMEUUID):
            return value if isinstance(value, uuid.UUID) else uuid.UUID(str(value))
        if self == CassandraType.TIMESTAMP:
            if isinstance(value, datetime.datetime):
                return value
            return _EPOCH + datetime.timedelta(milliseconds=int(value))
        if self in (CassandraType.BLOB, CassandraType.CUSTOM):
            return bytes(value)
        raise UnsupportedSchemaError(f"Unsupported type for statement binding: {self.value}")


_MARSHAL_CLASSES: Dict[CassandraType, str] = {
    CassandraType.ASCII: "AsciiType",
    CassandraType.BIGINT: "LongType",
    CassandraType.BLOB: "BytesType",
    CassandraType.CUSTOM: "BytesType",
    CassandraType.BOOLEAN: "BooleanType",
    CassandraType.COUNTER: "CounterColumnType",
    CassandraType.DECIMAL: "DecimalType",
    CassandraType.DOUBLE: "DoubleType",
    CassandraType.FLOAT: "FloatType",
    CassandraType.INET: "InetAddressType",
    CassandraType.INT: "Int32Type",
    CassandraType.TEXT: "UTF8Type",
    CassandraType.TIMESTAMP: "DateType",
    CassandraType.UUID: "UUIDType",
    CassandraType.TIMEUUID: "TimeUUIDType",
    CassandraType.VARCHAR: "UTF8Type",
    CassandraType.VARINT: "IntegerType",
    CassandraType.LIST: "ListType",
    CassandraType.MAP: "MapType",
    CassandraType.SET: "SetType",
}

_TYPE_ARGUMENT_SIZES: Dict[CassandraType, int] = {
    CassandraType.LIST: 1,
    CassandraType.SET: 1,
    CassandraType.MAP: 2,
}

_ENGINE_TYPES: Dict[CassandraType, str] = {
    CassandraType.ASCII: "varchar",
    CassandraType.BIGINT: "bigint",
    CassandraType.BLOB: "varbinary",
    CassandraType.CUSTOM: "varbinary",
    CassandraType.BOOLEAN: "boolean",
    CassandraType.COUNTER: "bigint",
    CassandraType.DECIMAL: "double",
    CassandraType.DOUBLE: "double",
    CassandraType.FLOAT: "double",
    CassandraType.INET: "varchar",
    CassandraType.INT: "integer",
    CassandraType.TEXT: "varchar",
    CassandraType.TIMESTAMP: "timestamp",
    CassandraType.UUID: "varchar",
    CassandraType.TIMEUUID: "varchar",
    CassandraType.VARCHAR: "varchar",
    CassandraType.VARINT: "varchar",
    CassandraType.LIST: "varchar",
    CassandraType.MAP: "varchar",
    CassandraType.SET: "varchar",
}


def _casstype(cassandra_type: CassandraType, type_arguments: Optional[Sequence[CassandraType]]):
    name = cassandra_type.marshal_class
    if type_arguments:
        name = "%s(%s)" % (name, ",".join(arg.marshal_class for arg in type_arguments))
    return lookup_casstype(name)


def _to_epoch_millis(value: Any) -> int:
    if isinstance(value, datetime.datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=datetime.timezone.utc)
        delta = value - _EPOCH
        return (delta.days * 86400 + delta.seconds) * 1000 + delta.microseconds // 1000
    return int(value)


def resolve_type_arguments(cassandra_type: CassandraType, type_argument_names: List[str]) -> Optional[List[CassandraType]]:
    """Resolves the type arguments of a parameterized type.

    Returns None for types that take no arguments.

    Raises:
        UnsupportedSchemaError: if the arity is not 1 or 2, or an argument type is unknown.
    """
    size = cassandra_type.type_argument_size
    if size == 0:
        return None
    if size not in (1, 2) or len(type_argument_names) < size:
        raise UnsupportedSchemaError(f"Invalid type arguments: {type_argument_names}")

    resolved = []
    for name in type_argument_names[:size]:
        argument = CassandraType.from_type_name(name)
        if argument is None:
            raise UnsupportedSchemaError(f"Unsupported type argument '{name}' in {type_argument_names}")
        resolved.append(argument)
    return resolved
