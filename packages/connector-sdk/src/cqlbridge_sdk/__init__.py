from .interfaces import CassandraSession
from .protocols import ClusterClient, ClusterSession
from .types import CassandraType
from .metadata import ColumnMetadata, IndexMetadata, KeyspaceMetadata, TableMetadata
from .models import (
    UNPARTITIONED,
    CassandraColumnHandle,
    CassandraPartition,
    CassandraTable,
    CassandraTableHandle,
    EngineColumnMetadata,
    Host,
    NullableValue,
    SchemaTableName,
    SizeEstimate,
    TokenRange,
    TupleDomain,
)
from .errors import (
    AmbiguousIdentityError,
    ClusterUnavailableError,
    ConnectorError,
    ErrorCode,
    MetadataDecodeError,
    OperationCancelledError,
    SchemaNotFoundError,
    TableNotFoundError,
    UnsupportedSchemaError,
)

__all__ = [
    "CassandraSession",
    "ClusterClient",
    "ClusterSession",
    "CassandraType",
    "ColumnMetadata",
    "IndexMetadata",
    "KeyspaceMetadata",
    "TableMetadata",
    "UNPARTITIONED",
    "CassandraColumnHandle",
    "CassandraPartition",
    "CassandraTable",
    "CassandraTableHandle",
    "EngineColumnMetadata",
    "Host",
    "NullableValue",
    "SchemaTableName",
    "SizeEstimate",
    "TokenRange",
    "TupleDomain",
    "AmbiguousIdentityError",
    "ClusterUnavailableError",
    "ConnectorError",
    "ErrorCode",
    "MetadataDecodeError",
    "OperationCancelledError",
    "SchemaNotFoundError",
    "TableNotFoundError",
    "UnsupportedSchemaError",
]
