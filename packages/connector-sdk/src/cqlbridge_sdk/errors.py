from enum import Enum
from typing import Any, Dict, Optional


class ErrorCode(str, Enum):
    """Standardized error codes for connector failures."""
    SCHEMA_NOT_FOUND = "SCHEMA_NOT_FOUND"
    TABLE_NOT_FOUND = "TABLE_NOT_FOUND"
    NOT_SUPPORTED = "NOT_SUPPORTED"
    CLUSTER_UNAVAILABLE = "CLUSTER_UNAVAILABLE"
    CANCELLED = "CANCELLED"
    INVALID_METADATA = "INVALID_METADATA"


class ConnectorError(Exception):
    """Base class for errors raised by the connector session layer.

    Attributes:
        error_code (ErrorCode): The standardized error code.
        retryable (bool): Whether repeating the call may succeed.
    """

    error_code: ErrorCode = ErrorCode.NOT_SUPPORTED
    retryable: bool = False

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class SchemaNotFoundError(ConnectorError):
    error_code = ErrorCode.SCHEMA_NOT_FOUND

    def __init__(self, schema_name: str):
        super().__init__(f"Schema {schema_name} not found")
        self.schema_name = schema_name


class TableNotFoundError(ConnectorError):
    error_code = ErrorCode.TABLE_NOT_FOUND

    def __init__(self, schema_table_name: Any):
        super().__init__(f"Table {schema_table_name} not found")
        self.schema_table_name = schema_table_name


class AmbiguousIdentityError(ConnectorError):
    """More than one object matches a case insensitive name."""
    error_code = ErrorCode.NOT_SUPPORTED


class UnsupportedSchemaError(ConnectorError):
    error_code = ErrorCode.NOT_SUPPORTED


class ClusterUnavailableError(ConnectorError):
    """No host of the cluster could be reached.

    Attributes:
        errors (Dict[str, Any]): The last error seen per host, keyed by host address.
    """
    error_code = ErrorCode.CLUSTER_UNAVAILABLE
    retryable = True

    def __init__(self, message: str, errors: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.errors = dict(errors or {})

    def diagnostic(self, max_hosts: int = 10) -> str:
        """Renders the message and the errors of the first `max_hosts` hosts."""
        if not self.errors:
            return self.message
        lines = [self.message]
        for host, error in list(self.errors.items())[:max_hosts]:
            lines.append(f"  {host}: {type(error).__name__ if isinstance(error, BaseException) else 'error'}: {error}")
        remaining = len(self.errors) - max_hosts
        if remaining > 0:
            lines.append(f"  [{remaining} more host(s)]")
        return "\n".join(lines)


class OperationCancelledError(ConnectorError):
    error_code = ErrorCode.CANCELLED


class MetadataDecodeError(ConnectorError):
    """The out-of-band column metadata stored in a table comment is malformed."""
    error_code = ErrorCode.INVALID_METADATA

    def __init__(self, message: str, content: str):
        super().__init__(message)
        self.content = content
