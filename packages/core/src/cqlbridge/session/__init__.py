from .identity import IdentityResolver
from .layout import ColumnLayoutBuilder
from .native import NativeCassandraSession
from .partitions import PartitionKeyEncoder
from .size_estimates import SizeEstimateReader

__all__ = [
    "ColumnLayoutBuilder",
    "IdentityResolver",
    "NativeCassandraSession",
    "PartitionKeyEncoder",
    "SizeEstimateReader",
]
