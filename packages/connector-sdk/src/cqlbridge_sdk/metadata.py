"""Read-only snapshots of the cluster schema, as returned by a ClusterSession."""
from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class ColumnMetadata(BaseModel):
    """A live column.

    `type_name` is the native type name without arguments (e.g. "map"),
    `type_arguments` the names of its top-level type arguments.
    """

    name: str
    type_name: str
    type_arguments: List[str] = Field(default_factory=list)

    model_config = ConfigDict(extra="ignore", frozen=True)


class IndexMetadata(BaseModel):
    name: str
    target: str
    kind: Optional[str] = None

    model_config = ConfigDict(extra="ignore", frozen=True)


class TableMetadata(BaseModel):
    keyspace_name: str
    name: str
    columns: List[ColumnMetadata] = Field(default_factory=list)
    partition_key: List[str] = Field(default_factory=list)
    clustering_key: List[str] = Field(default_factory=list)
    indexes: List[IndexMetadata] = Field(default_factory=list)
    comment: Optional[str] = None

    model_config = ConfigDict(extra="ignore", frozen=True)

    def get_column(self, name: str) -> Optional[ColumnMetadata]:
        for column in self.columns:
            if column.name == name:
                return column
        return None

    @property
    def partition_key_columns(self) -> List[ColumnMetadata]:
        return [self._require_column(name) for name in self.partition_key]

    @property
    def clustering_columns(self) -> List[ColumnMetadata]:
        return [self._require_column(name) for name in self.clustering_key]

    def _require_column(self, name: str) -> ColumnMetadata:
        column = self.get_column(name)
        if column is None:
            raise ValueError(f"Key column {name} is missing from table {self.keyspace_name}.{self.name}")
        return column


class KeyspaceMetadata(BaseModel):
    name: str
    tables: List[TableMetadata] = Field(default_factory=list)

    model_config = ConfigDict(extra="ignore", frozen=True)

    def get_table(self, name: str) -> Optional[TableMetadata]:
        """Exact (case-sensitive) table lookup."""
        for table in self.tables:
            if table.name == name:
                return table
        return None
