"""
Table blueprints.

A Blueprint collects the columns and indexes declared inside a
schema-definition callback:

    def users(table):
        table.id()
        table.string("email").unique()
        table.boolean("active").default(True)
        table.timestamps()

    conn.schema().create("users", users)

Column helpers return a ColumnDefinition whose modifiers chain and edit the
underlying ColumnSpec in place.
"""

from __future__ import annotations

from typing import Any, List, Optional, Sequence, Union

from ..expression import raw
from .column import INDEX_KINDS, SEMANTIC_TYPES, ColumnSpec, IndexSpec, TableSpec


class ColumnDefinition:
    """Fluent modifiers for one ColumnSpec."""

    def __init__(self, spec: ColumnSpec, blueprint: Optional["Blueprint"] = None):
        self.spec = spec
        self.blueprint = blueprint

    def nullable(self, value: bool = True) -> "ColumnDefinition":
        self.spec.nullable = value
        return self

    def default(self, value: Any) -> "ColumnDefinition":
        self.spec.default = value
        return self

    def unique(self) -> "ColumnDefinition":
        self.spec.unique = True
        return self

    def primary(self) -> "ColumnDefinition":
        self.spec.primary_key = True
        return self

    def auto_increment(self) -> "ColumnDefinition":
        self.spec.auto_increment = True
        return self

    def use_current(self) -> "ColumnDefinition":
        """Default to CURRENT_TIMESTAMP."""
        self.spec.default = raw("CURRENT_TIMESTAMP")
        return self

    def index(self, name: Optional[str] = None) -> "ColumnDefinition":
        if self.blueprint is None:
            raise ValueError("index() needs the blueprint the column belongs to")
        self.blueprint.index(self.spec.name, name)
        return self

    def __repr__(self) -> str:
        return f"<ColumnDefinition {self.spec!r}>"


class Blueprint:
    """Ordered column and index declarations for one table."""

    def __init__(self, table: str):
        self.table = table
        self.columns: List[ColumnSpec] = []
        self.indexes: List[IndexSpec] = []

    # ------------------------------------------------------------------
    # Columns
    # ------------------------------------------------------------------

    def add_column(self, semantic_type: str, name: str, **attrs: Any) -> ColumnDefinition:
        if semantic_type not in SEMANTIC_TYPES:
            raise ValueError(f"Unknown column type {semantic_type!r}")
        spec = ColumnSpec(name=name, type=semantic_type, **attrs)
        self.columns.append(spec)
        return ColumnDefinition(spec, self)

    def id(self, name: str = "id") -> ColumnDefinition:
        """Auto-incrementing integer primary key."""
        return self.add_column("integer", name, primary_key=True, auto_increment=True)

    def increments(self, name: str) -> ColumnDefinition:
        return self.id(name)

    def big_increments(self, name: str) -> ColumnDefinition:
        return self.add_column("bigint", name, primary_key=True, auto_increment=True)

    def integer(self, name: str) -> ColumnDefinition:
        return self.add_column("integer", name)

    def big_integer(self, name: str) -> ColumnDefinition:
        return self.add_column("bigint", name)

    def string(self, name: str, length: int = 255) -> ColumnDefinition:
        return self.add_column("string", name, length=length)

    def text(self, name: str) -> ColumnDefinition:
        return self.add_column("text", name)

    def boolean(self, name: str) -> ColumnDefinition:
        return self.add_column("boolean", name)

    def date(self, name: str) -> ColumnDefinition:
        return self.add_column("date", name)

    def datetime(self, name: str) -> ColumnDefinition:
        return self.add_column("datetime", name)

    def timestamp(self, name: str) -> ColumnDefinition:
        return self.add_column("timestamp", name)

    def decimal(self, name: str, precision: int = 8, scale: int = 2) -> ColumnDefinition:
        return self.add_column("decimal", name, precision=precision, scale=scale)

    def float(self, name: str) -> ColumnDefinition:
        return self.add_column("float", name)

    def json(self, name: str) -> ColumnDefinition:
        return self.add_column("json", name)

    def timestamps(self) -> None:
        """Nullable ``created_at`` and ``updated_at`` timestamp columns."""
        self.timestamp("created_at").nullable()
        self.timestamp("updated_at").nullable()

    def soft_deletes(self, name: str = "deleted_at") -> ColumnDefinition:
        return self.timestamp(name).nullable()

    # ------------------------------------------------------------------
    # Indexes
    # ------------------------------------------------------------------

    def _index(self, kind: str, columns: Union[str, Sequence[str]], name: Optional[str]) -> IndexSpec:
        if kind not in INDEX_KINDS:
            raise ValueError(f"Unknown index kind {kind!r}")
        cols = (columns,) if isinstance(columns, str) else tuple(columns)
        if not cols:
            raise ValueError("An index needs at least one column")
        spec = IndexSpec(columns=cols, kind=kind, name=name)
        self.indexes.append(spec)
        return spec

    def index(self, columns: Union[str, Sequence[str]], name: Optional[str] = None) -> IndexSpec:
        return self._index("index", columns, name)

    def unique(self, columns: Union[str, Sequence[str]], name: Optional[str] = None) -> IndexSpec:
        return self._index("unique", columns, name)

    def primary(self, columns: Union[str, Sequence[str]], name: Optional[str] = None) -> IndexSpec:
        return self._index("primary", columns, name)

    def to_spec(self) -> TableSpec:
        return TableSpec(name=self.table, columns=list(self.columns), indexes=list(self.indexes))


__all__ = ["Blueprint", "ColumnDefinition"]
