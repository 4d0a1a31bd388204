"""
Column and index specifications.

A ColumnSpec is built inside a schema-definition callback (see
``dialectdb.schema.blueprint``), consumed once by the SchemaBuilder to emit
SQL, and then discarded. It has no identity beyond that build call.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional, Tuple


SEMANTIC_TYPES = (
    "integer",
    "bigint",
    "string",
    "text",
    "boolean",
    "date",
    "datetime",
    "timestamp",
    "decimal",
    "float",
    "json",
)

INDEX_KINDS = ("index", "unique", "primary")


class _NoDefault:
    """Sentinel: the column has no DEFAULT clause (distinct from DEFAULT NULL)."""

    def __repr__(self) -> str:
        return "NO_DEFAULT"


NO_DEFAULT: Any = _NoDefault()


@dataclass
class ColumnSpec:
    """
    One column of a CREATE/ALTER TABLE statement.

    Attributes
    ----------
    name:
        Column name (unquoted; quoting is the dialect's job).
    type:
        Semantic type, one of SEMANTIC_TYPES.
    length:
        Length for "string" columns.
    precision, scale:
        For "decimal" columns.
    nullable, primary_key, unique, auto_increment:
        Column modifiers.
    default:
        Default value, or NO_DEFAULT. ``None`` renders DEFAULT NULL.
    """

    name: str
    type: str
    length: Optional[int] = None
    precision: Optional[int] = None
    scale: Optional[int] = None
    nullable: bool = False
    primary_key: bool = False
    unique: bool = False
    auto_increment: bool = False
    default: Any = NO_DEFAULT

    @property
    def has_default(self) -> bool:
        return self.default is not NO_DEFAULT


@dataclass(frozen=True)
class IndexSpec:
    """
    A table-level index or constraint.

    ``kind`` is "index", "unique" or "primary". When ``name`` is omitted the
    SchemaBuilder derives ``<table>_<col1>_<col2>_<kind>``.
    """

    columns: Tuple[str, ...]
    kind: str = "index"
    name: Optional[str] = None

    def resolved_name(self, table: str) -> str:
        if self.name:
            return self.name
        return f"{table}_{'_'.join(self.columns)}_{self.kind}"


@dataclass
class TableSpec:
    """Ordered columns and indexes collected for one table."""

    name: str
    columns: list = field(default_factory=list)
    indexes: list = field(default_factory=list)


__all__ = [
    "SEMANTIC_TYPES",
    "INDEX_KINDS",
    "NO_DEFAULT",
    "ColumnSpec",
    "IndexSpec",
    "TableSpec",
]
