"""
Dialect base interface for dialectdb.

A Dialect is the single place where per-database rules live:

- identifier quoting and case folding
- semantic type → native type mapping
- auto-increment strategy (column fragment + companion statements)
- default literal rendering
- feature flags (json, returning, upsert, fulltext, ...)
- DSN / connect-argument building and post-connect session statements
- LIMIT/OFFSET syntax, CREATE/ALTER/DROP TABLE wrapping
- recognizing the native "already exists" error

Callers (Connection, QueryBuilder, SchemaBuilder, Migrator) never branch on
a driver name; they ask the dialect instead.

It is intentionally light-weight:

- It does NOT import any driver at module import time.
- Dialect instances are immutable and safe to share between connections.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
import importlib
from typing import TYPE_CHECKING, Any, Dict, FrozenSet, List, Optional, Sequence, Tuple

from ..db.helpers import quote_literal
from ..exceptions import SchemaError
from ..expression import Expression

if TYPE_CHECKING:
    from ..config import DatabaseConfig
    from ..schema.column import ColumnSpec, IndexSpec


FEATURES = (
    "json",
    "returning",
    "upsert",
    "fulltext",
    "if_not_exists",
    "drop_if_exists",
    "transactional_ddl",
)


# ---------------------------------------------------------------------------
# Connection targets
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ConnectTarget:
    """
    One way of reaching the database.

    ``label`` is a printable DSN (never contains the password) used in logs
    and in ConnectionError; ``args``/``kwargs`` go to ``driver.connect``.
    """

    label: str
    args: Tuple[Any, ...] = ()
    kwargs: Dict[str, Any] = field(default_factory=dict)


# ---------------------------------------------------------------------------
# Abstract Dialect
# ---------------------------------------------------------------------------

class Dialect(ABC):
    """
    Abstract base class for a dialect.

    Subclasses fill in the class attributes and override the hooks whose
    default (ANSI-ish) behaviour does not fit their engine.
    """

    name: str = ""
    aliases: Tuple[str, ...] = ()

    driver_module: Optional[str] = None
    default_port: Optional[int] = None
    param_style: str = "qmark"

    quote_open: str = '"'
    quote_close: str = '"'
    fold_upper: bool = False

    features: FrozenSet[str] = frozenset()

    type_map: Dict[str, str] = {}
    already_exists_markers: Tuple[str, ...] = ("already exists",)

    verify_sql: str = "SELECT 1"
    begin_sql: Optional[str] = None

    # ------------------------------------------------------------------
    # Driver / connection
    # ------------------------------------------------------------------

    def driver_name(self, config: "DatabaseConfig") -> Optional[str]:
        """Name of the DB-API module used to connect."""
        return self.driver_module

    def load_driver(self, config: "DatabaseConfig") -> Any:
        """
        Import and return the DB-API module for this dialect.

        Raises ImportError if the driver is not installed; Connection.open
        turns that into a ConnectionError.
        """
        module = self.driver_name(config)
        if not module:
            raise ImportError(f"No driver module configured for dialect {self.name!r}")
        return importlib.import_module(module)

    @abstractmethod
    def connect_targets(self, config: "DatabaseConfig") -> List[ConnectTarget]:
        """Return connection candidates, most preferred first."""
        raise NotImplementedError

    def param_style_for(self, driver: Any) -> str:
        """Placeholder style the loaded driver expects ("qmark", "format", "numeric")."""
        return self.param_style

    def connect(self, driver: Any, target: ConnectTarget) -> Any:
        """Open a raw DB-API handle for one target."""
        return driver.connect(*target.args, **target.kwargs)

    def configure_handle(self, raw: Any) -> None:
        """Adjust a freshly opened raw handle (autocommit mode, etc.)."""
        return None

    def session_statements(self, config: "DatabaseConfig") -> List[str]:
        """Statements run exactly once right after connecting."""
        return []

    def port(self, config: "DatabaseConfig") -> Optional[int]:
        return config.port or self.default_port

    # ------------------------------------------------------------------
    # Features
    # ------------------------------------------------------------------

    def supports(self, feature: str) -> bool:
        return feature in self.features

    # ------------------------------------------------------------------
    # Identifiers
    # ------------------------------------------------------------------

    def fold_case(self, name: str) -> str:
        return name.upper() if self.fold_upper else name

    def quote_ident(self, name: str) -> str:
        """
        Quote an identifier, segment by segment ("schema.table").

        ``*`` segments are left untouched; embedded closing quotes are doubled.
        """
        parts = []
        for segment in str(name).split("."):
            if segment == "*":
                parts.append(segment)
                continue
            segment = self.fold_case(segment)
            escaped = segment.replace(self.quote_close, self.quote_close * 2)
            parts.append(f"{self.quote_open}{escaped}{self.quote_close}")
        return ".".join(parts)

    def normalize_column_name(self, name: str) -> str:
        """Map a result-set column name back to the caller's spelling."""
        return name.lower() if self.fold_upper else name

    # ------------------------------------------------------------------
    # Types and literals
    # ------------------------------------------------------------------

    def map_type(
        self,
        semantic_type: str,
        *,
        length: Optional[int] = None,
        precision: Optional[int] = None,
        scale: Optional[int] = None,
    ) -> str:
        """
        Map a semantic column type to this dialect's native type string.

        Templates in ``type_map`` may use ``{length}``, ``{precision}`` and
        ``{scale}``.
        """
        template = self.type_map.get(semantic_type)
        if template is None:
            raise SchemaError(
                f"Unsupported column type {semantic_type!r} for dialect {self.name!r}"
            )
        return template.format(
            length=length or 255,
            precision=precision if precision is not None else 8,
            scale=scale if scale is not None else 2,
        )

    @abstractmethod
    def auto_increment_clause(
        self,
        table: str,
        column: str,
        semantic_type: str = "integer",
    ) -> Tuple[str, List[str]]:
        """
        Return ``(column_type_fragment, extra_statements)`` for an
        auto-increment column.

        ``extra_statements`` run after the table DDL (Oracle sequence +
        trigger); most dialects return none.
        """
        raise NotImplementedError

    def render_default(self, value: Any) -> str:
        """Render a Python value as a DEFAULT literal."""
        if isinstance(value, Expression):
            return value.sql
        if value is None:
            return "NULL"
        if isinstance(value, bool):
            return self.render_bool(value)
        if isinstance(value, (int, float, Decimal)):
            return str(value)
        if isinstance(value, datetime):
            return self.render_string(value.strftime("%Y-%m-%d %H:%M:%S"))
        if isinstance(value, date):
            return self.render_string(value.strftime("%Y-%m-%d"))
        return self.render_string(str(value))

    def render_bool(self, value: bool) -> str:
        return "1" if value else "0"

    def render_string(self, value: str) -> str:
        return quote_literal(value)

    # ------------------------------------------------------------------
    # DDL
    # ------------------------------------------------------------------

    def column_definition(
        self,
        table: str,
        column: "ColumnSpec",
        *,
        inline_primary: bool = True,
    ) -> Tuple[str, List[str]]:
        """
        Render one column fragment plus any companion statements.

        Order: name, type, DEFAULT, NULL/NOT NULL, PRIMARY KEY, UNIQUE.
        DEFAULT precedes the constraints because Oracle requires it.
        """
        extra: List[str] = []
        if column.auto_increment:
            type_sql, extra = self.auto_increment_clause(table, column.name, column.type)
        else:
            type_sql = self.map_type(
                column.type,
                length=column.length,
                precision=column.precision,
                scale=column.scale,
            )

        parts = [self.quote_ident(column.name), type_sql]

        if column.has_default and not column.auto_increment:
            parts.append("DEFAULT " + self.render_default(column.default))

        parts.append("NULL" if column.nullable and not column.primary_key else "NOT NULL")

        if column.primary_key and inline_primary:
            parts.append(self.primary_key_clause(column))
        elif column.unique:
            parts.append("UNIQUE")

        return " ".join(parts), extra

    def primary_key_clause(self, column: "ColumnSpec") -> str:
        return "PRIMARY KEY"

    def column_list(self, columns: Sequence[str]) -> str:
        return ", ".join(self.quote_ident(c) for c in columns)

    def table_constraint(self, table: str, index: "IndexSpec") -> Optional[str]:
        """
        Inline CREATE TABLE element for an index, or None when the index has
        to be created by a separate statement (see ``create_index_sql``).
        """
        cols = self.column_list(index.columns)
        if index.kind == "primary":
            return f"PRIMARY KEY ({cols})"
        if index.kind == "unique":
            return f"CONSTRAINT {self.quote_ident(index.resolved_name(table))} UNIQUE ({cols})"
        return None

    def create_index_sql(self, table: str, index: "IndexSpec") -> str:
        if index.kind == "primary":
            return f"ALTER TABLE {self.quote_ident(table)} ADD PRIMARY KEY ({self.column_list(index.columns)})"
        prefix = "CREATE UNIQUE INDEX" if index.kind == "unique" else "CREATE INDEX"
        if self.supports("if_not_exists"):
            prefix += " IF NOT EXISTS"
        return (
            f"{prefix} {self.quote_ident(index.resolved_name(table))} "
            f"ON {self.quote_ident(table)} ({self.column_list(index.columns)})"
        )

    def create_table_sql(self, table: str, elements: Sequence[str]) -> str:
        body = ",\n    ".join(elements)
        head = "CREATE TABLE IF NOT EXISTS" if self.supports("if_not_exists") else "CREATE TABLE"
        return f"{head} {self.quote_ident(table)} (\n    {body}\n){self.table_suffix()}"

    def table_suffix(self) -> str:
        return ""

    def add_column_sql(self, table: str, fragment: str) -> str:
        return f"ALTER TABLE {self.quote_ident(table)} ADD COLUMN {fragment}"

    def drop_table_sql(self, table: str, *, if_exists: bool = False) -> List[str]:
        """
        Statements that drop a table and anything created together with it.

        ``if_exists`` is only honoured when ``supports("drop_if_exists")``;
        otherwise the SchemaBuilder checks ``has_table`` first.
        """
        head = "DROP TABLE IF EXISTS" if if_exists and self.supports("drop_if_exists") else "DROP TABLE"
        return [f"{head} {self.quote_ident(table)}"]

    def undo_statement(self, statement: str) -> Optional[str]:
        """
        Statement reverting a companion statement that already ran, used when
        a later companion of the same table fails. None if nothing to undo.
        """
        return None

    @abstractmethod
    def has_table_sql(self, table: str) -> Tuple[str, List[Any]]:
        """Query (and bindings) returning at least one row iff the table exists."""
        raise NotImplementedError

    def is_already_exists_error(self, exc: BaseException) -> bool:
        """True if ``exc`` is the native "object already exists" error."""
        native = getattr(exc, "native", None) or exc
        message = str(native).lower()
        return any(marker.lower() in message for marker in self.already_exists_markers)

    # ------------------------------------------------------------------
    # DML
    # ------------------------------------------------------------------

    def compile_limit(
        self,
        limit: Optional[int],
        offset: Optional[int],
        *,
        has_order: bool = True,
        distinct: bool = False,
    ) -> List[str]:
        """
        Trailing LIMIT/OFFSET fragments for a SELECT.

        ``has_order`` and ``distinct`` describe the statement, for dialects
        whose paging syntax requires an ORDER BY.
        """
        parts: List[str] = []
        if limit is not None:
            parts.append(f"LIMIT {int(limit)}")
        if offset is not None:
            parts.append(f"OFFSET {int(offset)}")
        return parts

    def returning_clause(self, key: str) -> Optional[str]:
        """
        Suffix making an INSERT return the generated ``key`` as a result row,
        or None when the id has to be read back separately.
        """
        return None

    def last_insert_id_sql(self, table: str, key: str) -> Optional[str]:
        """
        Query returning the id generated by the last INSERT on this session,
        or None when ``cursor.lastrowid`` is reliable for this driver.
        """
        return None

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name!r}>"


# ---------------------------------------------------------------------------
# Shared: OFFSET .. FETCH syntax (SQL Server, Oracle 12c+, DB2)
# ---------------------------------------------------------------------------

def offset_fetch(limit: Optional[int], offset: Optional[int]) -> List[str]:
    if limit is None and offset is None:
        return []
    parts = [f"OFFSET {int(offset or 0)} ROWS"]
    if limit is not None:
        parts.append(f"FETCH NEXT {int(limit)} ROWS ONLY")
    return parts


__all__ = [
    "FEATURES",
    "ConnectTarget",
    "Dialect",
    "offset_fetch",
]
