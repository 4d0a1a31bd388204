"""
SQLite dialect.

Used for:
    - local development
    - tests
    - small embedded databases

Connection notes:
    - ``database`` is a file path or ":memory:"; relative paths are resolved
      against the current working directory and the parent directory is
      created on demand.
    - The handle runs with ``isolation_level=None``; transactions are opened
      explicitly with BEGIN so the Connection decides when to commit.
    - Foreign keys are enforced on every new handle.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, List, Optional, Tuple

from .base import ConnectTarget, Dialect


MEMORY = ":memory:"


class SQLiteDialect(Dialect):
    name = "sqlite"
    aliases = ("sqlite3",)

    driver_module = "sqlite3"
    param_style = "qmark"

    features = frozenset({"upsert", "if_not_exists", "drop_if_exists", "transactional_ddl"})

    type_map = {
        "integer": "INTEGER",
        "bigint": "INTEGER",
        "string": "VARCHAR({length})",
        "text": "TEXT",
        "boolean": "BOOLEAN",
        "date": "DATE",
        "datetime": "DATETIME",
        "timestamp": "TIMESTAMP",
        "decimal": "DECIMAL({precision}, {scale})",
        "float": "REAL",
        "json": "TEXT",
    }

    already_exists_markers = ("already exists", "duplicate column name")

    begin_sql = "BEGIN"

    # ------------------------------------------------------------------
    # Connection handling
    # ------------------------------------------------------------------

    def database_path(self, database: Optional[str]) -> str:
        """Resolve the configured database to something sqlite3 can open."""
        if not database or database == MEMORY:
            return MEMORY
        if database.startswith("file:"):
            return database

        path = Path(database).expanduser()
        if not path.is_absolute():
            path = Path.cwd() / path
        path.parent.mkdir(parents=True, exist_ok=True)
        return str(path)

    def connect_targets(self, config) -> List[ConnectTarget]:
        path = self.database_path(config.database)
        kwargs: dict = {"database": path, "isolation_level": None}
        if config.timeout is not None:
            kwargs["timeout"] = config.timeout
        if path.startswith("file:"):
            kwargs["uri"] = True
        kwargs.update(config.options)
        return [ConnectTarget(label=f"sqlite:{path}", kwargs=kwargs)]

    def session_statements(self, config) -> List[str]:
        return ["PRAGMA foreign_keys = ON"]

    # ------------------------------------------------------------------
    # DDL
    # ------------------------------------------------------------------

    def auto_increment_clause(self, table: str, column: str, semantic_type: str = "integer") -> Tuple[str, List[str]]:
        # the rowid alias must be spelled exactly INTEGER PRIMARY KEY
        return "INTEGER", []

    def primary_key_clause(self, column) -> str:
        if column.auto_increment:
            return "PRIMARY KEY AUTOINCREMENT"
        return "PRIMARY KEY"

    def has_table_sql(self, table: str) -> Tuple[str, List[Any]]:
        return "SELECT name FROM sqlite_master WHERE type = 'table' AND name = ?", [table]

    # ------------------------------------------------------------------
    # DML
    # ------------------------------------------------------------------

    def compile_limit(self, limit, offset, *, has_order: bool = True, distinct: bool = False) -> List[str]:
        if limit is None and offset is not None:
            return ["LIMIT -1", f"OFFSET {int(offset)}"]
        return super().compile_limit(limit, offset, has_order=has_order, distinct=distinct)


__all__ = ["SQLiteDialect"]
