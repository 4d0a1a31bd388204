"""
PostgreSQL dialect (psycopg2 driver).

Postgres has native SERIAL columns, transactional DDL and RETURNING, so
this dialect mostly just fills in the type map. The schema search path is
applied once per connection.
"""

from __future__ import annotations

from typing import Any, List, Optional, Tuple

from .base import ConnectTarget, Dialect


class PostgresDialect(Dialect):
    name = "pgsql"
    aliases = ("postgres", "postgresql", "pg")

    driver_module = "psycopg2"
    default_port = 5432
    param_style = "format"

    features = frozenset({
        "json",
        "returning",
        "upsert",
        "fulltext",
        "if_not_exists",
        "drop_if_exists",
        "transactional_ddl",
    })

    type_map = {
        "integer": "INTEGER",
        "bigint": "BIGINT",
        "string": "VARCHAR({length})",
        "text": "TEXT",
        "boolean": "BOOLEAN",
        "date": "DATE",
        "datetime": "TIMESTAMP",
        "timestamp": "TIMESTAMP",
        "decimal": "DECIMAL({precision}, {scale})",
        "float": "DOUBLE PRECISION",
        "json": "JSONB",
    }

    already_exists_markers = ("already exists",)

    # ------------------------------------------------------------------
    # Connection handling
    # ------------------------------------------------------------------

    def connect_targets(self, config) -> List[ConnectTarget]:
        port = self.port(config)
        kwargs: dict = {
            "host": config.host,
            "port": port,
            "dbname": config.database,
            "user": config.username,
            "password": config.password,
        }
        if config.sslmode:
            kwargs["sslmode"] = config.sslmode
        if config.timeout is not None:
            kwargs["connect_timeout"] = int(config.timeout)
        kwargs.update(config.options)
        label = f"pgsql:host={config.host};port={port};dbname={config.database}"
        return [ConnectTarget(label=label, kwargs=kwargs)]

    def session_statements(self, config) -> List[str]:
        if config.search_path:
            return [f"SET search_path TO {config.search_path}"]
        return []

    # ------------------------------------------------------------------
    # Literals / DDL
    # ------------------------------------------------------------------

    def render_bool(self, value: bool) -> str:
        return "TRUE" if value else "FALSE"

    def auto_increment_clause(self, table: str, column: str, semantic_type: str = "integer") -> Tuple[str, List[str]]:
        return ("BIGSERIAL" if semantic_type == "bigint" else "SERIAL"), []

    def has_table_sql(self, table: str) -> Tuple[str, List[Any]]:
        return (
            "SELECT table_name FROM information_schema.tables "
            "WHERE table_schema = ANY (current_schemas(false)) AND table_name = ?",
            [table],
        )

    def returning_clause(self, key: str) -> Optional[str]:
        return f" RETURNING {self.quote_ident(key)}"


__all__ = ["PostgresDialect"]
