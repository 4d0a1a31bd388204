"""
MySQL / MariaDB dialect (PyMySQL driver).

On ``localhost`` the well-known unix socket paths are tried before TCP, and
TCP itself goes to 127.0.0.1 so the client library does not reinterpret
"localhost" as a socket request. Every candidate is verified with
``SELECT 1`` by the Connection before it is accepted.
"""

from __future__ import annotations

import os
from typing import Any, List, Tuple

from ..db.helpers import quote_literal
from .base import ConnectTarget, Dialect


SOCKET_PATHS = (
    "/var/run/mysqld/mysqld.sock",
    "/tmp/mysql.sock",
    "/var/lib/mysql/mysql.sock",
)

STRICT_MODE = "STRICT_ALL_TABLES,NO_ZERO_DATE,NO_ZERO_IN_DATE,ERROR_FOR_DIVISION_BY_ZERO"

# largest unsigned BIGINT; MySQL has no OFFSET without LIMIT
MAX_ROWS = 18446744073709551615


class MySQLDialect(Dialect):
    name = "mysql"

    driver_module = "pymysql"
    default_port = 3306
    param_style = "format"

    quote_open = "`"
    quote_close = "`"

    features = frozenset({"json", "upsert", "fulltext", "if_not_exists", "drop_if_exists"})

    type_map = {
        "integer": "INT",
        "bigint": "BIGINT",
        "string": "VARCHAR({length})",
        "text": "TEXT",
        "boolean": "TINYINT(1)",
        "date": "DATE",
        "datetime": "DATETIME",
        "timestamp": "TIMESTAMP",
        "decimal": "DECIMAL({precision}, {scale})",
        "float": "FLOAT",
        "json": "JSON",
    }

    already_exists_markers = ("already exists", "duplicate column name", "duplicate key name")

    engine_suffix = " ENGINE=InnoDB DEFAULT CHARSET=utf8mb4 COLLATE=utf8mb4_unicode_ci"

    # ------------------------------------------------------------------
    # Connection handling
    # ------------------------------------------------------------------

    def socket_candidates(self, config) -> List[str]:
        sockets: List[str] = []
        if config.unix_socket:
            sockets.append(config.unix_socket)
        if config.host in ("localhost", "", None):
            sockets.extend(p for p in SOCKET_PATHS if os.path.exists(p) and p not in sockets)
        return sockets

    def base_kwargs(self, config) -> dict:
        kwargs: dict = {
            "user": config.username,
            "password": config.password or "",
            "database": config.database,
            "charset": config.charset or "utf8mb4",
        }
        if config.timeout is not None:
            kwargs["connect_timeout"] = int(config.timeout)
        kwargs.update(config.options)
        return kwargs

    def connect_targets(self, config) -> List[ConnectTarget]:
        targets: List[ConnectTarget] = []

        for sock in self.socket_candidates(config):
            kwargs = self.base_kwargs(config)
            kwargs["unix_socket"] = sock
            targets.append(
                ConnectTarget(
                    label=f"{self.name}:unix_socket={sock};dbname={config.database}",
                    kwargs=kwargs,
                )
            )

        host = "127.0.0.1" if config.host in ("localhost", "", None) else config.host
        port = self.port(config)
        kwargs = self.base_kwargs(config)
        kwargs.update(host=host, port=port)
        targets.append(
            ConnectTarget(
                label=f"{self.name}:host={host};port={port};dbname={config.database}",
                kwargs=kwargs,
            )
        )
        return targets

    def session_statements(self, config) -> List[str]:
        if config.strict:
            return [f"SET SESSION sql_mode='{STRICT_MODE}'"]
        return []

    # ------------------------------------------------------------------
    # Literals
    # ------------------------------------------------------------------

    def render_string(self, value: str) -> str:
        return quote_literal(value, escape_backslash=True)

    # ------------------------------------------------------------------
    # DDL
    # ------------------------------------------------------------------

    def auto_increment_clause(self, table: str, column: str, semantic_type: str = "integer") -> Tuple[str, List[str]]:
        base = "BIGINT" if semantic_type == "bigint" else "INT"
        return f"{base} UNSIGNED AUTO_INCREMENT", []

    def table_constraint(self, table: str, index):
        if index.kind == "index":
            return f"KEY {self.quote_ident(index.resolved_name(table))} ({self.column_list(index.columns)})"
        return super().table_constraint(table, index)

    def create_index_sql(self, table: str, index) -> str:
        if index.kind == "primary":
            return super().create_index_sql(table, index)
        prefix = "CREATE UNIQUE INDEX" if index.kind == "unique" else "CREATE INDEX"
        return (
            f"{prefix} {self.quote_ident(index.resolved_name(table))} "
            f"ON {self.quote_ident(table)} ({self.column_list(index.columns)})"
        )

    def table_suffix(self) -> str:
        return self.engine_suffix

    def has_table_sql(self, table: str) -> Tuple[str, List[Any]]:
        return (
            "SELECT table_name FROM information_schema.tables "
            "WHERE table_schema = DATABASE() AND table_name = ?",
            [table],
        )

    # ------------------------------------------------------------------
    # DML
    # ------------------------------------------------------------------

    def compile_limit(self, limit, offset, *, has_order: bool = True, distinct: bool = False) -> List[str]:
        if limit is None and offset is not None:
            return [f"LIMIT {MAX_ROWS}", f"OFFSET {int(offset)}"]
        return super().compile_limit(limit, offset, has_order=has_order, distinct=distinct)


class MariaDBDialect(MySQLDialect):
    """MariaDB speaks the MySQL protocol; only the name differs."""

    name = "mariadb"


__all__ = ["MySQLDialect", "MariaDBDialect", "SOCKET_PATHS", "STRICT_MODE"]
