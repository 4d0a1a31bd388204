"""
Microsoft SQL Server dialect (pyodbc driver).

Identifiers are bracket-quoted. CREATE/DROP TABLE are guarded with catalog
lookups rather than IF [NOT] EXISTS so older servers behave the same.
"""

from __future__ import annotations

from typing import Any, List, Optional, Tuple

from ..db.helpers import quote_literal
from .base import ConnectTarget, Dialect, offset_fetch


DEFAULT_ODBC_DRIVER = "ODBC Driver 18 for SQL Server"


def _yes_no(value: Optional[bool]) -> str:
    return "yes" if value else "no"


class SQLServerDialect(Dialect):
    name = "sqlsrv"
    aliases = ("mssql", "sqlserver")

    driver_module = "pyodbc"
    default_port = 1433
    param_style = "qmark"

    quote_open = "["
    quote_close = "]"

    features = frozenset({"transactional_ddl"})

    type_map = {
        "integer": "INT",
        "bigint": "BIGINT",
        "string": "NVARCHAR({length})",
        "text": "NVARCHAR(MAX)",
        "boolean": "BIT",
        "date": "DATE",
        "datetime": "DATETIME2",
        "timestamp": "DATETIME2",
        "decimal": "DECIMAL({precision}, {scale})",
        "float": "FLOAT",
        "json": "NVARCHAR(MAX)",
    }

    already_exists_markers = (
        "there is already an object named",
        "already exists",
        "column names in each table must be unique",
    )

    # ------------------------------------------------------------------
    # Connection handling
    # ------------------------------------------------------------------

    def connect_targets(self, config) -> List[ConnectTarget]:
        options = dict(config.options)
        odbc_driver = options.pop("odbc_driver", DEFAULT_ODBC_DRIVER)
        port = self.port(config)

        parts = [
            f"DRIVER={{{odbc_driver}}}",
            f"SERVER={config.host},{port}",
            f"DATABASE={config.database}",
        ]
        if config.username:
            parts.append(f"UID={config.username}")
        public = list(parts)
        if config.password:
            parts.append(f"PWD={config.password}")
        if config.encrypt is not None:
            flag = f"Encrypt={_yes_no(config.encrypt)}"
            parts.append(flag)
            public.append(flag)
        if config.trust_server_certificate is not None:
            flag = f"TrustServerCertificate={_yes_no(config.trust_server_certificate)}"
            parts.append(flag)
            public.append(flag)

        kwargs: dict = {}
        if config.timeout is not None:
            kwargs["timeout"] = int(config.timeout)
        kwargs.update(options)

        return [
            ConnectTarget(
                label="sqlsrv:" + ";".join(public),
                args=(";".join(parts) + ";",),
                kwargs=kwargs,
            )
        ]

    # ------------------------------------------------------------------
    # DDL
    # ------------------------------------------------------------------

    def auto_increment_clause(self, table: str, column: str, semantic_type: str = "integer") -> Tuple[str, List[str]]:
        base = "BIGINT" if semantic_type == "bigint" else "INT"
        return f"{base} IDENTITY(1,1)", []

    def create_table_sql(self, table: str, elements) -> str:
        body = ",\n    ".join(elements)
        return (
            f"IF NOT EXISTS (SELECT * FROM sysobjects WHERE name = {quote_literal(table)} AND xtype = 'U') "
            f"CREATE TABLE {self.quote_ident(table)} (\n    {body}\n)"
        )

    def add_column_sql(self, table: str, fragment: str) -> str:
        return f"ALTER TABLE {self.quote_ident(table)} ADD {fragment}"

    def drop_table_sql(self, table: str, *, if_exists: bool = False) -> List[str]:
        drop = f"DROP TABLE {self.quote_ident(table)}"
        if if_exists:
            return [f"IF OBJECT_ID(N{quote_literal(table)}, N'U') IS NOT NULL {drop}"]
        return [drop]

    def has_table_sql(self, table: str) -> Tuple[str, List[Any]]:
        return "SELECT name FROM sysobjects WHERE name = ? AND xtype = 'U'", [table]

    # ------------------------------------------------------------------
    # DML
    # ------------------------------------------------------------------

    def compile_limit(self, limit, offset, *, has_order: bool = True, distinct: bool = False) -> List[str]:
        parts = offset_fetch(limit, offset)
        if parts and not has_order:
            # SELECT DISTINCT only accepts ORDER BY items from the select list
            parts.insert(0, "ORDER BY 1" if distinct else "ORDER BY (SELECT NULL)")
        return parts

    def last_insert_id_sql(self, table: str, key: str) -> Optional[str]:
        return "SELECT CAST(@@IDENTITY AS BIGINT)"


__all__ = ["SQLServerDialect", "DEFAULT_ODBC_DRIVER"]
