"""
IBM DB2 dialect (ibm_db_dbi driver).
"""

from __future__ import annotations

from typing import Any, List, Optional, Tuple

from .base import ConnectTarget, Dialect, offset_fetch


class DB2Dialect(Dialect):
    name = "db2"
    aliases = ("ibm", "ibm_db")

    driver_module = "ibm_db_dbi"
    default_port = 50000
    param_style = "qmark"

    fold_upper = True

    features = frozenset({"transactional_ddl"})

    type_map = {
        "integer": "INTEGER",
        "bigint": "BIGINT",
        "string": "VARCHAR({length})",
        "text": "CLOB",
        "boolean": "SMALLINT",
        "date": "DATE",
        "datetime": "TIMESTAMP",
        "timestamp": "TIMESTAMP",
        "decimal": "DECIMAL({precision}, {scale})",
        "float": "DOUBLE",
        "json": "CLOB",
    }

    # object exists / duplicate name, for tables and columns
    already_exists_markers = ("SQL0601N", "42710", "SQL0612N", "42711")

    verify_sql = "SELECT 1 FROM SYSIBM.SYSDUMMY1"

    def connect_targets(self, config) -> List[ConnectTarget]:
        port = self.port(config)
        parts = [
            f"DATABASE={config.database}",
            f"HOSTNAME={config.host}",
            f"PORT={port}",
            "PROTOCOL=TCPIP",
            f"UID={config.username or ''}",
        ]
        label = "db2:" + ";".join(parts)
        parts.append(f"PWD={config.password or ''}")
        if config.timeout is not None:
            parts.append(f"CONNECTTIMEOUT={int(config.timeout)}")
        dsn = ";".join(parts) + ";"
        return [ConnectTarget(label=label, args=(dsn, "", ""), kwargs=dict(config.options))]

    def auto_increment_clause(self, table: str, column: str, semantic_type: str = "integer") -> Tuple[str, List[str]]:
        base = "BIGINT" if semantic_type == "bigint" else "INTEGER"
        return f"{base} GENERATED ALWAYS AS IDENTITY (START WITH 1 INCREMENT BY 1)", []

    def has_table_sql(self, table: str) -> Tuple[str, List[Any]]:
        return (
            "SELECT tabname FROM syscat.tables WHERE tabschema = CURRENT SCHEMA AND tabname = ?",
            [self.fold_case(table)],
        )

    def compile_limit(self, limit, offset, *, has_order: bool = True, distinct: bool = False) -> List[str]:
        return offset_fetch(limit, offset)

    def last_insert_id_sql(self, table: str, key: str) -> Optional[str]:
        return "SELECT IDENTITY_VAL_LOCAL() FROM SYSIBM.SYSDUMMY1"


__all__ = ["DB2Dialect"]
