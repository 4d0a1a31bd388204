"""
Oracle dialect (python-oracledb driver).

Oracle has no column-level auto-increment in the versions this layer
targets. An auto-increment column is emulated by two objects owned by the
table:

    <TABLE>_<COLUMN>_SEQ   a sequence
    <TABLE>_<COLUMN>_TRG   a BEFORE INSERT trigger filling the column from it

Both are returned as companion statements of the column and dropped again
together with the table.

Unquoted identifiers fold to upper case on Oracle, so every quoted name is
upper-cased first and result-set column names are lower-cased on the way
back.
"""

from __future__ import annotations

from typing import Any, List, Optional, Tuple

from ..db.helpers import quote_literal
from .base import ConnectTarget, Dialect, offset_fetch


NLS_STATEMENTS = (
    "ALTER SESSION SET NLS_DATE_FORMAT = 'YYYY-MM-DD HH24:MI:SS'",
    "ALTER SESSION SET NLS_TIMESTAMP_FORMAT = 'YYYY-MM-DD HH24:MI:SS.FF'",
)


class OracleDialect(Dialect):
    name = "oracle"
    aliases = ("oci", "oci8")

    driver_module = "oracledb"
    default_port = 1521
    param_style = "numeric"

    fold_upper = True

    features = frozenset({"returning"})

    type_map = {
        "integer": "NUMBER(10)",
        "bigint": "NUMBER(19)",
        "string": "VARCHAR2({length})",
        "text": "CLOB",
        "boolean": "NUMBER(1)",
        "date": "DATE",
        "datetime": "TIMESTAMP",
        "timestamp": "TIMESTAMP",
        "decimal": "NUMBER({precision}, {scale})",
        "float": "FLOAT",
        "json": "CLOB",
    }

    # name already used / column already exists / column list already indexed
    already_exists_markers = ("ORA-00955", "ORA-01430", "ORA-01408")

    verify_sql = "SELECT 1 FROM dual"

    # ------------------------------------------------------------------
    # Connection handling
    # ------------------------------------------------------------------

    def dsn(self, config) -> str:
        if config.tns:
            return config.tns
        service = config.service_name or config.database
        return f"{config.host}:{self.port(config)}/{service}"

    def connect_targets(self, config) -> List[ConnectTarget]:
        dsn = self.dsn(config)
        kwargs: dict = {
            "user": config.username,
            "password": config.password,
            "dsn": dsn,
        }
        if config.timeout is not None:
            kwargs["tcp_connect_timeout"] = float(config.timeout)
        kwargs.update(config.options)
        return [ConnectTarget(label=f"oracle:dsn={dsn}", kwargs=kwargs)]

    def session_statements(self, config) -> List[str]:
        return list(NLS_STATEMENTS)

    # ------------------------------------------------------------------
    # Auto-increment emulation
    # ------------------------------------------------------------------

    def sequence_name(self, table: str, column: str) -> str:
        return f"{table}_{column}_seq"

    def trigger_name(self, table: str, column: str) -> str:
        return f"{table}_{column}_trg"

    def auto_increment_clause(self, table: str, column: str, semantic_type: str = "integer") -> Tuple[str, List[str]]:
        seq = self.quote_ident(self.sequence_name(table, column))
        trg = self.quote_ident(self.trigger_name(table, column))
        tbl = self.quote_ident(table)
        col = self.quote_ident(column)

        create_sequence = f"CREATE SEQUENCE {seq} START WITH 1 INCREMENT BY 1 NOCACHE"
        create_trigger = (
            f"CREATE OR REPLACE TRIGGER {trg} BEFORE INSERT ON {tbl} FOR EACH ROW "
            f"BEGIN IF :new.{col} IS NULL THEN "
            f"SELECT {seq}.NEXTVAL INTO :new.{col} FROM dual; "
            f"END IF; END;"
        )
        return self.map_type(semantic_type), [create_sequence, create_trigger]

    def undo_statement(self, statement: str) -> Optional[str]:
        # a sequence must not outlive a trigger that failed to compile
        prefix = "CREATE SEQUENCE "
        if statement.startswith(prefix):
            name = statement[len(prefix):].split(" ", 1)[0]
            return f"DROP SEQUENCE {name}"
        return None

    # ------------------------------------------------------------------
    # DDL
    # ------------------------------------------------------------------

    def add_column_sql(self, table: str, fragment: str) -> str:
        return f"ALTER TABLE {self.quote_ident(table)} ADD ({fragment})"

    def drop_table_sql(self, table: str, *, if_exists: bool = False) -> List[str]:
        """
        Drop every sequence referenced by the table's triggers, then the
        table itself (its triggers go with it).
        """
        name = quote_literal(self.fold_case(table))
        drop_sequences = (
            "BEGIN "
            "FOR s IN (SELECT d.referenced_name FROM user_triggers t "
            "JOIN user_dependencies d ON d.name = t.trigger_name AND d.type = 'TRIGGER' "
            f"WHERE t.table_name = {name} AND d.referenced_type = 'SEQUENCE') LOOP "
            "EXECUTE IMMEDIATE 'DROP SEQUENCE \"' || s.referenced_name || '\"'; "
            "END LOOP; "
            "END;"
        )
        return [drop_sequences, f"DROP TABLE {self.quote_ident(table)} CASCADE CONSTRAINTS"]

    def has_table_sql(self, table: str) -> Tuple[str, List[Any]]:
        return "SELECT table_name FROM user_tables WHERE table_name = ?", [self.fold_case(table)]

    # ------------------------------------------------------------------
    # DML
    # ------------------------------------------------------------------

    def compile_limit(self, limit, offset, *, has_order: bool = True, distinct: bool = False) -> List[str]:
        return offset_fetch(limit, offset)

    def last_insert_id_sql(self, table: str, key: str) -> Optional[str]:
        seq = self.quote_ident(self.sequence_name(table, key))
        return f"SELECT {seq}.CURRVAL FROM dual"


__all__ = ["OracleDialect", "NLS_STATEMENTS"]
