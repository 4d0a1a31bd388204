"""
Per-database SQL dialects.

Exports:
    - Dialect, ConnectTarget  (base interface)
    - DialectCatalog          (name/alias → dialect lookup)
    - one Dialect subclass per supported engine
"""

from .base import FEATURES, ConnectTarget, Dialect
from .catalog import DialectCatalog
from .db2 import DB2Dialect
from .generic import GenericDialect
from .mysql import MariaDBDialect, MySQLDialect
from .oracle import OracleDialect
from .postgres import PostgresDialect
from .sqlite import SQLiteDialect
from .sqlserver import SQLServerDialect

__all__ = [
    "FEATURES",
    "ConnectTarget",
    "Dialect",
    "DialectCatalog",
    "SQLiteDialect",
    "MySQLDialect",
    "MariaDBDialect",
    "PostgresDialect",
    "SQLServerDialect",
    "OracleDialect",
    "DB2Dialect",
    "GenericDialect",
]
