"""
dialectdb: one data-access API over many SQL dialects.

Public API:
    - Database, create_database      (core façade)
    - DatabaseConfig, load_config    (configuration)
    - Connection                     (one DB-API handle + dialect)
    - QueryBuilder, SchemaBuilder    (fluent DML / DDL)
    - Migration, Migrator            (schema migrations)
    - DialectCatalog, Dialect        (per-database rules)
    - raw                            (verbatim SQL fragments)
    - error classes
"""

from .config import DatabaseConfig, load_config
from .core import Database, create_database
from .db.connection import Connection
from .dialects import Dialect, DialectCatalog
from .exceptions import (
    ConnectionError,
    DatabaseError,
    MigrationError,
    PartialSchemaError,
    QueryError,
    SchemaError,
)
from .expression import Expression, raw
from .migrations import Migration, MigrationCreator, MigrationLoader, Migrator
from .query.builder import QueryBuilder
from .schema import Blueprint, SchemaBuilder

__version__ = "0.1.0"

__all__ = [
    "Database",
    "create_database",
    "DatabaseConfig",
    "load_config",
    "Connection",
    "QueryBuilder",
    "SchemaBuilder",
    "Blueprint",
    "Migration",
    "Migrator",
    "MigrationLoader",
    "MigrationCreator",
    "Dialect",
    "DialectCatalog",
    "Expression",
    "raw",
    "DatabaseError",
    "ConnectionError",
    "QueryError",
    "SchemaError",
    "PartialSchemaError",
    "MigrationError",
]
