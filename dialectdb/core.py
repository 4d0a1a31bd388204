"""
Core façade for dialectdb.

Database is the single, high-level entrypoint used by application code:

    db = Database.from_config(DatabaseConfig(driver="sqlite", database=":memory:"))
    db.schema().create("tasks", lambda t: (t.id(), t.string("status")))
    db.table("tasks").insert({"status": "pending"})

It wraps:

    - the DialectCatalog (name → Dialect)
    - one open Connection
    - Migrator construction for a migrations directory

Nothing is global: the catalog and config are built once and threaded
through explicitly.
"""

from __future__ import annotations

from dataclasses import dataclass
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Type, Union

from .config import DatabaseConfig, load_config
from .db.connection import Connection
from .dialects.base import Dialect
from .dialects.catalog import DialectCatalog
from .migrations.loader import MigrationLoader
from .migrations.migration import Migration
from .migrations.migrator import Migrator
from .query.builder import QueryBuilder
from .schema.builder import SchemaBuilder

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Database façade
# ---------------------------------------------------------------------------

@dataclass
class Database:
    """
    High-level façade over one database connection.

    Attributes
    ----------
    config:
        DatabaseConfig used to construct this instance.

    catalog:
        DialectCatalog the dialect was resolved from.

    connection:
        The open Connection. Not thread-safe; one Database per caller.
    """

    config: DatabaseConfig
    catalog: DialectCatalog
    connection: Connection

    # ------------------------------------------------------------------
    # Construction helpers
    # ------------------------------------------------------------------

    @classmethod
    def from_config(
        cls,
        config: Optional[DatabaseConfig] = None,
        *,
        catalog: Optional[DialectCatalog] = None,
        driver: Any = None,
    ) -> "Database":
        """
        Construct a Database from a DatabaseConfig.

        This:
            - resolves the dialect (unknown names degrade to generic),
            - opens and initializes the connection.

        ``driver`` overrides the DB-API module the dialect would import.
        """
        cfg = config or load_config()

        if cfg.enable_logging:
            logging.basicConfig(level=logging.INFO)
            logger.info("Initializing Database for driver %r", cfg.driver)

        cat = catalog or DialectCatalog.default()
        dialect = cat.get(cfg.driver)
        connection = Connection.open(dialect, cfg, driver=driver)

        return cls(config=cfg, catalog=cat, connection=connection)

    @classmethod
    def from_env(cls) -> "Database":
        """Construct a Database using environment variables."""
        return cls.from_config(load_config())

    # ------------------------------------------------------------------
    # Delegation
    # ------------------------------------------------------------------

    @property
    def dialect(self) -> Dialect:
        return self.connection.dialect

    def table(self, name: str) -> QueryBuilder:
        return self.connection.table(name)

    def schema(self) -> SchemaBuilder:
        return self.connection.schema()

    def select(self, sql: str, params: Optional[Sequence[Any]] = None) -> List[Dict[str, Any]]:
        return self.connection.select(sql, params)

    def execute(self, sql: str, params: Optional[Sequence[Any]] = None) -> bool:
        return self.connection.execute(sql, params)

    def insert(self, table: str, values: Dict[str, Any], key: str = "id") -> Optional[Any]:
        return self.connection.insert(table, values, key=key)

    def transaction(self):
        return self.connection.transaction()

    def supports_feature(self, name: str) -> bool:
        return self.connection.supports_feature(name)

    # ------------------------------------------------------------------
    # Migrations
    # ------------------------------------------------------------------

    def migrator(
        self,
        path: Optional[Union[str, Path]] = None,
        *,
        registry: Optional[Dict[str, Type[Migration]]] = None,
        transactional: bool = False,
    ) -> Migrator:
        """Migrator over the files in ``path`` and/or an explicit registry."""
        loader = MigrationLoader(path, registry=registry)
        return Migrator(self.connection, loader, transactional=transactional)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def close(self) -> None:
        self.connection.close()

    def __enter__(self) -> "Database":
        return self

    def __exit__(self, exc_type, exc, tb):
        return self.connection.__exit__(exc_type, exc, tb)


# ---------------------------------------------------------------------------
# Convenience
# ---------------------------------------------------------------------------

def create_database(config: Optional[DatabaseConfig] = None, **overrides: Any) -> Database:
    """
    Convenience constructor used by services / scripts.

    Keyword arguments override fields of ``config`` (or of the environment
    config when ``config`` is None).
    """
    cfg = config or load_config()
    if overrides:
        cfg = cfg.with_overrides(**overrides)
    return Database.from_config(cfg)


__all__ = [
    "Database",
    "create_database",
]
