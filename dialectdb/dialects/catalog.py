"""
Dialect catalog.

Maps driver names and aliases to Dialect instances. A catalog is built once
at startup (``DialectCatalog.default()``) and passed to whatever needs it;
there is no module-level registry.

Unknown names resolve to the generic dialect with a warning. That is a
best-effort degrade, not an error.
"""

from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Optional

from .base import Dialect
from .db2 import DB2Dialect
from .generic import GenericDialect
from .mysql import MariaDBDialect, MySQLDialect
from .oracle import OracleDialect
from .postgres import PostgresDialect
from .sqlite import SQLiteDialect
from .sqlserver import SQLServerDialect

logger = logging.getLogger(__name__)


class DialectCatalog:
    """
    Lookup table of dialects by name.

    Parameters
    ----------
    dialects:
        Dialect instances to register. Each is reachable by ``name`` and by
        every entry of ``aliases``.
    fallback:
        Dialect returned for unknown names.
    """

    def __init__(self, dialects: Iterable[Dialect] = (), fallback: Optional[Dialect] = None):
        self._by_name: Dict[str, Dialect] = {}
        self.fallback = fallback or GenericDialect()
        self.register(self.fallback)
        for dialect in dialects:
            self.register(dialect)

    @classmethod
    def default(cls) -> "DialectCatalog":
        return cls(
            [
                SQLiteDialect(),
                MySQLDialect(),
                MariaDBDialect(),
                PostgresDialect(),
                SQLServerDialect(),
                OracleDialect(),
                DB2Dialect(),
            ]
        )

    def register(self, dialect: Dialect) -> None:
        for key in (dialect.name, *dialect.aliases):
            self._by_name[key.lower()] = dialect

    def get(self, name: Optional[str]) -> Dialect:
        key = (name or "").strip().lower()
        dialect = self._by_name.get(key)
        if dialect is None:
            logger.warning(
                "Unknown database driver %r; falling back to the %s dialect",
                name,
                self.fallback.name,
            )
            return self.fallback
        return dialect

    def __contains__(self, name: str) -> bool:
        return (name or "").lower() in self._by_name

    def names(self) -> List[str]:
        """Canonical dialect names, without aliases."""
        seen: List[str] = []
        for dialect in self._by_name.values():
            if dialect.name not in seen:
                seen.append(dialect.name)
        return sorted(seen)


__all__ = ["DialectCatalog"]
