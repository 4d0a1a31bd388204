from typing import Iterator
from unittest.mock import MagicMock

import pytest

from dialectdb.config import DatabaseConfig
from dialectdb.db.connection import Connection
from dialectdb.dialects import DialectCatalog


@pytest.fixture
def catalog() -> DialectCatalog:
    return DialectCatalog.default()


@pytest.fixture
def sqlite_config() -> DatabaseConfig:
    return DatabaseConfig(driver="sqlite", database=":memory:")


@pytest.fixture
def conn(catalog: DialectCatalog, sqlite_config: DatabaseConfig) -> Iterator[Connection]:
    """A real in-memory SQLite connection."""
    connection = Connection.open(catalog.get("sqlite"), sqlite_config)
    yield connection
    connection.close()


class FakeCursor:
    """DB-API cursor that records statements and returns canned rows."""

    def __init__(self, owner: "FakeRaw"):
        self.owner = owner
        self.description = None
        self.rowcount = 1
        self.lastrowid = None
        self._rows = []

    def execute(self, sql, params=None):
        self.owner.statements.append((sql, params))
        for marker, exc in self.owner.failures.items():
            if marker in sql:
                raise exc
        rows = self.owner.results.get(sql)
        if rows is not None:
            columns, self._rows = rows
            self.description = [(c,) for c in columns]
        else:
            self._rows = []
            self.description = None
        return self

    def fetchall(self):
        return list(self._rows)

    def close(self):
        pass


class FakeRaw:
    """DB-API connection double used for non-SQLite dialects."""

    def __init__(self):
        self.statements = []
        self.failures = {}
        self.results = {}
        self.commit = MagicMock()
        self.rollback = MagicMock()
        self.close = MagicMock()

    def cursor(self):
        return FakeCursor(self)

    @property
    def sql(self):
        return [s for s, _ in self.statements]


@pytest.fixture
def fake_raw() -> FakeRaw:
    return FakeRaw()


@pytest.fixture
def make_fake_conn(catalog: DialectCatalog, fake_raw: FakeRaw):
    """Build a Connection for any dialect on top of FakeRaw."""

    def _make(name: str) -> Connection:
        dialect = catalog.get(name)
        return Connection(dialect, fake_raw, DatabaseConfig(driver=name))

    return _make
