"""
Base class for migration units.

A migration module defines one subclass:

    from dialectdb.migrations import Migration

    class CreateUsersTable(Migration):
        def up(self):
            def columns(table):
                table.id()
                table.string("email").unique()
            self.schema.create("users", columns)

        def down(self):
            self.schema.drop_if_exists("users")

The unit's name (its file stem, e.g. ``2024_01_01_000001_create_users_table``)
is what gets recorded in the migrations table.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from ..db.connection import Connection
    from ..query.builder import QueryBuilder
    from ..schema.builder import SchemaBuilder


class Migration(ABC):
    """
    One reversible schema change.

    Parameters
    ----------
    connection:
        Connection the migration runs against.
    schema:
        SchemaBuilder bound to that connection; built on demand if omitted.
    """

    def __init__(self, connection: "Connection", schema: Optional["SchemaBuilder"] = None):
        self.connection = connection
        self.schema = schema if schema is not None else connection.schema()

    @abstractmethod
    def up(self) -> None:
        """Apply the change."""

    @abstractmethod
    def down(self) -> None:
        """Revert the change."""

    def table(self, name: str) -> "QueryBuilder":
        """Query builder for data fixes inside a migration."""
        return self.connection.table(name)


__all__ = ["Migration"]
