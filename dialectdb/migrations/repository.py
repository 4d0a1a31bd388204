"""
Persistence of applied migrations.

Rows of the ``migrations`` table:

    id         surrogate key, auto-increment
    migration  unit name, unique per applied unit
    batch      run() invocation that applied it

The table is created lazily and idempotently through the SchemaBuilder, so
it gets the dialect's auto-increment strategy like any other table.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, List

from ..expression import raw
from ..schema.blueprint import Blueprint

if TYPE_CHECKING:
    from ..db.connection import Connection


DEFAULT_TABLE = "migrations"


class MigrationRepository:
    def __init__(self, connection: "Connection", table: str = DEFAULT_TABLE):
        self.connection = connection
        self.table = table

    def _query(self):
        return self.connection.table(self.table)

    # ------------------------------------------------------------------
    # Table lifecycle
    # ------------------------------------------------------------------

    def create_repository(self) -> None:
        def columns(table: Blueprint) -> None:
            table.id()
            table.string("migration", 255).unique()
            table.integer("batch")

        self.connection.schema().create(self.table, columns)

    def repository_exists(self) -> bool:
        return self.connection.schema().has_table(self.table)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_ran(self) -> List[str]:
        """Names of every applied unit, in application order."""
        rows = self._query().select("migration").order_by("id").get()
        return [row["migration"] for row in rows]

    def get_records(self) -> List[Dict[str, Any]]:
        return self._query().select("id", "migration", "batch").order_by("id").get()

    def get_last_batch_number(self) -> int:
        row = self._query().select(raw("MAX(batch) AS batch")).first()
        if not row or row.get("batch") is None:
            return 0
        return int(row["batch"])

    def get_next_batch_number(self) -> int:
        return self.get_last_batch_number() + 1

    def get_last(self) -> List[str]:
        """Names in the highest batch, most recently applied first."""
        batch = self.get_last_batch_number()
        if batch == 0:
            return []
        rows = (
            self._query()
            .select("migration")
            .where("batch", "=", batch)
            .order_by("id", "desc")
            .get()
        )
        return [row["migration"] for row in rows]

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def log(self, name: str, batch: int) -> None:
        self._query().insert({"migration": name, "batch": batch})

    def delete(self, name: str) -> int:
        return self._query().where("migration", "=", name).delete()


__all__ = ["MigrationRepository", "DEFAULT_TABLE"]
