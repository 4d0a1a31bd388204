"""
Dialect-aware DDL generator.

SchemaBuilder renders CREATE / ALTER / DROP TABLE statements through the
connection's Dialect and executes them.

Idempotency:
    - Dialects with IF NOT EXISTS use it.
    - Elsewhere the native "already exists" error is recognized by the
      dialect and downgraded to success; any other error is a SchemaError.

Companion statements:
    Auto-increment emulation (Oracle sequence + trigger) and stand-alone
    CREATE INDEX statements run after the table DDL. They are skipped when
    the table already existed. If one fails after the table was created,
    the companions that did run are reverted where the dialect knows how
    and a PartialSchemaError is raised.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Callable, List, Sequence, Tuple

from ..exceptions import PartialSchemaError, QueryError, SchemaError
from .blueprint import Blueprint
from .column import ColumnSpec, IndexSpec

if TYPE_CHECKING:
    from ..db.connection import Connection

logger = logging.getLogger(__name__)


class SchemaBuilder:
    """
    Parameters
    ----------
    connection:
        Open Connection; its dialect decides every piece of syntax.
    """

    def __init__(self, connection: "Connection"):
        self.connection = connection
        self.dialect = connection.dialect

    # ------------------------------------------------------------------
    # Callback API
    # ------------------------------------------------------------------

    def create(self, table: str, callback: Callable[[Blueprint], None]) -> None:
        """Create ``table`` from the declarations made by ``callback``."""
        blueprint = Blueprint(table)
        callback(blueprint)
        self.create_table(table, blueprint.columns, blueprint.indexes)

    def table(self, table: str, callback: Callable[[Blueprint], None]) -> None:
        """Add the columns and indexes declared by ``callback`` to ``table``."""
        blueprint = Blueprint(table)
        callback(blueprint)
        self.alter_table(table, blueprint.columns, blueprint.indexes)

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------

    def compile_create(
        self,
        table: str,
        columns: Sequence[ColumnSpec],
        indexes: Sequence[IndexSpec] = (),
    ) -> Tuple[str, List[str]]:
        """
        Render the CREATE TABLE statement and its companion statements.

        Returns
        -------
        (create_sql, companions)
        """
        if not columns:
            raise SchemaError(f"Table {table!r} needs at least one column", table=table)

        primary = [c for c in columns if c.primary_key]
        composite = len(primary) > 1

        elements: List[str] = []
        companions: List[str] = []

        for column in columns:
            fragment, extra = self.dialect.column_definition(table, column, inline_primary=not composite)
            elements.append(fragment)
            companions.extend(extra)

        if composite:
            elements.append(f"PRIMARY KEY ({self.dialect.column_list([c.name for c in primary])})")

        for index in indexes:
            constraint = self.dialect.table_constraint(table, index)
            if constraint is not None:
                elements.append(constraint)
            else:
                companions.append(self.dialect.create_index_sql(table, index))

        return self.dialect.create_table_sql(table, elements), companions

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    def _run(self, table: str, sql: str) -> bool:
        """
        Execute one DDL statement.

        Returns False when the object already existed, True otherwise.
        """
        try:
            self.connection.execute(sql)
        except QueryError as exc:
            if self.dialect.is_already_exists_error(exc):
                logger.info("Object already exists on %s, skipping: %s", table, exc.native or exc)
                return False
            raise SchemaError(
                f"DDL failed for table {table!r}: {exc.native or exc}",
                table=table,
                sql=sql,
                native=exc.native,
            ) from exc
        return True

    def _run_companions(self, table: str, primary_sql: str, companions: Sequence[str]) -> None:
        done: List[str] = []
        for sql in companions:
            try:
                self._run(table, sql)
            except SchemaError as exc:
                self._undo(table, done)
                raise PartialSchemaError(
                    f"Table {table!r} was created but a follow-up statement failed: {exc.native or exc}",
                    table=table,
                    completed=[primary_sql] + [s for s in done if self.dialect.undo_statement(s) is None],
                    failed_statement=sql,
                    native=exc.native,
                ) from exc
            done.append(sql)

    def _undo(self, table: str, done: Sequence[str]) -> None:
        for sql in reversed(done):
            undo = self.dialect.undo_statement(sql)
            if undo is None:
                continue
            try:
                self.connection.execute(undo)
            except QueryError as exc:
                logger.warning("Could not revert %r on %s: %s", sql, table, exc)

    def create_table(
        self,
        table: str,
        columns: Sequence[ColumnSpec],
        indexes: Sequence[IndexSpec] = (),
    ) -> None:
        """
        Create a table idempotently.

        Raises
        ------
        SchemaError
            The CREATE TABLE statement failed for another reason than the
            table already existing.
        PartialSchemaError
            The table was created but a companion statement failed.
        """
        create_sql, companions = self.compile_create(table, columns, indexes)

        logger.debug("Creating table %s", table)
        if not self._run(table, create_sql):
            return

        self._run_companions(table, create_sql, companions)

    def alter_table(
        self,
        table: str,
        columns: Sequence[ColumnSpec],
        indexes: Sequence[IndexSpec] = (),
    ) -> None:
        """Add columns and indexes to an existing table; existing ones are skipped."""
        for column in columns:
            fragment, extra = self.dialect.column_definition(table, column)
            sql = self.dialect.add_column_sql(table, fragment)
            if self._run(table, sql):
                self._run_companions(table, sql, extra)

        for index in indexes:
            self._run(table, self.dialect.create_index_sql(table, index))

    def drop(self, table: str) -> None:
        """Drop ``table`` together with any objects created for it."""
        for sql in self.dialect.drop_table_sql(table):
            try:
                self.connection.execute(sql)
            except QueryError as exc:
                raise SchemaError(
                    f"Could not drop table {table!r}: {exc.native or exc}",
                    table=table,
                    sql=sql,
                    native=exc.native,
                ) from exc

    def drop_table(self, table: str) -> None:
        self.drop(table)

    def drop_if_exists(self, table: str) -> bool:
        """
        Drop ``table`` if present.

        Returns False when the dialect had to check first and found nothing.
        """
        if not self.dialect.supports("drop_if_exists"):
            if not self.has_table(table):
                return False
            self.drop(table)
            return True

        for sql in self.dialect.drop_table_sql(table, if_exists=True):
            try:
                self.connection.execute(sql)
            except QueryError as exc:
                raise SchemaError(
                    f"Could not drop table {table!r}: {exc.native or exc}",
                    table=table,
                    sql=sql,
                    native=exc.native,
                ) from exc
        return True

    def has_table(self, table: str) -> bool:
        sql, params = self.dialect.has_table_sql(table)
        return self.connection.select_one(sql, params) is not None


__all__ = ["SchemaBuilder"]
