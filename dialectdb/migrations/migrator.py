"""
Migration runner.

Lifecycle:

    1. ensure the migrations table exists (idempotent)
    2. list discoverable units in sort-key order
    3. pending = discovered - applied, order preserved
    4. run(): apply pending units; all of them share batch = last + 1
    5. rollback(): revert the highest batch, most recent unit first,
       deleting each record after its down() succeeds
    6. reset(): rollback until no records remain

Failure semantics:
    By default units are not wrapped in a transaction. If ``up()`` raises
    mid-batch, the units applied before it in the same run stay recorded and
    a MigrationError is raised.

    With ``transactional=True`` and a dialect that supports transactional
    DDL, the whole batch runs inside one transaction and a failure leaves
    nothing recorded. On other dialects the flag is ignored with a warning.
"""

from __future__ import annotations

from contextlib import contextmanager
import logging
import time
from typing import TYPE_CHECKING, Any, Dict, Iterator, List, Optional

from ..exceptions import MigrationError
from .loader import MigrationLoader
from .repository import MigrationRepository

if TYPE_CHECKING:
    from ..db.connection import Connection

logger = logging.getLogger(__name__)


class Migrator:
    """
    Parameters
    ----------
    connection:
        Connection to migrate.
    loader:
        Source of migration units.
    repository:
        Bookkeeping table access; defaults to the ``migrations`` table.
    transactional:
        Wrap each batch in one transaction where the dialect allows it.
    """

    def __init__(
        self,
        connection: "Connection",
        loader: MigrationLoader,
        *,
        repository: Optional[MigrationRepository] = None,
        transactional: bool = False,
    ):
        self.connection = connection
        self.loader = loader
        self.repository = repository or MigrationRepository(connection)
        self.transactional = transactional

    # ------------------------------------------------------------------
    # Bookkeeping
    # ------------------------------------------------------------------

    def ensure_repository(self) -> None:
        self.repository.create_repository()

    def pending(self) -> List[str]:
        self.ensure_repository()
        ran = set(self.repository.get_ran())
        return [name for name in self.loader.names() if name not in ran]

    def status(self) -> List[Dict[str, Any]]:
        """One entry per known unit: name, whether it ran, and its batch."""
        self.ensure_repository()
        batches = {r["migration"]: int(r["batch"]) for r in self.repository.get_records()}
        names = self.loader.names()
        # recorded units whose files are gone still show up
        names += [n for n in batches if n not in names]
        return [
            {"migration": name, "ran": name in batches, "batch": batches.get(name)}
            for name in names
        ]

    # ------------------------------------------------------------------
    # Transactions
    # ------------------------------------------------------------------

    @contextmanager
    def _batch(self) -> Iterator[None]:
        if not self.transactional:
            yield
            return
        if not self.connection.supports_feature("transactional_ddl"):
            logger.warning(
                "Dialect %s has no transactional DDL; running batch without a transaction",
                self.connection.dialect.name,
            )
            yield
            return
        with self.connection.transaction():
            yield

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    def _invoke(self, name: str, operation: str) -> None:
        cls = self.loader.resolve(name)
        migration = cls(self.connection, self.connection.schema())
        try:
            getattr(migration, operation)()
        except MigrationError:
            raise
        except Exception as exc:
            raise MigrationError(
                f"Migration {name} failed during {operation}(): {exc}",
                migration=name,
                operation=operation,
                native=exc,
            ) from exc

    def run(self, steps: Optional[int] = None) -> List[str]:
        """
        Apply pending units.

        Parameters
        ----------
        steps:
            Apply at most this many units. All pending when omitted.

        Returns
        -------
        List[str]
            Names applied, in order. Empty when nothing was pending.
        """
        pending = self.pending()
        if steps is not None:
            pending = pending[: max(steps, 0)]
        if not pending:
            logger.info("Nothing to migrate")
            return []

        batch = self.repository.get_next_batch_number()
        applied: List[str] = []

        with self._batch():
            for name in pending:
                logger.info("Migrating: %s", name)
                start = time.perf_counter()
                self._invoke(name, "up")
                self.repository.log(name, batch)
                applied.append(name)
                logger.info("Migrated: %s (%.2f seconds)", name, time.perf_counter() - start)

        return applied

    def rollback(self, steps: int = 1) -> List[str]:
        """
        Revert the last ``steps`` batches.

        Returns
        -------
        List[str]
            Names reverted, in the order their down() ran.
        """
        self.ensure_repository()
        reverted: List[str] = []

        for _ in range(max(steps, 0)):
            names = self.repository.get_last()
            if not names:
                break
            with self._batch():
                for name in names:
                    logger.info("Rolling back: %s", name)
                    start = time.perf_counter()
                    self._invoke(name, "down")
                    self.repository.delete(name)
                    reverted.append(name)
                    logger.info("Rolled back: %s (%.2f seconds)", name, time.perf_counter() - start)

        if not reverted:
            logger.info("Nothing to rollback")
        return reverted

    def reset(self) -> List[str]:
        """Revert every applied unit, batch by batch."""
        self.ensure_repository()
        reverted: List[str] = []
        while self.repository.get_ran():
            step = self.rollback(1)
            if not step:
                break
            reverted.extend(step)
        return reverted

    def refresh(self) -> List[str]:
        """Reset, then apply everything again in a single batch."""
        self.reset()
        return self.run()


__all__ = ["Migrator"]
