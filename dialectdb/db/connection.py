"""
Connection wrapper for dialectdb.

This file defines:
- Connection: owns exactly one raw DB-API handle plus the Dialect it was
  opened with.

Responsibilities:
    - Open the handle: try each connect target the dialect offers, verify
      it with a trivial query, run the session statements once.
    - Provide a stable API for SQL execution (execute, select, insert, ...)
    - Rewrite ``?`` placeholders into the driver's paramstyle
    - Normalize rows across drivers (return Python dicts)
    - Wrap every driver exception in QueryError / ConnectionError

Transaction model:
    - Outside an explicit transaction every statement is committed right
      away (and rolled back if it fails).
    - ``begin_transaction()`` suspends that until ``commit()``/``rollback()``.
    - A Connection is not thread-safe; use one per caller.
"""

from __future__ import annotations

from contextlib import contextmanager
from decimal import Decimal
import logging
from typing import TYPE_CHECKING, Any, Dict, Iterator, List, Optional, Sequence

from ..config import DatabaseConfig
from ..exceptions import ConnectionError, QueryError
from . import helpers

if TYPE_CHECKING:
    from ..dialects.base import Dialect
    from ..query.builder import QueryBuilder
    from ..schema.builder import SchemaBuilder

logger = logging.getLogger(__name__)


def _close_quietly(raw: Any) -> None:
    try:
        raw.close()
    except Exception:
        # the handle is being discarded anyway
        pass


def _coerce_id(value: Any) -> Any:
    # NUMBER / DECIMAL ids come back as Decimal
    if isinstance(value, Decimal) and value == value.to_integral_value():
        return int(value)
    return value


class Connection:
    """
    One open database connection.

    Parameters
    ----------
    dialect:
        The Dialect this connection speaks.
    raw:
        An already opened DB-API connection.
    config:
        The configuration it was opened from (kept for diagnostics).
    param_style:
        Placeholder style of the driver; defaults to the dialect's.
    """

    def __init__(
        self,
        dialect: "Dialect",
        raw: Any,
        config: Optional[DatabaseConfig] = None,
        *,
        param_style: Optional[str] = None,
    ):
        self.dialect = dialect
        self.raw = raw
        self.config = config or DatabaseConfig(driver=dialect.name)
        self.param_style = param_style or dialect.param_style
        self.in_transaction = False
        self.closed = False

    # ------------------------------------------------------------------
    # Opening
    # ------------------------------------------------------------------

    @classmethod
    def open(
        cls,
        dialect: "Dialect",
        config: DatabaseConfig,
        driver: Any = None,
    ) -> "Connection":
        """
        Open a connection, trying every target the dialect proposes.

        Parameters
        ----------
        dialect:
            Dialect resolved from ``config.driver``.
        config:
            Connection settings.
        driver:
            DB-API module to use. Loaded through the dialect when omitted.

        Returns
        -------
        Connection

        Raises
        ------
        ConnectionError
            When the driver cannot be imported, or when every target failed.
            The error lists each attempted DSN with its failure.
        """
        if driver is None:
            try:
                driver = dialect.load_driver(config)
            except ImportError as exc:
                raise ConnectionError(
                    f"Driver for dialect {dialect.name!r} is not available: {exc}",
                    dialect=dialect.name,
                    native=exc,
                ) from exc

        attempts: List[str] = []
        errors: List[str] = []
        last_error: Optional[BaseException] = None

        for target in dialect.connect_targets(config):
            attempts.append(target.label)
            logger.debug("Connecting to %s", target.label)

            try:
                raw = dialect.connect(driver, target)
            except Exception as exc:
                logger.warning("Connection attempt %s failed: %s", target.label, exc)
                errors.append(str(exc))
                last_error = exc
                continue

            try:
                dialect.configure_handle(raw)
                cur = raw.cursor()
                cur.execute(dialect.verify_sql)
                cur.fetchall()
                cur.close()
            except Exception as exc:
                logger.warning("Verification of %s failed: %s", target.label, exc)
                errors.append(str(exc))
                last_error = exc
                _close_quietly(raw)
                continue

            conn = cls(dialect, raw, config, param_style=dialect.param_style_for(driver))
            try:
                conn.initialize()
            except QueryError as exc:
                _close_quietly(raw)
                raise ConnectionError(
                    f"Session initialization failed for {target.label}",
                    dialect=dialect.name,
                    attempts=[target.label],
                    errors=[str(exc)],
                    native=exc.native,
                ) from exc

            logger.info("Connected to %s", target.label)
            return conn

        raise ConnectionError(
            f"Could not connect to {dialect.name} database",
            dialect=dialect.name,
            attempts=attempts,
            errors=errors,
            native=last_error,
        ) from last_error

    def initialize(self) -> None:
        """Run the dialect's post-connect session statements (once)."""
        for sql in self.dialect.session_statements(self.config):
            self.execute(sql)

    # ------------------------------------------------------------------
    # Low-level execution
    # ------------------------------------------------------------------

    def cursor_for(self, sql: str, params: Optional[Sequence[Any]] = None) -> Any:
        """
        Execute ``sql`` and return the live cursor.

        ``sql`` uses ``?`` placeholders; they are rewritten for the driver
        here. The caller owns the returned cursor.
        """
        bindings = list(params) if params else []
        native_sql = helpers.translate_placeholders(sql, self.param_style, has_params=bool(bindings))

        logger.debug("SQL [%s]: %s | bindings=%r", self.dialect.name, sql, bindings)

        cursor = self.raw.cursor()
        try:
            helpers.safe_execute(cursor, native_sql, bindings or None)
        except Exception as exc:
            _close_quietly(cursor)
            if not self.in_transaction:
                self._rollback_quietly()
            raise QueryError(
                str(exc),
                sql=sql,
                bindings=bindings,
                dialect=self.dialect.name,
                native=exc,
            ) from exc
        return cursor

    def _finish(self) -> None:
        if self.in_transaction:
            return
        try:
            self.raw.commit()
        except Exception as exc:
            raise QueryError(f"Commit failed: {exc}", dialect=self.dialect.name, native=exc) from exc

    def _rollback_quietly(self) -> None:
        try:
            self.raw.rollback()
        except Exception:
            # nothing to roll back on autocommit handles
            pass

    # ------------------------------------------------------------------
    # SQL execution wrappers
    # ------------------------------------------------------------------

    def execute(self, sql: str, params: Optional[Sequence[Any]] = None) -> bool:
        """Execute a statement that returns no rows."""
        cursor = self.cursor_for(sql, params)
        _close_quietly(cursor)
        self._finish()
        return True

    def statement(self, sql: str, params: Optional[Sequence[Any]] = None) -> int:
        """Execute a statement and return the affected row count."""
        cursor = self.cursor_for(sql, params)
        count = getattr(cursor, "rowcount", -1)
        _close_quietly(cursor)
        self._finish()
        return count if count is not None else -1

    def select(self, sql: str, params: Optional[Sequence[Any]] = None) -> List[Dict[str, Any]]:
        """Execute a SELECT statement and return a list of dict rows."""
        cursor = self.cursor_for(sql, params)
        try:
            rows = cursor.fetchall()
            columns = helpers.column_names(cursor, self.dialect.normalize_column_name)
        except Exception as exc:
            raise QueryError(
                str(exc),
                sql=sql,
                bindings=list(params or []),
                dialect=self.dialect.name,
                native=exc,
            ) from exc
        finally:
            _close_quietly(cursor)
        self._finish()
        return [helpers.row_to_dict(r, columns) for r in rows]

    def select_one(self, sql: str, params: Optional[Sequence[Any]] = None) -> Optional[Dict[str, Any]]:
        """Execute a SELECT statement and return the first dict row or None."""
        rows = self.select(sql, params)
        return rows[0] if rows else None

    def insert(self, table: str, values: Dict[str, Any], key: str = "id") -> Optional[Any]:
        """
        Insert one row and return the generated id of column ``key``.

        Returns None when the id cannot be determined.
        """
        return self.table(table).insert_get_id(values, key=key)

    def insert_get_id(
        self,
        sql: str,
        params: Sequence[Any],
        table: str,
        key: str = "id",
    ) -> Optional[Any]:
        """
        Execute a rendered INSERT and fetch the id it generated.

        Dialects with a RETURNING clause get the id from the INSERT itself,
        so ``key`` must be a column of ``table`` there.
        """
        returning = self.dialect.returning_clause(key)
        if returning is not None:
            cursor = self.cursor_for(sql + returning, params)
            try:
                rows = cursor.fetchall()
            except Exception as exc:
                raise QueryError(
                    str(exc),
                    sql=sql + returning,
                    bindings=list(params),
                    dialect=self.dialect.name,
                    native=exc,
                ) from exc
            finally:
                _close_quietly(cursor)
            self._finish()
            return _coerce_id(rows[0][0]) if rows else None

        cursor = self.cursor_for(sql, params)
        last_row_id = getattr(cursor, "lastrowid", None)
        _close_quietly(cursor)
        self._finish()

        id_sql = self.dialect.last_insert_id_sql(table, key)
        if id_sql is None:
            return last_row_id

        try:
            row = self.select_one(id_sql)
        except QueryError as exc:
            logger.debug("Could not read last insert id for %s: %s", table, exc)
            return None
        if not row:
            return None

        return _coerce_id(next(iter(row.values())))

    # ------------------------------------------------------------------
    # Transactions
    # ------------------------------------------------------------------

    def begin_transaction(self) -> bool:
        """
        Start an explicit transaction.

        Raises QueryError if one is already open on this connection.
        """
        if self.in_transaction:
            raise QueryError("A transaction is already active on this connection", dialect=self.dialect.name)
        if self.dialect.begin_sql:
            cursor = self.cursor_for(self.dialect.begin_sql)
            _close_quietly(cursor)
        self.in_transaction = True
        return True

    def commit(self) -> bool:
        try:
            self.raw.commit()
        except Exception as exc:
            raise QueryError(f"Commit failed: {exc}", dialect=self.dialect.name, native=exc) from exc
        finally:
            self.in_transaction = False
        return True

    def rollback(self) -> bool:
        try:
            self.raw.rollback()
        except Exception as exc:
            raise QueryError(f"Rollback failed: {exc}", dialect=self.dialect.name, native=exc) from exc
        finally:
            self.in_transaction = False
        return True

    @contextmanager
    def transaction(self) -> Iterator["Connection"]:
        """
        Run a block inside a transaction:

            with conn.transaction():
                conn.execute(...)

        Commits on success, rolls back and re-raises on error.
        """
        self.begin_transaction()
        try:
            yield self
        except BaseException:
            self.rollback()
            raise
        self.commit()

    # ------------------------------------------------------------------
    # Features / builders
    # ------------------------------------------------------------------

    @property
    def driver_name(self) -> str:
        return self.dialect.name

    def supports_feature(self, name: str) -> bool:
        return self.dialect.supports(name)

    def quote(self, identifier: str) -> str:
        return self.dialect.quote_ident(identifier)

    def table(self, name: str) -> "QueryBuilder":
        """Start a fluent query against ``name``."""
        from ..query.builder import QueryBuilder

        return QueryBuilder(self).table(name)

    def schema(self) -> "SchemaBuilder":
        from ..schema.builder import SchemaBuilder

        return SchemaBuilder(self)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def close(self) -> None:
        """Close the underlying handle. Safe to call more than once."""
        if self.closed:
            return
        self.closed = True
        _close_quietly(self.raw)

    def __enter__(self) -> "Connection":
        return self

    def __exit__(self, exc_type, exc, tb):
        if exc_type is not None and self.in_transaction:
            self._rollback_quietly()
            self.in_transaction = False
        self.close()
        return False

    def __repr__(self) -> str:
        return f"<Connection {self.dialect.name} closed={self.closed}>"


__all__ = ["Connection"]
