"""
Error taxonomy for dialectdb.

Every native driver exception that crosses a public boundary is wrapped in
one of these classes with added context (dialect, operation, SQL text). The
original exception is always kept as ``__cause__`` and as ``.native``.

    DatabaseError
      ├── ConnectionError     DSN / auth / network failure
      ├── QueryError          malformed SQL, constraint violation
      ├── SchemaError         DDL failure other than "already exists"
      │     └── PartialSchemaError
      └── MigrationError      missing unit, or up()/down() raised

Note that ``ConnectionError`` intentionally shadows the builtin of the same
name inside modules that import it from here.
"""

from __future__ import annotations

from typing import Any, List, Optional, Sequence


class DatabaseError(Exception):
    """Base class for every error raised by dialectdb."""

    def __init__(self, message: str, *, native: Optional[BaseException] = None):
        super().__init__(message)
        self.native = native


class ConnectionError(DatabaseError):
    """
    Raised when no connection target could be opened.

    Attributes
    ----------
    dialect:
        Name of the dialect that was being opened.
    attempts:
        Printable DSN labels of every target that was tried, in order.
    errors:
        One message per failed attempt, aligned with ``attempts``.
    """

    def __init__(
        self,
        message: str,
        *,
        dialect: str,
        attempts: Sequence[str] = (),
        errors: Sequence[str] = (),
        native: Optional[BaseException] = None,
    ):
        lines = [message]
        for label, err in zip(attempts, errors):
            lines.append(f"  - {label}: {err}")
        super().__init__("\n".join(lines), native=native)
        self.dialect = dialect
        self.attempts: List[str] = list(attempts)
        self.errors: List[str] = list(errors)


class QueryError(DatabaseError):
    """
    Raised when a statement cannot be prepared or executed.

    Carries the rendered SQL and bindings for diagnostics.
    """

    def __init__(
        self,
        message: str,
        *,
        sql: Optional[str] = None,
        bindings: Sequence[Any] = (),
        dialect: Optional[str] = None,
        native: Optional[BaseException] = None,
    ):
        detail = message
        if sql is not None:
            detail = f"{message} | Dialect: {dialect} | SQL: {sql!r} | Bindings: {list(bindings)!r}"
        super().__init__(detail, native=native)
        self.sql = sql
        self.bindings = list(bindings)
        self.dialect = dialect


class SchemaError(DatabaseError):
    """Raised when a DDL statement fails for a reason other than "already exists"."""

    def __init__(
        self,
        message: str,
        *,
        table: Optional[str] = None,
        sql: Optional[str] = None,
        native: Optional[BaseException] = None,
    ):
        super().__init__(message, native=native)
        self.table = table
        self.sql = sql


class PartialSchemaError(SchemaError):
    """
    The table DDL succeeded but a companion statement (index, Oracle
    sequence/trigger) failed afterwards.

    Attributes
    ----------
    completed:
        Statements that were executed successfully, in order.
    failed_statement:
        The statement that raised.
    """

    def __init__(
        self,
        message: str,
        *,
        table: str,
        completed: Sequence[str],
        failed_statement: str,
        native: Optional[BaseException] = None,
    ):
        super().__init__(message, table=table, sql=failed_statement, native=native)
        self.completed: List[str] = list(completed)
        self.failed_statement = failed_statement


class MigrationError(DatabaseError):
    """Raised when a migration unit cannot be found, loaded, applied or reverted."""

    def __init__(
        self,
        message: str,
        *,
        migration: Optional[str] = None,
        operation: Optional[str] = None,
        native: Optional[BaseException] = None,
    ):
        super().__init__(message, native=native)
        self.migration = migration
        self.operation = operation


__all__ = [
    "DatabaseError",
    "ConnectionError",
    "QueryError",
    "SchemaError",
    "PartialSchemaError",
    "MigrationError",
]
