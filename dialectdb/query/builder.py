"""
Fluent query builder.

A QueryBuilder assembles one SELECT / INSERT / UPDATE / DELETE at a time
against a Connection:

    rows = (
        conn.table("tasks")
            .where("status", "=", "pending")
            .where("priority", ">", 0)
            .order_by("created_at", "desc")
            .get()
    )

Rendering:
    - SQL always uses ``?`` placeholders; the Connection rewrites them for
      the driver.
    - Bindings are stored per clause phase (where, having) and flattened in
      render order, so the nth ``?`` always binds the nth value.
    - For UPDATE the SET values precede the WHERE values.
    - date/datetime values are formatted at bind time according to the
      destination column: date-only columns (named ``date`` or ``*_date``,
      or declared with ``cast(column, "date")``) get ``YYYY-MM-DD``; all
      others get ``YYYY-MM-DD HH:MM:SS``.

Reuse:
    ``table()`` fully resets the builder. Terminal calls (get, first,
    update, ...) leave the state untouched so a query can be run again.
"""

from __future__ import annotations

import copy
from datetime import date, datetime, time
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Sequence, Tuple, Union

from ..exceptions import QueryError
from ..expression import Expression

if TYPE_CHECKING:
    from ..db.connection import Connection
    from ..dialects.base import Dialect


OPERATORS = (
    "=", "<", ">", "<=", ">=", "<>", "!=",
    "like", "not like", "ilike",
)

BOOLEANS = ("and", "or")

DIRECTIONS = ("asc", "desc")

DATE_FORMAT = "%Y-%m-%d"
DATETIME_FORMAT = "%Y-%m-%d %H:%M:%S"

CAST_TYPES = ("date", "datetime")

_MISSING = object()

Column = Union[str, Expression]


class QueryBuilder:
    """
    Builds and runs a single statement.

    Parameters
    ----------
    connection:
        Connection used by the terminal calls. May be None when the builder
        is only used to render SQL.
    dialect:
        Dialect used for LIMIT/OFFSET syntax. Defaults to the connection's.
    """

    def __init__(self, connection: Optional["Connection"] = None, dialect: Optional["Dialect"] = None):
        if dialect is None and connection is not None:
            dialect = connection.dialect
        self.connection = connection
        self.dialect = dialect
        self.reset()

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    def reset(self) -> "QueryBuilder":
        """Forget every clause, binding and cast."""
        self.from_table: Optional[str] = None
        self.columns: List[Column] = ["*"]
        self.is_distinct = False
        self.joins: List[Tuple[str, str, str, str, str]] = []
        self.wheres: List[Dict[str, Any]] = []
        self.groups: List[str] = []
        self.havings: List[Dict[str, Any]] = []
        self.orders: List[Tuple[Column, str]] = []
        self.limit_value: Optional[int] = None
        self.offset_value: Optional[int] = None
        self.casts: Dict[str, str] = {}
        self.bindings: Dict[str, List[Tuple[Optional[str], Any]]] = {"where": [], "having": []}
        return self

    def clone(self) -> "QueryBuilder":
        other = copy.copy(self)
        other.columns = list(self.columns)
        other.joins = list(self.joins)
        other.wheres = list(self.wheres)
        other.groups = list(self.groups)
        other.havings = list(self.havings)
        other.orders = list(self.orders)
        other.casts = dict(self.casts)
        other.bindings = {phase: list(values) for phase, values in self.bindings.items()}
        return other

    # ------------------------------------------------------------------
    # Fluent clauses
    # ------------------------------------------------------------------

    def table(self, name: str) -> "QueryBuilder":
        """Target ``name``. Resets any previous state of this builder."""
        self.reset()
        self.from_table = name
        return self

    def select(self, *columns: Column) -> "QueryBuilder":
        flat: List[Column] = []
        for col in columns:
            if isinstance(col, (list, tuple)):
                flat.extend(col)
            else:
                flat.append(col)
        self.columns = flat or ["*"]
        return self

    def distinct(self) -> "QueryBuilder":
        self.is_distinct = True
        return self

    def cast(self, column: str, semantic_type: str) -> "QueryBuilder":
        """Declare ``column`` as "date" or "datetime" for bind-time formatting."""
        if semantic_type not in CAST_TYPES:
            raise ValueError(f"Unsupported cast type {semantic_type!r}; expected one of {CAST_TYPES}")
        self.casts[self._bare(column)] = semantic_type
        return self

    def join(self, table: str, first: str, operator: str, second: str, kind: str = "inner") -> "QueryBuilder":
        self._check_operator(operator)
        self.joins.append((kind.upper(), table, first, operator, second))
        return self

    def left_join(self, table: str, first: str, operator: str, second: str) -> "QueryBuilder":
        return self.join(table, first, operator, second, kind="left")

    def where(self, column: str, operator: Any = _MISSING, value: Any = _MISSING, boolean: str = "and") -> "QueryBuilder":
        """
        Add a ``column operator ?`` condition.

        ``where(col, value)`` is shorthand for ``where(col, "=", value)``.
        Comparing with None renders IS NULL / IS NOT NULL.
        """
        if value is _MISSING:
            if operator is _MISSING:
                raise ValueError("where() needs a value")
            operator, value = "=", operator

        operator = self._check_operator(operator)
        boolean = self._check_boolean(boolean)

        if value is None and operator in ("=", "<>", "!="):
            return self._where_null(column, boolean, negate=operator != "=")

        self.wheres.append({"type": "basic", "column": column, "operator": operator, "boolean": boolean})
        self.bindings["where"].append((column, value))
        return self

    def or_where(self, column: str, operator: Any = _MISSING, value: Any = _MISSING) -> "QueryBuilder":
        return self.where(column, operator, value, boolean="or")

    def where_in(self, column: str, values: Sequence[Any], boolean: str = "and", negate: bool = False) -> "QueryBuilder":
        values = list(values)
        self.wheres.append({
            "type": "in",
            "column": column,
            "count": len(values),
            "negate": negate,
            "boolean": self._check_boolean(boolean),
        })
        self.bindings["where"].extend((column, v) for v in values)
        return self

    def where_not_in(self, column: str, values: Sequence[Any], boolean: str = "and") -> "QueryBuilder":
        return self.where_in(column, values, boolean=boolean, negate=True)

    def where_null(self, column: str, boolean: str = "and") -> "QueryBuilder":
        return self._where_null(column, self._check_boolean(boolean), negate=False)

    def where_not_null(self, column: str, boolean: str = "and") -> "QueryBuilder":
        return self._where_null(column, self._check_boolean(boolean), negate=True)

    def _where_null(self, column: str, boolean: str, negate: bool) -> "QueryBuilder":
        self.wheres.append({"type": "null", "column": column, "negate": negate, "boolean": boolean})
        return self

    def group_by(self, *columns: str) -> "QueryBuilder":
        self.groups.extend(columns)
        return self

    def having(self, column: str, operator: str, value: Any, boolean: str = "and") -> "QueryBuilder":
        self.havings.append({
            "column": column,
            "operator": self._check_operator(operator),
            "boolean": self._check_boolean(boolean),
        })
        self.bindings["having"].append((column, value))
        return self

    def order_by(self, column: Column, direction: str = "asc") -> "QueryBuilder":
        direction = direction.lower()
        if direction not in DIRECTIONS:
            raise ValueError(f"Order direction must be 'asc' or 'desc', got {direction!r}")
        self.orders.append((column, direction.upper()))
        return self

    def limit(self, value: int) -> "QueryBuilder":
        if value is None or int(value) < 0:
            raise ValueError("limit must be a non-negative integer")
        self.limit_value = int(value)
        return self

    def offset(self, value: int) -> "QueryBuilder":
        if value is None or int(value) < 0:
            raise ValueError("offset must be a non-negative integer")
        self.offset_value = int(value)
        return self

    # ------------------------------------------------------------------
    # Bindings
    # ------------------------------------------------------------------

    def _bare(self, column: str) -> str:
        return str(column).split(".")[-1].lower()

    def is_date_column(self, column: Optional[str]) -> bool:
        if not column:
            return False
        bare = self._bare(column)
        if bare in self.casts:
            return self.casts[bare] == "date"
        return bare == "date" or bare.endswith("_date")

    def prepare_value(self, column: Optional[str], value: Any) -> Any:
        """Format date/time values for ``column``; everything else passes through."""
        if isinstance(value, datetime):
            return value.strftime(DATE_FORMAT if self.is_date_column(column) else DATETIME_FORMAT)
        if isinstance(value, date):
            if self.is_date_column(column):
                return value.strftime(DATE_FORMAT)
            return datetime.combine(value, time()).strftime(DATETIME_FORMAT)
        return value

    def get_bindings(self) -> List[Any]:
        """Bindings of the SELECT statement, in placeholder order."""
        return [
            self.prepare_value(column, value)
            for phase in ("where", "having")
            for column, value in self.bindings[phase]
        ]

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------

    def _require_table(self) -> str:
        if not self.from_table:
            raise ValueError("No table set; call table() first")
        return self.from_table

    def _compile_wheres(self) -> str:
        parts: List[str] = []
        for clause in self.wheres:
            kind = clause["type"]
            column = clause["column"]
            if kind == "basic":
                sql = f"{column} {clause['operator'].upper()} ?"
            elif kind == "in":
                if clause["count"] == 0:
                    sql = "1 = 1" if clause["negate"] else "0 = 1"
                else:
                    marks = ", ".join("?" for _ in range(clause["count"]))
                    sql = f"{column} {'NOT IN' if clause['negate'] else 'IN'} ({marks})"
            else:
                sql = f"{column} IS {'NOT NULL' if clause['negate'] else 'NULL'}"
            parts.append(f"{clause['boolean'].upper()} {sql}")
        return self._strip_leading_boolean(" ".join(parts))

    def _compile_havings(self) -> str:
        parts = [
            f"{h['boolean'].upper()} {h['column']} {h['operator'].upper()} ?"
            for h in self.havings
        ]
        return self._strip_leading_boolean(" ".join(parts))

    @staticmethod
    def _strip_leading_boolean(sql: str) -> str:
        for prefix in ("AND ", "OR "):
            if sql.startswith(prefix):
                return sql[len(prefix):]
        return sql

    def _where_sql(self) -> str:
        return f" WHERE {self._compile_wheres()}" if self.wheres else ""

    def to_sql(self) -> str:
        """Render the SELECT statement."""
        table = self._require_table()
        cols = ", ".join(str(c) for c in self.columns)
        parts = ["SELECT DISTINCT" if self.is_distinct else "SELECT", cols, "FROM", table]

        for kind, join_table, first, operator, second in self.joins:
            parts.append(f"{kind} JOIN {join_table} ON {first} {operator} {second}")
        if self.wheres:
            parts.append("WHERE " + self._compile_wheres())
        if self.groups:
            parts.append("GROUP BY " + ", ".join(self.groups))
        if self.havings:
            parts.append("HAVING " + self._compile_havings())
        if self.orders:
            parts.append("ORDER BY " + ", ".join(f"{c} {d}" for c, d in self.orders))

        if self.limit_value is not None or self.offset_value is not None:
            if self.dialect is not None:
                parts.extend(
                    self.dialect.compile_limit(
                        self.limit_value,
                        self.offset_value,
                        has_order=bool(self.orders),
                        distinct=self.is_distinct,
                    )
                )
            else:
                if self.limit_value is not None:
                    parts.append(f"LIMIT {self.limit_value}")
                if self.offset_value is not None:
                    parts.append(f"OFFSET {self.offset_value}")

        return " ".join(parts)

    def compile_insert(self, values: Dict[str, Any]) -> Tuple[str, List[Any]]:
        table = self._require_table()
        if not values:
            raise ValueError("insert() needs at least one column")
        columns = list(values)
        marks = ", ".join("?" for _ in columns)
        sql = f"INSERT INTO {table} ({', '.join(columns)}) VALUES ({marks})"
        return sql, [self.prepare_value(c, values[c]) for c in columns]

    def compile_update(self, values: Dict[str, Any]) -> Tuple[str, List[Any]]:
        table = self._require_table()
        if not values:
            raise ValueError("update() needs at least one column")
        assignments = ", ".join(f"{c} = ?" for c in values)
        bindings = [self.prepare_value(c, v) for c, v in values.items()]
        bindings.extend(self.prepare_value(c, v) for c, v in self.bindings["where"])
        return f"UPDATE {table} SET {assignments}{self._where_sql()}", bindings

    def compile_delete(self) -> Tuple[str, List[Any]]:
        table = self._require_table()
        bindings = [self.prepare_value(c, v) for c, v in self.bindings["where"]]
        return f"DELETE FROM {table}{self._where_sql()}", bindings

    # ------------------------------------------------------------------
    # Terminal calls
    # ------------------------------------------------------------------

    def _conn(self) -> "Connection":
        if self.connection is None:
            raise QueryError("QueryBuilder has no connection to run against")
        return self.connection

    def get(self) -> List[Dict[str, Any]]:
        return self._conn().select(self.to_sql(), self.get_bindings())

    def first(self) -> Optional[Dict[str, Any]]:
        rows = self.clone().limit(1).get()
        return rows[0] if rows else None

    def pluck(self, column: str) -> List[Any]:
        key = self._bare(column)
        return [row.get(key) for row in self.clone().select(column).get()]

    def exists(self) -> bool:
        probe = self.clone()
        probe.columns = ["1"]
        probe.orders = []
        return bool(probe.limit(1).get())

    def count(self, column: str = "*") -> int:
        probe = self.clone()
        probe.columns = [f"COUNT({column}) AS aggregate"]
        probe.orders = []
        probe.limit_value = None
        probe.offset_value = None
        row = self._conn().select_one(probe.to_sql(), probe.get_bindings())
        return int(row["aggregate"]) if row else 0

    def insert(self, values: Union[Dict[str, Any], Sequence[Dict[str, Any]]]) -> bool:
        """Insert one row, or several rows one statement at a time."""
        rows = [values] if isinstance(values, dict) else list(values)
        conn = self._conn()
        for row in rows:
            sql, bindings = self.compile_insert(row)
            conn.execute(sql, bindings)
        return True

    def insert_get_id(self, values: Dict[str, Any], key: str = "id") -> Optional[Any]:
        sql, bindings = self.compile_insert(values)
        return self._conn().insert_get_id(sql, bindings, self._require_table(), key)

    def update(self, values: Dict[str, Any]) -> int:
        sql, bindings = self.compile_update(values)
        return self._conn().statement(sql, bindings)

    def delete(self) -> int:
        sql, bindings = self.compile_delete()
        return self._conn().statement(sql, bindings)

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    @staticmethod
    def _check_operator(operator: Any) -> str:
        op = str(operator).lower()
        if op not in OPERATORS:
            raise ValueError(f"Invalid operator {operator!r}")
        return op

    @staticmethod
    def _check_boolean(boolean: str) -> str:
        value = str(boolean).lower()
        if value not in BOOLEANS:
            raise ValueError(f"Invalid boolean connector {boolean!r}")
        return value

    def __repr__(self) -> str:
        return f"<QueryBuilder {self.from_table!r}>"


__all__ = ["QueryBuilder", "OPERATORS"]
