"""
Shared DB helper utilities.

These wrappers ensure:
    - consistent placeholder handling across drivers
    - predictable row→dict mapping
    - structured error handling around cursor execution

Every statement in dialectdb is rendered with ``?`` placeholders. Drivers
disagree on paramstyle, so the Connection rewrites the text right before
execution with ``translate_placeholders``.
"""

from __future__ import annotations

from typing import Any, Callable, Dict, List, Optional, Sequence


# ----------------------------------------------------------------------
# Placeholder translation
# ----------------------------------------------------------------------

_QUOTES = ("'", '"', "`")


def translate_placeholders(sql: str, style: str, has_params: bool = True) -> str:
    """
    Rewrite ``?`` placeholders into the driver's paramstyle.

    Parameters
    ----------
    sql:
        Statement rendered with ``?`` placeholders.
    style:
        "qmark" (unchanged), "format" (``%s``) or "numeric" (``:1``, ``:2``).
    has_params:
        Format-style drivers only interpolate when parameters are given; in
        that case literal ``%`` signs must be doubled.

    Placeholders inside quoted strings or quoted identifiers are left alone.
    """
    if style == "qmark":
        return sql
    if style == "format" and not has_params:
        return sql

    out: List[str] = []
    quote: Optional[str] = None
    position = 0
    i = 0
    length = len(sql)

    while i < length:
        ch = sql[i]

        if quote is not None:
            out.append("%%" if (ch == "%" and style == "format") else ch)
            if ch == quote:
                # doubled quote stays inside the literal
                if i + 1 < length and sql[i + 1] == quote:
                    out.append(quote)
                    i += 2
                    continue
                quote = None
            i += 1
            continue

        if ch in _QUOTES:
            quote = ch
            out.append(ch)
        elif ch == "?":
            position += 1
            out.append("%s" if style == "format" else f":{position}")
        elif ch == "%" and style == "format":
            out.append("%%")
        else:
            out.append(ch)
        i += 1

    return "".join(out)


def count_placeholders(sql: str) -> int:
    """Count ``?`` placeholders outside quoted sections."""
    count = 0
    quote: Optional[str] = None
    i = 0
    while i < len(sql):
        ch = sql[i]
        if quote is not None:
            if ch == quote:
                if i + 1 < len(sql) and sql[i + 1] == quote:
                    i += 2
                    continue
                quote = None
        elif ch in _QUOTES:
            quote = ch
        elif ch == "?":
            count += 1
        i += 1
    return count


# ----------------------------------------------------------------------
# Literals
# ----------------------------------------------------------------------

def quote_literal(value: str, *, escape_backslash: bool = False) -> str:
    """Render a string as a single-quoted SQL literal."""
    text = str(value)
    if escape_backslash:
        text = text.replace("\\", "\\\\")
    return "'" + text.replace("'", "''") + "'"


# ----------------------------------------------------------------------
# Execution helpers
# ----------------------------------------------------------------------

def safe_execute(cursor: Any, query: str, params: Optional[Sequence[Any]] = None):
    """
    Execute a single SQL statement on an open cursor.

    ``params`` of None means "no parameters": the driver is called with the
    statement only, so format-style drivers do not interpolate ``%``.
    """
    if params is None:
        cursor.execute(query)
    else:
        cursor.execute(query, tuple(params))
    return cursor


# ----------------------------------------------------------------------
# Row mapping
# ----------------------------------------------------------------------

def column_names(cursor: Any, normalize: Optional[Callable[[str], str]] = None) -> List[str]:
    """Extract result column names from ``cursor.description``."""
    description = getattr(cursor, "description", None) or []
    names = [col[0] for col in description]
    if normalize is not None:
        names = [normalize(n) for n in names]
    return names


def row_to_dict(row: Any, columns: Sequence[str]) -> Dict[str, Any]:
    """
    Convert a driver row into a plain Python dict.

    Mapping-like rows (sqlite3.Row, RealDictRow, DictCursor rows) keep their
    own keys; tuple-like rows are zipped with ``columns``.
    """
    if row is None:
        return {}

    if hasattr(row, "keys"):
        return {k: row[k] for k in row.keys()}

    return dict(zip(columns, row))


__all__ = [
    "translate_placeholders",
    "count_placeholders",
    "quote_literal",
    "safe_execute",
    "column_names",
    "row_to_dict",
]
