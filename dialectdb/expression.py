"""
Raw SQL fragments.

An Expression is rendered verbatim wherever a value would otherwise be
quoted or bound: column defaults (``CURRENT_TIMESTAMP``), selected columns
(``COUNT(*)``), etc.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Expression:
    sql: str

    def __str__(self) -> str:
        return self.sql


def raw(sql: str) -> Expression:
    """Shorthand for ``Expression(sql)``."""
    return Expression(sql)


__all__ = ["Expression", "raw"]
