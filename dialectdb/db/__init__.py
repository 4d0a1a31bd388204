"""
Low-level database access.

Public API:
    - Connection           (one raw DB-API handle + its Dialect)
    - helpers              (placeholder translation, row mapping)
"""

from . import helpers
from .connection import Connection

__all__ = ["Connection", "helpers"]
