"""
Schema definition and DDL.

Public API:
    - SchemaBuilder                         (create / alter / drop tables)
    - Blueprint, ColumnDefinition           (schema-definition callbacks)
    - ColumnSpec, IndexSpec, TableSpec      (plain specifications)
"""

from .blueprint import Blueprint, ColumnDefinition
from .builder import SchemaBuilder
from .column import NO_DEFAULT, SEMANTIC_TYPES, ColumnSpec, IndexSpec, TableSpec

__all__ = [
    "SchemaBuilder",
    "Blueprint",
    "ColumnDefinition",
    "ColumnSpec",
    "IndexSpec",
    "TableSpec",
    "NO_DEFAULT",
    "SEMANTIC_TYPES",
]
