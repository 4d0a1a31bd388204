from .builder import OPERATORS, QueryBuilder

__all__ = ["QueryBuilder", "OPERATORS"]
