"""
Schema migrations.

Public API:
    - Migration            (base class for units)
    - Migrator             (run / rollback / reset / refresh / status)
    - MigrationLoader      (discovery from files or a registry)
    - MigrationRepository  (the ``migrations`` bookkeeping table)
    - MigrationCreator     (timestamped stub files)
"""

from .creator import MigrationCreator
from .loader import MigrationLoader, sort_key
from .migration import Migration
from .migrator import Migrator
from .repository import MigrationRepository

__all__ = [
    "Migration",
    "Migrator",
    "MigrationLoader",
    "MigrationRepository",
    "MigrationCreator",
    "sort_key",
]
