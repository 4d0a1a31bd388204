"""
Discovery of migration units.

Units come from two places:

    - ``*.py`` files in a migrations directory; the file stem is the name
      and the module must define exactly one Migration subclass.
    - an explicit ``{name: MigrationClass}`` registry, for code-defined units.

Names sort by their numeric prefix (``2024_01_01_000001_...``), segment by
segment; names without one sort after all prefixed names, alphabetically.
"""

from __future__ import annotations

import importlib.util
import inspect
import logging
from pathlib import Path
import re
from typing import Dict, List, Optional, Tuple, Type, Union

from ..exceptions import MigrationError
from .migration import Migration

logger = logging.getLogger(__name__)

_PREFIX = re.compile(r"^(\d+(?:_\d+)*)(?:_|$)")


def sort_key(name: str) -> Tuple[int, Tuple[int, ...], str]:
    """Stable ordering key derived from a unit's name prefix."""
    match = _PREFIX.match(name)
    if match is None:
        return (1, (), name)
    return (0, tuple(int(part) for part in match.group(1).split("_")), name)


class MigrationLoader:
    """
    Parameters
    ----------
    path:
        Directory holding migration files. May be None or missing.
    registry:
        Extra units keyed by name.
    """

    def __init__(
        self,
        path: Optional[Union[str, Path]] = None,
        registry: Optional[Dict[str, Type[Migration]]] = None,
    ):
        self.path = Path(path) if path is not None else None
        self.registry: Dict[str, Type[Migration]] = dict(registry or {})
        self._loaded: Dict[str, Type[Migration]] = {}

    def files(self) -> Dict[str, Path]:
        if self.path is None or not self.path.is_dir():
            return {}
        return {
            p.stem: p
            for p in self.path.glob("*.py")
            if p.is_file() and not p.name.startswith("_")
        }

    def names(self) -> List[str]:
        """Every discoverable unit name, in application order."""
        names = set(self.files()) | set(self.registry)
        return sorted(names, key=sort_key)

    def resolve(self, name: str) -> Type[Migration]:
        """Return the Migration subclass for ``name``."""
        if name in self.registry:
            return self.registry[name]
        if name in self._loaded:
            return self._loaded[name]

        path = self.files().get(name)
        if path is None:
            raise MigrationError(f"Migration {name!r} not found", migration=name, operation="load")

        cls = self._load_file(name, path)
        self._loaded[name] = cls
        return cls

    def _load_file(self, name: str, path: Path) -> Type[Migration]:
        spec = importlib.util.spec_from_file_location(f"dialectdb_migration_{name}", path)
        if spec is None or spec.loader is None:
            raise MigrationError(f"Cannot import migration file {path}", migration=name, operation="load")

        module = importlib.util.module_from_spec(spec)
        try:
            spec.loader.exec_module(module)
        except Exception as exc:
            raise MigrationError(
                f"Error importing migration {name!r}: {exc}",
                migration=name,
                operation="load",
                native=exc,
            ) from exc

        candidates = [
            obj
            for obj in vars(module).values()
            if inspect.isclass(obj)
            and issubclass(obj, Migration)
            and obj is not Migration
            and obj.__module__ == module.__name__
        ]
        if len(candidates) != 1:
            raise MigrationError(
                f"Migration file {path} must define exactly one Migration subclass, found {len(candidates)}",
                migration=name,
                operation="load",
            )

        logger.debug("Loaded migration %s from %s", name, path)
        return candidates[0]


__all__ = ["MigrationLoader", "sort_key"]
