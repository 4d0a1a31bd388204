"""
Generic fallback dialect.

Selected for any driver name the catalog does not know. SQL is rendered
with MySQL syntax (minus the storage-engine suffix) and the DB-API module
is taken from ``config.options["module"]``; every other option is passed to
its ``connect()`` call.
"""

from __future__ import annotations

from typing import Any, List, Optional

from .base import ConnectTarget
from .mysql import MySQLDialect


_PARAM_STYLES = {
    "qmark": "qmark",
    "format": "format",
    "pyformat": "format",
    "numeric": "numeric",
}


class GenericDialect(MySQLDialect):
    name = "generic"

    driver_module = None
    default_port = None
    param_style = "qmark"

    def driver_name(self, config) -> Optional[str]:
        return config.options.get("module")

    def param_style_for(self, driver: Any) -> str:
        style = getattr(driver, "paramstyle", None)
        return _PARAM_STYLES.get(style, self.param_style)

    def connect_targets(self, config) -> List[ConnectTarget]:
        kwargs = {k: v for k, v in config.options.items() if k != "module"}
        for key, value in (
            ("host", config.host),
            ("port", config.port),
            ("database", config.database),
            ("user", config.username),
            ("password", config.password),
        ):
            if value is not None:
                kwargs.setdefault(key, value)
        label = f"generic:{config.options.get('module')}:host={config.host};dbname={config.database}"
        return [ConnectTarget(label=label, kwargs=kwargs)]

    def session_statements(self, config) -> List[str]:
        return []

    def table_suffix(self) -> str:
        return ""


__all__ = ["GenericDialect"]
