"""
Configuration settings for dialectdb.

This module centralizes the connection settings consumed by:

    - dialectdb.db.connection.Connection (DSN building, session init)
    - dialectdb.core.Database            (façade construction)

It provides:
    DatabaseConfig  – structured config object
    load_config()   – load from environment variables or defaults

Nothing here is global: callers build a config once at startup and pass it
explicitly into the objects that need it.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
import os
from typing import Any, Dict, Optional


@dataclass
class DatabaseConfig:
    """
    Canonical connection configuration.

    Attributes
    ----------
    driver:
        Dialect name or alias: "sqlite", "mysql", "mariadb", "pgsql",
        "sqlsrv", "oracle"/"oci", "db2"/"ibm". Unknown names fall back to the
        generic dialect.

    host, port, database, username, password:
        Usual connection coordinates. For SQLite, ``database`` is the file
        path (or ":memory:"). ``port`` defaults to the dialect's port.

    options:
        Extra keyword arguments forwarded verbatim to the driver's
        ``connect()`` call.

    strict:
        MySQL/MariaDB only: enable strict SQL mode on connect.

    search_path:
        Postgres only: schema search path applied on connect.

    unix_socket:
        MySQL/MariaDB only: socket path tried before TCP on localhost.

    charset, sslmode, service_name, tns, encrypt, trust_server_certificate:
        Driver-specific DSN parameters.

    timeout:
        Connect timeout in seconds, forwarded to the driver.

    enable_logging:
        Whether the façade should configure basic INFO logging.
    """

    driver: str = "sqlite"
    host: str = "localhost"
    port: Optional[int] = None
    database: str = "database.sqlite"
    username: Optional[str] = None
    password: Optional[str] = None

    options: Dict[str, Any] = field(default_factory=dict)

    strict: bool = False
    search_path: Optional[str] = "public"
    unix_socket: Optional[str] = None
    charset: Optional[str] = None
    sslmode: Optional[str] = None
    service_name: Optional[str] = None
    tns: Optional[str] = None
    encrypt: Optional[bool] = None
    trust_server_certificate: Optional[bool] = None

    timeout: Optional[float] = None

    enable_logging: bool = False

    def with_overrides(self, **changes: Any) -> "DatabaseConfig":
        """Return a copy of this config with some fields replaced."""
        return replace(self, **changes)


def _env_flag(name: str, default: bool) -> bool:
    val = os.getenv(name)
    if val is None:
        return default
    return val.strip().lower() in ("1", "true", "yes", "on")


def _env_int(name: str) -> Optional[int]:
    val = os.getenv(name)
    if val is None or not val.strip():
        return None
    return int(val)


def _env_float(name: str) -> Optional[float]:
    val = os.getenv(name)
    if val is None or not val.strip():
        return None
    return float(val)


def load_config() -> DatabaseConfig:
    """
    Load DatabaseConfig from environment variables, falling back to defaults.

    Recognized variables:
        DB_CONNECTION      (sqlite|mysql|mariadb|pgsql|sqlsrv|oracle|db2)
        DB_HOST, DB_PORT, DB_DATABASE, DB_USERNAME, DB_PASSWORD
        DB_SOCKET          (MySQL unix socket path)
        DB_CHARSET
        DB_STRICT_MODE     ("true" / "false" / "1" / "0")
        DB_SEARCH_PATH     (Postgres schema search path)
        DB_SSLMODE
        DB_SERVICE_NAME    (Oracle service name)
        DB_TIMEOUT         (seconds)
        DB_ENABLE_LOGGING  ("true" / "false" / "1" / "0")

    Returns
    -------
    DatabaseConfig
    """
    return DatabaseConfig(
        driver=os.getenv("DB_CONNECTION", "sqlite"),
        host=os.getenv("DB_HOST", "localhost"),
        port=_env_int("DB_PORT"),
        database=os.getenv("DB_DATABASE", "database.sqlite"),
        username=os.getenv("DB_USERNAME"),
        password=os.getenv("DB_PASSWORD"),

        strict=_env_flag("DB_STRICT_MODE", default=False),
        search_path=os.getenv("DB_SEARCH_PATH", "public"),
        unix_socket=os.getenv("DB_SOCKET") or None,
        charset=os.getenv("DB_CHARSET") or None,
        sslmode=os.getenv("DB_SSLMODE") or None,
        service_name=os.getenv("DB_SERVICE_NAME") or None,

        timeout=_env_float("DB_TIMEOUT"),

        enable_logging=_env_flag(
            "DB_ENABLE_LOGGING",
            default=False
        ),
    )


__all__ = [
    "DatabaseConfig",
    "load_config",
]
