"""Pydantic models for connection, pool, and cache configuration.

Create a connection config and hand it to one of the factories::

    from chainsql import ConnectionConfig, PoolConfig, create_pooled_query

    config = ConnectionConfig(
        driver="pgsql", host="db", user="app", password="s3cret", database="shop"
    )
    query = create_pooled_query(config, PoolConfig(max_connections=20))

Range and consistency checks raise :class:`~chainsql.errors.ConfigurationError`
at construction time so misconfiguration never reaches a live connection.
"""
from __future__ import annotations

from typing import Any, Literal

from cachelib.base import BaseCache
from pydantic import BaseModel, ConfigDict, Field, model_validator
from sqlalchemy.engine import URL

from chainsql.errors import ConfigurationError

#: Supported fetch modes for result rows.
FetchMode = Literal["assoc", "numeric", "object"]

# driver alias -> (canonical driver, grammar name, SQLAlchemy backend, default port)
_DRIVERS: dict[str, tuple[str, str, str, int | None]] = {
    "mysql": ("mysql", "mysql", "mysql+pymysql", 3306),
    "mariadb": ("mysql", "mysql", "mysql+pymysql", 3306),
    "pgsql": ("pgsql", "postgresql", "postgresql+psycopg", 5432),
    "postgres": ("pgsql", "postgresql", "postgresql+psycopg", 5432),
    "postgresql": ("pgsql", "postgresql", "postgresql+psycopg", 5432),
    "sqlite": ("sqlite", "sqlite", "sqlite", None),
    "sqlite3": ("sqlite", "sqlite", "sqlite", None),
}


class ConnectionConfig(BaseModel):
    """Database connection settings.

    Attributes:
        driver: Database driver (``mysql``, ``pgsql``, ``sqlite`` or an
            alias such as ``mariadb`` / ``postgres`` / ``sqlite3``).
        host: Server host; ignored for SQLite.
        user: Login user; ignored for SQLite.
        password: Login password; ignored for SQLite.
        database: Database name, or the file path for SQLite
            (``":memory:"`` for an in-memory database).
        port: Server port; defaults to the driver's standard port.
        fetch_mode: Default row shape returned by fetch calls.
        options: Extra keyword arguments passed to the DB-API ``connect``.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    driver: str = "mysql"
    host: str = "localhost"
    user: str = ""
    password: str = ""
    database: str = ""
    port: int | None = None
    fetch_mode: FetchMode = "assoc"
    options: dict[str, Any] = Field(default_factory=dict)

    @model_validator(mode="after")
    def _check_driver(self) -> "ConnectionConfig":
        if self.driver.strip().lower() not in _DRIVERS:
            raise ConfigurationError(
                f"Unsupported driver: '{self.driver}'. "
                f"Expected one of {sorted(_DRIVERS)}.",
                setting="driver",
            )
        return self

    @property
    def canonical_driver(self) -> str:
        return _DRIVERS[self.driver.strip().lower()][0]

    @property
    def dialect(self) -> str:
        """Return the grammar name matching this driver."""
        return _DRIVERS[self.driver.strip().lower()][1]

    @property
    def effective_port(self) -> int | None:
        return self.port if self.port is not None else _DRIVERS[self.driver.strip().lower()][3]

    def url(self) -> URL:
        """Return the SQLAlchemy URL describing this connection."""
        backend = _DRIVERS[self.driver.strip().lower()][2]
        if self.canonical_driver == "sqlite":
            return URL.create(backend, database=self.database or ":memory:")
        return URL.create(
            backend,
            username=self.user or None,
            password=self.password or None,
            host=self.host,
            port=self.effective_port,
            database=self.database or None,
        )


class PoolConfig(BaseModel):
    """Connection pool limits.

    Attributes:
        max_connections: Upper bound on open connections (>= 1).
        min_connections: Idle connections kept warm (0 .. max_connections).
        max_idle_time: Seconds an idle connection may live (>= 1).
        connection_timeout: Seconds ``get_connection`` waits before failing
            (> 0).
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    max_connections: int = 10
    min_connections: int = 2
    max_idle_time: float = 3600
    connection_timeout: float = 30

    @model_validator(mode="after")
    def _check_ranges(self) -> "PoolConfig":
        if self.max_connections < 1:
            raise ConfigurationError(
                "max_connections must be at least 1", setting="max_connections"
            )
        if not 0 <= self.min_connections <= self.max_connections:
            raise ConfigurationError(
                "min_connections must be between 0 and max_connections",
                setting="min_connections",
            )
        if self.max_idle_time < 1:
            raise ConfigurationError(
                "max_idle_time must be at least 1 second", setting="max_idle_time"
            )
        if self.connection_timeout <= 0:
            raise ConfigurationError(
                "connection_timeout must be positive", setting="connection_timeout"
            )
        return self


class CacheConfig(BaseModel):
    """Result-cache settings for one query session.

    Attributes:
        backend: Any cachelib cache (``SimpleCache``, ``RedisCache``, …).
        ttl: Entry lifetime in seconds; ``None`` uses the backend default.
        prefix: Namespace prepended to every cache key.
    """

    model_config = ConfigDict(extra="forbid", frozen=True, arbitrary_types_allowed=True)

    backend: BaseCache
    ttl: int | None = None
    prefix: str = "qb"
