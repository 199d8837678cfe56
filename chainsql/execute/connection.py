"""DB-API connection wrapper.

Connections are opened through SQLAlchemy so that every backend SQLAlchemy
knows how to reach (``pymysql``, ``psycopg``, ``sqlite3``, …) is available
from a single :class:`~chainsql.config.ConnectionConfig`.  SQLAlchemy's own
pooling is disabled (``NullPool``); pooling is the job of
:class:`~chainsql.pool.ConnectionPool`.
"""
from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.pool import NullPool

from chainsql.config import ConnectionConfig
from chainsql.errors import ChainSQLError, DatabaseError

_logger = logging.getLogger(__name__)


@contextmanager
def driver_errors(message: str) -> Iterator[None]:
    """Re-raise any driver exception as :class:`DatabaseError`."""
    try:
        yield
    except ChainSQLError:
        raise
    except Exception as exc:
        raise DatabaseError.from_driver(message, exc) from exc


class Connection:
    """A live DB-API connection plus the metadata executors need.

    Args:
        dbapi: A DB-API 2.0 connection object.
        paramstyle: The driver's DB-API ``paramstyle``.
        fetch_mode: Default row shape for fetch calls.
        engine: The SQLAlchemy engine that opened ``dbapi``, if any; it is
            disposed together with the connection.
    """

    def __init__(
        self,
        dbapi: Any,
        paramstyle: str = "qmark",
        fetch_mode: str = "assoc",
        engine: Engine | None = None,
    ) -> None:
        self._dbapi = dbapi
        self._engine = engine
        self.paramstyle = paramstyle
        self.fetch_mode = fetch_mode
        self._closed = False

    @classmethod
    def open(cls, config: ConnectionConfig) -> "Connection":
        """Open a new connection described by ``config``.

        Raises:
            DatabaseError: If the driver cannot connect.
        """
        with driver_errors("Database connection failed"):
            engine = create_engine(
                config.url(), poolclass=NullPool, connect_args=dict(config.options)
            )
            dbapi = engine.raw_connection()
        _logger.debug("Opened %s connection to %r", config.canonical_driver, config.database)
        return cls(
            dbapi,
            paramstyle=engine.dialect.paramstyle,
            fetch_mode=config.fetch_mode,
            engine=engine,
        )

    @classmethod
    def wrap(
        cls, dbapi: Any, paramstyle: str = "qmark", fetch_mode: str = "assoc"
    ) -> "Connection":
        """Adopt an already open DB-API connection (e.g. ``sqlite3.connect(...)``)."""
        return cls(dbapi, paramstyle=paramstyle, fetch_mode=fetch_mode)

    @property
    def dbapi(self) -> Any:
        return self._dbapi

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def autocommit(self) -> bool:
        """Whether the driver commits every statement on its own.

        Covers ``psycopg`` (``autocommit`` attribute), ``pymysql``
        (``get_autocommit()``) and ``sqlite3`` (``isolation_level=None``).
        """
        flag = getattr(self._dbapi, "autocommit", None)
        if isinstance(flag, bool):
            return flag
        getter = getattr(self._dbapi, "get_autocommit", None)
        if callable(getter):
            return bool(getter())
        return hasattr(self._dbapi, "isolation_level") and self._dbapi.isolation_level is None

    def cursor(self) -> Any:
        return self._dbapi.cursor()

    def commit(self) -> None:
        self._dbapi.commit()

    def rollback(self) -> None:
        self._dbapi.rollback()

    def is_alive(self) -> bool:
        """Probe the connection with ``SELECT 1``."""
        if self._closed:
            return False
        try:
            cursor = self._dbapi.cursor()
            try:
                cursor.execute("SELECT 1")
                cursor.fetchall()
            finally:
                cursor.close()
        except Exception as exc:  # any driver failure means the connection is dead
            _logger.warning("Connection liveness probe failed: %s", exc)
            return False
        return True

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        with driver_errors("Error closing connection"):
            self._dbapi.close()
            if self._engine is not None:
                self._engine.dispose()

    def __repr__(self) -> str:
        state = "closed" if self._closed else "open"
        return f"<Connection {self.paramstyle} {state}>"
