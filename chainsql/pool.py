"""Thread-safe connection pool.

``ConnectionPool`` keeps up to ``max_connections`` connections, of which
some are idle (ready to hand out) and the rest are in use.  A single
``threading.Lock`` guards both sets; no I/O (connecting, liveness probes,
closing) happens while the lock is held.

Acquisition order:

1. reuse an idle connection, after a ``SELECT 1`` liveness probe (dead ones
   are closed and discarded, never handed out);
2. open a new connection while under ``max_connections``;
3. otherwise wait with exponential backoff (50 ms, x1.5, capped at 500 ms)
   until ``connection_timeout`` elapses, then raise
   :class:`~chainsql.errors.PoolExhaustedError`.

Idle connections older than ``max_idle_time`` are evicted, and the pool
tops itself back up to ``min_connections`` after releases.
"""
from __future__ import annotations

import logging
import threading
import time
from collections import deque
from collections.abc import Callable

from chainsql.config import ConnectionConfig, PoolConfig
from chainsql.errors import ConfigurationError, DatabaseError, PoolExhaustedError
from chainsql.execute.connection import Connection

_logger = logging.getLogger(__name__)

INITIAL_BACKOFF = 0.05
BACKOFF_FACTOR = 1.5
MAX_BACKOFF = 0.5


class ConnectionPool:
    """Bounded pool of :class:`~chainsql.execute.connection.Connection` objects.

    Args:
        config: Connection settings used to open new connections.
        pool_config: Pool limits; defaults to ``PoolConfig()``.
        connection_factory: Optional callable returning a new connection.
            Defaults to ``lambda: Connection.open(config)``.
        sleep: Sleep function used between acquisition attempts.
        clock: Monotonic clock used for timeouts and idle tracking.

    Raises:
        ConfigurationError: If neither ``config`` nor ``connection_factory``
            is given.
    """

    def __init__(
        self,
        config: ConnectionConfig | None = None,
        pool_config: PoolConfig | None = None,
        connection_factory: Callable[[], Connection] | None = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if connection_factory is None:
            if config is None:
                raise ConfigurationError(
                    "ConnectionPool needs a ConnectionConfig or a connection_factory.",
                    setting="config",
                )
            connection_factory = lambda: Connection.open(config)  # noqa: E731

        self._settings = pool_config or PoolConfig()
        self._factory = connection_factory
        self._sleep = sleep
        self._clock = clock

        self._lock = threading.Lock()
        self._idle: deque[Connection] = deque()
        self._idle_since: dict[int, float] = {}
        self._in_use: dict[int, Connection] = {}
        self._pending = 0
        self._closed = False

        self._maintain_min_connections()
        _logger.info(
            "Connection pool ready (%d idle, max %d)",
            len(self._idle),
            self._settings.max_connections,
        )

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @property
    def settings(self) -> PoolConfig:
        return self._settings

    def get_connection(self) -> Connection:
        """Borrow a live connection, waiting up to ``connection_timeout``.

        Raises:
            PoolExhaustedError: If the pool is closed, or no connection
                became available in time.
            DatabaseError: If opening a new connection fails.
        """
        timeout = self._settings.connection_timeout
        deadline = self._clock() + timeout
        delay = INITIAL_BACKOFF

        while True:
            conn = self._try_acquire()
            if conn is not None:
                return conn
            remaining = deadline - self._clock()
            if remaining <= 0:
                raise PoolExhaustedError(
                    f"Unable to get connection from pool within {timeout} seconds",
                    timeout=timeout,
                )
            self._sleep(min(delay, remaining))
            delay = min(delay * BACKOFF_FACTOR, MAX_BACKOFF)

    def release_connection(self, conn: Connection) -> None:
        """Return ``conn`` to the pool; foreign connections are ignored."""
        with self._lock:
            if self._in_use.pop(id(conn), None) is None:
                return
            closed = self._closed

        if closed or not conn.is_alive():
            if not closed:
                _logger.warning("Discarding dead connection %r on release", conn)
            _close_quietly(conn)
        else:
            with self._lock:
                self._idle.append(conn)
                self._idle_since[id(conn)] = self._clock()

        if not closed:
            self._maintain_min_connections()

    def close_all(self) -> None:
        """Close idle connections and refuse further acquisitions.

        Connections still in use are closed when they are released.
        """
        with self._lock:
            if self._closed:
                return
            self._closed = True
            idle = list(self._idle)
            self._idle.clear()
            self._idle_since.clear()
        for conn in idle:
            _close_quietly(conn)
        _logger.info("Connection pool closed (%d idle connection(s) closed)", len(idle))

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def active_connections(self) -> int:
        with self._lock:
            return len(self._in_use)

    @property
    def idle_connections(self) -> int:
        with self._lock:
            return len(self._idle)

    @property
    def total_connections(self) -> int:
        with self._lock:
            return self._total_locked()

    def __enter__(self) -> "ConnectionPool":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close_all()

    def __repr__(self) -> str:
        return (
            f"<ConnectionPool active={self.active_connections} "
            f"idle={self.idle_connections} max={self._settings.max_connections}>"
        )

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _try_acquire(self) -> Connection | None:
        while True:
            exhausted = False
            with self._lock:
                if self._closed:
                    raise PoolExhaustedError("Connection pool is closed")
                expired = self._evict_expired_locked()
                if self._idle:
                    candidate: Connection | None = self._idle.popleft()
                    self._idle_since.pop(id(candidate), None)
                    self._in_use[id(candidate)] = candidate
                elif self._total_locked() < self._settings.max_connections:
                    candidate = None
                    self._pending += 1
                else:
                    exhausted = True
                    candidate = None

            for conn in expired:
                _close_quietly(conn)

            if exhausted:
                return None
            if candidate is None:
                return self._open_reserved(in_use=True)

            if candidate.is_alive():
                return candidate

            _logger.warning("Discarding dead idle connection %r", candidate)
            with self._lock:
                self._in_use.pop(id(candidate), None)
            _close_quietly(candidate)

    def _open_reserved(self, in_use: bool) -> Connection:
        """Open a connection for a slot already reserved via ``_pending``."""
        try:
            conn = self._factory()
        except BaseException:
            with self._lock:
                self._pending -= 1
            raise
        with self._lock:
            self._pending -= 1
            if in_use:
                self._in_use[id(conn)] = conn
            else:
                self._idle.append(conn)
                self._idle_since[id(conn)] = self._clock()
        return conn

    def _maintain_min_connections(self) -> None:
        while True:
            with self._lock:
                if self._closed or self._total_locked() >= self._settings.min_connections:
                    return
                self._pending += 1
            try:
                self._open_reserved(in_use=False)
            except (DatabaseError, OSError) as exc:
                _logger.warning("Could not pre-open pool connection: %s", exc)
                return

    def _evict_expired_locked(self) -> list[Connection]:
        now = self._clock()
        max_idle = self._settings.max_idle_time
        expired = [c for c in self._idle if now - self._idle_since.get(id(c), now) > max_idle]
        for conn in expired:
            self._idle.remove(conn)
            self._idle_since.pop(id(conn), None)
        return expired

    def _total_locked(self) -> int:
        return len(self._in_use) + len(self._idle) + self._pending


def _close_quietly(conn: Connection) -> None:
    try:
        conn.close()
    except DatabaseError as exc:
        _logger.warning("Error closing pooled connection: %s", exc)
