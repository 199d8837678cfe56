"""Executor that borrows its connection from a :class:`ConnectionPool`."""
from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import TYPE_CHECKING, Any

from chainsql.execute.connection import Connection
from chainsql.execute.dbapi import CursorExecutor

if TYPE_CHECKING:
    from chainsql.pool import ConnectionPool

_logger = logging.getLogger(__name__)


class PooledExecutor(CursorExecutor):
    """Borrow a pooled connection per statement or per transaction.

    Outside a transaction the connection goes back to the pool as soon as a
    statement has run; its result set is already buffered.  Inside a
    transaction the connection is held: ``release`` is a no-op until
    ``commit`` or ``rollback`` runs, both of which return the connection
    once the transaction has ended.

    Args:
        pool: The pool connections are borrowed from.
    """

    def __init__(self, pool: "ConnectionPool") -> None:
        super().__init__()
        self._pool = pool
        self._conn: Connection | None = None
        self._fetch_mode = "assoc"

    @property
    def connection_pool(self) -> "ConnectionPool":
        return self._pool

    @property
    def holds_connection(self) -> bool:
        return self._conn is not None

    def _connection(self) -> Connection:
        if self._conn is None:
            self._conn = self._pool.get_connection()
            self._fetch_mode = self._conn.fetch_mode
            _logger.debug("Borrowed %r from pool", self._conn)
        return self._conn

    def _default_fetch_mode(self) -> str:
        return self._fetch_mode

    def query(self, sql: str, bindings: Sequence[Any] = ()) -> "PooledExecutor":
        try:
            super().query(sql, bindings)
        finally:
            self.release()
        return self

    def commit(self) -> bool:
        try:
            return super().commit()
        finally:
            self.release()

    def rollback(self) -> bool:
        try:
            return super().rollback()
        finally:
            self.release()

    def release(self) -> None:
        """Return the borrowed connection, unless a transaction is still open.

        Rows already fetched by the last statement stay readable.
        """
        if self._in_transaction or self._conn is None:
            return
        conn, self._conn = self._conn, None
        self._pool.release_connection(conn)
        _logger.debug("Released %r to pool", conn)

    def close(self) -> None:
        """Roll back any open transaction and release the connection."""
        if self._in_transaction:
            self.rollback()
        self.release()
        self._reset_result()

    def __enter__(self) -> "PooledExecutor":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
