"""Executors running compiled SQL on DB-API connections.

``CursorExecutor`` holds the shared algorithm: translate placeholders,
execute, buffer the result set, shape rows.  Subclasses decide where the
connection comes from (:class:`DBAPIExecutor`: one fixed connection;
:class:`~chainsql.execute.pooled.PooledExecutor`: borrowed from a pool).

Statements issued outside an explicit transaction are committed right after
execution, so each one behaves as if the driver were in autocommit mode.
Drivers that really are in autocommit mode get explicit ``BEGIN`` /
``COMMIT`` / ``ROLLBACK`` statements for transactions.
Result sets are buffered in full before the statement returns.
"""
from __future__ import annotations

import logging
from abc import abstractmethod
from collections import deque
from collections.abc import Sequence
from typing import Any

from chainsql.execute.base import (
    Executor,
    adapt_bindings,
    column_names,
    resolve_fetch_mode,
    shape_row,
    translate_placeholders,
)
from chainsql.errors import DatabaseError
from chainsql.execute.connection import Connection, driver_errors

_logger = logging.getLogger(__name__)


class CursorExecutor(Executor):
    """Shared DB-API execution logic."""

    def __init__(self) -> None:
        self._rows: deque[tuple[Any, ...]] = deque()
        self._columns: list[str] = []
        self._row_count = 0
        self._last_row_id: Any = None
        self._has_result = False
        self._in_transaction = False
        self._explicit_begin = False

    @abstractmethod
    def _connection(self) -> Connection:
        """Return the connection statements run on."""

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    def query(self, sql: str, bindings: Sequence[Any] = ()) -> "CursorExecutor":
        conn = self._connection()
        driver_sql = translate_placeholders(sql, conn.paramstyle)
        params = adapt_bindings(bindings, conn.paramstyle)
        _logger.debug("Executing %s with %d binding(s)", sql, len(bindings))

        try:
            with driver_errors("Query execution failed"):
                cursor = conn.cursor()
                try:
                    cursor.execute(driver_sql, params)
                    self._columns = column_names(cursor.description)
                    rows = cursor.fetchall() if cursor.description else []
                    self._rows = deque(tuple(r) for r in rows)
                    self._has_result = True
                    self._row_count = (
                        len(self._rows) if cursor.description else max(cursor.rowcount, 0)
                    )
                    self._last_row_id = getattr(cursor, "lastrowid", None)
                finally:
                    cursor.close()
                if not self._in_transaction:
                    conn.commit()
        except DatabaseError:
            self._reset_result()
            if not self._in_transaction:
                _rollback_quietly(conn)
            raise
        return self

    def fetch(self, mode: str | None = None, cls: type | None = None) -> Any:
        if not self._rows:
            return None
        shape = resolve_fetch_mode(mode, self._default_fetch_mode())
        return shape_row(self._rows.popleft(), self._columns, shape, cls)

    def fetch_all(self, mode: str | None = None, cls: type | None = None) -> list[Any]:
        shape = resolve_fetch_mode(mode, self._default_fetch_mode())
        rows = [shape_row(row, self._columns, shape, cls) for row in self._rows]
        self._rows.clear()
        return rows

    def fetch_column(self, index: int = 0) -> Any:
        if not self._rows:
            return None
        row = self._rows.popleft()
        return row[index] if index < len(row) else None

    def last_insert_id(self) -> Any:
        return self._last_row_id

    def row_count(self) -> int:
        return self._row_count if self._has_result else 0

    # ------------------------------------------------------------------
    # Transactions
    # ------------------------------------------------------------------

    def begin_transaction(self) -> bool:
        conn = self._connection()
        if conn.autocommit:
            # The driver would commit each statement; open the transaction explicitly.
            with driver_errors("Error starting transaction"):
                _execute_control(conn, "BEGIN")
            self._explicit_begin = True
        self._in_transaction = True
        return True

    def commit(self) -> bool:
        with driver_errors("Error committing transaction"):
            self._end_transaction("COMMIT")
        return True

    def rollback(self) -> bool:
        with driver_errors("Error rolling back transaction"):
            self._end_transaction("ROLLBACK")
        return True

    def in_transaction(self) -> bool:
        return self._in_transaction

    def _end_transaction(self, statement: str) -> None:
        conn = self._connection()
        try:
            if self._explicit_begin:
                _execute_control(conn, statement)
            elif statement == "COMMIT":
                conn.commit()
            else:
                conn.rollback()
        finally:
            self._explicit_begin = False
            self._in_transaction = False

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _default_fetch_mode(self) -> str:
        return "assoc"

    def _reset_result(self) -> None:
        self._rows.clear()
        self._columns = []
        self._row_count = 0
        self._last_row_id = None
        self._has_result = False


def _rollback_quietly(conn: Connection) -> None:
    # The original failure is what the caller needs to see.
    try:
        conn.rollback()
    except Exception as exc:
        _logger.warning("Rollback after failed statement also failed: %s", exc)


def _execute_control(conn: Connection, statement: str) -> None:
    cursor = conn.cursor()
    try:
        cursor.execute(statement)
    finally:
        cursor.close()


class DBAPIExecutor(CursorExecutor):
    """Executor bound to a single connection for its whole life.

    Args:
        connection: The connection every statement runs on.
    """

    def __init__(self, connection: Connection) -> None:
        super().__init__()
        self._conn = connection

    def _connection(self) -> Connection:
        return self._conn

    def _default_fetch_mode(self) -> str:
        return self._conn.fetch_mode

    @property
    def connection(self) -> Connection:
        return self._conn

    def close(self) -> None:
        if self._in_transaction:
            self.rollback()
        self._conn.close()
