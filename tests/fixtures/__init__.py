"""Test fixtures: sample schema DDL, seed data, and an in-memory executor."""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path
from typing import Any, Literal

from chainsql.execute.base import Executor, resolve_fetch_mode, shape_row

_FIXTURES_DIR = Path(__file__).parent


def load_ddl(target: Literal["sqlite", "postgres"] = "sqlite") -> str:
    """Return the sample DDL SQL string for the given backend.

    Args:
        target: ``'sqlite'`` or ``'postgres'``.

    Returns:
        DDL script of one or more statements.
    """
    return (_FIXTURES_DIR / f"ddl_{target}.sql").read_text()


def load_seed(target: Literal["sqlite", "postgres"] = "sqlite") -> str:
    """Return the seed INSERT statements for the given backend."""
    return (_FIXTURES_DIR / f"seed_{target}.sql").read_text()


class RecordingExecutor(Executor):
    """Executor that records statements and serves canned rows.

    Every ``query`` call resets the cursor to a fresh copy of ``rows``.
    """

    def __init__(
        self,
        rows: Sequence[dict[str, Any]] = (),
        last_id: Any = None,
        affected: int = 0,
    ) -> None:
        self.rows = [dict(r) for r in rows]
        self.last_id = last_id
        self.affected = affected
        self.statements: list[tuple[str, list[Any]]] = []
        self.commits = 0
        self.rollbacks = 0
        self._pending: list[dict[str, Any]] = []
        self._in_transaction = False

    def query(self, sql: str, bindings: Sequence[Any] = ()) -> "RecordingExecutor":
        self.statements.append((sql, list(bindings)))
        self._pending = [dict(r) for r in self.rows]
        return self

    def fetch(self, mode: str | None = None, cls: type | None = None) -> Any:
        if not self._pending:
            return None
        row = self._pending.pop(0)
        return shape_row(tuple(row.values()), list(row), resolve_fetch_mode(mode, "assoc"), cls)

    def fetch_all(self, mode: str | None = None, cls: type | None = None) -> list[Any]:
        shape = resolve_fetch_mode(mode, "assoc")
        rows = [shape_row(tuple(r.values()), list(r), shape, cls) for r in self._pending]
        self._pending = []
        return rows

    def fetch_column(self, index: int = 0) -> Any:
        if not self._pending:
            return None
        return list(self._pending.pop(0).values())[index]

    def last_insert_id(self) -> Any:
        return self.last_id

    def row_count(self) -> int:
        return self.affected

    def begin_transaction(self) -> bool:
        self._in_transaction = True
        return True

    def commit(self) -> bool:
        self.commits += 1
        self._in_transaction = False
        return True

    def rollback(self) -> bool:
        self.rollbacks += 1
        self._in_transaction = False
        return True

    def in_transaction(self) -> bool:
        return self._in_transaction
