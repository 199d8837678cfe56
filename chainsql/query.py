"""Query session facade.

A :class:`Query` is the usual entry point: it creates builders for the
session's dialect, attaches the session executor and cache, and forwards
transaction control to the executor::

    with query.transaction():
        order_id = query.insert("orders").values({"user_id": 7}).insert_get_id()
        query.update("users").set("last_order_id", order_id).where("id = ?", 7).execute()
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from typing import TYPE_CHECKING

from chainsql.builder.delete import DeleteBuilder
from chainsql.builder.insert import InsertBuilder
from chainsql.builder.select import SelectBuilder
from chainsql.builder.update import UpdateBuilder
from chainsql.cache import CacheManager
from chainsql.config import CacheConfig
from chainsql.errors import ExecutorUnavailableError
from chainsql.execute.base import Executor
from chainsql.execute.pooled import PooledExecutor

if TYPE_CHECKING:
    from chainsql.factory import BuilderFactory
    from chainsql.pool import ConnectionPool


class Query:
    """Per-session builder entry point.

    Args:
        builder_factory: Factory bound to the session dialect and executor.
        cache: Optional result cache applied to SELECT builders created by
            this session.
    """

    def __init__(self, builder_factory: BuilderFactory, cache: CacheConfig | None = None) -> None:
        self._factory = builder_factory
        self._cache = CacheManager.from_config(cache) if cache is not None else None

    # ------------------------------------------------------------------
    # Builders
    # ------------------------------------------------------------------

    def select(self, *columns: str) -> SelectBuilder:
        """Start a SELECT; call ``from_()`` on the result to pick the table."""
        builder = self._factory.select("", self._cache)
        if columns:
            builder.select(*columns)
        return builder

    def from_(self, table: str) -> SelectBuilder:
        return self._factory.select(table, self._cache)

    def insert(self, table: str) -> InsertBuilder:
        return self._factory.insert(table)

    def update(self, table: str) -> UpdateBuilder:
        return self._factory.update(table)

    def delete(self, table: str) -> DeleteBuilder:
        return self._factory.delete(table)

    # ------------------------------------------------------------------
    # Session settings
    # ------------------------------------------------------------------

    def set_database_type(self, database_type: str) -> "Query":
        """Switch the dialect used by builders created from now on."""
        self._factory.database_type = database_type
        return self

    @property
    def database_type(self) -> str:
        return self._factory.database_type

    def with_cache(self, cache: CacheConfig | None) -> "Query":
        """Attach (or, with ``None``, detach) the result cache."""
        self._cache = CacheManager.from_config(cache) if cache is not None else None
        return self

    @property
    def cache(self) -> CacheManager | None:
        return self._cache

    # ------------------------------------------------------------------
    # Transactions
    # ------------------------------------------------------------------

    def begin_transaction(self) -> bool:
        return self._require_executor("begin_transaction").begin_transaction()

    def commit(self) -> bool:
        return self._require_executor("commit").commit()

    def rollback(self) -> bool:
        return self._require_executor("rollback").rollback()

    def in_transaction(self) -> bool:
        return self._require_executor("in_transaction").in_transaction()

    @contextmanager
    def transaction(self) -> Iterator["Query"]:
        """Run the block in a transaction.

        Commits when the block finishes, rolls back and re-raises when it
        raises.
        """
        self.begin_transaction()
        try:
            yield self
        except BaseException:
            self.rollback()
            raise
        self.commit()

    # ------------------------------------------------------------------
    # Collaborators
    # ------------------------------------------------------------------

    @property
    def executor(self) -> Executor | None:
        return self._factory.executor

    @property
    def connection_pool(self) -> ConnectionPool | None:
        """Return the pool behind a pooled session, else ``None``."""
        executor = self._factory.executor
        if isinstance(executor, PooledExecutor):
            return executor.connection_pool
        return None

    def _require_executor(self, operation: str) -> Executor:
        executor = self._factory.executor
        if executor is None:
            raise ExecutorUnavailableError(operation)
        return executor
