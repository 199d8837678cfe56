"""Builder factory and the ready-made query-session constructors.

``BuilderFactory`` hands out builders bound to one dialect and one executor.
``create_query`` / ``create_pooled_query`` wire a whole session from a
:class:`~chainsql.config.ConnectionConfig`::

    from chainsql import ConnectionConfig, create_query

    query = create_query(ConnectionConfig(driver="sqlite", database="app.db"))
    users = query.from_("users").where("active = ?", 1).get_all_assoc()
"""

from __future__ import annotations

import logging

from chainsql.builder.delete import DeleteBuilder
from chainsql.builder.insert import InsertBuilder
from chainsql.builder.select import SelectBuilder
from chainsql.builder.update import UpdateBuilder
from chainsql.cache import CacheManager
from chainsql.compile.compiler import SqlCompiler
from chainsql.compile.registry import GrammarFactory
from chainsql.config import CacheConfig, ConnectionConfig, PoolConfig
from chainsql.execute.base import Executor
from chainsql.execute.connection import Connection
from chainsql.execute.dbapi import DBAPIExecutor
from chainsql.execute.pooled import PooledExecutor
from chainsql.pool import ConnectionPool
from chainsql.query import Query

_logger = logging.getLogger(__name__)


class BuilderFactory:
    """Creates builders for the current dialect, all sharing one executor.

    Args:
        grammar_factory: Registry resolving dialect names to grammars.
        executor: Executor attached to every builder (``None`` builds SQL
            only).
        database_type: Initial dialect name or alias.

    Raises:
        ConfigurationError: If ``database_type`` is not registered.
    """

    def __init__(
        self,
        grammar_factory: type[GrammarFactory] = GrammarFactory,
        executor: Executor | None = None,
        database_type: str = "mysql",
    ) -> None:
        self._grammar_factory = grammar_factory
        self._executor = executor
        self._database_type = grammar_factory.resolve(database_type)

    @property
    def database_type(self) -> str:
        return self._database_type

    @database_type.setter
    def database_type(self, value: str) -> None:
        self._database_type = self._grammar_factory.resolve(value)

    @property
    def executor(self) -> Executor | None:
        return self._executor

    def compiler(self) -> SqlCompiler:
        return SqlCompiler(self._grammar_factory.create(self._database_type))

    def select(self, table: str = "", cache: CacheManager | None = None) -> SelectBuilder:
        return SelectBuilder(table, self.compiler(), self._executor, cache)

    def insert(self, table: str) -> InsertBuilder:
        return InsertBuilder(table, self.compiler(), self._executor)

    def update(self, table: str) -> UpdateBuilder:
        return UpdateBuilder(table, self.compiler(), self._executor)

    def delete(self, table: str) -> DeleteBuilder:
        return DeleteBuilder(table, self.compiler(), self._executor)


def create_query(config: ConnectionConfig, *, cache: CacheConfig | None = None) -> Query:
    """Open one connection described by ``config`` and wrap it in a session.

    Raises:
        DatabaseError: If the connection cannot be opened.
    """
    executor = DBAPIExecutor(Connection.open(config))
    factory = BuilderFactory(GrammarFactory, executor, config.dialect)
    _logger.info("Created %s query session", config.dialect)
    return Query(factory, cache=cache)


def create_pooled_query(
    config: ConnectionConfig,
    pool: ConnectionPool | PoolConfig | None = None,
    *,
    cache: CacheConfig | None = None,
) -> Query:
    """Build a session whose statements borrow connections from a pool.

    Args:
        config: Connection settings; also selects the dialect.
        pool: An existing pool to share, or the :class:`PoolConfig` for a new
            one (defaults apply when ``None``).
        cache: Optional result cache for SELECT reads.
    """
    if not isinstance(pool, ConnectionPool):
        pool = ConnectionPool(config, pool)
    factory = BuilderFactory(GrammarFactory, PooledExecutor(pool), config.dialect)
    _logger.info("Created pooled %s query session", config.dialect)
    return Query(factory, cache=cache)
