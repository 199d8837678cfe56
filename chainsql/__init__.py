"""chainsql – Fluent, dialect-aware SQL statement builder.

Chain Calls. Get Parameterized SQL.

Public API
----------
``query_for``
    Create a query session for a dialect, optionally bound to an executor.

``create_query`` / ``create_pooled_query``
    Create a query session that executes on a single connection or on a
    thread-safe connection pool.

Re-exported types
-----------------
Builders (``SelectBuilder``, ``InsertBuilder``, ``UpdateBuilder``,
``DeleteBuilder``), grammars, ``Raw``, configuration models, executors,
``ConnectionPool``, ``CacheManager`` and all error classes.

Extensibility
-------------
New dialect grammars can be registered via::

    from chainsql.compile.registry import GrammarFactory

    @GrammarFactory.register("oracle", "oci")
    class OracleGrammar(Grammar):
        ...

After registration, ``query_for("oracle")`` and
``Query.set_database_type("oci")`` pick it up automatically.
"""

from __future__ import annotations

from chainsql.builder import (
    AbstractBuilder,
    DeleteBuilder,
    InsertBuilder,
    SelectBuilder,
    UpdateBuilder,
)
from chainsql.cache import CacheManager
from chainsql.clauses import ClausePriority
from chainsql.compile import (
    CompiledSQL,
    Grammar,
    GrammarFactory,
    MySQLGrammar,
    PostgresGrammar,
    SQLiteGrammar,
    SqlCompiler,
)
from chainsql.condition import ConditionTree
from chainsql.config import CacheConfig, ConnectionConfig, PoolConfig
from chainsql.errors import (
    ChainSQLError,
    ConfigurationError,
    DatabaseError,
    ExecutorUnavailableError,
    PoolExhaustedError,
    ShapeMismatchError,
)
from chainsql.execute import (
    Connection,
    DBAPIExecutor,
    Executor,
    PooledExecutor,
)
from chainsql.factory import BuilderFactory, create_pooled_query, create_query
from chainsql.identifier import TableIdentifier
from chainsql.pool import ConnectionPool
from chainsql.query import Query
from chainsql.raw import Raw, raw

__all__ = [
    # Sessions
    "query_for",
    "create_query",
    "create_pooled_query",
    "Query",
    "BuilderFactory",
    # Builders
    "AbstractBuilder",
    "SelectBuilder",
    "InsertBuilder",
    "UpdateBuilder",
    "DeleteBuilder",
    "ConditionTree",
    "ClausePriority",
    "TableIdentifier",
    "Raw",
    "raw",
    # Compilation
    "CompiledSQL",
    "Grammar",
    "GrammarFactory",
    "MySQLGrammar",
    "PostgresGrammar",
    "SQLiteGrammar",
    "SqlCompiler",
    # Configuration
    "ConnectionConfig",
    "PoolConfig",
    "CacheConfig",
    # Execution
    "Executor",
    "Connection",
    "DBAPIExecutor",
    "PooledExecutor",
    "ConnectionPool",
    "CacheManager",
    # Errors
    "ChainSQLError",
    "ConfigurationError",
    "ShapeMismatchError",
    "ExecutorUnavailableError",
    "PoolExhaustedError",
    "DatabaseError",
]


def query_for(
    database_type: str = "mysql",
    executor: Executor | None = None,
    *,
    cache: CacheConfig | None = None,
) -> Query:
    """Create a query session for ``database_type``.

    Without an executor the session only builds SQL::

        q = chainsql.query_for("postgres")
        sql, bindings = q.select("id").from_("users").where("id = ?", 5).build()
        # SELECT "id" FROM "users" WHERE id = ?    [5]

    Args:
        database_type: Dialect name or alias (``mysql``, ``mariadb``,
            ``postgresql``, ``postgres``, ``pgsql``, ``sqlite``, ``sqlite3``).
        executor: Optional executor used by execute / fetch methods.
        cache: Optional result cache for SELECT reads.

    Returns:
        A :class:`Query` session.

    Raises:
        ConfigurationError: If ``database_type`` is not a registered dialect.
    """
    return Query(BuilderFactory(GrammarFactory, executor, database_type), cache=cache)
