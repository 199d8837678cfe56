"""chainsql execution layer: run compiled SQL on DB-API connections."""
from chainsql.execute.base import Executor, translate_placeholders
from chainsql.execute.connection import Connection
from chainsql.execute.dbapi import CursorExecutor, DBAPIExecutor
from chainsql.execute.pooled import PooledExecutor

__all__ = [
    "Connection",
    "CursorExecutor",
    "DBAPIExecutor",
    "Executor",
    "PooledExecutor",
    "translate_placeholders",
]
