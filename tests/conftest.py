"""Shared pytest fixtures for chainsql unit and integration tests."""
from __future__ import annotations

import sqlite3
from collections.abc import Callable, Iterator
from pathlib import Path

import pytest
from cachelib import SimpleCache

from chainsql import Connection, DBAPIExecutor, Query, query_for
from chainsql.config import CacheConfig
from tests.fixtures import RecordingExecutor, load_ddl, load_seed


@pytest.fixture()
def mysql() -> Query:
    """SQL-only MySQL session."""
    return query_for("mysql")


@pytest.fixture()
def postgres() -> Query:
    """SQL-only PostgreSQL session."""
    return query_for("postgresql")


@pytest.fixture()
def recorder() -> RecordingExecutor:
    return RecordingExecutor()


@pytest.fixture()
def cache_config() -> CacheConfig:
    return CacheConfig(backend=SimpleCache(), prefix="test")


@pytest.fixture()
def sqlite_db() -> Iterator[sqlite3.Connection]:
    """Seeded in-memory SQLite database."""
    conn = sqlite3.connect(":memory:")
    conn.executescript(load_ddl("sqlite"))
    conn.executescript(load_seed("sqlite"))
    conn.commit()
    yield conn
    conn.close()


@pytest.fixture()
def sqlite_query(sqlite_db: sqlite3.Connection) -> Query:
    """Executing SQLite session over the seeded in-memory database."""
    return query_for("sqlite", DBAPIExecutor(Connection.wrap(sqlite_db)))


@pytest.fixture()
def sqlite_file(tmp_path: Path) -> Path:
    """Seeded SQLite database file, for tests that open several connections."""
    path = tmp_path / "chainsql.db"
    conn = sqlite3.connect(path)
    conn.executescript(load_ddl("sqlite"))
    conn.executescript(load_seed("sqlite"))
    conn.commit()
    conn.close()
    return path


@pytest.fixture()
def sqlite_factory(sqlite_file: Path) -> Callable[[], Connection]:
    """Connection factory over ``sqlite_file`` usable from any thread."""

    def factory() -> Connection:
        return Connection.wrap(sqlite3.connect(sqlite_file, check_same_thread=False))

    return factory
