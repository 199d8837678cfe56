"""PostgreSQL dialect grammar."""

from __future__ import annotations

from chainsql.compile.base import Grammar


class PostgresGrammar(Grammar):
    """Renders PostgreSQL-flavoured SQL.

    Identifiers use ANSI double-quotes.  Placeholders are positional ``?``;
    executors translate them to ``%s`` for ``psycopg2`` and ``psycopg``.
    """

    @property
    def dialect_name(self) -> str:
        return "postgresql"

    @property
    def table_quote(self) -> str:
        return '"'

    @property
    def column_quote(self) -> str:
        return '"'
