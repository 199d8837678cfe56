"""SQLite dialect grammar."""
from __future__ import annotations

from chainsql.compile.base import Grammar


class SQLiteGrammar(Grammar):
    """Renders SQLite-flavoured SQL.

    Parameter style: ``?`` – native to Python's built-in ``sqlite3``
    (``cursor.execute(sql, sequence)``), so no translation is needed.
    """

    @property
    def dialect_name(self) -> str:
        return "sqlite"

    @property
    def table_quote(self) -> str:
        return '"'

    @property
    def column_quote(self) -> str:
        return '"'
