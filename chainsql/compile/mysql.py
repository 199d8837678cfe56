"""MySQL / MariaDB dialect grammar."""

from __future__ import annotations

from chainsql.compile.base import Grammar


class MySQLGrammar(Grammar):
    """Renders MySQL-flavoured SQL.

    Identifiers are quoted with backticks (`` ` ``) rather than
    double-quotes.  Placeholders are positional ``?``; executors translate
    them to the driver's ``paramstyle`` (``%s`` for ``PyMySQL`` and
    ``mysqlclient``).
    """

    @property
    def dialect_name(self) -> str:
        return "mysql"

    @property
    def table_quote(self) -> str:
        return "`"

    @property
    def column_quote(self) -> str:
        return "`"
