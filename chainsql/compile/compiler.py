"""Compiler: thin orchestration between builders and grammars."""
from __future__ import annotations

from collections.abc import Iterable, Sequence
from typing import TYPE_CHECKING, Any, NamedTuple

from chainsql.clauses import Clause
from chainsql.compile.base import Grammar
from chainsql.raw import Raw

if TYPE_CHECKING:
    from chainsql.builder.base import AbstractBuilder


class CompiledSQL(NamedTuple):
    """The output of a successful build.

    Unpacks like a pair::

        sql, bindings = builder.build()

    Attributes:
        sql: The compiled SQL string with positional ``?`` placeholders.
        bindings: Values for the placeholders, in placeholder order.
    """

    sql: str
    bindings: list[Any]


class SqlCompiler:
    """Binds one :class:`Grammar` to the builders that use it.

    Args:
        grammar: Dialect grammar used for quoting and statement assembly.
    """

    def __init__(self, grammar: Grammar) -> None:
        self._grammar = grammar

    @property
    def grammar(self) -> Grammar:
        return self._grammar

    def get_grammar(self) -> Grammar:
        return self._grammar

    def compile(self, builder: AbstractBuilder) -> CompiledSQL:
        """Build ``builder`` and return its SQL and bindings."""
        return builder.build()

    def compile_select(
        self,
        table: str,
        columns: Sequence[str | Raw],
        clauses: Iterable[Clause],
        distinct: bool = False,
    ) -> str:
        return self._grammar.compile_select(table, columns, clauses, distinct)

    def compile_insert(
        self, table: str, columns: Sequence[str], clauses: Iterable[Clause]
    ) -> str:
        return self._grammar.compile_insert(table, columns, clauses)

    def compile_update(self, table: str, clauses: Iterable[Clause]) -> str:
        return self._grammar.compile_update(table, clauses)

    def compile_delete(self, table: str, clauses: Iterable[Clause]) -> str:
        return self._grammar.compile_delete(table, clauses)

    def __repr__(self) -> str:
        return f"SqlCompiler({self._grammar!r})"
