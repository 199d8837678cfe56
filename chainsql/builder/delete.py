"""DELETE statement builder."""

from __future__ import annotations

from chainsql.builder.base import AbstractBuilder
from chainsql.builder.capabilities import ExecutableCapability, JoinCapability, WhereCapability
from chainsql.builder.select import SelectBuilder
from chainsql.compile.compiler import CompiledSQL


class DeleteBuilder(JoinCapability, WhereCapability, ExecutableCapability, AbstractBuilder):
    """Builds ``DELETE FROM … [JOIN …] [WHERE …]`` statements.

    Without a ``where`` call every row of the table is deleted.
    """

    def _do_build(self) -> CompiledSQL:
        clauses = self._clauses.ordered()
        sql = self._compiler.compile_delete(self._table, clauses)
        return CompiledSQL(sql, self._clauses.bindings(clauses))

    def _make_sub_builder(self) -> AbstractBuilder:
        return SelectBuilder("", self._compiler)
