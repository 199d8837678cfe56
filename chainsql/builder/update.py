"""UPDATE statement builder."""

from __future__ import annotations

from chainsql.builder.base import AbstractBuilder
from chainsql.builder.capabilities import (
    ExecutableCapability,
    JoinCapability,
    SetCapability,
    WhereCapability,
)
from chainsql.builder.select import SelectBuilder
from chainsql.compile.compiler import CompiledSQL


class UpdateBuilder(
    JoinCapability, SetCapability, WhereCapability, ExecutableCapability, AbstractBuilder
):
    """Builds ``UPDATE … [JOIN …] SET … [WHERE …]`` statements.

    SET bindings always precede WHERE bindings.  Sub-query joins are
    configured on a :class:`~chainsql.builder.select.SelectBuilder`.
    """

    def _do_build(self) -> CompiledSQL:
        self._require_assignments()
        clauses = self._clauses.ordered()
        sql = self._compiler.compile_update(self._table, clauses)
        return CompiledSQL(sql, self._clauses.bindings(clauses))

    def _make_sub_builder(self) -> AbstractBuilder:
        return SelectBuilder("", self._compiler)
