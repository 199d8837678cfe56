"""INSERT statement builder."""

from __future__ import annotations

from chainsql.builder.base import AbstractBuilder
from chainsql.builder.capabilities import InsertGetIdCapability, ValuesCapability
from chainsql.compile.compiler import CompiledSQL


class InsertBuilder(ValuesCapability, InsertGetIdCapability, AbstractBuilder):
    """Builds ``INSERT INTO … (cols) VALUES (…), (…)`` statements.

    Rows are added with :meth:`values`; bindings are flattened row-major.
    """

    def _do_build(self) -> CompiledSQL:
        self._require_rows()
        clauses = self._clauses.ordered()
        sql = self._compiler.compile_insert(self._table, self._insert_columns, clauses)
        return CompiledSQL(sql, self._clauses.bindings(clauses))
