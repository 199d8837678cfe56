"""SELECT statement builder."""

from __future__ import annotations

from chainsql.builder.base import AbstractBuilder
from chainsql.builder.capabilities import (
    GroupByCapability,
    HavingCapability,
    JoinCapability,
    LimitCapability,
    OrderByCapability,
    ResultCapability,
    SelectionCapability,
    WhereCapability,
)
from chainsql.clauses import ClausePriority
from chainsql.compile.compiler import CompiledSQL
from chainsql.raw import Raw

_COUNT_EXCLUDED = (ClausePriority.ORDER_BY, ClausePriority.LIMIT)


class SelectBuilder(
    SelectionCapability,
    JoinCapability,
    WhereCapability,
    GroupByCapability,
    HavingCapability,
    OrderByCapability,
    LimitCapability,
    ResultCapability,
    AbstractBuilder,
):
    """Builds ``SELECT [DISTINCT] … FROM …`` statements.

    Example::

        sql, bindings = (
            SelectBuilder("users", compiler)
            .select("id", "name")
            .where("status = ?", "active")
            .order_by("id")
            .limit(5)
            .build()
        )
    """

    def from_(self, table: str) -> "SelectBuilder":
        """Set the table to select from (``from`` is a Python keyword)."""
        self._table = table
        return self

    def _do_build(self) -> CompiledSQL:
        clauses = self._clauses.ordered()
        sql = self._compiler.compile_select(self._table, self._columns, clauses, self._distinct)
        return CompiledSQL(sql, self._clauses.bindings(clauses))

    def build_count(self, column: str | None = None, distinct: bool = False) -> CompiledSQL:
        """Build a ``COUNT`` over the same filters, aliased ``total_count``.

        ORDER BY and LIMIT are dropped (with any bindings they carry); JOIN,
        WHERE, GROUP BY and HAVING are kept.

        Args:
            column: Column to count; ``None`` counts rows (``COUNT(*)``).
            distinct: Count distinct values of ``column``.
        """
        self._validate_table_name()
        target = self.grammar.wrap_identifier(column) if column else "*"
        inner = f"DISTINCT {target}" if distinct else target
        expression = Raw(f"COUNT({inner}) AS total_count")

        clauses = self._clauses.ordered(exclude=_COUNT_EXCLUDED)
        sql = self._compiler.compile_select(self._table, [expression], clauses, False)
        return CompiledSQL(sql, self._clauses.bindings(clauses))
