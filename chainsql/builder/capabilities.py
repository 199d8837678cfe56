"""Capability mixins, one per clause family.

Each concrete builder inherits exactly the capabilities its statement kind
supports (DELETE has WHERE and JOIN but no SET, and so on).  A capability
only builds clause objects and registers them on the builder's
:class:`~chainsql.builder.base.ClauseList`; rendering is left to the
grammar.

Mixin state lives in class-level defaults that are always rebound, never
mutated in place, so builders never share state through the class.

Capabilities
------------
SelectionCapability     — select / add_select / distinct
JoinCapability          — join variants, sub-query joins
WhereCapability         — where / or_where / where_in / where_null / …
HavingCapability        — having / or_having / having_in
GroupByCapability       — group_by
OrderByCapability       — order_by (replaces) / add_order_by (appends)
LimitCapability         — limit / paginate
SetCapability           — set (last write wins)
ValuesCapability        — values (row shape validated)
ExecutableCapability    — execute
InsertGetIdCapability   — insert_get_id
ResultCapability        — get_* fetchers, exists, count (cache aware)
"""

from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from typing import TYPE_CHECKING, Any, TypeVar

from chainsql.clauses import (
    GroupByClause,
    HavingClause,
    JoinClause,
    LimitClause,
    OrderByClause,
    SetClause,
    ValuesClause,
    WhereClause,
    normalize_direction,
)
from chainsql.compile.compiler import CompiledSQL
from chainsql.condition import ConditionExpr, ConditionTree
from chainsql.errors import ConfigurationError, ShapeMismatchError
from chainsql.execute.base import Executor
from chainsql.identifier import TableIdentifier
from chainsql.raw import Raw

if TYPE_CHECKING:
    from chainsql.builder.base import AbstractBuilder

    _Base = AbstractBuilder
else:
    _Base = object

T = TypeVar("T")


def _in_list(column: str, count: int, negate: bool = False) -> str:
    placeholders = ", ".join(["?"] * count)
    keyword = "NOT IN" if negate else "IN"
    return f"{column} {keyword} ({placeholders})"


def _object_kind(kind: str, cls: type | None) -> str:
    # Rows hydrated into different classes are cached apart.
    if cls is None:
        return kind
    return f"{kind}_{cls.__module__}.{cls.__qualname__}"


# ---------------------------------------------------------------------------
# SELECT list
# ---------------------------------------------------------------------------


class SelectionCapability(_Base):
    _columns: tuple[str | Raw, ...] = ("*",)
    _distinct: bool = False

    def select(self, *columns: str | Raw):
        """Replace the selected columns (``*`` when called with none)."""
        self._columns = tuple(columns) or ("*",)
        return self

    def add_select(self, *columns: str | Raw):
        """Append columns to the current selection."""
        current = () if self._columns == ("*",) else self._columns
        self._columns = (*current, *columns) or ("*",)
        return self

    def distinct(self, value: bool = True):
        self._distinct = value
        return self

    @property
    def columns(self) -> tuple[str | Raw, ...]:
        return self._columns


# ---------------------------------------------------------------------------
# JOIN
# ---------------------------------------------------------------------------


class JoinCapability(_Base):
    def join(self, table: str, condition: str, *bindings: Any):
        return self._add_join("INNER", table, condition, bindings)

    def left_join(self, table: str, condition: str, *bindings: Any):
        return self._add_join("LEFT", table, condition, bindings)

    def right_join(self, table: str, condition: str, *bindings: Any):
        return self._add_join("RIGHT", table, condition, bindings)

    def full_join(self, table: str, condition: str, *bindings: Any):
        return self._add_join("FULL OUTER", table, condition, bindings)

    def join_sub(
        self,
        callback: Callable[[Any], Any],
        alias: str,
        condition: str,
        *bindings: Any,
        join_type: str = "INNER",
    ):
        """Join a sub-query configured by ``callback``.

        ``callback`` receives a fresh builder with an empty table name and
        must at least call ``from_()`` on it.  The sub-query is compiled
        immediately; its bindings come before ``bindings``.

        Example::

            q.from_("users u").join_sub(
                lambda s: s.from_("orders").select("user_id").where("total > ?", 100),
                "o",
                "o.user_id = u.id",
            )
        """
        sub = self._make_sub_builder()
        callback(sub)
        sub_sql, sub_bindings = sub.build()
        table = TableIdentifier.subquery(sub_sql, alias)
        self._clauses.add(
            JoinClause(join_type, table, condition, self.grammar, (*sub_bindings, *bindings))
        )
        return self

    def left_join_sub(
        self, callback: Callable[[Any], Any], alias: str, condition: str, *bindings: Any
    ):
        return self.join_sub(callback, alias, condition, *bindings, join_type="LEFT")

    def _make_sub_builder(self) -> AbstractBuilder:
        return type(self)("", self._compiler)

    def _add_join(self, join_type: str, table: str, condition: str, bindings: tuple):
        clause = JoinClause(
            join_type, TableIdentifier.parse(table), condition, self.grammar, tuple(bindings)
        )
        self._clauses.add(clause)
        return self


# ---------------------------------------------------------------------------
# WHERE / HAVING
# ---------------------------------------------------------------------------


class WhereCapability(_Base):
    _where: ConditionTree | None = None

    def where(self, expr: ConditionExpr, *bindings: Any):
        """AND a condition onto the WHERE tree.

        ``expr`` is a SQL fragment with ``?`` placeholders, a :class:`Raw`,
        or a callable receiving a nested :class:`ConditionTree` whose
        conditions are grouped in parentheses.
        """
        self._where_tree().where(expr, *bindings)
        return self

    def and_where(self, expr: ConditionExpr, *bindings: Any):
        return self.where(expr, *bindings)

    def or_where(self, expr: ConditionExpr, *bindings: Any):
        self._where_tree().or_where(expr, *bindings)
        return self

    def where_in(self, column: str, values: Sequence[Any]):
        """``column IN (?, …)``; an empty ``values`` adds nothing."""
        if not values:
            return self
        return self.where(_in_list(column, len(values)), *values)

    def and_where_in(self, column: str, values: Sequence[Any]):
        return self.where_in(column, values)

    def or_where_in(self, column: str, values: Sequence[Any]):
        if not values:
            return self
        return self.or_where(_in_list(column, len(values)), *values)

    def where_not_in(self, column: str, values: Sequence[Any]):
        if not values:
            return self
        return self.where(_in_list(column, len(values), negate=True), *values)

    def where_null(self, column: str):
        return self.where(f"{column} IS NULL")

    def where_not_null(self, column: str):
        return self.where(f"{column} IS NOT NULL")

    def where_between(self, column: str, low: Any, high: Any):
        return self.where(f"{column} BETWEEN ? AND ?", low, high)

    def _where_tree(self) -> ConditionTree:
        # One WHERE clause per builder; later calls extend its tree.
        if self._where is None:
            self._where = ConditionTree(self.grammar)
            self._clauses.add(WhereClause(self._where))
        return self._where


class HavingCapability(_Base):
    _having: ConditionTree | None = None

    def having(self, expr: ConditionExpr, *bindings: Any):
        self._having_tree().where(expr, *bindings)
        return self

    def and_having(self, expr: ConditionExpr, *bindings: Any):
        return self.having(expr, *bindings)

    def or_having(self, expr: ConditionExpr, *bindings: Any):
        self._having_tree().or_where(expr, *bindings)
        return self

    def having_in(self, column: str, values: Sequence[Any]):
        if not values:
            return self
        return self.having(_in_list(column, len(values)), *values)

    def and_having_in(self, column: str, values: Sequence[Any]):
        return self.having_in(column, values)

    def or_having_in(self, column: str, values: Sequence[Any]):
        if not values:
            return self
        return self.or_having(_in_list(column, len(values)), *values)

    def _having_tree(self) -> ConditionTree:
        if self._having is None:
            self._having = ConditionTree(self.grammar)
            self._clauses.add(HavingClause(self._having))
        return self._having


# ---------------------------------------------------------------------------
# GROUP BY / ORDER BY / LIMIT
# ---------------------------------------------------------------------------


class GroupByCapability(_Base):
    _group_columns: tuple[str | Raw, ...] = ()

    def group_by(self, *columns: str | Raw):
        """Append grouping columns."""
        self._group_columns = (*self._group_columns, *columns)
        self._clauses.replace(GroupByClause(self._group_columns, self.grammar))
        return self


class OrderByCapability(_Base):
    _orderings: tuple[tuple[str | Raw, str], ...] = ()

    def order_by(self, column: str | Raw, direction: str = "ASC"):
        """Replace the ordering with ``column``."""
        self._orderings = ((column, normalize_direction(direction)),)
        self._clauses.replace(OrderByClause(self._orderings, self.grammar))
        return self

    def add_order_by(self, column: str | Raw, direction: str = "ASC"):
        """Append ``column`` to the current ordering."""
        self._orderings = (*self._orderings, (column, normalize_direction(direction)))
        self._clauses.replace(OrderByClause(self._orderings, self.grammar))
        return self


class LimitCapability(_Base):
    def limit(self, limit: int, offset: int | None = None):
        self._clauses.replace(LimitClause(limit, offset))
        return self

    def paginate(self, per_page: int, page: int = 1):
        """Limit to page ``page`` (1-based) of ``per_page`` rows."""
        if page < 1:
            raise ConfigurationError(f"Page must be at least 1, got {page}.", setting="page")
        return self.limit(per_page, (page - 1) * per_page)


# ---------------------------------------------------------------------------
# UPDATE / INSERT data
# ---------------------------------------------------------------------------


class SetCapability(_Base):
    _assignments: tuple[tuple[str, Any], ...] = ()

    def set(self, column: str | Mapping[str, Any], value: Any = None):
        """Assign one column, or several from a mapping.

        Assigning a column twice keeps the last value; raw values
        (``Raw`` or ``"{...}"``) are inlined instead of bound.
        """
        data = dict(self._assignments)
        if isinstance(column, Mapping):
            data.update(column)
        else:
            data[column] = value
        self._assignments = tuple(data.items())
        self._clauses.replace(SetClause(self._assignments, self.grammar))
        return self

    def _require_assignments(self) -> None:
        if not self._assignments:
            raise ConfigurationError("No data to update", setting="set")


class ValuesCapability(_Base):
    _insert_columns: tuple[str, ...] = ()
    _rows: tuple[tuple[Any, ...], ...] = ()

    def values(self, data: Mapping[str, Any] | Sequence[Mapping[str, Any]]):
        """Add one row (a mapping) or several rows (a sequence of mappings).

        Every row must list the same columns in the same order as the first
        row ever added.

        Raises:
            ShapeMismatchError: If a row's columns differ from the first
                row's; no row of the call is added in that case.
        """
        rows = [data] if isinstance(data, Mapping) else list(data)
        columns = self._insert_columns
        new_rows: list[tuple[Any, ...]] = []
        for row in rows:
            keys = tuple(row.keys())
            if not columns:
                columns = keys
            if keys != columns:
                raise ShapeMismatchError(list(columns), list(keys))
            new_rows.append(tuple(row.values()))

        if new_rows:
            self._insert_columns = columns
            self._rows = (*self._rows, *new_rows)
            self._clauses.replace(ValuesClause(self._rows, self.grammar))
        return self

    def _require_rows(self) -> None:
        if not self._rows:
            raise ConfigurationError("No values to insert", setting="values")


# ---------------------------------------------------------------------------
# Execution
# ---------------------------------------------------------------------------


class ExecutableCapability(_Base):
    def execute(self) -> int:
        """Run the statement and return the number of affected rows.

        Raises:
            ExecutorUnavailableError: If no executor is attached.
            DatabaseError: If the driver fails.
        """
        executor = self._require_executor("execute")
        sql, bindings = self.build()
        executor.query(sql, bindings)
        return executor.row_count()


class InsertGetIdCapability(ExecutableCapability):
    def insert_get_id(self) -> int | str | None:
        """Run the INSERT and return the generated id.

        Numeric ids come back as ``int``; ``None`` means the driver did not
        report one.
        """
        executor = self._require_executor("insert_get_id")
        sql, bindings = self.build()
        executor.query(sql, bindings)
        last_id = executor.last_insert_id()
        if last_id is None or last_id is False:
            return None
        if isinstance(last_id, int):
            return last_id
        text = str(last_id)
        return int(text) if text.lstrip("-").isdigit() else last_id


class ResultCapability(_Base):
    """Read helpers for SELECT builders.

    Every read builds the statement, then goes through the builder's
    :class:`~chainsql.cache.CacheManager` when one is attached.  The cache key
    covers the fetch kind, the SQL and its bindings.
    """

    def get_assoc(self) -> dict[str, Any] | None:
        return self._fetch_cached(
            "assoc", lambda ex, sql, b: ex.query(sql, b).fetch("assoc")
        )

    def get_all_assoc(self) -> list[dict[str, Any]]:
        return self._fetch_cached(
            "all_assoc", lambda ex, sql, b: ex.query(sql, b).fetch_all("assoc")
        )

    def get_obj(self, cls: type | None = None) -> Any:
        return self._fetch_cached(
            _object_kind("obj", cls),
            lambda ex, sql, b: ex.query(sql, b).fetch("object", cls),
        )

    def get_all_obj(self, cls: type | None = None) -> list[Any]:
        return self._fetch_cached(
            _object_kind("all_obj", cls),
            lambda ex, sql, b: ex.query(sql, b).fetch_all("object", cls),
        )

    def get_value(self) -> Any:
        """Return the first column of the first row, or ``None``."""
        return self._fetch_cached(
            "value", lambda ex, sql, b: ex.query(sql, b).fetch_column(0)
        )

    def get_column(
        self, column: str, key_column: str | None = None
    ) -> list[Any] | dict[Any, Any]:
        """Return one column of every row.

        With ``key_column``, return a dict mapping that column's values to
        ``column``'s values instead.  Rows missing ``column`` are skipped.
        """

        def fetch(ex: Executor, sql: str, bindings: list[Any]) -> Any:
            rows = ex.query(sql, bindings).fetch_all("assoc")
            if key_column is None:
                return [row[column] for row in rows if column in row]
            return {row[key_column]: row[column] for row in rows if column in row}

        kind = f"column_{column}" + (f"_by_{key_column}" if key_column else "")
        return self._fetch_cached(kind, fetch)

    def exists(self) -> bool:
        return self._fetch_cached(
            "exists",
            lambda ex, sql, b: int(ex.query(sql, b).fetch_column(0) or 0) > 0,
            self.build_count(),
        )

    def count(self, column: str | None = None, distinct: bool = False) -> int:
        kind = "count" + (f"_{column}" if column else "") + ("_distinct" if distinct else "")
        return self._fetch_cached(
            kind,
            lambda ex, sql, b: int(ex.query(sql, b).fetch_column(0) or 0),
            self.build_count(column, distinct),
        )

    def _fetch_cached(
        self,
        kind: str,
        fetch: Callable[[Executor, str, list[Any]], T],
        compiled: CompiledSQL | None = None,
    ) -> T:
        sql, bindings = compiled if compiled is not None else self.build()

        def compute() -> T:
            return fetch(self._require_executor(kind), sql, bindings)

        if self._cache is None:
            return compute()
        key = self._cache.make_key(kind, sql, bindings)
        return self._cache.get_or_compute(key, compute)
