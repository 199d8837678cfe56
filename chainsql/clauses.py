"""Clause value objects.

Each clause handles exactly one SQL clause and is immutable once built.
``compile()`` returns the SQL fragment (``''`` when there is nothing to
emit) and ``bindings()`` returns its positional parameters in the order
their placeholders appear in the fragment.

Classes
-------
JoinClause     — ``<type> JOIN <table | (subquery) AS alias> ON …``
SetClause      — ``SET col = ?, col = <raw>``
WhereClause    — ``WHERE <condition tree>``
GroupByClause  — ``GROUP BY col, …``
HavingClause   — ``HAVING <condition tree>``
OrderByClause  — ``ORDER BY col ASC|DESC, …``
LimitClause    — ``LIMIT n [OFFSET m]``
ValuesClause   — ``VALUES (?, ?), (?, ?)``

Builders register clauses with a :class:`ClausePriority`; lower priorities
come first in the compiled statement.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum
from typing import TYPE_CHECKING, Any, ClassVar, Protocol

from chainsql.condition import ConditionTree
from chainsql.errors import ConfigurationError
from chainsql.identifier import TableIdentifier
from chainsql.raw import to_raw

if TYPE_CHECKING:
    from chainsql.compile.base import Grammar


class ClausePriority(IntEnum):
    """Position of each clause kind in a compiled statement."""

    JOIN = 10
    SET = 15
    WHERE = 20
    GROUP_BY = 30
    HAVING = 40
    ORDER_BY = 50
    LIMIT = 60
    VALUES = 70


#: Join types accepted by :class:`JoinClause`.
JOIN_TYPES: frozenset[str] = frozenset({"INNER", "LEFT", "RIGHT", "FULL OUTER"})


class Clause(Protocol):
    """Structural interface shared by every clause."""

    priority: ClassVar[ClausePriority]

    def compile(self) -> str: ...

    def bindings(self) -> list[Any]: ...


def normalize_direction(direction: str) -> str:
    """Return ``'DESC'`` for any spelling of desc, ``'ASC'`` for anything else."""
    return "DESC" if str(direction).strip().upper() == "DESC" else "ASC"


@dataclass(frozen=True)
class JoinClause:
    """A single ``JOIN … ON …`` fragment.

    ``table.column`` tokens of the ON condition are quoted with the
    grammar.  When ``table`` is a sub-query, ``bindings`` already starts
    with the sub-query bindings.
    """

    priority: ClassVar[ClausePriority] = ClausePriority.JOIN

    join_type: str
    table: TableIdentifier
    on: str
    grammar: Grammar
    values: tuple[Any, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        if self.join_type not in JOIN_TYPES:
            raise ConfigurationError(
                f"Unsupported join type '{self.join_type}'. "
                f"Expected one of {sorted(JOIN_TYPES)}.",
                setting="join_type",
            )

    def compile(self) -> str:
        table_sql = self.grammar.wrap_table(self.table)
        on_sql = self.grammar.quote_qualified_names(self.on)
        return f"{self.join_type} JOIN {table_sql} ON {on_sql}"

    def bindings(self) -> list[Any]:
        return list(self.values)


@dataclass(frozen=True)
class SetClause:
    """``SET`` assignments; raw values are inlined, others bound."""

    priority: ClassVar[ClausePriority] = ClausePriority.SET

    assignments: tuple[tuple[str, Any], ...]
    grammar: Grammar

    def compile(self) -> str:
        if not self.assignments:
            return ""
        parts: list[str] = []
        for column, value in self.assignments:
            raw_value = to_raw(value)
            rhs = raw_value.sql if raw_value is not None else self.grammar.placeholder
            parts.append(f"{self.grammar.wrap_identifier(column)} = {rhs}")
        return "SET " + ", ".join(parts)

    def bindings(self) -> list[Any]:
        return [value for _, value in self.assignments if to_raw(value) is None]


@dataclass(frozen=True)
class WhereClause:
    priority: ClassVar[ClausePriority] = ClausePriority.WHERE

    tree: ConditionTree

    def compile(self) -> str:
        sql = self.tree.compile()
        return f"WHERE {sql}" if sql else ""

    def bindings(self) -> list[Any]:
        return self.tree.bindings()


@dataclass(frozen=True)
class HavingClause:
    priority: ClassVar[ClausePriority] = ClausePriority.HAVING

    tree: ConditionTree

    def compile(self) -> str:
        sql = self.tree.compile()
        return f"HAVING {sql}" if sql else ""

    def bindings(self) -> list[Any]:
        return self.tree.bindings()


@dataclass(frozen=True)
class GroupByClause:
    priority: ClassVar[ClausePriority] = ClausePriority.GROUP_BY

    columns: tuple[Any, ...]
    grammar: Grammar

    def compile(self) -> str:
        if not self.columns:
            return ""
        return "GROUP BY " + ", ".join(self.grammar.wrap_identifier(c) for c in self.columns)

    def bindings(self) -> list[Any]:
        return []


@dataclass(frozen=True)
class OrderByClause:
    """``ORDER BY``; each ordering is a ``(column, direction)`` pair."""

    priority: ClassVar[ClausePriority] = ClausePriority.ORDER_BY

    orderings: tuple[tuple[Any, str], ...]
    grammar: Grammar

    def compile(self) -> str:
        if not self.orderings:
            return ""
        parts = [
            f"{self.grammar.wrap_identifier(column)} {normalize_direction(direction)}"
            for column, direction in self.orderings
        ]
        return "ORDER BY " + ", ".join(parts)

    def bindings(self) -> list[Any]:
        return []


@dataclass(frozen=True)
class LimitClause:
    priority: ClassVar[ClausePriority] = ClausePriority.LIMIT

    limit: int
    offset: int | None = None

    def __post_init__(self) -> None:
        if self.limit < 0:
            raise ConfigurationError(
                f"LIMIT must be non-negative, got {self.limit}.", setting="limit"
            )
        if self.offset is not None and self.offset < 0:
            raise ConfigurationError(
                f"OFFSET must be non-negative, got {self.offset}.", setting="offset"
            )

    def compile(self) -> str:
        if self.offset is None:
            return f"LIMIT {int(self.limit)}"
        return f"LIMIT {int(self.limit)} OFFSET {int(self.offset)}"

    def bindings(self) -> list[Any]:
        return []


@dataclass(frozen=True)
class ValuesClause:
    """``VALUES`` row groups for INSERT; bindings are row-major."""

    priority: ClassVar[ClausePriority] = ClausePriority.VALUES

    rows: tuple[tuple[Any, ...], ...]
    grammar: Grammar

    def compile(self) -> str:
        if not self.rows:
            return ""
        groups = []
        for row in self.rows:
            cells = []
            for value in row:
                raw_value = to_raw(value)
                cells.append(raw_value.sql if raw_value is not None else self.grammar.placeholder)
            groups.append("(" + ", ".join(cells) + ")")
        return "VALUES " + ", ".join(groups)

    def bindings(self) -> list[Any]:
        return [value for row in self.rows for value in row if to_raw(value) is None]
