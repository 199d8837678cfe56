"""Boolean condition trees backing WHERE and HAVING clauses.

A :class:`ConditionTree` is an append-only list of entries.  Each entry has
a glue keyword (``AND`` / ``OR``, ignored for the first entry), an already
rendered SQL expression, and the bindings for that expression::

    tree = ConditionTree(grammar)
    tree.where("users.status = ?", "active")
    tree.or_where(lambda t: t.where("age > ?", 18).where("age < ?", 65))

    tree.compile()    # '`users`.`status` = ? OR (age > ? AND age < ?)'
    tree.bindings()   # ['active', 18, 65]

Nested groups are built by passing a callable instead of a string: it
receives a fresh tree sharing the grammar, and the nested tree is compiled
in place, wrapped in parentheses.  Its bindings are spliced in at that
position, so bindings always come out depth-first, left to right.  Bindings
for a nested group belong inside the callable; passing them next to it
raises :class:`~chainsql.errors.ConfigurationError`.
"""
from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Union

from chainsql.errors import ConfigurationError
from chainsql.raw import Raw, to_raw

if TYPE_CHECKING:
    from chainsql.compile.base import Grammar

#: What ``where`` / ``or_where`` accept as an expression.
ConditionExpr = Union[str, Raw, Callable[["ConditionTree"], Any]]


@dataclass(frozen=True)
class ConditionEntry:
    """A single rendered condition with its glue keyword and bindings."""

    glue: str
    expr: str
    bindings: tuple[Any, ...] = field(default_factory=tuple)


class ConditionTree:
    """Ordered, possibly nested AND / OR expression list.

    Args:
        grammar: Optional grammar used to quote ``table.column`` tokens found
            in literal expressions.  Without one, expressions are kept as
            written.
    """

    def __init__(self, grammar: Grammar | None = None) -> None:
        self._grammar = grammar
        self._entries: list[ConditionEntry] = []

    # ------------------------------------------------------------------
    # Building
    # ------------------------------------------------------------------

    def where(self, expr: ConditionExpr, *bindings: Any) -> "ConditionTree":
        return self._add("AND", expr, bindings)

    def and_where(self, expr: ConditionExpr, *bindings: Any) -> "ConditionTree":
        return self.where(expr, *bindings)

    def or_where(self, expr: ConditionExpr, *bindings: Any) -> "ConditionTree":
        return self._add("OR", expr, bindings)

    def _add(
        self, glue: str, expr: ConditionExpr, bindings: tuple[Any, ...]
    ) -> "ConditionTree":
        if callable(expr) and not isinstance(expr, (str, Raw)):
            if bindings:
                raise ConfigurationError(
                    "Bindings cannot be passed with a nested condition callback; "
                    "bind them inside the callback instead.",
                    setting="bindings",
                )
            nested = ConditionTree(self._grammar)
            expr(nested)
            if nested.is_empty():
                return self
            sql = f"({nested.compile()})"
            bindings = tuple(nested.bindings())
        else:
            sql = self._render(expr)

        self._entries.append(ConditionEntry(glue=glue, expr=sql, bindings=tuple(bindings)))
        return self

    def _render(self, expr: str | Raw) -> str:
        raw_value = to_raw(expr)
        if raw_value is not None:
            return raw_value.sql
        if self._grammar is None:
            return expr  # type: ignore[return-value]
        return self._grammar.quote_qualified_names(expr)

    # ------------------------------------------------------------------
    # Output
    # ------------------------------------------------------------------

    def compile(self) -> str:
        """Render all entries in registration order ('' when empty)."""
        parts: list[str] = []
        for i, entry in enumerate(self._entries):
            parts.append(f"{entry.glue} {entry.expr}" if i else entry.expr)
        return " ".join(parts)

    def bindings(self) -> list[Any]:
        """Return all bindings, flattened in registration order."""
        return [value for entry in self._entries for value in entry.bindings]

    def is_empty(self) -> bool:
        return not self._entries

    @property
    def entries(self) -> tuple[ConditionEntry, ...]:
        return tuple(self._entries)

    def __len__(self) -> int:
        return len(self._entries)
