"""Builder base class and the clause store shared by every capability.

Clause registration
-------------------
Capabilities never touch SQL text directly: they build immutable clause
objects (see :mod:`chainsql.clauses`) and register them on the builder's
:class:`ClauseList`.  At build time the list is sorted by
:class:`~chainsql.clauses.ClausePriority`; the sort is stable, so clauses
sharing a priority keep their registration order.  Bindings are collected
from the same sorted sequence, which keeps placeholders and values aligned.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable, Iterable, Iterator
from typing import Any, TypeVar

from chainsql.cache import CacheManager
from chainsql.clauses import Clause, ClausePriority
from chainsql.compile.base import Grammar
from chainsql.compile.compiler import CompiledSQL, SqlCompiler
from chainsql.errors import ConfigurationError, ExecutorUnavailableError
from chainsql.execute.base import Executor

B = TypeVar("B", bound="AbstractBuilder")


class ClauseList:
    """Ordered clause registry owned by one builder."""

    def __init__(self) -> None:
        self._items: list[Clause] = []

    def add(self, clause: Clause) -> None:
        self._items.append(clause)

    def replace(self, clause: Clause) -> None:
        """Drop every clause of the same type, then register ``clause``."""
        self.remove_kind(type(clause))
        self._items.append(clause)

    def remove_kind(self, kind: type) -> None:
        self._items = [c for c in self._items if not isinstance(c, kind)]

    def find(self, kind: type) -> Clause | None:
        for clause in self._items:
            if isinstance(clause, kind):
                return clause
        return None

    def ordered(self, exclude: Iterable[ClausePriority] = ()) -> list[Clause]:
        """Return clauses sorted by priority, optionally skipping some kinds."""
        skipped = frozenset(exclude)
        kept = [c for c in self._items if c.priority not in skipped]
        return sorted(kept, key=lambda c: c.priority)

    @staticmethod
    def bindings(clauses: Iterable[Clause]) -> list[Any]:
        return [value for clause in clauses for value in clause.bindings()]

    def __iter__(self) -> Iterator[Clause]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)


class AbstractBuilder(ABC):
    """Common state and plumbing for SELECT / INSERT / UPDATE / DELETE builders.

    Args:
        table: Target table, optionally aliased (``"users u"``,
            ``"users AS u"``).  Validated at :meth:`build` time.
        compiler: Compiler bound to the dialect grammar.
        executor: Optional executor used by the execute / fetch methods.
        cache: Optional result cache used by SELECT fetch methods.
    """

    def __init__(
        self,
        table: str,
        compiler: SqlCompiler,
        executor: Executor | None = None,
        cache: CacheManager | None = None,
    ) -> None:
        self._table = table
        self._compiler = compiler
        self._executor = executor
        self._cache = cache
        self._clauses = ClauseList()

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def table(self) -> str:
        return self._table

    @property
    def compiler(self) -> SqlCompiler:
        return self._compiler

    @property
    def grammar(self) -> Grammar:
        return self._compiler.grammar

    @property
    def executor(self) -> Executor | None:
        return self._executor

    @property
    def cache(self) -> CacheManager | None:
        return self._cache

    # ------------------------------------------------------------------
    # Building
    # ------------------------------------------------------------------

    def build(self) -> CompiledSQL:
        """Compile the current state into SQL and bindings.

        Every call recomputes from the registered clauses; a failing build
        leaves the builder unchanged.

        Raises:
            ConfigurationError: If the table name is empty, or the statement
                lacks required data (SET assignments, VALUES rows).
        """
        self._validate_table_name()
        return self._do_build()

    @abstractmethod
    def _do_build(self) -> CompiledSQL:
        """Render the statement; the table name is already validated."""

    def to_sql(self) -> str:
        return self.build().sql

    def get_bindings(self) -> list[Any]:
        return self.build().bindings

    def when(
        self: B,
        condition: Any,
        callback: Callable[[B], Any],
        default: Callable[[B], Any] | None = None,
    ) -> B:
        """Apply ``callback`` when ``condition`` is truthy, else ``default``.

        Callbacks may return the builder or nothing; either way the builder
        is returned for chaining.
        """
        if condition:
            result = callback(self)
        elif default is not None:
            result = default(self)
        else:
            return self
        return self if result is None else result

    # ------------------------------------------------------------------
    # Helpers for capabilities
    # ------------------------------------------------------------------

    def _validate_table_name(self) -> None:
        if not self._table or not self._table.strip():
            raise ConfigurationError("Table name cannot be empty", setting="table")

    def _require_executor(self, operation: str) -> Executor:
        if self._executor is None:
            raise ExecutorUnavailableError(operation)
        return self._executor

    def __repr__(self) -> str:
        return f"<{type(self).__name__} table={self._table!r} clauses={len(self._clauses)}>"
