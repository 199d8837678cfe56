"""Grammar abstraction: identifier quoting and statement assembly.

The Template Method pattern (GoF) is used:
- ``Grammar`` defines the algorithm skeleton for quoting identifiers and
  assembling SELECT / INSERT / UPDATE / DELETE statements.
- ``MySQLGrammar``, ``PostgresGrammar`` and ``SQLiteGrammar`` override the
  dialect-specific steps (the table and column quote characters).

Grammars hold no per-statement state.  A single instance can be shared by
any number of builders and threads.
"""
from __future__ import annotations

import re
from abc import ABC, abstractmethod
from collections.abc import Iterable, Sequence

from chainsql.clauses import Clause, ClausePriority
from chainsql.identifier import TableIdentifier
from chainsql.raw import Raw, to_raw

_ALIASED = re.compile(r"^(.+?)(?:\s+as\s+|\s+)([a-z0-9_]+)$", re.IGNORECASE)
_QUALIFIED_NAME = re.compile(r"\b[A-Za-z_]\w*(?:\.[A-Za-z_]\w*)+\b")
_SINGLE_QUOTE = re.compile(r"(?<!\\)'")
_DOUBLE_QUOTE = re.compile(r'(?<!\\)"')

_UPDATE_KINDS = frozenset({ClausePriority.JOIN, ClausePriority.SET, ClausePriority.WHERE})
_DELETE_KINDS = frozenset({ClausePriority.JOIN, ClausePriority.WHERE})


class Grammar(ABC):
    """Abstract base for dialect-specific grammars.

    Subclasses provide the quote characters; everything else is shared.
    """

    #: Positional placeholder emitted for every bound value.
    placeholder: str = "?"

    @property
    @abstractmethod
    def dialect_name(self) -> str:
        """Return the canonical dialect name (e.g. ``'mysql'``)."""

    @property
    @abstractmethod
    def table_quote(self) -> str:
        """Return the character used to quote table names."""

    @property
    @abstractmethod
    def column_quote(self) -> str:
        """Return the character used to quote column names and aliases."""

    # ------------------------------------------------------------------
    # Quoting
    # ------------------------------------------------------------------

    def quote_table_segment(self, name: str) -> str:
        q = self.table_quote
        escaped = name.strip().replace(q, q + q)
        return f"{q}{escaped}{q}"

    def quote_column_segment(self, name: str) -> str:
        q = self.column_quote
        escaped = name.strip().replace(q, q + q)
        return f"{q}{escaped}{q}"

    def wrap_identifier(self, identifier: str | Raw) -> str:
        """Quote a column reference, honouring aliases and raw expressions.

        Handles ``*``, ``column``, ``table.column``, ``table.*``,
        ``column AS alias`` / ``column alias`` and raw input (``Raw`` or a
        ``{...}`` string), which is returned verbatim.

        Args:
            identifier: The identifier as written by the caller.

        Returns:
            The dialect-quoted identifier.
        """
        raw_value = to_raw(identifier)
        if raw_value is not None:
            return raw_value.sql

        text = identifier.strip()
        if text == "*":
            return text

        match = _ALIASED.match(text)
        if match:
            field_sql = self.wrap_segments(match.group(1).strip())
            alias_sql = self.quote_column_segment(match.group(2))
            return f"{field_sql} AS {alias_sql}"

        return self.wrap_segments(text)

    def wrap_segments(self, identifier: str) -> str:
        """Quote a dotted identifier segment by segment, without alias parsing.

        Leading segments are table (or schema) names; the last one is the
        column, or ``*``.
        """
        segments = [s.strip() for s in identifier.split(".")]
        *qualifiers, last = segments
        parts = [self.quote_table_segment(s) for s in qualifiers]
        parts.append(last if last == "*" else self.quote_column_segment(last))
        return ".".join(parts)

    def wrap_table(self, table: TableIdentifier | str) -> str:
        """Quote a table reference, including its alias or sub-query body."""
        if not isinstance(table, TableIdentifier):
            table = TableIdentifier.parse(table)

        if table.is_subquery:
            wrapped = f"({table.table})"
        else:
            wrapped = ".".join(
                self.quote_table_segment(s) for s in table.table.split(".")
            )

        if table.alias:
            return f"{wrapped} AS {self.quote_table_segment(table.alias)}"
        return wrapped

    def quote_qualified_names(self, expr: str | Raw) -> str:
        """Quote every dotted name (``t.col``, ``s.t.col``) of a SQL expression.

        Tokens inside single- or double-quoted string literals are left
        alone (naive quote-parity scan).  Raw input is returned unwrapped
        and otherwise untouched.
        """
        raw_value = to_raw(expr)
        if raw_value is not None:
            return raw_value.sql

        def _replace(match: re.Match[str]) -> str:
            if _inside_quotes(expr, match.start()):
                return match.group(0)
            return self.wrap_segments(match.group(0))

        return _QUALIFIED_NAME.sub(_replace, expr)

    # ------------------------------------------------------------------
    # Statement assembly
    # ------------------------------------------------------------------

    def compile_select(
        self,
        table: str,
        columns: Sequence[str | Raw],
        clauses: Iterable[Clause],
        distinct: bool = False,
    ) -> str:
        if not columns or (len(columns) == 1 and columns[0] == "*"):
            cols = "*"
        else:
            cols = ", ".join(self.wrap_identifier(c) for c in columns)
        prefix = "SELECT DISTINCT" if distinct else "SELECT"
        head = f"{prefix} {cols} FROM {self.wrap_table(table)}"
        return self._assemble(head, clauses)

    def compile_insert(
        self,
        table: str,
        columns: Sequence[str],
        clauses: Iterable[Clause],
    ) -> str:
        cols = ", ".join(self.wrap_segments(c) for c in columns)
        head = f"INSERT INTO {self.wrap_table(table)} ({cols})"
        return self._assemble(head, clauses, {ClausePriority.VALUES})

    def compile_update(self, table: str, clauses: Iterable[Clause]) -> str:
        head = f"UPDATE {self.wrap_table(table)}"
        return self._assemble(head, clauses, _UPDATE_KINDS)

    def compile_delete(self, table: str, clauses: Iterable[Clause]) -> str:
        head = f"DELETE FROM {self.wrap_table(table)}"
        return self._assemble(head, clauses, _DELETE_KINDS)

    @staticmethod
    def _assemble(
        head: str,
        clauses: Iterable[Clause],
        kinds: frozenset[ClausePriority] | set[ClausePriority] | None = None,
    ) -> str:
        parts = [head]
        for clause in clauses:
            if kinds is not None and clause.priority not in kinds:
                continue
            fragment = clause.compile()
            if fragment:
                parts.append(fragment)
        return " ".join(parts)

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


def _inside_quotes(expr: str, position: int) -> bool:
    prefix = expr[:position]
    single = len(_SINGLE_QUOTE.findall(prefix))
    double = len(_DOUBLE_QUOTE.findall(prefix))
    return single % 2 != 0 or double % 2 != 0

