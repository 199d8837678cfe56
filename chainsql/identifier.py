"""Table identifiers parsed from raw table strings.

``TableIdentifier.parse`` understands three spellings::

    TableIdentifier.parse("users")          # table only
    TableIdentifier.parse("users AS u")     # explicit alias (AS is case-insensitive)
    TableIdentifier.parse("users u")        # implicit alias

Sub-queries are built with :meth:`TableIdentifier.subquery`; their ``table``
holds the already compiled SQL text.
"""
from __future__ import annotations

import re
from dataclasses import dataclass

_AS_SPLIT = re.compile(r"\s+AS\s+", re.IGNORECASE)
_IMPLICIT_ALIAS = re.compile(r"^(\S+)\s+(\S+)$")


@dataclass(frozen=True)
class TableIdentifier:
    """A table reference: name, optional alias, or a compiled sub-query.

    Attributes:
        table: Table name, or the compiled SQL of a sub-query.
        alias: Optional alias.
        is_subquery: ``True`` when ``table`` holds sub-query SQL.
    """

    table: str
    alias: str | None = None
    is_subquery: bool = False

    @classmethod
    def parse(cls, raw_table: str) -> "TableIdentifier":
        """Split ``raw_table`` into table name and optional alias."""
        text = raw_table.strip()
        if _AS_SPLIT.search(text):
            parts = _AS_SPLIT.split(text, maxsplit=1)
            if len(parts) == 2:
                return cls(table=parts[0].strip(), alias=parts[1].strip())
        match = _IMPLICIT_ALIAS.match(text)
        if match:
            return cls(table=match.group(1), alias=match.group(2))
        return cls(table=text)

    @classmethod
    def subquery(cls, sql: str, alias: str | None = None) -> "TableIdentifier":
        """Return an identifier wrapping already compiled sub-query ``sql``."""
        return cls(table=sql, alias=alias, is_subquery=True)

    def __str__(self) -> str:
        if self.is_subquery:
            return f"({self.table}) AS {self.alias}" if self.alias else f"({self.table})"
        return f"{self.table} AS {self.alias}" if self.alias else self.table
