"""Executor boundary: runs compiled SQL and shapes result rows.

``Executor`` is the only surface the builders talk to.  Compiled SQL always
uses positional ``?`` placeholders; :func:`translate_placeholders` rewrites
them into the driver's DB-API ``paramstyle`` just before execution.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence
from types import SimpleNamespace
from typing import Any

from chainsql.errors import ConfigurationError

#: Row shapes understood by ``fetch`` / ``fetch_all``.
FETCH_MODES: frozenset[str] = frozenset({"assoc", "numeric", "object", "column"})


class Executor(ABC):
    """Abstract database executor.

    Implementations wrap every driver failure in
    :class:`~chainsql.errors.DatabaseError`.
    """

    @abstractmethod
    def query(self, sql: str, bindings: Sequence[Any] = ()) -> "Executor":
        """Execute ``sql`` with positional ``bindings`` and keep the cursor."""

    @abstractmethod
    def fetch(self, mode: str | None = None, cls: type | None = None) -> Any:
        """Return the next row of the last query, or ``None``."""

    @abstractmethod
    def fetch_all(self, mode: str | None = None, cls: type | None = None) -> list[Any]:
        """Return all remaining rows of the last query."""

    @abstractmethod
    def fetch_column(self, index: int = 0) -> Any:
        """Return column ``index`` of the next row, or ``None``."""

    @abstractmethod
    def last_insert_id(self) -> Any:
        """Return the id generated by the last INSERT, if the driver knows it."""

    @abstractmethod
    def row_count(self) -> int:
        """Return the number of rows affected by the last statement."""

    @abstractmethod
    def begin_transaction(self) -> bool: ...

    @abstractmethod
    def commit(self) -> bool: ...

    @abstractmethod
    def rollback(self) -> bool: ...

    @abstractmethod
    def in_transaction(self) -> bool: ...


# ---------------------------------------------------------------------------
# Row shaping
# ---------------------------------------------------------------------------


def resolve_fetch_mode(mode: str | None, default: str) -> str:
    if mode is None:
        return default
    normalized = mode.strip().lower()
    if normalized not in FETCH_MODES:
        raise ConfigurationError(
            f"Unsupported fetch mode '{mode}'. Expected one of {sorted(FETCH_MODES)}.",
            setting="fetch_mode",
        )
    return normalized


def shape_row(
    row: Sequence[Any],
    columns: Sequence[str],
    mode: str,
    cls: type | None = None,
) -> Any:
    """Convert a DB-API row tuple into the requested shape."""
    if mode == "numeric":
        return tuple(row)
    if mode == "column":
        return row[0] if row else None
    mapping = dict(zip(columns, row))
    if mode == "object":
        return cls(**mapping) if cls is not None else SimpleNamespace(**mapping)
    return mapping


def column_names(description: Sequence[Sequence[Any]] | None) -> list[str]:
    if not description:
        return []
    return [str(col[0]) for col in description]


# ---------------------------------------------------------------------------
# Placeholder translation
# ---------------------------------------------------------------------------


def translate_placeholders(sql: str, paramstyle: str) -> str:
    """Rewrite ``?`` placeholders into ``paramstyle``.

    Placeholders inside single- or double-quoted literals and backtick
    identifiers are left alone.  For ``format`` / ``pyformat`` styles,
    literal ``%`` characters are doubled so drivers do not treat them as
    conversion specifiers.

    Args:
        sql: SQL with positional ``?`` placeholders.
        paramstyle: The driver's DB-API ``paramstyle``.

    Returns:
        SQL ready to pass to ``cursor.execute`` with a positional sequence
        (``qmark`` / ``format`` / ``numeric``) or a mapping (``named`` /
        ``pyformat`` use ``p1``, ``p2``… keys; see :func:`adapt_bindings`).
    """
    if paramstyle == "qmark":
        return sql

    percent_escape = paramstyle in ("format", "pyformat")
    out: list[str] = []
    quote: str | None = None
    index = 0
    for ch in sql:
        if quote is not None:
            if ch == quote:
                quote = None
            out.append("%%" if percent_escape and ch == "%" else ch)
            continue
        if ch in ("'", '"', "`"):
            quote = ch
            out.append(ch)
        elif ch == "?":
            index += 1
            out.append(_placeholder(paramstyle, index))
        elif ch == "%" and percent_escape:
            out.append("%%")
        else:
            out.append(ch)
    return "".join(out)


def adapt_bindings(bindings: Sequence[Any], paramstyle: str) -> Sequence[Any] | dict[str, Any]:
    """Return ``bindings`` in the container ``paramstyle`` expects."""
    if paramstyle in ("named", "pyformat"):
        return {f"p{i}": value for i, value in enumerate(bindings, start=1)}
    return list(bindings)


def _placeholder(paramstyle: str, index: int) -> str:
    if paramstyle == "format":
        return "%s"
    if paramstyle == "pyformat":
        return f"%(p{index})s"
    if paramstyle == "numeric":
        return f":{index}"
    if paramstyle == "named":
        return f":p{index}"
    raise ConfigurationError(
        f"Unsupported DB-API paramstyle '{paramstyle}'.", setting="paramstyle"
    )
