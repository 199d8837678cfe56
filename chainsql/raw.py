"""Raw SQL expressions.

A :class:`Raw` value is emitted verbatim: it is never quoted as an
identifier and never turned into a bound parameter.

Two spellings are accepted everywhere a column or a value reaches a clause:

* an explicit ``Raw("NOW()")`` (or ``raw("NOW()")``), which is unambiguous;
* the string convention ``"{NOW()}"``: a string that starts with ``{`` and
  ends with ``}``.  The braces are stripped and the content is emitted as is.

:func:`to_raw` is the single place where both spellings are recognised, so
every clause applies exactly the same rule.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class Raw:
    """A verbatim SQL fragment.

    Attributes:
        sql: The SQL text to emit unchanged.
    """

    sql: str

    def __str__(self) -> str:
        return self.sql


def raw(sql: str) -> Raw:
    """Return a :class:`Raw` wrapping ``sql``."""
    return Raw(sql)


def is_raw_string(value: Any) -> bool:
    """Return ``True`` if ``value`` is a ``{...}``-delimited string."""
    return (
        isinstance(value, str)
        and len(value) >= 2
        and value.startswith("{")
        and value.endswith("}")
    )


def to_raw(value: Any) -> Raw | None:
    """Return ``value`` as a :class:`Raw`, or ``None`` if it is not raw.

    Args:
        value: Anything a caller passed as a column or value.

    Returns:
        The :class:`Raw` itself, a :class:`Raw` built from the content of a
        ``{...}`` string, or ``None`` for ordinary values.
    """
    if isinstance(value, Raw):
        return value
    if is_raw_string(value):
        return Raw(value[1:-1])
    return None
