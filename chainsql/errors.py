"""Custom exception hierarchy for chainsql.

All public errors inherit from ChainSQLError so callers can catch the base
class for any chainsql-specific failure.
"""
from __future__ import annotations

from typing import Any


class ChainSQLError(Exception):
    """Base exception for all chainsql errors."""


class ConfigurationError(ChainSQLError):
    """Raised when a builder, grammar, or pool is misconfigured.

    Detected at construction or :meth:`build` time, never silently
    defaulted: empty table names, missing SET / VALUES data, unknown
    dialect names, and pool parameters out of range all end up here.

    Args:
        message: Human-readable description.
        setting: Name of the offending setting, when there is one.
    """

    def __init__(self, message: str, setting: str | None = None) -> None:
        super().__init__(message)
        self.setting = setting


class ShapeMismatchError(ChainSQLError):
    """Raised when INSERT rows disagree on their column set or order.

    Args:
        expected: Columns of the first row, in order.
        actual: Columns of the offending row, in order.
    """

    def __init__(self, expected: list[str], actual: list[str]) -> None:
        super().__init__(
            "Columns of all rows must match: expected "
            f"{', '.join(expected)}; got {', '.join(actual)}."
        )
        self.expected = expected
        self.actual = actual


class ExecutorUnavailableError(ChainSQLError):
    """Raised when an execute / fetch method runs on a builder without executor."""

    def __init__(self, operation: str) -> None:
        super().__init__(f"No executor attached; cannot run '{operation}'.")
        self.operation = operation


class PoolExhaustedError(ChainSQLError):
    """Raised when the connection pool cannot hand out a connection in time.

    Args:
        message: Human-readable description.
        timeout: The wait budget (seconds) that was exceeded, if any.
    """

    def __init__(self, message: str, timeout: float | None = None) -> None:
        super().__init__(message)
        self.timeout = timeout


class DatabaseError(ChainSQLError):
    """Wraps any failure raised by the underlying database driver.

    The driver exception is chained as ``__cause__``; its code (when the
    driver exposes one) is copied to :attr:`code`.

    Args:
        message: Human-readable description, including the driver message.
        code: Driver-specific error code, if available.
    """

    def __init__(self, message: str, code: Any = None) -> None:
        super().__init__(message)
        self.code = code

    @classmethod
    def from_driver(cls, message: str, exc: BaseException) -> "DatabaseError":
        """Build a :class:`DatabaseError` describing ``exc``.

        Args:
            message: What the library was doing when the driver failed.
            exc: The original driver exception.
        """
        code = getattr(exc, "sqlstate", None) or getattr(exc, "pgcode", None)
        if code is None and exc.args and isinstance(exc.args[0], int):
            code = exc.args[0]
        return cls(f"{message}: {exc}", code=code)
