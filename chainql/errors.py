"""Custom exception hierarchy for chainQL.

All public errors inherit from ChainQLError so callers can catch the base
class for any chainQL-specific failure.  Every builder error is raised at the
point the offending clause is declared or compiled, never at execution time.
"""
from __future__ import annotations

from typing import Any


class ChainQLError(Exception):
    """Base exception for all chainQL errors."""


class InvalidOperatorError(ChainQLError):
    """Raised when a WHERE predicate uses an operator outside the whitelist.

    Args:
        operator: The rejected operator value.
    """

    def __init__(self, operator: Any) -> None:
        super().__init__(f"Invalid WHERE clause operator: {operator}")
        self.operator = operator


class InvalidArgumentError(ChainQLError):
    """Raised when a builder method receives an argument of the wrong shape.

    Args:
        message: Human-readable description.
        value: The rejected value.
    """

    def __init__(self, message: str, value: Any = None) -> None:
        super().__init__(message)
        self.value = value


class InvalidJoinError(InvalidArgumentError):
    """Raised when a join condition is not a string, a sequence or a mapping."""

    def __init__(self, value: Any = None) -> None:
        super().__init__(
            "Invalid join param, must be string, array or object",
            value=value,
        )


class InvalidSortDirectionError(ChainQLError):
    """Raised when ``order()`` receives a direction other than ASC or DESC.

    Args:
        direction: The rejected direction value.
    """

    def __init__(self, direction: Any) -> None:
        super().__init__(f"Invalid sort param: {direction}")
        self.direction = direction


class UnsupportedOperationError(ChainQLError):
    """Raised when a compiler is asked for a statement it refuses to build.

    Args:
        message: Human-readable description.
        operation: Name of the rejected operation (e.g. ``"count"``).
    """

    def __init__(self, message: str, operation: str | None = None) -> None:
        super().__init__(message)
        self.operation = operation


class DetachedBuilderError(ChainQLError):
    """Raised when a runner method is called on a builder with no executor."""

    def __init__(self, runner: str) -> None:
        super().__init__(
            f"Cannot run '{runner}()': builder is not bound to a connection."
        )
        self.runner = runner


class DatabaseError(ChainQLError):
    """Raised when a connection helper fails and needs extra context.

    Plain statement execution lets ``sqlite3`` errors propagate unchanged;
    this class is reserved for helpers (backup, bulk insert) that wrap them.

    Args:
        message: Human-readable description.
        details: Extra context (paths, pragma names, ...).
    """

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.details: dict[str, Any] = details or {}
