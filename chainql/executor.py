"""The statement-execution boundary between builders and a database.

Builders only ever hand compiled ``(sql, params)`` pairs to an object
implementing :class:`StatementExecutor`; :class:`~chainql.connection.Connection`
is the SQLite implementation.
"""
from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable


@dataclass(frozen=True)
class RunResult:
    """Outcome of a data-modifying statement.

    Attributes:
        changes: Number of rows inserted, updated or deleted.
        last_insert_rowid: Rowid of the last inserted row (``0`` when the
            statement inserted nothing).
    """

    changes: int
    last_insert_rowid: int


@runtime_checkable
class StatementExecutor(Protocol):
    """Runs compiled statements."""

    def prepare_and_get(self, sql: str, params: Sequence[Any] = ()) -> Any | None:
        """Return the first result row, or ``None``."""
        ...

    def prepare_and_all(self, sql: str, params: Sequence[Any] = ()) -> list[Any]:
        """Return every result row, in order."""
        ...

    def prepare_and_run(self, sql: str, params: Sequence[Any] = ()) -> RunResult:
        """Execute a data-modifying statement."""
        ...
