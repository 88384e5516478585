"""chainQL – fluent, parameterized SQL statements for SQLite.

Chain it. Don't concatenate it.

Public API
----------
``connect``
    Open a SQLite database and return a :class:`Connection`; calling the
    connection with a table name returns a bound :class:`StatementBuilder`.

``StatementBuilder``
    Usable on its own to compile statements without a database::

        from chainql import StatementBuilder

        sql, params = (
            StatementBuilder("users")
            .select("id", {"name": "label"})
            .where("age", ">", 30)
            .build_sql_select()
        )
        # SELECT id, name AS label FROM users WHERE age>?;   [30]

Re-exported types
-----------------
``CompiledSQL``, ``QueryDescriptor``, ``ConnectionConfig``, ``RunResult``,
``StatementExecutor``, introspection models, and all error classes.
"""

from __future__ import annotations

from dataclasses import replace
from pathlib import Path
from typing import Any

from chainql.builder import StatementBuilder
from chainql.compile.base import CompiledSQL
from chainql.compile.builder import StatementCompiler
from chainql.compile.clause_builders import WhereFragment
from chainql.connection import (
    DEFAULT_BULK_INSERT_PRAGMA,
    Connection,
    ConnectionConfig,
    PreparedStatement,
)
from chainql.errors import (
    ChainQLError,
    DatabaseError,
    DetachedBuilderError,
    InvalidArgumentError,
    InvalidJoinError,
    InvalidOperatorError,
    InvalidSortDirectionError,
    UnsupportedOperationError,
)
from chainql.executor import RunResult, StatementExecutor
from chainql.schema.descriptor import QueryDescriptor
from chainql.schema.introspection import ColumnInfo, IndexInfo

__all__ = [
    # Entry point
    "connect",
    # Connection
    "Connection",
    "ConnectionConfig",
    "PreparedStatement",
    "DEFAULT_BULK_INSERT_PRAGMA",
    "RunResult",
    "StatementExecutor",
    # Building & compilation
    "StatementBuilder",
    "StatementCompiler",
    "CompiledSQL",
    "WhereFragment",
    "QueryDescriptor",
    # Introspection
    "ColumnInfo",
    "IndexInfo",
    # Errors
    "ChainQLError",
    "InvalidOperatorError",
    "InvalidArgumentError",
    "InvalidJoinError",
    "InvalidSortDirectionError",
    "UnsupportedOperationError",
    "DetachedBuilderError",
    "DatabaseError",
]


def connect(
    path: str | Path = ":memory:",
    config: ConnectionConfig | None = None,
    **overrides: Any,
) -> Connection:
    """Open a SQLite database.

    ::

        db = chainql.connect("app.sqlite", timeout=10, trace=True)
        db("users").where({"active": 1}).order("name").all()

    Args:
        path: Database file, or ``":memory:"`` (the default).
        config: Base connection options; defaults to ``ConnectionConfig()``.
        **overrides: Individual :class:`ConnectionConfig` fields that take
            precedence over ``config``.

    Returns:
        An open :class:`Connection`.
    """
    config = config or ConnectionConfig()
    if overrides:
        config = replace(config, **overrides)
    return Connection(path, config)
