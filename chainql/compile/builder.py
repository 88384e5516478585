"""Core QueryDescriptor → SQL compilation logic.

``StatementCompiler`` is a set of pure projections: each ``build_*`` method
reads a descriptor (plus the row data for DML) and returns a
:class:`~chainql.compile.base.CompiledSQL`.  Nothing here touches a database.

Sub-builder hierarchy
---------------------
StatementCompiler
  ├── SelectClauseBuilder  (clause_builders.py)
  ├── JoinClauseBuilder    (clause_builders.py)
  ├── WhereClauseBuilder   (clause_builders.py)
  └── TailBuilder          (clause_builders.py)

Parameter order
---------------
For UPDATE the SET values come first, then the WHERE values.  Within the
WHERE fragment values follow the category order comparisons → IN → NOT IN.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

from chainql.compile.base import TERMINATOR, CompiledSQL, placeholders
from chainql.compile.clause_builders import (
    JoinClauseBuilder,
    SelectClauseBuilder,
    TailBuilder,
    WhereClauseBuilder,
    WhereFragment,
)
from chainql.errors import InvalidArgumentError, UnsupportedOperationError
from chainql.schema.descriptor import QueryDescriptor


def _finish(parts: list[str], params: list[Any]) -> CompiledSQL:
    return CompiledSQL(sql=" ".join(parts) + TERMINATOR, params=params)


def _row_data(data: Any, statement: str) -> tuple[list[str], list[Any]]:
    if not isinstance(data, Mapping):
        raise InvalidArgumentError(
            f"{statement} data must be a mapping of field to value, got {type(data).__name__}.",
            value=data,
        )
    return list(data.keys()), list(data.values())


def _conflict_fields(conflict: str | Sequence[str] | None) -> list[str]:
    if conflict is None:
        return []
    if isinstance(conflict, str):
        return [conflict]
    return list(conflict)


class StatementCompiler:
    """Compiles a QueryDescriptor to parameterized SQLite statements."""

    def __init__(self) -> None:
        self._select = SelectClauseBuilder()
        self._join = JoinClauseBuilder()
        self._where = WhereClauseBuilder()
        self._tail = TailBuilder(self._where)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def build_select(self, descriptor: QueryDescriptor) -> CompiledSQL:
        """``SELECT <columns> FROM <table> [joins] [tail];``"""
        parts = [self._select.build(descriptor)]
        parts.extend(self._join.build(join) for join in descriptor.joins)
        tail, params = self._tail.build(descriptor)
        return _finish(parts + tail, params)

    def build_count(self, descriptor: QueryDescriptor) -> CompiledSQL:
        """``SELECT count(<field>) AS count FROM <table> [WHERE …];``

        The first comparison field is counted when one exists, since it is
        known to be non-null for every matching row; otherwise ``*``.

        Raises:
            UnsupportedOperationError: If any join has been declared.
        """
        if descriptor.joins:
            raise UnsupportedOperationError(
                "SQLBuilderError: count on table joins is not supported",
                operation="count",
            )
        counted = descriptor.where[0].field if descriptor.where else "*"
        tail, params = self._tail.build(descriptor, where_only=True)
        return _finish([f"SELECT count({counted}) AS count FROM {descriptor.table}"] + tail, params)

    def build_where(self, descriptor: QueryDescriptor) -> WhereFragment | None:
        """Return the WHERE conditions alone, or ``None`` when there are none."""
        return self._where.build(descriptor)

    # ------------------------------------------------------------------
    # Data modification
    # ------------------------------------------------------------------

    def build_insert(self, descriptor: QueryDescriptor, data: Mapping[str, Any]) -> CompiledSQL:
        """``INSERT INTO <table> (<fields>) VALUES (?,…);``

        An empty mapping inserts a row of column defaults.
        """
        keys, values = _row_data(data, "INSERT")
        if not keys:
            return _finish([f"INSERT INTO {descriptor.table} DEFAULT VALUES"], [])
        return _finish([self._insert_head(descriptor.table, keys)], values)

    def build_upsert(
        self,
        descriptor: QueryDescriptor,
        data: Mapping[str, Any],
        conflict: str | Sequence[str] | None = None,
    ) -> CompiledSQL:
        """INSERT that updates the existing row on a uniqueness conflict.

        Fields named in ``conflict`` are left out of the SET list.  When no
        field is left to update the statement resolves to ``DO NOTHING``.
        """
        keys, values = _row_data(data, "UPSERT")
        if not keys:
            raise InvalidArgumentError("UPSERT data must not be empty.", value=data)

        targets = _conflict_fields(conflict)
        target_sql = f"({', '.join(targets)}) " if targets else ""
        updates = [f"{key}=excluded.{key}" for key in keys if key not in targets]
        action = f"DO UPDATE SET {', '.join(updates)}" if updates else "DO NOTHING"

        parts = [self._insert_head(descriptor.table, keys), f"ON CONFLICT {target_sql}{action}"]
        return _finish(parts, values)

    def build_update(self, descriptor: QueryDescriptor, data: Mapping[str, Any]) -> CompiledSQL:
        """``UPDATE <table> SET <field>=?, … [tail];``"""
        keys, values = _row_data(data, "UPDATE")
        if not keys:
            raise InvalidArgumentError("UPDATE data must not be empty.", value=data)
        assignments = ", ".join(f"{key}=?" for key in keys)
        tail, params = self._tail.build(descriptor)
        return _finish([f"UPDATE {descriptor.table} SET {assignments}"] + tail, values + params)

    def build_delete(self, descriptor: QueryDescriptor) -> CompiledSQL:
        """``DELETE FROM <table> [tail];``"""
        tail, params = self._tail.build(descriptor)
        return _finish([f"DELETE FROM {descriptor.table}"] + tail, params)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _insert_head(table: str, keys: list[str]) -> str:
        return f"INSERT INTO {table} ({', '.join(keys)}) VALUES ({placeholders(keys)})"
