"""Fluent statement builder.

``StatementBuilder`` owns one :class:`~chainql.schema.descriptor.QueryDescriptor`.
Every mutator appends to it and returns the same builder so calls chain; the
``build_sql_*`` methods compile it without modifying it; the runner methods
(``get``, ``all``, ``count``, ...) hand the compiled statement to the bound
:class:`~chainql.executor.StatementExecutor`::

    users = db("users")
    rows = (
        users.select("id", {"name": "label"})
        .left_join("teams", {"users.team_id": "teams.id"})
        .where("age", ">", 30)
        .where_in("role", ["admin", "owner"])
        .order("name", "desc")
        .limit(10)
        .all()
    )

A builder is reusable: call :meth:`StatementBuilder.reset` between queries.
It is not thread-safe; use one builder per call chain.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping, Sequence
from typing import Any

from chainql.compile.base import CompiledSQL
from chainql.compile.builder import StatementCompiler
from chainql.compile.clause_builders import WhereFragment
from chainql.errors import DetachedBuilderError, InvalidArgumentError
from chainql.executor import StatementExecutor
from chainql.parse.normalizers import (
    identifier,
    parse_columns,
    parse_join_on,
    parse_where,
    parse_where_null,
)
from chainql.schema.descriptor import (
    JoinClause,
    JoinKind,
    Membership,
    OrderClause,
    QueryDescriptor,
)
from chainql.schema.operators import EQUAL, NOT_EQUAL, validate_sort_direction

logger = logging.getLogger(__name__)


def _non_negative(value: Any, clause: str) -> int:
    try:
        number = int(value)
    except (TypeError, ValueError) as exc:
        raise InvalidArgumentError(f"Invalid {clause} value: {value!r}", value=value) from exc
    if number < 0:
        raise InvalidArgumentError(f"{clause} must not be negative, got {number}.", value=value)
    return number


def _value_list(values: Any, field: str) -> list[Any]:
    if isinstance(values, (str, bytes, bytearray, Mapping)) or not isinstance(values, Iterable):
        raise InvalidArgumentError(
            f"IN values for '{field}' must be a sequence, got {values!r}.",
            value=values,
        )
    return list(values)


def _membership(field: Any, values: Any) -> Membership:
    field = identifier(field)
    return Membership(field=field, values=_value_list(values, field))


class StatementBuilder:
    """Builds and optionally runs statements against one table.

    Args:
        table: Target table name (trusted identifier, not escaped).
        executor: Optional executor used by the runner methods.
        compiler: Optional compiler; defaults to a fresh
            :class:`~chainql.compile.builder.StatementCompiler`.
    """

    def __init__(
        self,
        table: str,
        executor: StatementExecutor | None = None,
        compiler: StatementCompiler | None = None,
    ) -> None:
        self.table = identifier(table, "Table")
        self._executor = executor
        self._compiler = compiler or StatementCompiler()
        self.reset()

    def __repr__(self) -> str:
        return f"StatementBuilder(table={self.table!r})"

    @property
    def descriptor(self) -> QueryDescriptor:
        """The descriptor being built."""
        return self._descriptor

    def reset(self) -> StatementBuilder:
        """Discard everything declared so far."""
        self._descriptor = QueryDescriptor(table=self.table)
        return self

    # ------------------------------------------------------------------
    # SELECT
    # ------------------------------------------------------------------

    def select(self, *columns: Any) -> StatementBuilder:
        """Set the column list, replacing any previous one.

        Accepts strings, (nested) sequences of strings and
        ``{column: alias | True}`` mappings, in any combination.
        """
        self._descriptor.select = parse_columns(columns)
        return self

    # ------------------------------------------------------------------
    # JOIN
    # ------------------------------------------------------------------

    def join(self, table: str, on: Any = None) -> StatementBuilder:
        """Add an ``INNER JOIN``.

        ``on`` is a column (``USING (col)``), a sequence of columns
        (``USING (a, b)``) or a ``{left: right}`` mapping (``ON left=right``).
        """
        return self._add_join("INNER JOIN", table, on)

    inner_join = join

    def left_join(self, table: str, on: Any = None) -> StatementBuilder:
        """Add a ``LEFT OUTER JOIN``; ``on`` as for :meth:`join`."""
        return self._add_join("LEFT OUTER JOIN", table, on)

    left_outer_join = left_join

    def _add_join(self, kind: JoinKind, table: str, on: Any) -> StatementBuilder:
        table = identifier(table, "Table")
        condition = parse_join_on(on)
        self._descriptor.joins.append(JoinClause(kind=kind, table=table, condition=condition))
        return self

    # ------------------------------------------------------------------
    # WHERE
    # ------------------------------------------------------------------

    def where(self, *args: Any) -> StatementBuilder:
        """Add comparison predicates, ``=`` unless an operator is given.

        Accepted shapes: ``(field, value)``, ``(field, op, value)``,
        ``({field: value, ...})``, ``([field, value])``,
        ``([field, op, value])`` and nested sequences mixing all of them.
        """
        self._descriptor.where.extend(parse_where(EQUAL, *args))
        return self

    def where_not(self, *args: Any) -> StatementBuilder:
        """Like :meth:`where`, with ``!=`` as the default operator."""
        self._descriptor.where.extend(parse_where(NOT_EQUAL, *args))
        return self

    def where_in(self, field: str, values: Iterable[Any]) -> StatementBuilder:
        self._descriptor.where_in.append(_membership(field, values))
        return self

    def where_not_in(self, field: str, values: Iterable[Any]) -> StatementBuilder:
        self._descriptor.where_not_in.append(_membership(field, values))
        return self

    def where_null(self, *fields: Any) -> StatementBuilder:
        """Add ``IS NULL`` predicates.

        Accepts field names, (nested) sequences of names and
        ``{field: flag}`` mappings; falsy flags are skipped.
        """
        self._descriptor.where_null.extend(parse_where_null(*fields))
        return self

    def where_not_null(self, *fields: Any) -> StatementBuilder:
        """Add ``IS NOT NULL`` predicates; arguments as for :meth:`where_null`."""
        self._descriptor.where_not_null.extend(parse_where_null(*fields))
        return self

    # ------------------------------------------------------------------
    # ORDER / LIMIT / OFFSET
    # ------------------------------------------------------------------

    def order(self, field: str, direction: str = "ASC") -> StatementBuilder:
        """Set ``ORDER BY field direction``; direction is case-insensitive."""
        field = identifier(field)
        sort = validate_sort_direction(direction)
        self._descriptor.order = OrderClause(field=field, direction=sort.value)
        return self

    def limit(self, value: int | str) -> StatementBuilder:
        self._descriptor.limit = _non_negative(value, "LIMIT")
        return self

    def offset(self, value: int | str) -> StatementBuilder:
        self._descriptor.offset = _non_negative(value, "OFFSET")
        return self

    # ------------------------------------------------------------------
    # Extras
    # ------------------------------------------------------------------

    def id(self, value: Any) -> StatementBuilder:
        """Shorthand for ``where({"id": value})``."""
        return self.where({"id": value})

    def get_id(self, value: Any) -> Any | None:
        """Fetch the row whose ``id`` equals ``value``."""
        return self.id(value).get()

    # ------------------------------------------------------------------
    # Compilers
    # ------------------------------------------------------------------

    def build_sql_select(self) -> CompiledSQL:
        return self._compiler.build_select(self._descriptor)

    def build_sql_insert(self, data: Mapping[str, Any]) -> CompiledSQL:
        return self._compiler.build_insert(self._descriptor, data)

    def build_sql_upsert(
        self,
        data: Mapping[str, Any],
        conflict: str | Sequence[str] | None = None,
    ) -> CompiledSQL:
        return self._compiler.build_upsert(self._descriptor, data, conflict)

    def build_sql_update(self, data: Mapping[str, Any]) -> CompiledSQL:
        return self._compiler.build_update(self._descriptor, data)

    def build_sql_delete(self) -> CompiledSQL:
        return self._compiler.build_delete(self._descriptor)

    def build_sql_count(self) -> CompiledSQL:
        return self._compiler.build_count(self._descriptor)

    def build_sql_where(self) -> WhereFragment | None:
        return self._compiler.build_where(self._descriptor)

    # ------------------------------------------------------------------
    # Runners
    # ------------------------------------------------------------------

    def get(self) -> Any | None:
        """Return the first matching row, or ``None``."""
        sql, params = self.build_sql_select()
        return self._require_executor("get").prepare_and_get(sql, params)

    def all(self) -> list[Any]:
        """Return every matching row."""
        sql, params = self.build_sql_select()
        return self._require_executor("all").prepare_and_all(sql, params)

    def count(self) -> int:
        """Return the number of matching rows."""
        sql, params = self.build_sql_count()
        row = self._require_executor("count").prepare_and_get(sql, params)
        return row["count"]

    def exists(self) -> bool:
        return self.count() > 0

    def insert(self, data: Mapping[str, Any]) -> int:
        """Insert one row and return its rowid."""
        sql, params = self.build_sql_insert(data)
        return self._require_executor("insert").prepare_and_run(sql, params).last_insert_rowid

    def upsert(
        self,
        data: Mapping[str, Any],
        conflict: str | Sequence[str] | None = None,
    ) -> int:
        """Insert or update one row.

        Returns the rowid reported by the engine after the statement; a
        row that was updated rather than inserted does not change it.
        """
        sql, params = self.build_sql_upsert(data, conflict)
        return self._require_executor("upsert").prepare_and_run(sql, params).last_insert_rowid

    def update(self, data: Mapping[str, Any]) -> int:
        """Update matching rows and return how many changed."""
        sql, params = self.build_sql_update(data)
        return self._require_executor("update").prepare_and_run(sql, params).changes

    def delete(self) -> int:
        """Delete matching rows and return how many were removed."""
        sql, params = self.build_sql_delete()
        return self._require_executor("delete").prepare_and_run(sql, params).changes

    def _require_executor(self, runner: str) -> StatementExecutor:
        if self._executor is None:
            raise DetachedBuilderError(runner)
        logger.debug("Running %s() on %s", runner, self.table)
        return self._executor
