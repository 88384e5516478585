"""Clause-level SQL builders.

Each class handles exactly one piece of a statement and reads the
descriptor without modifying it.

Classes
-------
SelectClauseBuilder   — ``SELECT <columns> FROM <table>``
JoinClauseBuilder     — ``INNER JOIN … USING (…)`` / ``LEFT OUTER JOIN … ON …``
WhereClauseBuilder    — the flat ``AND`` chain of every predicate category
TailBuilder           — ``WHERE … ORDER BY … LIMIT … OFFSET …``
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from chainql.compile.base import PLACEHOLDER, placeholders
from chainql.schema.descriptor import JoinClause, QueryDescriptor, SelectColumn


class SelectClauseBuilder:
    """Builds the ``SELECT <columns> FROM <table>`` head."""

    def build(self, descriptor: QueryDescriptor) -> str:
        if not descriptor.select:
            columns = "*"
        else:
            columns = ", ".join(self._build_column(col) for col in descriptor.select)
        return f"SELECT {columns} FROM {descriptor.table}"

    def _build_column(self, column: SelectColumn) -> str:
        if column.alias is not None:
            return f"{column.name} AS {column.alias}"
        return column.name


class JoinClauseBuilder:
    """Builds a single join fragment."""

    def build(self, join: JoinClause) -> str:
        return f"{join.kind} {join.table} {join.condition}"


@dataclass
class WhereFragment:
    """Compiled WHERE conditions, not yet joined.

    Attributes:
        conditions: One SQL condition per predicate, in output order.
        params: Bound values, in placeholder order.
    """

    conditions: list[str] = field(default_factory=list)
    params: list[Any] = field(default_factory=list)

    @property
    def sql(self) -> str:
        return " AND ".join(self.conditions)


class WhereClauseBuilder:
    """Builds the WHERE condition chain.

    Categories are emitted in a fixed order (comparisons, IN, NOT IN,
    IS NULL, IS NOT NULL) regardless of declaration order, and parameters
    follow the same order.
    """

    def build(self, descriptor: QueryDescriptor) -> WhereFragment | None:
        """Return the compiled conditions, or ``None`` when there are none."""
        if not descriptor.has_predicates:
            return None

        fragment = WhereFragment()

        for cmp in descriptor.where:
            fragment.conditions.append(f"{cmp.field}{cmp.operator}{PLACEHOLDER}")
            fragment.params.append(cmp.value)

        for member in descriptor.where_in:
            fragment.conditions.append(f"{member.field} IN ({placeholders(member.values)})")
            fragment.params.extend(member.values)

        for member in descriptor.where_not_in:
            fragment.conditions.append(f"{member.field} NOT IN ({placeholders(member.values)})")
            fragment.params.extend(member.values)

        for name in descriptor.where_null:
            fragment.conditions.append(f"{name} IS NULL")

        for name in descriptor.where_not_null:
            fragment.conditions.append(f"{name} IS NOT NULL")

        return fragment


class TailBuilder:
    """Builds the tail shared by SELECT, UPDATE, DELETE and COUNT.

    Args:
        where_builder: Builder used for the WHERE fragment.
    """

    def __init__(self, where_builder: WhereClauseBuilder) -> None:
        self._where = where_builder

    def build(
        self,
        descriptor: QueryDescriptor,
        where_only: bool = False,
    ) -> tuple[list[str], list[Any]]:
        """Return the tail's SQL parts and its bound values.

        Args:
            descriptor: The descriptor to read.
            where_only: Skip ORDER BY / LIMIT / OFFSET.
        """
        parts: list[str] = []
        params: list[Any] = []

        where = self._where.build(descriptor)
        if where is not None:
            parts.append(f"WHERE {where.sql}")
            params.extend(where.params)

        if where_only:
            return parts, params

        if descriptor.order is not None:
            parts.append(f"ORDER BY {descriptor.order.field} {descriptor.order.direction}")

        if descriptor.limit is not None:
            parts.append(f"LIMIT {descriptor.limit}")

        if descriptor.offset is not None:
            parts.append(f"OFFSET {descriptor.offset}")

        return parts, params
