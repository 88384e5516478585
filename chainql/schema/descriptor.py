"""Pydantic models for the QueryDescriptor.

A ``QueryDescriptor`` is the mutable, not-yet-compiled representation of one
query.  ``StatementBuilder`` owns exactly one; chained calls append to it and
the compilers in :mod:`chainql.compile` read it without modifying it.
"""
from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

_FORBID = ConfigDict(extra="forbid")

#: Join kinds, rendered verbatim in front of the joined table.
JoinKind = Literal["INNER JOIN", "LEFT OUTER JOIN"]


class SelectColumn(BaseModel):
    """One column expression in the SELECT list.

    Attributes:
        name: Column name or raw expression (``*``, ``count(id)``, ...).
        alias: Optional alias, rendered as ``name AS alias``.
    """

    model_config = _FORBID

    name: str
    alias: str | None = None


class JoinClause(BaseModel):
    """A single JOIN entry.

    Attributes:
        kind: ``INNER JOIN`` or ``LEFT OUTER JOIN``.
        table: Joined table name.
        condition: Precompiled ``USING (...)`` or ``ON a=b`` fragment.
    """

    model_config = _FORBID

    kind: JoinKind
    table: str
    condition: str


class Comparison(BaseModel):
    """A ``field<operator>?`` predicate.

    Attributes:
        field: Left-hand column.
        operator: Whitelisted comparison operator.
        value: Bound parameter value.
    """

    model_config = _FORBID

    field: str
    operator: str
    value: Any = None


class Membership(BaseModel):
    """An ``IN`` / ``NOT IN`` predicate.

    Attributes:
        field: Left-hand column.
        values: One bound parameter per element.
    """

    model_config = _FORBID

    field: str
    values: list[Any] = Field(default_factory=list)


class OrderClause(BaseModel):
    """ORDER BY clause.

    Attributes:
        field: Column to order by.
        direction: Upper-case sort direction.
    """

    model_config = _FORBID

    field: str
    direction: Literal["ASC", "DESC"] = "ASC"


class QueryDescriptor(BaseModel):
    """Everything declared on a builder since its last reset.

    Predicate categories are kept apart because the WHERE compiler emits
    them in a fixed order regardless of declaration order.

    Attributes:
        table: Target table.
        select: Column list; empty means ``*``.
        joins: Joins in declaration order.
        where: Comparison predicates (``where`` / ``where_not``).
        where_in: ``IN`` predicates.
        where_not_in: ``NOT IN`` predicates.
        where_null: Fields rendered as ``IS NULL``.
        where_not_null: Fields rendered as ``IS NOT NULL``.
        order: Optional ORDER BY clause.
        limit: Optional row limit.
        offset: Optional row offset.
    """

    model_config = _FORBID

    table: str
    select: list[SelectColumn] = Field(default_factory=list)
    joins: list[JoinClause] = Field(default_factory=list)
    where: list[Comparison] = Field(default_factory=list)
    where_in: list[Membership] = Field(default_factory=list)
    where_not_in: list[Membership] = Field(default_factory=list)
    where_null: list[str] = Field(default_factory=list)
    where_not_null: list[str] = Field(default_factory=list)
    order: OrderClause | None = None
    limit: int | None = None
    offset: int | None = None

    @property
    def has_predicates(self) -> bool:
        """True when at least one WHERE predicate has been declared."""
        return bool(
            self.where
            or self.where_in
            or self.where_not_in
            or self.where_null
            or self.where_not_null
        )
