"""Closed sets of tagged input variants.

The fluent API accepts strings, sequences, nested sequences and mappings.
:mod:`chainql.parse.normalizers` turns that loose input into the variants
below first; everything downstream pattern-matches on the variant type
instead of inspecting raw Python values.

Usage::

    spec = column_spec(["id", {"name": "label"}])
    # ColumnGroup(items=(Identifier("id"), Aliased("name", "label")))
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

# ---------------------------------------------------------------------------
# SELECT columns
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Identifier:
    """A column emitted verbatim."""

    name: str


@dataclass(frozen=True)
class Aliased:
    """A column emitted as ``name AS alias``."""

    name: str
    alias: str


@dataclass(frozen=True)
class ColumnGroup:
    """An ordered group of column specs (a sequence or a mapping)."""

    items: tuple[ColumnSpec, ...]


ColumnSpec = Union[Identifier, Aliased, ColumnGroup]


# ---------------------------------------------------------------------------
# JOIN conditions
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class UsingColumns:
    """``USING (c1, c2, ...)`` natural-key join."""

    columns: tuple[str, ...]


@dataclass(frozen=True)
class OnEquals:
    """``ON l1=r1 AND l2=r2 ...`` explicit join."""

    pairs: tuple[tuple[str, str], ...]


JoinSpec = Union[UsingColumns, OnEquals]


# ---------------------------------------------------------------------------
# WHERE predicates
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class FieldValue:
    """``(field, value)`` using the caller's default operator."""

    field: str
    value: object


@dataclass(frozen=True)
class FieldOpValue:
    """``(field, operator, value)`` with an explicit operator."""

    field: str
    operator: str
    value: object


@dataclass(frozen=True)
class PredicateGroup:
    """An ordered group of predicate specs (a mapping or nested sequence)."""

    items: tuple[PredicateSpec, ...]


PredicateSpec = Union[FieldValue, FieldOpValue, PredicateGroup]


# ---------------------------------------------------------------------------
# NULL predicates
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class FieldName:
    """A single field name."""

    name: str


@dataclass(frozen=True)
class FieldGroup:
    """An ordered group of field specs; skipped fields are already dropped."""

    items: tuple[FieldSpec, ...]


FieldSpec = Union[FieldName, FieldGroup]
