"""Comparison operators and sort directions accepted by the builder.

Both validators are pure and raise eagerly, so an invalid call aborts the
chain before any SQL text exists.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from chainql.errors import InvalidOperatorError, InvalidSortDirectionError

# ---------------------------------------------------------------------------
# WHERE comparison operators
# ---------------------------------------------------------------------------

#: Comparison operators understood by SQLite.
WHERE_OPERATORS: frozenset[str] = frozenset(
    {"=", "==", "!=", "<>", ">", "<", ">=", "<=", "!<", "!>"}
)

#: Operator used by ``where()`` when none is given.
EQUAL = "="

#: Operator used by ``where_not()`` when none is given.
NOT_EQUAL = "!="


def validate_operator(operator: Any) -> str:
    """Return ``operator`` unchanged if it is a whitelisted comparison.

    Raises:
        InvalidOperatorError: If ``operator`` is not in :data:`WHERE_OPERATORS`.
    """
    if not isinstance(operator, str) or operator not in WHERE_OPERATORS:
        raise InvalidOperatorError(operator)
    return operator


# ---------------------------------------------------------------------------
# ORDER BY directions
# ---------------------------------------------------------------------------


class SortDirection(str, Enum):
    """Sort directions for ``ORDER BY``."""

    ASC = "ASC"
    DESC = "DESC"


def validate_sort_direction(direction: Any) -> SortDirection:
    """Normalise ``direction`` (any letter case) to a :class:`SortDirection`.

    Raises:
        InvalidSortDirectionError: If ``direction`` is not ``asc`` or ``desc``.
    """
    if isinstance(direction, SortDirection):
        return direction
    if not isinstance(direction, str):
        raise InvalidSortDirectionError(direction)
    try:
        return SortDirection(direction.upper())
    except ValueError:
        raise InvalidSortDirectionError(direction) from None
