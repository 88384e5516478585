"""Input normalizers for the fluent builder.

Each normalizer works in two steps: a recursive-descent pass turns raw
arguments (strings, sequences, nested sequences, mappings) into the tagged
variants of :mod:`chainql.schema.specs`, then a flattening pass turns the
variant tree into descriptor entries.  Argument order and mapping iteration
order are preserved throughout.

Functions
---------
parse_columns     — ``select()`` column lists
parse_join_on     — ``join()`` conditions
parse_where       — ``where()`` / ``where_not()`` predicates
parse_where_null  — ``where_null()`` / ``where_not_null()`` field lists
"""
from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from typing import Any

from chainql.errors import InvalidArgumentError, InvalidJoinError
from chainql.schema.descriptor import Comparison, SelectColumn
from chainql.schema.operators import validate_operator
from chainql.schema.specs import (
    Aliased,
    ColumnGroup,
    ColumnSpec,
    FieldGroup,
    FieldName,
    FieldOpValue,
    FieldSpec,
    FieldValue,
    Identifier,
    JoinSpec,
    OnEquals,
    PredicateGroup,
    PredicateSpec,
    UsingColumns,
)


def _is_sequence(value: Any) -> bool:
    return isinstance(value, Sequence) and not isinstance(value, (str, bytes, bytearray))


def _is_group(value: Any) -> bool:
    return _is_sequence(value) or isinstance(value, Mapping)


def identifier(value: Any, kind: str = "Field") -> str:
    """Return ``value`` if it is a usable table or column name.

    Raises:
        InvalidArgumentError: If ``value`` is not a string.
    """
    if not isinstance(value, str):
        raise InvalidArgumentError(f"{kind} name must be a string, got {value!r}.", value=value)
    return value


# ---------------------------------------------------------------------------
# SELECT columns
# ---------------------------------------------------------------------------


def column_spec(value: Any) -> ColumnSpec:
    """Classify one ``select()`` argument.

    ``{column: True}`` selects the bare column; any other mapping value must
    be an alias string.

    Raises:
        InvalidArgumentError: For values that are not a string, a sequence
            or a mapping, and for non-string aliases.
    """
    if isinstance(value, str):
        return Identifier(value)
    if isinstance(value, Mapping):
        items: list[ColumnSpec] = []
        for name, alias in value.items():
            if alias is True:
                items.append(Identifier(identifier(name)))
            elif isinstance(alias, str):
                items.append(Aliased(identifier(name), alias))
            else:
                raise InvalidArgumentError(
                    f"Column alias for '{name}' must be a string or True, got {alias!r}.",
                    value=alias,
                )
        return ColumnGroup(tuple(items))
    if _is_sequence(value):
        return ColumnGroup(tuple(column_spec(item) for item in value))
    raise InvalidArgumentError(
        f"Invalid select column {value!r}: expected string, sequence or mapping.",
        value=value,
    )


def flatten_columns(spec: ColumnSpec) -> list[SelectColumn]:
    """Flatten a column spec tree into SELECT list entries, in order."""
    if isinstance(spec, Identifier):
        return [SelectColumn(name=spec.name)]
    if isinstance(spec, Aliased):
        return [SelectColumn(name=spec.name, alias=spec.alias)]
    columns: list[SelectColumn] = []
    for item in spec.items:
        columns.extend(flatten_columns(item))
    return columns


def parse_columns(args: Iterable[Any]) -> list[SelectColumn]:
    """Normalise every positional ``select()`` argument into one column list."""
    return flatten_columns(ColumnGroup(tuple(column_spec(arg) for arg in args)))


# ---------------------------------------------------------------------------
# JOIN conditions
# ---------------------------------------------------------------------------


def join_spec(on: Any) -> JoinSpec:
    """Classify a join condition.

    A string or a sequence of strings is a ``USING`` join; a mapping is an
    ``ON`` join with one equality per entry.

    Raises:
        InvalidJoinError: For a missing, empty or otherwise shaped condition.
    """
    if isinstance(on, str) and on:
        return UsingColumns((on,))
    if isinstance(on, Mapping) and on:
        pairs = []
        for left, right in on.items():
            if not isinstance(left, str) or not isinstance(right, str):
                raise InvalidJoinError(on)
            pairs.append((left, right))
        return OnEquals(tuple(pairs))
    if _is_sequence(on) and on and all(isinstance(col, str) for col in on):
        return UsingColumns(tuple(on))
    raise InvalidJoinError(on)


def render_join_condition(spec: JoinSpec) -> str:
    """Render a join spec as its ``USING`` / ``ON`` fragment."""
    if isinstance(spec, UsingColumns):
        return f"USING ({', '.join(spec.columns)})"
    return "ON " + " AND ".join(f"{left}={right}" for left, right in spec.pairs)


def parse_join_on(on: Any = None) -> str:
    """Normalise a join condition straight to its SQL fragment."""
    return render_join_condition(join_spec(on))


# ---------------------------------------------------------------------------
# WHERE predicates
# ---------------------------------------------------------------------------


def predicate_spec(*args: Any) -> PredicateSpec:
    """Classify the arguments of one ``where()`` call.

    Accepted shapes::

        ("id", 5)                      # default operator
        ("id", ">", 5)                 # explicit operator
        ({"id": 5, "name": "x"})       # one predicate per key
        (["id", ">", 5])               # flat sequence
        ([["id", 5], {"a": 1}, ...])   # nested, re-classified per entry

    The operator of a three-part predicate is validated here, at call time.

    Raises:
        InvalidOperatorError: For an operator outside the whitelist.
        InvalidArgumentError: For any other shape.
    """
    if len(args) == 1:
        arg = args[0]
        if isinstance(arg, Mapping):
            return PredicateGroup(
                tuple(FieldValue(identifier(name), value) for name, value in arg.items())
            )
        if _is_sequence(arg):
            if arg and _is_group(arg[0]):
                return PredicateGroup(tuple(predicate_spec(entry) for entry in arg))
            return predicate_spec(*arg)
    elif len(args) == 2:
        return FieldValue(identifier(args[0]), args[1])
    elif len(args) == 3:
        return FieldOpValue(identifier(args[0]), validate_operator(args[1]), args[2])
    raise InvalidArgumentError(
        f"Invalid WHERE clause arguments: {args!r}.",
        value=args,
    )


def flatten_predicates(spec: PredicateSpec, default_operator: str) -> list[Comparison]:
    """Flatten a predicate spec tree into comparisons, in order."""
    if isinstance(spec, FieldValue):
        return [Comparison(field=spec.field, operator=default_operator, value=spec.value)]
    if isinstance(spec, FieldOpValue):
        return [Comparison(field=spec.field, operator=spec.operator, value=spec.value)]
    comparisons: list[Comparison] = []
    for item in spec.items:
        comparisons.extend(flatten_predicates(item, default_operator))
    return comparisons


def parse_where(default_operator: str, *args: Any) -> list[Comparison]:
    """Normalise one ``where()`` call into comparisons."""
    return flatten_predicates(predicate_spec(*args), default_operator)


# ---------------------------------------------------------------------------
# NULL predicates
# ---------------------------------------------------------------------------


def field_spec(value: Any) -> FieldSpec:
    """Classify one ``where_null()`` argument.

    Mapping entries with a falsy flag are dropped here.

    Raises:
        InvalidArgumentError: For values that are not a string, a sequence
            or a mapping.
    """
    if isinstance(value, str):
        return FieldName(value)
    if isinstance(value, Mapping):
        return FieldGroup(tuple(FieldName(identifier(name)) for name, flag in value.items() if flag))
    if _is_sequence(value):
        return FieldGroup(tuple(field_spec(item) for item in value))
    raise InvalidArgumentError(
        f"Invalid NULL predicate field {value!r}: expected string, sequence or mapping.",
        value=value,
    )


def flatten_fields(spec: FieldSpec) -> list[str]:
    """Flatten a field spec tree into field names, in order."""
    if isinstance(spec, FieldName):
        return [spec.name]
    names: list[str] = []
    for item in spec.items:
        names.extend(flatten_fields(item))
    return names


def parse_where_null(*args: Any) -> list[str]:
    """Normalise every positional ``where_null()`` argument into field names."""
    return flatten_fields(FieldGroup(tuple(field_spec(arg) for arg in args)))
