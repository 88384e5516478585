"""Compiler output: CompiledSQL and placeholder helpers."""
from __future__ import annotations

from collections.abc import Iterator, Sized
from dataclasses import dataclass, field
from typing import Any

#: Positional placeholder understood by ``sqlite3``.
PLACEHOLDER = "?"

#: Every compiled statement ends with exactly one terminator.
TERMINATOR = ";"


def placeholders(values: Sized) -> str:
    """Return one comma-joined placeholder per element of ``values``."""
    return ",".join(PLACEHOLDER for _ in range(len(values)))


@dataclass
class CompiledSQL:
    """The output of a successful compilation.

    Unpacks as a ``(sql, params)`` pair::

        sql, params = builder.build_sql_select()
        cursor.execute(sql, params)

    Attributes:
        sql: The compiled SQL string with positional ``?`` placeholders.
        params: Values for the placeholders, in placeholder order.
    """

    sql: str
    params: list[Any] = field(default_factory=list)

    def __iter__(self) -> Iterator[Any]:
        yield self.sql
        yield self.params
