"""Pydantic models returned by the connection's schema helpers."""
from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict


class ColumnInfo(BaseModel):
    """Metadata for a single column, as reported by ``pragma table_info``.

    Attributes:
        type: Declared SQL type (may be empty in SQLite).
        default: Default value expression, or ``None``.
        notnull: Whether the column is declared ``NOT NULL``.
        primary: Position in the primary key (0 when not part of it).
    """

    model_config = ConfigDict(extra="forbid")

    type: str
    default: Any = None
    notnull: bool = False
    primary: int = 0


class IndexInfo(BaseModel):
    """An index and the table it belongs to."""

    model_config = ConfigDict(extra="forbid")

    table: str
    index: str
