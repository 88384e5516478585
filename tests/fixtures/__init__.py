"""Test fixtures: sample schema DDL and seed rows."""

from __future__ import annotations

from pathlib import Path

_FIXTURES_DIR = Path(__file__).parent

DDL_PATH = _FIXTURES_DIR / "ddl_sqlite.sql"

TEAMS = [
    (1, "core"),
    (2, "web"),
]

#: (id, team_id, name, email, age, role, note)
USERS = [
    (1, 1, "ada", "ada@example.com", 36, "owner", None),
    (2, 1, "grace", "grace@example.com", 45, "admin", "on call"),
    (3, 2, "linus", None, 28, "member", None),
    (4, 2, "margaret", "margaret@example.com", 52, "member", ""),
    (5, None, "ken", None, None, "member", None),
]


def load_ddl() -> str:
    """Return the sample SQLite DDL script."""
    return DDL_PATH.read_text()
