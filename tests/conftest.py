"""Shared pytest fixtures for chainQL unit and integration tests."""
from __future__ import annotations

from collections.abc import Iterator

import pytest

import chainql
from chainql.builder import StatementBuilder
from chainql.connection import Connection
from tests.fixtures import TEAMS, USERS, load_ddl

TABLE = "tblnme"


@pytest.fixture()
def builder() -> StatementBuilder:
    """A detached builder for compile-only tests."""
    return StatementBuilder(TABLE)


@pytest.fixture()
def db() -> Iterator[Connection]:
    """In-memory database with the sample schema and seed rows."""
    conn = chainql.connect()
    conn.exec(load_ddl())
    with conn.bulk_insert():
        for row in TEAMS:
            conn.run("INSERT INTO teams VALUES (?,?)", row)
        for row in USERS:
            conn.run("INSERT INTO users VALUES (?,?,?,?,?,?,?)", row)
    yield conn
    conn.close()


@pytest.fixture()
def file_db(tmp_path) -> Iterator[Connection]:
    """File-backed database with the sample schema (no rows)."""
    conn = chainql.connect(tmp_path / "app.sqlite")
    conn.exec(load_ddl())
    yield conn
    conn.close()
