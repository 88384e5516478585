"""Integration tests: build → execute against a real SQLite database.

Covers the runner methods of bound builders (get / all / count / exists /
insert / upsert / update / delete) and the connection helpers (pragmas,
schema introspection, row counts, bulk insert, altergen, backup).
"""
from __future__ import annotations

import logging
import sqlite3

import pytest

import chainql
from chainql.builder import StatementBuilder
from chainql.connection import Connection, ConnectionConfig
from chainql.errors import DatabaseError, UnsupportedOperationError
from chainql.executor import RunResult, StatementExecutor
from chainql.schema.introspection import ColumnInfo, IndexInfo
from tests.fixtures import DDL_PATH, USERS


# ---------------------------------------------------------------------------
# Connection basics
# ---------------------------------------------------------------------------


@pytest.mark.integration
def test_call_returns_builder_or_raw_connection(db: Connection):
    assert isinstance(db("users"), StatementBuilder)
    assert db("users").table == "users"
    assert db() is db.raw
    assert isinstance(db.raw, sqlite3.Connection)


@pytest.mark.integration
def test_connection_is_an_executor(db: Connection):
    assert isinstance(db, StatementExecutor)


@pytest.mark.integration
def test_connect_applies_overrides():
    conn = chainql.connect(config=ConnectionConfig(timeout=1.0), timeout=2.5)
    try:
        assert conn.config.timeout == 2.5
    finally:
        conn.close()


@pytest.mark.integration
def test_context_manager_closes():
    with chainql.connect() as conn:
        conn.exec("CREATE TABLE t (a)")
    with pytest.raises(sqlite3.ProgrammingError):
        conn.all("SELECT * FROM t")


@pytest.mark.integration
def test_trace_callback_receives_statements():
    seen: list[str] = []
    with chainql.connect(trace=seen.append) as conn:
        conn.exec("CREATE TABLE t (a)")
        conn("t").insert({"a": 1})
    assert any(sql.startswith("INSERT INTO t (a) VALUES") for sql in seen)


@pytest.mark.integration
def test_trace_true_logs_at_debug(caplog):
    caplog.set_level(logging.DEBUG, logger="chainql")
    with chainql.connect(trace=True) as conn:
        conn.exec("CREATE TABLE logged (a)")
    assert any("CREATE TABLE logged" in rec.getMessage() for rec in caplog.records)


@pytest.mark.integration
def test_read_only_rejects_writes(file_db: Connection):
    with chainql.connect(file_db.path, read_only=True) as ro:
        assert ro.tables() == file_db.tables()
        with pytest.raises(sqlite3.OperationalError):
            ro.run("INSERT INTO teams (name) VALUES (?)", ["x"])


# ---------------------------------------------------------------------------
# Runners
# ---------------------------------------------------------------------------


@pytest.mark.integration
def test_get_and_all(db: Connection):
    row = db("users").select("id", {"name": "label"}).where("age", ">", 40).order("age").get()
    assert (row["id"], row["label"]) == (2, "grace")

    rows = db("users").select("name").where_in("role", ["owner", "admin"]).order("id", "desc").all()
    assert [r["name"] for r in rows] == ["grace", "ada"]


@pytest.mark.integration
def test_get_returns_none_when_nothing_matches(db: Connection):
    assert db("users").where("name", "nobody").get() is None


@pytest.mark.integration
def test_get_id(db: Connection):
    assert db("users").get_id(3)["name"] == "linus"


@pytest.mark.integration
def test_null_predicates(db: Connection):
    names = [r["name"] for r in db("users").select("name").where_null("email").order("id").all()]
    assert names == ["linus", "ken"]
    names = [r["name"] for r in db("users").select("name").where_not_null({"note": True}).order("id").all()]
    assert names == ["grace", "margaret"]


@pytest.mark.integration
def test_joins(db: Connection):
    rows = (
        db("users")
        .select("users.name", {"teams.name": "team"})
        .join("teams", {"users.team_id": "teams.id"})
        .where_not("teams.name", "core")
        .order("users.id")
        .all()
    )
    assert [(r["name"], r["team"]) for r in rows] == [("linus", "web"), ("margaret", "web")]

    rows = (
        db("users")
        .select("users.name")
        .left_join("teams", {"users.team_id": "teams.id"})
        .where_null("teams.id")
        .all()
    )
    assert [r["name"] for r in rows] == ["ken"]


@pytest.mark.integration
def test_count_and_exists(db: Connection):
    assert db("users").count() == len(USERS)
    assert db("users").where("role", "member").count() == 3
    assert db("users").where("name", "ada").exists() is True
    assert db("users").where("name", "nobody").exists() is False


@pytest.mark.integration
def test_count_with_join_is_rejected_before_execution(db: Connection):
    with pytest.raises(UnsupportedOperationError):
        db("users").join("teams", {"users.team_id": "teams.id"}).count()


@pytest.mark.integration
def test_insert_returns_rowid(db: Connection):
    rowid = db("users").insert({"name": "barbara", "age": 30})
    assert rowid == 6
    row = db("users").id(rowid).get()
    assert row["role"] == "member"


@pytest.mark.integration
def test_upsert_inserts_then_updates(db: Connection):
    settings = db("settings")
    settings.upsert({"owner": "ada", "key": "theme", "value": "dark"}, ["owner", "key"])
    settings.upsert({"owner": "ada", "key": "theme", "value": "light"}, ["owner", "key"])
    rows = settings.reset().all()
    assert [(r["owner"], r["key"], r["value"]) for r in rows] == [("ada", "theme", "light")]


@pytest.mark.integration
def test_update_returns_changes(db: Connection):
    changed = db("users").where("team_id", 2).update({"role": "admin"})
    assert changed == 2
    assert db("users").where("role", "admin").count() == 3


@pytest.mark.integration
def test_delete_returns_changes(db: Connection):
    assert db("users").where_null("team_id").delete() == 1
    assert db("users").count() == len(USERS) - 1


@pytest.mark.integration
def test_builder_reuse_with_reset(db: Connection):
    users = db("users")
    assert users.where("id", 1).get()["name"] == "ada"
    assert users.reset().where("id", 2).get()["name"] == "grace"


@pytest.mark.integration
def test_limit_and_offset(db: Connection):
    rows = db("users").select("id").order("id").limit(2).offset(1).all()
    assert [r["id"] for r in rows] == [2, 3]


# ---------------------------------------------------------------------------
# Shorthands and pragmas
# ---------------------------------------------------------------------------


@pytest.mark.integration
def test_run_get_all_raw(db: Connection):
    result = db.run("INSERT INTO teams (name) VALUES (?)", ["ops"])
    assert result == RunResult(changes=1, last_insert_rowid=3)
    assert db.get("SELECT name FROM teams WHERE id=?", [3])["name"] == "ops"
    assert len(db.all("SELECT * FROM teams")) == 3
    assert db.raw_rows("SELECT id, name FROM teams ORDER BY id") == [(1, "core"), (2, "web"), (3, "ops")]


@pytest.mark.integration
def test_prepared_statement_reuse(db: Connection):
    stmt = db.prepare("SELECT name FROM users WHERE id=?")
    assert stmt.get([1])["name"] == "ada"
    assert stmt.get([2])["name"] == "grace"
    assert db.query("SELECT 1 AS one").get()["one"] == 1


@pytest.mark.integration
def test_pragma(db: Connection):
    assert db.pragma_value("user_version") == 0
    db.pragma("user_version=7")
    assert db.pragma("user_version", simple=True) == 7
    assert isinstance(db.pragma("table_info(users)"), list)


@pytest.mark.integration
def test_exec_file(tmp_path):
    with chainql.connect() as conn:
        conn.exec_file(DDL_PATH)
        assert "users" in conn.tables()


# ---------------------------------------------------------------------------
# Bulk insert
# ---------------------------------------------------------------------------


@pytest.mark.integration
def test_bulk_insert_commits_and_restores_pragmas(file_db: Connection):
    names = ("journal_mode", "locking_mode", "synchronous", "cache_size")
    before = {name: file_db.pragma_value(name) for name in names}
    with file_db.bulk_insert() as conn:
        assert file_db.pragma_value("synchronous") == 0
        for i in range(50):
            conn("events").insert({"kind": "tick", "payload": str(i)})
    assert file_db("events").count() == 50
    after = {name: file_db.pragma_value(name) for name in before}
    assert after == before


@pytest.mark.integration
def test_bulk_insert_rolls_back_on_error(file_db: Connection):
    with pytest.raises(RuntimeError):
        with file_db.bulk_insert():
            file_db("events").insert({"kind": "a"})
            raise RuntimeError("boom")
    assert file_db("events").count() == 0


@pytest.mark.integration
def test_bulk_insert_restores_pragmas_when_begin_fails(file_db: Connection):
    before = (file_db.pragma_value("synchronous"), file_db.pragma_value("locking_mode"))
    file_db.run("BEGIN")
    with pytest.raises(sqlite3.OperationalError):
        with file_db.bulk_insert():
            pass
    file_db.run("COMMIT")
    after = (file_db.pragma_value("synchronous"), file_db.pragma_value("locking_mode"))
    assert after == before == (2, "normal")


# ---------------------------------------------------------------------------
# Schema and stats
# ---------------------------------------------------------------------------


@pytest.mark.integration
def test_tables_and_has_table(db: Connection):
    assert db.tables() == ["events", "settings", "teams", "users"]
    assert db.has_table("users")
    assert not db.has_table("nope")


@pytest.mark.integration
def test_columns(db: Connection):
    assert db.columns("teams") == ["id", "name"]
    ext = db.columns_ext("users")
    assert ext["id"] == ColumnInfo(type="INTEGER", default=None, notnull=False, primary=1)
    assert ext["role"].default == "'member'"
    assert ext["name"].notnull is True


@pytest.mark.integration
def test_schema_text(db: Connection):
    text = db.schema("teams")
    assert text.startswith("--- teams ---\nCREATE TABLE teams")
    assert text.endswith(");")
    assert db.schema().count("--- ") == 4


@pytest.mark.integration
def test_indexes(db: Connection):
    assert IndexInfo(table="users", index="idx_users_team") in db.indexes("users")
    assert {ix.table for ix in db.indexes()} >= {"users", "settings", "teams"}


@pytest.mark.integration
def test_table_counts(db: Connection):
    assert db.count() == {"events": 0, "settings": 0, "teams": 2, "users": len(USERS)}
    assert db.count("teams") == {"teams": 2}


@pytest.mark.integration
def test_altergen_script_rebuilds_table(db: Connection):
    script = db.altergen("teams")
    assert script.startswith("-- alter: TEAMS")
    assert 'CREATE TABLE "__tmp__teams" (' in script
    db.exec(script.replace("VACUUM;", ""))
    assert db.columns("teams") == ["id", "name"]
    assert db("teams").count() == 2
    assert db.altergen("missing") is None


# ---------------------------------------------------------------------------
# Backup and health
# ---------------------------------------------------------------------------


@pytest.mark.integration
def test_backup_to_explicit_file(db: Connection, tmp_path):
    target = db.backup(file=tmp_path / "copy.sqlite")
    with chainql.connect(target) as copy:
        assert copy("users").count() == len(USERS)


@pytest.mark.integration
def test_backup_derives_dated_name(file_db: Connection, tmp_path):
    out_dir = tmp_path / "backups"
    out_dir.mkdir()
    target = file_db.backup(dir=out_dir, time=False)
    assert target.parent == out_dir
    assert target.name.startswith("app--")
    assert target.suffix == ".sqlite"
    assert target.exists()


@pytest.mark.integration
def test_backup_of_memory_db_needs_file(db: Connection):
    with pytest.raises(DatabaseError):
        db.backup()


@pytest.mark.integration
def test_is_unlocked(db: Connection, tmp_path):
    assert db.is_unlocked()
    garbage = tmp_path / "garbage.sqlite"
    garbage.write_bytes(b"this is definitely not a sqlite database file" * 50)
    with chainql.connect(garbage) as conn:
        assert conn.is_unlocked() is False
