"""SQLite connection wrapper.

``Connection`` is a thin layer over :mod:`sqlite3`.  It hands out
:class:`~chainql.builder.StatementBuilder` instances bound to itself, runs
their compiled statements (it implements
:class:`~chainql.executor.StatementExecutor`), and bundles the usual
maintenance helpers: pragmas, schema introspection, row counts, bulk-insert
tuning, table-rebuild scripts and online backups.

Example::

    import chainql

    with chainql.connect("app.sqlite", trace=True) as db:
        db.exec("CREATE TABLE IF NOT EXISTS users (id INTEGER PRIMARY KEY, name TEXT)")
        db("users").insert({"name": "ada"})
        print(db("users").where("name", "ada").get()["id"])

The connection runs in autocommit mode: every statement commits on its own
unless it is issued inside :meth:`Connection.bulk_insert` or an explicit
``BEGIN`` / ``COMMIT`` pair.
"""

from __future__ import annotations

import logging
import sqlite3
from collections.abc import Callable, Iterator, Sequence
from contextlib import closing, contextmanager
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any

from chainql.builder import StatementBuilder
from chainql.errors import DatabaseError
from chainql.executor import RunResult
from chainql.schema.introspection import ColumnInfo, IndexInfo

logger = logging.getLogger(__name__)

MEMORY = ":memory:"

#: Pragma values applied for the duration of :meth:`Connection.bulk_insert`.
#: See https://www.sqlite.org/pragma.html
DEFAULT_BULK_INSERT_PRAGMA: dict[str, Any] = {
    "journal_mode": "MEMORY",
    "locking_mode": "EXCLUSIVE",
    "synchronous": "OFF",
    "cache_size": -1000000,  # negative: KiB rather than pages
    "temp_store": "MEMORY",
}

#: Prefix of the intermediary table used by :meth:`Connection.altergen`.
TEMP_TABLE_PREFIX = "__tmp__"


@dataclass
class ConnectionConfig:
    """Options used when opening a connection.

    Attributes:
        timeout: Seconds to wait for a locked database before failing.
        read_only: Open the database file in read-only mode.
        trace: ``True`` logs every executed statement at DEBUG level; a
            callable receives each statement instead.
        check_same_thread: Passed through to :func:`sqlite3.connect`.
        bulk_insert_pragma: Pragmas applied by :meth:`Connection.bulk_insert`.
    """

    timeout: float = 5.0
    read_only: bool = False
    trace: bool | Callable[[str], None] = False
    check_same_thread: bool = True
    bulk_insert_pragma: dict[str, Any] = field(
        default_factory=lambda: dict(DEFAULT_BULK_INSERT_PRAGMA)
    )


def _log_statement(sql: str) -> None:
    logger.debug("SQL: %s", sql)


def _run_result(cursor: sqlite3.Cursor) -> RunResult:
    return RunResult(changes=max(cursor.rowcount, 0), last_insert_rowid=cursor.lastrowid or 0)


def _as_table_list(tables: str | Sequence[str] | None, fallback: Callable[[], list[str]]) -> list[str]:
    if tables is None:
        return fallback()
    if isinstance(tables, str):
        return [tables]
    return list(tables)


class PreparedStatement:
    """A SQL string bound to a connection, runnable with different params."""

    def __init__(self, db: sqlite3.Connection, sql: str) -> None:
        self._db = db
        self.sql = sql

    def get(self, params: Sequence[Any] = ()) -> Any | None:
        return self._db.execute(self.sql, params).fetchone()

    def all(self, params: Sequence[Any] = ()) -> list[Any]:
        return self._db.execute(self.sql, params).fetchall()

    def run(self, params: Sequence[Any] = ()) -> RunResult:
        return _run_result(self._db.execute(self.sql, params))

    def raw(self, params: Sequence[Any] = ()) -> list[tuple[Any, ...]]:
        """Return every row as a plain tuple."""
        cursor = self._db.cursor()
        cursor.row_factory = None
        return cursor.execute(self.sql, params).fetchall()


class Connection:
    """An open SQLite database.

    Calling the connection with a table name returns a new builder bound to
    it; calling it with no argument returns the underlying
    :class:`sqlite3.Connection`.

    Args:
        path: Database file path, or ``":memory:"``.
        config: Connection options.
    """

    def __init__(self, path: str | Path = MEMORY, config: ConnectionConfig | None = None) -> None:
        self.path = str(path)
        self.config = config or ConnectionConfig()
        self._db = self._open()

    def _open(self) -> sqlite3.Connection:
        target, uri = self.path, False
        if self.config.read_only and self.path != MEMORY:
            target, uri = f"file:{self.path}?mode=ro", True
        db = sqlite3.connect(
            target,
            timeout=self.config.timeout,
            check_same_thread=self.config.check_same_thread,
            isolation_level=None,
            uri=uri,
        )
        db.row_factory = sqlite3.Row
        if self.config.trace:
            db.set_trace_callback(
                self.config.trace if callable(self.config.trace) else _log_statement
            )
        logger.debug("Opened SQLite database %s", self.path)
        return db

    def __call__(self, table: str | None = None) -> StatementBuilder | sqlite3.Connection:
        if table:
            return self.table(table)
        return self._db

    def __repr__(self) -> str:
        return f"Connection(path={self.path!r})"

    def __enter__(self) -> Connection:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    @property
    def raw(self) -> sqlite3.Connection:
        """The underlying :class:`sqlite3.Connection`."""
        return self._db

    def table(self, name: str) -> StatementBuilder:
        """Return a fresh builder for ``name`` bound to this connection."""
        return StatementBuilder(name, executor=self)

    def close(self) -> None:
        self._db.close()
        logger.debug("Closed SQLite database %s", self.path)

    # ------------------------------------------------------------------
    # Querying
    # ------------------------------------------------------------------

    def prepare(self, sql: str) -> PreparedStatement:
        return PreparedStatement(self._db, sql)

    query = prepare

    def exec(self, sql: str) -> None:
        """Execute one or more semicolon-separated statements."""
        self._db.executescript(sql)

    def exec_file(self, path: str | Path) -> None:
        """Execute the SQL script stored in ``path``."""
        self.exec(Path(path).read_text(encoding="utf-8"))

    run_file = exec_file

    def pragma(self, sql: str, simple: bool = False) -> Any:
        """Run ``PRAGMA <sql>``.

        Returns every result row, or with ``simple=True`` the first column of
        the first row (``None`` when the pragma returns nothing).
        """
        rows = self._db.execute(f"PRAGMA {sql}").fetchall()
        if simple:
            return rows[0][0] if rows else None
        return rows

    def pragma_value(self, sql: str) -> Any:
        return self.pragma(sql, simple=True)

    # ------------------------------------------------------------------
    # Shorthands
    # ------------------------------------------------------------------

    def get(self, sql: str, params: Sequence[Any] = ()) -> Any | None:
        return self.prepare(sql).get(params)

    def all(self, sql: str, params: Sequence[Any] = ()) -> list[Any]:
        return self.prepare(sql).all(params)

    def run(self, sql: str, params: Sequence[Any] = ()) -> RunResult:
        return self.prepare(sql).run(params)

    def raw_rows(self, sql: str, params: Sequence[Any] = ()) -> list[tuple[Any, ...]]:
        return self.prepare(sql).raw(params)

    # StatementExecutor protocol

    def prepare_and_get(self, sql: str, params: Sequence[Any] = ()) -> Any | None:
        logger.debug("get: %s %r", sql, params)
        return self.get(sql, params)

    def prepare_and_all(self, sql: str, params: Sequence[Any] = ()) -> list[Any]:
        logger.debug("all: %s %r", sql, params)
        return self.all(sql, params)

    def prepare_and_run(self, sql: str, params: Sequence[Any] = ()) -> RunResult:
        logger.debug("run: %s %r", sql, params)
        return self.run(sql, params)

    # ------------------------------------------------------------------
    # Bulk insert
    # ------------------------------------------------------------------

    @contextmanager
    def bulk_insert(self) -> Iterator[Connection]:
        """Run a block of inserts in one transaction with fast, unsafe pragmas.

        The pragmas in ``config.bulk_insert_pragma`` are applied for the
        duration of the block and restored afterwards.  The transaction is
        rolled back if the block raises::

            with db.bulk_insert():
                for row in rows:
                    db("events").insert(row)
        """
        tuning = self.config.bulk_insert_pragma
        original = {name: self.pragma_value(name) for name in tuning}

        try:
            for name, value in tuning.items():
                self._db.execute(f"PRAGMA {name}={value}")
            self._db.execute("BEGIN TRANSACTION")
            logger.info("Bulk insert started on %s", self.path)
            try:
                yield self
            except BaseException:
                self._db.execute("ROLLBACK")
                logger.info("Bulk insert rolled back on %s", self.path)
                raise
            self._db.execute("COMMIT")
            logger.info("Bulk insert committed on %s", self.path)
        finally:
            self._restore_pragma(original)

    def _restore_pragma(self, values: dict[str, Any]) -> None:
        for name, value in values.items():
            if value is None:
                continue
            try:
                self._db.execute(f"PRAGMA {name}={value}")
            except sqlite3.Error as exc:
                logger.warning("Could not restore pragma %s=%r: %s", name, value, exc)

    # ------------------------------------------------------------------
    # Schema
    # ------------------------------------------------------------------

    def tables(self) -> list[str]:
        """List the tables in the database, by name."""
        rows = self.all("SELECT name FROM sqlite_master WHERE type='table' ORDER BY name ASC;")
        return [row["name"] for row in rows]

    def has_table(self, table: str) -> bool:
        return self.get("SELECT name FROM sqlite_master WHERE type='table' AND name=?;", [table]) is not None

    def columns(self, table: str) -> list[str]:
        """List a table's column names in declaration order."""
        return [row["name"] for row in self.all("SELECT * FROM pragma_table_info(?);", [table])]

    def columns_ext(self, table: str) -> dict[str, ColumnInfo]:
        """Map each column of ``table`` to its type, default, NOT NULL and key info."""
        return {
            row["name"]: ColumnInfo(
                type=row["type"],
                default=row["dflt_value"],
                notnull=bool(row["notnull"]),
                primary=row["pk"],
            )
            for row in self.all("SELECT * FROM pragma_table_info(?);", [table])
        }

    def schema(self, tables: str | Sequence[str] | None = None) -> str:
        """Return the CREATE statements of every table, or of ``tables``."""
        sections = [
            f"--- {table} ---\n{self._table_schema(table)}"
            for table in _as_table_list(tables, self.tables)
        ]
        return "\n\n".join(sections)

    def _table_schema(self, table: str) -> str | None:
        row = self.get("SELECT sql FROM sqlite_master WHERE name=?;", [table])
        return row["sql"] + ";" if row else None

    def indexes(self, table: str | None = None) -> list[IndexInfo]:
        """List indexes for ``table``, or for the whole database."""
        if table:
            rows = self.all(
                "SELECT tbl_name AS \"table\", name AS \"index\" FROM sqlite_master "
                "WHERE type='index' AND tbl_name=?;",
                [table],
            )
        else:
            rows = self.all(
                "SELECT tbl_name AS \"table\", name AS \"index\" FROM sqlite_master "
                "WHERE type='index' ORDER BY tbl_name ASC;"
            )
        return [IndexInfo(table=row["table"], index=row["index"]) for row in rows]

    # ------------------------------------------------------------------
    # Stats
    # ------------------------------------------------------------------

    def count(self, tables: str | Sequence[str] | None = None) -> dict[str, int]:
        """Return row counts for every table, or for ``tables``.

        The primary key column is counted when there is one, otherwise ``*``.
        """
        counts: dict[str, int] = {}
        for table in _as_table_list(tables, self.tables):
            pk = self.get("SELECT name FROM pragma_table_info(?) WHERE pk=1;", [table])
            counted = pk["name"] if pk else "*"
            counts[table] = self.get(f'SELECT count({counted}) AS count FROM "{table}";')["count"]
        return counts

    # ------------------------------------------------------------------
    # Alteration
    # ------------------------------------------------------------------

    def altergen(self, table: str) -> str | None:
        """Generate a script that rebuilds ``table`` through a temporary copy.

        Edit the generated CREATE statement to add or reorder columns, then
        run the script.  Indexes, triggers and views on the table must be
        recreated afterwards (see https://www.sqlite.org/lang_altertable.html,
        section 7).  Returns ``None`` for an unknown table.
        """
        schema = self._table_schema(table)
        if schema is None:
            return None

        definition = schema[schema.index("(") : schema.rindex(")") + 1]
        columns = self.columns(table)
        temp_table = TEMP_TABLE_PREFIX + table

        return (
            f"-- alter: {table.upper()}\n\n"
            "BEGIN TRANSACTION;\n\n"
            f'CREATE TABLE "{temp_table}" {definition};\n\n'
            f'INSERT INTO "{temp_table}" SELECT \n'
            + ",\n".join(columns)
            + "\n"
            f'FROM "{table}";\n\n'
            f'DROP TABLE "{table}";\n'
            f'ALTER TABLE "{temp_table}" RENAME TO "{table}";\n'
            "COMMIT;\n"
            "VACUUM;"
        )

    # ------------------------------------------------------------------
    # Backup
    # ------------------------------------------------------------------

    def backup(
        self,
        file: str | Path | None = None,
        dir: str | Path | None = None,
        time: bool = True,
        progress: Callable[[int, int, int], object] | None = None,
    ) -> Path:
        """Copy the live database to another file and return its path.

        Args:
            file: Exact target path.  Required for in-memory databases.
            dir: Target directory; the file name is derived from the
                database name plus a date stamp
                (``app--2027-09-16-14-03-59.sqlite``).  Defaults to the
                database's own directory.
            time: Include the time of day in the date stamp.
            progress: Passed through to :meth:`sqlite3.Connection.backup`.

        Raises:
            DatabaseError: If no target can be derived or the copy fails.
        """
        target = Path(file) if file is not None else self._backup_path(dir, time)
        logger.info("Backing up %s to %s", self.path, target)
        try:
            with closing(sqlite3.connect(target)) as dest:
                self._db.backup(dest, progress=progress)
        except sqlite3.Error as exc:
            raise DatabaseError(
                f"Backup to '{target}' failed: {exc}",
                details={"source": self.path, "target": str(target)},
            ) from exc
        return target

    def _backup_path(self, dir: str | Path | None, time: bool) -> Path:
        if self.path == MEMORY or not self.path:
            raise DatabaseError(
                "In-memory databases need an explicit backup file.",
                details={"source": self.path},
            )
        source = Path(self.path)
        stamp = datetime.now().strftime("%Y-%m-%d-%H-%M-%S" if time else "%Y-%m-%d")
        name = f"{source.stem}--{stamp}{source.suffix}"
        return (Path(dir) if dir is not None else source.parent) / name

    # ------------------------------------------------------------------
    # Health
    # ------------------------------------------------------------------

    def is_unlocked(self) -> bool:
        """Return ``False`` when the file is encrypted or not a database.

        Plain and empty databases report ``True``.
        """
        try:
            self._db.execute("SELECT count(*) FROM sqlite_master").fetchone()
        except sqlite3.DatabaseError as exc:
            if getattr(exc, "sqlite_errorname", None) == "SQLITE_NOTADB" or "not a database" in str(exc):
                return False
            raise
        return True
