"""SQLite-backed tabular store.

Keeps spreadsheet semantics on top of an embedded file: a table is an
ordered list of JSON-encoded rows, and row numbers are positional (derived
from insertion order at read time) rather than stable keys. Deleting a row
shifts every row below it up by one, exactly like a sheet.

Layout::

    sheet_tables(name TEXT PRIMARY KEY, headers_json TEXT)
    sheet_rows(seq INTEGER PRIMARY KEY AUTOINCREMENT, table_name TEXT, values_json TEXT)

Usage::

    store = SqliteTabularStore("/tmp/credspine.db", store_id="default")
    store.create_table("Providers", ["ID", "First Name"])
    store.append_row("Providers", ["p-1", "Ada"])
"""

from __future__ import annotations

import json
import sqlite3
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Any

from credspine.core.errors import StorageError, TableMissingError
from credspine.core.logging import get_logger
from credspine.store.protocols import FIRST_DATA_ROW, Cell, Grid, Row

logger = get_logger(__name__)

_SCHEMA = (
    """
    CREATE TABLE IF NOT EXISTS sheet_tables (
        name TEXT PRIMARY KEY,
        headers_json TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS sheet_rows (
        seq INTEGER PRIMARY KEY AUTOINCREMENT,
        table_name TEXT NOT NULL,
        values_json TEXT NOT NULL
    )
    """,
    """
    CREATE INDEX IF NOT EXISTS idx_sheet_rows_table
    ON sheet_rows(table_name, seq)
    """,
)


class SqliteTabularStore:
    """File-backed implementation of :class:`TabularStore`.

    Each public call runs in its own committed transaction under a process
    lock; sequences of calls are not isolated from each other. Driver errors
    (a locked or closed database, say) surface as :class:`StorageError`.
    """

    def __init__(self, path: str | Path = ":memory:", *, store_id: str = "default") -> None:
        self._path = str(path)
        if self._path != ":memory:":
            Path(self._path).parent.mkdir(parents=True, exist_ok=True)
        self._store_id = store_id
        self._conn = sqlite3.connect(self._path, check_same_thread=False)
        self._lock = threading.RLock()
        with self._session(None, write=True):
            for statement in _SCHEMA:
                self._conn.execute(statement)

    @property
    def store_id(self) -> str:
        return self._store_id

    @property
    def path(self) -> str:
        return self._path

    def table_names(self) -> list[str]:
        with self._session(None):
            rows = self._conn.execute("SELECT name FROM sheet_tables ORDER BY name").fetchall()
        return [r[0] for r in rows]

    def has_table(self, table: str) -> bool:
        with self._session(table):
            row = self._conn.execute(
                "SELECT 1 FROM sheet_tables WHERE name = ?", (table,)
            ).fetchone()
        return row is not None

    def create_table(self, table: str, headers: list[str]) -> None:
        with self._session(table, write=True):
            cur = self._conn.execute(
                "INSERT OR IGNORE INTO sheet_tables (name, headers_json) VALUES (?, ?)",
                (table, json.dumps(list(headers))),
            )
        if cur.rowcount:
            logger.debug("store.table_created", table=table, columns=len(headers))

    def get_headers(self, table: str) -> list[str]:
        with self._session(table):
            return self._headers(table)

    def get_grid(self, table: str) -> Grid:
        with self._session(table):
            headers = self._headers(table)
            rows = self._conn.execute(
                "SELECT values_json FROM sheet_rows WHERE table_name = ? ORDER BY seq",
                (table,),
            ).fetchall()
        return [headers] + [json.loads(r[0]) for r in rows]

    def read_row(self, table: str, row_number: int) -> Row:
        with self._session(table):
            _, values = self._locate(table, row_number)
        return values

    def append_row(self, table: str, values: Row) -> int:
        with self._session(table, write=True):
            self._headers(table)
            self._conn.execute(
                "INSERT INTO sheet_rows (table_name, values_json) VALUES (?, ?)",
                (table, _dumps(values)),
            )
            (count,) = self._conn.execute(
                "SELECT COUNT(*) FROM sheet_rows WHERE table_name = ?", (table,)
            ).fetchone()
        return count + 1

    def update_cells(self, table: str, row_number: int, updates: dict[int, Cell]) -> None:
        with self._session(table, write=True):
            seq, values = self._locate(table, row_number)
            for column, value in updates.items():
                if column < 1:
                    raise StorageError(f"Column {column} out of range in {table}")
                if column > len(values):
                    values.extend([""] * (column - len(values)))
                values[column - 1] = value
            self._conn.execute(
                "UPDATE sheet_rows SET values_json = ? WHERE seq = ?",
                (_dumps(values), seq),
            )

    def delete_row(self, table: str, row_number: int) -> None:
        with self._session(table, write=True):
            seq, _ = self._locate(table, row_number)
            self._conn.execute("DELETE FROM sheet_rows WHERE seq = ?", (seq,))

    def close(self) -> None:
        self._conn.close()

    # -- internals ---------------------------------------------------------

    @contextmanager
    def _session(self, table: str | None, *, write: bool = False) -> Iterator[None]:
        """Hold the lock, commit on success when ``write``, translate driver errors."""
        with self._lock:
            try:
                if write:
                    with self._conn:
                        yield
                else:
                    yield
            except sqlite3.Error as exc:
                logger.warning("store.sqlite_error", table=table, error=str(exc))
                raise StorageError(
                    f"SQLite error on {table or self._path}: {exc}",
                    retryable=isinstance(exc, sqlite3.OperationalError),
                    cause=exc,
                ).with_context(table=table) from exc

    def _headers(self, table: str) -> list[str]:
        row = self._conn.execute(
            "SELECT headers_json FROM sheet_tables WHERE name = ?", (table,)
        ).fetchone()
        if row is None:
            raise TableMissingError(table)
        return json.loads(row[0])

    def _locate(self, table: str, row_number: int) -> tuple[int, list[Any]]:
        self._headers(table)
        if row_number < FIRST_DATA_ROW:
            raise StorageError(f"Row {row_number} out of range in {table}")
        row = self._conn.execute(
            "SELECT seq, values_json FROM sheet_rows WHERE table_name = ? "
            "ORDER BY seq LIMIT 1 OFFSET ?",
            (table, row_number - FIRST_DATA_ROW),
        ).fetchone()
        if row is None:
            raise StorageError(f"Row {row_number} out of range in {table}")
        return row[0], json.loads(row[1])

    def __repr__(self) -> str:
        return f"SqliteTabularStore({self._path!r}, store_id={self._store_id!r})"


def _dumps(values: Row) -> str:
    try:
        return json.dumps(list(values))
    except TypeError as exc:
        raise StorageError("Row contains a value that cannot be stored", cause=exc) from exc
