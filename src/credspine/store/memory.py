"""In-memory tabular store.

Each table is a list of rows guarded by a single re-entrant lock, so every
individual call is atomic with respect to the grid's shape. Nothing spans
calls: two read-modify-write sequences can still interleave.

Usage::

    store = InMemoryTabularStore()
    store.create_table("Providers", ["ID", "First Name"])
    store.append_row("Providers", ["p-1", "Ada"])
    store.get_grid("Providers")   # [["ID", "First Name"], ["p-1", "Ada"]]
"""

from __future__ import annotations

import copy
import threading
import uuid

from credspine.core.errors import StorageError, TableMissingError
from credspine.store.protocols import FIRST_DATA_ROW, Cell, Grid, Row


class InMemoryTabularStore:
    """Dict-of-grids implementation of :class:`TabularStore`."""

    def __init__(self, store_id: str | None = None) -> None:
        self._store_id = store_id or f"memory-{uuid.uuid4().hex[:12]}"
        self._tables: dict[str, Grid] = {}
        self._lock = threading.RLock()

    @property
    def store_id(self) -> str:
        return self._store_id

    def table_names(self) -> list[str]:
        with self._lock:
            return list(self._tables)

    def has_table(self, table: str) -> bool:
        with self._lock:
            return table in self._tables

    def create_table(self, table: str, headers: list[str]) -> None:
        with self._lock:
            self._tables.setdefault(table, [list(headers)])

    def get_headers(self, table: str) -> list[str]:
        with self._lock:
            return list(self._grid(table)[0])

    def get_grid(self, table: str) -> Grid:
        with self._lock:
            return copy.deepcopy(self._grid(table))

    def read_row(self, table: str, row_number: int) -> Row:
        with self._lock:
            grid = self._grid(table)
            return copy.deepcopy(grid[self._offset(table, grid, row_number)])

    def append_row(self, table: str, values: Row) -> int:
        with self._lock:
            grid = self._grid(table)
            grid.append(list(values))
            return len(grid)

    def update_cells(self, table: str, row_number: int, updates: dict[int, Cell]) -> None:
        with self._lock:
            grid = self._grid(table)
            row = grid[self._offset(table, grid, row_number)]
            for column, value in updates.items():
                if column < 1:
                    raise StorageError(f"Column {column} out of range in {table}")
                if column > len(row):
                    row.extend([""] * (column - len(row)))
                row[column - 1] = value

    def delete_row(self, table: str, row_number: int) -> None:
        with self._lock:
            grid = self._grid(table)
            del grid[self._offset(table, grid, row_number)]

    # -- internals ---------------------------------------------------------

    def _grid(self, table: str) -> Grid:
        try:
            return self._tables[table]
        except KeyError:
            raise TableMissingError(table) from None

    @staticmethod
    def _offset(table: str, grid: Grid, row_number: int) -> int:
        if row_number < FIRST_DATA_ROW or row_number > len(grid):
            raise StorageError(f"Row {row_number} out of range in {table}")
        return row_number - 1

    def __repr__(self) -> str:
        return f"InMemoryTabularStore({self._store_id!r}, tables={len(self._tables)})"
