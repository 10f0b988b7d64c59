"""
Tabular store protocol.

A *table* is a named grid: row 1 is the header row of column labels, rows
2..N are data rows. Coordinates are 1-based in both dimensions, so the first
data row is row 2 and the first column is column 1.

Manifesto:
    The store is deliberately dumb: no transactions, no secondary indexes,
    no query language. The engine compensates with full scans and its own
    row index cache. Keeping the contract this small is what lets the same
    engine run over an in-memory dict, an SQLite file, or a spreadsheet API.

Architecture:
    ::

        TabularStore Protocol:
        ┌────────────────────────────────────────────────────────────┐
        │ get_grid(table)                 → [[headers], [row], …]    │
        │ append_row(table, values)       → new row number           │
        │ update_cells(table, row, {c: v})→ overwrite cells in place │
        │ delete_row(table, row)          → remove, later rows shift │
        │ create_table(table, headers)    → idempotent               │
        └────────────────────────────────────────────────────────────┘

        Implementations:
        ┌────────────────────────────────────────────────────────────┐
        │ InMemoryTabularStore  → dict[str, list[list]]              │
        │ SqliteTabularStore    → sheet_tables + sheet_rows          │
        └────────────────────────────────────────────────────────────┘

Guardrails:
    ❌ DON'T: Expect two calls to observe a consistent snapshot
    ✅ DO: Treat every call as independent; callers own consistency

Tags:
    protocol, tabular-store, grid, spreadsheet, cred-spine
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

Cell = Any
Row = list[Cell]
Grid = list[Row]

HEADER_ROW = 1
FIRST_DATA_ROW = 2


@runtime_checkable
class TabularStore(Protocol):
    """Minimal grid store the data-access engine runs on.

    All methods raise :class:`~credspine.core.errors.TableMissingError` for
    an unknown table and :class:`~credspine.core.errors.StorageError` for
    coordinates outside the grid.
    """

    @property
    def store_id(self) -> str:
        """Stable identity of this store (scopes the row index cache)."""
        ...

    def table_names(self) -> list[str]:
        """Names of all tables in the store."""
        ...

    def has_table(self, table: str) -> bool:
        ...

    def create_table(self, table: str, headers: list[str]) -> None:
        """Create a table with the given header row. No-op if it exists."""
        ...

    def get_headers(self, table: str) -> list[str]:
        """Return the header row only."""
        ...

    def get_grid(self, table: str) -> Grid:
        """Return a copy of the whole table, header row first."""
        ...

    def read_row(self, table: str, row_number: int) -> Row:
        """Return a copy of one data row."""
        ...

    def append_row(self, table: str, values: Row) -> int:
        """Append a data row and return its row number."""
        ...

    def update_cells(self, table: str, row_number: int, updates: dict[int, Cell]) -> None:
        """Overwrite cells of one data row, keyed by 1-based column number."""
        ...

    def delete_row(self, table: str, row_number: int) -> None:
        """Delete one data row; rows below it move up by one."""
        ...


__all__ = [
    "Cell",
    "Row",
    "Grid",
    "HEADER_ROW",
    "FIRST_DATA_ROW",
    "TabularStore",
]
