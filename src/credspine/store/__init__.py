"""Tabular store collaborators.

The engine only needs four grid primitives from a backing store -- read a
whole table, append a row, overwrite cells, delete a row -- so any store that
can do those satisfies :class:`TabularStore`.

Modules
-------
protocols   TabularStore protocol (the contract)
memory      InMemoryTabularStore -- dict of grids, for tests and single process
sqlite      SqliteTabularStore   -- embedded file-backed grids
"""

from credspine.store.memory import InMemoryTabularStore
from credspine.store.protocols import TabularStore
from credspine.store.sqlite import SqliteTabularStore

__all__ = [
    "InMemoryTabularStore",
    "SqliteTabularStore",
    "TabularStore",
]
