"""
Tests for credspine.store - InMemoryTabularStore and SqliteTabularStore.

Both backends run the same contract suite: positional 1-based rows with the
header as row 1, in-place cell updates, shifting deletes and typed errors.
"""

import sqlite3

import pytest

from credspine.core.errors import StorageError, TableMissingError
from credspine.store.memory import InMemoryTabularStore
from credspine.store.protocols import TabularStore
from credspine.store.sqlite import SqliteTabularStore

HEADERS = ["ID", "Name", "Is Active"]


@pytest.fixture(params=["memory", "sqlite"])
def store(request, tmp_path):
    if request.param == "memory":
        yield InMemoryTabularStore(store_id="s1")
    else:
        backend = SqliteTabularStore(tmp_path / "grid.db", store_id="s1")
        yield backend
        backend.close()


class TestTabularStoreContract:
    def test_satisfies_protocol(self, store):
        assert isinstance(store, TabularStore)
        assert store.store_id == "s1"

    def test_create_table_is_idempotent(self, store):
        store.create_table("Providers", HEADERS)
        store.append_row("Providers", ["p-1", "Ada", True])
        store.create_table("Providers", ["Other"])
        assert store.get_headers("Providers") == HEADERS
        assert len(store.get_grid("Providers")) == 2
        assert store.has_table("Providers")
        assert store.table_names() == ["Providers"]

    def test_append_returns_row_numbers_from_two(self, store):
        store.create_table("Providers", HEADERS)
        assert store.append_row("Providers", ["p-1", "Ada", True]) == 2
        assert store.append_row("Providers", ["p-2", "Grace", False]) == 3
        assert store.get_grid("Providers") == [
            HEADERS,
            ["p-1", "Ada", True],
            ["p-2", "Grace", False],
        ]

    def test_read_row(self, store):
        store.create_table("Providers", HEADERS)
        store.append_row("Providers", ["p-1", "Ada", True])
        assert store.read_row("Providers", 2) == ["p-1", "Ada", True]

    def test_update_cells_in_place(self, store):
        store.create_table("Providers", HEADERS)
        store.append_row("Providers", ["p-1", "Ada", True])
        store.update_cells("Providers", 2, {2: "Ada L.", 3: False})
        assert store.read_row("Providers", 2) == ["p-1", "Ada L.", False]

    def test_update_cells_pads_short_rows(self, store):
        store.create_table("Providers", HEADERS)
        store.append_row("Providers", ["p-1"])
        store.update_cells("Providers", 2, {3: True})
        assert store.read_row("Providers", 2) == ["p-1", "", True]

    def test_delete_shifts_rows_up(self, store):
        store.create_table("Providers", HEADERS)
        for i in range(1, 4):
            store.append_row("Providers", [f"p-{i}", f"n{i}", True])
        store.delete_row("Providers", 2)
        assert store.read_row("Providers", 2)[0] == "p-2"
        assert store.read_row("Providers", 3)[0] == "p-3"
        assert len(store.get_grid("Providers")) == 3

    def test_grid_is_a_copy(self, store):
        store.create_table("Providers", HEADERS)
        store.append_row("Providers", ["p-1", "Ada", True])
        grid = store.get_grid("Providers")
        grid[1][1] = "mutated"
        assert store.read_row("Providers", 2)[1] == "Ada"

    def test_missing_table(self, store):
        with pytest.raises(TableMissingError):
            store.get_grid("Nope")
        with pytest.raises(TableMissingError):
            store.append_row("Nope", ["x"])

    @pytest.mark.parametrize("row_number", [0, 1, 3])
    def test_row_out_of_range(self, store, row_number):
        store.create_table("Providers", HEADERS)
        store.append_row("Providers", ["p-1", "Ada", True])
        with pytest.raises(StorageError):
            store.read_row("Providers", row_number)
        with pytest.raises(StorageError):
            store.delete_row("Providers", row_number)


class TestSqliteTabularStore:
    def test_persists_across_connections(self, tmp_path):
        path = tmp_path / "nested" / "grid.db"
        first = SqliteTabularStore(path)
        first.create_table("Providers", HEADERS)
        first.append_row("Providers", ["p-1", "Ada", True])
        first.close()

        second = SqliteTabularStore(path)
        assert second.get_grid("Providers") == [HEADERS, ["p-1", "Ada", True]]
        second.close()

    def test_unstorable_value(self):
        store = SqliteTabularStore()
        store.create_table("Providers", HEADERS)
        with pytest.raises(StorageError):
            store.append_row("Providers", ["p-1", object(), True])
        assert store.get_grid("Providers") == [HEADERS]

    def test_driver_errors_become_storage_errors(self):
        store = SqliteTabularStore()
        store.create_table("Providers", HEADERS)
        store.close()

        with pytest.raises(StorageError) as excinfo:
            store.delete_row("Providers", 2)
        assert excinfo.value.context.table == "Providers"
        assert isinstance(excinfo.value.cause, sqlite3.Error)


class TestInMemoryTabularStore:
    def test_generated_store_ids_are_unique(self):
        assert InMemoryTabularStore().store_id != InMemoryTabularStore().store_id
