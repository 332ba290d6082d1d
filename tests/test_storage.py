"""Tests for the in-memory table store and the local JSON store."""

import asyncio

import pytest

from lumina.services.storage import (
    InMemorySpreadsheetSource,
    InMemoryTabularStore,
    LocalJsonStore,
    NotFoundError,
    StorageError,
)


class TestInMemoryTabularStore:
    """Tests for spreadsheet-style row addressing."""

    def test_ensure_table_is_idempotent(self):
        """Test that an existing table keeps its rows."""
        store = InMemoryTabularStore()
        asyncio.run(store.ensure_table("T", ["ID", "Name"]))
        asyncio.run(store.append_rows("T", [["1", "a"]]))
        asyncio.run(store.ensure_table("T", ["Other"]))

        assert store.snapshot("T") == [["ID", "Name"], ["1", "a"]]

    def test_cells_come_back_as_strings(self):
        """Test that values read back like sheet display strings."""
        store = InMemoryTabularStore({"T": [["ID"]]})
        asyncio.run(store.append_rows("T", [[1, None]]))
        assert asyncio.run(store.list_rows("T"))[1] == ["1", ""]

    def test_update_row_is_header_inclusive(self):
        """Test that row 2 is the first data row."""
        store = InMemoryTabularStore({"T": [["ID"], ["1"], ["2"]]})
        asyncio.run(store.update_row("T", 2, ["one"]))
        assert store.snapshot("T") == [["ID"], ["one"], ["2"]]

    def test_delete_row_shifts_up(self):
        """Test that later rows move up after a delete."""
        store = InMemoryTabularStore({"T": [["ID"], ["1"], ["2"], ["3"]]})
        asyncio.run(store.delete_row("T", 3))
        assert store.snapshot("T") == [["ID"], ["1"], ["3"]]

    def test_missing_row_and_table(self):
        """Test NotFoundError for bad addresses."""
        store = InMemoryTabularStore({"T": [["ID"]]})
        with pytest.raises(NotFoundError):
            asyncio.run(store.update_row("T", 5, ["x"]))
        with pytest.raises(NotFoundError):
            asyncio.run(store.list_rows("Missing"))

    def test_list_rows_returns_a_copy(self):
        """Test that callers can't mutate stored rows."""
        store = InMemoryTabularStore({"T": [["ID"], ["1"]]})
        rows = asyncio.run(store.list_rows("T"))
        rows[1][0] = "changed"
        assert store.snapshot("T")[1] == ["1"]


class TestInMemorySpreadsheetSource:
    """Tests for the foreign spreadsheet stand-in."""

    def test_tabs_and_rows(self):
        """Test listing tabs and reading one."""
        source = InMemorySpreadsheetSource({"s1": {"Jan": [["Date"], ["2024-01-01"]]}})
        assert asyncio.run(source.list_tabs("s1")) == ["Jan"]
        assert asyncio.run(source.read_tab("s1", "Jan")) == [["Date"], ["2024-01-01"]]

    def test_unknown_spreadsheet(self):
        """Test that unknown ids raise NotFoundError."""
        source = InMemorySpreadsheetSource()
        with pytest.raises(NotFoundError):
            asyncio.run(source.list_tabs("nope"))


class TestLocalJsonStore:
    """Tests for the local fallback store."""

    def test_set_and_get_survive_new_instance(self, tmp_path):
        """Test that values are durable."""
        path = tmp_path / "nested" / "storage.json"
        LocalJsonStore(path).set("lumina_expenses", [{"id": 1}])

        assert LocalJsonStore(path).get("lumina_expenses") == [{"id": 1}]

    def test_set_overwrites_whole_value(self, tmp_path):
        """Test that set replaces rather than merges."""
        store = LocalJsonStore(tmp_path / "s.json")
        store.set("k", [1, 2, 3])
        store.set("k", [4])
        assert store.get("k") == [4]

    def test_get_default_and_remove(self, tmp_path):
        """Test defaults for missing keys and key removal."""
        store = LocalJsonStore(tmp_path / "s.json")
        assert store.get("missing", []) == []
        store.set("a", 1)
        store.set("b", 2)
        store.remove("a")
        assert store.keys() == ["b"]

    def test_corrupt_file_raises_storage_error(self, tmp_path):
        """Test that unreadable files surface as StorageError."""
        path = tmp_path / "s.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(StorageError):
            LocalJsonStore(path).get("k")

    def test_non_object_file_raises_storage_error(self, tmp_path):
        """Test that a JSON list at the top level is rejected."""
        path = tmp_path / "s.json"
        path.write_text("[1, 2]", encoding="utf-8")
        with pytest.raises(StorageError):
            LocalJsonStore(path).get("k")


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
