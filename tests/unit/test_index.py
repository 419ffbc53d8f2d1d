"""Unit tests for index normalization and the index store."""

import json

import pytest

from filekanban.errors import BoardStorageError
from filekanban.index import (
    DEFAULT_COLUMNS,
    IndexStore,
    ensure_unique_column_id,
    normalize_index,
    slugify,
)
from filekanban.models import Column, IndexDocument
from filekanban.workspace import StoragePaths

DEFAULT_IDS = [column_id for column_id, _ in DEFAULT_COLUMNS]


class TestNormalizeIndex:
    """Test cases for normalize_index."""

    def test_empty_input_uses_default_columns(self):
        """Test that an empty mapping yields the default board."""
        index = normalize_index({})

        assert [(c.id, c.title) for c in index.columns] == [("todo", "TODO"), ("doing", "Doing"), ("done", "Done")]
        assert index.order == {"todo": [], "doing": [], "done": []}

    def test_keeps_well_formed_columns_in_order(self):
        """Test that malformed column entries are dropped and order is kept."""
        index = normalize_index({
            "columns": [
                {"id": "b", "title": "B"},
                {"id": 3, "title": "bad id"},
                "not a column",
                {"id": "a", "title": "A"},
                {"id": "c"},
            ],
            "order": {"a": ["x"], "b": []},
        })

        assert index.column_ids() == ["b", "a"]
        assert index.order == {"b": [], "a": ["x"]}

    def test_all_malformed_columns_fall_back_to_defaults(self):
        """Test the default columns replace a list with no usable entry."""
        index = normalize_index({"columns": [{"id": 1}, None], "order": {"todo": ["keep"]}})

        assert index.column_ids() == DEFAULT_IDS
        assert index.order["todo"] == ["keep"]

    def test_order_entries_filtered_to_strings(self):
        """Test that non-string ids are removed from order lists."""
        index = normalize_index({"order": {"todo": ["a", 1, None, "b", {"id": "c"}], "doing": "not a list"}})

        assert index.order["todo"] == ["a", "b"]
        assert index.order["doing"] == []

    def test_unknown_order_keys_dropped(self):
        """Test that order lists for undeclared columns are discarded."""
        index = normalize_index({"order": {"ghost": ["a"], "done": ["b"]}})

        assert "ghost" not in index.order
        assert index.order["done"] == ["b"]

    @pytest.mark.parametrize("raw", [None, [], "text", 42, {"columns": "todo"}, {"columns": [], "order": []}])
    def test_total_for_any_input(self, raw):
        """Test that normalization never raises and keys order by columns."""
        index = normalize_index(raw)

        assert set(index.order) == set(index.column_ids())
        assert index.column_ids() == DEFAULT_IDS

    def test_default_columns_are_fresh_objects(self):
        """Test that mutating one normalized index does not leak into the next."""
        first = normalize_index({})
        first.columns[0].title = "Renamed"

        assert normalize_index({}).columns[0].title == "TODO"

    def test_custom_defaults(self):
        """Test supplying an explicit default column set."""
        index = normalize_index({}, defaults=(("inbox", "Inbox"),))

        assert index.column_ids() == ["inbox"]


class TestSlugs:
    """Test cases for column id helpers."""

    @pytest.mark.parametrize("title,expected", [
        ("In Progress", "in-progress"),
        ("  Review / QA!! ", "review-qa"),
        ("--Done--", "done"),
        ("!!!", "column"),
        ("", "column"),
        ("Sprint 12", "sprint-12"),
    ])
    def test_slugify(self, title, expected):
        assert slugify(title) == expected

    def test_ensure_unique_column_id_suffixes(self):
        """Test disambiguation against existing ids."""
        columns = [Column("todo", "TODO"), Column("todo-1", "TODO again")]

        assert ensure_unique_column_id(columns, "todo") == "todo-2"

    def test_ensure_unique_column_id_unused(self):
        assert ensure_unique_column_id([Column("todo", "TODO")], "doing") == "doing"


class TestIndexStore:
    """Test cases for IndexStore."""

    @pytest.fixture
    def store(self, memory_fs):
        return IndexStore(memory_fs, StoragePaths.for_root(memory_fs, "/workspace"))

    def test_read_missing_index_writes_default(self, store, memory_fs):
        """Test that a missing index is rebuilt and persisted."""
        index = store.read()

        assert index.column_ids() == DEFAULT_IDS
        saved = json.loads(memory_fs.text("/workspace/.vscode-kanban/index.json"))
        assert saved == {
            "columns": [{"id": "todo", "title": "TODO"}, {"id": "doing", "title": "Doing"}, {"id": "done", "title": "Done"}],
            "order": {"todo": [], "doing": [], "done": []},
        }

    def test_read_creates_storage_directories(self, store, memory_fs):
        store.read()

        assert "/workspace/.vscode-kanban" in memory_fs.dirs
        assert "/workspace/.vscode-kanban/cards" in memory_fs.dirs

    def test_read_unparsable_index_self_heals(self, store, memory_fs):
        """Test that corrupt JSON is replaced rather than raised."""
        memory_fs.put_text("/workspace/.vscode-kanban/index.json", "{ <<<<<<< HEAD")

        index = store.read()

        assert index.column_ids() == DEFAULT_IDS
        assert json.loads(memory_fs.text("/workspace/.vscode-kanban/index.json"))["order"]["todo"] == []

    def test_read_invalid_utf8_keeps_columns(self, store, memory_fs):
        """Test that a stray Latin-1 byte does not reset the board."""
        raw = json.dumps({"columns": [{"id": "cafe", "title": "Caf\xe9"}, {"id": "b", "title": "B"}],
                          "order": {"cafe": ["x"], "b": []}}, ensure_ascii=False)
        memory_fs.write_file("/workspace/.vscode-kanban/index.json", raw.encode("latin-1"))

        index = store.read()

        assert index.column_ids() == ["cafe", "b"]
        assert index.columns[0].title == "Caf\ufffd"
        assert index.order["cafe"] == ["x"]

    def test_read_deeply_nested_index_self_heals(self, store, memory_fs):
        memory_fs.put_text("/workspace/.vscode-kanban/index.json", "[" * 200000 + "]" * 200000)

        index = store.read()

        assert index.column_ids() == DEFAULT_IDS
        assert json.loads(memory_fs.text("/workspace/.vscode-kanban/index.json"))["order"]["todo"] == []

    def test_read_normalizes_partial_index(self, store, memory_fs):
        memory_fs.put_text(
            "/workspace/.vscode-kanban/index.json",
            json.dumps({"columns": [{"id": "backlog", "title": "Backlog"}], "order": {"backlog": ["a", 5]}}),
        )

        index = store.read()

        assert index.column_ids() == ["backlog"]
        assert index.order == {"backlog": ["a"]}

    def test_write_is_pretty_printed_and_replaces_content(self, store, memory_fs):
        store.write(IndexDocument(columns=[Column("a", "A")], order={"a": ["x"]}))
        store.write(IndexDocument(columns=[Column("b", "B")], order={"b": []}))

        text = memory_fs.text("/workspace/.vscode-kanban/index.json")
        assert text == json.dumps({"columns": [{"id": "b", "title": "B"}], "order": {"b": []}}, indent=2)

    def test_write_failure_raises_storage_error(self, store, memory_fs):
        memory_fs.fail_writes = True

        with pytest.raises(BoardStorageError, match="Could not write index"):
            store.write(IndexDocument(columns=[Column("a", "A")], order={"a": []}))
