"""
Tests for the hierarchical record store.

Covers path rules, lookup vs creation, typed properties, and revision
guards. Backend-independent tests run against both stores via the
``store`` fixture.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path

import pytest

from upgradeledger.errors import ConcurrentModificationError, StorageError
from upgradeledger.store.base import join_path, lineage, node_name, normalize_path, parent_path
from upgradeledger.store.json_file import JsonFileRecordStore
from upgradeledger.store.memory import MemoryRecordStore

T0 = datetime(2024, 1, 1, tzinfo=timezone.utc)


# -----------------------------------------------------------------------------
# Path rules
# -----------------------------------------------------------------------------


class TestPaths:
    def test_normalize_collapses_slashes(self):
        assert normalize_path("/var//upgrade/") == "/var/upgrade"
        assert normalize_path("/") == "/"

    @pytest.mark.parametrize("path", ["var/upgrade", "", "/var/../etc", "/var/./upgrade"])
    def test_normalize_rejects_invalid(self, path):
        with pytest.raises(ValueError):
            normalize_path(path)

    def test_join(self):
        assert join_path("/var/upgrade", "setup") == "/var/upgrade/setup"
        assert join_path("/", "var") == "/var"

    @pytest.mark.parametrize("name", ["", "a/b"])
    def test_join_rejects_invalid_names(self, name):
        with pytest.raises(ValueError):
            join_path("/var", name)

    def test_parent_and_name(self):
        assert parent_path("/var/upgrade") == "/var"
        assert parent_path("/var") == "/"
        assert parent_path("/") is None
        assert node_name("/var/upgrade") == "upgrade"

    def test_lineage(self):
        assert lineage("/a/b/c") == ["/a", "/a/b", "/a/b/c"]


# -----------------------------------------------------------------------------
# Both backends
# -----------------------------------------------------------------------------


class TestLookupAndCreate:
    def test_get_missing_returns_none_without_creating(self, store):
        assert store.get("/var/upgrade") is None
        assert store.get("/var/upgrade") is None
        assert store.get("/var") is None

    def test_create_makes_ancestors(self, store):
        node = store.create("/var/upgrade/setup")
        assert node.path == "/var/upgrade/setup"
        assert node.name == "setup"
        assert store.get("/var") is not None
        assert store.get("/var/upgrade") is not None

    def test_create_is_idempotent(self, store):
        first = store.create("/var/upgrade")
        first.set_property("version", "1.0.0")
        second = store.create("/var/upgrade")
        assert second == first
        assert second.get_property("version") == "1.0.0"

    def test_get_or_create(self, store):
        node = store.get_or_create("/var/upgrade")
        assert store.get_or_create("/var/upgrade") == node
        assert node.property_names() == []

    def test_child_names(self, store):
        store.create("/var/upgrade/setup")
        store.create("/var/upgrade/content")
        store.create("/var/upgrade/content/deep")
        root = store.get("/var/upgrade")
        assert root.child_names() == ["content", "setup"]


class TestProperties:
    def test_missing_property_is_none(self, store):
        node = store.create("/n")
        assert node.get_property("version") is None
        assert not node.has_property("version")

    def test_string_property(self, store):
        node = store.create("/n")
        node.set_property("version", "1.2.0")
        assert node.get_property("version") == "1.2.0"
        assert node.has_property("version")

    def test_string_array_property(self, store):
        node = store.create("/n")
        node.set_property("actions", ("a_1", "b_2"))
        assert node.get_property("actions") == ["a_1", "b_2"]

    def test_date_property(self, store):
        node = store.create("/n")
        node.set_property("time", T0)
        assert node.get_property("time") == T0

    def test_returned_arrays_are_copies(self, store):
        node = store.create("/n")
        node.set_property("actions", ["a_1"])
        node.get_property("actions").append("b_2")
        assert node.get_property("actions") == ["a_1"]

    @pytest.mark.parametrize("value", [1, 1.5, True, None, {"a": "b"}, ["a", 1]])
    def test_unsupported_values_rejected(self, store, value):
        node = store.create("/n")
        with pytest.raises(TypeError):
            node.set_property("p", value)

    def test_naive_datetime_rejected(self, store):
        node = store.create("/n")
        with pytest.raises(TypeError):
            node.set_property("time", datetime(2024, 1, 1))

    def test_empty_property_name_rejected(self, store):
        node = store.create("/n")
        with pytest.raises(ValueError):
            node.set_property("", "x")


class TestRevisions:
    def test_new_node_starts_at_zero(self, store):
        assert store.create("/n").revision == 0

    def test_each_write_bumps_revision(self, store):
        node = store.create("/n")
        assert node.set_property("a", "1") == 1
        assert node.set_property("b", "2") == 2
        assert node.revision == 2

    def test_guarded_write_succeeds_on_match(self, store):
        node = store.create("/n")
        node.set_property("actions", ["a_1"], expected_revision=0)
        assert node.get_property("actions") == ["a_1"]

    def test_guarded_write_fails_on_mismatch(self, store):
        node = store.create("/n")
        other_handle = store.get("/n")
        node.set_property("actions", ["a_1"])
        with pytest.raises(ConcurrentModificationError) as excinfo:
            other_handle.set_property("actions", ["b_2"], expected_revision=0)
        assert excinfo.value.expected == 0
        assert excinfo.value.actual == 1
        assert isinstance(excinfo.value, StorageError)
        assert node.get_property("actions") == ["a_1"]


# -----------------------------------------------------------------------------
# Backend specifics
# -----------------------------------------------------------------------------


class TestMemoryStore:
    def test_len_counts_nodes(self):
        store = MemoryRecordStore()
        store.create("/a/b")
        assert len(store) == 2


class TestJsonFileStore:
    def test_get_does_not_create_file(self, json_store: JsonFileRecordStore):
        assert json_store.get("/var/upgrade") is None
        assert not json_store.path.exists()

    def test_state_survives_reopen(self, json_store: JsonFileRecordStore):
        node = json_store.create("/var/upgrade")
        node.set_property("version", "1.2.0")
        node.set_property("time", T0)

        reopened = JsonFileRecordStore(json_store.path).get("/var/upgrade")
        assert reopened is not None
        assert reopened.get_property("version") == "1.2.0"
        assert reopened.get_property("time") == T0
        assert reopened.revision == 2

    def test_document_layout(self, json_store: JsonFileRecordStore):
        json_store.create("/var/upgrade/setup").set_property("actions", ["addIndex_h1"])
        document = json.loads(json_store.path.read_text(encoding="utf-8"))
        assert document["format"] == 1
        assert document["nodes"]["/var/upgrade/setup"] == {
            "revision": 1,
            "properties": {"actions": {"type": "string[]", "value": ["addIndex_h1"]}},
        }

    def test_no_temp_file_left_behind(self, json_store: JsonFileRecordStore):
        json_store.create("/n").set_property("a", "1")
        leftovers = [p.name for p in json_store.path.parent.iterdir() if p.name.endswith(".tmp")]
        assert leftovers == []

    def test_writes_from_another_handle_are_seen(self, json_store: JsonFileRecordStore):
        json_store.create("/n")
        other = JsonFileRecordStore(json_store.path)
        other.get("/n").set_property("a", "1")
        with pytest.raises(ConcurrentModificationError):
            json_store.get("/n").set_property("a", "2", expected_revision=0)

    def test_invalid_json_is_storage_error(self, tmp_path: Path):
        path = tmp_path / "ledger.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(StorageError):
            JsonFileRecordStore(path).get("/n")

    def test_unknown_format_is_storage_error(self, tmp_path: Path):
        path = tmp_path / "ledger.json"
        path.write_text(json.dumps({"format": 99, "nodes": {}}), encoding="utf-8")
        with pytest.raises(StorageError):
            JsonFileRecordStore(path).get("/n")

    def test_malformed_property_is_storage_error(self, tmp_path: Path):
        path = tmp_path / "ledger.json"
        path.write_text(
            json.dumps(
                {
                    "format": 1,
                    "nodes": {"/n": {"revision": 0, "properties": {"actions": {"type": "string[]", "value": [1]}}}},
                }
            ),
            encoding="utf-8",
        )
        with pytest.raises(StorageError):
            JsonFileRecordStore(path).get("/n")

    def test_unwritable_location_is_storage_error(self, tmp_path: Path):
        blocker = tmp_path / "blocker"
        blocker.write_text("a file, not a directory", encoding="utf-8")
        store = JsonFileRecordStore(blocker / "ledger.json")
        with pytest.raises(StorageError):
            store.create("/n")
