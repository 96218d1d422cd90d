"""Tests for habitcore/storage.py — key-value backends."""

import pytest

from habitcore.errors import StorageError
from habitcore.storage import JsonFileStore, MemoryStore


def test_file_store_roundtrip(workspace):
    store = JsonFileStore(workspace)
    store.store("habits/u1", [{"id": "h1", "name": "Read"}])
    assert store.load("habits/u1") == [{"id": "h1", "name": "Read"}]
    assert store.path_for("habits/u1") == workspace / "data" / "habits" / "u1.json"


def test_file_store_missing_key(workspace):
    assert JsonFileStore(workspace).load("events/nobody") is None


def test_file_store_delete(workspace):
    store = JsonFileStore(workspace)
    store.store("session", {"email": "a@b.co"})
    store.delete("session")
    store.delete("session")  # already gone
    assert store.load("session") is None


def test_file_store_corrupt_json(workspace):
    store = JsonFileStore(workspace)
    path = store.path_for("habits/u1")
    path.parent.mkdir(parents=True)
    path.write_text("{not json", encoding="utf-8")
    with pytest.raises(StorageError):
        store.load("habits/u1")


def test_file_store_unserializable(workspace):
    store = JsonFileStore(workspace)
    with pytest.raises(StorageError):
        store.store("habits/u1", {"bad": object()})
    assert not store.path_for("habits/u1").exists()


@pytest.mark.parametrize("key", ["", "habits/", "../etc/passwd", "habits/./u1"])
def test_invalid_keys(workspace, key):
    with pytest.raises(StorageError):
        JsonFileStore(workspace).load(key)
    with pytest.raises(StorageError):
        MemoryStore().load(key)


def test_memory_store_copies():
    store = MemoryStore()
    blob = {"items": [1, 2]}
    store.store("k", blob)
    blob["items"].append(3)
    loaded = store.load("k")
    loaded["items"].append(4)
    assert store.load("k") == {"items": [1, 2]}


def test_memory_store_rejects_unserializable():
    with pytest.raises(StorageError):
        MemoryStore().store("k", {1, 2})
