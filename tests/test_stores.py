import json

import pytest

from renovation_tracker.config import DEFAULT_CONFIG
from renovation_tracker.stores import get_store
from renovation_tracker.stores.json_store import JSONFileStore
from renovation_tracker.stores.memory import MemoryStore
from renovation_tracker.stores.sqlite_store import SQLiteStore

RECORDS = [
    {
        "id": "b",
        "date": "2025-01-02",
        "description": "Cabinet handles",
        "amount": 450.5,
        "category": "Material",
        "type": "expense",
    },
    {
        "id": "a",
        "date": "2025-01-01",
        "description": "Permit fee",
        "amount": 1000,
        "category": "Fees & Permits",
        "type": "bill",
        "vendor": "City Office",
        "attachmentName": "receipt.png",
    },
]


@pytest.fixture(params=["memory", "json", "sqlite"])
def make_store(request, tmp_path):
    def factory():
        if request.param == "memory":
            return shared
        if request.param == "json":
            return JSONFileStore(tmp_path / "state.json")
        return SQLiteStore(tmp_path / "state.db")

    shared = MemoryStore()
    return factory


def test_save_then_fresh_load_round_trips(make_store):
    assert make_store().save("txs", RECORDS) is True
    assert make_store().load("txs", []) == RECORDS


def test_missing_key_returns_default(make_store):
    default = []
    assert make_store().load("nothing-here", default) is default


def test_keys_are_independent(make_store):
    store = make_store()
    store.save("one", [1])
    store.save("two", {"x": 2})
    assert store.load("one", None) == [1]
    assert store.load("two", None) == {"x": 2}


def test_json_store_corrupt_file_falls_back_to_default(tmp_path):
    path = tmp_path / "state.json"
    path.write_text("{not json", encoding="utf-8")
    assert JSONFileStore(path).load("txs", ["default"]) == ["default"]


def test_json_store_writes_readable_file(tmp_path):
    path = tmp_path / "nested" / "state.json"
    JSONFileStore(path).save("txs", RECORDS)
    assert json.loads(path.read_text(encoding="utf-8")) == {"txs": RECORDS}
    assert [p.name for p in path.parent.iterdir()] == ["state.json"]


def test_memory_store_unparsable_value_falls_back():
    store = MemoryStore()
    store._data["txs"] = "[{"
    assert store.load("txs", []) == []


def test_save_failure_is_reported_not_raised(caplog):
    store = MemoryStore()
    assert store.save("txs", {"bad": object()}) is False
    assert "Failed to persist" in caplog.text
    assert store.load("txs", "default") == "default"


def test_get_store_builds_configured_backend(tmp_path):
    config = dict(DEFAULT_CONFIG)
    config["store"] = {"backend": "sqlite", "path": str(tmp_path / "s.db"), "key": "k"}
    store = get_store(config)
    assert isinstance(store, SQLiteStore)
    assert store.path == tmp_path / "s.db"
