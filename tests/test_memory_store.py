import unittest
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

import pytest

import skillbot.memory.memory_store as memory_store_mod
from skillbot.core.errors import ContractViolation
from skillbot.memory import InMemoryStore
from skillbot.memory.mongodb_store import MongoMemoryStore


class InMemoryStoreTests(unittest.TestCase):
    def setUp(self):
        self.store = InMemoryStore()

    def test_put_then_get_returns_a_copy(self):
        value = {"confirmed": {"pizza": "marinara"}}
        self.store.put("s1", value)

        loaded = self.store.get("s1")
        loaded["confirmed"]["pizza"] = "changed"

        self.assertEqual(self.store.get("s1"), {"confirmed": {"pizza": "marinara"}})

    def test_missing_key(self):
        self.assertIsNone(self.store.get("missing"))
        self.assertFalse(self.store.delete("missing"))

    def test_delete(self):
        self.store.put("s1", {"a": 1})

        self.assertTrue(self.store.delete("s1"))
        self.assertIsNone(self.store.get("s1"))


def test_in_memory_store_expires_entries(monkeypatch):
    now = [1000.0]
    monkeypatch.setattr(memory_store_mod.time, "time", lambda: now[0])
    store = InMemoryStore(retention=60)

    store.put("s1", {"a": 1})
    store.put("s2", {"b": 2}, retention=120)
    now[0] += 61

    assert store.get("s1") is None
    assert store.get("s2") == {"b": 2}


class FakeCollection:
    def __init__(self, acknowledged=True):
        self.documents = {}
        self.acknowledged = acknowledged

    def find_one(self, query):
        return self.documents.get(query["_id"])

    def replace_one(self, query, document, upsert=False):
        self.documents[query["_id"]] = document
        return SimpleNamespace(acknowledged=self.acknowledged)

    def delete_one(self, query):
        removed = self.documents.pop(query["_id"], None)
        return SimpleNamespace(acknowledged=self.acknowledged, deleted_count=1 if removed else 0)


def test_mongo_store_round_trip():
    collection = FakeCollection()
    store = MongoMemoryStore(collection, retention=600)

    store.put("s1", {"confirmed": {}})

    assert store.get("s1") == {"confirmed": {}}
    assert collection.documents["s1"]["expires_at"] > datetime.now(timezone.utc)


def test_mongo_store_without_retention_never_expires():
    collection = FakeCollection()
    store = MongoMemoryStore(collection)

    store.put("s1", {"a": 1})

    assert collection.documents["s1"]["expires_at"] is None
    assert store.get("s1") == {"a": 1}


def test_mongo_store_ignores_expired_documents():
    collection = FakeCollection()
    # pymongo hands back naive UTC datetimes
    expired = (datetime.now(timezone.utc) - timedelta(seconds=1)).replace(tzinfo=None)
    collection.documents["s1"] = {"_id": "s1", "context": {"a": 1}, "expires_at": expired}

    assert MongoMemoryStore(collection).get("s1") is None


def test_mongo_store_delete_reports_whether_something_was_removed():
    collection = FakeCollection()
    store = MongoMemoryStore(collection)
    store.put("s1", {"a": 1})

    assert store.delete("s1") is True
    assert store.delete("s1") is False


def test_mongo_store_unacknowledged_writes_fail():
    store = MongoMemoryStore(FakeCollection(acknowledged=False))

    with pytest.raises(ContractViolation):
        store.put("s1", {"a": 1})
    with pytest.raises(ContractViolation):
        store.delete("s1")


def test_mongo_store_from_env_requires_uri(monkeypatch):
    monkeypatch.delenv("SKILLBOT_MONGO_URI", raising=False)

    with pytest.raises(RuntimeError):
        MongoMemoryStore.from_env()
