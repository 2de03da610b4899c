"""Tests for the persisted edit history."""

import json
import os
import sys
from datetime import datetime, timezone

import pytest

# Add the src directory to the Python path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from core.history import HistoryEntry, HistoryStore
from core.storage import MemoryStorage, StorageError, StorageFullError


class EntryLimitedStorage(MemoryStorage):
    """Refuses writes holding more than ``limit`` history entries."""

    def __init__(self, limit):
        super().__init__()
        self.limit = limit
        self.attempts = 0

    def set(self, key, value):
        self.attempts += 1
        if len(json.loads(value)["history"]) > self.limit:
            raise StorageFullError("quota exceeded")
        super().set(key, value)


class BrokenStorage(MemoryStorage):
    def get(self, key):
        raise StorageError("disk on fire")

    def set(self, key, value):
        raise StorageError("disk on fire")


@pytest.fixture
def store():
    return HistoryStore(MemoryStorage())


class TestHistoryMutations:
    """Test add/remove ordering and dedup."""

    def test_add_inserts_at_head(self, store):
        store.add("{}", "user1.dat", 1)
        store.add("[]", "user2.dat", 2)
        assert [entry.hash for entry in store.entries] == [2, 1]
        assert store.entries[0].file_name == "user2.dat"
        assert store.entries[0].json_string == "[]"

    def test_add_same_hash_replaces(self, store):
        store.add("{}", "user1.dat", 1)
        store.add("[]", "user2.dat", 2)
        store.add("{}", "renamed.dat", 1)
        assert [entry.hash for entry in store.entries] == [1, 2]
        assert store.entries[0].file_name == "renamed.dat"
        assert len(store) == 2

    def test_add_stamps_current_time(self, store):
        before = datetime.now(timezone.utc)
        entry = store.add("{}", "user1.dat", 1)
        assert before <= entry.date <= datetime.now(timezone.utc)

    def test_remove(self, store):
        store.add("{}", "user1.dat", 1)
        store.add("[]", "user2.dat", 2)
        store.remove(1)
        assert [entry.hash for entry in store.entries] == [2]
        assert store.get(1) is None
        assert store.get(2).file_name == "user2.dat"

    def test_remove_oldest(self, store):
        store.add("{}", "user1.dat", 1)
        store.add("[]", "user2.dat", 2)
        store.remove_oldest()
        assert [entry.hash for entry in store.entries] == [2]

    def test_remove_oldest_on_empty_store(self, store):
        store.remove_oldest()
        assert store.entries == []

    def test_entries_is_a_copy(self, store):
        store.add("{}", "user1.dat", 1)
        store.entries.clear()
        assert len(store) == 1


class TestHistoryListeners:
    """Test change notifications."""

    def test_every_mutation_notifies(self, store):
        calls = []
        store.subscribe(lambda entries: calls.append([e.hash for e in entries]))

        store.add("{}", "a.dat", 1)
        store.add("[]", "b.dat", 2)
        store.remove(1)
        store.remove_oldest()
        store.remove_oldest()

        assert calls == [[1], [2, 1], [2], [], []]

    def test_multiple_listeners_and_unsubscribe(self, store):
        first, second = [], []
        unsubscribe = store.subscribe(first.append)
        store.subscribe(second.append)

        store.add("{}", "a.dat", 1)
        unsubscribe()
        unsubscribe()
        store.add("[]", "b.dat", 2)

        assert len(first) == 1
        assert len(second) == 2

    def test_sync_from_storage_notifies(self, store):
        calls = []
        store.subscribe(calls.append)
        store.sync_from_storage()
        assert calls == [[]]


class TestHistoryPersistence:
    """Test loading and saving the whole list."""

    def test_round_trip(self):
        storage = MemoryStorage()
        store = HistoryStore(storage)
        store.add('{"a": 1}', "user1.dat", 11)
        store.add('{"b": 2}', "user2.dat", 22)
        assert store.sync_to_storage() is True

        reloaded = HistoryStore(storage)
        reloaded.sync_from_storage()
        assert reloaded.entries == store.entries

    def test_stored_schema(self):
        storage = MemoryStorage()
        store = HistoryStore(storage, key="saves")
        store.add("{}", "user1.dat", -5)
        store.sync_to_storage()

        record = json.loads(storage.get("saves"))
        assert list(record) == ["history"]
        entry = record["history"][0]
        assert entry["fileName"] == "user1.dat"
        assert entry["jsonString"] == "{}"
        assert entry["hash"] == -5
        assert datetime.fromisoformat(entry["date"]).tzinfo is not None

    def test_loads_browser_style_dates(self):
        storage = MemoryStorage()
        storage.set("history", json.dumps({"history": [{
            "date": "2024-03-01T12:30:00.000Z",
            "fileName": "user3.dat",
            "jsonString": "{}",
            "hash": 3938,
        }]}))
        store = HistoryStore(storage)
        store.sync_from_storage()
        assert store.entries[0].date == datetime(2024, 3, 1, 12, 30, tzinfo=timezone.utc)

    def test_missing_record_is_empty(self):
        store = HistoryStore(MemoryStorage())
        store.sync_from_storage()
        assert store.entries == []

    @pytest.mark.parametrize("raw", [
        "{not json",
        '{"other": []}',
        '{"history": [{"fileName": "x"}]}',
        '{"history": [{"date": "yesterday", "fileName": "x", "jsonString": "{}", "hash": 1}]}',
        '{"history": 5}',
    ])
    def test_corrupt_record_is_empty(self, raw):
        storage = MemoryStorage()
        storage.set("history", raw)
        store = HistoryStore(storage)
        store.add("{}", "stale.dat", 1)
        store.sync_from_storage()
        assert store.entries == []

    def test_storage_error_on_load_is_empty(self):
        store = HistoryStore(BrokenStorage())
        store.sync_from_storage()
        assert store.entries == []


class TestHistoryEviction:
    """Test eviction when storage runs out of room."""

    def test_evicts_oldest_until_it_fits(self):
        limit = 3
        storage = EntryLimitedStorage(limit)
        store = HistoryStore(storage)
        for i in range(limit + 1):
            store.add(f'{{"n": {i}}}', f"user{i}.dat", i)

        assert store.sync_to_storage() is True
        assert len(store) == limit
        assert [entry.hash for entry in store.entries] == [3, 2, 1]
        assert len(json.loads(storage.get("history"))["history"]) == limit

    def test_evicts_many_entries(self):
        storage = EntryLimitedStorage(2)
        store = HistoryStore(storage)
        for i in range(10):
            store.add("{}", f"user{i}.dat", i)

        assert store.sync_to_storage() is True
        assert [entry.hash for entry in store.entries] == [9, 8]
        assert storage.attempts == 9

    def test_gives_up_when_empty(self):
        store = HistoryStore(MemoryStorage(quota_bytes=1))
        store.add("{}", "user1.dat", 1)
        store.add("{}", "user2.dat", 2)
        assert store.sync_to_storage() is False
        assert store.entries == []

    def test_other_storage_errors_are_swallowed(self):
        store = HistoryStore(BrokenStorage())
        store.add("{}", "user1.dat", 1)
        assert store.sync_to_storage() is False
        assert len(store) == 1


def test_entry_dict_round_trip():
    entry = HistoryEntry(
        date=datetime(2025, 1, 2, 3, 4, 5, tzinfo=timezone.utc),
        file_name="user1.dat",
        json_string='{"x": 1}',
        hash=123,
    )
    assert HistoryEntry.from_dict(entry.to_dict()) == entry
