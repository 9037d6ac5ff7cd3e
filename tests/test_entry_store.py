# Copyright (c) 2026 Nenad Vasic. All rights reserved.
# Licensed under the Business Source License 1.1 (BSL-1.1)
# See LICENSE file in the project root for full license text.

"""EntryStore tests — retention, identity deletes, corruption, concurrency."""

import threading
import pytest

from engagement.entry_store import EntryStore
from engagement.events import Events
from engagement.schemas import DreamEntry, MoodEntry
from engagement.storage import MOOD_ENTRIES, FileBlobStore, MemoryBlobStore


class CountingBlobStore(MemoryBlobStore):
    def __init__(self):
        super().__init__()
        self.puts = 0

    def put(self, namespace, blob):
        self.puts += 1
        super().put(namespace, blob)


@pytest.fixture
def store(blobs, event_bus):
    return EntryStore(blobs, MOOD_ENTRIES, MoodEntry, cap=5, bus=event_bus)


def moods(n, start=1):
    return [MoodEntry(mood=f"mood-{i}", timestamp=start + i) for i in range(n)]


class TestRetention:

    def test_keeps_last_cap_in_insertion_order(self, store):
        entries = moods(12)
        for e in entries:
            store.append(e)
        assert len(store) == 5
        assert store.all() == entries[-5:]

    def test_under_cap_keeps_everything(self, store):
        entries = moods(3)
        for e in entries:
            store.append(e)
        assert store.all() == entries

    def test_eviction_is_by_insertion_not_timestamp(self, store):
        # Oldest timestamp inserted last must survive
        entries = moods(5, start=100) + [MoodEntry(mood="late", timestamp=1)]
        for e in entries:
            store.append(e)
        assert store.all() == entries[1:]

    def test_append_returns_kept_log(self, store):
        for e in moods(5):
            store.append(e)
        extra = MoodEntry(mood="extra", timestamp=999)
        kept = store.append(extra)
        assert len(kept) == 5
        assert kept[-1] == extra

    def test_cap_must_be_positive(self, blobs):
        with pytest.raises(ValueError):
            EntryStore(blobs, MOOD_ENTRIES, MoodEntry, cap=0)

    def test_wrong_entry_type_rejected(self, store):
        with pytest.raises(TypeError):
            store.append(DreamEntry(description="wrong log"))

    def test_append_emits_event(self, store, event_bus):
        for e in moods(6):
            store.append(e)
        events = event_bus.history(Events.ENTRY_APPENDED, limit=10)
        assert len(events) == 6
        assert events[-1]["data"]["evicted"] == 1
        assert events[-1]["data"]["count"] == 5


class TestPersistence:

    def test_survives_new_store_instance(self, tmp_path):
        blobs = FileBlobStore(tmp_path / "storage")
        first = EntryStore(blobs, MOOD_ENTRIES, MoodEntry, cap=10)
        entries = moods(4)
        for e in entries:
            first.append(e)

        second = EntryStore(FileBlobStore(tmp_path / "storage"), MOOD_ENTRIES, MoodEntry, cap=10)
        assert second.all() == entries

    def test_empty_namespace_reads_empty(self, store):
        assert store.all() == []
        assert len(store) == 0

    def test_snapshots_are_independent(self, store):
        store.append(MoodEntry(mood="calm", timestamp=1))
        snapshot = store.all()
        snapshot.clear()
        assert len(store) == 1


class TestDeletion:

    def test_delete_missing_is_noop(self, event_bus):
        blobs = CountingBlobStore()
        store = EntryStore(blobs, MOOD_ENTRIES, MoodEntry, cap=5, bus=event_bus)
        entries = moods(3)
        for e in entries:
            store.append(e)
        puts = blobs.puts

        assert store.delete_where(12345, "mood-0") == 0
        assert store.delete_where(entries[0].timestamp, "not there") == 0
        assert store.all() == entries
        assert blobs.puts == puts
        assert event_bus.history(Events.ENTRY_DELETED) == []

    def test_delete_on_empty_store(self, store):
        assert store.delete(MoodEntry(mood="ghost", timestamp=1)) == 0
        assert store.all() == []

    def test_delete_removes_matching(self, store):
        entries = moods(3)
        for e in entries:
            store.append(e)
        assert store.delete(entries[1]) == 1
        assert store.all() == [entries[0], entries[2]]

    def test_delete_removes_all_duplicates(self, store):
        twin = MoodEntry(mood="happy", timestamp=7)
        store.append(twin)
        store.append(MoodEntry(mood="happy", timestamp=8))
        store.append(MoodEntry(mood="happy", note="again", timestamp=7))
        assert store.delete(twin) == 2
        assert [e.timestamp for e in store.all()] == [8]

    def test_clear(self, store, event_bus):
        for e in moods(3):
            store.append(e)
        store.clear()
        assert store.all() == []
        assert len(event_bus.history(Events.ENTRIES_CLEARED)) == 1


class TestQueries:

    def test_range_is_inclusive(self, store):
        entries = moods(5, start=10)  # timestamps 10..14
        for e in entries:
            store.append(e)
        assert store.range_by_timestamp(11, 13) == entries[1:4]
        assert store.range_by_timestamp(20, 30) == []

    def test_recent(self, store):
        entries = moods(4)
        for e in entries:
            store.append(e)
        assert store.recent(2) == entries[-2:]
        assert store.recent(10) == entries
        assert store.recent(0) == []


class TestCorruption:

    def test_corrupt_blob_reads_empty(self, blobs, store, event_bus):
        blobs.put(MOOD_ENTRIES, "{{{ not json")
        assert store.all() == []
        assert len(event_bus.history(Events.CORRUPT_DATA_RECOVERED)) == 1

    def test_append_after_corruption_starts_fresh(self, blobs, store):
        blobs.put(MOOD_ENTRIES, '[{"note": "missing mood"}]')
        entry = MoodEntry(mood="calm", timestamp=1)
        assert store.append(entry) == [entry]
        assert store.all() == [entry]


class TestConcurrency:

    def test_concurrent_appends_lose_nothing(self, blobs):
        store = EntryStore(blobs, MOOD_ENTRIES, MoodEntry, cap=100)

        def writer(worker):
            for i in range(10):
                store.append(MoodEntry(mood=f"w{worker}-{i}"))

        threads = [threading.Thread(target=writer, args=(w,)) for w in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        entries = store.all()
        assert len(entries) == 80
        assert len({e.mood for e in entries}) == 80
        # Per-writer order is preserved
        for w in range(8):
            mine = [e.mood for e in entries if e.mood.startswith(f"w{w}-")]
            assert mine == [f"w{w}-{i}" for i in range(10)]

    def test_concurrent_appends_respect_cap(self, blobs):
        store = EntryStore(blobs, MOOD_ENTRIES, MoodEntry, cap=25)
        threads = [
            threading.Thread(target=lambda: [store.append(MoodEntry(mood="x")) for _ in range(10)])
            for _ in range(5)
        ]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert len(store) == 25
