# Copyright (c) 2026 Nenad Vasic. All rights reserved.
# Licensed under the Business Source License 1.1 (BSL-1.1)
# See LICENSE file in the project root for full license text.

"""
EntryStore — bounded, persistent append log of behavioral entries.

The whole ordered sequence lives in one blob. Every mutation is a
read-modify-write of that blob under the store lock, then a single atomic
put. Retention is trim-on-write: when the log grows past its cap the
oldest entries (by insertion order, not timestamp) fall off the front.

Corrupt blobs read back as an empty log. Data is sacrificed, the app
keeps going.
"""

import logging
import threading
from typing import Generic, List, Optional, Type, TypeVar

from engagement.events import EventBus, Events, bus as default_bus
from engagement.schemas import CorruptPersistedData, Entry, dump_list, load_list
from engagement.storage import BlobStore

logger = logging.getLogger("aurizen.entry_store")

E = TypeVar("E", bound=Entry)


class EntryStore(Generic[E]):
    """Ordered, capped log of one entry type in one namespace."""

    def __init__(
        self,
        blobs: BlobStore,
        namespace: str,
        entry_type: Type[E],
        cap: int,
        bus: Optional[EventBus] = None,
    ):
        if cap <= 0:
            raise ValueError(f"cap must be positive, got {cap}")
        self.blobs = blobs
        self.namespace = namespace
        self.entry_type = entry_type
        self.cap = cap
        self.bus = bus or default_bus
        self._lock = threading.RLock()

    # ------------------------------------------------------------------
    # Internal load/save (call with the lock held)
    # ------------------------------------------------------------------

    def _load(self) -> List[E]:
        try:
            return load_list(self.blobs.get(self.namespace), self.entry_type)
        except CorruptPersistedData as e:
            logger.warning("Corrupt %s data, starting empty: %s", self.namespace, e)
            self.bus.emit(Events.CORRUPT_DATA_RECOVERED, {"namespace": self.namespace}, source="entry_store")
            return []

    def _save(self, entries: List[E]) -> None:
        self.blobs.put(self.namespace, dump_list(entries))

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def append(self, entry: E) -> List[E]:
        """Append, trim to cap from the front, persist. Returns the kept log."""
        if not isinstance(entry, self.entry_type):
            raise TypeError(f"{self.namespace} holds {self.entry_type.__name__}, got {type(entry).__name__}")
        with self._lock:
            entries = self._load()
            entries.append(entry)
            evicted = max(0, len(entries) - self.cap)
            kept = entries[evicted:]
            self._save(kept)
        if evicted:
            logger.debug("%s: evicted %d oldest entries", self.namespace, evicted)
        self.bus.emit(Events.ENTRY_APPENDED, {
            "namespace": self.namespace,
            "timestamp": entry.timestamp,
            "count": len(kept),
            "evicted": evicted,
        }, source="entry_store")
        return list(kept)

    def delete_where(self, timestamp: int, primary_text: str) -> int:
        """Remove every entry matching (timestamp, primary text). Returns count removed."""
        with self._lock:
            entries = self._load()
            kept = [e for e in entries if not e.matches(timestamp, primary_text)]
            removed = len(entries) - len(kept)
            if removed:
                self._save(kept)
        if removed:
            self.bus.emit(Events.ENTRY_DELETED, {
                "namespace": self.namespace,
                "timestamp": timestamp,
                "removed": removed,
            }, source="entry_store")
        else:
            logger.debug("%s: nothing matched (%s, %r)", self.namespace, timestamp, primary_text)
        return removed

    def delete(self, entry: E) -> int:
        return self.delete_where(entry.timestamp, entry.primary_text)

    def clear(self) -> None:
        with self._lock:
            self.blobs.remove(self.namespace)
        self.bus.emit(Events.ENTRIES_CLEARED, {"namespace": self.namespace}, source="entry_store")

    # ------------------------------------------------------------------
    # Queries: each returns a fresh snapshot
    # ------------------------------------------------------------------

    def all(self) -> List[E]:
        with self._lock:
            return self._load()

    def range_by_timestamp(self, start: int, end: int) -> List[E]:
        """Entries with start <= timestamp <= end, in insertion order."""
        return [e for e in self.all() if start <= e.timestamp <= end]

    def recent(self, n: int = 10) -> List[E]:
        """Last n entries in insertion order."""
        if n <= 0:
            return []
        return self.all()[-n:]

    def __len__(self) -> int:
        return len(self.all())
