# Copyright (c) 2026 Nenad Vasic. All rights reserved.
# Licensed under the Business Source License 1.1 (BSL-1.1)
# See LICENSE file in the project root for full license text.

"""
Stores — the per-user set of persisted stores, built once and shared.

Every orchestrator for a user gets the same Stores object, so every
writer to a namespace goes through the same store instance and the same
lock. Each store is constructed on first access, exactly once.
"""

import logging
import threading
from typing import Any, Callable, Dict, Optional

from engagement.entry_store import EntryStore
from engagement.events import EventBus
from engagement.profile import ProfileStore
from engagement.schemas import DreamEntry, EngineConfig, MoodEntry
from engagement.storage import DREAM_ENTRIES, MOOD_ENTRIES, BlobStore, FileBlobStore

logger = logging.getLogger("aurizen.stores")


class Stores:

    def __init__(
        self,
        blobs: Optional[BlobStore] = None,
        config: Optional[EngineConfig] = None,
        bus: Optional[EventBus] = None,
    ):
        self.blobs = blobs or FileBlobStore()
        self.config = config or EngineConfig()
        self.bus = bus
        self._lock = threading.Lock()
        self._instances: Dict[str, Any] = {}

    def _get(self, key: str, factory: Callable[[], Any]) -> Any:
        with self._lock:
            if key not in self._instances:
                logger.debug("Constructing %s store", key)
                self._instances[key] = factory()
            return self._instances[key]

    @property
    def dreams(self) -> EntryStore[DreamEntry]:
        return self._get("dreams", lambda: EntryStore(
            self.blobs, DREAM_ENTRIES, DreamEntry, cap=self.config.dream_cap, bus=self.bus,
        ))

    @property
    def moods(self) -> EntryStore[MoodEntry]:
        return self._get("moods", lambda: EntryStore(
            self.blobs, MOOD_ENTRIES, MoodEntry, cap=self.config.mood_cap, bus=self.bus,
        ))

    @property
    def profile(self) -> ProfileStore:
        return self._get("profile", lambda: ProfileStore(self.blobs, bus=self.bus))
