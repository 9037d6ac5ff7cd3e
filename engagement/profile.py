# Copyright (c) 2026 Nenad Vasic. All rights reserved.
# Licensed under the Business Source License 1.1 (BSL-1.1)
# See LICENSE file in the project root for full license text.

"""
ProfileStore — the user's profile record and its load/mutate/save cycle.

load() reads the blob once and caches the record; later calls hand back
the same object. Setters only touch memory. Nothing reaches storage until
save() is called — orchestrators do that after a session completes.
"""

import logging
import threading
from typing import List, Optional

from engagement.events import EventBus, Events, bus as default_bus
from engagement.schemas import (
    THEME_MODES, CorruptPersistedData, Profile, ProfileValidationError,
    dump_model, load_model, next_timestamp,
)
from engagement.storage import PROFILE, BlobStore

logger = logging.getLogger("aurizen.profile")


class ProfileStore:

    def __init__(self, blobs: BlobStore, namespace: str = PROFILE, bus: Optional[EventBus] = None):
        self.blobs = blobs
        self.namespace = namespace
        self.bus = bus or default_bus
        self._lock = threading.RLock()
        self._profile: Optional[Profile] = None

    def load(self) -> Profile:
        with self._lock:
            if self._profile is None:
                try:
                    self._profile = load_model(self.blobs.get(self.namespace), Profile)
                except CorruptPersistedData as e:
                    logger.warning("Corrupt profile, using defaults: %s", e)
                    self._profile = Profile()
            return self._profile

    def save(self, profile: Optional[Profile] = None) -> None:
        with self._lock:
            if profile is not None:
                self._profile = profile
            self.blobs.put(self.namespace, dump_model(self.load()))
        self.bus.emit(Events.PROFILE_SAVED, {"namespace": self.namespace}, source="profile")

    # ------------------------------------------------------------------
    # In-memory mutations
    # ------------------------------------------------------------------

    def update_mood(self, label: str) -> None:
        with self._lock:
            profile = self.load()
            profile.mood = label
            profile.last_interaction = next_timestamp()

    def add_topic(self, topic: str) -> None:
        """Append a topic unless it's already known."""
        with self._lock:
            profile = self.load()
            if topic and topic not in profile.topics:
                profile.topics.append(topic)

    def add_hobby(self, hobby: str) -> None:
        with self._lock:
            profile = self.load()
            if hobby and hobby not in profile.hobbies:
                profile.hobbies.append(hobby)

    def recent_topics(self, limit: int = 5) -> List[str]:
        topics = self.load().topics
        return topics[-limit:] if limit > 0 else []

    def update_demographics(self, sex: str, age: int) -> None:
        if age < 0 or age > 150:
            raise ProfileValidationError(f"age out of range: {age}")
        with self._lock:
            profile = self.load()
            profile.sex = sex
            profile.age = age

    def update_theme_mode(self, mode: str) -> None:
        mode = mode.upper()
        if mode not in THEME_MODES:
            raise ProfileValidationError(f"theme mode must be one of {', '.join(THEME_MODES)}, got {mode!r}")
        with self._lock:
            self.load().theme_mode = mode

    def clear(self) -> None:
        """Reset to defaults and persist immediately."""
        with self._lock:
            self._profile = Profile()
            self.blobs.put(self.namespace, dump_model(self._profile))
        self.bus.emit(Events.PROFILE_CLEARED, {"namespace": self.namespace}, source="profile")
