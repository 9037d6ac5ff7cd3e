# Copyright (c) 2026 Nenad Vasic. All rights reserved.
# Licensed under the Business Source License 1.1 (BSL-1.1)
# See LICENSE file in the project root for full license text.

"""
AuriZen Schema Registry — Pydantic models for every persisted structure.

Single source of truth for the blobs the engagement pipeline reads/writes:
mood entries, dream entries, the user profile and the engine config.

Usage:
    from engagement.schemas import DreamEntry, dump_list, load_list

    blob = dump_list(entries)
    entries = load_list(blob, DreamEntry)   # raises CorruptPersistedData

Entries are frozen — once created they never change. The profile is the
only mutable record.
"""

import json
import os
import threading
import time
from pathlib import Path
from typing import Any, Dict, List, Optional, Type, TypeVar

from pydantic import BaseModel, Field, ValidationError, field_validator


# ============================================================================
# Base config: all models inherit this
# ============================================================================

class AuriZenModel(BaseModel):
    """Base for all schemas. Allows extra fields for forward compat."""
    model_config = {"extra": "allow"}


# ============================================================================
# Custom exceptions
# ============================================================================

class CorruptPersistedData(Exception):
    """Raised when a persisted blob can't be decoded. Stores recover to empty."""

class ProfileValidationError(Exception):
    """Raised when a profile setter gets an out-of-range value."""


# ============================================================================
# Timestamps
# ============================================================================

_clock_lock = threading.Lock()
_last_ts = 0


def next_timestamp() -> int:
    """Milliseconds since epoch, never lower than the previous call."""
    global _last_ts
    with _clock_lock:
        _last_ts = max(int(time.time() * 1000), _last_ts)
        return _last_ts


# ============================================================================
# ENTRIES
# ============================================================================

class Entry(AuriZenModel):
    """One user-generated behavioral record. Immutable."""
    model_config = {"extra": "allow", "frozen": True}

    timestamp: int = Field(default_factory=next_timestamp)

    @property
    def primary_text(self) -> str:
        raise NotImplementedError

    def matches(self, timestamp: int, primary_text: str) -> bool:
        """Identity check used for deletion — there is no surrogate key."""
        return self.timestamp == timestamp and self.primary_text == primary_text


class MoodEntry(Entry):
    """Mood log entry: mood_entries namespace."""
    mood: str
    note: str = ""

    @property
    def primary_text(self) -> str:
        return self.mood


class DreamEntry(Entry):
    """Dream journal entry: dream_entries namespace."""
    description: str
    interpretation: str = ""
    summary: str = ""  # one-sentence digest for the diary view

    @property
    def primary_text(self) -> str:
        return self.description

    @property
    def full_text(self) -> str:
        return f"{self.description} {self.interpretation}"


# ============================================================================
# PROFILE
# ============================================================================

THEME_MODES = ("SYSTEM", "LIGHT", "DARK", "PASTEL")


class Profile(AuriZenModel):
    """User profile: profile namespace. Mutable, flushed explicitly."""
    hobbies: List[str] = Field(default_factory=list)
    topics: List[str] = Field(default_factory=list)
    mood: str = ""
    last_interaction: int = 0
    sex: str = ""
    age: int = 0
    theme_mode: str = "SYSTEM"

    @field_validator("topics")
    @classmethod
    def _dedupe_topics(cls, v: List[str]) -> List[str]:
        return list(dict.fromkeys(v))


# ============================================================================
# ANALYTICS RESULTS
# ============================================================================

class DreamStatistics(AuriZenModel):
    total_entries: int = 0
    average_entries_per_week: float = 0.0
    common_themes: List[str] = Field(default_factory=list)
    longest_streak: int = 0


class MoodStatistics(AuriZenModel):
    total_entries: int = 0
    most_common_mood: str = "N/A"
    mood_distribution: Dict[str, int] = Field(default_factory=dict)
    average_entries_per_week: float = 0.0
    longest_streak: int = 0


class MoodTrend(AuriZenModel):
    """Positive-mood days this week vs the week before."""
    recent_positive: int = 0
    recent_days: int = 0
    previous_positive: int = 0
    previous_days: int = 0
    tracked_days: int = 0

    @property
    def direction(self) -> str:
        return "improving" if self.recent_positive >= self.previous_positive else "challenging"


# ============================================================================
# ENGINE CONFIG
# ============================================================================

class EngineConfig(AuriZenModel):
    """Engine config: ~/.aurizen/aurizen-config.json"""
    ollama_url: str = "http://localhost:11434"
    model: str = "gemma3n:e2b"
    temperature: float = 1.0
    top_k: int = 64
    top_p: float = 0.95
    max_tokens: int = Field(default=1024, gt=0)
    request_timeout: float = 60.0
    download_chunk_size: int = Field(default=8192, gt=0)
    dream_cap: int = Field(default=50, gt=0)
    mood_cap: int = Field(default=100, gt=0)


# ============================================================================
# UTILITY: blob codecs and validated load/save helpers
# ============================================================================

T = TypeVar("T", bound=AuriZenModel)


def dump_list(items: List[AuriZenModel]) -> str:
    """Serialize an ordered sequence of models to a JSON array."""
    return json.dumps([item.model_dump() for item in items])


def load_list(blob: Optional[str], schema: Type[T]) -> List[T]:
    """
    Decode a JSON array blob, validating each item in order.

    A missing blob is an empty sequence. Anything undecodable raises
    CorruptPersistedData — callers decide whether to recover.
    """
    if blob is None:
        return []
    try:
        data = json.loads(blob)
    except json.JSONDecodeError as e:
        raise CorruptPersistedData(f"not JSON: {e}") from e
    if not isinstance(data, list):
        raise CorruptPersistedData(f"expected a list, got {type(data).__name__}")
    try:
        return [schema.model_validate(item) for item in data]
    except ValidationError as e:
        raise CorruptPersistedData(str(e)) from e


def dump_model(model: AuriZenModel) -> str:
    return model.model_dump_json()


def load_model(blob: Optional[str], schema: Type[T]) -> T:
    """Decode a single-record blob. Missing blob gives schema defaults."""
    if blob is None:
        return schema()
    try:
        return schema.model_validate_json(blob)
    except ValidationError as e:
        raise CorruptPersistedData(str(e)) from e


def load_validated(path: Path, schema: Type[T], default: Any = None) -> T:
    """
    Load JSON from file and validate against schema.

    Args:
        path: Path to JSON file
        schema: Pydantic model class to validate against
        default: Default value if file doesn't exist or is invalid.
                 If None, returns schema() with all defaults.
    """
    if not path.exists():
        if default is not None:
            return schema.model_validate(default)
        return schema()

    try:
        data = json.loads(path.read_text())
        return schema.model_validate(data)
    except (json.JSONDecodeError, ValidationError, OSError):
        if default is not None:
            return schema.model_validate(default)
        return schema()


def _atomic_rename(tmp: Path, dest: Path):
    """Flush, fsync, then rename — crash-safe atomic write."""
    fd = os.open(str(tmp), os.O_RDONLY)
    try:
        os.fsync(fd)
    finally:
        os.close(fd)
    os.replace(str(tmp), str(dest))


def atomic_write_text(path: Path, content: str):
    """Write .tmp, fsync, rename. Readers never see a half-written file."""
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_suffix(path.suffix + ".tmp")
    tmp.write_text(content)
    _atomic_rename(tmp, path)


def save_validated(path: Path, model: AuriZenModel):
    """Atomically save a validated model to a JSON file."""
    atomic_write_text(path, model.model_dump_json(indent=2))
