# Copyright (c) 2026 Nenad Vasic. All rights reserved.
# Licensed under the Business Source License 1.1 (BSL-1.1)
# See LICENSE file in the project root for full license text.

"""Schema tests — blob codecs, corruption, validated file helpers."""

import json
import pytest
from pydantic import ValidationError

from engagement.schemas import (
    # Models
    DreamEntry, MoodEntry, Profile, EngineConfig, MoodTrend,
    # Functions
    dump_list, load_list, dump_model, load_model,
    save_validated, load_validated, atomic_write_text, next_timestamp,
    # Exceptions
    CorruptPersistedData,
)


# ============================================================================
# Blob codecs
# ============================================================================

class TestListCodec:

    def test_round_trip_preserves_order_and_fields(self):
        entries = [
            DreamEntry(description="I was flying", interpretation="freedom", summary="Freedom.", timestamp=1),
            DreamEntry(description="Lost at school", timestamp=2),
            DreamEntry(description="I was flying", timestamp=3),
        ]
        assert load_list(dump_list(entries), DreamEntry) == entries

    def test_round_trip_empty_sequence(self):
        assert dump_list([]) == "[]"
        assert load_list(dump_list([]), MoodEntry) == []

    def test_missing_blob_is_empty(self):
        assert load_list(None, MoodEntry) == []

    def test_not_json_raises(self):
        with pytest.raises(CorruptPersistedData):
            load_list("{not json", MoodEntry)

    def test_non_list_raises(self):
        with pytest.raises(CorruptPersistedData, match="expected a list"):
            load_list(json.dumps({"mood": "happy"}), MoodEntry)

    def test_invalid_item_raises(self):
        blob = json.dumps([{"mood": "happy", "timestamp": 1}, {"note": "no mood"}])
        with pytest.raises(CorruptPersistedData):
            load_list(blob, MoodEntry)

    def test_unknown_fields_survive(self):
        blob = json.dumps([{"mood": "calm", "timestamp": 5, "weather": "rain"}])
        entry = load_list(blob, MoodEntry)[0]
        assert entry.mood == "calm"
        assert entry.model_extra["weather"] == "rain"


class TestModelCodec:

    def test_missing_blob_gives_defaults(self):
        profile = load_model(None, Profile)
        assert profile == Profile()
        assert profile.theme_mode == "SYSTEM"

    def test_round_trip(self):
        profile = Profile(hobbies=["running"], topics=["sleep issues"], mood="tired", age=31)
        assert load_model(dump_model(profile), Profile) == profile

    def test_invalid_blob_raises(self):
        with pytest.raises(CorruptPersistedData):
            load_model('{"age": "old"}', Profile)


# ============================================================================
# Entries
# ============================================================================

class TestEntries:

    def test_timestamps_never_go_backwards(self):
        stamps = [next_timestamp() for _ in range(200)]
        assert stamps == sorted(stamps)

    def test_default_timestamp_is_assigned(self):
        before = next_timestamp()
        entry = MoodEntry(mood="happy")
        assert entry.timestamp >= before

    def test_entries_are_frozen(self):
        entry = MoodEntry(mood="happy", timestamp=1)
        with pytest.raises(ValidationError):
            entry.mood = "sad"

    def test_primary_text(self):
        assert MoodEntry(mood="calm", note="long walk").primary_text == "calm"
        assert DreamEntry(description="a storm", interpretation="change").primary_text == "a storm"

    def test_matches_needs_both_timestamp_and_text(self):
        entry = MoodEntry(mood="calm", timestamp=10)
        assert entry.matches(10, "calm")
        assert not entry.matches(11, "calm")
        assert not entry.matches(10, "happy")

    def test_dream_full_text(self):
        entry = DreamEntry(description="Water everywhere", interpretation="emotions")
        assert entry.full_text == "Water everywhere emotions"


class TestProfileModel:

    def test_topics_deduped_in_order(self):
        profile = Profile(topics=["sleep issues", "work stress", "sleep issues"])
        assert profile.topics == ["sleep issues", "work stress"]


class TestMoodTrend:

    def test_direction(self):
        assert MoodTrend(recent_positive=3, previous_positive=3).direction == "improving"
        assert MoodTrend(recent_positive=1, previous_positive=4).direction == "challenging"


class TestEngineConfig:

    def test_defaults(self):
        cfg = EngineConfig()
        assert cfg.dream_cap == 50
        assert cfg.mood_cap == 100
        assert cfg.download_chunk_size == 8192
        assert cfg.top_k == 64

    def test_caps_must_be_positive(self):
        with pytest.raises(ValidationError):
            EngineConfig(dream_cap=0)


# ============================================================================
# File helpers
# ============================================================================

class TestValidatedFiles:

    def test_save_load_round_trip(self, tmp_path):
        path = tmp_path / "cfg" / "engine.json"
        cfg = EngineConfig(model="other", mood_cap=20)
        save_validated(path, cfg)
        assert load_validated(path, EngineConfig) == cfg

    def test_missing_file_gives_defaults(self, tmp_path):
        assert load_validated(tmp_path / "nope.json", EngineConfig) == EngineConfig()

    def test_invalid_file_gives_default_arg(self, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text("garbage")
        cfg = load_validated(path, EngineConfig, default={"model": "fallback"})
        assert cfg.model == "fallback"

    def test_atomic_write_leaves_no_tmp(self, tmp_path):
        path = tmp_path / "blob.json"
        atomic_write_text(path, "[]")
        atomic_write_text(path, "[1]")
        assert path.read_text() == "[1]"
        assert not (tmp_path / "blob.json.tmp").exists()
