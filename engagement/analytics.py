# Copyright (c) 2026 Nenad Vasic. All rights reserved.
# Licensed under the Business Source License 1.1 (BSL-1.1)
# See LICENSE file in the project root for full license text.

"""
AuriZen Analytics — streaks, rates, theme and mood distributions.

Pure functions over an EntryStore snapshot. Nothing here reads storage,
keeps state, or mutates its input; same snapshot in, same answer out.

Day bucketing uses the local time zone at "YYYY-MM-DD" granularity.
"""

from collections import Counter
from datetime import date, datetime
from typing import Dict, Iterable, List, Sequence, Tuple

from engagement.schemas import (
    DreamEntry, DreamStatistics, Entry, MoodEntry, MoodStatistics, MoodTrend,
)

MS_PER_DAY = 1000 * 60 * 60 * 24

DREAM_THEMES = [
    "flying", "falling", "water", "animals", "family", "friends", "home", "school", "work",
    "chase", "lost", "death", "fear", "love", "nature", "travel", "childhood", "future",
]

POSITIVE_MOODS = frozenset({"ecstatic", "happy", "confident", "calm"})

# Dominant recent mood → meditation mood state
MOOD_STATES = {
    "ecstatic": "positive",
    "happy": "positive",
    "confident": "positive",
    "calm": "balanced",
    "sad": "challenging",
    "anxious": "challenging",
    "stressed": "stressed",
    "tired": "low energy",
}


def capitalize(word: str) -> str:
    return word[:1].upper() + word[1:]


def local_day(timestamp_ms: int) -> date:
    return datetime.fromtimestamp(timestamp_ms / 1000).date()


def day_key(timestamp_ms: int) -> str:
    return local_day(timestamp_ms).strftime("%Y-%m-%d")


# ============================================================================
# Generic: any entry type
# ============================================================================

def longest_streak(entries: Iterable[Entry]) -> int:
    """Longest run of consecutive calendar days with at least one entry."""
    days = sorted({local_day(e.timestamp) for e in entries})
    if not days:
        return 0

    best = current = 1
    for prev, day in zip(days, days[1:]):
        if (day - prev).days == 1:
            current += 1
            best = max(best, current)
        else:
            current = 1
    return best


def days_between(oldest_ms: int, newest_ms: int) -> int:
    """Whole days between two timestamps (floored)."""
    return (newest_ms - oldest_ms) // MS_PER_DAY


def rate_per_week(entries: Sequence[Entry]) -> float:
    """Average entries per week across the span of the log."""
    stamps = [e.timestamp for e in entries]
    if len(set(stamps)) < 2:
        return 0.0
    span = days_between(min(stamps), max(stamps))
    if span <= 0:
        return 0.0
    return (len(stamps) / max(1, span)) * 7


# ============================================================================
# Dreams
# ============================================================================

def theme_frequency(
    entries: Iterable[DreamEntry],
    vocabulary: Sequence[str] = DREAM_THEMES,
    top: int = 5,
) -> List[str]:
    """
    Most frequent vocabulary themes across dream entries.

    An entry counts once per keyword no matter how often it repeats.
    Ties keep vocabulary order (sorted() is stable).
    """
    counts: Dict[str, int] = {}
    for entry in entries:
        text = entry.full_text.casefold()
        for keyword in vocabulary:
            if keyword in text:
                counts[keyword] = counts.get(keyword, 0) + 1

    ranked = sorted(
        (kw for kw in vocabulary if counts.get(kw)),
        key=lambda kw: -counts[kw],
    )
    return [capitalize(kw) for kw in ranked[:top]]


def dream_statistics(entries: Sequence[DreamEntry]) -> DreamStatistics:
    if not entries:
        return DreamStatistics()
    return DreamStatistics(
        total_entries=len(entries),
        average_entries_per_week=rate_per_week(entries),
        common_themes=theme_frequency(entries),
        longest_streak=longest_streak(entries),
    )


# ============================================================================
# Moods
# ============================================================================

def mood_distribution(entries: Sequence[MoodEntry], window: int = 30) -> Dict[str, int]:
    """Count per mood label over the last `window` entries, first-seen order."""
    recent = list(entries)[-window:] if window > 0 else []
    return dict(Counter(e.mood for e in recent))


def most_common_mood(distribution: Dict[str, int], default: str = "N/A") -> str:
    if not distribution:
        return default
    # max() keeps the first of equal counts, i.e. the mood seen first
    return max(distribution.items(), key=lambda kv: kv[1])[0]


def _days_with_latest_mood(entries: Sequence[MoodEntry]) -> List[Tuple[str, str]]:
    """(day, latest mood that day) pairs, oldest day first."""
    latest: Dict[str, MoodEntry] = {}
    for e in entries:
        key = day_key(e.timestamp)
        if key not in latest or e.timestamp > latest[key].timestamp:
            latest[key] = e
    return [(day, latest[day].mood) for day in sorted(latest)]


def mood_trend(entries: Sequence[MoodEntry], window: int = 30) -> MoodTrend:
    """Positive-mood days in the last 7 tracked days vs the 7 before."""
    days = _days_with_latest_mood(list(entries)[-window:])
    recent = days[-7:]
    previous = days[:-7][-7:]
    return MoodTrend(
        recent_positive=sum(1 for _, mood in recent if mood in POSITIVE_MOODS),
        recent_days=len(recent),
        previous_positive=sum(1 for _, mood in previous if mood in POSITIVE_MOODS),
        previous_days=len(previous),
        tracked_days=len(days),
    )


def mood_statistics(entries: Sequence[MoodEntry]) -> MoodStatistics:
    if not entries:
        return MoodStatistics()
    distribution = dict(Counter(e.mood for e in entries))
    return MoodStatistics(
        total_entries=len(entries),
        most_common_mood=most_common_mood(distribution),
        mood_distribution=distribution,
        average_entries_per_week=rate_per_week(entries),
        longest_streak=longest_streak(entries),
    )


def summarize_mood_history(entries: Sequence[MoodEntry], window: int = 30) -> str:
    """Plain-text digest of recent moods, fed into the insights prompt."""
    recent = list(entries)[-window:]
    total = len(recent)
    if not total:
        return "No mood entries yet."

    dist = mood_distribution(recent, window=window)
    trend = mood_trend(recent, window=window)
    fmt = "%b %d, %Y"
    start = datetime.fromtimestamp(recent[0].timestamp / 1000).strftime(fmt)
    end = datetime.fromtimestamp(recent[-1].timestamp / 1000).strftime(fmt)
    notes = [e.note for e in recent if e.note.strip()][-5:]

    lines = [
        "Mood Tracking Summary:",
        f"- Total entries: {total} (from {start} to {end})",
        f"- Most common mood: {capitalize(most_common_mood(dist))}",
        "",
        "Mood Distribution:",
    ]
    lines += [f"- {capitalize(mood)}: {n} times ({n * 100 // total}%)" for mood, n in dist.items()]
    lines += [
        "",
        "Recent Trends:",
        f"- Positive mood days this week: {trend.recent_positive}/{trend.recent_days}",
        f"- Positive mood days previous week: {trend.previous_positive}/{trend.previous_days}",
        "- Trend: " + ("Stable or improving" if trend.direction == "improving" else "Some challenges lately"),
        f"- Unique tracking days: {trend.tracked_days}",
        "",
        "User Notes & Themes:",
    ]
    lines += [f'- "{n}"' for n in notes] if notes else ["No detailed notes provided"]
    return "\n".join(lines)


def mood_context(entries: Sequence[MoodEntry], window: int = 10) -> str:
    """One-line recap of recent moods and notes, per day."""
    recent = list(entries)[-window:]
    by_day: Dict[str, List[MoodEntry]] = {}
    for e in recent:
        by_day.setdefault(day_key(e.timestamp), []).append(e)

    daily = []
    for day in sorted(by_day)[-7:]:
        group = by_day[day]
        label = datetime.fromtimestamp(group[0].timestamp / 1000).strftime("%b %d")
        moods = ", ".join(dict.fromkeys(e.mood for e in group))
        notes = [e.note for e in group if e.note.strip()]
        daily.append(f"{label}: {moods} ({'; '.join(notes)})" if notes else f"{label}: {moods}")

    top = Counter(e.mood for e in recent).most_common(3)
    patterns = ", ".join(f"{mood} ({n} times)" for mood, n in top)
    return f"Recent mood patterns: {patterns}. Daily summary: {'; '.join(daily)}"


def meditation_params(entries: Sequence[MoodEntry]) -> Tuple[str, str, str]:
    """(focus, mood state, experience level) for a mood-guided meditation."""
    if not entries:
        return ("mood-guided wellness", "balanced", "Beginner")
    dominant = most_common_mood(dict(Counter(e.mood for e in list(entries)[-7:])), default="balanced")
    state = MOOD_STATES.get(dominant, "balanced")
    experience = "Intermediate" if len(entries) >= 14 else "Beginner"
    return ("mood-guided wellness", state, experience)
