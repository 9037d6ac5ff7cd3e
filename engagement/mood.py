# Copyright (c) 2026 Nenad Vasic. All rights reserved.
# Licensed under the Business Source License 1.1 (BSL-1.1)
# See LICENSE file in the project root for full license text.

"""
Mood orchestrator — log moods, compute stats, generate insights.
"""

import logging
from typing import List, Optional, Tuple

from engagement import analytics, prompts
from engagement.orchestrator import Orchestrator
from engagement.schemas import MoodEntry, MoodStatistics, MoodTrend

logger = logging.getLogger("aurizen.mood")


class MoodOrchestrator(Orchestrator):
    name = "mood"
    fallback_message = prompts.MOOD_FALLBACK

    def __init__(self, *args, system_prompt: Optional[str] = None, **kwargs):
        super().__init__(*args, **kwargs)
        self.system_prompt = system_prompt or prompts.MOOD_SYSTEM_PROMPT

    def _persist(self, entry: MoodEntry) -> None:
        self.stores.moods.append(entry)
        profile = self.stores.profile
        profile.update_mood(entry.mood)
        if entry.note:
            profile.add_topic(entry.note)
        profile.save()

    async def save_mood(self, mood: str, note: str = "") -> MoodEntry:
        """Log a mood. The profile follows the latest mood and collects notes as topics."""
        entry = MoodEntry(mood=mood, note=note)
        await self._io(self._persist, entry)
        logger.info("Mood logged: %s", mood)
        return entry

    async def history(self) -> List[MoodEntry]:
        return await self._io(self.stores.moods.all)

    async def delete(self, entry: MoodEntry) -> int:
        return await self._io(self.stores.moods.delete, entry)

    def _clear(self) -> None:
        self.stores.moods.clear()
        self.stores.profile.clear()

    async def clear_history(self) -> None:
        """Wipe the mood log and reset the profile."""
        await self._io(self._clear)
        self.response = ""

    async def statistics(self) -> MoodStatistics:
        return analytics.mood_statistics(await self.history())

    async def trend(self, window: int = 30) -> MoodTrend:
        return analytics.mood_trend(await self.history(), window=window)

    async def mood_context(self) -> str:
        return analytics.mood_context(await self.history())

    async def meditation_params(self) -> Tuple[str, str, str]:
        return analytics.meditation_params(await self.history())

    async def generate_insights(self) -> str:
        """Stream AI insights over the mood history. Empty history → empty string."""
        entries = await self.history()
        if not entries:
            return ""
        prompt = prompts.MOOD_TEMPLATE.format(
            system=self.system_prompt,
            summary=analytics.summarize_mood_history(entries),
        )
        await self._generate(prompt)
        return self.response
