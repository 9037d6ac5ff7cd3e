# Copyright (c) 2026 Nenad Vasic. All rights reserved.
# Licensed under the Business Source License 1.1 (BSL-1.1)
# See LICENSE file in the project root for full license text.

"""
Dream orchestrator — interpret a dream, keep the journal, compute stats.

interpret() streams the interpretation. When it completes, a second short
generation condenses it to a one-line summary, then the entry is appended
to the journal and the profile gains the "dreams" topic. All of that
happens before the session reports COMPLETED, so journal queries made
after interpret() returns include the new entry.
"""

import logging
from typing import List, Optional

from engagement import analytics, prompts
from engagement.generation import GenerationSession, SessionState
from engagement.orchestrator import Orchestrator
from engagement.schemas import DreamEntry, DreamStatistics

logger = logging.getLogger("aurizen.dream")

DREAM_TOPIC = "dreams"


class DreamOrchestrator(Orchestrator):
    name = "dream"
    fallback_message = prompts.DREAM_FALLBACK

    def __init__(self, *args, system_prompt: Optional[str] = None, **kwargs):
        super().__init__(*args, **kwargs)
        self.system_prompt = system_prompt or prompts.DREAM_SYSTEM_PROMPT
        self.summary_session: Optional[GenerationSession] = None

    def build_prompt(self, description: str) -> str:
        return prompts.DREAM_TEMPLATE.format(system=self.system_prompt, description=description)

    async def summarize(self, interpretation: str) -> str:
        """One-sentence summary via a secondary generation. Empty on any failure."""
        session = self.summary_session = GenerationSession(
            self.engine,
            prompts.DREAM_SUMMARY_TEMPLATE.format(text=interpretation),
            bus=self.bus,
            name="dream-summary",
        )
        if await session.run() is not SessionState.COMPLETED:
            return ""
        lines = [l.strip() for l in session.text.strip().splitlines() if l.strip()]
        return lines[0] if lines else ""

    def cancel(self) -> None:
        """Cancel the interpretation and, if it is running, the summary."""
        super().cancel()
        if self.summary_session is not None:
            self.summary_session.cancel()

    def _persist(self, entry: DreamEntry) -> None:
        self.stores.dreams.append(entry)
        profile = self.stores.profile
        profile.add_topic(DREAM_TOPIC)
        profile.save()

    async def interpret(self, description: str) -> str:
        """Interpret a dream. Returns the interpretation, or the fallback on failure."""

        async def finalize(interpretation: str) -> None:
            summary = await self.summarize(interpretation)
            if self.session is not None and self.session.state is SessionState.CANCELLED:
                logger.info("Dream cancelled before save; entry discarded")
                return
            entry = DreamEntry(description=description, interpretation=interpretation, summary=summary)
            await self._io(self._persist, entry)
            logger.info("Dream entry saved (%d chars)", len(interpretation))

        await self._generate(self.build_prompt(description), finalize)
        return self.response

    async def history(self) -> List[DreamEntry]:
        return await self._io(self.stores.dreams.all)

    async def recent(self, n: int = 10) -> List[DreamEntry]:
        return await self._io(self.stores.dreams.recent, n)

    async def in_range(self, start: int, end: int) -> List[DreamEntry]:
        return await self._io(self.stores.dreams.range_by_timestamp, start, end)

    async def delete(self, entry: DreamEntry) -> int:
        return await self._io(self.stores.dreams.delete, entry)

    async def clear_history(self) -> None:
        await self._io(self.stores.dreams.clear)

    async def statistics(self) -> DreamStatistics:
        return analytics.dream_statistics(await self.history())
