# Copyright (c) 2026 Nenad Vasic. All rights reserved.
# Licensed under the Business Source License 1.1 (BSL-1.1)
# See LICENSE file in the project root for full license text.

"""
Chat orchestrator — single-turn wellness chat.

The profile's mood and recent topics go into the prompt. Once the reply
completes, the user's message is scanned for mood and topic keywords and
the profile is updated and saved.
"""

import logging
from typing import Optional, Tuple

from engagement import prompts
from engagement.orchestrator import Orchestrator
from engagement.schemas import Profile

logger = logging.getLogger("aurizen.chat")

# First matching rule wins
MOOD_RULES = [
    (("stress", "anxious", "worried"), "stressed"),
    (("sad", "down", "depressed"), "sad"),
    (("happy", "good", "great"), "positive"),
    (("tired", "exhausted"), "tired"),
]

TOPIC_RULES = [
    (("sleep",), "sleep issues"),
    (("work", "job"), "work stress"),
    (("school", "study"), "academic stress"),
    (("relationship", "friend"), "relationships"),
    (("family",), "family issues"),
    (("exercise", "fitness"), "physical health"),
    (("motivation",), "motivation"),
]


def _first_match(text: str, rules, default: str) -> str:
    for keywords, label in rules:
        if any(k in text for k in keywords):
            return label
    return default


def infer_mood_and_topic(message: str) -> Tuple[str, str]:
    """Keyword read of a chat message → (mood, topic)."""
    lower = message.lower()
    return (
        _first_match(lower, MOOD_RULES, "neutral"),
        _first_match(lower, TOPIC_RULES, "general wellness"),
    )


class ChatOrchestrator(Orchestrator):
    name = "chat"
    fallback_message = prompts.CHAT_FALLBACK

    def __init__(self, *args, system_prompt: Optional[str] = None, **kwargs):
        super().__init__(*args, **kwargs)
        self.system_prompt = system_prompt or prompts.CHAT_SYSTEM_PROMPT

    def build_prompt(self, message: str, profile: Profile) -> str:
        return prompts.CHAT_TEMPLATE.format(
            system=self.system_prompt,
            mood=profile.mood,
            topics=", ".join(profile.topics[-5:]),
            message=message,
        )

    def _record_interaction(self, message: str) -> None:
        mood, topic = infer_mood_and_topic(message)
        profile = self.stores.profile
        profile.update_mood(mood)
        profile.add_topic(topic)
        profile.save()
        logger.debug("Chat profile update: mood=%s topic=%s", mood, topic)

    async def send_message(self, message: str) -> str:
        """Generate a reply. Returns the reply, or the fallback on failure."""
        profile = await self._io(self.stores.profile.load)
        prompt = self.build_prompt(message, profile)

        async def finalize(_text: str) -> None:
            await self._io(self._record_interaction, message)

        await self._generate(prompt, finalize)
        return self.response
