# Copyright (c) 2026 Nenad Vasic. All rights reserved.
# Licensed under the Business Source License 1.1 (BSL-1.1)
# See LICENSE file in the project root for full license text.

"""
AuriZen Event Bus — decoupled pub/sub between pipeline components.

Stores, sessions and the downloader announce what happened; orchestrators
and hosts subscribe. Nobody imports a listener directly.

    from engagement.events import bus, Events

    bus.on(Events.ENTRY_APPENDED, refresh_stats)
    bus.emit(Events.ENTRY_APPENDED, {"namespace": "mood_entries", "count": 12})

    async def on_done(event):
        await push_to_ui(event.data)
    bus.on(Events.SESSION_COMPLETED, on_done)
    await bus.emit_async(Events.SESSION_COMPLETED, {"chars": 412})

Sync handlers run inline. Async handlers are awaited by emit_async() and
scheduled on the running loop by emit(). Handler errors are logged and
never reach the emitter.
"""

import asyncio
import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

logger = logging.getLogger("aurizen.events")

_MAX_EMIT_DEPTH = 3


class Events:
    """Registry of all event types. Use these constants, not raw strings."""

    # --- Entry logs ---
    ENTRY_APPENDED = "entry_appended"
    ENTRY_DELETED = "entry_deleted"
    ENTRIES_CLEARED = "entries_cleared"
    CORRUPT_DATA_RECOVERED = "corrupt_data_recovered"

    # --- Profile ---
    PROFILE_SAVED = "profile_saved"
    PROFILE_CLEARED = "profile_cleared"

    # --- Generation sessions ---
    SESSION_STARTED = "session_started"
    SESSION_FIRST_OUTPUT = "session_first_output"
    SESSION_COMPLETED = "session_completed"
    SESSION_FAILED = "session_failed"
    SESSION_CANCELLED = "session_cancelled"

    # --- Asset downloads ---
    DOWNLOAD_STARTED = "download_started"
    DOWNLOAD_PROGRESS = "download_progress"
    DOWNLOAD_COMPLETED = "download_completed"
    DOWNLOAD_FAILED = "download_failed"


@dataclass
class Event:
    """A single emitted event."""
    type: str
    data: Dict[str, Any]
    timestamp: str = field(default_factory=lambda: datetime.now().isoformat())
    source: Optional[str] = None


@dataclass
class Subscriber:
    callback: Callable[[Event], Any]
    priority: int = 0  # higher = called first
    once: bool = False
    source: Optional[str] = None
    is_async: bool = False


class EventBus:
    """Priority-ordered pub/sub with bounded history. Thread-safe."""

    def __init__(self, history_size: int = 100):
        self._subscribers: Dict[str, List[Subscriber]] = {}
        self._history: List[Event] = []
        self._history_size = history_size
        self._lock = threading.Lock()
        self._emit_count = 0
        self._depth = threading.local()

    def on(
        self,
        event_type: str,
        callback: Callable,
        priority: int = 0,
        source: Optional[str] = None,
        once: bool = False,
    ) -> None:
        """Subscribe to an event type. Accepts sync and async callbacks."""
        sub = Subscriber(
            callback=callback,
            priority=priority,
            once=once,
            source=source,
            is_async=asyncio.iscoroutinefunction(callback),
        )
        with self._lock:
            subs = self._subscribers.setdefault(event_type, [])
            subs.append(sub)
            subs.sort(key=lambda s: -s.priority)

    def once(self, event_type: str, callback: Callable, priority: int = 0,
             source: Optional[str] = None) -> None:
        """Subscribe to an event, auto-remove after first call."""
        self.on(event_type, callback, priority=priority, source=source, once=True)

    def off(self, event_type: str, callback: Callable) -> bool:
        """Unsubscribe a callback. Returns True if found and removed."""
        with self._lock:
            subs = self._subscribers.get(event_type, [])
            kept = [s for s in subs if s.callback is not callback]
            self._subscribers[event_type] = kept
            return len(kept) < len(subs)

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    def _record(self, event: Event) -> List[Subscriber]:
        with self._lock:
            self._emit_count += 1
            self._history.append(event)
            if len(self._history) > self._history_size:
                self._history = self._history[-self._history_size:]
            return list(self._subscribers.get(event.type, []))

    def _drop_once(self, event_type: str, fired: List[Subscriber]) -> None:
        if not fired:
            return
        with self._lock:
            subs = self._subscribers.get(event_type, [])
            for sub in fired:
                if sub in subs:
                    subs.remove(sub)

    def _enter(self) -> bool:
        depth = getattr(self._depth, "value", 0) + 1
        self._depth.value = depth
        return depth <= _MAX_EMIT_DEPTH

    def _exit(self) -> None:
        self._depth.value -= 1

    def _log_handler_error(self, event: Event, sub: Subscriber, e: Exception) -> None:
        logger.error(
            "Event handler error: %s -> %s: %s",
            event.type,
            sub.source or getattr(sub.callback, "__name__", repr(sub.callback)),
            e,
        )

    def emit(
        self,
        event_type: str,
        data: Optional[Dict[str, Any]] = None,
        source: Optional[str] = None,
    ) -> Event:
        """
        Emit an event from sync code.

        Async handlers are scheduled on the running loop; without a loop
        they are skipped.
        """
        event = Event(type=event_type, data=data or {}, source=source)
        try:
            if not self._enter():
                logger.warning("Event recursion limit hit for %s — skipping", event_type)
                return event

            fired = []
            for sub in self._record(event):
                try:
                    if sub.is_async:
                        try:
                            asyncio.get_running_loop().create_task(sub.callback(event))
                        except RuntimeError:
                            logger.debug("No event loop for async handler on %s", event_type)
                    else:
                        sub.callback(event)
                except Exception as e:
                    self._log_handler_error(event, sub, e)
                if sub.once:
                    fired.append(sub)
            self._drop_once(event_type, fired)
            return event
        finally:
            self._exit()

    async def emit_async(
        self,
        event_type: str,
        data: Optional[Dict[str, Any]] = None,
        source: Optional[str] = None,
    ) -> Event:
        """Emit from async code. Async handlers are awaited in priority order."""
        event = Event(type=event_type, data=data or {}, source=source)
        try:
            if not self._enter():
                logger.warning("Event recursion limit hit for %s — skipping", event_type)
                return event

            fired = []
            for sub in self._record(event):
                try:
                    if sub.is_async:
                        await sub.callback(event)
                    else:
                        sub.callback(event)
                except Exception as e:
                    self._log_handler_error(event, sub, e)
                if sub.once:
                    fired.append(sub)
            self._drop_once(event_type, fired)
            return event
        finally:
            self._exit()

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    def history(self, event_type: Optional[str] = None, limit: int = 20) -> List[Dict[str, Any]]:
        """Recent events, oldest first."""
        with self._lock:
            events = self._history
            if event_type:
                events = [e for e in events if e.type == event_type]
            return [
                {"type": e.type, "data": e.data, "timestamp": e.timestamp, "source": e.source}
                for e in events[-limit:]
            ]

    def stats(self) -> Dict[str, Any]:
        with self._lock:
            counts = {k: len(v) for k, v in self._subscribers.items() if v}
            return {
                "total_emitted": self._emit_count,
                "history_size": len(self._history),
                "subscriber_counts": counts,
                "total_subscribers": sum(counts.values()),
            }

    def reset(self) -> None:
        """Clear all subscribers and history. For testing."""
        with self._lock:
            self._subscribers.clear()
            self._history.clear()
            self._emit_count = 0


# ============================================================================
# Default bus: components take an explicit bus and fall back to this one
# ============================================================================

bus = EventBus()
