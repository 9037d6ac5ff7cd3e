# Copyright (c) 2026 Nenad Vasic. All rights reserved.
# Licensed under the Business Source License 1.1 (BSL-1.1)
# See LICENSE file in the project root for full license text.

"""Event bus tests — dispatch, priority, once, history, threading."""

import asyncio
import threading
import pytest

from engagement.events import EventBus, Events, Event


@pytest.fixture
def bus():
    return EventBus(history_size=50)


class TestBasicDispatch:

    def test_emit_calls_subscriber(self, bus):
        received = []
        bus.on(Events.ENTRY_APPENDED, lambda e: received.append(e.data))
        bus.emit(Events.ENTRY_APPENDED, {"count": 3})
        assert received == [{"count": 3}]

    def test_emit_returns_event(self, bus):
        event = bus.emit("test", {"x": 1}, source="unit")
        assert isinstance(event, Event)
        assert event.type == "test"
        assert event.source == "unit"

    def test_other_types_not_dispatched(self, bus):
        received = []
        bus.on(Events.DOWNLOAD_STARTED, lambda e: received.append(e))
        bus.emit(Events.DOWNLOAD_FAILED, {})
        assert received == []

    def test_priority_order(self, bus):
        order = []
        bus.on("test", lambda e: order.append("low"), priority=0)
        bus.on("test", lambda e: order.append("high"), priority=10)
        bus.emit("test", {})
        assert order == ["high", "low"]

    def test_once_fires_once(self, bus):
        received = []
        bus.once("test", lambda e: received.append(1))
        bus.emit("test", {})
        bus.emit("test", {})
        assert received == [1]

    def test_unsubscribe(self, bus):
        handler = lambda e: None
        bus.on("test", handler)
        assert bus.off("test", handler) is True
        assert bus.stats()["total_subscribers"] == 0

    def test_unsubscribe_nonexistent(self, bus):
        assert bus.off("test", lambda e: None) is False


class TestAsync:

    def test_emit_async_awaits_handlers(self, bus):
        received = []

        async def handler(e):
            await asyncio.sleep(0)
            received.append(e.data["n"])

        bus.on("test", handler)
        asyncio.run(bus.emit_async("test", {"n": 5}))
        assert received == [5]

    def test_sync_emit_without_loop_skips_async_handler(self, bus):
        received = []

        async def handler(e):
            received.append(e)

        bus.on("test", handler)
        bus.emit("test", {})
        assert received == []


class TestHistory:

    def test_history_records_events(self, bus):
        bus.emit("a", {"x": 1})
        bus.emit("b", {"x": 2})
        assert [h["type"] for h in bus.history()] == ["a", "b"]
        assert bus.history("b")[0]["data"] == {"x": 2}

    def test_history_caps_at_size(self):
        bus = EventBus(history_size=3)
        for i in range(10):
            bus.emit("test", {"i": i})
        history = bus.history(limit=10)
        assert len(history) == 3
        assert history[0]["data"]["i"] == 7  # Oldest kept

    def test_reset(self, bus):
        bus.on("test", lambda e: None)
        bus.emit("test", {})
        bus.reset()
        assert bus.stats() == {
            "total_emitted": 0,
            "history_size": 0,
            "subscriber_counts": {},
            "total_subscribers": 0,
        }


class TestErrorHandling:

    def test_bad_handler_doesnt_stop_others(self, bus):
        results = []

        def bad(e):
            raise RuntimeError("boom")

        bus.on("test", bad, priority=10)
        bus.on("test", lambda e: results.append("ok"), priority=0)
        bus.emit("test", {})
        assert results == ["ok"]

    def test_recursion_is_bounded(self, bus):
        calls = []

        def echo(e):
            calls.append(1)
            bus.emit("test", {})

        bus.on("test", echo)
        bus.emit("test", {})
        assert len(calls) == 3


class TestThreadSafety:

    def test_concurrent_emits(self, bus):
        count = {"n": 0}
        lock = threading.Lock()

        def handler(e):
            with lock:
                count["n"] += 1

        bus.on("test", handler)

        threads = [threading.Thread(target=bus.emit, args=("test", {})) for _ in range(100)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert count["n"] == 100
        assert bus.stats()["total_emitted"] == 100
