# Copyright (c) 2026 Nenad Vasic. All rights reserved.
# Licensed under the Business Source License 1.1 (BSL-1.1)
# See LICENSE file in the project root for full license text.

"""Test configuration — paths isolation, a fresh event bus, scripted engines."""

import threading
from concurrent.futures import ThreadPoolExecutor
from typing import Dict, Optional, Sequence

import pytest

from core.paths import configure, reset
from engagement.events import EventBus, bus as default_bus
from engagement.inference import GenerationFailed, GenerationHandle, InferenceEngine
from engagement.storage import MemoryBlobStore
from engagement.stores import Stores
from engagement.workers import shutdown_workers


@pytest.fixture(autouse=True)
def isolated_paths(tmp_path):
    """Route all AuriZen data to a temp directory for test isolation."""
    paths = configure(tmp_path)
    paths.ensure_dirs()
    yield paths
    reset()
    default_bus.reset()
    shutdown_workers(wait=True)


@pytest.fixture
def event_bus():
    return EventBus(history_size=200)


@pytest.fixture
def blobs():
    return MemoryBlobStore()


@pytest.fixture
def stores(blobs, event_bus):
    return Stores(blobs, bus=event_bus)


class ScriptedEngine(InferenceEngine):
    """
    Replays canned chunks from a worker thread, like a real engine.

    replies maps a prompt marker to the chunks for prompts containing it.
    fail_on makes prompts containing the marker fail before any output.
    gate, when given, holds the stream after its first chunk until the
    gate is set or the handle is cancelled. gate_on limits the gate to
    prompts containing that marker.
    """

    def __init__(
        self,
        chunks: Sequence[str] = ("Hello", " world"),
        replies: Optional[Dict[str, Sequence[str]]] = None,
        fail_on: Optional[str] = None,
        gate: Optional[threading.Event] = None,
        gate_on: Optional[str] = None,
    ):
        self.chunks = list(chunks)
        self.replies = replies or {}
        self.fail_on = fail_on
        self.gate = gate
        self.gate_on = gate_on
        self.prompts = []
        self._executor = ThreadPoolExecutor(max_workers=2, thread_name_prefix="scripted-engine")

    def _chunks_for(self, prompt: str):
        for marker, chunks in self.replies.items():
            if marker in prompt:
                return list(chunks)
        return self.chunks

    def generate(self, prompt, on_partial):
        self.prompts.append(prompt)
        handle = GenerationHandle()
        chunks = self._chunks_for(prompt)
        fail = self.fail_on is not None and self.fail_on in prompt
        gated = self.gate is not None and (self.gate_on is None or self.gate_on in prompt)

        def work():
            if fail:
                raise GenerationFailed("engine unavailable")
            for i, chunk in enumerate(chunks):
                if handle.cancelled:
                    return ""
                on_partial(chunk, i == len(chunks) - 1)
                if i == 0 and gated:
                    while not handle.cancelled and not self.gate.wait(0.01):
                        pass
            return "".join(chunks)

        handle.future = self._executor.submit(work)
        return handle

    def shutdown(self):
        if self.gate is not None:
            self.gate.set()
        self._executor.shutdown(wait=True)


@pytest.fixture
def make_engine():
    """Factory for ScriptedEngine; every engine is shut down after the test."""
    engines = []

    def make(**kwargs) -> ScriptedEngine:
        engine = ScriptedEngine(**kwargs)
        engines.append(engine)
        return engine

    yield make
    for engine in engines:
        engine.shutdown()
