# Copyright (c) 2026 Nenad Vasic. All rights reserved.
# Licensed under the Business Source License 1.1 (BSL-1.1)
# See LICENSE file in the project root for full license text.

"""
Orchestrator base — one active generation per use case.

Concurrent requests are rejected: while a session is RUNNING, starting
another raises SessionBusyError. Callers that want "latest wins" call
cancel() first, then start the new request.

Storage calls go through the io worker pool so the loop never blocks on
disk.
"""

import logging
from typing import Any, Callable, List, Optional

from engagement.events import EventBus, bus as default_bus
from engagement.generation import (
    Finalizer, GenerationSession, SessionBusyError, SessionState, SessionUpdate,
)
from engagement.inference import InferenceEngine
from engagement.stores import Stores
from engagement.workers import WorkerPool, get_workers

logger = logging.getLogger("aurizen.orchestrator")


class Orchestrator:
    """Sequences session → persist → profile for one use case."""

    name = "orchestrator"
    fallback_message = ""

    def __init__(
        self,
        engine: InferenceEngine,
        stores: Stores,
        io_pool: Optional[WorkerPool] = None,
        bus: Optional[EventBus] = None,
    ):
        self.engine = engine
        self.stores = stores
        self.io_pool = io_pool
        self.bus = bus or default_bus
        self.session: Optional[GenerationSession] = None
        self.response = ""
        self._observers: List[Callable[[SessionUpdate], Any]] = []

    @property
    def busy(self) -> bool:
        return self.session is not None and not self.session.is_terminal

    @property
    def is_loading(self) -> bool:
        return self.session is not None and self.session.is_loading

    @property
    def is_input_enabled(self) -> bool:
        return not self.busy

    def observe(self, callback: Callable[[SessionUpdate], Any]) -> None:
        """Receive updates from every session this orchestrator starts."""
        self._observers.append(callback)

    def cancel(self) -> None:
        if self.session is not None:
            self.session.cancel()

    async def _io(self, fn: Callable, *args) -> Any:
        pool = self.io_pool or get_workers().io
        return await pool.submit(fn, *args)

    def _on_update(self, update: SessionUpdate) -> None:
        if update.state is not SessionState.FAILED:
            self.response = update.text

    async def _generate(self, prompt: str, finalize: Optional[Finalizer] = None) -> GenerationSession:
        if self.busy:
            raise SessionBusyError(f"{self.name}: a generation is already running")
        session = GenerationSession(self.engine, prompt, finalize=finalize, bus=self.bus, name=self.name)
        self.session = session
        self.response = ""
        session.subscribe(self._on_update)
        for observer in self._observers:
            session.subscribe(observer)

        state = await session.run()
        if state is SessionState.FAILED:
            logger.warning("%s generation failed, using fallback", self.name)
            self.response = self.fallback_message
        return session
