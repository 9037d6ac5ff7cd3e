# Copyright (c) 2026 Nenad Vasic. All rights reserved.
# Licensed under the Business Source License 1.1 (BSL-1.1)
# See LICENSE file in the project root for full license text.

"""
GenerationSession — one streaming generation, start to terminal state.

    IDLE ──run()──▶ RUNNING ──▶ COMPLETED
      │                 ├─────▶ FAILED
      └──cancel()──▶ CANCELLED ◀┘

A session runs once. Engine partials arrive on a worker thread and are
handed to the event loop with call_soon_threadsafe, so subscribers see
the growing text in order, on the loop. Exactly one update carries
done=True: the last one, published after the finalize step has run.

    session = GenerationSession(engine, prompt, finalize=persist)
    session.subscribe(lambda u: render(u.text))
    state = await session.run()

Engine errors don't propagate out of run(); the session lands in FAILED
with the error kept on session.error.
"""

import asyncio
import inspect
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, AsyncIterator, Awaitable, Callable, Dict, List, Optional, Set, Union

from engagement.events import EventBus, Events, bus as default_bus
from engagement.inference import GenerationHandle, InferenceEngine

logger = logging.getLogger("aurizen.generation")


class SessionState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


TERMINAL_STATES = frozenset({SessionState.COMPLETED, SessionState.FAILED, SessionState.CANCELLED})

_TRANSITIONS: Dict[SessionState, Set[SessionState]] = {
    SessionState.IDLE: {SessionState.RUNNING, SessionState.CANCELLED},
    SessionState.RUNNING: set(TERMINAL_STATES),
}


class SessionStateError(Exception):
    """Illegal state transition, e.g. running a finished session again."""


class SessionBusyError(Exception):
    """A new generation was requested while another one is still active."""


@dataclass(frozen=True)
class SessionUpdate:
    """Snapshot delivered to subscribers: full text so far, not a delta."""
    text: str
    done: bool
    state: SessionState


Finalizer = Callable[[str], Union[None, Awaitable[None]]]
Subscriber = Callable[[SessionUpdate], Any]


class GenerationSession:
    """Single-use, cancellable, observable wrapper around engine.generate()."""

    def __init__(
        self,
        engine: InferenceEngine,
        prompt: str,
        finalize: Optional[Finalizer] = None,
        bus: Optional[EventBus] = None,
        name: str = "session",
    ):
        self.engine = engine
        self.prompt = prompt
        self.name = name
        self.bus = bus or default_bus
        self._finalize = finalize

        self.state = SessionState.IDLE
        self.text = ""
        self.error: Optional[BaseException] = None
        self.finalize_error: Optional[BaseException] = None
        self.first_output = asyncio.Event()

        self._handle: Optional[GenerationHandle] = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._subscribers: List[Subscriber] = []
        self._last_update: Optional[SessionUpdate] = None

    # ------------------------------------------------------------------
    # Observation
    # ------------------------------------------------------------------

    @property
    def is_terminal(self) -> bool:
        return self.state in TERMINAL_STATES

    @property
    def is_loading(self) -> bool:
        """True until the first non-empty partial arrives (or the session ends)."""
        return self.state is SessionState.RUNNING and not self.first_output.is_set()

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Register for updates. Replays the latest one immediately. Returns an unsubscribe."""
        self._subscribers.append(callback)
        if self._last_update is not None:
            self._deliver(callback, self._last_update)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)
        return unsubscribe

    async def updates(self) -> AsyncIterator[SessionUpdate]:
        """Async iteration over updates, ending after the terminal one."""
        queue: asyncio.Queue = asyncio.Queue()
        unsubscribe = self.subscribe(queue.put_nowait)
        try:
            while True:
                update = await queue.get()
                yield update
                if update.state in TERMINAL_STATES:
                    return
        finally:
            unsubscribe()

    def _deliver(self, callback: Subscriber, update: SessionUpdate) -> None:
        try:
            callback(update)
        except Exception as e:
            logger.error("%s subscriber error: %s", self.name, e)

    def _publish(self, done: bool = False) -> None:
        update = SessionUpdate(text=self.text, done=done, state=self.state)
        self._last_update = update
        for callback in list(self._subscribers):
            self._deliver(callback, update)

    def _transition(self, new: SessionState) -> None:
        if new not in _TRANSITIONS.get(self.state, set()):
            raise SessionStateError(f"{self.name}: {self.state.value} -> {new.value} not allowed")
        logger.debug("%s: %s -> %s", self.name, self.state.value, new.value)
        self.state = new

    # ------------------------------------------------------------------
    # Engine callbacks
    # ------------------------------------------------------------------

    def _on_partial_threadsafe(self, text: str, done: bool) -> None:
        self._loop.call_soon_threadsafe(self._on_partial, text, done)

    def _on_partial(self, text: str, done: bool) -> None:
        if self.state is not SessionState.RUNNING or not text:
            return
        self.text += text
        if not self.first_output.is_set():
            self.first_output.set()
            self.bus.emit(Events.SESSION_FIRST_OUTPUT, {"session": self.name}, source="generation")
        self._publish()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def run(self) -> SessionState:
        """Drive the generation to a terminal state and return it."""
        if self.state is not SessionState.IDLE:
            raise SessionStateError(f"{self.name} already {self.state.value}; create a new session")
        self._loop = asyncio.get_running_loop()
        self._transition(SessionState.RUNNING)
        self.bus.emit(Events.SESSION_STARTED, {"session": self.name}, source="generation")

        try:
            self._handle = self.engine.generate(self.prompt, self._on_partial_threadsafe)
            await asyncio.wrap_future(self._handle.future)
        except asyncio.CancelledError:
            if self.state is SessionState.CANCELLED:
                return self.state
            # The awaiting task itself was cancelled
            self.cancel()
            raise
        except Exception as e:
            if self.state is SessionState.RUNNING:
                self._fail(e)
            return self.state

        if self.state is SessionState.RUNNING:
            try:
                await self._complete()
            except asyncio.CancelledError:
                # Awaiting task cancelled during finalize
                self.cancel()
                raise
        return self.state

    async def _complete(self) -> None:
        if self._finalize is not None:
            try:
                result = self._finalize(self.text)
                if inspect.isawaitable(result):
                    await result
            except Exception as e:
                self.finalize_error = e
                logger.warning("%s finalize step failed: %s", self.name, e)
        if self.state is not SessionState.RUNNING:
            return  # cancelled while finalizing
        self._transition(SessionState.COMPLETED)
        self._publish(done=True)
        self.bus.emit(Events.SESSION_COMPLETED, {
            "session": self.name,
            "chars": len(self.text),
            "finalize_failed": self.finalize_error is not None,
        }, source="generation")

    def _fail(self, error: BaseException) -> None:
        self.error = error
        self._transition(SessionState.FAILED)
        logger.error("%s failed: %s", self.name, error)
        self._publish()
        self.bus.emit(Events.SESSION_FAILED, {"session": self.name, "error": type(error).__name__}, source="generation")

    def cancel(self) -> None:
        """Stop the generation. No-op once terminal."""
        if self.is_terminal:
            return
        self._transition(SessionState.CANCELLED)
        if self._handle is not None:
            self._handle.cancel()
        self._publish()
        self.bus.emit(Events.SESSION_CANCELLED, {"session": self.name, "chars": len(self.text)}, source="generation")
