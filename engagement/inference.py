# Copyright (c) 2026 Nenad Vasic. All rights reserved.
# Licensed under the Business Source License 1.1 (BSL-1.1)
# See LICENSE file in the project root for full license text.

"""
AuriZen Inference — the streaming generation primitive.

The pipeline only depends on one shape:

    handle = engine.generate(prompt, on_partial)   # on_partial(text, done)
    handle.cancel()
    handle.result(timeout)                         # full text or raises

on_partial is called from a worker thread, once per chunk, with done=True
on the last call. OllamaEngine implements it against a local Ollama
server's streaming /api/generate endpoint; anything else that keeps the
same shape (an on-device runtime, a test fake) plugs in the same way.
"""

import json
import logging
import threading
import time
import urllib.error
import urllib.request
from concurrent.futures import Future
from typing import Callable, Optional

from engagement.schemas import EngineConfig
from engagement.workers import WorkerPool, get_workers

logger = logging.getLogger("aurizen.inference")

PartialCallback = Callable[[str, bool], None]

_CHECK_INTERVAL = 60  # recheck availability every 60s


class GenerationFailed(Exception):
    """The engine could not produce a response."""


class GenerationHandle:
    """Cancellable handle on one in-flight generation."""

    def __init__(self, future: Optional[Future] = None):
        self.future: Future = future or Future()
        self._cancel = threading.Event()

    def cancel(self) -> None:
        self._cancel.set()
        self.future.cancel()

    @property
    def cancelled(self) -> bool:
        return self._cancel.is_set()

    def result(self, timeout: Optional[float] = None) -> str:
        return self.future.result(timeout)


class InferenceEngine:
    def generate(self, prompt: str, on_partial: PartialCallback) -> GenerationHandle:
        raise NotImplementedError


class OllamaEngine(InferenceEngine):
    """Streams completions from a local Ollama server."""

    def __init__(self, config: Optional[EngineConfig] = None, pool: Optional[WorkerPool] = None):
        self.config = config or EngineConfig()
        self.pool = pool or get_workers().llm
        self._last_check = 0.0
        self._last_available = False

    def is_available(self) -> bool:
        """Check if Ollama is running and responsive. Cached for 60s."""
        now = time.time()
        if now - self._last_check < _CHECK_INTERVAL:
            return self._last_available

        self._last_check = now
        try:
            req = urllib.request.Request(f"{self.config.ollama_url}/api/tags", method="GET")
            with urllib.request.urlopen(req, timeout=5) as resp:
                self._last_available = resp.status == 200
        except (urllib.error.URLError, OSError):
            self._last_available = False
        return self._last_available

    def generate(self, prompt: str, on_partial: PartialCallback) -> GenerationHandle:
        handle = GenerationHandle()
        handle.future = self.pool.submit_sync(self._stream, prompt, on_partial, handle)
        return handle

    def _payload(self, prompt: str) -> bytes:
        cfg = self.config
        return json.dumps({
            "model": cfg.model,
            "prompt": prompt,
            "stream": True,
            "options": {
                "temperature": cfg.temperature,
                "top_k": cfg.top_k,
                "top_p": cfg.top_p,
                "num_predict": cfg.max_tokens,
            },
        }).encode("utf-8")

    def _stream(self, prompt: str, on_partial: PartialCallback, handle: GenerationHandle) -> str:
        req = urllib.request.Request(
            f"{self.config.ollama_url}/api/generate",
            data=self._payload(prompt),
            headers={"Content-Type": "application/json"},
            method="POST",
        )
        parts = []
        try:
            with urllib.request.urlopen(req, timeout=self.config.request_timeout) as resp:
                for raw in resp:
                    if handle.cancelled:
                        logger.debug("Generation cancelled after %d chunks", len(parts))
                        break
                    line = raw.decode("utf-8").strip()
                    if not line:
                        continue
                    chunk = json.loads(line)
                    if "error" in chunk:
                        raise GenerationFailed(chunk["error"])
                    text = chunk.get("response", "")
                    done = bool(chunk.get("done"))
                    parts.append(text)
                    on_partial(text, done)
                    if done:
                        break
        except (urllib.error.URLError, OSError, json.JSONDecodeError) as e:
            logger.debug("Ollama stream error: %s", e)
            raise GenerationFailed(str(e)) from e
        return "".join(parts)
