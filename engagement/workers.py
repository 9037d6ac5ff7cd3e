# Copyright (c) 2026 Nenad Vasic. All rights reserved.
# Licensed under the Business Source License 1.1 (BSL-1.1)
# See LICENSE file in the project root for full license text.

"""
Background execution — named thread pools with backpressure.

  - io: 4 threads — blob store reads/writes, asset downloads
  - llm: 2 threads — inference engine calls

The asyncio loop is the observation context; anything that blocks goes
through a pool so other tasks keep running. Queue depth > MAX_QUEUE_DEPTH
raises WorkerPoolBusy instead of piling up work.
"""

import asyncio
import functools
import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any, Callable, Dict, Optional

logger = logging.getLogger("aurizen.workers")

MAX_QUEUE_DEPTH = 32


class WorkerPoolBusy(Exception):
    """Raised when a worker pool's queue is full."""


class WorkerPool:
    """A named thread pool with queue depth tracking."""

    def __init__(self, name: str, max_workers: int):
        self.name = name
        self.max_workers = max_workers
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers,
            thread_name_prefix=f"aurizen-{name}",
        )
        self._pending = 0
        self._lock = threading.Lock()
        self._submitted = 0
        self._completed = 0
        self._rejected = 0

    def _reserve(self) -> None:
        with self._lock:
            if self._pending >= MAX_QUEUE_DEPTH:
                self._rejected += 1
                raise WorkerPoolBusy(f"Pool '{self.name}' full ({self._pending}/{MAX_QUEUE_DEPTH})")
            self._pending += 1
            self._submitted += 1

    def _tracked(self, fn: Callable, *args, **kwargs) -> Any:
        try:
            return fn(*args, **kwargs)
        finally:
            with self._lock:
                self._pending -= 1
                self._completed += 1

    def submit_sync(self, fn: Callable, *args, **kwargs) -> Future:
        """Submit work, get a concurrent Future. Raises WorkerPoolBusy."""
        self._reserve()
        return self._executor.submit(self._tracked, fn, *args, **kwargs)

    async def submit(self, fn: Callable, *args, **kwargs) -> Any:
        """Run fn on the pool and await its result. Raises WorkerPoolBusy."""
        self._reserve()
        loop = asyncio.get_running_loop()
        call = functools.partial(self._tracked, fn, *args, **kwargs)
        return await loop.run_in_executor(self._executor, call)

    def stats(self) -> Dict[str, Any]:
        with self._lock:
            return {
                "name": self.name,
                "max_workers": self.max_workers,
                "pending": self._pending,
                "submitted": self._submitted,
                "completed": self._completed,
                "rejected": self._rejected,
            }

    def shutdown(self, wait: bool = False) -> None:
        self._executor.shutdown(wait=wait)
        logger.info("Worker pool '%s' shut down", self.name)


class WorkerManager:
    """Owns the io and llm pools."""

    def __init__(self, io_workers: int = 4, llm_workers: int = 2):
        self.io = WorkerPool("io", max_workers=io_workers)
        self.llm = WorkerPool("llm", max_workers=llm_workers)
        self._pools = {"io": self.io, "llm": self.llm}

    def get_pool(self, name: str) -> Optional[WorkerPool]:
        return self._pools.get(name)

    def stats(self) -> Dict[str, Any]:
        return {name: pool.stats() for name, pool in self._pools.items()}

    def shutdown(self, wait: bool = False) -> None:
        for pool in self._pools.values():
            pool.shutdown(wait=wait)
        logger.info("All worker pools shut down")


# Global instance, created on first use or by init_workers()
workers: Optional[WorkerManager] = None
_workers_lock = threading.Lock()


def init_workers(io_workers: int = 4, llm_workers: int = 2) -> WorkerManager:
    """Initialize the global worker manager."""
    global workers
    with _workers_lock:
        if workers:
            workers.shutdown()
        workers = WorkerManager(io_workers=io_workers, llm_workers=llm_workers)
    logger.info("Worker pools initialized: io=%d, llm=%d", workers.io.max_workers, workers.llm.max_workers)
    return workers


def get_workers() -> WorkerManager:
    """The global worker manager, initialized with defaults if needed."""
    with _workers_lock:
        manager = workers
    return manager if manager is not None else init_workers()


def shutdown_workers(wait: bool = False) -> None:
    """Shut down the global worker manager."""
    global workers
    with _workers_lock:
        manager, workers = workers, None
    if manager:
        manager.shutdown(wait=wait)
