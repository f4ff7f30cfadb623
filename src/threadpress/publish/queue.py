"""Serialization and coalescing for publish operations."""

import asyncio
from collections.abc import Awaitable, Callable
from typing import TypeVar

from loguru import logger

T = TypeVar("T")


class SerialQueue:
    """Run tasks one at a time, in submission order.

    asyncio.Lock wakes waiters first-in first-out, which gives a global
    single-flight FIFO. A failing task re-raises to its own caller and does
    not block the tasks queued behind it.
    """

    def __init__(self) -> None:
        self._lock = asyncio.Lock()

    @property
    def busy(self) -> bool:
        return self._lock.locked()

    async def run(self, task: Callable[[], Awaitable[T]]) -> T:
        async with self._lock:
            return await task()


class DebouncedRebuild:
    """Collapse bursts of rebuild signals into a single callback run.

    Each schedule() restarts the delay. Once the callback has started it
    always runs to completion; only the waiting period can be superseded.
    """

    def __init__(self, callback: Callable[[], Awaitable[None]], delay: float) -> None:
        self._callback = callback
        self._delay = delay
        self._handle: asyncio.TimerHandle | None = None
        self._running: set[asyncio.Task[None]] = set()

    @property
    def pending(self) -> bool:
        return self._handle is not None

    def schedule(self) -> None:
        """Request a rebuild after the debounce delay. Needs a running loop."""
        if self._handle is not None:
            self._handle.cancel()
        loop = asyncio.get_running_loop()
        self._handle = loop.call_later(self._delay, self._fire)

    def _fire(self) -> None:
        self._handle = None
        task = asyncio.ensure_future(self._run_callback())
        self._running.add(task)
        task.add_done_callback(self._running.discard)

    async def _run_callback(self) -> None:
        try:
            await self._callback()
        except Exception:
            logger.exception("Index rebuild failed")

    async def flush(self) -> None:
        """Run a pending rebuild now and wait for running ones to finish."""
        if self._handle is not None:
            self._handle.cancel()
            self._fire()
        if self._running:
            await asyncio.gather(*self._running)
