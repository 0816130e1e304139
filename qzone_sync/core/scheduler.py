"""
A bounded-concurrency task group for asyncio.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any

log = logging.getLogger(__name__)


class BoundedScheduler:
    """
    Runs at most ``max_concurrency`` tasks at once.

    ``submit()`` waits for a free slot and then starts the task in the
    background. The slot is released when the task finishes, whether it
    succeeded, raised or was cancelled. ``drain()`` waits for every admitted
    task and hands back the exceptions they raised since the previous drain.
    """

    def __init__(self, max_concurrency: int = 8):
        if max_concurrency < 1:
            raise ValueError("max_concurrency must be at least 1")
        self.max_concurrency = max_concurrency
        self._slots = asyncio.Semaphore(max_concurrency)
        self._tasks: set[asyncio.Task] = set()
        self._failures: list[BaseException] = []

    @property
    def in_flight(self) -> int:
        """Number of admitted tasks that have not finished yet."""
        return len(self._tasks)

    async def submit(
        self, func: Callable[..., Awaitable[Any]], *args: Any, **kwargs: Any
    ) -> asyncio.Task:
        """
        Waits for a slot, then starts ``func(*args, **kwargs)`` as a task.

        The coroutine is only created once a slot is held, so a caller
        cancelled while waiting leaves nothing behind.
        """
        await self._slots.acquire()
        try:
            task = asyncio.create_task(func(*args, **kwargs))
        except BaseException:
            self._slots.release()
            raise
        self._tasks.add(task)
        task.add_done_callback(self._on_done)
        return task

    def _on_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        self._slots.release()
        if task.cancelled():
            return
        if (exc := task.exception()) is not None:
            log.debug(f"Scheduled task failed: {exc!r}")
            self._failures.append(exc)

    async def drain(self) -> list[BaseException]:
        """
        Waits until no admitted task is running and returns (and clears) the
        exceptions raised by tasks since the last drain.
        """
        while self._tasks:
            await asyncio.wait(set(self._tasks))
        failures, self._failures = self._failures, []
        return failures
