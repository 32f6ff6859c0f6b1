"""Per-key single-flight execution.

The first caller for a key starts the work as a task; callers arriving
while it is in flight await the same task and share its result or error.
Waiters await through asyncio.shield, so a cancelled waiter (client
disconnect) never cancels the shared work.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class SingleFlight:
    """Deduplicates concurrent work per key within one event loop."""

    def __init__(self) -> None:
        self._calls: dict[str, asyncio.Task[Any]] = {}

    def __len__(self) -> int:
        return len(self._calls)

    def in_flight(self, key: str) -> bool:
        return key in self._calls

    async def do(self, key: str, fn: Callable[[], Awaitable[T]]) -> tuple[T, bool]:
        """Run fn once per key at a time.

        Args:
            key: Deduplication key
            fn: Zero-argument coroutine function producing the result

        Returns:
            (result, shared): shared is True when this caller joined a flight
            started by another caller

        Raises:
            Whatever fn raises, for every waiter of that flight
        """
        task = self._calls.get(key)
        shared = task is not None
        if task is None:
            task = asyncio.ensure_future(self._run(key, fn))
            self._calls[key] = task
            task.add_done_callback(lambda t: self._finish(key, t))
        else:
            logger.debug(f"joining in-flight call for {key}")

        result = await asyncio.shield(task)
        return result, shared

    async def _run(self, key: str, fn: Callable[[], Awaitable[T]]) -> T:
        # The key is unregistered before the task is done.
        try:
            return await fn()
        finally:
            self._forget(key, asyncio.current_task())

    def _forget(self, key: str, task: asyncio.Task[Any] | None) -> None:
        if task is not None and self._calls.get(key) is task:
            del self._calls[key]

    def _finish(self, key: str, task: asyncio.Task[Any]) -> None:
        # Tasks cancelled before their first step never reach _run.
        self._forget(key, task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.debug(f"in-flight call for {key} failed: {exc!r}")
