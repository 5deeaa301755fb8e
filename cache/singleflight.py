"""
Single-flight request deduplication.

Concurrent callers asking for the same key share one in-flight task. All of
them observe the same result or the same exception. A caller that gives up
(cancelled, timed out) does not cancel the shared task: the others still
get their answer, and the work still lands in the cache.
"""

import asyncio
from collections.abc import Awaitable, Callable
from functools import partial
from typing import Any, TypeVar

from logging_config import logger

T = TypeVar("T")


class SingleFlight:
    """Group of in-flight tasks keyed by request identity."""

    def __init__(self) -> None:
        self._inflight: dict[str, asyncio.Future[Any]] = {}

    @property
    def in_flight(self) -> int:
        return len(self._inflight)

    async def run(self, key: str, factory: Callable[[], Awaitable[T]]) -> T:
        """
        Run factory() once per key among concurrent callers.

        Args:
            key: Request identity (the cache key of the result)
            factory: Zero-arg callable producing the awaitable to share

        Returns:
            The shared result
        """
        task = self._inflight.get(key)
        if task is None:
            task = asyncio.ensure_future(factory())
            self._inflight[key] = task
            task.add_done_callback(partial(self._finished, key))
        else:
            logger.debug(f"Joining in-flight request: {key}")
        # shield: cancelling this caller must not cancel the shared task
        result: T = await asyncio.shield(task)
        return result

    def _finished(self, key: str, task: asyncio.Future[Any]) -> None:
        if self._inflight.get(key) is task:
            del self._inflight[key]
        # Mark the exception retrieved even if every caller walked away
        if not task.cancelled():
            task.exception()
