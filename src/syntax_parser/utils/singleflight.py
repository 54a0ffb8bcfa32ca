"""
Run-once-per-key coordination for asyncio callers.

A Singleflight maps a key to the task currently computing it. The first
caller for a key starts the task; callers arriving while it runs attach to
the same task and receive its single result or exception. The key is
released as soon as the task finishes, so a failed operation can be retried
by the next caller. Caching successful results is left to the operation
itself.

Usage:
    flight = Singleflight("grammars")
    language = await flight.do("python", lambda: fetch_grammar("python"))
"""

import asyncio
import functools
import logging
from typing import Any, Awaitable, Callable, Dict, Hashable, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Singleflight:
    """Collapses concurrent operations for the same key into one task."""

    def __init__(self, name: str = "singleflight"):
        self.name = name
        self._inflight: Dict[Hashable, "asyncio.Task[Any]"] = {}
        self.stats = {
            "started": 0,
            "joined": 0,
        }

    def in_flight(self, key: Hashable) -> bool:
        """Check whether an operation for the key is currently running."""
        return key in self._inflight

    async def do(self, key: Hashable, func: Callable[[], Awaitable[T]]) -> T:
        """
        Run func for key unless an operation for key is already running.

        The shared task is shielded: cancelling one waiting caller does not
        cancel the operation, which still completes for everyone else.

        Args:
            key: Identity of the operation
            func: Zero-argument coroutine function performing the operation

        Returns:
            The operation's result
        """
        task = self._inflight.get(key)
        # A finished task may still be mapped until its done-callback runs
        if task is None or task.done():
            task = asyncio.ensure_future(func())
            self._inflight[key] = task
            task.add_done_callback(functools.partial(self._forget, key))
            self.stats["started"] += 1
            logger.debug(f"[{self.name}] started operation for {key!r}")
        else:
            self.stats["joined"] += 1
            logger.debug(f"[{self.name}] joined in-flight operation for {key!r}")

        return await asyncio.shield(task)

    def _forget(self, key: Hashable, task: "asyncio.Task[Any]") -> None:
        if self._inflight.get(key) is task:
            del self._inflight[key]
        # Mark the exception as retrieved when every caller walked away
        if not task.cancelled():
            task.exception()
