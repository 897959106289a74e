"""Registry of in-flight generation requests keyed by their logical scope."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, Generic, Hashable, List, Optional, TypeVar

from wayfarer.errors import DuplicateRequestError

T = TypeVar("T")

_LOGGER = logging.getLogger(__name__)


class InflightRequests(Generic[T]):
    """At most one running task per key; completed tasks unregister themselves."""

    def __init__(self, name: str) -> None:
        self.name = name
        self._tasks: Dict[Hashable, "asyncio.Task[T]"] = {}

    def _running(self, key: Hashable) -> Optional["asyncio.Task[T]"]:
        # A finished task stays registered until its done callback runs on the next turn.
        task = self._tasks.get(key)
        if task is None or task.done():
            return None
        return task

    def __contains__(self, key: Hashable) -> bool:
        return self._running(key) is not None

    def __len__(self) -> int:
        return sum(1 for task in self._tasks.values() if not task.done())

    def get(self, key: Hashable) -> Optional["asyncio.Task[T]"]:
        return self._running(key)

    def start(self, key: Hashable, factory: Callable[[], Awaitable[T]]) -> "asyncio.Task[T]":
        """Start a request for ``key``; a second start while one is running is a bug."""

        if self._running(key) is not None:
            raise DuplicateRequestError(f"{self.name} request for {key!r} is already in flight")
        task = asyncio.ensure_future(factory())
        self._tasks[key] = task

        def _unregister(done: "asyncio.Task[T]") -> None:
            if self._tasks.get(key) is done:
                del self._tasks[key]

        task.add_done_callback(_unregister)
        return task

    def share(self, key: Hashable, factory: Callable[[], Awaitable[T]]) -> "asyncio.Task[T]":
        """Return the running task for ``key`` or start one."""

        existing = self._running(key)
        if existing is not None:
            _LOGGER.debug("Joining in-flight %s request for %r", self.name, key)
            return existing
        return self.start(key, factory)

    async def drain(self) -> None:
        """Wait for every outstanding request, ignoring their outcomes."""

        while self._tasks:
            await asyncio.gather(*list(self._tasks.values()), return_exceptions=True)

    def cancel_all(self) -> None:
        for task in list(self._tasks.values()):
            task.cancel()
        self._tasks.clear()


class BackgroundTasks:
    """Keeps strong references to fire-and-forget tasks until they finish."""

    def __init__(self) -> None:
        self._tasks: "set[asyncio.Task[Any]]" = set()

    def spawn(self, coro: Awaitable[Any]) -> "asyncio.Task[Any]":
        task = asyncio.ensure_future(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    def pending(self) -> List["asyncio.Task[Any]"]:
        return [task for task in self._tasks if not task.done()]

    async def drain(self) -> None:
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def cancel_all(self) -> None:
        for task in list(self._tasks):
            task.cancel()


__all__ = ["BackgroundTasks", "InflightRequests"]
