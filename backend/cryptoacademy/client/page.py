from __future__ import annotations

import asyncio
import logging
from typing import Any, Coroutine

logger = logging.getLogger(__name__)


class PageScope:
    """Owns the background tasks started by one page visit.

    Closing the scope cancels whatever is still pending, so an update started on a
    page the learner has left never resolves into that page's state.
    """

    def __init__(self, name: str = "page"):
        self.name = name
        self.closed = False
        self._tasks: set[asyncio.Task] = set()

    async def __aenter__(self) -> "PageScope":
        return self

    async def __aexit__(self, *exc) -> None:
        await self.close()

    @property
    def pending(self) -> int:
        return sum(1 for t in self._tasks if not t.done())

    def spawn(self, coro: Coroutine[Any, Any, Any]) -> asyncio.Task:
        if self.closed:
            coro.close()
            raise RuntimeError(f"{self.name} is closed")
        task = asyncio.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._on_done)
        return task

    def _on_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.warning("%s task failed: %s", self.name, exc)

    async def close(self) -> None:
        self.closed = True
        tasks = list(self._tasks)
        for t in tasks:
            t.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._tasks.clear()
