"""Fire-and-forget scheduling of widget calls.

Appliers run synchronously inside the store dispatch but every widget call
is asynchronous. The runner schedules those calls on the running loop
without awaiting them and keeps them referenced until they settle.
"""

import asyncio
from pathlib import Path
from typing import Awaitable, Optional, Set
import sys

PROJECT_ROOT = Path(__file__).parent.parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from config.logging_config import get_logger

logger = get_logger("tasks")


class TaskRunner:
    """Tracks in-flight widget operations."""

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None):
        self._loop = loop
        self._tasks: Set[asyncio.Task] = set()

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def spawn(self, coro: Awaitable, label: str = "operation") -> asyncio.Task:
        """
        Schedule ``coro`` without awaiting it.

        Failures are logged when the task settles; they never propagate to
        the caller.
        """
        task = self.loop.create_task(coro, name=label)
        self._tasks.add(task)
        task.add_done_callback(self._settled)
        return task

    def _settled(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error(f"{task.get_name()} failed: {exc}", exc_info=exc)

    async def drain(self) -> None:
        """Wait until every in-flight operation (including ones they spawn) settles."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def close(self) -> None:
        """Cancel in-flight operations."""
        for task in list(self._tasks):
            task.cancel()
        self._tasks.clear()
