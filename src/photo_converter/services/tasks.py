"""Tracking for conversion work that runs after the webhook has answered."""

import asyncio
import logging
from collections.abc import Coroutine
from dataclasses import dataclass, field
from typing import Any

logger = logging.getLogger(__name__)


@dataclass
class TaskTracker:
    """Keeps references to background tasks so they can be drained on shutdown."""

    _tasks: set[asyncio.Task[Any]] = field(default_factory=set, repr=False)

    def spawn(
        self, coro: Coroutine[Any, Any, Any], name: str | None = None
    ) -> asyncio.Task[Any]:
        """Schedule a coroutine on the running loop and track it until done."""
        task = asyncio.create_task(coro, name=name)
        self._tasks.add(task)
        task.add_done_callback(self._on_done)
        return task

    @property
    def pending(self) -> int:
        return len(self._tasks)

    async def drain(self, timeout: float | None = None) -> None:
        """Wait for tracked tasks; cancel whatever is still running after timeout."""
        while self._tasks:
            tasks = set(self._tasks)
            done, still_running = await asyncio.wait(tasks, timeout=timeout)
            if still_running:
                logger.warning(
                    "Cancelling background tasks after shutdown timeout",
                    extra={"count": len(still_running)},
                )
                for task in still_running:
                    task.cancel()
                await asyncio.gather(*still_running, return_exceptions=True)
                return
            if not done:
                return

    def _on_done(self, task: asyncio.Task[Any]) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error(
                "Background task crashed",
                exc_info=exc,
                extra={"task": task.get_name()},
            )
