"""
Task dispatch for per-card image acquisition.

The reconciler only depends on `TaskDispatcher.submit`. `LocalTaskDispatcher`
runs tasks in-process with the delivery contract expected of any queue
backend: at-least-once execution, a bounded attempt budget with exponential
backoff, bounded concurrency, and no ordering between cards.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, Protocol

from cardvault.config import settings

logger = logging.getLogger(__name__)

TaskFn = Callable[[str], Awaitable[Any]]


class PermanentTaskError(Exception):
    """Base for task failures that another attempt cannot fix. Never retried."""

    pass


@dataclass(slots=True)
class TaskHandle:
    """A submitted acquisition task for one card."""

    card_id: str
    task: "asyncio.Task[bool] | None" = None

    @property
    def done(self) -> bool:
        return self.task is not None and self.task.done()

    async def wait(self) -> bool:
        """Wait for the task. Returns True if an attempt succeeded."""
        if self.task is None:
            return False
        return await self.task


class TaskDispatcher(Protocol):
    """Accepts card ids for asynchronous image acquisition."""

    def submit(self, card_id: str) -> TaskHandle: ...


class LocalTaskDispatcher:
    """
    Run acquisition tasks on the current event loop.

    Args:
        task_fn: Coroutine function called with the card id
        max_attempts: Attempts per task before giving up
        backoff: Base delay in seconds; attempt n waits backoff * 2**(n-1)
        concurrency: Maximum tasks executing at once
    """

    def __init__(
        self,
        task_fn: TaskFn,
        *,
        max_attempts: int | None = None,
        backoff: float | None = None,
        concurrency: int | None = None,
    ) -> None:
        self._task_fn = task_fn
        self._max_attempts = max_attempts or settings.task_max_attempts
        self._backoff = settings.task_retry_backoff if backoff is None else backoff
        self._semaphore = asyncio.Semaphore(concurrency or settings.worker_concurrency)
        self._tasks: list[asyncio.Task[bool]] = []

    def submit(self, card_id: str) -> TaskHandle:
        task = asyncio.create_task(self._run(card_id), name=f"acquire-images:{card_id}")
        self._tasks.append(task)
        return TaskHandle(card_id=card_id, task=task)

    async def _run(self, card_id: str) -> bool:
        for attempt in range(1, self._max_attempts + 1):
            async with self._semaphore:
                try:
                    await self._task_fn(card_id)
                    return True
                except PermanentTaskError as e:
                    logger.error("Not retrying images for card %s: %s", card_id, e)
                    return False
                except Exception as e:
                    if attempt == self._max_attempts:
                        logger.exception(
                            "Giving up on images for card %s after %d attempts",
                            card_id,
                            attempt,
                        )
                        return False
                    logger.warning(
                        "Attempt %d/%d for card %s failed: %s",
                        attempt,
                        self._max_attempts,
                        card_id,
                        e,
                    )

            await asyncio.sleep(self._backoff * 2 ** (attempt - 1))

        return False

    @property
    def pending(self) -> int:
        return sum(not task.done() for task in self._tasks)

    async def join(self) -> list[bool]:
        """
        Wait for every task submitted since the last join.

        Returns each task's outcome in submission order, including tasks
        that finished before the call.
        """
        outcomes: list[bool] = []
        while self._tasks:
            tasks, self._tasks = self._tasks, []
            outcomes.extend(await asyncio.gather(*tasks))
        return outcomes
