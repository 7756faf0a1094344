"""Background task runner for work that continues after the webhook ack.

The webhook acknowledges Meta before any downstream work starts; the work
itself is handed to ``TasksClient.spawn``, which:
- keeps a strong reference to every running task,
- is idempotent by task_id while a task with that id is in flight,
- applies a per-task timeout,
- logs and contains failures so one task never affects another.

There is no concurrency limit: every accepted message gets its own task.
"""

import asyncio
import os
from typing import Any, Awaitable, Callable

from goodchoice.observability.logging import get_logger
from goodchoice.observability.redaction import safe_log_context

logger = get_logger(__name__)

DEFAULT_TASK_TIMEOUT = float(os.environ.get("TASK_TIMEOUT_SECONDS", "180"))

TaskFactory = Callable[[], Awaitable[Any]]


class TasksClient:
    """Spawns and tracks fire-and-forget coroutines."""

    def __init__(self, default_timeout: float | None = DEFAULT_TASK_TIMEOUT) -> None:
        self.default_timeout = default_timeout
        self._running: dict[str, asyncio.Task[None]] = {}
        self._completed = 0
        self._failed = 0

    def spawn(
        self,
        task_id: str,
        factory: TaskFactory,
        *,
        timeout: float | None = None,
    ) -> bool:
        """Schedule ``factory()`` on the running loop.

        Must be called from within the event loop (e.g. a FastAPI handler).

        Args:
            task_id: Identifier for idempotency and logging.
            factory: Zero-argument callable returning the coroutine to run.
                Called lazily inside the task, so spawning never blocks.
            timeout: Seconds before the task is cancelled; defaults to
                ``default_timeout``. None disables the timeout.

        Returns:
            True if a task was spawned, False if one with the same id is running.
        """
        if self.is_running(task_id):
            return False

        effective_timeout = timeout if timeout is not None else self.default_timeout
        task = asyncio.get_running_loop().create_task(
            self._run(task_id, factory, effective_timeout),
            name=task_id,
        )
        self._running[task_id] = task
        task.add_done_callback(lambda _t: self._running.pop(task_id, None))
        return True

    async def _run(self, task_id: str, factory: TaskFactory, timeout: float | None) -> None:
        try:
            if timeout is None:
                await factory()
            else:
                await asyncio.wait_for(factory(), timeout=timeout)
        except asyncio.TimeoutError:
            self._failed += 1
            logger.error(
                "background task timed out",
                extra={"extra_fields": safe_log_context(task_id=task_id, timeout=timeout)},
            )
        except asyncio.CancelledError:
            self._failed += 1
            logger.warning(
                "background task cancelled",
                extra={"extra_fields": safe_log_context(task_id=task_id)},
            )
            raise
        except Exception:
            self._failed += 1
            logger.exception(
                "background task failed",
                extra={"extra_fields": safe_log_context(task_id=task_id)},
            )
        else:
            self._completed += 1

    def is_running(self, task_id: str) -> bool:
        return task_id in self._running

    @property
    def pending(self) -> int:
        return len(self._running)

    def stats(self) -> dict[str, int]:
        return {
            "running": len(self._running),
            "completed": self._completed,
            "failed": self._failed,
        }

    async def join(self, timeout: float | None = None) -> None:
        """Wait until every task spawned so far (and any they spawn) has finished."""
        while self._running:
            await asyncio.wait(list(self._running.values()), timeout=timeout)
            if timeout is not None:
                break

    async def shutdown(self, grace_period: float = 10.0) -> None:
        """Give running tasks a grace period, then cancel the rest."""
        if self._running:
            _done, still_running = await asyncio.wait(
                list(self._running.values()), timeout=grace_period
            )
            for task in still_running:
                task.cancel()
            if still_running:
                logger.warning(
                    "cancelled background tasks on shutdown",
                    extra={"extra_fields": safe_log_context(count=len(still_running))},
                )
                await asyncio.gather(*still_running, return_exceptions=True)
        logger.info("task runner stopped", extra={"extra_fields": safe_log_context(**self.stats())})
