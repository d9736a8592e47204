"""Detached background work: fire-and-forget tasks with their own error sink.

Work submitted here is not tied to the request that scheduled it. A webhook
that returns, or a request task that is cancelled, leaves submitted tasks
running. Failures are logged and dropped; nothing is retried.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Coroutine, Optional, Set

logger = logging.getLogger(__name__)


class BackgroundWorker:
    """Holds strong references to detached tasks until they finish."""

    def __init__(self, name: str = "background") -> None:
        self._name = name
        self._tasks: Set[asyncio.Task] = set()
        self._closed = False
        self.failed_count = 0

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def submit(
        self,
        coro: Coroutine[Any, Any, Any],
        *,
        name: Optional[str] = None,
    ) -> Optional[asyncio.Task]:
        """Schedule *coro* on the running loop and return immediately.

        Returns None (and closes the coroutine) after shutdown has started.
        """
        if self._closed:
            logger.warning("BackgroundWorker[%s]: closed, dropping task %s", self._name, name)
            coro.close()
            return None
        task = asyncio.get_running_loop().create_task(coro, name=name)
        self._tasks.add(task)
        task.add_done_callback(self._on_done)
        return task

    def _on_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            logger.debug("BackgroundWorker[%s]: task %s cancelled", self._name, task.get_name())
            return
        exc = task.exception()
        if exc is not None:
            self.failed_count += 1
            logger.error(
                "BackgroundWorker[%s]: task %s failed: %s",
                self._name,
                task.get_name(),
                exc,
                exc_info=(type(exc), exc, exc.__traceback__),
                extra={"task": task.get_name()},
            )

    async def drain(self, timeout: float = 10.0) -> None:
        """Stop accepting work and wait for in-flight tasks; cancel leftovers."""
        self._closed = True
        if not self._tasks:
            return
        pending = set(self._tasks)
        logger.info("BackgroundWorker[%s]: draining %d task(s)", self._name, len(pending))
        _, still_running = await asyncio.wait(pending, timeout=timeout)
        for task in still_running:
            task.cancel()
        if still_running:
            logger.warning(
                "BackgroundWorker[%s]: cancelled %d task(s) after %.1fs",
                self._name, len(still_running), timeout,
            )
            await asyncio.gather(*still_running, return_exceptions=True)
