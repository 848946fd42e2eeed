"""Linear saga: forward steps push compensations that unwind newest-first on failure."""

from __future__ import annotations

import asyncio
import logging
import random
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

from s3_api.metrics import COMPENSATION_FAILURES_TOTAL, ROLLBACKS_TOTAL

logger = logging.getLogger(__name__)

T = TypeVar("T")

Compensation = Callable[[], Awaitable[Any]]

DEFAULT_ROLLBACK_TIMEOUT_SECONDS = 120.0
RETRY_SLEEP_SECONDS = 2.0


class StopRetry(Exception):
    """Raised by a retried operation to give up immediately with ``error``."""

    def __init__(self, error: BaseException) -> None:
        super().__init__(str(error))
        self.error = error


class Saga:
    """Per-request rollback stack.

    Used as ``async with Saga("bucket-create") as saga``. Each forward step
    that succeeds calls :meth:`push` with its compensation. Any exception
    leaving the block, request cancellation included, runs the stack in
    reverse and then propagates unchanged.
    """

    def __init__(
        self,
        workflow: str,
        timeout_seconds: float = DEFAULT_ROLLBACK_TIMEOUT_SECONDS,
    ) -> None:
        self.workflow = workflow
        self.timeout_seconds = timeout_seconds
        self._steps: list[tuple[str, Compensation]] = []

    def __len__(self) -> int:
        return len(self._steps)

    def push(self, description: str, action: Compensation) -> None:
        self._steps.append((description, action))

    async def __aenter__(self) -> Saga:
        return self

    async def __aexit__(self, exc_type, exc, tb) -> bool:
        if exc_type is None:
            self._steps.clear()
            return False
        logger.error(
            "recovering from error in %s: %s, executing %d rollback tasks",
            self.workflow,
            exc if exc is not None else exc_type.__name__,
            len(self._steps),
        )
        await self.rollback()
        return False

    async def rollback(self) -> None:
        """Run every pushed compensation, newest first.

        The unwind runs in its own task so a second cancellation of the
        request cannot interrupt it, and it is abandoned after
        ``timeout_seconds``.
        """
        if not self._steps:
            return
        ROLLBACKS_TOTAL.labels(workflow=self.workflow).inc()
        task = asyncio.create_task(self._unwind())
        try:
            await asyncio.wait_for(asyncio.shield(task), timeout=self.timeout_seconds)
        except asyncio.TimeoutError:
            task.cancel()
            logger.error(
                "timeout waiting for rollback of %s after %ss", self.workflow, self.timeout_seconds
            )
        except asyncio.CancelledError:
            logger.warning(
                "request cancelled during rollback of %s, continuing in background", self.workflow
            )
            raise
        else:
            logger.info("successfully rolled back %s", self.workflow)

    async def _unwind(self) -> None:
        total = len(self._steps)
        executed = 0
        while self._steps:
            description, action = self._steps.pop()
            executed += 1
            try:
                await action()
            except Exception as exc:
                COMPENSATION_FAILURES_TOTAL.labels(workflow=self.workflow).inc()
                logger.error(
                    "rollback task %d of %d (%s) failed: %s, continuing rollback",
                    executed,
                    total,
                    description,
                    exc,
                )
            else:
                logger.info("executed rollback task %d of %d: %s", executed, total, description)


async def retry(
    operation: Callable[[], Awaitable[T]],
    *,
    attempts: int = 3,
    sleep: float | None = None,
    description: str = "operation",
) -> T:
    """Await ``operation`` up to ``attempts`` times with jittered, doubling back-off."""
    delay = RETRY_SLEEP_SECONDS if sleep is None else sleep
    for attempt in range(1, attempts + 1):
        try:
            return await operation()
        except StopRetry as stop:
            raise stop.error from None
        except Exception as exc:
            if attempt >= attempts:
                raise
            delay += random.uniform(0, delay) / 2
            logger.warning(
                "%s failed (attempt %d of %d): %s, retrying in %.2fs",
                description,
                attempt,
                attempts,
                exc,
                delay,
            )
            await asyncio.sleep(delay)
            delay *= 2
    raise RuntimeError("retry called with no attempts")
