"""In-process retry queue for failed webhook deliveries.

A failed first attempt is parked here and re-attempted on a timer with
exponential backoff until it succeeds or the attempt budget is spent.

Per-task lifecycle::

    add()            attempts=1, next = now + 2**1 * base
    due, failed      attempts=n (< max) -> next = now + 2**n * base
    due, delivered   dropped
    due, failed      attempts == max -> dropped, on_failed(task)

Tasks live only in memory; a restart drops everything pending.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import datetime, timedelta

from fairlx.models import WebhookEventType, utc_now

logger = logging.getLogger(__name__)

DEFAULT_MAX_RETRIES = 3
DEFAULT_BASE_DELAY_SECONDS = 5.0
DEFAULT_POLL_INTERVAL_SECONDS = 10.0


@dataclass
class RetryTask:
    """A delivery waiting to be re-attempted.

    Attributes:
        webhook_id: Target webhook; re-fetched at retry time.
        event_type: Event being delivered.
        payload: Exact serialized body of the original attempt.
        attempts: Attempts made so far, including the original one.
        last_attempt_at: When the latest attempt started.
        next_attempt_at: Earliest time the next attempt may run.
    """

    webhook_id: str
    event_type: WebhookEventType
    payload: str
    attempts: int = 1
    last_attempt_at: datetime = field(default_factory=utc_now)
    next_attempt_at: datetime = field(default_factory=utc_now)


RetryCallback = Callable[[RetryTask], Awaitable[bool]]
FailedCallback = Callable[[RetryTask], Awaitable[None]]


class RetryQueue:
    """Timer-driven exponential backoff for webhook deliveries.

    The retry callback receives the task with ``attempts`` already set to
    the number of the attempt being made and returns True when the task
    is resolved. Raising counts as a failed attempt.

    Example:
        ```python
        queue = RetryQueue(dispatcher.retry_delivery, dispatcher.mark_permanently_failed)
        queue.start()
        queue.add("whk_123", WebhookEventType.TASK_CREATED, body)
        ...
        await queue.stop()
        ```
    """

    def __init__(
        self,
        retry_callback: RetryCallback,
        on_failed: FailedCallback,
        max_retries: int = DEFAULT_MAX_RETRIES,
        base_delay_seconds: float = DEFAULT_BASE_DELAY_SECONDS,
        poll_interval_seconds: float = DEFAULT_POLL_INTERVAL_SECONDS,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        """Initialize the retry queue.

        Args:
            retry_callback: Re-attempts a delivery; returns True when resolved.
            on_failed: Called once when a task exhausts its attempts.
            max_retries: Total attempt budget, including the original attempt.
            base_delay_seconds: Backoff base; delay = 2**attempts * base.
            poll_interval_seconds: Timer period for checking due tasks.
            clock: Source of the current time.
        """
        self._retry_callback = retry_callback
        self._on_failed = on_failed
        self._max_retries = max_retries
        self._base_delay = base_delay_seconds
        self._poll_interval = poll_interval_seconds
        self._clock = clock
        self._tasks: list[RetryTask] = []
        self._runner: asyncio.Task[None] | None = None

    def __len__(self) -> int:
        return len(self._tasks)

    @property
    def pending(self) -> list[RetryTask]:
        """Snapshot of tasks waiting for their next attempt."""
        return list(self._tasks)

    @property
    def max_retries(self) -> int:
        return self._max_retries

    @property
    def is_running(self) -> bool:
        return self._runner is not None and not self._runner.done()

    def backoff(self, attempts: int) -> timedelta:
        """Delay before the attempt following attempt number ``attempts``."""
        return timedelta(seconds=(2**attempts) * self._base_delay)

    def add(
        self,
        webhook_id: str,
        event_type: WebhookEventType,
        payload: str,
    ) -> RetryTask | None:
        """Park a delivery whose first attempt failed.

        Returns:
            The queued task, or None when the budget allows no retries.
        """
        if self._max_retries <= 1:
            return None

        now = self._clock()
        task = RetryTask(
            webhook_id=webhook_id,
            event_type=event_type,
            payload=payload,
            attempts=1,
            last_attempt_at=now,
            next_attempt_at=now + self.backoff(1),
        )
        self._tasks.append(task)

        logger.info(
            "Webhook %s queued for retry (%s) at %s",
            webhook_id,
            event_type.value,
            task.next_attempt_at.isoformat(),
        )
        return task

    async def process_due(self, now: datetime | None = None) -> int:
        """Run every task whose next attempt is due.

        Args:
            now: Reference time; defaults to the queue clock.

        Returns:
            Number of tasks attempted.
        """
        now = now or self._clock()

        due = [t for t in self._tasks if t.next_attempt_at <= now]
        if not due:
            return 0
        self._tasks = [t for t in self._tasks if t.next_attempt_at > now]

        results = await asyncio.gather(*(self._attempt(task, now) for task in due))

        for task, resolved in zip(due, results, strict=True):
            if resolved:
                logger.info(
                    "Webhook %s retry resolved on attempt %d", task.webhook_id, task.attempts
                )
                continue

            if task.attempts >= self._max_retries:
                await self._report_failed(task)
                continue

            task.next_attempt_at = now + self.backoff(task.attempts)
            self._tasks.append(task)
            logger.info(
                "Webhook %s attempt %d failed, next attempt at %s",
                task.webhook_id,
                task.attempts,
                task.next_attempt_at.isoformat(),
            )

        return len(due)

    async def _attempt(self, task: RetryTask, now: datetime) -> bool:
        task.attempts += 1
        task.last_attempt_at = now
        try:
            return await self._retry_callback(task)
        except Exception:
            logger.exception("Retry callback raised for webhook %s", task.webhook_id)
            return False

    async def _report_failed(self, task: RetryTask) -> None:
        try:
            await self._on_failed(task)
        except Exception:
            logger.exception("Permanent-failure callback raised for webhook %s", task.webhook_id)

    def start(self) -> None:
        """Start the background polling task (idempotent)."""
        if self.is_running:
            return
        self._runner = asyncio.create_task(self._run(), name="webhook-retry-queue")
        logger.info("Webhook retry queue started (poll every %.1fs)", self._poll_interval)

    async def stop(self) -> None:
        """Stop the polling task. Pending tasks stay in memory."""
        if self._runner is None:
            return
        self._runner.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._runner
        self._runner = None
        logger.info("Webhook retry queue stopped with %d pending", len(self._tasks))

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self._poll_interval)
            try:
                await self.process_due()
            except Exception:
                logger.exception("Webhook retry tick failed")
