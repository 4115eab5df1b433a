import logging
from typing import Awaitable, Callable, List, Protocol, Tuple

from relay.schemas.dispatch import RetryJob

logger = logging.getLogger(__name__)

RetryHandler = Callable[[RetryJob], Awaitable[object]]


class RetryScheduler(Protocol):
    def schedule(self, job: RetryJob, delay: float) -> None:
        ...


class CeleryRetryScheduler:
    """Hands the retry to a Celery worker with a countdown."""

    def schedule(self, job: RetryJob, delay: float) -> None:
        # Imported here; the tasks module imports the dispatcher
        from relay.tasks.delivery_task import retry_delivery_task

        result = retry_delivery_task.apply_async(
            args=[job.log_id, job.destination.id, job.record],
            countdown=delay,
        )
        logger.info(
            "Scheduled retry %s for log %s (destination %s) in %ss",
            result.id,
            job.log_id,
            job.destination.id,
            delay,
        )


class InlineRetryScheduler:
    """
    Keeps scheduled retries in memory until ``run_pending`` is awaited.

    The requested delay is recorded but not slept on, which lets callers
    drive retries deterministically.
    """

    def __init__(self):
        self.pending: List[Tuple[RetryJob, float]] = []
        self.completed: List[RetryJob] = []

    def schedule(self, job: RetryJob, delay: float) -> None:
        self.pending.append((job, delay))

    async def run_pending(self, handler: RetryHandler) -> int:
        """Run every queued retry through ``handler``; returns how many ran."""
        ran = 0
        while self.pending:
            job, _delay = self.pending.pop(0)
            await handler(job)
            self.completed.append(job)
            ran += 1
        return ran
