import asyncio
import logging
from typing import Any, Callable, Dict, List, Optional

from relay.adapters.base import DestinationAdapter
from relay.config import settings
from relay.exceptions import ConfigurationError, DeliveryError, TransportError
from relay.schemas.dispatch import Credentials, DestinationSnapshot, RetryJob
from relay.services.mapping_resolver import resolve_mappings
from relay.services.retry import RetryScheduler
from relay.services.stores import (
    STATUS_FAILED,
    STATUS_SUCCESS,
    ConfigurationStore,
    LogStore,
)

logger = logging.getLogger(__name__)

AdapterFactory = Callable[[DestinationSnapshot, Credentials], DestinationAdapter]


class Dispatcher:
    """
    Fans one inbound event out to every enabled destination of a webhook.

    Per destination: resolve mappings, write once, log the outcome, and
    if the write failed for a transport reason schedule exactly one retry.
    Retries update the same log row in place. No destination's failure
    reaches its siblings or the caller.
    """

    def __init__(
        self,
        config_store: ConfigurationStore,
        log_store: LogStore,
        adapter_factory: AdapterFactory,
        retry_scheduler: RetryScheduler,
        retry_delay: Optional[float] = None,
    ):
        self.config_store = config_store
        self.log_store = log_store
        self.adapter_factory = adapter_factory
        self.retry_scheduler = retry_scheduler
        self.retry_delay = settings.retry_delay_seconds if retry_delay is None else retry_delay

    async def dispatch(
        self,
        webhook_id: str,
        flattened: Dict[str, Any],
        payload: Any,
    ) -> List[dict]:
        """
        Deliver one event to all enabled destinations concurrently.
        Returns one result dict per destination.
        """
        destinations = await self.config_store.get_enabled_destinations(webhook_id)
        logger.info("Found %d enabled destination(s) for webhook %s", len(destinations), webhook_id)

        if not destinations:
            return []

        results = await asyncio.gather(
            *[self._deliver(webhook_id, d, flattened, payload) for d in destinations],
            return_exceptions=True,
        )

        formatted_results = []
        for destination, result in zip(destinations, results):
            if isinstance(result, BaseException):
                logger.error(
                    "Unhandled error delivering webhook %s to destination %s: %s",
                    webhook_id,
                    destination.id,
                    result,
                    exc_info=result,
                )
                formatted_results.append({
                    "destination_id": destination.id,
                    "log_id": None,
                    "success": False,
                    "error": str(result),
                    "retry_scheduled": False,
                })
            else:
                formatted_results.append(result)

        return formatted_results

    async def _deliver(
        self,
        webhook_id: str,
        destination: DestinationSnapshot,
        flattened: Dict[str, Any],
        payload: Any,
    ) -> dict:
        try:
            mappings = await self.config_store.get_field_mappings(destination.id)
        except Exception as e:
            logger.exception("Could not load field mappings for destination %s", destination.id)
            # Nothing was resolved, so there is no record to retry with
            return await self._fail_unattempted(
                webhook_id, destination, payload, f"Could not load field mappings: {e}"
            )
        logger.info("Found %d mapping(s) for destination %s", len(mappings), destination.id)

        try:
            record = resolve_mappings(flattened, mappings, destination.id)
        except ConfigurationError as e:
            logger.warning("Not delivering to destination %s: %s", destination.id, e.reason)
            return await self._fail_unattempted(webhook_id, destination, payload, e.reason)

        error = await self._attempt(destination, record)

        log_id = await self.log_store.create_log(
            webhook_id,
            destination.id,
            payload,
            STATUS_SUCCESS if error is None else STATUS_FAILED,
            None if error is None else error.reason,
        )

        retry_scheduled = False
        if error is None:
            logger.info("Delivered webhook %s to destination %s", webhook_id, destination.id)
        else:
            logger.warning(
                "Delivery to destination %s (%s) failed: %s",
                destination.id,
                destination.type,
                error.reason,
            )
            if error.retryable:
                job = RetryJob(
                    log_id=log_id,
                    destination=destination,
                    record=record,
                )
                self.retry_scheduler.schedule(job, self.retry_delay)
                retry_scheduled = True
                logger.info("Retry scheduled for destination %s in %ss", destination.id, self.retry_delay)

        return {
            "destination_id": destination.id,
            "log_id": log_id,
            "success": error is None,
            "error": None if error is None else error.reason,
            "retry_scheduled": retry_scheduled,
        }

    async def _fail_unattempted(
        self,
        webhook_id: str,
        destination: DestinationSnapshot,
        payload: Any,
        reason: str,
    ) -> dict:
        """Log a failure that happened before any write; never retried."""
        log_id = await self.log_store.create_log(
            webhook_id, destination.id, payload, STATUS_FAILED, reason
        )
        return {
            "destination_id": destination.id,
            "log_id": log_id,
            "success": False,
            "error": reason,
            "retry_scheduled": False,
        }

    async def _attempt(self, destination: DestinationSnapshot, record: Dict[str, Any]) -> Optional[DeliveryError]:
        """One write through a freshly built adapter. Returns the error, if any."""
        try:
            credentials = await self.config_store.get_credentials(destination)
            adapter = self.adapter_factory(destination, credentials)
            await adapter.write(destination, record)
        except DeliveryError as e:
            return e
        except Exception as e:
            logger.exception("Unexpected error writing to destination %s", destination.id)
            return TransportError(str(e) or e.__class__.__name__)
        return None

    async def retry(self, job: RetryJob) -> bool:
        """Run the single retry for a failed first attempt and patch its log row."""
        logger.info("Retrying delivery for log %s (destination %s)", job.log_id, job.destination.id)
        error = await self._attempt(job.destination, job.record)

        if error is None:
            await self.log_store.record_retry(job.log_id, success=True)
            logger.info("Retry succeeded for log %s", job.log_id)
            return True

        await self.log_store.record_retry(job.log_id, success=False, error_message=error.reason)
        logger.warning("Retry failed for log %s: %s", job.log_id, error.reason)
        return False
