import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict

import httpx
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker

from relay.adapters import build_adapter
from relay.config import settings
from relay.exceptions import InvalidDestinationConfig
from relay.schemas.dispatch import RetryJob
from relay.services.dispatcher import Dispatcher
from relay.services.retry import CeleryRetryScheduler
from relay.services.stores import SqlConfigurationStore, SqlLogStore

from celery_app import celery_app

logger = logging.getLogger(__name__)


def run_async(coro):
    """Drive a coroutine to completion on this worker's event loop."""
    try:
        loop = asyncio.get_event_loop()
        if loop.is_closed():
            raise RuntimeError("Event loop is closed")
    except RuntimeError:
        loop = asyncio.new_event_loop()
        asyncio.set_event_loop(loop)
    return loop.run_until_complete(coro)


@asynccontextmanager
async def delivery_context() -> AsyncIterator[Dispatcher]:
    """Dispatcher wired to the database, a shared HTTP pool and Celery retries."""
    # Set per worker process by celery_app; absent outside a worker
    async_session = getattr(celery_app, 'async_session', None)
    engine_to_dispose = None
    if async_session is None:
        engine = create_async_engine(settings.database_url, echo=False, pool_pre_ping=True)
        async_session = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
        engine_to_dispose = engine

    try:
        async with httpx.AsyncClient(timeout=settings.http_timeout_seconds) as http:
            yield Dispatcher(
                config_store=SqlConfigurationStore(async_session),
                log_store=SqlLogStore(async_session),
                adapter_factory=lambda destination, credentials: build_adapter(destination, credentials, http),
                retry_scheduler=CeleryRetryScheduler(),
            )
    finally:
        if engine_to_dispose:
            await engine_to_dispose.dispose()


@celery_app.task(name="relay.tasks.delivery_task.dispatch_payload_task")
def dispatch_payload_task(webhook_id: str, flattened: Dict[str, Any], payload: Any):
    """Deliver one inbound payload to every enabled destination of a webhook."""

    async def run_dispatch():
        async with delivery_context() as dispatcher:
            return await dispatcher.dispatch(webhook_id, flattened, payload)

    results = run_async(run_dispatch())
    logger.info(
        "Dispatch for webhook %s finished: %d destination(s), %d succeeded",
        webhook_id,
        len(results),
        sum(1 for r in results if r.get("success")),
    )
    return results


@celery_app.task(name="relay.tasks.delivery_task.retry_delivery_task")
def retry_delivery_task(log_id: str, destination_id: str, record: Dict[str, Any]):
    """Second and final attempt for a failed delivery; patches the first attempt's log row."""

    async def run_retry():
        async with delivery_context() as dispatcher:
            try:
                destination = await dispatcher.config_store.get_destination(destination_id)
            except InvalidDestinationConfig as e:
                logger.warning("Not retrying log %s: %s", log_id, e.reason)
                await dispatcher.log_store.record_retry(log_id, success=False, error_message=e.reason)
                return False
            if destination is None:
                logger.warning("Destination %s vanished before retry of log %s", destination_id, log_id)
                await dispatcher.log_store.record_retry(
                    log_id, success=False, error_message="Destination no longer exists"
                )
                return False
            job = RetryJob(log_id=log_id, destination=destination, record=record)
            return await dispatcher.retry(job)

    return run_async(run_retry())


def trigger_dispatch(webhook_id: str, flattened: Dict[str, Any], payload: Any) -> None:
    """Queue a dispatch without waiting for it."""
    result = dispatch_payload_task.delay(webhook_id, flattened, payload)
    logger.info("Queued dispatch %s for webhook %s", result.id, webhook_id)


__all__ = ['dispatch_payload_task', 'retry_delivery_task', 'trigger_dispatch']
