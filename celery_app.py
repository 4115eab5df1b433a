"""
Celery application for background delivery.

Workers consume the ``delivery`` queue. Each worker process gets its own
async engine after fork; asyncpg connections must not be shared across
processes.
"""
import logging

from celery import Celery
from celery.signals import worker_process_init, worker_process_shutdown
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession

from relay.config import settings

logger = logging.getLogger(__name__)

DELIVERY_QUEUE = "delivery"

celery_app = Celery(
    "webhook_relay",
    broker=settings.celery_broker_url,
    backend=settings.celery_result_backend,
    include=["relay.tasks.delivery_task"],
)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    task_time_limit=300,
    task_ignore_result=True,
    task_default_queue=DELIVERY_QUEUE,
    # A retry's countdown must survive a worker restart
    task_acks_late=True,
    worker_prefetch_multiplier=1,
)

celery_app.async_engine = None
celery_app.async_session = None


@worker_process_init.connect
def init_worker_database(**kwargs):
    celery_app.async_engine = create_async_engine(
        settings.database_url,
        echo=False,
        pool_pre_ping=True,
    )
    celery_app.async_session = async_sessionmaker(
        celery_app.async_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )
    logger.info("Worker process database engine ready")


@worker_process_shutdown.connect
def close_worker_database(**kwargs):
    engine = celery_app.async_engine
    if engine is not None:
        # Pooled connections are dropped without awaiting their close
        engine.sync_engine.dispose(close=False)
        celery_app.async_engine = None
        celery_app.async_session = None
