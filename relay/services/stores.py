"""
Read/write seams between the delivery pipeline and persistence.

The dispatcher only sees the two protocols below. The SQL implementations
open a fresh session per call, so concurrent deliveries never share one.
"""
import logging
from datetime import datetime, timezone
from typing import Any, List, Optional, Protocol

from pydantic import ValidationError
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import async_sessionmaker

from relay.exceptions import CredentialsUnavailable, InvalidDestinationConfig
from relay.models.delivery_log import DeliveryLog
from relay.models.destination import Destination
from relay.models.field_mapping import FieldMapping
from relay.models.provider_credential import ProviderCredential
from relay.models.webhook import Webhook
from relay.schemas.dispatch import Credentials, DestinationSnapshot, MappingSnapshot

logger = logging.getLogger(__name__)

STATUS_SUCCESS = "success"
STATUS_FAILED = "failed"

GOOGLE_PROVIDER = "google"


class ConfigurationStore(Protocol):
    async def get_enabled_destinations(self, webhook_id: str) -> List[DestinationSnapshot]:
        ...

    async def get_destination(self, destination_id: str) -> Optional[DestinationSnapshot]:
        """None when the destination is gone; raises InvalidDestinationConfig when its config no longer validates."""
        ...

    async def get_field_mappings(self, destination_id: str) -> List[MappingSnapshot]:
        ...

    async def get_credentials(self, destination: DestinationSnapshot) -> Credentials:
        ...


class LogStore(Protocol):
    async def create_log(
        self,
        webhook_id: str,
        destination_id: Optional[str],
        payload: Any,
        status: str,
        error_message: Optional[str] = None,
    ) -> str:
        ...

    async def record_retry(self, log_id: str, success: bool, error_message: Optional[str] = None) -> None:
        ...


def _snapshot(destination: Destination, owner_id: str) -> DestinationSnapshot:
    config = dict(destination.config or {})
    config["type"] = destination.type
    try:
        return DestinationSnapshot(
            id=destination.id,
            webhook_id=destination.webhook_id,
            owner_id=owner_id,
            config=config,
        )
    except ValidationError as e:
        detail = e.errors()[0].get("msg", "") if e.errors() else ""
        raise InvalidDestinationConfig(destination.id, destination.type, detail)


class SqlConfigurationStore:
    """Configuration and credential lookups backed by the relay database."""

    def __init__(self, session_factory: async_sessionmaker):
        self.session_factory = session_factory

    async def get_enabled_destinations(self, webhook_id: str) -> List[DestinationSnapshot]:
        async with self.session_factory() as session:
            result = await session.execute(
                select(Destination, Webhook.owner_id)
                .join(Webhook, Destination.webhook_id == Webhook.id)
                .where(Destination.webhook_id == webhook_id, Destination.enabled == True)  # noqa: E712
                .order_by(Destination.created_at)
            )
            rows = result.all()

        snapshots = []
        for destination, owner_id in rows:
            try:
                snapshots.append(_snapshot(destination, owner_id))
            except InvalidDestinationConfig as e:
                logger.error("Skipping destination: %s", e.reason)
        return snapshots

    async def get_destination(self, destination_id: str) -> Optional[DestinationSnapshot]:
        """None if the destination is gone; InvalidDestinationConfig if its config no longer validates."""
        async with self.session_factory() as session:
            result = await session.execute(
                select(Destination, Webhook.owner_id)
                .join(Webhook, Destination.webhook_id == Webhook.id)
                .where(Destination.id == destination_id)
            )
            row = result.first()
        if row is None:
            return None
        return _snapshot(row[0], row[1])

    async def get_field_mappings(self, destination_id: str) -> List[MappingSnapshot]:
        async with self.session_factory() as session:
            result = await session.execute(
                select(FieldMapping).where(FieldMapping.destination_id == destination_id)
            )
            return [
                MappingSnapshot(source=m.source_field, target=m.target_field)
                for m in result.scalars().all()
            ]

    async def get_credentials(self, destination: DestinationSnapshot) -> Credentials:
        if destination.type == "relational":
            return Credentials(token=destination.config.service_role_key)

        async with self.session_factory() as session:
            result = await session.execute(
                select(ProviderCredential).where(
                    ProviderCredential.owner_id == destination.owner_id,
                    ProviderCredential.provider == GOOGLE_PROVIDER,
                )
            )
            credential = result.scalar_one_or_none()

        if credential is None:
            raise CredentialsUnavailable("Google not connected")

        expires_at = credential.expires_at
        if expires_at is not None:
            if expires_at.tzinfo is None:
                expires_at = expires_at.replace(tzinfo=timezone.utc)
            if expires_at <= datetime.now(timezone.utc):
                # Refreshing is the OAuth flow's responsibility
                raise CredentialsUnavailable("Google access token expired; reconnect Google")

        return Credentials(token=credential.access_token)


class SqlLogStore:
    """Delivery log rows: one insert per attempt, one patch per retry."""

    def __init__(self, session_factory: async_sessionmaker):
        self.session_factory = session_factory

    async def create_log(
        self,
        webhook_id: str,
        destination_id: Optional[str],
        payload: Any,
        status: str,
        error_message: Optional[str] = None,
    ) -> str:
        async with self.session_factory() as session:
            log = DeliveryLog(
                webhook_id=webhook_id,
                destination_id=destination_id,
                payload=payload,
                status=status,
                error_message=error_message,
                retry_count=0,
            )
            session.add(log)
            await session.commit()
            return log.id

    async def record_retry(self, log_id: str, success: bool, error_message: Optional[str] = None) -> None:
        async with self.session_factory() as session:
            await session.execute(
                update(DeliveryLog)
                .where(DeliveryLog.id == log_id)
                .values(
                    status=STATUS_SUCCESS if success else STATUS_FAILED,
                    error_message=None if success else error_message,
                    retry_count=1,
                )
            )
            await session.commit()
