from typing import Any, Optional, List
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from sqlalchemy.sql import func
from relay.models.webhook import Webhook
from relay.schemas.webhook import WebhookCreate, WebhookUpdate
import logging

logger = logging.getLogger(__name__)


class WebhookService:
    """Service for inbound webhook management."""

    @staticmethod
    async def create_webhook(
        session: AsyncSession,
        owner_id: str,
        webhook_data: WebhookCreate
    ) -> Webhook:
        """Create a new webhook with a fresh routing token."""
        webhook = Webhook(owner_id=owner_id, **webhook_data.model_dump())
        session.add(webhook)
        await session.commit()
        await session.refresh(webhook)
        logger.info("Created webhook %s for owner %s", webhook.id, owner_id)
        return webhook

    @staticmethod
    async def get_webhook(
        session: AsyncSession,
        owner_id: str,
        webhook_id: str
    ) -> Optional[Webhook]:
        """Get a webhook by ID, scoped to its owner."""
        result = await session.execute(
            select(Webhook).where(Webhook.id == webhook_id, Webhook.owner_id == owner_id)
        )
        return result.scalar_one_or_none()

    @staticmethod
    async def get_webhook_by_token(
        session: AsyncSession,
        owner_id: str,
        token: str
    ) -> Optional[Webhook]:
        """Resolve the webhook addressed by an inbound URL."""
        result = await session.execute(
            select(Webhook).where(Webhook.owner_id == owner_id, Webhook.token == token)
        )
        return result.scalar_one_or_none()

    @staticmethod
    async def list_webhooks(session: AsyncSession, owner_id: str) -> List[Webhook]:
        """List an owner's webhooks, newest first."""
        result = await session.execute(
            select(Webhook)
            .where(Webhook.owner_id == owner_id)
            .order_by(Webhook.created_at.desc())
        )
        return list(result.scalars().all())

    @staticmethod
    async def update_webhook(
        session: AsyncSession,
        owner_id: str,
        webhook_id: str,
        webhook_data: WebhookUpdate
    ) -> Optional[Webhook]:
        """Update a webhook."""
        webhook = await WebhookService.get_webhook(session, owner_id, webhook_id)
        if not webhook:
            return None

        update_data = webhook_data.model_dump(exclude_unset=True)
        for key, value in update_data.items():
            setattr(webhook, key, value)

        await session.commit()
        await session.refresh(webhook)
        return webhook

    @staticmethod
    async def delete_webhook(session: AsyncSession, owner_id: str, webhook_id: str) -> bool:
        """Delete a webhook along with its destinations and mappings."""
        webhook = await WebhookService.get_webhook(session, owner_id, webhook_id)
        if not webhook:
            return False

        await session.delete(webhook)
        await session.commit()
        return True

    @staticmethod
    async def store_latest_payload(
        session: AsyncSession,
        webhook: Webhook,
        payload: Any
    ) -> Webhook:
        """Overwrite the webhook's latest payload snapshot. Last write wins."""
        webhook.latest_payload = payload
        webhook.updated_at = func.now()
        await session.commit()
        return webhook
