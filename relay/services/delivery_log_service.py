from typing import List
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from relay.models.delivery_log import DeliveryLog
from relay.models.destination import Destination
from relay.models.webhook import Webhook
from relay.schemas.delivery_log import DeliveryLogResponse


def _to_response(log: DeliveryLog, destination_type, webhook_name=None) -> DeliveryLogResponse:
    return DeliveryLogResponse(
        id=log.id,
        webhook_id=log.webhook_id,
        destination_id=log.destination_id,
        destination_type=destination_type,
        webhook_name=webhook_name,
        payload=log.payload,
        status=log.status,
        error_message=log.error_message,
        retry_count=log.retry_count,
        created_at=log.created_at,
    )


class DeliveryLogService:
    """Read side of the delivery log."""

    @staticmethod
    async def list_for_webhook(
        session: AsyncSession,
        webhook_id: str,
        limit: int = 50
    ) -> List[DeliveryLogResponse]:
        """Newest first. Logs of deleted destinations keep a null destination_type."""
        result = await session.execute(
            select(DeliveryLog, Destination.type)
            .outerjoin(Destination, DeliveryLog.destination_id == Destination.id)
            .where(DeliveryLog.webhook_id == webhook_id)
            .order_by(DeliveryLog.created_at.desc())
            .limit(limit)
        )
        return [_to_response(log, dest_type) for log, dest_type in result.all()]

    @staticmethod
    async def list_for_owner(
        session: AsyncSession,
        owner_id: str,
        limit: int = 100
    ) -> List[DeliveryLogResponse]:
        result = await session.execute(
            select(DeliveryLog, Destination.type, Webhook.name)
            .join(Webhook, DeliveryLog.webhook_id == Webhook.id)
            .outerjoin(Destination, DeliveryLog.destination_id == Destination.id)
            .where(Webhook.owner_id == owner_id)
            .order_by(DeliveryLog.created_at.desc())
            .limit(limit)
        )
        return [_to_response(log, dest_type, name) for log, dest_type, name in result.all()]
