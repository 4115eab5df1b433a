from typing import Optional, List
from pydantic import TypeAdapter, ValidationError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from relay.models.destination import Destination
from relay.models.webhook import Webhook
from relay.schemas.destination import DestinationConfig, DestinationCreate, DestinationUpdate
import logging

logger = logging.getLogger(__name__)

_config_adapter = TypeAdapter(DestinationConfig)


def validate_config(destination_type: str, config: dict) -> dict:
    """Validate a raw config blob against its type; returns the stored form."""
    try:
        parsed = _config_adapter.validate_python({**config, "type": destination_type})
    except ValidationError as e:
        raise ValueError(f"Invalid {destination_type} config: {e.errors()[0].get('msg', str(e))}")
    return parsed.model_dump(exclude={"type"})


class DestinationService:
    """Service for destination CRUD, scoped through the owning webhook."""

    @staticmethod
    async def get_destination(
        session: AsyncSession,
        owner_id: str,
        destination_id: str
    ) -> Optional[Destination]:
        """Get a destination if its webhook belongs to the owner."""
        result = await session.execute(
            select(Destination)
            .join(Webhook, Destination.webhook_id == Webhook.id)
            .where(Destination.id == destination_id, Webhook.owner_id == owner_id)
        )
        return result.scalar_one_or_none()

    @staticmethod
    async def list_destinations(session: AsyncSession, webhook_id: str) -> List[Destination]:
        result = await session.execute(
            select(Destination)
            .where(Destination.webhook_id == webhook_id)
            .order_by(Destination.created_at)
        )
        return list(result.scalars().all())

    @staticmethod
    async def create_destination(
        session: AsyncSession,
        destination_data: DestinationCreate
    ) -> Destination:
        """Create a destination. Ownership of the webhook is checked by the caller."""
        destination = Destination(
            webhook_id=destination_data.webhook_id,
            type=destination_data.type,
            enabled=destination_data.enabled,
            config=destination_data.config.model_dump(exclude={"type"}),
        )
        session.add(destination)
        await session.commit()
        await session.refresh(destination)
        logger.info(
            "Created %s destination %s for webhook %s",
            destination.type,
            destination.id,
            destination.webhook_id,
        )
        return destination

    @staticmethod
    async def update_destination(
        session: AsyncSession,
        destination: Destination,
        destination_data: DestinationUpdate
    ) -> Destination:
        """Toggle and/or reconfigure a destination."""
        update_data = destination_data.model_dump(exclude_unset=True)
        update_data = {k: v for k, v in update_data.items() if v is not None}
        if not update_data:
            raise ValueError("No fields to update")

        if "config" in update_data:
            destination.config = validate_config(destination.type, update_data["config"])
        if "enabled" in update_data:
            destination.enabled = update_data["enabled"]

        await session.commit()
        await session.refresh(destination)
        return destination

    @staticmethod
    async def delete_destination(session: AsyncSession, destination: Destination) -> None:
        """Delete a destination and its mappings. Delivery logs are kept."""
        await session.delete(destination)
        await session.commit()
