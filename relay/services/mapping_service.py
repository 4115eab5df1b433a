from typing import List
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, delete
from relay.models.field_mapping import FieldMapping
from relay.schemas.field_mapping import FieldMappingIn
import logging

logger = logging.getLogger(__name__)


def filter_blank_sources(mappings: List[FieldMappingIn]) -> List[FieldMappingIn]:
    """Drop rows the user left without a source field."""
    return [m for m in mappings if m.source_field and m.source_field.strip()]


class MappingService:
    """Service for a destination's field mappings."""

    @staticmethod
    async def list_mappings(session: AsyncSession, destination_id: str) -> List[FieldMapping]:
        result = await session.execute(
            select(FieldMapping)
            .where(FieldMapping.destination_id == destination_id)
            .order_by(FieldMapping.created_at)
        )
        return list(result.scalars().all())

    @staticmethod
    async def replace_mappings(
        session: AsyncSession,
        destination_id: str,
        mappings: List[FieldMappingIn]
    ) -> List[FieldMapping]:
        """
        Replace all mappings for a destination.
        Mappings are never merged: existing rows are deleted, then the new set inserted.
        """
        valid = filter_blank_sources(mappings)
        if not valid:
            raise ValueError("At least one mapping is required")

        try:
            result = await session.execute(
                delete(FieldMapping).where(FieldMapping.destination_id == destination_id)
            )
            logger.info("Deleted %s existing mapping(s) for destination %s", result.rowcount, destination_id)

            session.add_all([
                FieldMapping(
                    destination_id=destination_id,
                    source_field=m.source_field.strip(),
                    target_field=m.target_field,
                )
                for m in valid
            ])
            await session.commit()
        except Exception:
            await session.rollback()
            raise

        logger.info("Saved %d mapping(s) for destination %s", len(valid), destination_id)
        return await MappingService.list_mappings(session, destination_id)
