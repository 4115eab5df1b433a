import logging
from typing import Any, Dict

from relay.adapters.base import DestinationAdapter
from relay.providers.postgrest import PostgrestClient
from relay.schemas.dispatch import DestinationSnapshot

logger = logging.getLogger(__name__)


class RelationalUpsertAdapter(DestinationAdapter):
    """Writes one record to a REST-backed table, upserting when a conflict key applies."""

    def __init__(self, client: PostgrestClient):
        self.client = client

    async def write(self, destination: DestinationSnapshot, record: Dict[str, Any]) -> None:
        config = destination.config
        conflict_key = config.conflict_key

        if conflict_key and record.get(conflict_key) is not None:
            logger.info(
                "Upserting into %s on %s for destination %s",
                config.table_name,
                conflict_key,
                destination.id,
            )
            await self.client.upsert(config.table_name, record, conflict_key)
        else:
            logger.info("Inserting into %s for destination %s", config.table_name, destination.id)
            await self.client.insert(config.table_name, record)
