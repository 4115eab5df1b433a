import logging
from typing import Any, Dict, List

from relay.adapters.base import DestinationAdapter
from relay.exceptions import DestinationUnreachable
from relay.providers.sheets import SheetsClient
from relay.schemas.dispatch import DestinationSnapshot

logger = logging.getLogger(__name__)


def build_row(headers: List[str], record: Dict[str, Any]) -> List[Any]:
    """Order record values by header position; unmatched headers stay empty."""
    row = []
    for header in headers:
        value = record.get(header)
        row.append("" if value is None else value)
    return row


class TabularSheetAdapter(DestinationAdapter):
    """Appends one row to a spreadsheet worksheet, ordered by its header row."""

    def __init__(self, client: SheetsClient):
        self.client = client

    async def write(self, destination: DestinationSnapshot, record: Dict[str, Any]) -> None:
        config = destination.config
        headers = await self.client.get_header_row(config.spreadsheet_id, config.worksheet_name)
        logger.debug("Headers for destination %s: %s", destination.id, headers)

        if not headers:
            raise DestinationUnreachable(
                "No headers found in worksheet. Make sure the first row contains column headers."
            )

        row = build_row(headers, record)
        logger.info(
            "Appending row to %s!%s for destination %s",
            config.spreadsheet_id,
            config.worksheet_name,
            destination.id,
        )
        await self.client.append_row(config.spreadsheet_id, config.worksheet_name, row)
