from typing import Any, List, Optional
from urllib.parse import quote

import httpx

from relay.config import settings
from relay.exceptions import DestinationUnreachable
from relay.providers.http import check_response, translate_transport_errors


class SheetsClient:
    """
    Minimal Google Sheets v4 values client.

    Built per call around a freshly fetched access token; holds no state
    beyond that token and the shared HTTP connection pool.
    """

    def __init__(self, access_token: str, http: httpx.AsyncClient, base_url: Optional[str] = None):
        self._http = http
        self._headers = {"Authorization": f"Bearer {access_token}"}
        self._base_url = (base_url or settings.sheets_api_base_url).rstrip("/")

    def _values_url(self, spreadsheet_id: str, range_: str, suffix: str = "") -> str:
        return (
            f"{self._base_url}/spreadsheets/{quote(spreadsheet_id, safe='')}"
            f"/values/{quote(range_, safe='')}{suffix}"
        )

    async def get_header_row(self, spreadsheet_id: str, worksheet_name: str) -> List[str]:
        """Read the first row of a worksheet."""
        url = self._values_url(spreadsheet_id, f"{worksheet_name}!1:1")
        action = "Reading header row"
        async with translate_transport_errors(action, DestinationUnreachable):
            response = await self._http.get(url, headers=self._headers)
        check_response(response, action, DestinationUnreachable)

        values = response.json().get("values") or []
        return [str(h) for h in values[0]] if values else []

    async def append_row(self, spreadsheet_id: str, worksheet_name: str, row: List[Any]) -> dict:
        """Append a single row below the last data row."""
        url = self._values_url(spreadsheet_id, f"{worksheet_name}!A:A", ":append")
        params = {
            "valueInputOption": "USER_ENTERED",
            "insertDataOption": "INSERT_ROWS",
        }
        action = "Appending row"
        async with translate_transport_errors(action):
            response = await self._http.post(
                url,
                params=params,
                json={"values": [row]},
                headers=self._headers,
            )
        check_response(response, action)
        return response.json() if response.content else {}
