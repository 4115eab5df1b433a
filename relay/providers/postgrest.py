from typing import Any, Dict

import httpx

from relay.providers.http import check_response, translate_transport_errors


class PostgrestClient:
    """Insert / upsert rows through a PostgREST endpoint (e.g. Supabase)."""

    def __init__(self, base_url: str, api_key: str, http: httpx.AsyncClient):
        self._http = http
        self._base_url = base_url.rstrip("/")
        self._headers = {
            "apikey": api_key,
            "Authorization": f"Bearer {api_key}",
            "Content-Type": "application/json",
        }

    def _table_url(self, table_name: str) -> str:
        return f"{self._base_url}/rest/v1/{table_name}"

    async def insert(self, table_name: str, row: Dict[str, Any]) -> None:
        headers = {**self._headers, "Prefer": "return=minimal"}
        action = f"Insert into {table_name}"
        async with translate_transport_errors(action):
            response = await self._http.post(self._table_url(table_name), json=row, headers=headers)
        check_response(response, action)

    async def upsert(self, table_name: str, row: Dict[str, Any], conflict_key: str) -> None:
        """Insert, or merge into the existing row sharing ``conflict_key``."""
        headers = {**self._headers, "Prefer": "resolution=merge-duplicates,return=minimal"}
        action = f"Upsert into {table_name}"
        async with translate_transport_errors(action):
            response = await self._http.post(
                self._table_url(table_name),
                params={"on_conflict": conflict_key},
                json=row,
                headers=headers,
            )
        check_response(response, action)
