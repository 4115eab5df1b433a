import httpx

from relay.adapters.base import DestinationAdapter
from relay.adapters.relational import RelationalUpsertAdapter
from relay.adapters.tabular import TabularSheetAdapter
from relay.exceptions import ConfigurationError
from relay.providers.postgrest import PostgrestClient
from relay.providers.sheets import SheetsClient
from relay.schemas.dispatch import Credentials, DestinationSnapshot


def build_adapter(
    destination: DestinationSnapshot,
    credentials: Credentials,
    http: httpx.AsyncClient,
) -> DestinationAdapter:
    """Construct a fresh adapter and provider client for one write."""
    if destination.type == "tabular":
        return TabularSheetAdapter(SheetsClient(credentials.token, http))
    if destination.type == "relational":
        return RelationalUpsertAdapter(
            PostgrestClient(destination.config.base_url, credentials.token, http)
        )
    raise ConfigurationError(f"Unsupported destination type: {destination.type}")


__all__ = [
    "DestinationAdapter",
    "TabularSheetAdapter",
    "RelationalUpsertAdapter",
    "build_adapter",
]
