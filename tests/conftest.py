"""
Shared fixtures for the relay test suite.

The delivery pipeline is exercised against in-memory stand-ins for the
configuration and log stores and a recording adapter, so no database,
broker or network is needed.
"""
import uuid
from typing import Any, Dict, List, Optional

import pytest

from relay.exceptions import CredentialsUnavailable, DeliveryError, InvalidDestinationConfig
from relay.schemas.dispatch import Credentials, DestinationSnapshot, MappingSnapshot
from relay.services.dispatcher import Dispatcher
from relay.services.retry import InlineRetryScheduler


class InMemoryConfigurationStore:
    def __init__(self):
        self.destinations: Dict[str, DestinationSnapshot] = {}
        self.enabled: Dict[str, bool] = {}
        self.mappings: Dict[str, List[MappingSnapshot]] = {}
        self.missing_credentials: set = set()
        self.invalid_configs: set = set()
        self.mapping_errors: Dict[str, Exception] = {}

    def add(self, destination: DestinationSnapshot, mappings=None, enabled: bool = True):
        self.destinations[destination.id] = destination
        self.enabled[destination.id] = enabled
        self.mappings[destination.id] = [
            MappingSnapshot(source=source, target=target) for source, target in (mappings or [])
        ]
        return destination

    async def get_enabled_destinations(self, webhook_id: str) -> List[DestinationSnapshot]:
        return [
            d for d in self.destinations.values()
            if d.webhook_id == webhook_id and self.enabled[d.id]
        ]

    async def get_destination(self, destination_id: str) -> Optional[DestinationSnapshot]:
        if destination_id in self.invalid_configs:
            raise InvalidDestinationConfig(destination_id, self.destinations[destination_id].type)
        return self.destinations.get(destination_id)

    async def get_field_mappings(self, destination_id: str) -> List[MappingSnapshot]:
        if destination_id in self.mapping_errors:
            raise self.mapping_errors[destination_id]
        return list(self.mappings.get(destination_id, []))

    async def get_credentials(self, destination: DestinationSnapshot) -> Credentials:
        if destination.id in self.missing_credentials:
            raise CredentialsUnavailable("Google not connected")
        return Credentials(token=f"token-{destination.id}")


class InMemoryLogStore:
    def __init__(self):
        self.rows: Dict[str, Dict[str, Any]] = {}

    async def create_log(self, webhook_id, destination_id, payload, status, error_message=None) -> str:
        log_id = str(uuid.uuid4())
        self.rows[log_id] = {
            "id": log_id,
            "webhook_id": webhook_id,
            "destination_id": destination_id,
            "payload": payload,
            "status": status,
            "error_message": error_message,
            "retry_count": 0,
        }
        return log_id

    async def record_retry(self, log_id, success, error_message=None) -> None:
        row = self.rows[log_id]
        row["status"] = "success" if success else "failed"
        row["error_message"] = None if success else error_message
        row["retry_count"] = 1

    def for_destination(self, destination_id: str) -> List[Dict[str, Any]]:
        return [r for r in self.rows.values() if r["destination_id"] == destination_id]


class RecordingAdapter:
    """Fake adapter: pops one scripted outcome per call (None = success)."""

    def __init__(self, outcomes=None, always: Optional[DeliveryError] = None):
        self.outcomes = list(outcomes or [])
        self.always = always
        self.calls: List[Dict[str, Any]] = []

    async def write(self, destination, record):
        self.calls.append(dict(record))
        if self.always is not None:
            raise self.always
        if self.outcomes:
            outcome = self.outcomes.pop(0)
            if outcome is not None:
                raise outcome


def make_tabular(destination_id: str = "dest-1", webhook_id: str = "wh-1", owner_id: str = "user-1"):
    return DestinationSnapshot(
        id=destination_id,
        webhook_id=webhook_id,
        owner_id=owner_id,
        config={"type": "tabular", "spreadsheet_id": "sheet-1", "worksheet_name": "Sheet1"},
    )


def make_relational(destination_id: str = "dest-2", webhook_id: str = "wh-1", conflict_key=None):
    return DestinationSnapshot(
        id=destination_id,
        webhook_id=webhook_id,
        owner_id="user-1",
        config={
            "type": "relational",
            "base_url": "https://db.example.com",
            "service_role_key": "service-key",
            "table_name": "contacts",
            "conflict_key": conflict_key,
        },
    )


@pytest.fixture
def config_store():
    return InMemoryConfigurationStore()


@pytest.fixture
def log_store():
    return InMemoryLogStore()


@pytest.fixture
def retry_scheduler():
    return InlineRetryScheduler()


@pytest.fixture
def adapters():
    """destination id -> RecordingAdapter; unknown ids get an always-succeeding adapter."""
    return {}


@pytest.fixture
def dispatcher(config_store, log_store, retry_scheduler, adapters):
    def factory(destination, credentials):
        return adapters.setdefault(destination.id, RecordingAdapter())

    return Dispatcher(
        config_store=config_store,
        log_store=log_store,
        adapter_factory=factory,
        retry_scheduler=retry_scheduler,
        retry_delay=5,
    )
