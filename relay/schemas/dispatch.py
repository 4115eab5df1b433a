"""Immutable snapshots handed to the delivery pipeline.

The dispatcher never touches ORM rows directly; the configuration store
converts them into these values once per dispatch.
"""
from pydantic import BaseModel
from typing import Any, Dict

from relay.schemas.destination import DestinationConfig


class DestinationSnapshot(BaseModel):
    id: str
    webhook_id: str
    owner_id: str
    config: DestinationConfig

    model_config = {"frozen": True}

    @property
    def type(self) -> str:
        return self.config.type


class MappingSnapshot(BaseModel):
    source: str
    target: str

    model_config = {"frozen": True}


class Credentials(BaseModel):
    token: str

    model_config = {"frozen": True}


class RetryJob(BaseModel):
    """Everything needed to re-run one failed first attempt."""

    log_id: str
    destination: DestinationSnapshot
    record: Dict[str, Any]

    model_config = {"frozen": True}
