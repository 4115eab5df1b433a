from relay.schemas.webhook import WebhookCreate, WebhookUpdate, WebhookResponse, IngressResponse
from relay.schemas.destination import (
    DestinationCreate,
    DestinationUpdate,
    DestinationResponse,
    TabularConfig,
    RelationalConfig,
)
from relay.schemas.field_mapping import FieldMappingIn, FieldMappingSave, FieldMappingResponse
from relay.schemas.delivery_log import DeliveryLogResponse
from relay.schemas.dispatch import DestinationSnapshot, MappingSnapshot, Credentials, RetryJob

__all__ = [
    "WebhookCreate",
    "WebhookUpdate",
    "WebhookResponse",
    "IngressResponse",
    "DestinationCreate",
    "DestinationUpdate",
    "DestinationResponse",
    "TabularConfig",
    "RelationalConfig",
    "FieldMappingIn",
    "FieldMappingSave",
    "FieldMappingResponse",
    "DeliveryLogResponse",
    "DestinationSnapshot",
    "MappingSnapshot",
    "Credentials",
    "RetryJob",
]
