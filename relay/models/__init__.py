from relay.models.webhook import Webhook
from relay.models.destination import Destination
from relay.models.field_mapping import FieldMapping
from relay.models.delivery_log import DeliveryLog
from relay.models.provider_credential import ProviderCredential

__all__ = [
    "Webhook",
    "Destination",
    "FieldMapping",
    "DeliveryLog",
    "ProviderCredential",
]
