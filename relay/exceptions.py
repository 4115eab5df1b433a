"""Delivery error taxonomy.

Every failure a destination can produce is a ``DeliveryError``. The
``retryable`` flag is what the dispatcher consults when deciding whether
a failed first attempt earns its single retry.
"""
from typing import Optional


class DeliveryError(Exception):
    """Base class for anything that stops a record reaching a destination."""

    retryable = True

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason


class ConfigurationError(DeliveryError):
    """The destination cannot be delivered to until the user fixes it."""

    retryable = False


class NoMappingsConfigured(ConfigurationError):
    def __init__(self, destination_id: Optional[str] = None):
        if destination_id:
            reason = (
                f"No field mappings configured for destination {destination_id}. "
                "Please configure mappings first."
            )
        else:
            reason = "No field mappings configured. Please configure mappings first."
        super().__init__(reason)
        self.destination_id = destination_id


class TransportError(DeliveryError):
    """The external write failed; worth one more try."""

    def __init__(self, reason: str, status_code: Optional[int] = None):
        super().__init__(reason)
        self.status_code = status_code


class DestinationUnreachable(TransportError):
    pass


class AuthorizationError(TransportError):
    """Credentials were rejected by the provider (401/403)."""
    pass


class CredentialsUnavailable(AuthorizationError):
    """No usable stored credentials for the destination's provider."""
    pass


class InvalidDestinationConfig(ConfigurationError):
    """The stored config no longer validates against its destination type."""

    def __init__(self, destination_id: str, destination_type: str, detail: str = ""):
        reason = f"Destination {destination_id} has an invalid {destination_type} config"
        if detail:
            reason = f"{reason}: {detail}"
        super().__init__(reason)
        self.destination_id = destination_id
