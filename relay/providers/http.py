import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Type

import httpx

from relay.exceptions import AuthorizationError, TransportError

logger = logging.getLogger(__name__)


def check_response(
    response: httpx.Response,
    action: str,
    error_cls: Type[TransportError] = TransportError,
) -> httpx.Response:
    """Raise a delivery error for a non-2xx provider response.

    401 and 403 always become AuthorizationError; anything else becomes
    ``error_cls``.
    """
    if 200 <= response.status_code < 300:
        return response

    detail = response.text[:500] if response.text else ""
    if response.status_code in (401, 403):
        logger.warning("%s rejected credentials: HTTP %s", action, response.status_code)
        raise AuthorizationError(
            f"{action} failed: authorization rejected (HTTP {response.status_code})",
            status_code=response.status_code,
        )

    logger.warning("%s failed: HTTP %s %s", action, response.status_code, detail)
    message = f"{action} failed: HTTP {response.status_code}"
    if detail:
        message = f"{message}: {detail}"
    raise error_cls(message, status_code=response.status_code)


@asynccontextmanager
async def translate_transport_errors(
    action: str,
    error_cls: Type[TransportError] = TransportError,
) -> AsyncIterator[None]:
    """Turn httpx connection-level failures into delivery errors."""
    try:
        yield
    except httpx.TimeoutException:
        logger.error("%s timed out", action)
        raise error_cls(f"{action} failed: request timeout")
    except httpx.RequestError as e:
        logger.error("%s failed: %s", action, str(e))
        raise error_cls(f"{action} failed: {e}")
