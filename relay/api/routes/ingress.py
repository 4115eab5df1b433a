from datetime import datetime, timezone
from typing import Any, Dict
from fastapi import APIRouter, Body, Depends, HTTPException
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from relay.api.deps import DispatchTrigger, get_dispatch_trigger
from relay.database import get_db
from relay.schemas.webhook import IngressResponse
from relay.services.flatten import flatten_payload
from relay.services.webhook_service import WebhookService
import logging

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/webhook", tags=["ingress"])


@router.post("/receive/{owner_id}/{token}", response_model=IngressResponse)
async def receive_webhook(
    owner_id: str,
    token: str,
    payload: Dict[str, Any] = Body(...),
    db: AsyncSession = Depends(get_db),
    trigger: DispatchTrigger = Depends(get_dispatch_trigger)
):
    """
    Public inbound endpoint. Stores the payload as the webhook's latest
    snapshot and queues delivery without waiting for it.
    """
    try:
        webhook = await WebhookService.get_webhook_by_token(db, owner_id, token)
        if not webhook:
            raise HTTPException(status_code=404, detail="Webhook not found")
        await WebhookService.store_latest_payload(db, webhook, payload)
    except SQLAlchemyError:
        logger.exception("Failed to store payload for webhook token %s", token)
        raise HTTPException(status_code=500, detail="Internal server error")

    webhook_id = webhook.id
    logger.info("Webhook received for %s (%s), payload keys: %s", webhook.name, webhook_id, list(payload.keys()))

    flattened = flatten_payload(payload)
    logger.debug("Flattened keys: %s", list(flattened.keys()))

    # Delivery problems are never the sender's concern
    try:
        trigger(webhook_id, flattened, payload)
    except Exception:
        logger.exception("Failed to queue dispatch for webhook %s", webhook_id)

    return IngressResponse(
        message="Webhook received",
        webhookId=webhook_id,
        timestamp=datetime.now(timezone.utc).isoformat(),
    )
