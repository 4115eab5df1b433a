from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List
from relay.api.deps import get_current_user_id
from relay.database import get_db
from relay.schemas.delivery_log import DeliveryLogResponse
from relay.services.delivery_log_service import DeliveryLogService
from relay.services.webhook_service import WebhookService

router = APIRouter(prefix="/api/logs", tags=["logs"])


@router.get("/webhook/{webhook_id}", response_model=List[DeliveryLogResponse])
async def list_webhook_logs(
    webhook_id: str,
    limit: int = Query(50, ge=1, le=500),
    owner_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db)
):
    """Delivery logs for one webhook, newest first."""
    webhook = await WebhookService.get_webhook(db, owner_id, webhook_id)
    if not webhook:
        raise HTTPException(status_code=404, detail="Webhook not found")
    return await DeliveryLogService.list_for_webhook(db, webhook_id, limit)


@router.get("", response_model=List[DeliveryLogResponse])
async def list_logs(
    limit: int = Query(100, ge=1, le=500),
    owner_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db)
):
    """Delivery logs across all of the caller's webhooks."""
    return await DeliveryLogService.list_for_owner(db, owner_id, limit)
