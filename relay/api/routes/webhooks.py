from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List
from relay.api.deps import get_current_user_id
from relay.database import get_db
from relay.schemas.webhook import (
    WebhookCreate,
    WebhookUpdate,
    WebhookResponse,
)
from relay.services.webhook_service import WebhookService

router = APIRouter(prefix="/api/webhooks", tags=["webhooks"])


@router.get("", response_model=List[WebhookResponse])
async def list_webhooks(
    owner_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db)
):
    """List the caller's webhooks."""
    webhooks = await WebhookService.list_webhooks(db, owner_id)
    return [WebhookResponse.model_validate(wh) for wh in webhooks]


@router.get("/{webhook_id}", response_model=WebhookResponse)
async def get_webhook(
    webhook_id: str,
    owner_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db)
):
    """Get a webhook by ID."""
    webhook = await WebhookService.get_webhook(db, owner_id, webhook_id)
    if not webhook:
        raise HTTPException(status_code=404, detail="Webhook not found")
    return WebhookResponse.model_validate(webhook)


@router.post("", response_model=WebhookResponse, status_code=201)
async def create_webhook(
    webhook_data: WebhookCreate,
    owner_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db)
):
    """Create a new webhook."""
    webhook = await WebhookService.create_webhook(db, owner_id, webhook_data)
    return WebhookResponse.model_validate(webhook)


@router.put("/{webhook_id}", response_model=WebhookResponse)
async def update_webhook(
    webhook_id: str,
    webhook_data: WebhookUpdate,
    owner_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db)
):
    """Rename a webhook."""
    webhook = await WebhookService.update_webhook(db, owner_id, webhook_id, webhook_data)
    if not webhook:
        raise HTTPException(status_code=404, detail="Webhook not found")
    return WebhookResponse.model_validate(webhook)


@router.delete("/{webhook_id}", status_code=204)
async def delete_webhook(
    webhook_id: str,
    owner_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db)
):
    """Delete a webhook and its destinations."""
    deleted = await WebhookService.delete_webhook(db, owner_id, webhook_id)
    if not deleted:
        raise HTTPException(status_code=404, detail="Webhook not found")
    return None
