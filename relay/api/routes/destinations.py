from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List
from relay.api.deps import get_current_user_id
from relay.database import get_db
from relay.schemas.destination import (
    DestinationCreate,
    DestinationUpdate,
    DestinationResponse,
)
from relay.services.destination_service import DestinationService
from relay.services.webhook_service import WebhookService

router = APIRouter(prefix="/api/destinations", tags=["destinations"])


@router.get("/webhook/{webhook_id}", response_model=List[DestinationResponse])
async def list_destinations(
    webhook_id: str,
    owner_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db)
):
    """List all destinations of a webhook."""
    webhook = await WebhookService.get_webhook(db, owner_id, webhook_id)
    if not webhook:
        raise HTTPException(status_code=404, detail="Webhook not found")
    destinations = await DestinationService.list_destinations(db, webhook_id)
    return [DestinationResponse.model_validate(d) for d in destinations]


@router.post("", response_model=DestinationResponse, status_code=201)
async def create_destination(
    destination_data: DestinationCreate,
    owner_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db)
):
    """Create a destination for one of the caller's webhooks."""
    webhook = await WebhookService.get_webhook(db, owner_id, destination_data.webhook_id)
    if not webhook:
        raise HTTPException(status_code=404, detail="Webhook not found")
    destination = await DestinationService.create_destination(db, destination_data)
    return DestinationResponse.model_validate(destination)


@router.put("/{destination_id}", response_model=DestinationResponse)
async def update_destination(
    destination_id: str,
    destination_data: DestinationUpdate,
    owner_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db)
):
    """Enable/disable a destination or replace its config."""
    destination = await DestinationService.get_destination(db, owner_id, destination_id)
    if not destination:
        raise HTTPException(status_code=404, detail="Destination not found")
    try:
        destination = await DestinationService.update_destination(db, destination, destination_data)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return DestinationResponse.model_validate(destination)


@router.delete("/{destination_id}", status_code=204)
async def delete_destination(
    destination_id: str,
    owner_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db)
):
    """Delete a destination. Its delivery logs are kept."""
    destination = await DestinationService.get_destination(db, owner_id, destination_id)
    if not destination:
        raise HTTPException(status_code=404, detail="Destination not found")
    await DestinationService.delete_destination(db, destination)
    return None
