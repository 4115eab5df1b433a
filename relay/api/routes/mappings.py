from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List
from relay.api.deps import get_current_user_id
from relay.database import get_db
from relay.schemas.field_mapping import FieldMappingSave, FieldMappingResponse
from relay.services.destination_service import DestinationService
from relay.services.mapping_service import MappingService

router = APIRouter(prefix="/api/mappings", tags=["mappings"])


@router.get("/destination/{destination_id}", response_model=List[FieldMappingResponse])
async def list_mappings(
    destination_id: str,
    owner_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db)
):
    """Get the field mappings of a destination."""
    destination = await DestinationService.get_destination(db, owner_id, destination_id)
    if not destination:
        raise HTTPException(status_code=404, detail="Destination not found")
    mappings = await MappingService.list_mappings(db, destination_id)
    return [FieldMappingResponse.model_validate(m) for m in mappings]


@router.post("/destination/{destination_id}", response_model=List[FieldMappingResponse])
async def save_mappings(
    destination_id: str,
    mapping_data: FieldMappingSave,
    owner_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db)
):
    """Replace all field mappings of a destination."""
    destination = await DestinationService.get_destination(db, owner_id, destination_id)
    if not destination:
        raise HTTPException(status_code=404, detail="Destination not found")
    try:
        mappings = await MappingService.replace_mappings(db, destination_id, mapping_data.mappings)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return [FieldMappingResponse.model_validate(m) for m in mappings]
