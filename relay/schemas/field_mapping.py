from pydantic import BaseModel, Field
from typing import List, Optional


class FieldMappingIn(BaseModel):
    source_field: Optional[str] = Field(None, description="Flattened payload key, e.g. user.email")
    target_field: str = Field(..., description="Destination column name")


class FieldMappingSave(BaseModel):
    mappings: List[FieldMappingIn]


class FieldMappingResponse(BaseModel):
    id: str
    destination_id: str
    source_field: str
    target_field: str

    model_config = {"from_attributes": True}
