from pydantic import BaseModel, Field
from typing import Any, Optional
from datetime import datetime


class WebhookCreate(BaseModel):
    name: str = Field(..., min_length=1, description="Human readable name")


class WebhookUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1)


class WebhookResponse(BaseModel):
    id: str
    owner_id: str
    name: str
    token: str
    latest_payload: Optional[Any] = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class IngressResponse(BaseModel):
    message: str
    webhookId: str
    timestamp: str
