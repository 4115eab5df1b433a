from pydantic import BaseModel
from typing import Any, Optional
from datetime import datetime


class DeliveryLogResponse(BaseModel):
    id: str
    webhook_id: str
    destination_id: Optional[str] = None
    destination_type: Optional[str] = None
    webhook_name: Optional[str] = None
    payload: Optional[Any] = None
    status: str
    error_message: Optional[str] = None
    retry_count: int
    created_at: datetime
