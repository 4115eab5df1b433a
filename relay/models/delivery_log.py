import uuid
from sqlalchemy import Column, Integer, String, DateTime, Text, JSON
from sqlalchemy.sql import func
from relay.database import Base


class DeliveryLog(Base):
    __tablename__ = "delivery_logs"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    # Plain references, no foreign keys: logs outlive deleted destinations
    webhook_id = Column(String(36), nullable=False, index=True)
    destination_id = Column(String(36), nullable=True, index=True)
    payload = Column(JSON, nullable=True)  # raw, unflattened payload
    status = Column(String, nullable=False)  # success, failed
    error_message = Column(Text, nullable=True)
    retry_count = Column(Integer, default=0, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)
