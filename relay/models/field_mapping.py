import uuid
from sqlalchemy import Column, String, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from relay.database import Base


class FieldMapping(Base):
    __tablename__ = "field_mappings"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    destination_id = Column(
        String(36),
        ForeignKey("destinations.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    source_field = Column(String, nullable=False)  # flattened payload key
    target_field = Column(String, nullable=False)  # destination column name
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    destination = relationship("Destination", back_populates="mappings")
