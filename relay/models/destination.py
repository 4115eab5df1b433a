import uuid
from sqlalchemy import Column, String, Boolean, DateTime, JSON, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from relay.database import Base


class Destination(Base):
    __tablename__ = "destinations"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    webhook_id = Column(
        String(36),
        ForeignKey("webhooks.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    type = Column(String, nullable=False)  # tabular, relational
    enabled = Column(Boolean, default=True, nullable=False)
    config = Column(JSON, nullable=False)  # shape determined by type
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    webhook = relationship("Webhook", back_populates="destinations")
    mappings = relationship(
        "FieldMapping",
        back_populates="destination",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
