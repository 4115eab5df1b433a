import uuid
from sqlalchemy import Column, String, DateTime, JSON, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from relay.database import Base


def _generate_token() -> str:
    return uuid.uuid4().hex[:16]


class Webhook(Base):
    __tablename__ = "webhooks"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    owner_id = Column(String, nullable=False, index=True)
    name = Column(String, nullable=False)
    token = Column(String(32), nullable=False, default=_generate_token)  # public routing token
    latest_payload = Column(JSON, nullable=True)  # overwritten on every inbound delivery
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    destinations = relationship(
        "Destination",
        back_populates="webhook",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __table_args__ = (
        UniqueConstraint("owner_id", "token", name="uq_webhooks_owner_token"),
    )
