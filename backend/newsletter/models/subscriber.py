"""Subscriber model, the source of newsletter recipients."""

from enum import Enum

from sqlalchemy import Column, DateTime, String, func

from newsletter.core.database import Base
from newsletter.models.shared import UUIDType, generate_uuid


class SubscriberStatus(str, Enum):
    PENDING_CONFIRMATION = "pending_confirmation"
    CONFIRMED = "confirmed"


class Subscriber(Base):
    __tablename__ = "subscriptions"

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    email = Column(String(255), nullable=False, unique=True)
    name = Column(String(256), nullable=False)
    status = Column(
        String(30),
        nullable=False,
        default=SubscriberStatus.PENDING_CONFIRMATION.value,
        index=True,
    )
    subscribed_at = Column(DateTime(timezone=True), server_default=func.now())
