import uuid
from enum import Enum

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text, func

from cadence.core.database import Base
from cadence.models.shared import DEFAULT_ORGANIZATION_ID, UUIDType


class OrderStatus(str, Enum):
    SCHEDULED = "scheduled"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"
    SKIPPED = "skipped"


class SubscriptionOrder(Base):
    """One scheduled or billed charge of a subscription."""

    __tablename__ = "subscription_orders"

    id = Column(UUIDType, primary_key=True, default=lambda: uuid.uuid4())
    organization_id = Column(
        UUIDType,
        ForeignKey("organizations.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
        default=DEFAULT_ORGANIZATION_ID,
    )
    subscription_id = Column(
        UUIDType,
        ForeignKey("subscriptions.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    order_id = Column(String(255), nullable=True)
    scheduled_at = Column(DateTime(timezone=True), nullable=False, index=True)
    billed_at = Column(DateTime(timezone=True), nullable=True)
    amount_cents = Column(Integer, nullable=False)
    currency = Column(String(3), nullable=False, default="USD")
    status = Column(String(20), nullable=False, default=OrderStatus.SCHEDULED.value, index=True)
    failure_reason = Column(Text, nullable=True)
    retry_count = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
