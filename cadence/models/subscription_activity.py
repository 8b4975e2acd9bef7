"""SubscriptionActivity model: append-only trail of subscription changes."""

from enum import Enum

from sqlalchemy import JSON, Column, DateTime, ForeignKey, String, Text, func

from cadence.core.database import Base
from cadence.models.shared import DEFAULT_ORGANIZATION_ID, UUIDType, generate_uuid


class ActorType(str, Enum):
    CUSTOMER = "customer"
    ADMIN = "admin"
    SYSTEM = "system"


class ActivityType(str, Enum):
    PAUSED = "paused"
    RESUMED = "resumed"
    CANCELLED = "cancelled"
    ORDER_SKIPPED = "order_skipped"
    FREQUENCY_CHANGED = "frequency_changed"
    QUANTITY_CHANGED = "quantity_changed"


class SubscriptionActivity(Base):
    """Immutable activity entry. Rows are only ever inserted."""

    __tablename__ = "subscription_activity"

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
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
    activity_type = Column(String(50), nullable=False, index=True)
    description = Column(Text, nullable=False)
    metadata_ = Column("metadata", JSON, nullable=False, default=dict)
    actor_type = Column(String(20), nullable=False, default=ActorType.SYSTEM.value)
    actor_id = Column(String(255), nullable=True)
    actor_name = Column(String(255), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)
