"""SaveFlow and SaveAttempt models for cancellation retention."""

from enum import Enum

from sqlalchemy import JSON, Boolean, Column, DateTime, ForeignKey, Integer, String, Text, func

from cadence.core.database import Base
from cadence.models.shared import DEFAULT_ORGANIZATION_ID, UUIDType, generate_uuid


class SaveFlowType(str, Enum):
    CANCELLATION = "cancellation"
    WINBACK = "winback"
    AT_RISK = "at_risk"


class SaveAttemptOutcome(str, Enum):
    SAVED = "saved"
    CANCELLED = "cancelled"
    PENDING = "pending"
    EXPIRED = "expired"


class SaveFlow(Base):
    __tablename__ = "subscription_save_flows"

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    organization_id = Column(
        UUIDType,
        ForeignKey("organizations.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
        default=DEFAULT_ORGANIZATION_ID,
    )
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    flow_type = Column(String(20), nullable=False, default=SaveFlowType.CANCELLATION.value)
    trigger_conditions = Column(JSON, nullable=False, default=dict)
    steps = Column(JSON, nullable=False, default=list)
    offers = Column(JSON, nullable=False, default=list)
    is_enabled = Column(Boolean, nullable=False, default=True, index=True)
    priority = Column(Integer, nullable=False, default=0)

    # Running counters, only changed by single-statement increments
    total_triggered = Column(Integer, nullable=False, default=0)
    total_saved = Column(Integer, nullable=False, default=0)
    revenue_saved_cents = Column(Integer, nullable=False, default=0)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())


class SaveAttempt(Base):
    __tablename__ = "subscription_save_attempts"

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
    flow_id = Column(
        UUIDType,
        ForeignKey("subscription_save_flows.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    steps_completed = Column(JSON, nullable=False, default=list)
    offer_presented = Column(String(100), nullable=True)
    offer_accepted = Column(String(100), nullable=True)
    outcome = Column(String(20), nullable=False, default=SaveAttemptOutcome.PENDING.value)
    cancel_reason = Column(Text, nullable=True)
    revenue_saved_cents = Column(Integer, nullable=False, default=0)
    started_at = Column(DateTime(timezone=True), server_default=func.now())
    completed_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
