"""ValidationRun and ValidationIssue models."""

from enum import Enum

from sqlalchemy import JSON, Boolean, Column, DateTime, ForeignKey, Integer, String, Text, func

from cadence.core.database import Base
from cadence.models.shared import DEFAULT_ORGANIZATION_ID, UUIDType, generate_uuid


class RunStatus(str, Enum):
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


class RunType(str, Enum):
    MANUAL = "manual"
    SCHEDULED = "scheduled"


class Severity(str, Enum):
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


class IssueType(str, Enum):
    ORPHANED_SUBSCRIPTION = "orphaned_subscription"
    MISSING_PRODUCT = "missing_product"
    MISSING_BILLING_DATE = "missing_billing_date"
    CANCELLED_WITH_PENDING_ORDERS = "cancelled_with_pending_orders"
    PAUSED_TOO_LONG = "paused_too_long"
    PAYMENT_EXPIRING = "payment_expiring"
    DUPLICATE_SUBSCRIPTION = "duplicate_subscription"
    SYNC_ERROR = "sync_error"
    INVALID_FREQUENCY = "invalid_frequency"
    INVALID_AMOUNT = "invalid_amount"


class ValidationRun(Base):
    __tablename__ = "subscription_validations"

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    organization_id = Column(
        UUIDType,
        ForeignKey("organizations.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
        default=DEFAULT_ORGANIZATION_ID,
    )
    run_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)
    run_by = Column(String(255), nullable=True)
    run_type = Column(String(20), nullable=False, default=RunType.MANUAL.value)
    total_checked = Column(Integer, nullable=False, default=0)
    issues_found = Column(Integer, nullable=False, default=0)
    issues_fixed = Column(Integer, nullable=False, default=0)
    # Snapshot of the issues found by this run
    results = Column(JSON, nullable=False, default=list)
    status = Column(String(20), nullable=False, default=RunStatus.RUNNING.value)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class ValidationIssue(Base):
    __tablename__ = "subscription_validation_issues"

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    organization_id = Column(
        UUIDType,
        ForeignKey("organizations.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
        default=DEFAULT_ORGANIZATION_ID,
    )
    validation_id = Column(
        UUIDType,
        ForeignKey("subscription_validations.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    subscription_id = Column(
        UUIDType,
        ForeignKey("subscriptions.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    issue_type = Column(String(50), nullable=False, index=True)
    severity = Column(String(20), nullable=False)
    description = Column(Text, nullable=False)
    suggested_fix = Column(Text, nullable=True)
    is_fixed = Column(Boolean, nullable=False, default=False, index=True)
    fixed_at = Column(DateTime(timezone=True), nullable=True)
    fixed_by = Column(String(255), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
