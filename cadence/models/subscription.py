import uuid
from enum import Enum

from sqlalchemy import JSON, Column, DateTime, ForeignKey, Integer, String, Text, func

from cadence.core.database import Base
from cadence.models.shared import DEFAULT_ORGANIZATION_ID, UUIDType


class SubscriptionStatus(str, Enum):
    ACTIVE = "active"
    PAUSED = "paused"
    CANCELLED = "cancelled"
    EXPIRED = "expired"
    PENDING = "pending"


class SubscriptionFrequency(str, Enum):
    WEEKLY = "weekly"
    BIWEEKLY = "biweekly"
    MONTHLY = "monthly"
    BIMONTHLY = "bimonthly"
    QUARTERLY = "quarterly"
    SEMIANNUALLY = "semiannually"
    ANNUALLY = "annually"


class SubscriptionProvider(str, Enum):
    LOOP = "loop"
    CUSTOM = "custom"
    RECHARGE = "recharge"
    BOLD = "bold"


class Subscription(Base):
    __tablename__ = "subscriptions"

    id = Column(UUIDType, primary_key=True, default=lambda: uuid.uuid4())
    organization_id = Column(
        UUIDType,
        ForeignKey("organizations.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
        default=DEFAULT_ORGANIZATION_ID,
    )

    # Provider references
    provider = Column(
        String(20), nullable=False, default=SubscriptionProvider.CUSTOM.value, index=True
    )
    provider_subscription_id = Column(String(255), nullable=True, index=True)
    shopify_subscription_id = Column(String(255), nullable=True)

    # Customer reference (no FK: the customer may not have synced yet)
    customer_id = Column(String(255), nullable=False, index=True)
    customer_email = Column(String(255), nullable=False, index=True)
    customer_name = Column(String(255), nullable=True)

    # Product
    product_id = Column(String(255), nullable=False, index=True)
    variant_id = Column(String(255), nullable=True)
    product_title = Column(String(255), nullable=False, default="")
    variant_title = Column(String(255), nullable=True)
    quantity = Column(Integer, nullable=False, default=1)

    # Pricing, in cents
    price_cents = Column(Integer, nullable=False)
    discount_cents = Column(Integer, nullable=False, default=0)
    discount_type = Column(String(20), nullable=True)
    discount_code = Column(String(255), nullable=True)
    currency = Column(String(3), nullable=False, default="USD")

    # Cadence
    frequency = Column(String(20), nullable=False, default=SubscriptionFrequency.MONTHLY.value)
    frequency_interval = Column(Integer, nullable=False, default=1)

    # Lifecycle
    status = Column(
        String(20), nullable=False, default=SubscriptionStatus.ACTIVE.value, index=True
    )
    pause_reason = Column(Text, nullable=True)
    cancel_reason = Column(Text, nullable=True)
    paused_at = Column(DateTime(timezone=True), nullable=True)
    cancelled_at = Column(DateTime(timezone=True), nullable=True)
    auto_resume_at = Column(DateTime(timezone=True), nullable=True)

    # Billing
    next_billing_date = Column(DateTime(timezone=True), nullable=True, index=True)
    last_billing_date = Column(DateTime(timezone=True), nullable=True)
    billing_anchor_day = Column(Integer, nullable=True)

    # Payment method snapshot (denormalized, not a credential store)
    payment_method_id = Column(String(255), nullable=True)
    payment_method_last4 = Column(String(4), nullable=True)
    payment_method_brand = Column(String(50), nullable=True)
    payment_method_exp_month = Column(Integer, nullable=True)
    payment_method_exp_year = Column(Integer, nullable=True)

    shipping_address = Column(JSON, nullable=True)

    # Lifetime counters, only ever incremented
    total_orders = Column(Integer, nullable=False, default=0)
    total_spent_cents = Column(Integer, nullable=False, default=0)
    skipped_orders = Column(Integer, nullable=False, default=0)

    # Selling plan (weak reference, no cascade)
    selling_plan_id = Column(String(255), nullable=True, index=True)
    selling_plan_name = Column(String(255), nullable=True)

    metadata_ = Column("metadata", JSON, nullable=False, default=dict)
    notes = Column(Text, nullable=True)
    tags = Column(JSON, nullable=False, default=list)

    # Written by the provider sync collaborator
    last_synced_at = Column(DateTime(timezone=True), nullable=True)
    sync_error = Column(Text, nullable=True)

    started_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
