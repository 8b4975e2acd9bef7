from enum import Enum

from sqlalchemy import JSON, Boolean, Column, DateTime, ForeignKey, Integer, Numeric, String, Text, func

from cadence.core.database import Base
from cadence.models.shared import DEFAULT_ORGANIZATION_ID, UUIDType, generate_uuid


class DiscountType(str, Enum):
    PERCENTAGE = "percentage"
    FIXED = "fixed"
    # Replaces the price outright rather than discounting it
    PRICE_OVERRIDE = "price"


class SellingPlan(Base):
    """Billing/delivery cadence plus discount, attachable to products."""

    __tablename__ = "subscription_selling_plans"

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    organization_id = Column(
        UUIDType,
        ForeignKey("organizations.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
        default=DEFAULT_ORGANIZATION_ID,
    )
    shopify_selling_plan_id = Column(String(255), nullable=True)
    shopify_selling_plan_group_id = Column(String(255), nullable=True)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)

    billing_frequency = Column(String(20), nullable=False)
    billing_interval = Column(Integer, nullable=False, default=1)
    delivery_frequency = Column(String(20), nullable=True)
    delivery_interval = Column(Integer, nullable=True)

    discount_type = Column(String(20), nullable=True)
    discount_value = Column(Numeric(12, 2), nullable=True)

    trial_days = Column(Integer, nullable=False, default=0)
    min_cycles = Column(Integer, nullable=True)
    max_cycles = Column(Integer, nullable=True)

    product_ids = Column(JSON, nullable=False, default=list)
    is_active = Column(Boolean, nullable=False, default=True, index=True)

    last_synced_at = Column(DateTime(timezone=True), nullable=True)
    sync_error = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
