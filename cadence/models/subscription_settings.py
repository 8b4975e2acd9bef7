from typing import Any

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, Text, func

from cadence.core.database import Base
from cadence.models.shared import DEFAULT_ORGANIZATION_ID, UUIDType

SETTINGS_ROW_ID = "default"

SETTINGS_DEFAULTS: dict[str, Any] = {
    "primary_provider": "custom",
    "billing_provider": None,
    "default_pause_days": 30,
    "max_pause_days": 90,
    "auto_resume_after_pause": True,
    "max_skips_per_year": 4,
    "cancellation_grace_days": 0,
    "renewal_reminder_days": 3,
    "payment_retry_attempts": 3,
    "payment_retry_interval_hours": 24,
    "allow_customer_cancel": True,
    "allow_customer_pause": True,
    "allow_frequency_changes": True,
    "allow_quantity_changes": True,
    "allow_skip_orders": True,
    "shopify_sync_enabled": False,
    "shopify_webhook_url": None,
}


class SubscriptionSettings(Base):
    """Tenant-wide subscription settings.

    One row per organization, always keyed ``id='default'``. The row is
    written lazily on the first settings update; reads before that see
    ``SETTINGS_DEFAULTS``.
    """

    __tablename__ = "subscription_settings"

    id = Column(String(20), primary_key=True, default=SETTINGS_ROW_ID)
    organization_id = Column(
        UUIDType,
        ForeignKey("organizations.id", ondelete="RESTRICT"),
        primary_key=True,
        default=DEFAULT_ORGANIZATION_ID,
    )

    primary_provider = Column(String(20), nullable=False, default="custom")
    billing_provider = Column(String(20), nullable=True)

    # Pause
    default_pause_days = Column(Integer, nullable=False, default=30)
    max_pause_days = Column(Integer, nullable=False, default=90)
    auto_resume_after_pause = Column(Boolean, nullable=False, default=True)

    # Skips and cancellation
    max_skips_per_year = Column(Integer, nullable=False, default=4)
    cancellation_grace_days = Column(Integer, nullable=False, default=0)

    # Billing
    renewal_reminder_days = Column(Integer, nullable=False, default=3)
    payment_retry_attempts = Column(Integer, nullable=False, default=3)
    payment_retry_interval_hours = Column(Integer, nullable=False, default=24)

    # Customer portal permissions
    allow_customer_cancel = Column(Boolean, nullable=False, default=True)
    allow_customer_pause = Column(Boolean, nullable=False, default=True)
    allow_frequency_changes = Column(Boolean, nullable=False, default=True)
    allow_quantity_changes = Column(Boolean, nullable=False, default=True)
    allow_skip_orders = Column(Boolean, nullable=False, default=True)

    shopify_sync_enabled = Column(Boolean, nullable=False, default=False)
    shopify_webhook_url = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
