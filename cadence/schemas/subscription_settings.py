from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from cadence.models.subscription import SubscriptionProvider


class SubscriptionSettingsUpdate(BaseModel):
    primary_provider: SubscriptionProvider | None = None
    billing_provider: SubscriptionProvider | None = None
    default_pause_days: int | None = Field(default=None, ge=1)
    max_pause_days: int | None = Field(default=None, ge=1)
    auto_resume_after_pause: bool | None = None
    max_skips_per_year: int | None = Field(default=None, ge=0)
    cancellation_grace_days: int | None = Field(default=None, ge=0)
    renewal_reminder_days: int | None = Field(default=None, ge=0)
    payment_retry_attempts: int | None = Field(default=None, ge=0)
    payment_retry_interval_hours: int | None = Field(default=None, ge=1)
    allow_customer_cancel: bool | None = None
    allow_customer_pause: bool | None = None
    allow_frequency_changes: bool | None = None
    allow_quantity_changes: bool | None = None
    allow_skip_orders: bool | None = None
    shopify_sync_enabled: bool | None = None
    shopify_webhook_url: str | None = None


class SubscriptionSettingsResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    primary_provider: str
    billing_provider: str | None = None
    default_pause_days: int
    max_pause_days: int
    auto_resume_after_pause: bool
    max_skips_per_year: int
    cancellation_grace_days: int
    renewal_reminder_days: int
    payment_retry_attempts: int
    payment_retry_interval_hours: int
    allow_customer_cancel: bool
    allow_customer_pause: bool
    allow_frequency_changes: bool
    allow_quantity_changes: bool
    allow_skip_orders: bool
    shopify_sync_enabled: bool
    shopify_webhook_url: str | None = None
    updated_at: datetime | None = None
