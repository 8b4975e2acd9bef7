from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from cadence.models.subscription import SubscriptionFrequency
from cadence.models.subscription_activity import ActorType


class Actor(BaseModel):
    """Who performed a mutation. ``actor_type`` is derived when omitted."""

    actor_type: ActorType | None = None
    actor_id: str | None = Field(default=None, max_length=255)
    actor_name: str | None = Field(default=None, max_length=255)


class SubscriptionFilters(BaseModel):
    status: str | None = None
    product: str | None = None
    frequency: str | None = None
    search: str | None = None
    date_from: datetime | None = None
    date_to: datetime | None = None
    sort: str = "created_at"
    dir: str = "desc"
    limit: int = 50
    offset: int = 0


class SubscriptionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    provider: str
    provider_subscription_id: str | None = None
    shopify_subscription_id: str | None = None
    customer_id: str
    customer_email: str
    customer_name: str | None = None
    product_id: str
    variant_id: str | None = None
    product_title: str
    variant_title: str | None = None
    quantity: int
    price_cents: int
    discount_cents: int
    discount_type: str | None = None
    discount_code: str | None = None
    currency: str
    frequency: str
    frequency_interval: int
    status: str
    pause_reason: str | None = None
    cancel_reason: str | None = None
    paused_at: datetime | None = None
    cancelled_at: datetime | None = None
    auto_resume_at: datetime | None = None
    next_billing_date: datetime | None = None
    last_billing_date: datetime | None = None
    billing_anchor_day: int | None = None
    payment_method_id: str | None = None
    payment_method_last4: str | None = None
    payment_method_brand: str | None = None
    payment_method_exp_month: int | None = None
    payment_method_exp_year: int | None = None
    shipping_address: dict[str, Any] | None = None
    total_orders: int
    total_spent_cents: int
    skipped_orders: int
    selling_plan_id: str | None = None
    selling_plan_name: str | None = None
    metadata_: dict[str, Any] = Field(default_factory=dict)
    notes: str | None = None
    tags: list[str] = Field(default_factory=list)
    last_synced_at: datetime | None = None
    sync_error: str | None = None
    started_at: datetime
    created_at: datetime
    updated_at: datetime


class SubscriptionListItem(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    customer_email: str
    customer_name: str | None = None
    product_title: str
    variant_title: str | None = None
    quantity: int
    price_cents: int
    currency: str
    frequency: str
    status: str
    next_billing_date: datetime | None = None
    total_orders: int
    total_spent_cents: int
    created_at: datetime


class PauseRequest(BaseModel):
    reason: str = Field(min_length=1)
    resume_date: datetime | None = None
    actor: Actor | None = None


class CancelRequest(BaseModel):
    reason: str = Field(min_length=1)
    actor: Actor | None = None


class ActorRequest(BaseModel):
    actor: Actor | None = None


class FrequencyUpdateRequest(BaseModel):
    frequency: SubscriptionFrequency
    interval: int = Field(default=1, ge=1, le=12)
    actor: Actor | None = None


class QuantityUpdateRequest(BaseModel):
    quantity: int = Field(ge=1)
    actor: Actor | None = None


class MutationResult(BaseModel):
    """Outcome of a record-store mutation: rows touched by the update."""

    subscription_id: UUID
    affected: int


class StatusCountsResponse(BaseModel):
    active: int = 0
    paused: int = 0
    cancelled: int = 0
    expired: int = 0
    pending: int = 0
    all: int = 0


class MRRResponse(BaseModel):
    mrr_cents: int


class PortalUrlResponse(BaseModel):
    portal_url: str


class PortalPauseRequest(BaseModel):
    reason: str = Field(min_length=1)
    resume_date: datetime | None = None


class PortalCancelRequest(BaseModel):
    reason: str = Field(min_length=1)


class PortalFrequencyRequest(BaseModel):
    frequency: SubscriptionFrequency
    interval: int = Field(default=1, ge=1, le=12)


class PortalQuantityRequest(BaseModel):
    quantity: int = Field(ge=1)
