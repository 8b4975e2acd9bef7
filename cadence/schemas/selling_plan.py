from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from cadence.models.selling_plan import DiscountType
from cadence.models.subscription import SubscriptionFrequency


class SellingPlanCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    description: str | None = None
    billing_frequency: SubscriptionFrequency
    billing_interval: int = Field(default=1, ge=1, le=12)
    delivery_frequency: SubscriptionFrequency | None = None
    delivery_interval: int | None = Field(default=None, ge=1, le=12)
    discount_type: DiscountType | None = None
    discount_value: Decimal | None = None
    trial_days: int = Field(default=0, ge=0)
    min_cycles: int | None = Field(default=None, ge=1)
    max_cycles: int | None = Field(default=None, ge=1)
    product_ids: list[str] = Field(default_factory=list)
    is_active: bool = True
    shopify_selling_plan_id: str | None = None
    shopify_selling_plan_group_id: str | None = None


class SellingPlanUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None
    billing_frequency: SubscriptionFrequency | None = None
    billing_interval: int | None = Field(default=None, ge=1, le=12)
    delivery_frequency: SubscriptionFrequency | None = None
    delivery_interval: int | None = Field(default=None, ge=1, le=12)
    discount_type: DiscountType | None = None
    discount_value: Decimal | None = None
    trial_days: int | None = Field(default=None, ge=0)
    min_cycles: int | None = Field(default=None, ge=1)
    max_cycles: int | None = Field(default=None, ge=1)
    product_ids: list[str] | None = None
    is_active: bool | None = None


class SellingPlanResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    description: str | None = None
    billing_frequency: str
    billing_interval: int
    delivery_frequency: str | None = None
    delivery_interval: int | None = None
    discount_type: str | None = None
    discount_value: Decimal | None = None
    trial_days: int
    min_cycles: int | None = None
    max_cycles: int | None = None
    product_ids: list[str]
    is_active: bool
    shopify_selling_plan_id: str | None = None
    shopify_selling_plan_group_id: str | None = None
    last_synced_at: datetime | None = None
    sync_error: str | None = None
    created_at: datetime
    updated_at: datetime


class PricePreviewRequest(BaseModel):
    price_cents: int = Field(ge=0)
    discount_type: DiscountType | None = None
    discount_value: Decimal = Decimal(0)


class PricePreviewResponse(BaseModel):
    price_cents: int
    discounted_price_cents: int
