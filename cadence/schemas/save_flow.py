"""SaveFlow and SaveAttempt schemas.

Steps and offers are closed tagged unions discriminated on ``type``. They are
stored as plain JSON and interpreted by the storefront, so only their shape
is validated here.
"""

from datetime import datetime
from typing import Annotated, Any, Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from cadence.models.save_flow import SaveAttemptOutcome, SaveFlowType
from cadence.models.selling_plan import DiscountType
from cadence.models.subscription import SubscriptionFrequency

# -- Steps --


class ShowReasonsStep(BaseModel):
    type: Literal["show_reasons"]
    title: str | None = None
    reasons: list[str] = Field(default_factory=list)
    allow_other: bool = True


class PresentOfferStep(BaseModel):
    type: Literal["present_offer"]
    title: str | None = None
    # Indexes into the flow's ``offers`` list
    offer_indexes: list[int] = Field(default_factory=list)


class ConfirmActionStep(BaseModel):
    type: Literal["confirm_action"]
    title: str | None = None
    message: str | None = None


class SendEmailStep(BaseModel):
    type: Literal["send_email"]
    template: str
    subject: str | None = None


class DelayStep(BaseModel):
    type: Literal["delay"]
    hours: int = Field(ge=0)


SaveFlowStep = Annotated[
    ShowReasonsStep | PresentOfferStep | ConfirmActionStep | SendEmailStep | DelayStep,
    Field(discriminator="type"),
]

# -- Offers --


class DiscountOffer(BaseModel):
    type: Literal["discount"]
    label: str | None = None
    discount_type: DiscountType = DiscountType.PERCENTAGE
    value: float = Field(ge=0)
    duration_cycles: int | None = Field(default=None, ge=1)


class PauseOffer(BaseModel):
    type: Literal["pause"]
    label: str | None = None
    max_days: int = Field(default=30, ge=1)


class SkipOffer(BaseModel):
    type: Literal["skip"]
    label: str | None = None
    orders: int = Field(default=1, ge=1)


class FrequencyChangeOffer(BaseModel):
    type: Literal["frequency_change"]
    label: str | None = None
    frequencies: list[SubscriptionFrequency] = Field(default_factory=list)


class FreeShippingOffer(BaseModel):
    type: Literal["free_shipping"]
    label: str | None = None
    duration_cycles: int | None = Field(default=None, ge=1)


class GiftOffer(BaseModel):
    type: Literal["gift"]
    label: str | None = None
    product_id: str
    variant_id: str | None = None


SaveFlowOffer = Annotated[
    DiscountOffer | PauseOffer | SkipOffer | FrequencyChangeOffer | FreeShippingOffer | GiftOffer,
    Field(discriminator="type"),
]

# -- Trigger conditions --


class TriggerConditionSet(BaseModel):
    """Known condition keys. Unknown keys are accepted and ignored."""

    model_config = ConfigDict(extra="allow")

    min_orders: int | None = None
    max_orders: int | None = None
    product_ids: list[str] | None = None
    frequencies: list[SubscriptionFrequency] | None = None
    min_price_cents: int | None = None


class TriggerConditions(BaseModel):
    event: str | None = None
    conditions: TriggerConditionSet = Field(default_factory=TriggerConditionSet)


# -- Flows --


class SaveFlowCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    description: str | None = None
    flow_type: SaveFlowType = SaveFlowType.CANCELLATION
    trigger_conditions: TriggerConditions = Field(default_factory=TriggerConditions)
    steps: list[SaveFlowStep] = Field(default_factory=list)
    offers: list[SaveFlowOffer] = Field(default_factory=list)
    is_enabled: bool = True
    priority: int = 0


class SaveFlowUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None
    flow_type: SaveFlowType | None = None
    trigger_conditions: TriggerConditions | None = None
    steps: list[SaveFlowStep] | None = None
    offers: list[SaveFlowOffer] | None = None
    is_enabled: bool | None = None
    priority: int | None = None


class SaveFlowResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    description: str | None = None
    flow_type: str
    trigger_conditions: dict[str, Any]
    steps: list[dict[str, Any]]
    offers: list[dict[str, Any]]
    is_enabled: bool
    priority: int
    total_triggered: int
    total_saved: int
    revenue_saved_cents: int
    created_at: datetime
    updated_at: datetime


# -- Attempts --


class SaveAttemptCreate(BaseModel):
    subscription_id: UUID
    flow_id: UUID


class SaveAttemptComplete(BaseModel):
    outcome: SaveAttemptOutcome
    offer_accepted: str | None = Field(default=None, max_length=100)
    cancel_reason: str | None = None
    revenue_saved_cents: int = Field(default=0, ge=0)


class SaveAttemptResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    subscription_id: UUID
    flow_id: UUID
    steps_completed: list[Any]
    offer_presented: str | None = None
    offer_accepted: str | None = None
    outcome: str
    cancel_reason: str | None = None
    revenue_saved_cents: int
    started_at: datetime
    completed_at: datetime | None = None


# -- Analytics --


class FlowStats(BaseModel):
    flow_id: UUID
    flow_name: str
    flow_type: str
    triggered: int
    saved: int
    save_rate: float
    revenue_saved_cents: int


class OfferStats(BaseModel):
    offer: str
    accepted: int
    percentage: float


class SaveFlowAnalytics(BaseModel):
    total_flows: int
    active_flows: int
    total_triggered: int
    total_saved: int
    save_rate: float
    total_revenue_saved_cents: int
    by_flow: list[FlowStats]
    by_offer: list[OfferStats]


class CancelIntentRequest(BaseModel):
    event: str = "cancel_requested"


class CancelIntentResponse(BaseModel):
    """Flow selected for a cancellation intent, if any, and its open attempt."""

    save_flow: SaveFlowResponse | None = None
    attempt: SaveAttemptResponse | None = None
