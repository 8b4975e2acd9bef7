from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict


class SubscriptionOrderResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    subscription_id: UUID
    order_id: str | None = None
    scheduled_at: datetime
    billed_at: datetime | None = None
    amount_cents: int
    currency: str
    status: str
    failure_reason: str | None = None
    retry_count: int
    created_at: datetime
