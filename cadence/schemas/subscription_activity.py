"""Pydantic schemas for SubscriptionActivity."""

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel


class SubscriptionActivityResponse(BaseModel):
    id: UUID
    subscription_id: UUID
    activity_type: str
    description: str
    metadata_: dict[str, Any]
    actor_type: str
    actor_id: str | None
    actor_name: str | None

    model_config = {"from_attributes": True}

    created_at: datetime
