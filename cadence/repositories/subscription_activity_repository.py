"""Repository for SubscriptionActivity. Entries are insert-only."""

from __future__ import annotations

from typing import Any
from uuid import UUID

from sqlalchemy.orm import Session

from cadence.models.shared import generate_uuid, utc_now
from cadence.models.subscription_activity import SubscriptionActivity

ACTIVITY_LIMIT = 100


class SubscriptionActivityRepository:
    def __init__(self, db: Session):
        self.db = db

    def create(
        self,
        *,
        organization_id: UUID,
        subscription_id: UUID,
        activity_type: str,
        description: str,
        actor_type: str,
        actor_id: str | None = None,
        actor_name: str | None = None,
        metadata: dict[str, Any] | None = None,
        commit: bool = True,
    ) -> SubscriptionActivity:
        activity = SubscriptionActivity(
            id=generate_uuid(),
            organization_id=organization_id,
            subscription_id=subscription_id,
            activity_type=activity_type,
            description=description,
            actor_type=actor_type,
            actor_id=actor_id,
            actor_name=actor_name,
            metadata_=metadata or {},
            created_at=utc_now(),
        )
        self.db.add(activity)
        if commit:
            self.db.commit()
            self.db.refresh(activity)
        return activity

    def get_by_subscription(
        self,
        subscription_id: UUID,
        organization_id: UUID,
        limit: int = ACTIVITY_LIMIT,
    ) -> list[SubscriptionActivity]:
        return (
            self.db.query(SubscriptionActivity)
            .filter(
                SubscriptionActivity.subscription_id == subscription_id,
                SubscriptionActivity.organization_id == organization_id,
            )
            .order_by(SubscriptionActivity.created_at.desc())
            .limit(limit)
            .all()
        )
