"""Activity service for recording subscription changes."""

from typing import Any
from uuid import UUID

from sqlalchemy.orm import Session

from cadence.models.subscription_activity import ActorType, SubscriptionActivity
from cadence.repositories.subscription_activity_repository import (
    ACTIVITY_LIMIT,
    SubscriptionActivityRepository,
)
from cadence.schemas.subscription import Actor


def resolve_actor(actor: Actor | None) -> tuple[str, str | None, str | None]:
    """Return (actor_type, actor_id, actor_name) for an optional actor.

    Without an explicit type, an actor with an id is an admin and anything
    else is the system.
    """
    if actor is None:
        return ActorType.SYSTEM.value, None, None
    if actor.actor_type is not None:
        actor_type = actor.actor_type.value
    elif actor.actor_id:
        actor_type = ActorType.ADMIN.value
    else:
        actor_type = ActorType.SYSTEM.value
    return actor_type, actor.actor_id, actor.actor_name


class ActivityService:
    """Service for the append-only subscription activity trail."""

    def __init__(self, db: Session):
        self.repo = SubscriptionActivityRepository(db)

    def log(
        self,
        organization_id: UUID,
        subscription_id: UUID,
        activity_type: str,
        description: str,
        actor: Actor | None = None,
        metadata: dict[str, Any] | None = None,
        commit: bool = True,
    ) -> SubscriptionActivity:
        """Append one activity entry.

        With ``commit=False`` the entry is only staged so that it lands in
        the same transaction as the change it describes.
        """
        actor_type, actor_id, actor_name = resolve_actor(actor)
        return self.repo.create(
            organization_id=organization_id,
            subscription_id=subscription_id,
            activity_type=activity_type,
            description=description,
            actor_type=actor_type,
            actor_id=actor_id,
            actor_name=actor_name,
            metadata=metadata,
            commit=commit,
        )

    def get_activity(
        self, subscription_id: UUID, organization_id: UUID, limit: int = ACTIVITY_LIMIT
    ) -> list[SubscriptionActivity]:
        return self.repo.get_by_subscription(subscription_id, organization_id, limit=limit)
