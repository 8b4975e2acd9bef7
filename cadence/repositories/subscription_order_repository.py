from datetime import datetime
from uuid import UUID

from sqlalchemy import func as sa_func
from sqlalchemy.orm import Session, aliased

from cadence.models.subscription_order import OrderStatus, SubscriptionOrder


class SubscriptionOrderRepository:
    def __init__(self, db: Session):
        self.db = db

    def get_by_subscription(
        self, subscription_id: UUID, organization_id: UUID
    ) -> list[SubscriptionOrder]:
        return (
            self.db.query(SubscriptionOrder)
            .filter(
                SubscriptionOrder.subscription_id == subscription_id,
                SubscriptionOrder.organization_id == organization_id,
            )
            .order_by(SubscriptionOrder.scheduled_at.desc())
            .all()
        )

    def skip_next_scheduled(self, subscription_id: UUID, organization_id: UUID) -> int:
        """Skip every scheduled order sharing the earliest ``scheduled_at``.

        One UPDATE whose filter compares against a MIN() subquery, so ties on
        the earliest date are all skipped. Does not commit.
        """
        other = aliased(SubscriptionOrder)
        earliest = (
            self.db.query(sa_func.min(other.scheduled_at))
            .filter(
                other.subscription_id == subscription_id,
                other.organization_id == organization_id,
                other.status == OrderStatus.SCHEDULED.value,
            )
            .scalar_subquery()
        )
        return (
            self.db.query(SubscriptionOrder)
            .filter(
                SubscriptionOrder.subscription_id == subscription_id,
                SubscriptionOrder.organization_id == organization_id,
                SubscriptionOrder.status == OrderStatus.SCHEDULED.value,
                SubscriptionOrder.scheduled_at == earliest,
            )
            .update({"status": OrderStatus.SKIPPED.value}, synchronize_session=False)
        )

    def count_skipped_since(
        self, subscription_id: UUID, organization_id: UUID, since: datetime
    ) -> int:
        """Skipped orders of a subscription scheduled at or after ``since``."""
        return (
            self.db.query(sa_func.count(SubscriptionOrder.id))
            .filter(
                SubscriptionOrder.subscription_id == subscription_id,
                SubscriptionOrder.organization_id == organization_id,
                SubscriptionOrder.status == OrderStatus.SKIPPED.value,
                SubscriptionOrder.scheduled_at >= since,
            )
            .scalar()
            or 0
        )

    def skip_all_scheduled(self, subscription_id: UUID, organization_id: UUID) -> int:
        """Mark every scheduled order of a subscription skipped. Does not commit."""
        return (
            self.db.query(SubscriptionOrder)
            .filter(
                SubscriptionOrder.subscription_id == subscription_id,
                SubscriptionOrder.organization_id == organization_id,
                SubscriptionOrder.status == OrderStatus.SCHEDULED.value,
            )
            .update({"status": OrderStatus.SKIPPED.value}, synchronize_session=False)
        )
