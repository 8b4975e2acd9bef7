from datetime import datetime
from typing import Any
from uuid import UUID

from sqlalchemy import func as sa_func
from sqlalchemy import or_
from sqlalchemy.orm import Session

from cadence.core.sorting import apply_order_by
from cadence.models.subscription import Subscription, SubscriptionStatus
from cadence.schemas.subscription import SubscriptionFilters

SORTABLE_FIELDS = (
    "created_at",
    "next_billing_date",
    "customer_email",
    "product_title",
    "status",
    "total_spent_cents",
)

MAX_PAGE_SIZE = 1000


class SubscriptionRepository:
    def __init__(self, db: Session):
        self.db = db

    def get_by_id(self, subscription_id: UUID, organization_id: UUID) -> Subscription | None:
        return (
            self.db.query(Subscription)
            .filter(
                Subscription.id == subscription_id,
                Subscription.organization_id == organization_id,
            )
            .first()
        )

    def get_all(
        self, organization_id: UUID, filters: SubscriptionFilters
    ) -> tuple[list[Subscription], int]:
        """Filtered, sorted page of subscriptions plus the unpaged total.

        Unknown statuses, sort columns and directions fall back to
        "no filter" and the default ``created_at desc`` ordering.
        """
        query = self.db.query(Subscription).filter(Subscription.organization_id == organization_id)

        statuses = {s.value for s in SubscriptionStatus}
        if filters.status and filters.status in statuses:
            query = query.filter(Subscription.status == filters.status)
        if filters.product:
            query = query.filter(Subscription.product_id == filters.product)
        if filters.frequency:
            query = query.filter(Subscription.frequency == filters.frequency)
        if filters.search:
            pattern = f"%{filters.search}%"
            query = query.filter(
                or_(
                    Subscription.customer_email.ilike(pattern),
                    Subscription.customer_name.ilike(pattern),
                    Subscription.product_title.ilike(pattern),
                )
            )
        if filters.date_from is not None:
            query = query.filter(Subscription.created_at >= filters.date_from)
        if filters.date_to is not None:
            query = query.filter(Subscription.created_at <= filters.date_to)

        total = query.count()
        query = apply_order_by(
            query,
            Subscription,
            f"{filters.sort}:{filters.dir}",
            allowed_fields=SORTABLE_FIELDS,
        )
        limit = min(max(filters.limit, 1), MAX_PAGE_SIZE)
        offset = max(filters.offset, 0)
        return query.offset(offset).limit(limit).all(), total

    def get_by_status(self, organization_id: UUID, status: str) -> list[Subscription]:
        return (
            self.db.query(Subscription)
            .filter(
                Subscription.organization_id == organization_id,
                Subscription.status == status,
            )
            .all()
        )

    def get_by_customer(self, customer_id: str, organization_id: UUID) -> list[Subscription]:
        return (
            self.db.query(Subscription)
            .filter(
                Subscription.organization_id == organization_id,
                Subscription.customer_id == customer_id,
            )
            .order_by(Subscription.created_at.desc())
            .all()
        )

    def get_due_for_resume(self, organization_id: UUID, now: datetime) -> list[Subscription]:
        """Paused subscriptions whose ``auto_resume_at`` has passed."""
        return (
            self.db.query(Subscription)
            .filter(
                Subscription.organization_id == organization_id,
                Subscription.status == SubscriptionStatus.PAUSED.value,
                Subscription.auto_resume_at.isnot(None),
                Subscription.auto_resume_at <= now,
            )
            .all()
        )

    def count_by_status(self, organization_id: UUID) -> dict[str, int]:
        rows = (
            self.db.query(Subscription.status, sa_func.count(Subscription.id))
            .filter(Subscription.organization_id == organization_id)
            .group_by(Subscription.status)
            .all()
        )
        return {str(status): int(count) for status, count in rows}

    def update_fields(
        self, subscription_id: UUID, organization_id: UUID, values: dict[Any, Any]
    ) -> int:
        """Single guarded UPDATE. Returns the affected row count.

        Does not commit; the caller commits together with its activity row.
        """
        return (
            self.db.query(Subscription)
            .filter(
                Subscription.id == subscription_id,
                Subscription.organization_id == organization_id,
            )
            .update(values, synchronize_session=False)
        )
