from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from sqlalchemy import and_, case, or_
from sqlalchemy import func as sa_func
from sqlalchemy.orm import Session

from cadence.models.subscription import Subscription, SubscriptionStatus

NET_VALUE = (Subscription.price_cents - Subscription.discount_cents) * Subscription.quantity


@dataclass
class ProductRow:
    product_id: str
    product_title: str
    active_subscribers: int
    revenue: int
    churned: int
    total: int
    new_subscribers: int


class SubscriptionAnalyticsRepository:
    def __init__(self, db: Session):
        self.db = db

    def count_churned_since(self, organization_id: UUID, since: datetime) -> int:
        return (
            self.db.query(sa_func.count(Subscription.id))
            .filter(
                Subscription.organization_id == organization_id,
                Subscription.cancelled_at.isnot(None),
                Subscription.cancelled_at >= since,
            )
            .scalar()
            or 0
        )

    def count_active_at(self, organization_id: UUID, moment: datetime) -> int:
        """Subscriptions created before ``moment`` and not cancelled by then."""
        return (
            self.db.query(sa_func.count(Subscription.id))
            .filter(
                Subscription.organization_id == organization_id,
                Subscription.created_at < moment,
                or_(Subscription.cancelled_at.is_(None), Subscription.cancelled_at >= moment),
            )
            .scalar()
            or 0
        )

    def count_active_created_by(self, organization_id: UUID, moment: datetime) -> int:
        """Currently active subscriptions that already existed at ``moment``."""
        return (
            self.db.query(sa_func.count(Subscription.id))
            .filter(
                Subscription.organization_id == organization_id,
                Subscription.status == SubscriptionStatus.ACTIVE.value,
                Subscription.created_at <= moment,
            )
            .scalar()
            or 0
        )

    def sum_churned_value(self, organization_id: UUID, since: datetime) -> int:
        result = (
            self.db.query(sa_func.coalesce(sa_func.sum(NET_VALUE), 0))
            .filter(
                Subscription.organization_id == organization_id,
                Subscription.cancelled_at.isnot(None),
                Subscription.cancelled_at >= since,
            )
            .scalar()
            or 0
        )
        return int(result)

    def sum_new_value(self, organization_id: UUID, since: datetime) -> int:
        result = (
            self.db.query(sa_func.coalesce(sa_func.sum(NET_VALUE), 0))
            .filter(
                Subscription.organization_id == organization_id,
                Subscription.status == SubscriptionStatus.ACTIVE.value,
                Subscription.started_at >= since,
            )
            .scalar()
            or 0
        )
        return int(result)

    def started_since(self, organization_id: UUID, since: datetime) -> list[Subscription]:
        return (
            self.db.query(Subscription)
            .filter(
                Subscription.organization_id == organization_id,
                Subscription.started_at >= since,
            )
            .all()
        )

    def cancelled_since(self, organization_id: UUID, since: datetime) -> list[Subscription]:
        return (
            self.db.query(Subscription)
            .filter(
                Subscription.organization_id == organization_id,
                Subscription.cancelled_at.isnot(None),
                Subscription.cancelled_at >= since,
            )
            .order_by(Subscription.cancelled_at.asc())
            .all()
        )

    def at_risk(self, organization_id: UUID, now: datetime, stale_before: datetime,
                limit: int = 50) -> list[Subscription]:
        """Active subscriptions that are overdue, stale or failing to sync."""
        return (
            self.db.query(Subscription)
            .filter(
                Subscription.organization_id == organization_id,
                Subscription.status == SubscriptionStatus.ACTIVE.value,
                or_(
                    Subscription.next_billing_date < now,
                    Subscription.last_billing_date < stale_before,
                    Subscription.sync_error.isnot(None),
                ),
            )
            .order_by(Subscription.next_billing_date.asc().nullslast())
            .limit(limit)
            .all()
        )

    def product_rows(self, organization_id: UUID, since: datetime) -> list[ProductRow]:
        """Per-product counts; ``churned`` and ``total`` cover the window since ``since``."""
        is_active = Subscription.status == SubscriptionStatus.ACTIVE.value
        churned_recently = and_(
            Subscription.cancelled_at.isnot(None), Subscription.cancelled_at >= since
        )
        active_count = sa_func.sum(case((is_active, 1), else_=0))
        rows = (
            self.db.query(
                Subscription.product_id,
                Subscription.product_title,
                active_count.label("active"),
                sa_func.sum(case((is_active, NET_VALUE), else_=0)).label("revenue"),
                sa_func.sum(case((churned_recently, 1), else_=0)).label("churned"),
                sa_func.sum(case((or_(is_active, churned_recently), 1), else_=0)).label("total"),
                sa_func.sum(
                    case((and_(is_active, Subscription.started_at >= since), 1), else_=0)
                ).label("new"),
            )
            .filter(Subscription.organization_id == organization_id)
            .group_by(Subscription.product_id, Subscription.product_title)
            .order_by(active_count.desc())
            .all()
        )
        return [
            ProductRow(
                product_id=row.product_id,
                product_title=row.product_title,
                active_subscribers=int(row.active or 0),
                revenue=int(row.revenue or 0),
                churned=int(row.churned or 0),
                total=int(row.total or 0),
                new_subscribers=int(row.new or 0),
            )
            for row in rows
        ]
