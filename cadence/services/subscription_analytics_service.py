"""Revenue, churn, cohort and growth analytics over a tenant's subscriptions."""

import logging
from collections import Counter
from datetime import UTC, date, datetime, timedelta
from decimal import Decimal
from uuid import UUID

from sqlalchemy.orm import Session

from cadence.models.shared import ensure_utc, utc_now
from cadence.models.subscription import SubscriptionStatus
from cadence.repositories.subscription_analytics_repository import (
    SubscriptionAnalyticsRepository,
)
from cadence.schemas.analytics import (
    ChurnAnalysis,
    ChurnReason,
    ChurnTrendPoint,
    CohortData,
    GrowthMetrics,
    GrowthTrendPoint,
    OverviewMetrics,
    ProductChurn,
    ProductSubscriptionData,
    SubscriptionAnalytics,
)
from cadence.schemas.subscription import SubscriptionResponse
from cadence.services.billing_dates import add_months, monthly_equivalent, round_cents
from cadence.services.subscription_service import SubscriptionService

logger = logging.getLogger(__name__)

CHURN_WINDOW_DAYS = 30
STALE_BILLING_DAYS = 60
AT_RISK_LIMIT = 50
UNSPECIFIED_REASON = "Not specified"


def _percent(part: int, whole: int, digits: int = 2) -> float:
    return round(part / whole * 100, digits) if whole > 0 else 0.0


def _day_start(day: date) -> datetime:
    return datetime(day.year, day.month, day.day, tzinfo=UTC)


def _days(start: date, end: date) -> list[date]:
    return [start + timedelta(days=i) for i in range((end - start).days + 1)]


class SubscriptionAnalyticsService:
    def __init__(self, db: Session):
        self.db = db
        self.repo = SubscriptionAnalyticsRepository(db)
        self.subscription_service = SubscriptionService(db)

    def get_overview_metrics(self, organization_id: UUID) -> OverviewMetrics:
        """Headline numbers. Churn and net MRR change cover the last 30 days."""
        now = utc_now()
        window_start = now - timedelta(days=CHURN_WINDOW_DAYS)

        counts = self.subscription_service.get_status_counts(organization_id)
        active = counts[SubscriptionStatus.ACTIVE.value]
        paused = counts[SubscriptionStatus.PAUSED.value]
        total_active = active + paused

        mrr = self.subscription_service.get_mrr_exact(organization_id)
        arpu = mrr / Decimal(total_active) if total_active > 0 else Decimal(0)

        churned = self.repo.count_churned_since(organization_id, window_start)
        active_at_start = self.repo.count_active_at(organization_id, window_start)

        net_change = self.repo.sum_new_value(
            organization_id, window_start
        ) - self.repo.sum_churned_value(organization_id, window_start)

        return OverviewMetrics(
            mrr=round_cents(mrr),
            arr=round_cents(mrr * 12),
            net_mrr_change=net_change,
            active_count=active,
            paused_count=paused,
            cancelled_count=counts[SubscriptionStatus.CANCELLED.value],
            arpu=round_cents(arpu),
            churn_rate=_percent(churned, active_at_start),
        )

    def get_cohort_analysis(self, organization_id: UUID, months: int = 12) -> list[CohortData]:
        """Monthly start cohorts, newest first.

        Each cohort reports the share of its subscribers still not cancelled
        at the cohort month plus its age in whole months. LTV is the average
        monthly value per subscriber times the expected lifetime implied by
        that churn.
        """
        now = utc_now()
        since = add_months(now, -months)
        cohorts: dict[tuple[int, int], list] = {}
        for sub in self.repo.started_since(organization_id, since):
            started = ensure_utc(sub.started_at)
            if started is None:
                continue
            cohorts.setdefault((started.year, started.month), []).append(sub)

        result = []
        for (year, month), subs in sorted(cohorts.items(), reverse=True):
            months_since = (now.year - year) * 12 + (now.month - month)
            horizon = add_months(datetime(year, month, 1, tzinfo=UTC), months_since)
            retained = 0
            value = Decimal(0)
            for sub in subs:
                cancelled_at = ensure_utc(sub.cancelled_at)
                if cancelled_at is None or cancelled_at > horizon:
                    retained += 1
                value += monthly_equivalent(
                    int(sub.price_cents),
                    int(sub.discount_cents),
                    int(sub.quantity),
                    str(sub.frequency),
                    int(sub.frequency_interval),
                )

            retention = _percent(retained, len(subs), digits=1)
            churn_rate = round(100 - retention, 1)
            lifetime_months = Decimal(100) / Decimal(str(max(churn_rate, 1)))
            result.append(
                CohortData(
                    month=f"{year:04d}-{month:02d}",
                    subscribers=len(subs),
                    retention_by_month=[retention],
                    ltv=round_cents(value / len(subs) * lifetime_months),
                    churn_rate=churn_rate,
                )
            )
        return result

    def get_churn_analysis(self, organization_id: UUID, days: int = 90) -> ChurnAnalysis:
        now = utc_now()
        since = now - timedelta(days=days)
        cancelled = self.repo.cancelled_since(organization_id, since)

        per_day: Counter[date] = Counter()
        reasons: Counter[str] = Counter()
        for sub in cancelled:
            cancelled_at = ensure_utc(sub.cancelled_at)
            if cancelled_at is not None:
                per_day[cancelled_at.date()] += 1
            reasons[sub.cancel_reason or UNSPECIFIED_REASON] += 1

        trend = []
        for day in sorted(per_day):
            base = self.repo.count_active_created_by(
                organization_id, _day_start(day) + timedelta(days=1)
            )
            trend.append(
                ChurnTrendPoint(date=day.isoformat(), rate=_percent(per_day[day], base))
            )

        by_reason = [
            ChurnReason(reason=reason, count=count, percentage=_percent(count, len(cancelled)))
            for reason, count in reasons.most_common()
        ]

        product_rows = [
            row for row in self.repo.product_rows(organization_id, since) if row.churned > 0
        ]
        product_rows.sort(key=lambda row: row.churned, reverse=True)
        by_product = [
            ProductChurn(
                product_id=row.product_id,
                product_title=row.product_title,
                churn_rate=_percent(row.churned, row.total),
            )
            for row in product_rows
        ]

        at_risk = self.repo.at_risk(
            organization_id,
            now,
            now - timedelta(days=STALE_BILLING_DAYS),
            limit=AT_RISK_LIMIT,
        )
        return ChurnAnalysis(
            trend=trend,
            by_reason=by_reason,
            by_product=by_product,
            at_risk=[SubscriptionResponse.model_validate(sub) for sub in at_risk],
        )

    def get_growth_metrics(self, organization_id: UUID, days: int = 30) -> GrowthMetrics:
        """New vs churned subscribers per day over the window."""
        now = utc_now()
        since = now - timedelta(days=days)

        new_per_day: Counter[date] = Counter()
        for sub in self.repo.started_since(organization_id, since):
            started = ensure_utc(sub.started_at)
            if started is not None and sub.status == SubscriptionStatus.ACTIVE.value:
                new_per_day[started.date()] += 1

        churned_per_day: Counter[date] = Counter()
        for sub in self.repo.cancelled_since(organization_id, since):
            cancelled_at = ensure_utc(sub.cancelled_at)
            if cancelled_at is not None:
                churned_per_day[cancelled_at.date()] += 1

        trend = [
            GrowthTrendPoint(
                date=day.isoformat(),
                new=new_per_day[day],
                churned=churned_per_day[day],
                net=new_per_day[day] - churned_per_day[day],
            )
            for day in _days(since.date(), now.date())
        ]
        new_total = sum(new_per_day.values())
        churned_total = sum(churned_per_day.values())
        net = new_total - churned_total
        return GrowthMetrics(
            new_subscribers=new_total,
            churned_subscribers=churned_total,
            net_growth=net,
            velocity=round(net / days, 2) if days > 0 else 0.0,
            trend=trend,
        )

    def get_product_breakdown(self, organization_id: UUID) -> list[ProductSubscriptionData]:
        since = utc_now() - timedelta(days=CHURN_WINDOW_DAYS)
        return [
            ProductSubscriptionData(
                product_id=row.product_id,
                product_title=row.product_title,
                active_subscribers=row.active_subscribers,
                revenue=row.revenue,
                churn_rate=_percent(row.churned, row.total),
                new_subscribers_30d=row.new_subscribers,
            )
            for row in self.repo.product_rows(organization_id, since)
        ]

    def get_analytics(self, organization_id: UUID, days: int = 30) -> SubscriptionAnalytics:
        analytics = SubscriptionAnalytics(
            overview=self.get_overview_metrics(organization_id),
            cohorts=self.get_cohort_analysis(organization_id),
            churn_analysis=self.get_churn_analysis(organization_id, days=days),
            growth_metrics=self.get_growth_metrics(organization_id, days=days),
            product_breakdown=self.get_product_breakdown(organization_id),
        )
        logger.info("Computed subscription analytics for org %s over %d days", organization_id, days)
        return analytics
