"""Subscription record store: reads, lifecycle mutations, settings and MRR.

Every mutation is a single guarded UPDATE plus one activity row, committed
together. The activity is written even when the UPDATE matched no rows and
the affected-row count is returned to the caller.
"""

import logging
from datetime import datetime
from decimal import Decimal
from typing import Any
from uuid import UUID

from sqlalchemy.orm import Session

from cadence.models.shared import ensure_utc, utc_now
from cadence.models.subscription import Subscription, SubscriptionStatus
from cadence.models.subscription_activity import ActivityType, SubscriptionActivity
from cadence.models.subscription_order import SubscriptionOrder
from cadence.models.subscription_settings import SubscriptionSettings
from cadence.repositories.subscription_order_repository import SubscriptionOrderRepository
from cadence.repositories.subscription_repository import SubscriptionRepository
from cadence.repositories.subscription_settings_repository import SubscriptionSettingsRepository
from cadence.schemas.subscription import Actor, SubscriptionFilters
from cadence.schemas.subscription_settings import SubscriptionSettingsUpdate
from cadence.services.activity_service import ActivityService
from cadence.services.billing_dates import monthly_equivalent, round_cents

logger = logging.getLogger(__name__)


class SubscriptionService:
    def __init__(self, db: Session):
        self.db = db
        self.subscription_repo = SubscriptionRepository(db)
        self.order_repo = SubscriptionOrderRepository(db)
        self.settings_repo = SubscriptionSettingsRepository(db)
        self.activity_service = ActivityService(db)

    # --- Reads ---

    def get_subscription(
        self, subscription_id: UUID, organization_id: UUID
    ) -> Subscription | None:
        return self.subscription_repo.get_by_id(subscription_id, organization_id)

    def list_subscriptions(
        self, organization_id: UUID, filters: SubscriptionFilters
    ) -> tuple[list[Subscription], int]:
        return self.subscription_repo.get_all(organization_id, filters)

    def get_subscription_orders(
        self, subscription_id: UUID, organization_id: UUID
    ) -> list[SubscriptionOrder]:
        return self.order_repo.get_by_subscription(subscription_id, organization_id)

    def get_subscription_activity(
        self, subscription_id: UUID, organization_id: UUID
    ) -> list[SubscriptionActivity]:
        return self.activity_service.get_activity(subscription_id, organization_id)

    def log_activity(
        self,
        subscription_id: UUID,
        organization_id: UUID,
        activity_type: str,
        description: str,
        actor: Actor | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> SubscriptionActivity:
        return self.activity_service.log(
            organization_id,
            subscription_id,
            activity_type,
            description,
            actor=actor,
            metadata=metadata,
        )

    # --- Mutations ---

    def _apply(
        self,
        subscription_id: UUID,
        organization_id: UUID,
        values: dict[Any, Any],
        activity_type: str,
        description: str,
        actor: Actor | None,
        metadata: dict[str, Any] | None = None,
        commit: bool = True,
    ) -> int:
        affected = self.subscription_repo.update_fields(subscription_id, organization_id, values)
        self.activity_service.log(
            organization_id,
            subscription_id,
            activity_type,
            description,
            actor=actor,
            metadata=metadata,
            commit=False,
        )
        if commit:
            self.db.commit()
        if affected == 0:
            logger.warning(
                "%s matched no subscription %s (org %s)",
                activity_type,
                subscription_id,
                organization_id,
            )
        else:
            logger.info("Subscription %s %s", subscription_id, activity_type)
        return affected

    def pause(
        self,
        subscription_id: UUID,
        organization_id: UUID,
        reason: str,
        resume_date: datetime | None = None,
        actor: Actor | None = None,
    ) -> int:
        """Pause a subscription. Pausing again re-stamps ``paused_at``."""
        resume_at = ensure_utc(resume_date)
        return self._apply(
            subscription_id,
            organization_id,
            {
                Subscription.status: SubscriptionStatus.PAUSED.value,
                Subscription.pause_reason: reason,
                Subscription.paused_at: utc_now(),
                Subscription.auto_resume_at: resume_at,
            },
            ActivityType.PAUSED.value,
            f"Subscription paused: {reason}",
            actor,
            {"reason": reason, "resume_date": resume_at.isoformat() if resume_at else None},
        )

    def resume(
        self,
        subscription_id: UUID,
        organization_id: UUID,
        actor: Actor | None = None,
    ) -> int:
        """Set a subscription back to active.

        The prior status is not checked: resuming an active subscription is
        a no-op transition and a cancelled one is reactivated. The previous
        status is kept in the activity metadata.
        """
        current = self.subscription_repo.get_by_id(subscription_id, organization_id)
        previous_status = str(current.status) if current is not None else None
        return self._apply(
            subscription_id,
            organization_id,
            {
                Subscription.status: SubscriptionStatus.ACTIVE.value,
                Subscription.pause_reason: None,
                Subscription.paused_at: None,
                Subscription.auto_resume_at: None,
                Subscription.cancel_reason: None,
                Subscription.cancelled_at: None,
            },
            ActivityType.RESUMED.value,
            "Subscription resumed",
            actor,
            {"previous_status": previous_status},
        )

    def cancel(
        self,
        subscription_id: UUID,
        organization_id: UUID,
        reason: str,
        actor: Actor | None = None,
        commit: bool = True,
    ) -> int:
        """Cancel a subscription and clear any pause state.

        With ``commit=False`` the update and its activity are only staged so
        the caller can commit them with its own changes.
        """
        return self._apply(
            subscription_id,
            organization_id,
            {
                Subscription.status: SubscriptionStatus.CANCELLED.value,
                Subscription.cancel_reason: reason,
                Subscription.cancelled_at: utc_now(),
                Subscription.pause_reason: None,
                Subscription.paused_at: None,
                Subscription.auto_resume_at: None,
            },
            ActivityType.CANCELLED.value,
            f"Subscription cancelled: {reason}",
            actor,
            {"reason": reason},
            commit=commit,
        )

    def skip_next_order(
        self,
        subscription_id: UUID,
        organization_id: UUID,
        actor: Actor | None = None,
    ) -> int:
        """Count a skip and skip the earliest scheduled order(s).

        Every scheduled order sharing the earliest ``scheduled_at`` is
        skipped, not just one of them.
        """
        affected = self.subscription_repo.update_fields(
            subscription_id,
            organization_id,
            {Subscription.skipped_orders: Subscription.skipped_orders + 1},
        )
        skipped = self.order_repo.skip_next_scheduled(subscription_id, organization_id)
        self.activity_service.log(
            organization_id,
            subscription_id,
            ActivityType.ORDER_SKIPPED.value,
            "Next order skipped",
            actor=actor,
            metadata={"orders_skipped": skipped},
            commit=False,
        )
        self.db.commit()
        logger.info(
            "Subscription %s skipped %d scheduled order(s)", subscription_id, skipped
        )
        return affected

    def update_frequency(
        self,
        subscription_id: UUID,
        organization_id: UUID,
        frequency: str,
        interval: int = 1,
        actor: Actor | None = None,
    ) -> int:
        """Change billing cadence. ``next_billing_date`` is left untouched."""
        return self._apply(
            subscription_id,
            organization_id,
            {Subscription.frequency: frequency, Subscription.frequency_interval: interval},
            ActivityType.FREQUENCY_CHANGED.value,
            f"Frequency changed to {frequency} (every {interval})",
            actor,
            {"frequency": frequency, "interval": interval},
        )

    def update_quantity(
        self,
        subscription_id: UUID,
        organization_id: UUID,
        quantity: int,
        actor: Actor | None = None,
    ) -> int:
        return self._apply(
            subscription_id,
            organization_id,
            {Subscription.quantity: quantity},
            ActivityType.QUANTITY_CHANGED.value,
            f"Quantity changed to {quantity}",
            actor,
            {"quantity": quantity},
        )

    # --- Settings ---

    def get_settings(self, organization_id: UUID) -> SubscriptionSettings:
        return self.settings_repo.get_or_default(organization_id)

    def update_settings(
        self, organization_id: UUID, data: SubscriptionSettingsUpdate
    ) -> SubscriptionSettings:
        return self.settings_repo.update(organization_id, data)

    # --- Aggregates ---

    def get_status_counts(self, organization_id: UUID) -> dict[str, int]:
        counts = {status.value: 0 for status in SubscriptionStatus}
        counts.update(self.subscription_repo.count_by_status(organization_id))
        counts["all"] = sum(counts.values())
        return counts

    def get_mrr_exact(self, organization_id: UUID) -> Decimal:
        """Unrounded MRR in cents over all active subscriptions."""
        active = self.subscription_repo.get_by_status(
            organization_id, SubscriptionStatus.ACTIVE.value
        )
        total = Decimal(0)
        for sub in active:
            total += monthly_equivalent(
                int(sub.price_cents),
                int(sub.discount_cents),
                int(sub.quantity),
                str(sub.frequency),
                int(sub.frequency_interval),
            )
        return total

    def get_mrr(self, organization_id: UUID) -> int:
        """MRR in cents: summed first, then rounded once."""
        return round_cents(self.get_mrr_exact(organization_id))
