"""Customer self-service over the record store.

Customers only see their own subscriptions and only perform the actions
their tenant allows. Every change is attributed to the customer.
"""

import logging
from datetime import datetime, timedelta
from uuid import UUID

from sqlalchemy.orm import Session

from cadence.models.shared import ensure_utc, utc_now
from cadence.models.subscription import Subscription, SubscriptionStatus
from cadence.models.subscription_activity import ActorType
from cadence.models.subscription_settings import SubscriptionSettings
from cadence.schemas.save_flow import CancelIntentResponse, SaveAttemptResponse, SaveFlowResponse
from cadence.schemas.subscription import Actor
from cadence.services.save_flow_service import SaveFlowService
from cadence.services.subscription_service import SubscriptionService

logger = logging.getLogger(__name__)

# Skips count against the limit when their order was due within this many days
# or is still in the future.
SKIP_WINDOW_DAYS = 365


class SubscriptionPortalService:
    def __init__(self, db: Session):
        self.db = db
        self.subscription_service = SubscriptionService(db)
        self.save_flow_service = SaveFlowService(db)

    def list_subscriptions(self, customer_id: str, organization_id: UUID) -> list[Subscription]:
        return self.subscription_service.subscription_repo.get_by_customer(
            customer_id, organization_id
        )

    def get_subscription(
        self, subscription_id: UUID, customer_id: str, organization_id: UUID
    ) -> Subscription | None:
        """The subscription, or None when it belongs to another customer."""
        subscription = self.subscription_service.get_subscription(subscription_id, organization_id)
        if subscription is None or subscription.customer_id != customer_id:
            return None
        return subscription

    def _settings(self, organization_id: UUID) -> SubscriptionSettings:
        return self.subscription_service.get_settings(organization_id)

    @staticmethod
    def _require(allowed: bool, action: str) -> None:
        if not allowed:
            raise PermissionError(f"Customers are not allowed to {action}")

    @staticmethod
    def _actor(subscription: Subscription) -> Actor:
        return Actor(
            actor_type=ActorType.CUSTOMER,
            actor_id=str(subscription.customer_id),
            actor_name=subscription.customer_name,  # type: ignore[arg-type]
        )

    def pause(
        self,
        subscription_id: UUID,
        customer_id: str,
        organization_id: UUID,
        reason: str,
        resume_date: datetime | None = None,
    ) -> Subscription | None:
        """Pause on the customer's behalf.

        Without a resume date, a tenant with auto-resume enabled resumes
        after its default pause length. A resume date past the maximum
        pause length is rejected.
        """
        subscription = self.get_subscription(subscription_id, customer_id, organization_id)
        if subscription is None:
            return None
        settings = self._settings(organization_id)
        self._require(bool(settings.allow_customer_pause), "pause subscriptions")
        if subscription.status != SubscriptionStatus.ACTIVE.value:
            raise ValueError("Only active subscriptions can be paused")

        now = utc_now()
        resume_at = ensure_utc(resume_date)
        if resume_at is None and settings.auto_resume_after_pause:
            resume_at = now + timedelta(days=int(settings.default_pause_days))
        if resume_at is not None:
            if resume_at <= now:
                raise ValueError("Resume date must be in the future")
            if resume_at > now + timedelta(days=int(settings.max_pause_days)):
                raise ValueError(
                    f"Subscriptions cannot be paused for more than {settings.max_pause_days} days"
                )

        self.subscription_service.pause(
            subscription_id, organization_id, reason, resume_at, actor=self._actor(subscription)
        )
        return self.subscription_service.get_subscription(subscription_id, organization_id)

    def resume(
        self, subscription_id: UUID, customer_id: str, organization_id: UUID
    ) -> Subscription | None:
        subscription = self.get_subscription(subscription_id, customer_id, organization_id)
        if subscription is None:
            return None
        self._require(
            bool(self._settings(organization_id).allow_customer_pause), "resume subscriptions"
        )
        if subscription.status != SubscriptionStatus.PAUSED.value:
            raise ValueError("Only paused subscriptions can be resumed")
        self.subscription_service.resume(
            subscription_id, organization_id, actor=self._actor(subscription)
        )
        return self.subscription_service.get_subscription(subscription_id, organization_id)

    def skip_next_order(
        self, subscription_id: UUID, customer_id: str, organization_id: UUID
    ) -> Subscription | None:
        subscription = self.get_subscription(subscription_id, customer_id, organization_id)
        if subscription is None:
            return None
        settings = self._settings(organization_id)
        self._require(bool(settings.allow_skip_orders), "skip orders")
        if subscription.status != SubscriptionStatus.ACTIVE.value:
            raise ValueError("Only active subscriptions can skip orders")
        skipped_this_year = self.subscription_service.order_repo.count_skipped_since(
            subscription_id, organization_id, utc_now() - timedelta(days=SKIP_WINDOW_DAYS)
        )
        if skipped_this_year >= settings.max_skips_per_year:
            raise ValueError(f"Skip limit of {settings.max_skips_per_year} per year reached")
        self.subscription_service.skip_next_order(
            subscription_id, organization_id, actor=self._actor(subscription)
        )
        return self.subscription_service.get_subscription(subscription_id, organization_id)

    def update_frequency(
        self,
        subscription_id: UUID,
        customer_id: str,
        organization_id: UUID,
        frequency: str,
        interval: int = 1,
    ) -> Subscription | None:
        subscription = self.get_subscription(subscription_id, customer_id, organization_id)
        if subscription is None:
            return None
        self._require(
            bool(self._settings(organization_id).allow_frequency_changes), "change frequency"
        )
        self.subscription_service.update_frequency(
            subscription_id, organization_id, frequency, interval, actor=self._actor(subscription)
        )
        return self.subscription_service.get_subscription(subscription_id, organization_id)

    def update_quantity(
        self, subscription_id: UUID, customer_id: str, organization_id: UUID, quantity: int
    ) -> Subscription | None:
        subscription = self.get_subscription(subscription_id, customer_id, organization_id)
        if subscription is None:
            return None
        self._require(
            bool(self._settings(organization_id).allow_quantity_changes), "change quantity"
        )
        self.subscription_service.update_quantity(
            subscription_id, organization_id, quantity, actor=self._actor(subscription)
        )
        return self.subscription_service.get_subscription(subscription_id, organization_id)

    def cancel_intent(
        self, subscription_id: UUID, customer_id: str, organization_id: UUID, event: str
    ) -> CancelIntentResponse | None:
        """Select the save flow for a cancellation request and open an attempt.

        The subscription is not changed. When no flow matches, the response
        is empty and the customer may cancel directly.
        """
        subscription = self.get_subscription(subscription_id, customer_id, organization_id)
        if subscription is None:
            return None
        self._require(
            bool(self._settings(organization_id).allow_customer_cancel), "cancel subscriptions"
        )
        flow = self.save_flow_service.select_save_flow(subscription, organization_id, event)
        if flow is None:
            logger.info("No save flow matched %s for subscription %s", event, subscription_id)
            return CancelIntentResponse()
        attempt = self.save_flow_service.create_save_attempt(
            subscription_id,
            flow.id,  # type: ignore[arg-type]
            organization_id,
        )
        return CancelIntentResponse(
            save_flow=SaveFlowResponse.model_validate(flow),
            attempt=SaveAttemptResponse.model_validate(attempt),
        )

    def cancel(
        self, subscription_id: UUID, customer_id: str, organization_id: UUID, reason: str
    ) -> Subscription | None:
        subscription = self.get_subscription(subscription_id, customer_id, organization_id)
        if subscription is None:
            return None
        self._require(
            bool(self._settings(organization_id).allow_customer_cancel), "cancel subscriptions"
        )
        if subscription.status == SubscriptionStatus.CANCELLED.value:
            raise ValueError("Subscription is already cancelled")
        self.subscription_service.cancel(
            subscription_id, organization_id, reason, actor=self._actor(subscription)
        )
        return self.subscription_service.get_subscription(subscription_id, organization_id)
