"""Retention save flows: configuration, selection and the attempt lifecycle."""

import logging
from typing import Any
from uuid import UUID

from sqlalchemy.orm import Session

from cadence.models.save_flow import SaveAttempt, SaveAttemptOutcome, SaveFlow, SaveFlowType
from cadence.models.shared import utc_now
from cadence.models.subscription import Subscription
from cadence.repositories.save_attempt_repository import SaveAttemptRepository
from cadence.repositories.save_flow_repository import SaveFlowRepository
from cadence.repositories.subscription_repository import SubscriptionRepository
from cadence.schemas.save_flow import (
    FlowStats,
    OfferStats,
    SaveAttemptComplete,
    SaveFlowAnalytics,
    SaveFlowCreate,
    SaveFlowUpdate,
    TriggerConditions,
)

logger = logging.getLogger(__name__)


def _rate(part: int, whole: int) -> float:
    return (part / whole) * 100 if whole > 0 else 0.0


def trigger_matches(
    trigger_conditions: dict[str, Any] | None, subscription: Subscription, event: str
) -> bool:
    """Whether a flow's trigger applies to this subscription and event.

    A trigger without an event matches every event. Condition keys that are
    not recognised are ignored.
    """
    trigger = TriggerConditions.model_validate(trigger_conditions or {})
    if trigger.event and trigger.event != event:
        return False

    conditions = trigger.conditions
    if conditions.min_orders is not None and subscription.total_orders < conditions.min_orders:
        return False
    if conditions.max_orders is not None and subscription.total_orders > conditions.max_orders:
        return False
    if conditions.product_ids is not None and subscription.product_id not in conditions.product_ids:
        return False
    if conditions.frequencies is not None:
        allowed = {f.value for f in conditions.frequencies}
        if subscription.frequency not in allowed:
            return False
    if (
        conditions.min_price_cents is not None
        and subscription.price_cents < conditions.min_price_cents
    ):
        return False
    return True


class SaveFlowService:
    def __init__(self, db: Session):
        self.db = db
        self.flow_repo = SaveFlowRepository(db)
        self.attempt_repo = SaveAttemptRepository(db)
        self.subscription_repo = SubscriptionRepository(db)

    # --- Flows ---

    def list_save_flows(
        self, organization_id: UUID, flow_type: str | None = None
    ) -> list[SaveFlow]:
        return self.flow_repo.get_all(organization_id, flow_type=flow_type)

    def get_save_flow(self, flow_id: UUID, organization_id: UUID) -> SaveFlow | None:
        return self.flow_repo.get_by_id(flow_id, organization_id)

    def create_save_flow(self, data: SaveFlowCreate, organization_id: UUID) -> SaveFlow:
        flow = self.flow_repo.create(data, organization_id)
        logger.info("Created save flow %s (%s)", flow.id, flow.name)
        return flow

    def update_save_flow(
        self, flow_id: UUID, data: SaveFlowUpdate, organization_id: UUID
    ) -> SaveFlow | None:
        return self.flow_repo.update(flow_id, data, organization_id)

    def delete_save_flow(self, flow_id: UUID, organization_id: UUID) -> bool:
        return self.flow_repo.delete(flow_id, organization_id)

    def toggle_save_flow(self, flow_id: UUID, organization_id: UUID) -> SaveFlow | None:
        return self.flow_repo.toggle(flow_id, organization_id)

    def select_save_flow(
        self,
        subscription: Subscription,
        organization_id: UUID,
        event: str,
        flow_type: str = SaveFlowType.CANCELLATION.value,
    ) -> SaveFlow | None:
        """Highest-priority enabled flow whose trigger matches, newest first on ties."""
        flows = self.flow_repo.get_all(organization_id, flow_type=flow_type, enabled_only=True)
        for flow in flows:
            if trigger_matches(flow.trigger_conditions, subscription, event):  # type: ignore[arg-type]
                return flow
        return None

    # --- Attempts ---

    def create_save_attempt(
        self, subscription_id: UUID, flow_id: UUID, organization_id: UUID
    ) -> SaveAttempt:
        """Open a pending attempt and count the trigger, in one transaction."""
        if self.flow_repo.get_by_id(flow_id, organization_id) is None:
            raise ValueError(f"Save flow {flow_id} not found")
        if self.subscription_repo.get_by_id(subscription_id, organization_id) is None:
            raise ValueError(f"Subscription {subscription_id} not found")

        attempt = self.attempt_repo.add(subscription_id, flow_id, organization_id)
        self.flow_repo.increment_triggered(flow_id, organization_id)
        self.db.commit()
        self.db.refresh(attempt)
        logger.info("Save attempt %s opened with flow %s", attempt.id, flow_id)
        return attempt

    def complete_save_attempt(
        self, attempt_id: UUID, data: SaveAttemptComplete, organization_id: UUID
    ) -> SaveAttempt | None:
        """Close an attempt.

        Only a ``saved`` outcome adds to the flow's saved count and revenue;
        the attempt update and the counter update share one transaction.
        """
        attempt = self.attempt_repo.get_by_id(attempt_id, organization_id)
        if attempt is None:
            return None
        if attempt.outcome != SaveAttemptOutcome.PENDING.value:
            raise ValueError("Save attempt is already completed")
        if data.outcome == SaveAttemptOutcome.PENDING:
            raise ValueError("A completed save attempt needs a final outcome")

        self.attempt_repo.complete(
            attempt,
            outcome=data.outcome.value,
            completed_at=utc_now(),
            offer_accepted=data.offer_accepted,
            cancel_reason=data.cancel_reason,
            revenue_saved_cents=data.revenue_saved_cents,
        )
        if data.outcome == SaveAttemptOutcome.SAVED:
            self.flow_repo.record_saved(
                attempt.flow_id,  # type: ignore[arg-type]
                organization_id,
                data.revenue_saved_cents,
            )
        self.db.commit()
        self.db.refresh(attempt)
        logger.info("Save attempt %s completed: %s", attempt_id, data.outcome.value)
        return attempt

    def get_save_attempts(
        self, subscription_id: UUID, organization_id: UUID
    ) -> list[SaveAttempt]:
        return self.attempt_repo.get_by_subscription(subscription_id, organization_id)

    # --- Analytics ---

    def get_save_flow_analytics(self, organization_id: UUID) -> SaveFlowAnalytics:
        flows = sorted(
            self.flow_repo.get_all(organization_id),
            key=lambda f: f.total_triggered,
            reverse=True,
        )
        by_flow = [
            FlowStats(
                flow_id=flow.id,
                flow_name=flow.name,
                flow_type=flow.flow_type,
                triggered=flow.total_triggered,
                saved=flow.total_saved,
                save_rate=_rate(flow.total_saved, flow.total_triggered),
                revenue_saved_cents=flow.revenue_saved_cents,
            )
            for flow in flows
        ]
        total_triggered = sum(s.triggered for s in by_flow)
        total_saved = sum(s.saved for s in by_flow)

        offers = self.attempt_repo.count_accepted_offers(organization_id)
        total_accepted = sum(count for _, count in offers)
        by_offer = [
            OfferStats(offer=offer, accepted=count, percentage=_rate(count, total_accepted))
            for offer, count in offers
        ]

        return SaveFlowAnalytics(
            total_flows=len(flows),
            active_flows=sum(1 for flow in flows if flow.is_enabled),
            total_triggered=total_triggered,
            total_saved=total_saved,
            save_rate=_rate(total_saved, total_triggered),
            total_revenue_saved_cents=sum(s.revenue_saved_cents for s in by_flow),
            by_flow=by_flow,
            by_offer=by_offer,
        )
