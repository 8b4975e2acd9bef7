from datetime import datetime
from uuid import UUID

from sqlalchemy import func as sa_func
from sqlalchemy.orm import Session

from cadence.models.save_flow import SaveAttempt, SaveAttemptOutcome
from cadence.models.shared import generate_uuid, utc_now


class SaveAttemptRepository:
    def __init__(self, db: Session):
        self.db = db

    def add(
        self, subscription_id: UUID, flow_id: UUID, organization_id: UUID
    ) -> SaveAttempt:
        """Stage a pending attempt. Does not commit."""
        attempt = SaveAttempt(
            id=generate_uuid(),
            organization_id=organization_id,
            subscription_id=subscription_id,
            flow_id=flow_id,
            outcome=SaveAttemptOutcome.PENDING.value,
            steps_completed=[],
            revenue_saved_cents=0,
            started_at=utc_now(),
        )
        self.db.add(attempt)
        return attempt

    def get_by_id(self, attempt_id: UUID, organization_id: UUID) -> SaveAttempt | None:
        return (
            self.db.query(SaveAttempt)
            .filter(SaveAttempt.id == attempt_id, SaveAttempt.organization_id == organization_id)
            .first()
        )

    def get_by_subscription(
        self, subscription_id: UUID, organization_id: UUID
    ) -> list[SaveAttempt]:
        return (
            self.db.query(SaveAttempt)
            .filter(
                SaveAttempt.subscription_id == subscription_id,
                SaveAttempt.organization_id == organization_id,
            )
            .order_by(SaveAttempt.started_at.desc())
            .all()
        )

    def complete(
        self,
        attempt: SaveAttempt,
        *,
        outcome: str,
        completed_at: datetime,
        offer_accepted: str | None,
        cancel_reason: str | None,
        revenue_saved_cents: int,
    ) -> SaveAttempt:
        """Stamp completion on the attempt. Does not commit."""
        attempt.outcome = outcome  # type: ignore[assignment]
        attempt.completed_at = completed_at  # type: ignore[assignment]
        attempt.offer_accepted = offer_accepted  # type: ignore[assignment]
        attempt.cancel_reason = cancel_reason  # type: ignore[assignment]
        attempt.revenue_saved_cents = revenue_saved_cents  # type: ignore[assignment]
        return attempt

    def count_accepted_offers(self, organization_id: UUID) -> list[tuple[str, int]]:
        """(offer, count) over attempts with an accepted offer, most accepted first."""
        count = sa_func.count(SaveAttempt.id)
        rows = (
            self.db.query(SaveAttempt.offer_accepted, count)
            .filter(
                SaveAttempt.organization_id == organization_id,
                SaveAttempt.offer_accepted.isnot(None),
            )
            .group_by(SaveAttempt.offer_accepted)
            .order_by(count.desc())
            .all()
        )
        return [(str(offer), int(n)) for offer, n in rows]
