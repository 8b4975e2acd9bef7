import logging
from typing import Any
from uuid import UUID

from arq import cron
from sqlalchemy.orm import Session

from cadence.core.config import settings
from cadence.core.database import SessionLocal, with_tenant
from cadence.models.shared import utc_now
from cadence.models.subscription_activity import ActorType
from cadence.models.validation import RunType, ValidationRun
from cadence.repositories.organization_repository import OrganizationRepository
from cadence.repositories.subscription_repository import SubscriptionRepository
from cadence.schemas.subscription import Actor
from cadence.services.subscription_service import SubscriptionService
from cadence.services.validation_service import ValidationService
from cadence.tasks import redis_settings

logger = logging.getLogger(__name__)

SYSTEM_ACTOR = Actor(actor_type=ActorType.SYSTEM, actor_name="auto-resume")


def _organization_ids() -> list[UUID]:
    db = SessionLocal()
    try:
        return OrganizationRepository(db).get_ids()
    finally:
        db.close()


def _validate_tenant(db: Session) -> ValidationRun:
    return ValidationService(db).run_validation(
        db.info["organization_id"], run_by="scheduler", run_type=RunType.SCHEDULED.value
    )


def _resume_due(db: Session) -> int:
    organization_id = db.info["organization_id"]
    service = SubscriptionService(db)
    if not service.get_settings(organization_id).auto_resume_after_pause:
        return 0
    count = 0
    for subscription in SubscriptionRepository(db).get_due_for_resume(organization_id, utc_now()):
        try:
            count += service.resume(
                subscription.id,  # type: ignore[arg-type]
                organization_id,
                actor=SYSTEM_ACTOR,
            )
        except Exception:
            db.rollback()
            logger.exception("Failed to auto-resume subscription %s", subscription.id)
    return count


async def run_scheduled_validation_task(ctx: dict[str, Any]) -> int:
    """Background task: run the integrity checks for every organization.

    One organization failing is logged and does not stop the others.
    Runs daily at VALIDATION_CRON_HOUR.
    """
    count = 0
    for organization_id in _organization_ids():
        try:
            run = with_tenant(organization_id, _validate_tenant)
        except Exception:
            logger.exception("Scheduled validation failed for org %s", organization_id)
            continue
        logger.info(
            "Scheduled validation for org %s found %d issues",
            organization_id,
            run.issues_found,
        )
        count += 1
    return count


async def auto_resume_paused_task(ctx: dict[str, Any]) -> int:
    """Background task: resume paused subscriptions whose resume date has passed.

    Only organizations with ``auto_resume_after_pause`` enabled are
    processed. Runs hourly.
    """
    if not settings.AUTO_RESUME_ENABLED:
        return 0

    count = 0
    for organization_id in _organization_ids():
        count += with_tenant(organization_id, _resume_due)

    if count > 0:
        logger.info("Auto-resumed %d paused subscriptions", count)
    return count


class WorkerSettings:
    functions = [
        run_scheduled_validation_task,
        auto_resume_paused_task,
    ]
    cron_jobs = [
        cron(run_scheduled_validation_task, hour=settings.VALIDATION_CRON_HOUR, minute=0),
        cron(auto_resume_paused_task, minute={0}),  # hourly
    ]
    redis_settings = redis_settings
