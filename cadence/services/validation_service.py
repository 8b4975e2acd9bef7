"""Validation engine: runs the integrity checks and manages their issues."""

import logging
from typing import Any
from uuid import UUID

from sqlalchemy.orm import Session

from cadence.models.shared import utc_now
from cadence.models.subscription import Subscription
from cadence.models.subscription_activity import ActorType
from cadence.models.validation import (
    IssueType,
    RunStatus,
    RunType,
    ValidationIssue,
    ValidationRun,
)
from cadence.repositories.subscription_order_repository import SubscriptionOrderRepository
from cadence.repositories.subscription_repository import SubscriptionRepository
from cadence.repositories.subscription_settings_repository import SubscriptionSettingsRepository
from cadence.repositories.validation_repository import ValidationRepository
from cadence.schemas.subscription import Actor
from cadence.schemas.validation import AutoFixResult, ValidationSummary
from cadence.services.billing_dates import advance_billing_date
from cadence.services.subscription_service import SubscriptionService
from cadence.services.validation_checks import CHECKS, CheckContext

logger = logging.getLogger(__name__)

AUTO_CANCEL_REASON = "Auto-cancelled: paused beyond maximum duration"
AUTO_FIX_ACTOR = Actor(actor_type=ActorType.SYSTEM, actor_name="auto-fix")


def _snapshot(issue: ValidationIssue) -> dict[str, Any]:
    return {
        "id": str(issue.id),
        "subscription_id": str(issue.subscription_id),
        "issue_type": issue.issue_type,
        "severity": issue.severity,
        "description": issue.description,
        "suggested_fix": issue.suggested_fix,
    }


class ValidationService:
    def __init__(self, db: Session):
        self.db = db
        self.repo = ValidationRepository(db)
        self.subscription_repo = SubscriptionRepository(db)
        self.order_repo = SubscriptionOrderRepository(db)
        self.settings_repo = SubscriptionSettingsRepository(db)

    def run_validation(
        self,
        organization_id: UUID,
        run_by: str | None = None,
        run_type: str = RunType.MANUAL.value,
    ) -> ValidationRun:
        """Run every check and record the issues found.

        ``total_checked`` is the sum of rows flagged by each check, so a
        subscription caught by two checks counts twice. Issues are committed
        check by check; if a check raises, the run is marked failed with the
        issues recorded so far and the error propagates.
        """
        run = self.repo.create_run(organization_id, run_by, run_type)
        if run is None or run.id is None:
            raise RuntimeError("Failed to create validation run")

        settings = self.settings_repo.get_or_default(organization_id)
        context = CheckContext(now=utc_now(), max_pause_days=int(settings.max_pause_days))

        issues: list[dict[str, Any]] = []
        total_checked = 0
        try:
            for check in CHECKS:
                result = check.run(self.db, organization_id, context)
                total_checked += result.examined
                for finding in result.findings:
                    issue = self.repo.add_issue(
                        organization_id=organization_id,
                        validation_id=run.id,  # type: ignore[arg-type]
                        subscription_id=finding.subscription_id,
                        issue_type=check.issue_type.value,
                        severity=check.severity.value,
                        description=finding.description,
                        suggested_fix=check.suggested_fix,
                    )
                    issues.append(_snapshot(issue))
                self.db.commit()
        except Exception:
            self.db.rollback()
            logger.exception("Validation run %s failed", run.id)
            committed = self.repo.get_issues(run.id, organization_id)  # type: ignore[arg-type]
            self.repo.finish_run(
                run,
                status=RunStatus.FAILED.value,
                total_checked=total_checked,
                issues_found=len(committed),
                results=[_snapshot(issue) for issue in committed],
            )
            raise

        run = self.repo.finish_run(
            run,
            status=RunStatus.COMPLETED.value,
            total_checked=total_checked,
            issues_found=len(issues),
            results=issues,
        )
        logger.info(
            "Validation run %s completed: %d issues, %d checked",
            run.id,
            len(issues),
            total_checked,
        )
        return run

    def get_validation_history(
        self, organization_id: UUID, limit: int = 20
    ) -> list[ValidationRun]:
        return self.repo.get_history(organization_id, limit=limit)

    def get_validation_run(self, validation_id: UUID, organization_id: UUID) -> ValidationRun | None:
        return self.repo.get_run(validation_id, organization_id)

    def get_validation_issues(
        self, validation_id: UUID, organization_id: UUID
    ) -> list[ValidationIssue]:
        return self.repo.get_issues(validation_id, organization_id)

    def get_open_issues(self, organization_id: UUID) -> list[ValidationIssue]:
        return self.repo.get_open_issues(organization_id)

    def mark_issue_fixed(
        self, issue_id: UUID, organization_id: UUID, fixed_by: str
    ) -> ValidationIssue | None:
        """Flag an issue fixed and count it on its run, in one transaction."""
        issue = self.repo.get_issue(issue_id, organization_id)
        if issue is None:
            return None
        if issue.is_fixed:
            return issue
        self.repo.mark_fixed(issue, fixed_by, utc_now())
        self.repo.increment_fixed(issue.validation_id, organization_id)  # type: ignore[arg-type]
        self.db.commit()
        self.db.refresh(issue)
        return issue

    def auto_fix_issues(
        self, issue_ids: list[UUID], organization_id: UUID, fixed_by: str = "system"
    ) -> AutoFixResult:
        """Apply the automatic remedy for each issue that has one.

        Only missing billing dates, cancelled subscriptions with scheduled
        orders and over-long pauses can be fixed. Every other issue is
        reported as failed and its subscription is left alone. A failure on
        one issue never stops the batch. Each fix, its issue flag and the
        run counter commit together.
        """
        result = AutoFixResult()
        for issue_id in issue_ids:
            issue = self.repo.get_issue(issue_id, organization_id)
            if issue is None:
                result.errors.append(f"Issue {issue_id} not found")
                result.failed += 1
                continue
            if issue.is_fixed:
                result.errors.append(f"Issue {issue_id} is already fixed")
                result.failed += 1
                continue

            fixer = self._fixers.get(str(issue.issue_type))
            if fixer is None:
                logger.warning("Issue %s of type %s cannot be auto-fixed", issue_id, issue.issue_type)
                result.errors.append(f"Issue type {issue.issue_type} cannot be auto-fixed")
                result.failed += 1
                continue

            try:
                fixer(self, issue.subscription_id, organization_id)
                self.repo.mark_fixed(issue, fixed_by, utc_now())
                self.repo.increment_fixed(issue.validation_id, organization_id)  # type: ignore[arg-type]
                self.db.commit()
            except Exception as e:
                self.db.rollback()
                logger.exception("Failed to auto-fix issue %s", issue_id)
                result.errors.append(f"Failed to fix issue {issue_id}: {e}")
                result.failed += 1
                continue
            result.fixed += 1

        logger.info("Auto-fix: %d fixed, %d failed", result.fixed, result.failed)
        return result

    def _fix_missing_billing_date(self, subscription_id: UUID, organization_id: UUID) -> None:
        subscription = self.subscription_repo.get_by_id(subscription_id, organization_id)
        if subscription is None:
            raise LookupError(f"subscription {subscription_id} not found")
        next_date = advance_billing_date(
            utc_now(), str(subscription.frequency), int(subscription.frequency_interval)
        )
        self.subscription_repo.update_fields(
            subscription_id, organization_id, {Subscription.next_billing_date: next_date}
        )

    def _fix_cancelled_with_pending_orders(
        self, subscription_id: UUID, organization_id: UUID
    ) -> None:
        self.order_repo.skip_all_scheduled(subscription_id, organization_id)

    def _fix_paused_too_long(self, subscription_id: UUID, organization_id: UUID) -> None:
        affected = SubscriptionService(self.db).cancel(
            subscription_id,
            organization_id,
            AUTO_CANCEL_REASON,
            actor=AUTO_FIX_ACTOR,
            commit=False,
        )
        if affected == 0:
            raise LookupError(f"subscription {subscription_id} not found")

    _fixers = {
        IssueType.MISSING_BILLING_DATE.value: _fix_missing_billing_date,
        IssueType.CANCELLED_WITH_PENDING_ORDERS.value: _fix_cancelled_with_pending_orders,
        IssueType.PAUSED_TOO_LONG.value: _fix_paused_too_long,
    }

    def get_validation_summary(self, organization_id: UUID) -> ValidationSummary:
        latest = self.repo.get_latest_run(organization_id)
        counts = self.repo.count_open_by_severity(organization_id)
        return ValidationSummary(
            last_run_at=latest.run_at if latest else None,
            last_run_status=latest.status if latest else None,
            open_issues=sum(counts.values()),
            errors=counts.get("error", 0),
            warnings=counts.get("warning", 0),
            info=counts.get("info", 0),
        )
