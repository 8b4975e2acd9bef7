"""Repository for validation runs and their issues."""

from datetime import datetime
from typing import Any
from uuid import UUID

from sqlalchemy import case
from sqlalchemy import func as sa_func
from sqlalchemy.orm import Session

from cadence.models.shared import generate_uuid, utc_now
from cadence.models.validation import RunStatus, Severity, ValidationIssue, ValidationRun

SEVERITY_ORDER = case(
    (ValidationIssue.severity == Severity.ERROR.value, 0),
    (ValidationIssue.severity == Severity.WARNING.value, 1),
    else_=2,
)


class ValidationRepository:
    def __init__(self, db: Session):
        self.db = db

    def create_run(
        self, organization_id: UUID, run_by: str | None, run_type: str
    ) -> ValidationRun:
        run = ValidationRun(
            id=generate_uuid(),
            organization_id=organization_id,
            run_at=utc_now(),
            run_by=run_by,
            run_type=run_type,
            status=RunStatus.RUNNING.value,
            results=[],
        )
        self.db.add(run)
        self.db.commit()
        self.db.refresh(run)
        return run

    def get_run(self, run_id: UUID, organization_id: UUID) -> ValidationRun | None:
        return (
            self.db.query(ValidationRun)
            .filter(ValidationRun.id == run_id, ValidationRun.organization_id == organization_id)
            .first()
        )

    def get_latest_run(self, organization_id: UUID) -> ValidationRun | None:
        return (
            self.db.query(ValidationRun)
            .filter(ValidationRun.organization_id == organization_id)
            .order_by(ValidationRun.run_at.desc())
            .first()
        )

    def get_history(self, organization_id: UUID, limit: int = 20) -> list[ValidationRun]:
        return (
            self.db.query(ValidationRun)
            .filter(ValidationRun.organization_id == organization_id)
            .order_by(ValidationRun.run_at.desc())
            .limit(limit)
            .all()
        )

    def finish_run(
        self,
        run: ValidationRun,
        *,
        status: str,
        total_checked: int,
        issues_found: int,
        results: list[dict[str, Any]],
    ) -> ValidationRun:
        run.status = status  # type: ignore[assignment]
        run.total_checked = total_checked  # type: ignore[assignment]
        run.issues_found = issues_found  # type: ignore[assignment]
        run.results = results  # type: ignore[assignment]
        self.db.commit()
        self.db.refresh(run)
        return run

    def add_issue(
        self,
        *,
        organization_id: UUID,
        validation_id: UUID,
        subscription_id: UUID,
        issue_type: str,
        severity: str,
        description: str,
        suggested_fix: str | None,
    ) -> ValidationIssue:
        """Stage an issue. Does not commit."""
        issue = ValidationIssue(
            id=generate_uuid(),
            organization_id=organization_id,
            validation_id=validation_id,
            subscription_id=subscription_id,
            issue_type=issue_type,
            severity=severity,
            description=description,
            suggested_fix=suggested_fix,
            is_fixed=False,
            created_at=utc_now(),
        )
        self.db.add(issue)
        return issue

    def get_issue(self, issue_id: UUID, organization_id: UUID) -> ValidationIssue | None:
        return (
            self.db.query(ValidationIssue)
            .filter(
                ValidationIssue.id == issue_id,
                ValidationIssue.organization_id == organization_id,
            )
            .first()
        )

    def get_issues(self, validation_id: UUID, organization_id: UUID) -> list[ValidationIssue]:
        """Issues of one run, errors first, then warnings, then info; newest first."""
        return (
            self.db.query(ValidationIssue)
            .filter(
                ValidationIssue.validation_id == validation_id,
                ValidationIssue.organization_id == organization_id,
            )
            .order_by(SEVERITY_ORDER, ValidationIssue.created_at.desc())
            .all()
        )

    def get_open_issues(self, organization_id: UUID) -> list[ValidationIssue]:
        return (
            self.db.query(ValidationIssue)
            .filter(
                ValidationIssue.organization_id == organization_id,
                ValidationIssue.is_fixed == False,  # noqa: E712
            )
            .order_by(SEVERITY_ORDER, ValidationIssue.created_at.desc())
            .all()
        )

    def count_open_by_severity(self, organization_id: UUID) -> dict[str, int]:
        rows = (
            self.db.query(ValidationIssue.severity, sa_func.count(ValidationIssue.id))
            .filter(
                ValidationIssue.organization_id == organization_id,
                ValidationIssue.is_fixed == False,  # noqa: E712
            )
            .group_by(ValidationIssue.severity)
            .all()
        )
        return {str(severity): int(count) for severity, count in rows}

    def mark_fixed(self, issue: ValidationIssue, fixed_by: str, fixed_at: datetime) -> None:
        """Flag an issue fixed. Does not commit."""
        issue.is_fixed = True  # type: ignore[assignment]
        issue.fixed_at = fixed_at  # type: ignore[assignment]
        issue.fixed_by = fixed_by  # type: ignore[assignment]

    def increment_fixed(self, validation_id: UUID, organization_id: UUID) -> int:
        """Atomic ``issues_fixed + 1`` on the owning run. Does not commit."""
        return (
            self.db.query(ValidationRun)
            .filter(
                ValidationRun.id == validation_id,
                ValidationRun.organization_id == organization_id,
            )
            .update(
                {ValidationRun.issues_fixed: ValidationRun.issues_fixed + 1},
                synchronize_session=False,
            )
        )
