from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from cadence.core.auth import get_current_organization
from cadence.core.database import get_db
from cadence.models.validation import ValidationIssue, ValidationRun
from cadence.schemas.validation import (
    AutoFixRequest,
    AutoFixResult,
    MarkFixedRequest,
    ValidationIssueResponse,
    ValidationRunRequest,
    ValidationRunResponse,
    ValidationSummary,
)
from cadence.services.validation_service import ValidationService

router = APIRouter()


@router.post(
    "/",
    response_model=ValidationRunResponse,
    status_code=201,
    summary="Run validation",
)
async def run_validation(
    data: ValidationRunRequest | None = None,
    db: Session = Depends(get_db),
    organization_id: UUID = Depends(get_current_organization),
) -> ValidationRun:
    """Run every integrity check now and record the issues found."""
    data = data or ValidationRunRequest()
    return ValidationService(db).run_validation(
        organization_id, run_by=data.run_by, run_type=data.run_type.value
    )


@router.get(
    "/",
    response_model=list[ValidationRunResponse],
    summary="List validation runs",
)
async def list_validation_runs(
    limit: int = Query(default=20, ge=1, le=100),
    db: Session = Depends(get_db),
    organization_id: UUID = Depends(get_current_organization),
) -> list[ValidationRun]:
    return ValidationService(db).get_validation_history(organization_id, limit=limit)


@router.get(
    "/summary",
    response_model=ValidationSummary,
    summary="Get validation summary",
)
async def get_validation_summary(
    db: Session = Depends(get_db),
    organization_id: UUID = Depends(get_current_organization),
) -> ValidationSummary:
    return ValidationService(db).get_validation_summary(organization_id)


@router.get(
    "/issues/open",
    response_model=list[ValidationIssueResponse],
    summary="List open validation issues",
)
async def list_open_issues(
    db: Session = Depends(get_db),
    organization_id: UUID = Depends(get_current_organization),
) -> list[ValidationIssue]:
    return ValidationService(db).get_open_issues(organization_id)


@router.post(
    "/issues/auto_fix",
    response_model=AutoFixResult,
    summary="Auto-fix validation issues",
)
async def auto_fix_issues(
    data: AutoFixRequest,
    db: Session = Depends(get_db),
    organization_id: UUID = Depends(get_current_organization),
) -> AutoFixResult:
    """Fix what can be fixed; per-issue failures are reported, not raised."""
    return ValidationService(db).auto_fix_issues(
        data.issue_ids, organization_id, fixed_by=data.fixed_by
    )


@router.post(
    "/issues/{issue_id}/fix",
    response_model=ValidationIssueResponse,
    summary="Mark validation issue fixed",
    responses={404: {"description": "Validation issue not found"}},
)
async def mark_issue_fixed(
    issue_id: UUID,
    data: MarkFixedRequest,
    db: Session = Depends(get_db),
    organization_id: UUID = Depends(get_current_organization),
) -> ValidationIssue:
    issue = ValidationService(db).mark_issue_fixed(issue_id, organization_id, data.fixed_by)
    if not issue:
        raise HTTPException(status_code=404, detail="Validation issue not found")
    return issue


@router.get(
    "/{validation_id}",
    response_model=ValidationRunResponse,
    summary="Get validation run",
    responses={404: {"description": "Validation run not found"}},
)
async def get_validation_run(
    validation_id: UUID,
    db: Session = Depends(get_db),
    organization_id: UUID = Depends(get_current_organization),
) -> ValidationRun:
    run = ValidationService(db).get_validation_run(validation_id, organization_id)
    if not run:
        raise HTTPException(status_code=404, detail="Validation run not found")
    return run


@router.get(
    "/{validation_id}/issues",
    response_model=list[ValidationIssueResponse],
    summary="List issues of a validation run",
    responses={404: {"description": "Validation run not found"}},
)
async def list_validation_issues(
    validation_id: UUID,
    db: Session = Depends(get_db),
    organization_id: UUID = Depends(get_current_organization),
) -> list[ValidationIssue]:
    """Errors first, then warnings, then info; newest first within a severity."""
    service = ValidationService(db)
    if not service.get_validation_run(validation_id, organization_id):
        raise HTTPException(status_code=404, detail="Validation run not found")
    return service.get_validation_issues(validation_id, organization_id)
