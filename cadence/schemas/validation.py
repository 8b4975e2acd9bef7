from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from cadence.models.validation import RunType


class ValidationRunRequest(BaseModel):
    run_by: str | None = None
    run_type: RunType = RunType.MANUAL


class ValidationRunResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    run_at: datetime
    run_by: str | None = None
    run_type: str
    total_checked: int
    issues_found: int
    issues_fixed: int
    results: list[dict[str, Any]]
    status: str


class ValidationIssueResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    validation_id: UUID
    subscription_id: UUID
    issue_type: str
    severity: str
    description: str
    suggested_fix: str | None = None
    is_fixed: bool
    fixed_at: datetime | None = None
    fixed_by: str | None = None
    created_at: datetime


class MarkFixedRequest(BaseModel):
    fixed_by: str = Field(min_length=1)


class AutoFixRequest(BaseModel):
    issue_ids: list[UUID] = Field(min_length=1)
    fixed_by: str = Field(default="system", min_length=1)


class AutoFixResult(BaseModel):
    """Per-batch auto-fix outcome. Failures never abort the batch."""

    fixed: int = 0
    failed: int = 0
    errors: list[str] = Field(default_factory=list)


class ValidationSummary(BaseModel):
    last_run_at: datetime | None = None
    last_run_status: str | None = None
    open_issues: int = 0
    errors: int = 0
    warnings: int = 0
    info: int = 0
