from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from cadence.core.auth import get_current_organization
from cadence.core.database import get_db
from cadence.models.save_flow import SaveAttempt, SaveFlow, SaveFlowType
from cadence.schemas.save_flow import (
    SaveAttemptComplete,
    SaveAttemptCreate,
    SaveAttemptResponse,
    SaveFlowAnalytics,
    SaveFlowCreate,
    SaveFlowResponse,
    SaveFlowUpdate,
)
from cadence.services.save_flow_service import SaveFlowService

router = APIRouter()

NOT_FOUND = {404: {"description": "Save flow not found"}}


@router.get(
    "/",
    response_model=list[SaveFlowResponse],
    summary="List save flows",
)
async def list_save_flows(
    flow_type: SaveFlowType | None = Query(default=None),
    db: Session = Depends(get_db),
    organization_id: UUID = Depends(get_current_organization),
) -> list[SaveFlow]:
    """Highest priority first, newest first within a priority."""
    return SaveFlowService(db).list_save_flows(
        organization_id, flow_type=flow_type.value if flow_type else None
    )


@router.post(
    "/",
    response_model=SaveFlowResponse,
    status_code=201,
    summary="Create save flow",
    responses={422: {"description": "Unknown step or offer type"}},
)
async def create_save_flow(
    data: SaveFlowCreate,
    db: Session = Depends(get_db),
    organization_id: UUID = Depends(get_current_organization),
) -> SaveFlow:
    return SaveFlowService(db).create_save_flow(data, organization_id)


@router.get(
    "/analytics",
    response_model=SaveFlowAnalytics,
    summary="Get save flow analytics",
)
async def get_save_flow_analytics(
    db: Session = Depends(get_db),
    organization_id: UUID = Depends(get_current_organization),
) -> SaveFlowAnalytics:
    return SaveFlowService(db).get_save_flow_analytics(organization_id)


@router.post(
    "/attempts",
    response_model=SaveAttemptResponse,
    status_code=201,
    summary="Open a save attempt",
    responses={400: {"description": "Save flow or subscription not found"}},
)
async def create_save_attempt(
    data: SaveAttemptCreate,
    db: Session = Depends(get_db),
    organization_id: UUID = Depends(get_current_organization),
) -> SaveAttempt:
    try:
        return SaveFlowService(db).create_save_attempt(
            data.subscription_id, data.flow_id, organization_id
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e


@router.post(
    "/attempts/{attempt_id}/complete",
    response_model=SaveAttemptResponse,
    summary="Complete a save attempt",
    responses={
        400: {"description": "Attempt already completed or outcome still pending"},
        404: {"description": "Save attempt not found"},
    },
)
async def complete_save_attempt(
    attempt_id: UUID,
    data: SaveAttemptComplete,
    db: Session = Depends(get_db),
    organization_id: UUID = Depends(get_current_organization),
) -> SaveAttempt:
    try:
        attempt = SaveFlowService(db).complete_save_attempt(attempt_id, data, organization_id)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    if not attempt:
        raise HTTPException(status_code=404, detail="Save attempt not found")
    return attempt


@router.get(
    "/{flow_id}",
    response_model=SaveFlowResponse,
    summary="Get save flow",
    responses=NOT_FOUND,
)
async def get_save_flow(
    flow_id: UUID,
    db: Session = Depends(get_db),
    organization_id: UUID = Depends(get_current_organization),
) -> SaveFlow:
    flow = SaveFlowService(db).get_save_flow(flow_id, organization_id)
    if not flow:
        raise HTTPException(status_code=404, detail="Save flow not found")
    return flow


@router.patch(
    "/{flow_id}",
    response_model=SaveFlowResponse,
    summary="Update save flow",
    responses=NOT_FOUND,
)
async def update_save_flow(
    flow_id: UUID,
    data: SaveFlowUpdate,
    db: Session = Depends(get_db),
    organization_id: UUID = Depends(get_current_organization),
) -> SaveFlow:
    flow = SaveFlowService(db).update_save_flow(flow_id, data, organization_id)
    if not flow:
        raise HTTPException(status_code=404, detail="Save flow not found")
    return flow


@router.delete(
    "/{flow_id}",
    status_code=204,
    summary="Delete save flow",
    responses=NOT_FOUND,
)
async def delete_save_flow(
    flow_id: UUID,
    db: Session = Depends(get_db),
    organization_id: UUID = Depends(get_current_organization),
) -> None:
    if not SaveFlowService(db).delete_save_flow(flow_id, organization_id):
        raise HTTPException(status_code=404, detail="Save flow not found")


@router.post(
    "/{flow_id}/toggle",
    response_model=SaveFlowResponse,
    summary="Enable or disable save flow",
    responses=NOT_FOUND,
)
async def toggle_save_flow(
    flow_id: UUID,
    db: Session = Depends(get_db),
    organization_id: UUID = Depends(get_current_organization),
) -> SaveFlow:
    flow = SaveFlowService(db).toggle_save_flow(flow_id, organization_id)
    if not flow:
        raise HTTPException(status_code=404, detail="Save flow not found")
    return flow
