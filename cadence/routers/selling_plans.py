from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from cadence.core.auth import get_current_organization
from cadence.core.database import get_db
from cadence.models.selling_plan import SellingPlan
from cadence.schemas.selling_plan import (
    PricePreviewRequest,
    PricePreviewResponse,
    SellingPlanCreate,
    SellingPlanResponse,
    SellingPlanUpdate,
)
from cadence.services.selling_plan_service import (
    SellingPlanService,
    calculate_discounted_price,
)

router = APIRouter()

NOT_FOUND = {404: {"description": "Selling plan not found"}}


@router.get(
    "/",
    response_model=list[SellingPlanResponse],
    summary="List selling plans",
)
async def list_selling_plans(
    active_only: bool = Query(default=False),
    db: Session = Depends(get_db),
    organization_id: UUID = Depends(get_current_organization),
) -> list[SellingPlan]:
    return SellingPlanService(db).list_selling_plans(organization_id, active_only=active_only)


@router.post(
    "/",
    response_model=SellingPlanResponse,
    status_code=201,
    summary="Create selling plan",
    responses={400: {"description": "Discount type without a value"}},
)
async def create_selling_plan(
    data: SellingPlanCreate,
    db: Session = Depends(get_db),
    organization_id: UUID = Depends(get_current_organization),
) -> SellingPlan:
    try:
        return SellingPlanService(db).create_selling_plan(data, organization_id)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e


@router.post(
    "/price_preview",
    response_model=PricePreviewResponse,
    summary="Preview a discounted price",
)
async def preview_price(data: PricePreviewRequest) -> PricePreviewResponse:
    return PricePreviewResponse(
        price_cents=data.price_cents,
        discounted_price_cents=calculate_discounted_price(
            data.price_cents, data.discount_type, data.discount_value
        ),
    )


@router.get(
    "/for_product/{product_id}",
    response_model=list[SellingPlanResponse],
    summary="List active selling plans offered for a product",
)
async def list_selling_plans_for_product(
    product_id: str,
    db: Session = Depends(get_db),
    organization_id: UUID = Depends(get_current_organization),
) -> list[SellingPlan]:
    return SellingPlanService(db).get_selling_plans_for_product(product_id, organization_id)


@router.get(
    "/{plan_id}",
    response_model=SellingPlanResponse,
    summary="Get selling plan",
    responses=NOT_FOUND,
)
async def get_selling_plan(
    plan_id: UUID,
    db: Session = Depends(get_db),
    organization_id: UUID = Depends(get_current_organization),
) -> SellingPlan:
    plan = SellingPlanService(db).get_selling_plan(plan_id, organization_id)
    if not plan:
        raise HTTPException(status_code=404, detail="Selling plan not found")
    return plan


@router.get(
    "/{plan_id}/price",
    response_model=PricePreviewResponse,
    summary="Price a product under a selling plan",
    responses=NOT_FOUND,
)
async def get_plan_price(
    plan_id: UUID,
    price_cents: int = Query(ge=0),
    db: Session = Depends(get_db),
    organization_id: UUID = Depends(get_current_organization),
) -> PricePreviewResponse:
    service = SellingPlanService(db)
    plan = service.get_selling_plan(plan_id, organization_id)
    if not plan:
        raise HTTPException(status_code=404, detail="Selling plan not found")
    return PricePreviewResponse(
        price_cents=price_cents,
        discounted_price_cents=service.price_for_plan(plan, price_cents),
    )


@router.patch(
    "/{plan_id}",
    response_model=SellingPlanResponse,
    summary="Update selling plan",
    responses=NOT_FOUND,
)
async def update_selling_plan(
    plan_id: UUID,
    data: SellingPlanUpdate,
    db: Session = Depends(get_db),
    organization_id: UUID = Depends(get_current_organization),
) -> SellingPlan:
    plan = SellingPlanService(db).update_selling_plan(plan_id, data, organization_id)
    if not plan:
        raise HTTPException(status_code=404, detail="Selling plan not found")
    return plan


@router.delete(
    "/{plan_id}",
    status_code=204,
    summary="Delete selling plan",
    responses=NOT_FOUND,
)
async def delete_selling_plan(
    plan_id: UUID,
    db: Session = Depends(get_db),
    organization_id: UUID = Depends(get_current_organization),
) -> None:
    if not SellingPlanService(db).delete_selling_plan(plan_id, organization_id):
        raise HTTPException(status_code=404, detail="Selling plan not found")


@router.post(
    "/{plan_id}/toggle",
    response_model=SellingPlanResponse,
    summary="Activate or deactivate selling plan",
    responses=NOT_FOUND,
)
async def toggle_selling_plan(
    plan_id: UUID,
    db: Session = Depends(get_db),
    organization_id: UUID = Depends(get_current_organization),
) -> SellingPlan:
    plan = SellingPlanService(db).toggle_selling_plan(plan_id, organization_id)
    if not plan:
        raise HTTPException(status_code=404, detail="Selling plan not found")
    return plan
