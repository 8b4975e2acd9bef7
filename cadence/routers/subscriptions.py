from datetime import datetime
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Response
from sqlalchemy.orm import Session

from cadence.core.auth import get_current_organization
from cadence.core.database import get_db
from cadence.models.save_flow import SaveAttempt
from cadence.models.subscription import Subscription
from cadence.models.subscription_activity import SubscriptionActivity
from cadence.models.subscription_order import SubscriptionOrder
from cadence.schemas.save_flow import SaveAttemptResponse
from cadence.schemas.subscription import (
    ActorRequest,
    CancelRequest,
    FrequencyUpdateRequest,
    MRRResponse,
    MutationResult,
    PauseRequest,
    PortalUrlResponse,
    QuantityUpdateRequest,
    StatusCountsResponse,
    SubscriptionFilters,
    SubscriptionListItem,
    SubscriptionResponse,
)
from cadence.schemas.subscription_activity import SubscriptionActivityResponse
from cadence.schemas.subscription_order import SubscriptionOrderResponse
from cadence.services.portal_service import PortalService
from cadence.services.save_flow_service import SaveFlowService
from cadence.services.subscription_service import SubscriptionService

router = APIRouter()

NOT_FOUND = {404: {"description": "Subscription not found"}}


def _require_subscription(
    service: SubscriptionService, subscription_id: UUID, organization_id: UUID
) -> Subscription:
    subscription = service.get_subscription(subscription_id, organization_id)
    if not subscription:
        raise HTTPException(status_code=404, detail="Subscription not found")
    return subscription


@router.get(
    "/",
    response_model=list[SubscriptionListItem],
    summary="List subscriptions",
)
async def list_subscriptions(
    response: Response,
    status: str | None = None,
    product: str | None = None,
    frequency: str | None = None,
    search: str | None = None,
    date_from: datetime | None = None,
    date_to: datetime | None = None,
    sort: str = "created_at",
    dir: str = "desc",
    limit: int = Query(default=50),
    offset: int = Query(default=0, ge=0),
    db: Session = Depends(get_db),
    organization_id: UUID = Depends(get_current_organization),
) -> list[Subscription]:
    """Filtered, sorted page of subscriptions.

    Unknown sort columns or directions fall back to ``created_at desc`` and
    ``limit`` is clamped rather than rejected.
    """
    filters = SubscriptionFilters(
        status=status,
        product=product,
        frequency=frequency,
        search=search,
        date_from=date_from,
        date_to=date_to,
        sort=sort,
        dir=dir,
        limit=limit,
        offset=offset,
    )
    items, total = SubscriptionService(db).list_subscriptions(organization_id, filters)
    response.headers["X-Total-Count"] = str(total)
    return items


@router.get(
    "/status_counts",
    response_model=StatusCountsResponse,
    summary="Count subscriptions by status",
)
async def get_status_counts(
    db: Session = Depends(get_db),
    organization_id: UUID = Depends(get_current_organization),
) -> StatusCountsResponse:
    counts = SubscriptionService(db).get_status_counts(organization_id)
    return StatusCountsResponse(**counts)


@router.get(
    "/mrr",
    response_model=MRRResponse,
    summary="Get monthly recurring revenue",
)
async def get_mrr(
    db: Session = Depends(get_db),
    organization_id: UUID = Depends(get_current_organization),
) -> MRRResponse:
    return MRRResponse(mrr_cents=SubscriptionService(db).get_mrr(organization_id))


@router.get(
    "/{subscription_id}",
    response_model=SubscriptionResponse,
    summary="Get subscription",
    responses=NOT_FOUND,
)
async def get_subscription(
    subscription_id: UUID,
    db: Session = Depends(get_db),
    organization_id: UUID = Depends(get_current_organization),
) -> Subscription:
    return _require_subscription(SubscriptionService(db), subscription_id, organization_id)


@router.get(
    "/{subscription_id}/orders",
    response_model=list[SubscriptionOrderResponse],
    summary="List subscription orders",
    responses=NOT_FOUND,
)
async def list_subscription_orders(
    subscription_id: UUID,
    db: Session = Depends(get_db),
    organization_id: UUID = Depends(get_current_organization),
) -> list[SubscriptionOrder]:
    service = SubscriptionService(db)
    _require_subscription(service, subscription_id, organization_id)
    return service.get_subscription_orders(subscription_id, organization_id)


@router.get(
    "/{subscription_id}/activity",
    response_model=list[SubscriptionActivityResponse],
    summary="List subscription activity",
    responses=NOT_FOUND,
)
async def list_subscription_activity(
    subscription_id: UUID,
    db: Session = Depends(get_db),
    organization_id: UUID = Depends(get_current_organization),
) -> list[SubscriptionActivity]:
    """Newest first, at most 100 entries."""
    service = SubscriptionService(db)
    _require_subscription(service, subscription_id, organization_id)
    return service.get_subscription_activity(subscription_id, organization_id)


@router.get(
    "/{subscription_id}/save_attempts",
    response_model=list[SaveAttemptResponse],
    summary="List save attempts for a subscription",
    responses=NOT_FOUND,
)
async def list_subscription_save_attempts(
    subscription_id: UUID,
    db: Session = Depends(get_db),
    organization_id: UUID = Depends(get_current_organization),
) -> list[SaveAttempt]:
    _require_subscription(SubscriptionService(db), subscription_id, organization_id)
    return SaveFlowService(db).get_save_attempts(subscription_id, organization_id)


@router.post(
    "/{subscription_id}/pause",
    response_model=MutationResult,
    summary="Pause subscription",
    responses=NOT_FOUND,
)
async def pause_subscription(
    subscription_id: UUID,
    data: PauseRequest,
    db: Session = Depends(get_db),
    organization_id: UUID = Depends(get_current_organization),
) -> MutationResult:
    service = SubscriptionService(db)
    _require_subscription(service, subscription_id, organization_id)
    affected = service.pause(
        subscription_id, organization_id, data.reason, data.resume_date, actor=data.actor
    )
    return MutationResult(subscription_id=subscription_id, affected=affected)


@router.post(
    "/{subscription_id}/resume",
    response_model=MutationResult,
    summary="Resume subscription",
    responses=NOT_FOUND,
)
async def resume_subscription(
    subscription_id: UUID,
    data: ActorRequest | None = None,
    db: Session = Depends(get_db),
    organization_id: UUID = Depends(get_current_organization),
) -> MutationResult:
    service = SubscriptionService(db)
    _require_subscription(service, subscription_id, organization_id)
    affected = service.resume(subscription_id, organization_id, actor=data.actor if data else None)
    return MutationResult(subscription_id=subscription_id, affected=affected)


@router.post(
    "/{subscription_id}/cancel",
    response_model=MutationResult,
    summary="Cancel subscription",
    responses=NOT_FOUND,
)
async def cancel_subscription(
    subscription_id: UUID,
    data: CancelRequest,
    db: Session = Depends(get_db),
    organization_id: UUID = Depends(get_current_organization),
) -> MutationResult:
    service = SubscriptionService(db)
    _require_subscription(service, subscription_id, organization_id)
    affected = service.cancel(subscription_id, organization_id, data.reason, actor=data.actor)
    return MutationResult(subscription_id=subscription_id, affected=affected)


@router.post(
    "/{subscription_id}/skip",
    response_model=MutationResult,
    summary="Skip the next scheduled order",
    responses=NOT_FOUND,
)
async def skip_next_order(
    subscription_id: UUID,
    data: ActorRequest | None = None,
    db: Session = Depends(get_db),
    organization_id: UUID = Depends(get_current_organization),
) -> MutationResult:
    service = SubscriptionService(db)
    _require_subscription(service, subscription_id, organization_id)
    affected = service.skip_next_order(
        subscription_id, organization_id, actor=data.actor if data else None
    )
    return MutationResult(subscription_id=subscription_id, affected=affected)


@router.put(
    "/{subscription_id}/frequency",
    response_model=MutationResult,
    summary="Change billing frequency",
    responses=NOT_FOUND,
)
async def update_frequency(
    subscription_id: UUID,
    data: FrequencyUpdateRequest,
    db: Session = Depends(get_db),
    organization_id: UUID = Depends(get_current_organization),
) -> MutationResult:
    service = SubscriptionService(db)
    _require_subscription(service, subscription_id, organization_id)
    affected = service.update_frequency(
        subscription_id, organization_id, data.frequency.value, data.interval, actor=data.actor
    )
    return MutationResult(subscription_id=subscription_id, affected=affected)


@router.put(
    "/{subscription_id}/quantity",
    response_model=MutationResult,
    summary="Change quantity",
    responses=NOT_FOUND,
)
async def update_quantity(
    subscription_id: UUID,
    data: QuantityUpdateRequest,
    db: Session = Depends(get_db),
    organization_id: UUID = Depends(get_current_organization),
) -> MutationResult:
    service = SubscriptionService(db)
    _require_subscription(service, subscription_id, organization_id)
    affected = service.update_quantity(
        subscription_id, organization_id, data.quantity, actor=data.actor
    )
    return MutationResult(subscription_id=subscription_id, affected=affected)


@router.post(
    "/{subscription_id}/portal_url",
    response_model=PortalUrlResponse,
    summary="Issue a customer portal link",
    responses=NOT_FOUND,
)
async def generate_portal_url(
    subscription_id: UUID,
    db: Session = Depends(get_db),
    organization_id: UUID = Depends(get_current_organization),
) -> PortalUrlResponse:
    """Signed portal link for the customer who owns the subscription."""
    subscription = _require_subscription(SubscriptionService(db), subscription_id, organization_id)
    return PortalUrlResponse(
        portal_url=PortalService.generate_portal_url(str(subscription.customer_id), organization_id)
    )
