"""Customer self-service portal API endpoints."""

from collections.abc import Callable
from typing import TypeVar
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from cadence.core.auth import get_portal_customer
from cadence.core.database import get_db
from cadence.models.subscription import Subscription
from cadence.schemas.save_flow import CancelIntentRequest, CancelIntentResponse
from cadence.schemas.subscription import (
    PortalCancelRequest,
    PortalFrequencyRequest,
    PortalPauseRequest,
    PortalQuantityRequest,
    SubscriptionResponse,
)
from cadence.services.subscription_portal_service import SubscriptionPortalService

router = APIRouter()

T = TypeVar("T")

RESPONSES = {
    400: {"description": "Action not possible for this subscription"},
    401: {"description": "Invalid or expired portal token"},
    403: {"description": "Action disabled for customers"},
    404: {"description": "Subscription not found"},
}


def _run(action: Callable[[], T | None]) -> T:
    try:
        result = action()
    except PermissionError as e:
        raise HTTPException(status_code=403, detail=str(e)) from e
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    if result is None:
        raise HTTPException(status_code=404, detail="Subscription not found")
    return result


@router.get(
    "/subscriptions",
    response_model=list[SubscriptionResponse],
    summary="List my subscriptions",
    responses={401: {"description": "Invalid or expired portal token"}},
)
async def list_portal_subscriptions(
    db: Session = Depends(get_db),
    portal_auth: tuple[str, UUID] = Depends(get_portal_customer),
) -> list[Subscription]:
    customer_id, organization_id = portal_auth
    return SubscriptionPortalService(db).list_subscriptions(customer_id, organization_id)


@router.get(
    "/subscriptions/{subscription_id}",
    response_model=SubscriptionResponse,
    summary="Get my subscription",
    responses=RESPONSES,
)
async def get_portal_subscription(
    subscription_id: UUID,
    db: Session = Depends(get_db),
    portal_auth: tuple[str, UUID] = Depends(get_portal_customer),
) -> Subscription:
    customer_id, organization_id = portal_auth
    service = SubscriptionPortalService(db)
    return _run(lambda: service.get_subscription(subscription_id, customer_id, organization_id))


@router.post(
    "/subscriptions/{subscription_id}/pause",
    response_model=SubscriptionResponse,
    summary="Pause my subscription",
    responses=RESPONSES,
)
async def pause_portal_subscription(
    subscription_id: UUID,
    data: PortalPauseRequest,
    db: Session = Depends(get_db),
    portal_auth: tuple[str, UUID] = Depends(get_portal_customer),
) -> Subscription:
    customer_id, organization_id = portal_auth
    service = SubscriptionPortalService(db)
    return _run(
        lambda: service.pause(
            subscription_id, customer_id, organization_id, data.reason, data.resume_date
        )
    )


@router.post(
    "/subscriptions/{subscription_id}/resume",
    response_model=SubscriptionResponse,
    summary="Resume my subscription",
    responses=RESPONSES,
)
async def resume_portal_subscription(
    subscription_id: UUID,
    db: Session = Depends(get_db),
    portal_auth: tuple[str, UUID] = Depends(get_portal_customer),
) -> Subscription:
    customer_id, organization_id = portal_auth
    service = SubscriptionPortalService(db)
    return _run(lambda: service.resume(subscription_id, customer_id, organization_id))


@router.post(
    "/subscriptions/{subscription_id}/skip",
    response_model=SubscriptionResponse,
    summary="Skip my next order",
    responses=RESPONSES,
)
async def skip_portal_order(
    subscription_id: UUID,
    db: Session = Depends(get_db),
    portal_auth: tuple[str, UUID] = Depends(get_portal_customer),
) -> Subscription:
    customer_id, organization_id = portal_auth
    service = SubscriptionPortalService(db)
    return _run(lambda: service.skip_next_order(subscription_id, customer_id, organization_id))


@router.put(
    "/subscriptions/{subscription_id}/frequency",
    response_model=SubscriptionResponse,
    summary="Change my delivery frequency",
    responses=RESPONSES,
)
async def update_portal_frequency(
    subscription_id: UUID,
    data: PortalFrequencyRequest,
    db: Session = Depends(get_db),
    portal_auth: tuple[str, UUID] = Depends(get_portal_customer),
) -> Subscription:
    customer_id, organization_id = portal_auth
    service = SubscriptionPortalService(db)
    return _run(
        lambda: service.update_frequency(
            subscription_id, customer_id, organization_id, data.frequency.value, data.interval
        )
    )


@router.put(
    "/subscriptions/{subscription_id}/quantity",
    response_model=SubscriptionResponse,
    summary="Change my quantity",
    responses=RESPONSES,
)
async def update_portal_quantity(
    subscription_id: UUID,
    data: PortalQuantityRequest,
    db: Session = Depends(get_db),
    portal_auth: tuple[str, UUID] = Depends(get_portal_customer),
) -> Subscription:
    customer_id, organization_id = portal_auth
    service = SubscriptionPortalService(db)
    return _run(
        lambda: service.update_quantity(
            subscription_id, customer_id, organization_id, data.quantity
        )
    )


@router.post(
    "/subscriptions/{subscription_id}/cancel_intent",
    response_model=CancelIntentResponse,
    summary="Start a cancellation",
    responses=RESPONSES,
)
async def portal_cancel_intent(
    subscription_id: UUID,
    data: CancelIntentRequest | None = None,
    db: Session = Depends(get_db),
    portal_auth: tuple[str, UUID] = Depends(get_portal_customer),
) -> CancelIntentResponse:
    """Return the save flow to show before cancelling, with its open attempt."""
    customer_id, organization_id = portal_auth
    event = (data or CancelIntentRequest()).event
    service = SubscriptionPortalService(db)
    return _run(
        lambda: service.cancel_intent(subscription_id, customer_id, organization_id, event)
    )


@router.post(
    "/subscriptions/{subscription_id}/cancel",
    response_model=SubscriptionResponse,
    summary="Cancel my subscription",
    responses=RESPONSES,
)
async def cancel_portal_subscription(
    subscription_id: UUID,
    data: PortalCancelRequest,
    db: Session = Depends(get_db),
    portal_auth: tuple[str, UUID] = Depends(get_portal_customer),
) -> Subscription:
    customer_id, organization_id = portal_auth
    service = SubscriptionPortalService(db)
    return _run(
        lambda: service.cancel(subscription_id, customer_id, organization_id, data.reason)
    )
