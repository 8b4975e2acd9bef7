from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from cadence.core.auth import get_current_organization
from cadence.core.database import get_db
from cadence.models.subscription_settings import SubscriptionSettings
from cadence.schemas.subscription_settings import (
    SubscriptionSettingsResponse,
    SubscriptionSettingsUpdate,
)
from cadence.services.subscription_service import SubscriptionService

router = APIRouter()


@router.get(
    "/",
    response_model=SubscriptionSettingsResponse,
    summary="Get subscription settings",
)
async def get_subscription_settings(
    db: Session = Depends(get_db),
    organization_id: UUID = Depends(get_current_organization),
) -> SubscriptionSettings:
    """Tenant settings. Defaults are returned until the tenant saves its own."""
    return SubscriptionService(db).get_settings(organization_id)


@router.patch(
    "/",
    response_model=SubscriptionSettingsResponse,
    summary="Update subscription settings",
)
async def update_subscription_settings(
    data: SubscriptionSettingsUpdate,
    db: Session = Depends(get_db),
    organization_id: UUID = Depends(get_current_organization),
) -> SubscriptionSettings:
    return SubscriptionService(db).update_settings(organization_id, data)
