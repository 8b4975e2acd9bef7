from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from cadence.core.auth import get_current_organization
from cadence.core.database import get_db
from cadence.schemas.analytics import (
    ChurnAnalysis,
    CohortData,
    GrowthMetrics,
    OverviewMetrics,
    ProductSubscriptionData,
    SubscriptionAnalytics,
)
from cadence.services.subscription_analytics_service import SubscriptionAnalyticsService

router = APIRouter()


@router.get(
    "/",
    response_model=SubscriptionAnalytics,
    summary="Get subscription analytics",
)
async def get_analytics(
    days: int = Query(default=30, ge=1, le=365),
    db: Session = Depends(get_db),
    organization_id: UUID = Depends(get_current_organization),
) -> SubscriptionAnalytics:
    return SubscriptionAnalyticsService(db).get_analytics(organization_id, days=days)


@router.get(
    "/overview",
    response_model=OverviewMetrics,
    summary="Get MRR, churn and subscriber counts",
)
async def get_overview(
    db: Session = Depends(get_db),
    organization_id: UUID = Depends(get_current_organization),
) -> OverviewMetrics:
    return SubscriptionAnalyticsService(db).get_overview_metrics(organization_id)


@router.get(
    "/cohorts",
    response_model=list[CohortData],
    summary="Get monthly retention cohorts",
)
async def get_cohorts(
    months: int = Query(default=12, ge=1, le=36),
    db: Session = Depends(get_db),
    organization_id: UUID = Depends(get_current_organization),
) -> list[CohortData]:
    return SubscriptionAnalyticsService(db).get_cohort_analysis(organization_id, months=months)


@router.get(
    "/churn",
    response_model=ChurnAnalysis,
    summary="Get churn analysis",
)
async def get_churn(
    days: int = Query(default=90, ge=1, le=365),
    db: Session = Depends(get_db),
    organization_id: UUID = Depends(get_current_organization),
) -> ChurnAnalysis:
    return SubscriptionAnalyticsService(db).get_churn_analysis(organization_id, days=days)


@router.get(
    "/growth",
    response_model=GrowthMetrics,
    summary="Get subscriber growth",
)
async def get_growth(
    days: int = Query(default=30, ge=1, le=365),
    db: Session = Depends(get_db),
    organization_id: UUID = Depends(get_current_organization),
) -> GrowthMetrics:
    return SubscriptionAnalyticsService(db).get_growth_metrics(organization_id, days=days)


@router.get(
    "/products",
    response_model=list[ProductSubscriptionData],
    summary="Get per-product subscription breakdown",
)
async def get_products(
    db: Session = Depends(get_db),
    organization_id: UUID = Depends(get_current_organization),
) -> list[ProductSubscriptionData]:
    return SubscriptionAnalyticsService(db).get_product_breakdown(organization_id)
