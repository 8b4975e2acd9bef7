"""Subscription analytics response schemas."""

from pydantic import BaseModel, Field

from cadence.schemas.subscription import SubscriptionResponse


class OverviewMetrics(BaseModel):
    mrr: int
    arr: int
    net_mrr_change: int
    active_count: int
    paused_count: int
    cancelled_count: int
    arpu: int
    churn_rate: float


class CohortData(BaseModel):
    month: str
    subscribers: int
    retention_by_month: list[float] = Field(default_factory=list)
    ltv: int = 0
    churn_rate: float = 0.0


class ChurnTrendPoint(BaseModel):
    date: str
    rate: float


class ChurnReason(BaseModel):
    reason: str
    count: int
    percentage: float


class ProductChurn(BaseModel):
    product_id: str
    product_title: str
    churn_rate: float


class ChurnAnalysis(BaseModel):
    trend: list[ChurnTrendPoint]
    by_reason: list[ChurnReason]
    by_product: list[ProductChurn]
    at_risk: list[SubscriptionResponse]


class GrowthTrendPoint(BaseModel):
    date: str
    new: int
    churned: int
    net: int


class GrowthMetrics(BaseModel):
    new_subscribers: int
    churned_subscribers: int
    net_growth: int
    velocity: float
    trend: list[GrowthTrendPoint]


class ProductSubscriptionData(BaseModel):
    product_id: str
    product_title: str
    active_subscribers: int
    revenue: int
    churn_rate: float
    new_subscribers_30d: int


class SubscriptionAnalytics(BaseModel):
    overview: OverviewMetrics
    cohorts: list[CohortData]
    churn_analysis: ChurnAnalysis
    growth_metrics: GrowthMetrics
    product_breakdown: list[ProductSubscriptionData]
