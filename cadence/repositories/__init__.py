from cadence.repositories.organization_repository import OrganizationRepository
from cadence.repositories.save_attempt_repository import SaveAttemptRepository
from cadence.repositories.save_flow_repository import SaveFlowRepository
from cadence.repositories.selling_plan_repository import SellingPlanRepository
from cadence.repositories.subscription_activity_repository import SubscriptionActivityRepository
from cadence.repositories.subscription_analytics_repository import (
    SubscriptionAnalyticsRepository,
)
from cadence.repositories.subscription_order_repository import SubscriptionOrderRepository
from cadence.repositories.subscription_repository import SubscriptionRepository
from cadence.repositories.subscription_settings_repository import SubscriptionSettingsRepository
from cadence.repositories.validation_repository import ValidationRepository

__all__ = [
    "OrganizationRepository",
    "SaveAttemptRepository",
    "SaveFlowRepository",
    "SellingPlanRepository",
    "SubscriptionActivityRepository",
    "SubscriptionAnalyticsRepository",
    "SubscriptionOrderRepository",
    "SubscriptionRepository",
    "SubscriptionSettingsRepository",
    "ValidationRepository",
]
