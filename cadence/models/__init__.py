from cadence.models.customer import Customer
from cadence.models.organization import Organization
from cadence.models.product import Product
from cadence.models.save_flow import SaveAttempt, SaveAttemptOutcome, SaveFlow, SaveFlowType
from cadence.models.selling_plan import DiscountType, SellingPlan
from cadence.models.subscription import (
    Subscription,
    SubscriptionFrequency,
    SubscriptionProvider,
    SubscriptionStatus,
)
from cadence.models.subscription_activity import ActivityType, ActorType, SubscriptionActivity
from cadence.models.subscription_order import OrderStatus, SubscriptionOrder
from cadence.models.subscription_settings import SETTINGS_ROW_ID, SubscriptionSettings
from cadence.models.validation import (
    IssueType,
    RunStatus,
    RunType,
    Severity,
    ValidationIssue,
    ValidationRun,
)

__all__ = [
    "ActivityType",
    "ActorType",
    "Customer",
    "DiscountType",
    "IssueType",
    "OrderStatus",
    "Organization",
    "Product",
    "RunStatus",
    "RunType",
    "SETTINGS_ROW_ID",
    "SaveAttempt",
    "SaveAttemptOutcome",
    "SaveFlow",
    "SaveFlowType",
    "SellingPlan",
    "Severity",
    "Subscription",
    "SubscriptionActivity",
    "SubscriptionFrequency",
    "SubscriptionOrder",
    "SubscriptionProvider",
    "SubscriptionSettings",
    "SubscriptionStatus",
    "ValidationIssue",
    "ValidationRun",
]
