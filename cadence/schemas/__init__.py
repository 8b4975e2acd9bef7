from cadence.schemas.save_flow import (
    SaveAttemptComplete,
    SaveAttemptCreate,
    SaveAttemptResponse,
    SaveFlowAnalytics,
    SaveFlowCreate,
    SaveFlowResponse,
    SaveFlowUpdate,
    TriggerConditions,
)
from cadence.schemas.selling_plan import (
    SellingPlanCreate,
    SellingPlanResponse,
    SellingPlanUpdate,
)
from cadence.schemas.subscription import (
    Actor,
    SubscriptionFilters,
    SubscriptionListItem,
    SubscriptionResponse,
)
from cadence.schemas.subscription_activity import SubscriptionActivityResponse
from cadence.schemas.subscription_order import SubscriptionOrderResponse
from cadence.schemas.subscription_settings import (
    SubscriptionSettingsResponse,
    SubscriptionSettingsUpdate,
)
from cadence.schemas.validation import (
    AutoFixResult,
    ValidationIssueResponse,
    ValidationRunResponse,
    ValidationSummary,
)

__all__ = [
    "Actor",
    "AutoFixResult",
    "SaveAttemptComplete",
    "SaveAttemptCreate",
    "SaveAttemptResponse",
    "SaveFlowAnalytics",
    "SaveFlowCreate",
    "SaveFlowResponse",
    "SaveFlowUpdate",
    "SellingPlanCreate",
    "SellingPlanResponse",
    "SellingPlanUpdate",
    "SubscriptionActivityResponse",
    "SubscriptionFilters",
    "SubscriptionListItem",
    "SubscriptionOrderResponse",
    "SubscriptionResponse",
    "SubscriptionSettingsResponse",
    "SubscriptionSettingsUpdate",
    "TriggerConditions",
    "ValidationIssueResponse",
    "ValidationRunResponse",
    "ValidationSummary",
]
