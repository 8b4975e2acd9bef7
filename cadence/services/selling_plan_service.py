"""Selling plans and subscription price calculation."""

import logging
from decimal import ROUND_HALF_UP, Decimal
from uuid import UUID

from sqlalchemy.orm import Session

from cadence.models.selling_plan import DiscountType, SellingPlan
from cadence.repositories.selling_plan_repository import SellingPlanRepository
from cadence.schemas.selling_plan import SellingPlanCreate, SellingPlanUpdate

logger = logging.getLogger(__name__)


def _to_cents(amount: Decimal) -> int:
    return int(amount.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def calculate_discounted_price(
    price_cents: int,
    discount_type: DiscountType | str | None,
    discount_value: Decimal | int | float | None,
) -> int:
    """Price in cents after applying a selling-plan discount.

    - ``percentage``: the percentage is clamped to [0, 100] and the result
      rounded half-up to the cent.
    - ``fixed``: the value in cents is subtracted, floored at 0.
    - ``price``: the value replaces the price outright.

    No discount type (or no value) leaves the price unchanged.
    """
    if discount_type is None or discount_value is None:
        return price_cents
    kind = DiscountType(discount_type)
    value = Decimal(str(discount_value))
    price = Decimal(price_cents)

    if kind == DiscountType.PERCENTAGE:
        percent = min(max(value, Decimal(0)), Decimal(100))
        return max(0, _to_cents(price * (Decimal(100) - percent) / Decimal(100)))
    if kind == DiscountType.FIXED:
        return max(0, _to_cents(price - value))
    return max(0, _to_cents(value))


class SellingPlanService:
    def __init__(self, db: Session):
        self.repo = SellingPlanRepository(db)

    def list_selling_plans(
        self, organization_id: UUID, active_only: bool = False
    ) -> list[SellingPlan]:
        return self.repo.get_all(organization_id, active_only=active_only)

    def get_selling_plan(self, plan_id: UUID, organization_id: UUID) -> SellingPlan | None:
        return self.repo.get_by_id(plan_id, organization_id)

    def create_selling_plan(
        self, data: SellingPlanCreate, organization_id: UUID
    ) -> SellingPlan:
        if data.discount_type is not None and data.discount_value is None:
            raise ValueError("discount_value is required when discount_type is set")
        plan = self.repo.create(data, organization_id)
        logger.info("Created selling plan %s (%s)", plan.id, plan.name)
        return plan

    def update_selling_plan(
        self, plan_id: UUID, data: SellingPlanUpdate, organization_id: UUID
    ) -> SellingPlan | None:
        return self.repo.update(plan_id, data, organization_id)

    def delete_selling_plan(self, plan_id: UUID, organization_id: UUID) -> bool:
        """Delete a plan. Subscriptions keep their copy of its id and name."""
        return self.repo.delete(plan_id, organization_id)

    def toggle_selling_plan(self, plan_id: UUID, organization_id: UUID) -> SellingPlan | None:
        return self.repo.toggle(plan_id, organization_id)

    def get_selling_plans_for_product(
        self, product_id: str, organization_id: UUID
    ) -> list[SellingPlan]:
        return self.repo.get_for_product(product_id, organization_id)

    def price_for_plan(self, plan: SellingPlan, price_cents: int) -> int:
        return calculate_discounted_price(
            price_cents,
            plan.discount_type,  # type: ignore[arg-type]
            plan.discount_value,  # type: ignore[arg-type]
        )
