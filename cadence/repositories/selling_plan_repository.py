from uuid import UUID

from sqlalchemy.orm import Session

from cadence.core.field_updates import build_updates
from cadence.models.selling_plan import SellingPlan
from cadence.schemas.selling_plan import SellingPlanCreate, SellingPlanUpdate

SELLING_PLAN_FIELD_MAP = {
    "name": SellingPlan.name,
    "description": SellingPlan.description,
    "billing_frequency": SellingPlan.billing_frequency,
    "billing_interval": SellingPlan.billing_interval,
    "delivery_frequency": SellingPlan.delivery_frequency,
    "delivery_interval": SellingPlan.delivery_interval,
    "discount_type": SellingPlan.discount_type,
    "discount_value": SellingPlan.discount_value,
    "trial_days": SellingPlan.trial_days,
    "min_cycles": SellingPlan.min_cycles,
    "max_cycles": SellingPlan.max_cycles,
    "product_ids": SellingPlan.product_ids,
    "is_active": SellingPlan.is_active,
}


class SellingPlanRepository:
    def __init__(self, db: Session):
        self.db = db

    def get_all(self, organization_id: UUID, active_only: bool = False) -> list[SellingPlan]:
        query = self.db.query(SellingPlan).filter(SellingPlan.organization_id == organization_id)
        if active_only:
            query = query.filter(SellingPlan.is_active == True)  # noqa: E712
        return query.order_by(SellingPlan.name.asc()).all()

    def get_by_id(self, plan_id: UUID, organization_id: UUID) -> SellingPlan | None:
        return (
            self.db.query(SellingPlan)
            .filter(SellingPlan.id == plan_id, SellingPlan.organization_id == organization_id)
            .first()
        )

    def get_for_product(self, product_id: str, organization_id: UUID) -> list[SellingPlan]:
        """Active plans whose ``product_ids`` include the product."""
        # product_ids is a JSON list; membership is checked in Python for portability
        plans = self.get_all(organization_id, active_only=True)
        return [plan for plan in plans if product_id in (plan.product_ids or [])]

    def create(self, data: SellingPlanCreate, organization_id: UUID) -> SellingPlan:
        plan = SellingPlan(
            organization_id=organization_id,
            name=data.name,
            description=data.description,
            billing_frequency=data.billing_frequency.value,
            billing_interval=data.billing_interval,
            delivery_frequency=data.delivery_frequency.value if data.delivery_frequency else None,
            delivery_interval=data.delivery_interval,
            discount_type=data.discount_type.value if data.discount_type else None,
            discount_value=data.discount_value,
            trial_days=data.trial_days,
            min_cycles=data.min_cycles,
            max_cycles=data.max_cycles,
            product_ids=list(data.product_ids),
            is_active=data.is_active,
            shopify_selling_plan_id=data.shopify_selling_plan_id,
            shopify_selling_plan_group_id=data.shopify_selling_plan_group_id,
        )
        self.db.add(plan)
        self.db.commit()
        self.db.refresh(plan)
        return plan

    def update(
        self, plan_id: UUID, data: SellingPlanUpdate, organization_id: UUID
    ) -> SellingPlan | None:
        plan = self.get_by_id(plan_id, organization_id)
        if not plan:
            return None
        updates = build_updates(data, SELLING_PLAN_FIELD_MAP)
        if not updates:
            return plan
        self.db.query(SellingPlan).filter(
            SellingPlan.id == plan_id, SellingPlan.organization_id == organization_id
        ).update(updates, synchronize_session=False)
        self.db.commit()
        self.db.refresh(plan)
        return plan

    def delete(self, plan_id: UUID, organization_id: UUID) -> bool:
        plan = self.get_by_id(plan_id, organization_id)
        if not plan:
            return False
        self.db.delete(plan)
        self.db.commit()
        return True

    def toggle(self, plan_id: UUID, organization_id: UUID) -> SellingPlan | None:
        plan = self.get_by_id(plan_id, organization_id)
        if not plan:
            return None
        plan.is_active = not plan.is_active  # type: ignore[assignment]
        self.db.commit()
        self.db.refresh(plan)
        return plan
