from uuid import UUID

from sqlalchemy.orm import Session

from cadence.core.field_updates import build_updates
from cadence.models.save_flow import SaveFlow
from cadence.models.shared import utc_now
from cadence.schemas.save_flow import SaveFlowCreate, SaveFlowUpdate

SAVE_FLOW_FIELD_MAP = {
    "name": SaveFlow.name,
    "description": SaveFlow.description,
    "flow_type": SaveFlow.flow_type,
    "trigger_conditions": SaveFlow.trigger_conditions,
    "steps": SaveFlow.steps,
    "offers": SaveFlow.offers,
    "is_enabled": SaveFlow.is_enabled,
    "priority": SaveFlow.priority,
}


class SaveFlowRepository:
    def __init__(self, db: Session):
        self.db = db

    def get_all(
        self,
        organization_id: UUID,
        flow_type: str | None = None,
        enabled_only: bool = False,
    ) -> list[SaveFlow]:
        """Flows in selection order: highest priority first, then newest."""
        query = self.db.query(SaveFlow).filter(SaveFlow.organization_id == organization_id)
        if flow_type is not None:
            query = query.filter(SaveFlow.flow_type == flow_type)
        if enabled_only:
            query = query.filter(SaveFlow.is_enabled == True)  # noqa: E712
        return query.order_by(SaveFlow.priority.desc(), SaveFlow.created_at.desc()).all()

    def get_by_id(self, flow_id: UUID, organization_id: UUID) -> SaveFlow | None:
        return (
            self.db.query(SaveFlow)
            .filter(SaveFlow.id == flow_id, SaveFlow.organization_id == organization_id)
            .first()
        )

    def create(self, data: SaveFlowCreate, organization_id: UUID) -> SaveFlow:
        flow = SaveFlow(
            organization_id=organization_id,
            name=data.name,
            description=data.description,
            flow_type=data.flow_type.value,
            trigger_conditions=data.trigger_conditions.model_dump(mode="json"),
            steps=[step.model_dump(mode="json") for step in data.steps],
            offers=[offer.model_dump(mode="json") for offer in data.offers],
            is_enabled=data.is_enabled,
            priority=data.priority,
            created_at=utc_now(),
        )
        self.db.add(flow)
        self.db.commit()
        self.db.refresh(flow)
        return flow

    def update(
        self, flow_id: UUID, data: SaveFlowUpdate, organization_id: UUID
    ) -> SaveFlow | None:
        flow = self.get_by_id(flow_id, organization_id)
        if not flow:
            return None
        updates = build_updates(data, SAVE_FLOW_FIELD_MAP)
        if not updates:
            return flow
        self.db.query(SaveFlow).filter(
            SaveFlow.id == flow_id, SaveFlow.organization_id == organization_id
        ).update(updates, synchronize_session=False)
        self.db.commit()
        self.db.refresh(flow)
        return flow

    def delete(self, flow_id: UUID, organization_id: UUID) -> bool:
        flow = self.get_by_id(flow_id, organization_id)
        if not flow:
            return False
        self.db.delete(flow)
        self.db.commit()
        return True

    def toggle(self, flow_id: UUID, organization_id: UUID) -> SaveFlow | None:
        flow = self.get_by_id(flow_id, organization_id)
        if not flow:
            return None
        flow.is_enabled = not flow.is_enabled  # type: ignore[assignment]
        self.db.commit()
        self.db.refresh(flow)
        return flow

    def increment_triggered(self, flow_id: UUID, organization_id: UUID) -> int:
        """Atomic ``total_triggered + 1``. Does not commit."""
        return (
            self.db.query(SaveFlow)
            .filter(SaveFlow.id == flow_id, SaveFlow.organization_id == organization_id)
            .update(
                {SaveFlow.total_triggered: SaveFlow.total_triggered + 1},
                synchronize_session=False,
            )
        )

    def record_saved(self, flow_id: UUID, organization_id: UUID, revenue_cents: int) -> int:
        """Atomic ``total_saved + 1`` and revenue add. Does not commit."""
        return (
            self.db.query(SaveFlow)
            .filter(SaveFlow.id == flow_id, SaveFlow.organization_id == organization_id)
            .update(
                {
                    SaveFlow.total_saved: SaveFlow.total_saved + 1,
                    SaveFlow.revenue_saved_cents: SaveFlow.revenue_saved_cents + revenue_cents,
                },
                synchronize_session=False,
            )
        )
