from uuid import UUID

from sqlalchemy.orm import Session

from cadence.models.organization import Organization


class OrganizationRepository:
    def __init__(self, db: Session):
        self.db = db

    def get_ids(self) -> list[UUID]:
        return [org_id for (org_id,) in self.db.query(Organization.id).all()]

    def create(self, name: str, slug: str | None = None) -> Organization:
        org = Organization(name=name, slug=slug)
        self.db.add(org)
        self.db.commit()
        self.db.refresh(org)
        return org
