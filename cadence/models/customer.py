from sqlalchemy import Column, DateTime, ForeignKey, String, func

from cadence.core.database import Base
from cadence.models.shared import DEFAULT_ORGANIZATION_ID, UUIDType, generate_uuid


def generate_string_id() -> str:
    """Generate a text primary key for rows referenced by external systems."""
    return str(generate_uuid())


class Customer(Base):
    """Storefront customer.

    Subscriptions reference customers by ``id`` without a foreign key so that
    provider syncs can land before the customer row exists.
    """

    __tablename__ = "customers"

    id = Column(String(255), primary_key=True, default=generate_string_id)
    organization_id = Column(
        UUIDType,
        ForeignKey("organizations.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
        default=DEFAULT_ORGANIZATION_ID,
    )
    email = Column(String(255), nullable=True, index=True)
    name = Column(String(255), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
