from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, func

from cadence.core.database import Base
from cadence.models.customer import generate_string_id
from cadence.models.shared import DEFAULT_ORGANIZATION_ID, UUIDType


class Product(Base):
    """Catalog product that subscriptions and selling plans point at."""

    __tablename__ = "products"

    id = Column(String(255), primary_key=True, default=generate_string_id)
    organization_id = Column(
        UUIDType,
        ForeignKey("organizations.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
        default=DEFAULT_ORGANIZATION_ID,
    )
    title = Column(String(255), nullable=False)
    handle = Column(String(255), nullable=True, index=True)
    price_cents = Column(Integer, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
