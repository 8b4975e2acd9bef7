from sqlalchemy import Column, DateTime, String, func

from cadence.core.database import Base
from cadence.models.shared import UUIDType, generate_uuid


class Organization(Base):
    """A tenant. Every tenant-owned row references one organization."""

    __tablename__ = "organizations"

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    name = Column(String(255), nullable=False)
    slug = Column(String(100), nullable=True, unique=True, index=True)
    default_currency = Column(String(3), nullable=False, default="USD")
    timezone = Column(String(50), nullable=False, default="UTC")

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
