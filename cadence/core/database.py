from collections.abc import Callable, Generator
from typing import Any, TypeVar
from uuid import UUID

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from cadence.core.config import settings

T = TypeVar("T")

engine = create_engine(
    settings.APP_DATABASE_DSN,
    connect_args=({"check_same_thread": False} if "sqlite" in settings.APP_DATABASE_DSN else {}),
)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base: Any = declarative_base()


def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def with_tenant(organization_id: UUID, fn: Callable[[Session], T]) -> T:
    """Run ``fn`` with a session scoped to one tenant.

    The session is tagged with the organization so nested helpers can read
    ``db.info["organization_id"]``. The session is always closed afterwards.
    """
    db = SessionLocal()
    db.info["organization_id"] = organization_id
    try:
        return fn(db)
    finally:
        db.close()


def init_db() -> None:
    """Initialize database tables."""
    Base.metadata.create_all(bind=engine)
