"""Database engine and session management."""

from collections.abc import Iterator

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from src.config import settings
from src.db.models import Base

sync_engine = create_engine(settings.postgres_url_sync, pool_pre_ping=True)

SessionLocal = sessionmaker(bind=sync_engine, expire_on_commit=False)


def init_db_sync() -> None:
    """Create all tables if they do not exist."""
    Base.metadata.create_all(sync_engine)


def get_session() -> Iterator[Session]:
    """FastAPI dependency yielding a short-lived read session."""
    with SessionLocal() as session:
        yield session
