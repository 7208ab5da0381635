"""Database engine and session configuration."""

from collections.abc import Generator

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from wardrobe.config import settings

# SQLite connections are shared with FastAPI's worker threads
_connect_args = (
    {"check_same_thread": False} if settings.DATABASE_URL.startswith("sqlite") else {}
)

engine = create_engine(settings.DATABASE_URL, connect_args=_connect_args, echo=settings.DEBUG)

SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)


def get_db() -> Generator[Session, None, None]:
    """One session per request, closed afterwards.

    Snapshot rows are read-only here; only the distribution routes write.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
