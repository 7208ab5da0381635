"""Shared test fixtures."""

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from wardrobe.core.event_bus import EventBus
from wardrobe.db.database import get_db
from wardrobe.db.models import Base
from wardrobe.main import app
from wardrobe.services.resolution_report import ResolutionReport

TEST_ENGINE = create_engine(
    "sqlite:///:memory:",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestSession = sessionmaker(bind=TEST_ENGINE, autocommit=False, autoflush=False)


def _override_get_db():
    db = TestSession()
    try:
        yield db
    finally:
        db.close()


app.dependency_overrides[get_db] = _override_get_db


@pytest.fixture(autouse=True)
def _fresh_schema():
    """Every test starts from empty tables."""
    Base.metadata.create_all(TEST_ENGINE)
    yield
    Base.metadata.drop_all(TEST_ENGINE)


@pytest.fixture()
def event_bus() -> EventBus:
    return EventBus()


@pytest.fixture()
def resolution_report(event_bus: EventBus) -> ResolutionReport:
    report = ResolutionReport()
    report.attach(event_bus)
    return report


@pytest.fixture()
def client(event_bus: EventBus, resolution_report: ResolutionReport) -> TestClient:
    """FastAPI TestClient wired to an in-memory SQLite database."""
    app.state.event_bus = event_bus
    app.state.resolution_report = resolution_report
    return TestClient(app)


@pytest.fixture()
def db_session() -> Session:
    """Raw database session for direct DB assertions."""
    session = TestSession()
    try:
        yield session
    finally:
        session.close()
