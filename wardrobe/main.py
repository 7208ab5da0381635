"""FastAPI application entrypoint."""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI

from wardrobe.api.distribution import router as distribution_router
from wardrobe.api.health import router as health_router
from wardrobe.config import settings
from wardrobe.core.event_bus import EventBus
from wardrobe.core.logging import get_logger, setup_logging
from wardrobe.db.database import engine as db_engine
from wardrobe.db.models import Base
from wardrobe.services.resolution_report import ResolutionReport

setup_logging(settings.LOG_LEVEL, sql_echo=settings.DEBUG)
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup and shutdown events."""
    logger.info("Creating database tables...")
    Base.metadata.create_all(bind=db_engine)
    logger.info("Database tables created.")

    event_bus = EventBus()
    report = ResolutionReport()
    report.attach(event_bus)
    app.state.event_bus = event_bus
    app.state.resolution_report = report
    logger.info(f"Resolver workers: {settings.RESOLVER_WORKERS}")

    yield

    logger.info("Shutting down...")
    report.detach()
    event_bus.clear()


app = FastAPI(title="Wardrobe", lifespan=lifespan)

app.include_router(health_router)
app.include_router(distribution_router)
