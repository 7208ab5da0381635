"""Health check endpoint."""

from fastapi import APIRouter, Depends
from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from wardrobe.db.database import get_db
from wardrobe.db.models import DistributionEntryModel, NpcRecordModel

router = APIRouter()


@router.get("/health")
def health_check(db: Session = Depends(get_db)) -> dict[str, object]:
    """Database status plus the size of the loaded snapshot and rule set."""
    try:
        npc_count = db.scalar(select(func.count()).select_from(NpcRecordModel))
        entry_count = db.scalar(select(func.count()).select_from(DistributionEntryModel))
    except SQLAlchemyError:
        return {"status": "error", "database": "disconnected"}
    return {
        "status": "ok",
        "database": "connected",
        "npc_records": npc_count,
        "distribution_entries": entry_count,
    }
