"""Distribution API endpoints."""

from typing import Any, Callable, Optional, TypeVar

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session

from wardrobe.api.schemas import (
    AssignmentInfo,
    EntryCreateRequest,
    EntryInfo,
    ExistingDistributionInfo,
    ResolutionReportInfo,
)
from wardrobe.core.distribution import (
    DuplicateRecordError,
    InvalidEntryError,
    UnknownSourceFileError,
)
from wardrobe.core.logging import get_logger
from wardrobe.db.database import get_db
from wardrobe.services.distribution_service import DistributionService
from wardrobe.services.resolution_report import ResolutionReport

logger = get_logger(__name__)

router = APIRouter(prefix="/distribution", tags=["distribution"])

T = TypeVar("T")


def get_distribution_service(
    request: Request, db: Session = Depends(get_db)
) -> DistributionService:
    """DistributionService bound to the request's DB session"""
    return DistributionService(db, request.app.state.event_bus)


def get_resolution_report(request: Request) -> ResolutionReport:
    report: ResolutionReport = request.app.state.resolution_report
    return report


def _run_pass(operation: Callable[..., T], *args: Any) -> T:
    """Run a service call that resolves; a broken snapshot becomes 409."""
    try:
        return operation(*args)
    except DuplicateRecordError as e:
        logger.error(f"Resolution aborted: {e}")
        raise HTTPException(status_code=409, detail=str(e))


@router.get("/assignments", response_model=list[AssignmentInfo])
def list_assignments(
    conflicts_only: bool = False,
    service: DistributionService = Depends(get_distribution_service),
) -> list[AssignmentInfo]:
    """Resolved outfit per NPC. ``conflicts_only`` keeps multi-file NPCs."""
    operation = service.conflicts if conflicts_only else service.resolve_all
    return [AssignmentInfo.from_assignment(a) for a in _run_pass(operation)]


@router.get("/assignments/{record_id}", response_model=AssignmentInfo)
def get_assignment(
    record_id: str,
    service: DistributionService = Depends(get_distribution_service),
) -> AssignmentInfo:
    assignment = _run_pass(service.get_assignment, record_id)
    if assignment is None:
        raise HTTPException(status_code=404, detail=f"No assignment for {record_id}")
    return AssignmentInfo.from_assignment(assignment)


@router.get("/report", response_model=ResolutionReportInfo)
def get_report(
    report: ResolutionReport = Depends(get_resolution_report),
) -> ResolutionReportInfo:
    """Outcome of the latest pass, without resolving again."""
    return ResolutionReportInfo(**report.as_dict())


@router.get("/existing", response_model=list[ExistingDistributionInfo])
def list_existing_distributions(
    source_file: str,
    service: DistributionService = Depends(get_distribution_service),
) -> list[ExistingDistributionInfo]:
    """NPCs another file already distributes to, relative to ``source_file``."""
    existing = service.existing_distributions(source_file)
    return [
        ExistingDistributionInfo(record_id=record_id, conflicting_file=file_name)
        for record_id, file_name in sorted(existing.items())
    ]


@router.post("/entries", response_model=EntryInfo, status_code=201)
def create_entry(
    request: EntryCreateRequest,
    service: DistributionService = Depends(get_distribution_service),
) -> EntryInfo:
    try:
        entry = service.add_entry(
            source_file=request.source_file,
            outfit_id=request.outfit_id,
            criteria=request.criteria.to_criteria() if request.criteria else None,
            npc_ids=request.npc_ids,
            chance=request.chance,
        )
    except (UnknownSourceFileError, InvalidEntryError) as e:
        raise HTTPException(status_code=400, detail=str(e))
    return EntryInfo.from_entry(entry)


@router.delete("/entries/{entry_id}", status_code=204)
def delete_entry(
    entry_id: str,
    service: DistributionService = Depends(get_distribution_service),
) -> None:
    if not service.remove_entry(entry_id):
        raise HTTPException(status_code=404, detail=f"Entry not found: {entry_id}")


@router.delete("/entries")
def clear_entries(
    source_file: Optional[str] = None,
    service: DistributionService = Depends(get_distribution_service),
) -> dict[str, int]:
    return {"removed": service.clear_entries(source_file)}
