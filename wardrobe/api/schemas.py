"""API request/response schemas."""

from typing import Optional

from pydantic import BaseModel, Field, model_validator

from wardrobe.core.distribution import (
    CandidateDistribution,
    DistributionEntry,
    FilterBuilder,
    FilterCriteria,
    NpcOutfitAssignment,
)


# === Request Schemas ===


class CriteriaSchema(BaseModel):
    """Filter criteria. Trait fields: null = any, true = only, false = never."""

    is_female: Optional[bool] = None
    is_unique: Optional[bool] = None
    is_templated: Optional[bool] = None
    is_child: Optional[bool] = None
    is_summonable: Optional[bool] = None
    is_leveled: Optional[bool] = None

    factions: list[str] = Field(default_factory=list, description="AND")
    races: list[str] = Field(default_factory=list, description="OR")
    keywords: list[str] = Field(default_factory=list, description="AND, record ids")

    min_level: Optional[int] = Field(None, ge=0)
    max_level: Optional[int] = Field(None, ge=0)

    def to_criteria(self) -> FilterCriteria:
        return FilterBuilder(**self.model_dump()).build()


class EntryCreateRequest(BaseModel):
    """New distribution rule"""

    source_file: str = Field(..., min_length=1)
    outfit_id: Optional[str] = Field(None, description="null removes the outfit")
    chance: Optional[int] = Field(None, ge=0, le=100)
    criteria: Optional[CriteriaSchema] = None
    npc_ids: list[str] = Field(default_factory=list)

    @model_validator(mode="after")
    def _single_targeting_mode(self) -> "EntryCreateRequest":
        if self.npc_ids and self.criteria is not None:
            raise ValueError("npc_ids and criteria are mutually exclusive")
        return self


# === Response Schemas ===


class EntryInfo(BaseModel):
    entry_id: str
    source_file: str
    priority: int
    order: int
    outfit_id: Optional[str] = None
    chance: int
    targeting_mode: str
    targeting_summary: str

    @classmethod
    def from_entry(cls, entry: DistributionEntry) -> "EntryInfo":
        return cls(
            entry_id=entry.entry_id,
            source_file=entry.source_file,
            priority=entry.priority,
            order=entry.order,
            outfit_id=entry.outfit_id,
            chance=entry.chance,
            targeting_mode=entry.targeting_mode.value,
            targeting_summary=entry.targeting_summary(),
        )


class CandidateInfo(BaseModel):
    """One matching rule for an NPC"""

    entry_id: str
    source_file: str
    priority: int
    chance: int
    outfit_id: Optional[str] = None
    outfit: str
    targeting: str
    targeting_description: str
    is_winner: bool

    @classmethod
    def from_candidate(cls, candidate: CandidateDistribution) -> "CandidateInfo":
        return cls(
            entry_id=candidate.entry.entry_id,
            source_file=candidate.source_file,
            priority=candidate.priority,
            chance=candidate.chance,
            outfit_id=candidate.outfit_id,
            outfit=candidate.outfit_display,
            targeting=candidate.targeting_summary,
            targeting_description=candidate.targeting_description,
            is_winner=candidate.is_winner,
        )


class AssignmentInfo(BaseModel):
    """Resolved outfit for one NPC"""

    record_id: str
    display_name: str
    editor_id: Optional[str] = None
    source_file: str
    final_outfit_id: Optional[str] = None
    final_outfit: str
    winning_file: str
    has_conflict: bool
    conflict_summary: str
    candidate_count: int
    chance_display: str
    targeting_type: str
    candidates: list[CandidateInfo] = []

    @classmethod
    def from_assignment(cls, assignment: NpcOutfitAssignment) -> "AssignmentInfo":
        return cls(
            record_id=assignment.record_id,
            display_name=assignment.display_name,
            editor_id=assignment.editor_id,
            source_file=assignment.source_file,
            final_outfit_id=assignment.winner_outfit_id,
            final_outfit=assignment.final_outfit_display,
            winning_file=assignment.winning_file,
            has_conflict=assignment.has_conflict,
            conflict_summary=assignment.conflict_summary,
            candidate_count=assignment.candidate_count,
            chance_display=assignment.chance_display,
            targeting_type=assignment.targeting_type,
            candidates=[CandidateInfo.from_candidate(c) for c in assignment.candidates],
        )


class ExistingDistributionInfo(BaseModel):
    record_id: str
    conflicting_file: str


class UnresolvedReferenceInfo(BaseModel):
    entry_id: str
    source_file: str
    kind: str
    reference_id: str


class ResolutionReportInfo(BaseModel):
    """Latest resolution pass as seen by the report listener"""

    passes: int
    stale: bool
    assigned: int
    conflicted_ids: list[str] = []
    unresolved: list[UnresolvedReferenceInfo] = []
