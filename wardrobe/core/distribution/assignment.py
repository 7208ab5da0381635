"""Per-NPC resolution result consumed by presentation and export layers."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .entries import DistributionEntry

NO_OUTFIT_DISPLAY = "(No outfit)"


@dataclass(frozen=True)
class CandidateDistribution:
    """One matching entry plus its winner flag."""

    entry: DistributionEntry
    is_winner: bool = False

    @property
    def source_file(self) -> str:
        return self.entry.source_file

    @property
    def priority(self) -> int:
        return self.entry.priority

    @property
    def chance(self) -> int:
        return self.entry.chance

    @property
    def outfit_id(self) -> Optional[str]:
        return self.entry.outfit_id

    @property
    def outfit_display(self) -> str:
        return self.entry.outfit_editor_id or self.entry.outfit_id or NO_OUTFIT_DISPLAY

    @property
    def targeting_summary(self) -> str:
        return self.entry.targeting_summary()

    @property
    def targeting_description(self) -> str:
        return self.entry.targeting_description()


@dataclass(frozen=True)
class NpcOutfitAssignment:
    """Resolved outfit for one NPC.

    ``candidates`` are in application order: the winner is always last.
    """

    record_id: str
    source_file: str
    name: str
    editor_id: Optional[str]
    candidates: tuple[CandidateDistribution, ...]
    has_conflict: bool

    @property
    def display_name(self) -> str:
        if self.name and self.name.strip():
            return self.name
        return self.editor_id or "(No EditorID)"

    @property
    def winner(self) -> Optional[CandidateDistribution]:
        return next((c for c in self.candidates if c.is_winner), None)

    @property
    def winner_outfit_id(self) -> Optional[str]:
        winner = self.winner
        return winner.outfit_id if winner else None

    @property
    def final_outfit_display(self) -> str:
        winner = self.winner
        return winner.outfit_display if winner else NO_OUTFIT_DISPLAY

    @property
    def candidate_count(self) -> int:
        return len(self.candidates)

    @property
    def source_files(self) -> list[str]:
        """Distinct files with a matching entry, in application order.

        Names compare case-insensitively, as for ``has_conflict``; the first
        spelling seen is kept.
        """
        files: dict[str, str] = {}
        for candidate in self.candidates:
            files.setdefault(candidate.source_file.lower(), candidate.source_file)
        return list(files.values())

    @property
    def winning_file(self) -> str:
        winner = self.winner
        return winner.source_file if winner else ""

    @property
    def chance(self) -> int:
        winner = self.winner
        return winner.chance if winner else 100

    @property
    def has_conditional_chance(self) -> bool:
        return self.chance < 100

    @property
    def chance_display(self) -> str:
        return f"{self.chance}%" if self.has_conditional_chance else ""

    @property
    def targeting_type(self) -> str:
        winner = self.winner
        return winner.targeting_summary if winner else ""

    @property
    def conflict_summary(self) -> str:
        return f"{len(self.source_files)} files" if self.has_conflict else ""
