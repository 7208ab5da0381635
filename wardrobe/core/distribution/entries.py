"""Distribution entries: one outfit bound to one targeting rule."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Iterable, Mapping, Optional

from .errors import InvalidEntryError
from .filters import FilterCriteria
from .models import NpcRecord


class TargetingMode(str, Enum):
    CRITERIA = "criteria"
    OVERRIDE = "override"


@dataclass(frozen=True)
class UnresolvedReference:
    """A stored id that could not be resolved against the loaded data."""

    entry_id: str
    source_file: str
    kind: str  # "keyword" | "faction" | "race" | "npc" | "source_file"
    reference_id: str


@dataclass(frozen=True)
class DistributionEntry:
    """A rule unit.

    Exactly one targeting mode is used: ``npc_ids`` (override) or
    ``criteria``. An entry with neither targets every NPC.
    ``outfit_id=None`` means the rule removes the outfit.
    """

    entry_id: str
    source_file: str
    outfit_id: Optional[str] = None
    outfit_editor_id: Optional[str] = None

    priority: int = 0  # load order position, higher wins
    order: int = 0  # authored position within the file, higher wins
    chance: int = 100  # informational only

    criteria: Optional[FilterCriteria] = None
    npc_ids: frozenset[str] = field(default_factory=frozenset)

    def __post_init__(self) -> None:
        if not 0 <= self.chance <= 100:
            raise InvalidEntryError(
                f"Entry {self.entry_id}: chance {self.chance} outside 0..100"
            )
        if self.npc_ids and self.criteria is not None and not self.criteria.is_empty:
            raise InvalidEntryError(
                f"Entry {self.entry_id}: override NPC list and filter criteria "
                "are mutually exclusive"
            )

    @property
    def targeting_mode(self) -> TargetingMode:
        return TargetingMode.OVERRIDE if self.npc_ids else TargetingMode.CRITERIA

    @property
    def targets_all_npcs(self) -> bool:
        if self.npc_ids:
            return False
        return self.criteria is None or self.criteria.is_empty

    @property
    def precedence_key(self) -> tuple[int, int, str, str]:
        """Sort key; the maximum is the winner."""
        return (self.priority, self.order, self.source_file, self.entry_id)

    def targets(self, npc: NpcRecord) -> bool:
        if self.npc_ids:
            return npc.record_id in self.npc_ids
        if self.criteria is None:
            return True
        return self.criteria.matches(npc)

    # ── Provenance summaries ────────────────────────────────

    def targeting_types(self) -> list[str]:
        if self.npc_ids or self.criteria is None:
            return []
        types = []
        if self.criteria.uses_keywords:
            types.append("Keyword")
        if self.criteria.uses_factions:
            types.append("Faction")
        if self.criteria.uses_races:
            types.append("Race")
        if self.criteria.has_trait_filters or self.criteria.uses_level_range:
            types.append("Trait")
        return types

    def targeting_summary(self) -> str:
        """Short grid label: All, Specific, or the filter kinds in use."""
        if self.targets_all_npcs:
            return "All"
        types = self.targeting_types()
        return ", ".join(types) if types else "Specific"

    def targeting_description(self) -> str:
        if self.npc_ids:
            return f"{len(self.npc_ids)} specific NPC(s)"
        if self.targets_all_npcs:
            return "All NPCs"

        criteria = self.criteria
        parts = []
        if criteria.keywords:
            parts.append("Keywords: " + ", ".join(criteria.keywords))
        if criteria.factions:
            parts.append("Factions: " + ", ".join(criteria.factions))
        if criteria.races:
            parts.append("Races: " + " | ".join(criteria.races))
        traits = [
            f"{'' if value.as_optional() else '-'}{name}"
            for name, value in (
                ("F", criteria.female),
                ("U", criteria.unique),
                ("T", criteria.templated),
                ("C", criteria.child),
                ("S", criteria.summonable),
                ("L", criteria.leveled),
            )
            if value.as_optional() is not None
        ]
        if traits:
            parts.append("Traits: " + "/".join(traits))
        if criteria.uses_level_range:
            low = criteria.min_level if criteria.min_level is not None else ""
            high = criteria.max_level if criteria.max_level is not None else ""
            parts.append(f"Level: {low}..{high}")
        return "; ".join(parts)


def translate_keywords(
    entries: Iterable[DistributionEntry], keyword_names: Mapping[str, str]
) -> tuple[list[DistributionEntry], list[UnresolvedReference]]:
    """Translate keyword ids of every criteria entry in one pass.

    Entries whose keywords cannot all be resolved stay in the result; their
    keyword check simply never passes.
    """
    translated: list[DistributionEntry] = []
    unresolved: list[UnresolvedReference] = []
    for entry in entries:
        if entry.criteria is None or not entry.criteria.keywords:
            translated.append(entry)
            continue
        criteria, missing = entry.criteria.with_keyword_names(keyword_names)
        unresolved.extend(
            UnresolvedReference(entry.entry_id, entry.source_file, "keyword", k)
            for k in missing
        )
        translated.append(replace(entry, criteria=criteria))
    return translated, unresolved
