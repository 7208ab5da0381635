"""NPC filter criteria

Trait flags are tri-state, factions and keywords are AND lists, races are an
OR list, and the level range is inclusive on both ends. An all-unset criteria
bundle matches every NPC.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Mapping, Optional

from .models import NpcRecord, TraitFilter

TRAIT_FIELDS: tuple[str, ...] = (
    "female",
    "unique",
    "templated",
    "child",
    "summonable",
    "leveled",
)


@dataclass(frozen=True)
class FilterCriteria:
    """Immutable predicate bundle attached to a distribution entry."""

    female: TraitFilter = TraitFilter.UNSET
    unique: TraitFilter = TraitFilter.UNSET
    templated: TraitFilter = TraitFilter.UNSET
    child: TraitFilter = TraitFilter.UNSET
    summonable: TraitFilter = TraitFilter.UNSET
    leveled: TraitFilter = TraitFilter.UNSET

    factions: tuple[str, ...] = ()  # AND
    races: tuple[str, ...] = ()  # OR
    keywords: tuple[str, ...] = ()  # AND, keyword record ids

    min_level: Optional[int] = None
    max_level: Optional[int] = None

    # Filled in by with_keyword_names(). None = not translated (or unresolved).
    keyword_names: Optional[frozenset[str]] = field(default=None, compare=False)

    # ── Queries ─────────────────────────────────────────────

    @property
    def has_trait_filters(self) -> bool:
        return any(getattr(self, name) is not TraitFilter.UNSET for name in TRAIT_FIELDS)

    @property
    def uses_factions(self) -> bool:
        return bool(self.factions)

    @property
    def uses_races(self) -> bool:
        return bool(self.races)

    @property
    def uses_keywords(self) -> bool:
        return bool(self.keywords)

    @property
    def uses_level_range(self) -> bool:
        return self.min_level is not None or self.max_level is not None

    @property
    def is_empty(self) -> bool:
        return not (
            self.has_trait_filters
            or self.uses_factions
            or self.uses_races
            or self.uses_keywords
            or self.uses_level_range
        )

    # ── Evaluation ──────────────────────────────────────────

    def matches(self, npc: NpcRecord) -> bool:
        """True if the NPC passes every active check."""
        if not self.female.check(npc.is_female):
            return False
        if not self.unique.check(npc.is_unique):
            return False
        if not self.templated.check(npc.is_templated):
            return False
        if not self.child.check(npc.is_child):
            return False
        if not self.summonable.check(npc.is_summonable):
            return False
        if not self.leveled.check(npc.is_leveled):
            return False

        if self.factions and not npc.factions.issuperset(self.factions):
            return False

        if self.races and (npc.race_id is None or npc.race_id not in self.races):
            return False

        if self.keywords:
            if self.keyword_names is None:
                return False
            if not npc.keywords.issuperset(self.keyword_names):
                return False

        if self.min_level is not None and npc.level < self.min_level:
            return False
        return self.max_level is None or npc.level <= self.max_level

    # ── Keyword translation ─────────────────────────────────

    def with_keyword_names(
        self, keyword_names: Mapping[str, str]
    ) -> tuple["FilterCriteria", list[str]]:
        """Translate keyword record ids into the NPC keyword namespace.

        Returns the translated copy and the ids that could not be resolved.
        With any unresolved id the copy keeps ``keyword_names=None`` so the
        keyword check can never pass.
        """
        if not self.keywords:
            return self, []

        unresolved = [k for k in self.keywords if k not in keyword_names]
        if unresolved:
            return replace(self, keyword_names=None), unresolved
        names = frozenset(keyword_names[k] for k in self.keywords)
        return replace(self, keyword_names=names), []

    # ── Storage form ────────────────────────────────────────

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            name: getattr(self, name).as_optional() for name in TRAIT_FIELDS
        }
        data["factions"] = list(self.factions)
        data["races"] = list(self.races)
        data["keywords"] = list(self.keywords)
        data["min_level"] = self.min_level
        data["max_level"] = self.max_level
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "FilterCriteria":
        traits = {
            name: TraitFilter.from_optional(data.get(name)) for name in TRAIT_FIELDS
        }
        return cls(
            **traits,
            factions=tuple(data.get("factions") or ()),
            races=tuple(data.get("races") or ()),
            keywords=tuple(data.get("keywords") or ()),
            min_level=data.get("min_level"),
            max_level=data.get("max_level"),
        )


@dataclass
class FilterBuilder:
    """Mutable criteria used while a rule is being edited.

    Trait fields are nullable bools here: None = any, True = only, False = never.
    """

    is_female: Optional[bool] = None
    is_unique: Optional[bool] = None
    is_templated: Optional[bool] = None
    is_child: Optional[bool] = None
    is_summonable: Optional[bool] = None
    is_leveled: Optional[bool] = None

    factions: list[str] = field(default_factory=list)
    races: list[str] = field(default_factory=list)
    keywords: list[str] = field(default_factory=list)

    min_level: Optional[int] = None
    max_level: Optional[int] = None

    @property
    def has_trait_filters(self) -> bool:
        return any(
            value is not None
            for value in (
                self.is_female,
                self.is_unique,
                self.is_templated,
                self.is_child,
                self.is_summonable,
                self.is_leveled,
            )
        )

    @property
    def is_empty(self) -> bool:
        return (
            not self.has_trait_filters
            and not self.factions
            and not self.races
            and not self.keywords
            and self.min_level is None
            and self.max_level is None
        )

    def clear(self) -> None:
        """Reset every filter to the unfiltered state."""
        self.is_female = None
        self.is_unique = None
        self.is_templated = None
        self.is_child = None
        self.is_summonable = None
        self.is_leveled = None
        self.factions.clear()
        self.races.clear()
        self.keywords.clear()
        self.min_level = None
        self.max_level = None

    def build(self) -> FilterCriteria:
        # dict.fromkeys keeps authored order while dropping repeats
        return FilterCriteria(
            female=TraitFilter.from_optional(self.is_female),
            unique=TraitFilter.from_optional(self.is_unique),
            templated=TraitFilter.from_optional(self.is_templated),
            child=TraitFilter.from_optional(self.is_child),
            summonable=TraitFilter.from_optional(self.is_summonable),
            leveled=TraitFilter.from_optional(self.is_leveled),
            factions=tuple(dict.fromkeys(self.factions)),
            races=tuple(dict.fromkeys(self.races)),
            keywords=tuple(dict.fromkeys(self.keywords)),
            min_level=self.min_level,
            max_level=self.max_level,
        )
