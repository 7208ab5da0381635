"""NPC snapshot model and the three-valued trait filter (DB independent)."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


class TraitFilter(str, Enum):
    """Constraint on one boolean NPC attribute."""

    UNSET = "unset"
    REQUIRE = "require"
    EXCLUDE = "exclude"

    def check(self, value: bool) -> bool:
        if self is TraitFilter.REQUIRE:
            return value
        if self is TraitFilter.EXCLUDE:
            return not value
        return True

    @classmethod
    def from_optional(cls, value: Optional[bool]) -> "TraitFilter":
        """None -> UNSET, True -> REQUIRE, False -> EXCLUDE."""
        if value is None:
            return cls.UNSET
        return cls.REQUIRE if value else cls.EXCLUDE

    def as_optional(self) -> Optional[bool]:
        if self is TraitFilter.UNSET:
            return None
        return self is TraitFilter.REQUIRE


@dataclass(frozen=True)
class NpcRecord:
    """Read-only snapshot of one NPC's filterable attributes.

    ``keywords`` holds keyword editor names, not record ids. Criteria keyword
    ids have to be translated into this namespace before matching.
    """

    record_id: str  # "013BB9:Skyrim.esm"
    source_file: str
    name: str = ""
    editor_id: Optional[str] = None

    # traits
    is_female: bool = False
    is_unique: bool = False
    template_id: Optional[str] = None
    is_child: bool = False
    is_summonable: bool = False
    is_leveled: bool = False

    level: int = 1
    factions: frozenset[str] = field(default_factory=frozenset)
    keywords: frozenset[str] = field(default_factory=frozenset)
    race_id: Optional[str] = None

    @property
    def is_templated(self) -> bool:
        return self.template_id is not None

    @property
    def display_name(self) -> str:
        if self.name and self.name.strip():
            return self.name
        return self.editor_id or "(No EditorID)"
