"""Outfit distribution engine — public API"""

from wardrobe.core.distribution.assignment import (
    CandidateDistribution,
    NpcOutfitAssignment,
)
from wardrobe.core.distribution.entries import (
    DistributionEntry,
    TargetingMode,
    UnresolvedReference,
    translate_keywords,
)
from wardrobe.core.distribution.errors import (
    DuplicateRecordError,
    DuplicateSourceFileError,
    InvalidEntryError,
    UnknownSourceFileError,
    WardrobeError,
)
from wardrobe.core.distribution.filters import FilterBuilder, FilterCriteria
from wardrobe.core.distribution.load_order import LoadOrder
from wardrobe.core.distribution.models import NpcRecord, TraitFilter
from wardrobe.core.distribution.resolver import (
    Resolver,
    build_assignment,
    existing_distributions,
)

__all__ = [
    "CandidateDistribution",
    "NpcOutfitAssignment",
    "DistributionEntry",
    "TargetingMode",
    "UnresolvedReference",
    "translate_keywords",
    "DuplicateRecordError",
    "DuplicateSourceFileError",
    "InvalidEntryError",
    "UnknownSourceFileError",
    "WardrobeError",
    "FilterBuilder",
    "FilterCriteria",
    "LoadOrder",
    "NpcRecord",
    "TraitFilter",
    "Resolver",
    "build_assignment",
    "existing_distributions",
]
