"""Distribution resolver

For every NPC: collect matching entries, pick the winner by load order
(later file wins, then later authored entry within the file), and flag NPCs
that entries from two or more distinct files target.

Pure computation. The same inputs always give the same output, in NPC
snapshot order.
"""

from __future__ import annotations

from collections import defaultdict
from concurrent.futures import ThreadPoolExecutor
from typing import Iterable, Mapping, Optional, Sequence

from wardrobe.core.logging import get_logger

from .assignment import CandidateDistribution, NpcOutfitAssignment
from .entries import DistributionEntry, translate_keywords
from .errors import DuplicateRecordError
from .models import NpcRecord

logger = get_logger(__name__)


class _EntryIndex:
    """Pre-filter buckets. Every entry lives in exactly one kind of bucket.

    - override entries, keyed by NPC record id
    - criteria entries with a race list, keyed by race id
    - everything else, checked against every NPC
    """

    def __init__(self, entries: Sequence[DistributionEntry]) -> None:
        self.by_npc: dict[str, list[DistributionEntry]] = defaultdict(list)
        self.by_race: dict[str, list[DistributionEntry]] = defaultdict(list)
        self.general: list[DistributionEntry] = []

        for entry in entries:
            if entry.npc_ids:
                for record_id in entry.npc_ids:
                    self.by_npc[record_id].append(entry)
            elif entry.criteria is not None and entry.criteria.races:
                for race_id in dict.fromkeys(entry.criteria.races):
                    self.by_race[race_id].append(entry)
            else:
                self.general.append(entry)

    def candidates_for(self, npc: NpcRecord) -> list[DistributionEntry]:
        pool = list(self.general)
        pool.extend(self.by_npc.get(npc.record_id, ()))
        if npc.race_id is not None:
            pool.extend(self.by_race.get(npc.race_id, ()))
        return [entry for entry in pool if entry.targets(npc)]


def build_assignment(
    npc: NpcRecord, matched: Iterable[DistributionEntry]
) -> Optional[NpcOutfitAssignment]:
    """Winner selection and conflict flag for one NPC's matching entries."""
    ordered = sorted(matched, key=lambda e: e.precedence_key)
    if not ordered:
        return None

    last = len(ordered) - 1
    candidates = tuple(
        CandidateDistribution(entry=entry, is_winner=(i == last))
        for i, entry in enumerate(ordered)
    )
    distinct_files = {entry.source_file.lower() for entry in ordered}
    return NpcOutfitAssignment(
        record_id=npc.record_id,
        source_file=npc.source_file,
        name=npc.name,
        editor_id=npc.editor_id,
        candidates=candidates,
        has_conflict=len(distinct_files) >= 2,
    )


def _check_unique_ids(npcs: Sequence[NpcRecord]) -> None:
    seen: set[str] = set()
    for npc in npcs:
        if npc.record_id in seen:
            raise DuplicateRecordError(npc.record_id)
        seen.add(npc.record_id)


class Resolver:
    """Resolves the whole NPC snapshot against the whole rule collection."""

    def __init__(self, workers: int = 1) -> None:
        self._workers = max(1, workers)

    def resolve(
        self,
        npcs: Iterable[NpcRecord],
        entries: Iterable[DistributionEntry],
        keyword_names: Optional[Mapping[str, str]] = None,
    ) -> list[NpcOutfitAssignment]:
        """Compute one assignment per NPC that at least one entry targets.

        If ``keyword_names`` is given, keyword ids are translated once here;
        otherwise entries are expected to be translated already.

        Raises:
            DuplicateRecordError: the snapshot repeats a record id.
        """
        npc_list = list(npcs)
        _check_unique_ids(npc_list)

        entry_list = list(entries)
        if keyword_names is not None:
            entry_list, unresolved = translate_keywords(entry_list, keyword_names)
            for ref in unresolved:
                logger.warning(
                    f"Unresolved keyword {ref.reference_id} in entry "
                    f"{ref.entry_id} ({ref.source_file})"
                )

        if not npc_list or not entry_list:
            return []

        index = _EntryIndex(entry_list)

        def _resolve_one(npc: NpcRecord) -> Optional[NpcOutfitAssignment]:
            return build_assignment(npc, index.candidates_for(npc))

        if self._workers > 1:
            with ThreadPoolExecutor(max_workers=self._workers) as pool:
                results = list(pool.map(_resolve_one, npc_list))
        else:
            results = [_resolve_one(npc) for npc in npc_list]

        assignments = [a for a in results if a is not None]
        conflicted = sum(1 for a in assignments if a.has_conflict)
        logger.debug(
            f"Resolved {len(npc_list)} NPCs against {len(entry_list)} entries: "
            f"{len(assignments)} assigned, {conflicted} conflicted"
        )
        return assignments


def existing_distributions(
    npcs: Iterable[NpcRecord],
    entries: Iterable[DistributionEntry],
    authoring_file: str,
) -> dict[str, str]:
    """NPCs already given an outfit by a file other than ``authoring_file``.

    Maps record id to the highest-precedence other file targeting that NPC.
    Used to warn the author before adding an NPC to a new rule.
    """
    authoring_key = authoring_file.lower()
    others = [e for e in entries if e.source_file.lower() != authoring_key]
    if not others:
        return {}

    index = _EntryIndex(others)
    result: dict[str, str] = {}
    for npc in npcs:
        matched = index.candidates_for(npc)
        if matched:
            top = max(matched, key=lambda e: e.precedence_key)
            result[npc.record_id] = top.source_file
    return result
