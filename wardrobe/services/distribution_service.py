"""Distribution Service — connects the DB snapshot to the resolver

Service -> Core and Service -> DB only. Listeners hear about results through
the EventBus.
"""

import uuid
from typing import Iterable, Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from wardrobe.config import settings
from wardrobe.core.distribution import (
    DistributionEntry,
    FilterCriteria,
    LoadOrder,
    NpcOutfitAssignment,
    NpcRecord,
    Resolver,
    UnknownSourceFileError,
    UnresolvedReference,
    existing_distributions,
    translate_keywords,
)
from wardrobe.core.event_bus import EventBus
from wardrobe.core.event_types import EventTypes
from wardrobe.core.logging import get_logger
from wardrobe.db.models import (
    DistributionEntryModel,
    KeywordRecordModel,
    NpcRecordModel,
    OutfitRecordModel,
    SourceFileModel,
)

logger = get_logger(__name__)

SOURCE = "distribution_service"


class DistributionService:
    """Snapshot loading, resolution passes, and rule authoring."""

    def __init__(
        self,
        db: Session,
        event_bus: EventBus,
        resolver: Optional[Resolver] = None,
    ) -> None:
        self._db = db
        self._bus = event_bus
        self._resolver = resolver or Resolver(workers=settings.RESOLVER_WORKERS)

    # ── Snapshot loading ────────────────────────────────────

    def load_npcs(self) -> list[NpcRecord]:
        rows = self._db.scalars(
            select(NpcRecordModel).order_by(NpcRecordModel.record_id)
        ).all()
        return [self._npc_from_orm(row) for row in rows]

    def load_keyword_names(self) -> dict[str, str]:
        rows = self._db.scalars(select(KeywordRecordModel)).all()
        return {row.record_id: row.editor_id for row in rows}

    def load_outfit_names(self) -> dict[str, Optional[str]]:
        rows = self._db.scalars(select(OutfitRecordModel)).all()
        return {row.record_id: row.editor_id for row in rows}

    def load_load_order(self) -> LoadOrder:
        rows = self._db.scalars(
            select(SourceFileModel).order_by(SourceFileModel.position)
        ).all()
        return LoadOrder(row.file_name for row in rows)

    def load_entries(
        self, load_order: Optional[LoadOrder] = None
    ) -> list[DistributionEntry]:
        """All authored entries whose source file is still in the load order."""
        entries, _ = self._load_entries_checked(load_order)
        return entries

    def _load_entries_checked(
        self, load_order: Optional[LoadOrder] = None
    ) -> tuple[list[DistributionEntry], list[UnresolvedReference]]:
        """Entries plus the rows skipped because their file left the load order."""
        load_order = load_order or self.load_load_order()
        outfit_names = self.load_outfit_names()
        rows = self._db.scalars(
            select(DistributionEntryModel).order_by(
                DistributionEntryModel.source_file,
                DistributionEntryModel.position,
            )
        ).all()

        entries: list[DistributionEntry] = []
        orphaned: list[UnresolvedReference] = []
        for row in rows:
            if row.source_file not in load_order:
                logger.warning(
                    f"Skipping entry {row.entry_id}: source file "
                    f"{row.source_file} is not in the load order"
                )
                orphaned.append(
                    UnresolvedReference(row.entry_id, row.source_file, "source_file", row.source_file)
                )
                continue
            entries.append(self._entry_from_orm(row, load_order, outfit_names))
        return entries, orphaned

    # ── Resolution ──────────────────────────────────────────

    def resolve_all(self) -> list[NpcOutfitAssignment]:
        """Full resolution pass over the current snapshot and rule set."""
        npcs = self.load_npcs()
        keyword_names = self.load_keyword_names()
        entries, orphaned = self._load_entries_checked()

        # once per pass, not per NPC
        translated, _ = translate_keywords(entries, keyword_names)
        unresolved = orphaned + self.find_unresolved_references(entries, npcs, keyword_names)
        for ref in unresolved:
            if ref.kind != "source_file":
                logger.warning(
                    f"Unresolved {ref.kind} reference {ref.reference_id} "
                    f"in entry {ref.entry_id} ({ref.source_file})"
                )
        if unresolved:
            self._bus.emit(
                EventTypes.UNRESOLVED_REFERENCES,
                SOURCE,
                references=[
                    {
                        "entry_id": r.entry_id,
                        "source_file": r.source_file,
                        "kind": r.kind,
                        "reference_id": r.reference_id,
                    }
                    for r in unresolved
                ],
            )

        assignments = self._resolver.resolve(npcs, translated)
        conflicted_ids = [a.record_id for a in assignments if a.has_conflict]
        logger.info(
            f"Resolution pass: {len(npcs)} NPCs, {len(entries)} entries, "
            f"{len(assignments)} assigned, {len(conflicted_ids)} conflicted"
        )

        self._bus.emit(
            EventTypes.ASSIGNMENTS_RESOLVED,
            SOURCE,
            assigned=len(assignments),
            conflicted=len(conflicted_ids),
            conflicted_ids=conflicted_ids,
            unresolved=len(unresolved),
        )
        return assignments

    def get_assignment(self, record_id: str) -> Optional[NpcOutfitAssignment]:
        for assignment in self.resolve_all():
            if assignment.record_id == record_id:
                return assignment
        return None

    def conflicts(self) -> list[NpcOutfitAssignment]:
        return [a for a in self.resolve_all() if a.has_conflict]

    def existing_distributions(self, authoring_file: str) -> dict[str, str]:
        """record id -> other file already distributing an outfit to that NPC."""
        translated, _ = translate_keywords(
            self.load_entries(), self.load_keyword_names()
        )
        return existing_distributions(self.load_npcs(), translated, authoring_file)

    def find_unresolved_references(
        self,
        entries: Iterable[DistributionEntry],
        npcs: Iterable[NpcRecord],
        keyword_names: dict[str, str],
    ) -> list[UnresolvedReference]:
        """Criteria ids that nothing in the loaded snapshot knows about.

        Keywords are checked against the keyword table; factions and races
        against what the NPC snapshot references; override ids against the
        NPC record ids.
        """
        npc_ids: set[str] = set()
        factions: set[str] = set()
        races: set[str] = set()
        for npc in npcs:
            npc_ids.add(npc.record_id)
            factions.update(npc.factions)
            if npc.race_id is not None:
                races.add(npc.race_id)

        refs: list[UnresolvedReference] = []
        for entry in entries:
            for record_id in sorted(entry.npc_ids - npc_ids):
                refs.append(
                    UnresolvedReference(entry.entry_id, entry.source_file, "npc", record_id)
                )
            criteria = entry.criteria
            if criteria is None:
                continue
            for kind, ids, known in (
                ("keyword", criteria.keywords, keyword_names),
                ("faction", criteria.factions, factions),
                ("race", criteria.races, races),
            ):
                refs.extend(
                    UnresolvedReference(entry.entry_id, entry.source_file, kind, ref_id)
                    for ref_id in ids
                    if ref_id not in known
                )
        return refs

    # ── Authoring ───────────────────────────────────────────

    def add_entry(
        self,
        source_file: str,
        outfit_id: Optional[str],
        criteria: Optional[FilterCriteria] = None,
        npc_ids: Iterable[str] = (),
        chance: Optional[int] = None,
    ) -> DistributionEntry:
        """Append a rule to the end of ``source_file``.

        Raises:
            UnknownSourceFileError: the file is not in the load order.
            InvalidEntryError: chance out of range, or both targeting modes set.
        """
        load_order = self.load_load_order()
        if source_file not in load_order:
            raise UnknownSourceFileError(source_file)
        stored_name = self._stored_file_name(source_file)

        last_position = self._db.scalar(
            select(func.max(DistributionEntryModel.position)).where(
                DistributionEntryModel.source_file == stored_name
            )
        )
        position = 0 if last_position is None else last_position + 1

        entry = load_order.entry(
            entry_id=str(uuid.uuid4()),
            source_file=stored_name,
            outfit_id=outfit_id,
            order=position,
            chance=settings.DEFAULT_CHANCE if chance is None else chance,
            criteria=criteria,
            npc_ids=npc_ids,
            outfit_editor_id=self.load_outfit_names().get(outfit_id) if outfit_id else None,
        )

        self._db.add(
            DistributionEntryModel(
                entry_id=entry.entry_id,
                source_file=entry.source_file,
                position=entry.order,
                outfit_id=entry.outfit_id,
                chance=entry.chance,
                criteria=entry.criteria.to_dict() if entry.criteria else None,
                npc_ids=sorted(entry.npc_ids),
            )
        )
        self._db.commit()

        logger.info(
            f"Distribution entry added: {entry.entry_id} "
            f"({entry.source_file} #{entry.order}, outfit={entry.outfit_id})"
        )
        self._bus.emit(
            EventTypes.DISTRIBUTION_ENTRY_ADDED,
            SOURCE,
            entry_id=entry.entry_id,
            source_file=entry.source_file,
        )
        return entry

    def remove_entry(self, entry_id: str) -> bool:
        row = self._db.get(DistributionEntryModel, entry_id)
        if row is None:
            logger.warning(f"Distribution entry not found: {entry_id}")
            return False

        source_file = row.source_file
        self._db.delete(row)
        self._db.commit()

        logger.info(f"Distribution entry removed: {entry_id} ({source_file})")
        self._bus.emit(
            EventTypes.DISTRIBUTION_ENTRY_REMOVED,
            SOURCE,
            entry_id=entry_id,
            source_file=source_file,
        )
        return True

    def clear_entries(self, source_file: Optional[str] = None) -> int:
        """Delete every entry, or every entry of one file. Returns the count."""
        query = select(DistributionEntryModel)
        if source_file is not None:
            query = query.where(
                DistributionEntryModel.source_file == self._stored_file_name(source_file)
            )
        rows = self._db.scalars(query).all()
        for row in rows:
            self._db.delete(row)
        self._db.commit()

        logger.info(
            f"Distribution entries cleared: {len(rows)} "
            f"({source_file or 'all files'})"
        )
        self._bus.emit(
            EventTypes.DISTRIBUTION_CLEARED,
            SOURCE,
            source_file=source_file,
            count=len(rows),
        )
        return len(rows)

    # ── Internal ────────────────────────────────────────────

    def _stored_file_name(self, source_file: str) -> str:
        """Load order names compare case-insensitively; rows keep the stored case."""
        row = self._db.scalars(
            select(SourceFileModel).where(
                func.lower(SourceFileModel.file_name) == source_file.lower()
            )
        ).first()
        return row.file_name if row else source_file

    @staticmethod
    def _npc_from_orm(row: NpcRecordModel) -> NpcRecord:
        return NpcRecord(
            record_id=row.record_id,
            source_file=row.source_file,
            name=row.name or "",
            editor_id=row.editor_id,
            is_female=bool(row.is_female),
            is_unique=bool(row.is_unique),
            template_id=row.template_id,
            is_child=bool(row.is_child),
            is_summonable=bool(row.is_summonable),
            is_leveled=bool(row.is_leveled),
            level=row.level,
            factions=frozenset(row.factions or ()),
            keywords=frozenset(row.keywords or ()),
            race_id=row.race_id,
        )

    @staticmethod
    def _entry_from_orm(
        row: DistributionEntryModel,
        load_order: LoadOrder,
        outfit_names: dict[str, Optional[str]],
    ) -> DistributionEntry:
        return load_order.entry(
            entry_id=row.entry_id,
            source_file=row.source_file,
            outfit_id=row.outfit_id,
            order=row.position,
            chance=row.chance,
            criteria=FilterCriteria.from_dict(row.criteria) if row.criteria else None,
            npc_ids=row.npc_ids or (),
            outfit_editor_id=outfit_names.get(row.outfit_id) if row.outfit_id else None,
        )
