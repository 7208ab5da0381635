"""Source file load order -> entry priority."""

from __future__ import annotations

from typing import Iterable, Optional

from .entries import DistributionEntry
from .errors import DuplicateSourceFileError, UnknownSourceFileError
from .filters import FilterCriteria


class LoadOrder:
    """Ordered source files. Later position = higher priority."""

    def __init__(self, files: Iterable[str]) -> None:
        self._files = list(files)
        self._positions: dict[str, int] = {}
        for file_name in self._files:
            key = file_name.lower()
            if key in self._positions:
                raise DuplicateSourceFileError(file_name)
            self._positions[key] = len(self._positions)

    @property
    def files(self) -> list[str]:
        return list(self._files)

    def __len__(self) -> int:
        return len(self._positions)

    def __contains__(self, file_name: object) -> bool:
        return isinstance(file_name, str) and file_name.lower() in self._positions

    def priority_of(self, file_name: str) -> int:
        """Load order position (0-based). Names compare case-insensitively."""
        try:
            return self._positions[file_name.lower()]
        except KeyError:
            raise UnknownSourceFileError(file_name) from None

    def entry(
        self,
        entry_id: str,
        source_file: str,
        outfit_id: Optional[str],
        *,
        order: int = 0,
        chance: int = 100,
        criteria: Optional[FilterCriteria] = None,
        npc_ids: Iterable[str] = (),
        outfit_editor_id: Optional[str] = None,
    ) -> DistributionEntry:
        """Build an entry whose priority comes from this load order."""
        return DistributionEntry(
            entry_id=entry_id,
            source_file=source_file,
            outfit_id=outfit_id,
            outfit_editor_id=outfit_editor_id,
            priority=self.priority_of(source_file),
            order=order,
            chance=chance,
            criteria=criteria,
            npc_ids=frozenset(npc_ids),
        )
