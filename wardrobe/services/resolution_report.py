"""Resolution report — keeps the outcome of the latest resolution pass

Listens on the EventBus, so routes can show the last conflict list and the
unresolved references without running another pass.
"""

from typing import Any, Callable, Dict, List

from wardrobe.core.event_bus import BusEvent, EventBus
from wardrobe.core.event_types import EventTypes
from wardrobe.core.logging import get_logger

logger = get_logger(__name__)


class ResolutionReport:
    """Snapshot of the last pass. ``stale`` turns on when rules change afterwards."""

    def __init__(self) -> None:
        self.passes = 0
        self.assigned = 0
        self.conflicted_ids: List[str] = []
        self.unresolved: List[Dict[str, str]] = []
        self.stale = True
        self._detach: List[Callable[[], None]] = []

    def attach(self, bus: EventBus) -> None:
        self._detach = [
            bus.subscribe(EventTypes.UNRESOLVED_REFERENCES, self._on_unresolved),
            bus.subscribe(EventTypes.ASSIGNMENTS_RESOLVED, self._on_resolved),
            bus.subscribe(EventTypes.DISTRIBUTION_ENTRY_ADDED, self._on_rules_changed),
            bus.subscribe(EventTypes.DISTRIBUTION_ENTRY_REMOVED, self._on_rules_changed),
            bus.subscribe(EventTypes.DISTRIBUTION_CLEARED, self._on_rules_changed),
        ]

    def detach(self) -> None:
        for unsubscribe in self._detach:
            unsubscribe()
        self._detach = []

    # ── Handlers ────────────────────────────────────────────

    def _on_unresolved(self, event: BusEvent) -> None:
        self.unresolved = list(event.data.get("references", []))

    def _on_resolved(self, event: BusEvent) -> None:
        # the unresolved event of the same pass arrives first, or not at all
        if event.data.get("unresolved", 0) == 0:
            self.unresolved = []
        self.passes += 1
        self.assigned = event.data["assigned"]
        self.conflicted_ids = list(event.data.get("conflicted_ids", []))
        self.stale = False

    def _on_rules_changed(self, event: BusEvent) -> None:
        if not self.stale:
            logger.info(f"Resolution report stale after {event.event_type}")
        self.stale = True

    def as_dict(self) -> Dict[str, Any]:
        return {
            "passes": self.passes,
            "stale": self.stale,
            "assigned": self.assigned,
            "conflicted_ids": list(self.conflicted_ids),
            "unresolved": list(self.unresolved),
        }
