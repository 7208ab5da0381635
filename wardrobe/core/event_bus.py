"""EventBus - the service publishes, listeners such as the resolution report consume

Payloads carry ids and counts only. A handler may emit in turn; nesting stops
at MAX_DEPTH so two listeners can never ping-pong forever.
"""

from collections import defaultdict
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List

from wardrobe.core.logging import get_logger

logger = get_logger(__name__)

MAX_DEPTH = 5


@dataclass
class BusEvent:
    event_type: str
    source: str
    data: Dict[str, Any] = field(default_factory=dict)
    depth: int = field(default=0, repr=False)


EventHandler = Callable[[BusEvent], None]


class EventBus:
    """Synchronous fan-out, handlers run in subscription order."""

    def __init__(self) -> None:
        self._handlers: Dict[str, List[EventHandler]] = defaultdict(list)
        self._depth = 0

    def subscribe(self, event_type: str, handler: EventHandler) -> Callable[[], None]:
        """Register a handler. Returns a callable that removes it again."""
        self._handlers[event_type].append(handler)

        def _unsubscribe() -> None:
            self.unsubscribe(event_type, handler)

        return _unsubscribe

    def unsubscribe(self, event_type: str, handler: EventHandler) -> None:
        handlers = self._handlers.get(event_type, [])
        if handler in handlers:
            handlers.remove(handler)

    def emit(self, event_type: str, source: str, **data: Any) -> None:
        """Deliver to every handler of ``event_type``.

        A failing handler is logged and skipped; the rest still run.
        """
        if self._depth >= MAX_DEPTH:
            logger.warning(f"Event {event_type} from {source} dropped at depth {self._depth}")
            return

        handlers = list(self._handlers.get(event_type, ()))
        if not handlers:
            return

        event = BusEvent(event_type=event_type, source=source, data=data, depth=self._depth)
        logger.debug(f"Event {event_type} from {source} -> {len(handlers)} handler(s)")

        self._depth += 1
        try:
            for handler in handlers:
                try:
                    handler(event)
                except Exception:
                    logger.exception(f"Handler {handler.__qualname__} failed on {event_type}")
        finally:
            self._depth -= 1

    def clear(self) -> None:
        self._handlers.clear()
        self._depth = 0

    @property
    def handler_count(self) -> int:
        return sum(len(h) for h in self._handlers.values())
