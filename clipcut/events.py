"""Subscription channel used by the engine and the orchestrator.

Handlers receive the emitted payload directly and are called in
registration order on the emitting thread. The last payload of each
event type is kept so late subscribers can read the current value.
"""

import logging
from enum import Enum, auto
from typing import Any, Callable, Dict, List

logger = logging.getLogger(__name__)

Handler = Callable[[Any], None]


class EventType(Enum):
    """Event types published by clipcut components."""
    PROGRESS = auto()
    LOG = auto()
    STATUS = auto()


class EventEmitter:
    """Minimal publish/subscribe channel for component communication."""

    def __init__(self) -> None:
        self._handlers: Dict[EventType, List[Handler]] = {}
        self._last: Dict[EventType, Any] = {}

    def on(self, event_type: EventType, handler: Handler) -> Callable[[], None]:
        """Register a handler and return a callable that removes it again.

        Args:
            event_type: Type of event to handle
            handler: Callback receiving the event payload
        """
        self._handlers.setdefault(event_type, []).append(handler)
        return lambda: self.off(event_type, handler)

    def off(self, event_type: EventType, handler: Handler) -> None:
        """Remove a handler; unknown handlers are ignored."""
        handlers = self._handlers.get(event_type)
        if not handlers:
            return
        if handler in handlers:
            handlers.remove(handler)
        if not handlers:
            del self._handlers[event_type]

    def emit(self, event_type: EventType, payload: Any) -> None:
        """Deliver a payload to every handler registered for the event type.

        A failing handler is logged and does not stop delivery to the others.
        """
        self._last[event_type] = payload
        for handler in list(self._handlers.get(event_type, ())):
            try:
                handler(payload)
            except Exception:
                logger.exception("Event handler for %s failed", event_type.name)

    def last(self, event_type: EventType, default: Any = None) -> Any:
        """Return the most recently emitted payload for an event type."""
        return self._last.get(event_type, default)
