"""
In-process domain event bus.

Services emit events after their transaction commits; subscribers (cache
warmers, notification senders, search indexers) react without the emitting
service knowing about them. A failing subscriber is logged and does not
affect the emitter or the other subscribers.
"""

import logging
import threading
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List

from utils.datetime_utils import brazil_now

logger = logging.getLogger(__name__)

# Clinic lifecycle events
CLINIC_CREATED = "clinic.created"
CLINIC_UPDATED = "clinic.updated"
CLINIC_DELETED = "clinic.deleted"
CLINIC_DOCTOR_ADDED = "clinic.doctor_added"
CLINIC_DOCTOR_REMOVED = "clinic.doctor_removed"
CLINIC_PATIENT_ADDED = "clinic.patient_added"
CLINIC_ROOM_ADDED = "clinic.room_added"
CLINIC_ROOM_UPDATED = "clinic.room_updated"
CLINIC_ROOM_DEACTIVATED = "clinic.room_deactivated"


@dataclass
class DomainEvent:
    name: str
    payload: Dict[str, Any]
    occurred_at: Any = field(default_factory=brazil_now)


EventHandler = Callable[[DomainEvent], None]


class EventBus:
    """Synchronous publish/subscribe registry keyed by event name."""

    def __init__(self) -> None:
        self._handlers: Dict[str, List[EventHandler]] = defaultdict(list)
        self._lock = threading.Lock()

    def subscribe(self, name: str, handler: EventHandler) -> None:
        with self._lock:
            self._handlers[name].append(handler)

    def unsubscribe(self, name: str, handler: EventHandler) -> None:
        with self._lock:
            if handler in self._handlers.get(name, []):
                self._handlers[name].remove(handler)

    def emit(self, name: str, payload: Dict[str, Any]) -> DomainEvent:
        """Deliver an event to every subscriber of its name, in subscription order."""
        event = DomainEvent(name=name, payload=payload)
        with self._lock:
            handlers = list(self._handlers.get(name, []))
        for handler in handlers:
            try:
                handler(event)
            except Exception as e:
                logger.exception(f"Event handler {getattr(handler, '__name__', handler)} failed for {name}: {e}")
        return event


# Application-wide bus
event_bus = EventBus()
