"""Audit events for formrecords.

Form creation and updates, accepted submissions, and rejected submissions
each emit a typed AuditEvent through an EventEmitter. Listeners can forward
events to an append-only JSONL log, a message bus, or a test collector.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional
import json
import logging
import uuid

from dateutil.parser import isoparse

from .types import EventType

logger = logging.getLogger("formrecords.events")


@dataclass(frozen=True)
class AuditEvent:
    """A single audit record.

    Attributes:
        event_id: Globally unique event identifier (e.g., "evt_3f2a...")
        type: Event type from EventType enum
        subject_id: ID of the form or submission the event relates to
        ts: UTC timestamp when the event occurred
        payload: Optional event-specific data (e.g., form id, error message)

    Examples:
        >>> event = AuditEvent.new(EventType.FORM_CREATED, "form_001", {"name": "T"})
        >>> event.type.value
        'form.created'
    """
    event_id: str
    type: EventType
    subject_id: str
    ts: datetime
    payload: Optional[Dict[str, Any]] = None

    def __post_init__(self):
        if isinstance(self.type, str):
            object.__setattr__(self, "type", EventType(self.type))

    @classmethod
    def new(
        cls,
        event_type: EventType,
        subject_id: str,
        payload: Optional[Dict[str, Any]] = None,
    ) -> "AuditEvent":
        """Create an event with a fresh id and the current UTC time."""
        return cls(
            event_id=f"evt_{uuid.uuid4().hex}",
            type=event_type,
            subject_id=subject_id,
            ts=datetime.now(timezone.utc),
            payload=payload,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert event to dictionary for serialization.

        Timestamp is formatted as ISO 8601 string.
        """
        result: Dict[str, Any] = {
            "eventId": self.event_id,
            "type": self.type.value,
            "subjectId": self.subject_id,
            "ts": self.ts.isoformat(),
        }
        if self.payload is not None:
            result["payload"] = self.payload
        return result

    def to_jsonl(self) -> str:
        """Convert event to a single-line JSON string."""
        return json.dumps(self.to_dict(), separators=(',', ':'))

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AuditEvent":
        """Create AuditEvent from dictionary (camelCase keys)."""
        return cls(
            event_id=data["eventId"],
            type=EventType(data["type"]),
            subject_id=data["subjectId"],
            ts=isoparse(data["ts"]),
            payload=data.get("payload"),
        )


EventListener = Callable[[AuditEvent], None]
"""Type alias for event listener callbacks.

Listeners are called synchronously when events are emitted and should not
perform long-running operations.
"""


class EventEmitter:
    """Dispatches audit events to registered listeners.

    Features:
    - Type-specific subscriptions
    - Wildcard subscriptions (listen to all events)
    - Synchronous dispatch in registration order
    - Error isolation: a failing listener is logged and does not affect
      other listeners or the operation that emitted the event

    Examples:
        >>> emitter = EventEmitter()
        >>> seen = []
        >>> emitter.on(EventType.FORM_CREATED, seen.append)
        >>> emitter.emit(AuditEvent.new(EventType.FORM_CREATED, "form_001"))
        >>> len(seen)
        1
    """

    def __init__(self):
        self._listeners: Dict[EventType, List[EventListener]] = {}
        self._any_listeners: List[EventListener] = []

    def on(self, event_type: EventType, listener: EventListener) -> None:
        """Subscribe to a specific event type."""
        self._listeners.setdefault(event_type, []).append(listener)

    def on_any(self, listener: EventListener) -> None:
        """Subscribe to all event types."""
        self._any_listeners.append(listener)

    def off(self, event_type: EventType, listener: EventListener) -> None:
        """Unsubscribe from a specific event type. Unknown listeners are ignored."""
        listeners = self._listeners.get(event_type)
        if listeners and listener in listeners:
            listeners.remove(listener)

    def off_any(self, listener: EventListener) -> None:
        """Unsubscribe from the wildcard subscription. Unknown listeners are ignored."""
        if listener in self._any_listeners:
            self._any_listeners.remove(listener)

    def emit(self, event: AuditEvent) -> None:
        """Dispatch an event to type-specific listeners, then wildcard listeners."""
        for listener in list(self._listeners.get(event.type, [])) + list(self._any_listeners):
            try:
                listener(event)
            except Exception:
                logger.exception("Listener %r failed on %s event", listener, event.type.value)

    def clear(self) -> None:
        """Remove all event listeners."""
        self._listeners.clear()
        self._any_listeners.clear()

    def listener_count(self, event_type: Optional[EventType] = None) -> int:
        """Count registered listeners.

        Args:
            event_type: If provided, count listeners for this type only.
                        If None, count all listeners (including wildcard).
        """
        if event_type is not None:
            return len(self._listeners.get(event_type, []))
        return len(self._any_listeners) + sum(len(ls) for ls in self._listeners.values())


__all__ = [
    "AuditEvent",
    "EventListener",
    "EventEmitter",
]
