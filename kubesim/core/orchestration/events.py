"""
Events for the simulated cluster

Events are an append-only record of what the controllers did, kept in a
bounded ring with the newest event first.
"""

from collections import deque
from dataclasses import dataclass
from typing import Deque, Iterator, Dict, Any, Optional

from .meta import timestamp_to_rfc3339


class EventType:
    """Event types."""
    NORMAL = "Normal"
    WARNING = "Warning"


@dataclass
class Event:
    """A single cluster event"""
    type: str
    reason: str
    object: str  # "<kind>/<name>"
    message: str
    namespace: str
    created: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": "Event",
            "type": self.type,
            "reason": self.reason,
            "object": self.object,
            "namespace": self.namespace,
            "message": self.message,
            "creationTimestamp": timestamp_to_rfc3339(self.created)
        }


class EventLog:
    """Bounded newest-first event ring"""

    def __init__(self, limit: int = 50):
        self._events: Deque[Event] = deque(maxlen=limit)

    def record(self, event: Event):
        self._events.appendleft(event)

    def __iter__(self) -> Iterator[Event]:
        return iter(self._events)

    def __len__(self) -> int:
        return len(self._events)

    def for_object(self, obj: str, namespace: Optional[str] = None):
        """Events about one object, oldest first as `describe` shows them"""
        matching = [
            e for e in self._events
            if e.object == obj and (namespace is None or e.namespace == namespace)
        ]
        return list(reversed(matching))

    def clear(self):
        self._events.clear()
