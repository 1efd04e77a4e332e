"""
Progression events

Published when a level closes, a round is drawn, a report is regenerated or
an entity is excluded, so hosts can refresh their views.
"""
import json
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from loguru import logger


class EventType(str, Enum):
    """Event type"""
    LEVEL_CLOSED = "level.closed"
    ROUND_ADVANCED = "round.advanced"
    REPORT_REGENERATED = "report.regenerated"
    ENTITY_EXCLUDED = "entity.excluded"
    REFRESH_FAILED = "refresh.failed"


@dataclass
class ProgressionEvent:
    """One progression event for a category"""
    event_type: EventType
    category_id: str
    level: Optional[str] = None
    data: Dict[str, Any] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=datetime.now)
    source: str = "progression"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event_type": self.event_type.value,
            "category_id": self.category_id,
            "level": self.level,
            "data": self.data,
            "timestamp": self.timestamp.isoformat(),
            "source": self.source,
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), ensure_ascii=False, default=str)


class EventPublisher:
    """In-process publisher with a bounded event log"""

    def __init__(self, max_log_size: int = 1000):
        self.local_subscribers: Dict[EventType, List[Callable]] = defaultdict(list)
        self._event_log: List[ProgressionEvent] = []
        self._max_log_size = max_log_size

    def publish(self, event: ProgressionEvent) -> None:
        logger.info(f"📢 Event published: {event.event_type.value} - {event.category_id}"
                    + (f":{event.level}" if event.level else ""))

        self._event_log.append(event)
        if len(self._event_log) > self._max_log_size:
            self._event_log = self._event_log[-self._max_log_size:]

        # A failing subscriber must not stop the others
        for subscriber in self.local_subscribers.get(event.event_type, []):
            try:
                subscriber(event)
            except Exception as e:
                logger.error(f"Subscriber call failed: {e}")

    def subscribe(self, event_type: EventType, callback: Callable) -> None:
        self.local_subscribers[event_type].append(callback)
        logger.debug(f"✅ Subscribed to {event_type.value}")

    def unsubscribe(self, event_type: EventType, callback: Callable) -> None:
        if callback in self.local_subscribers[event_type]:
            self.local_subscribers[event_type].remove(callback)

    def get_recent_events(
        self,
        event_type: Optional[EventType] = None,
        limit: int = 100,
    ) -> List[ProgressionEvent]:
        """Most recent events, newest last"""
        events = self._event_log
        if event_type is not None:
            events = [e for e in events if e.event_type == event_type]
        return events[-limit:]


_publisher: Optional[EventPublisher] = None


def get_event_publisher() -> EventPublisher:
    """Process-wide publisher"""
    global _publisher
    if _publisher is None:
        _publisher = EventPublisher()
    return _publisher
