"""
In-process activity feed for the point of sale.

A bounded, newest-last buffer of recent events (sales made,
receipts taken) that the back office polls. It is best effort:
publishing never fails the operation that triggered it.
"""

import logging
import threading
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from retail_ledger.config import get_settings
from retail_ledger.timeutils import now_local

logger = logging.getLogger(__name__)


@dataclass
class ActivityEvent:
    type: str
    message: str
    data: dict[str, Any] = field(default_factory=dict)
    created_at: datetime = field(default_factory=now_local)


class ActivityFeed:

    def __init__(self, max_events: int | None = None):
        self._events: deque[ActivityEvent] = deque(
            maxlen=max_events or get_settings().ACTIVITY_FEED_SIZE
        )
        self._lock = threading.Lock()

    def publish(self, event_type: str, message: str, data: dict | None = None) -> None:
        try:
            event = ActivityEvent(type=event_type, message=message, data=dict(data or {}))
            with self._lock:
                self._events.append(event)
        except Exception:
            logger.exception("Failed to publish %s activity event", event_type)

    def recent(self, limit: int = 50) -> list[ActivityEvent]:
        """Most recent events first."""
        with self._lock:
            events = list(self._events)
        events.reverse()
        return events[:limit]

    def clear(self) -> None:
        with self._lock:
            self._events.clear()


# Process-wide feed used by the API.
activity_feed = ActivityFeed()
