"""Event ledger - ids of RevenueCat events that were already applied.

RevenueCat redelivers events it did not get a 2xx for, and may deliver the
same event more than once. Only events whose handler completed are recorded,
so a failed delivery is retried in full. Entries older than the retention
window are pruned.
"""

import threading
from datetime import datetime, timedelta
from typing import Callable, Dict, Optional

from pydantic import BaseModel, Field

from revcat_bridge.utils.dates import utcnow


class ProcessedEvent(BaseModel):
    """Ledger entry for one applied event."""

    event_id: str
    event_type: str
    processed_at: datetime = Field(default_factory=utcnow)
    subscription_id: Optional[int] = None


class EventLedger:
    """Thread-safe in-memory record of processed event ids."""

    def __init__(
        self,
        retention: Optional[timedelta] = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        """Initialize an empty ledger.

        Args:
            retention: How long an event id is remembered; None keeps ids forever
            clock: Current time source
        """
        self._events: Dict[str, ProcessedEvent] = {}
        self._lock = threading.RLock()
        self._retention = retention
        self._clock = clock

    def _prune(self) -> None:
        if self._retention is None:
            return
        cutoff = self._clock() - self._retention
        expired = [k for k, entry in self._events.items() if entry.processed_at <= cutoff]
        for event_id in expired:
            del self._events[event_id]

    def is_processed(self, event_id: str) -> bool:
        with self._lock:
            self._prune()
            return event_id in self._events

    def get(self, event_id: str) -> Optional[ProcessedEvent]:
        with self._lock:
            self._prune()
            return self._events.get(event_id)

    def mark_processed(
        self, event_id: str, event_type: str, subscription_id: Optional[int] = None
    ) -> ProcessedEvent:
        """Record an event as applied. Re-marking keeps the first entry."""
        with self._lock:
            self._prune()
            existing = self._events.get(event_id)
            if existing is not None:
                return existing
            entry = ProcessedEvent(
                event_id=event_id,
                event_type=event_type,
                subscription_id=subscription_id,
                processed_at=self._clock(),
            )
            self._events[event_id] = entry
            return entry

    def count(self) -> int:
        with self._lock:
            self._prune()
            return len(self._events)

    def clear(self) -> None:
        with self._lock:
            self._events.clear()

    def __len__(self) -> int:
        return self.count()

    def __contains__(self, event_id: str) -> bool:
        return self.is_processed(event_id)

    def __repr__(self) -> str:
        return f"EventLedger(events={self.count()})"
