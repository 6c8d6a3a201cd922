"""In-memory event log store."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from datetime import datetime

from pyfleet._constants import DEFAULT_EVENTS_TABLE
from pyfleet.ingestion.rows import validate_report
from pyfleet.models.events import Location, LocationEvent
from pyfleet.state.policy import newest_first
from pyfleet.store.base import InsertCallback, InsertSubscribers

_logger = logging.getLogger(__name__)


class MemoryEventLogStore:
    """Process-local append-only log with synchronous insert signals."""

    def __init__(self, events: Iterable[LocationEvent] = (), *, table: str = DEFAULT_EVENTS_TABLE) -> None:
        self._table = table
        self._events: list[LocationEvent] = list(events)
        self._next_id = max((event.report_id for event in self._events), default=0) + 1
        self._subscribers = InsertSubscribers()

    @property
    def table(self) -> str:
        return self._table

    def __len__(self) -> int:
        return len(self._events)

    async def append(
        self,
        vehicle_id: int | str,
        location: Location | str,
        timestamp: datetime,
        reporter_count: int = 1,
    ) -> LocationEvent:
        parsed_id, parsed_location, parsed_ts, count = validate_report(
            vehicle_id, location, timestamp, reporter_count
        )
        event = LocationEvent(
            report_id=self._next_id,
            vehicle_id=parsed_id,
            timestamp=parsed_ts,
            location=parsed_location,
            reporter_count=count,
        )
        self._next_id += 1
        self._events.append(event)
        _logger.debug(
            "Appended report_id=%d vehicle_id=%d location=%s", event.report_id, parsed_id, parsed_location
        )
        self._subscribers.notify(self._table)
        return event

    async def load_all(self) -> list[LocationEvent]:
        """Full history, newest first."""
        return newest_first(self._events)

    def subscribe(self, callback: InsertCallback) -> Callable[[], None]:
        return self._subscribers.add(callback)

    def notify_insert(self) -> None:
        """Re-emit an insert signal without appending (duplicate delivery)."""
        self._subscribers.notify(self._table)
