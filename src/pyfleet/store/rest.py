"""Event log store backed by a PostgREST-compatible HTTP API."""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime

from pyfleet._constants import COL_MIRROR_LOCATION, COL_MIRROR_VEHICLE_ID, COL_REPORT_ID, COL_TIMESTAMP
from pyfleet._transport import Transport
from pyfleet.config import FleetConfig
from pyfleet.exceptions import FleetMirrorError, FleetPersistenceError
from pyfleet.ingestion.rows import build_event_row, parse_event_row, parse_event_rows, validate_report
from pyfleet.models.events import Location, LocationEvent
from pyfleet.state.policy import newest_first, unique_events
from pyfleet.store.base import InsertCallback, InsertSubscribers

_logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 1000


class RestEventLogStore:
    """Hosted event log.

    ``append`` inserts into the events table and then, when
    ``config.mirror_current_location`` is set, patches the vehicle's row in
    the mirror table. The two writes are not atomic: if the second fails the
    event is already in the log and :class:`FleetMirrorError` is raised with
    the persisted event attached. Derived state is always computed from the
    log, so only readers of the mirror table see the stale value, until the
    vehicle's next successful report.
    """

    def __init__(
        self,
        config: FleetConfig,
        transport: Transport,
        *,
        page_size: int = DEFAULT_PAGE_SIZE,
    ) -> None:
        config.validate_for_rest()
        if page_size <= 0:
            raise ValueError("page_size must be positive")
        self._config = config
        self._transport = transport
        self._page_size = page_size
        self._subscribers = InsertSubscribers()

    @property
    def table(self) -> str:
        return self._config.events_table

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
        endpoint = self._config.events_table
        row = build_event_row(
            vehicle_id=parsed_id,
            location=parsed_location,
            timestamp=parsed_ts,
            reporter_count=count,
        )
        inserted = await self._transport.request(
            "POST",
            endpoint,
            payload=[row],
            headers={"prefer": "return=representation"},
        )
        if not isinstance(inserted, list) or not inserted:
            raise FleetPersistenceError(
                f"Insert into {endpoint} returned no representation",
                endpoint=endpoint,
            )
        event = parse_event_row(inserted[0], endpoint=endpoint)
        _logger.debug("Appended report_id=%d vehicle_id=%d location=%s", event.report_id, parsed_id, parsed_location)
        self._subscribers.notify(self.table)

        if self._config.mirror_current_location:
            await self._mirror_location(event)
        return event

    async def _mirror_location(self, event: LocationEvent) -> None:
        endpoint = self._config.vehicles_table
        try:
            await self._transport.request(
                "PATCH",
                endpoint,
                params={COL_MIRROR_VEHICLE_ID: f"eq.{event.vehicle_id}"},
                payload={COL_MIRROR_LOCATION: event.location.label},
                headers={"prefer": "return=minimal"},
            )
        except FleetPersistenceError as exc:
            _logger.warning(
                "Event report_id=%d persisted but mirror update of %s failed",
                event.report_id,
                endpoint,
            )
            raise FleetMirrorError(
                f"Event {event.report_id} persisted; mirror update failed: {exc}",
                event=event,
                status_code=exc.status_code,
                endpoint=endpoint,
            ) from exc

    async def load_all(self) -> list[LocationEvent]:
        """Full history, newest first.

        Reads page by page. An insert that lands between two pages shifts
        older rows down by one, so a row may be read twice (collapsed here)
        but none is skipped.
        """
        endpoint = self._config.events_table
        events: list[LocationEvent] = []
        offset = 0
        while True:
            rows = await self._transport.request(
                "GET",
                endpoint,
                params={
                    "select": "*",
                    "order": f"{COL_TIMESTAMP}.desc,{COL_REPORT_ID}.desc",
                    "limit": str(self._page_size),
                    "offset": str(offset),
                },
            )
            if rows is None:
                rows = []
            page = parse_event_rows(rows, endpoint=endpoint)
            events.extend(page)
            if len(rows) < self._page_size:
                break
            offset += self._page_size

        _logger.debug("Loaded %d events from %s", len(events), endpoint)
        return newest_first(unique_events(events))

    def subscribe(self, callback: InsertCallback) -> Callable[[], None]:
        """Subscribe to inserts made through this store instance.

        Inserts made by other processes arrive through
        :class:`pyfleet._mqtt.FleetMqttRuntime` instead.
        """
        return self._subscribers.add(callback)
