"""Store row parsing and building.

The hosted store speaks its own column names (``IdCoche``, ``FechaHora``,
...). This module is the only place that maps between those rows and
:class:`LocationEvent`.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any

from pydantic import ValidationError

from pyfleet._constants import COL_LOCATION, COL_REPORTER_COUNT, COL_TIMESTAMP, COL_VEHICLE_ID
from pyfleet._redact import redact_for_log
from pyfleet.exceptions import FleetInvalidInputError, FleetPersistenceError
from pyfleet.ingestion.normalize import ensure_aware, parse_location, parse_vehicle_id
from pyfleet.models.events import Location, LocationEvent

_logger = logging.getLogger(__name__)


def validate_report(
    vehicle_id: Any,
    location: Any,
    timestamp: datetime,
    reporter_count: Any = 1,
) -> tuple[int, Location, datetime, int]:
    """Validate report input before any store mutation."""
    parsed_id = parse_vehicle_id(vehicle_id)
    parsed_location = parse_location(location)
    if not isinstance(timestamp, datetime):
        raise FleetInvalidInputError(f"timestamp must be a datetime, got {type(timestamp).__name__}")
    parsed_ts = ensure_aware(timestamp)
    if isinstance(reporter_count, bool) or not isinstance(reporter_count, int) or reporter_count < 1:
        raise FleetInvalidInputError(f"reporter_count must be a positive integer, got {reporter_count!r}")
    return parsed_id, parsed_location, parsed_ts, reporter_count


def build_event_row(
    *,
    vehicle_id: int,
    location: Location,
    timestamp: datetime,
    reporter_count: int,
) -> dict[str, Any]:
    """Insert payload for the events table (``report_id`` is store-assigned)."""
    return {
        COL_TIMESTAMP: timestamp.isoformat(),
        COL_VEHICLE_ID: vehicle_id,
        COL_LOCATION: location.label,
        COL_REPORTER_COUNT: reporter_count,
    }


def parse_event_row(row: Any, *, endpoint: str = "") -> LocationEvent:
    """Parse one row, raising :class:`FleetPersistenceError` if it is malformed."""
    try:
        return LocationEvent.model_validate(row)
    except ValidationError as exc:
        raise FleetPersistenceError(
            f"Malformed event row from {endpoint or 'store'}: {exc.error_count()} error(s)",
            endpoint=endpoint,
        ) from exc


def parse_event_rows(rows: Any, *, endpoint: str = "") -> list[LocationEvent]:
    """Parse a full-history read.

    Malformed rows are skipped with a warning so one bad historical record
    does not hide the rest of the fleet. A payload that is not a list at all
    is a persistence error.
    """
    if not isinstance(rows, list):
        raise FleetPersistenceError(
            f"Expected a list of rows from {endpoint or 'store'}, got {type(rows).__name__}",
            endpoint=endpoint,
        )

    events: list[LocationEvent] = []
    for row in rows:
        try:
            events.append(LocationEvent.model_validate(row))
        except ValidationError:
            _logger.warning("Skipping malformed event row: %s", redact_for_log(row), exc_info=True)
    return events
