"""Normalization helpers.

Centralizes defensive parsing of caller input and store rows.
"""

from __future__ import annotations

import math
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from pyfleet.exceptions import FleetInvalidInputError

if TYPE_CHECKING:
    from pyfleet.models.events import Location

# Threshold to distinguish epoch seconds from milliseconds.
_MS_THRESHOLD = 1e11


def safe_float(value: Any) -> float | None:
    if value is None or value == "" or isinstance(value, bool):
        return None
    try:
        result = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(result):
        return None
    return result


def safe_int(value: Any) -> int | None:
    parsed = safe_float(value)
    if parsed is None or math.isinf(parsed):
        return None
    return int(parsed)


def safe_str(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text if text else None


def parse_vehicle_id(value: Any) -> int:
    """Validate a vehicle id from user input or a store row.

    Accepts positive ints and their decimal string form (``" 12 "``).
    Everything else, including booleans and ``12.5``, is rejected.
    """
    if isinstance(value, bool):
        raise FleetInvalidInputError(f"vehicle id must be a positive integer, got {value!r}")
    if isinstance(value, int):
        vehicle_id = value
    elif isinstance(value, float):
        if not value.is_integer():
            raise FleetInvalidInputError(f"vehicle id must be a positive integer, got {value!r}")
        vehicle_id = int(value)
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            raise FleetInvalidInputError("vehicle id must be non-empty")
        if not (text.isascii() and text.isdigit()):
            raise FleetInvalidInputError(f"vehicle id must be numeric, got {value!r}")
        vehicle_id = int(text)
    else:
        raise FleetInvalidInputError(f"vehicle id must be a positive integer, got {type(value).__name__}")
    if vehicle_id <= 0:
        raise FleetInvalidInputError(f"vehicle id must be positive, got {vehicle_id}")
    return vehicle_id


def parse_location(value: Any) -> Location:
    """Map a stored name, enum value or short alias to a :class:`Location`."""
    # Import lazily; the models package imports this module for its validators.
    from pyfleet.models.events import Location

    if isinstance(value, Location):
        return value
    text = safe_str(value)
    if text is None:
        raise FleetInvalidInputError("location must be non-empty")
    location = Location.from_name(text)
    if location is None:
        raise FleetInvalidInputError(f"unknown location {value!r}")
    return location


def parse_timestamp(value: Any, *, assume_utc: bool = True) -> datetime:
    """Normalize a timestamp to an aware UTC datetime.

    - aware datetimes are converted to UTC
    - naive datetimes are treated as UTC when *assume_utc*, else rejected
    - ints/floats and numeric strings are epoch seconds (milliseconds above 1e11)
    - other strings are parsed as ISO-8601 (``Z`` suffix accepted)
    """
    if isinstance(value, datetime):
        if value.tzinfo is None:
            if not assume_utc:
                raise FleetInvalidInputError("timestamp must be timezone-aware")
            return value.replace(tzinfo=UTC)
        return value.astimezone(UTC)

    numeric = safe_float(value)
    if numeric is not None:
        if math.isinf(numeric) or numeric < 0:
            raise FleetInvalidInputError(f"invalid epoch timestamp {value!r}")
        if numeric > _MS_THRESHOLD:
            numeric /= 1000.0
        try:
            return datetime.fromtimestamp(numeric, tz=UTC)
        except (OverflowError, OSError, ValueError) as exc:
            raise FleetInvalidInputError(f"epoch timestamp out of range {value!r}") from exc

    text = safe_str(value)
    if text is None:
        raise FleetInvalidInputError("timestamp must be non-empty")
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError as exc:
        raise FleetInvalidInputError(f"invalid timestamp {value!r}") from exc
    return parse_timestamp(parsed, assume_utc=assume_utc)


def ensure_aware(value: datetime, *, name: str = "timestamp") -> datetime:
    """Reject naive datetimes; aware ones are returned unchanged."""
    if value.tzinfo is None or value.tzinfo.utcoffset(value) is None:
        raise FleetInvalidInputError(f"{name} must be timezone-aware")
    return value
