from __future__ import annotations

from datetime import UTC, datetime, timedelta, timezone

import pytest

from pyfleet.exceptions import FleetInvalidInputError
from pyfleet.ingestion.normalize import (
    ensure_aware,
    parse_location,
    parse_timestamp,
    parse_vehicle_id,
    safe_int,
    safe_str,
)
from pyfleet.models.events import Location


@pytest.mark.parametrize(("raw", "expected"), [(12, 12), ("12", 12), (" 7 ", 7), (3.0, 3)])
def test_parse_vehicle_id_accepts_positive_integers(raw: object, expected: int) -> None:
    assert parse_vehicle_id(raw) == expected


@pytest.mark.parametrize("raw", [None, "", "  ", "abc", "1e3", "-1", 0, -4, 2.5, False, "١٢", [1]])
def test_parse_vehicle_id_rejects_malformed(raw: object) -> None:
    with pytest.raises(FleetInvalidInputError):
        parse_vehicle_id(raw)


def test_invalid_input_error_is_value_error() -> None:
    with pytest.raises(ValueError):
        parse_vehicle_id("x")


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("Salida Por Tango", Location.RISK_ZONE),
        ("en tienda", Location.SAFE_ZONE),
        ("risk_zone", Location.RISK_ZONE),
        ("safe", Location.SAFE_ZONE),
        (Location.RISK_ZONE, Location.RISK_ZONE),
    ],
)
def test_parse_location(raw: object, expected: Location) -> None:
    assert parse_location(raw) == expected


@pytest.mark.parametrize("raw", [None, "", "Parking"])
def test_parse_location_rejects_unknown(raw: object) -> None:
    with pytest.raises(FleetInvalidInputError):
        parse_location(raw)


def test_parse_timestamp_iso_with_z_and_offset() -> None:
    expected = datetime(2026, 3, 1, 10, 30, tzinfo=UTC)

    assert parse_timestamp("2026-03-01T10:30:00Z") == expected
    assert parse_timestamp("2026-03-01T12:30:00+02:00") == expected
    assert parse_timestamp("2026-03-01T10:30:00.123456+00:00") == expected.replace(microsecond=123456)
    assert parse_timestamp("2026-03-01T12:30:00+02:00").tzinfo == UTC


def test_parse_timestamp_epoch_seconds_and_millis() -> None:
    expected = datetime(2026, 3, 1, 10, 30, tzinfo=UTC)
    seconds = int(expected.timestamp())

    assert parse_timestamp(seconds) == expected
    assert parse_timestamp(seconds * 1000) == expected
    assert parse_timestamp(str(seconds)) == expected


def test_parse_timestamp_naive_handling() -> None:
    naive = datetime(2026, 3, 1, 10, 30)

    assert parse_timestamp(naive) == naive.replace(tzinfo=UTC)
    with pytest.raises(FleetInvalidInputError):
        parse_timestamp(naive, assume_utc=False)


@pytest.mark.parametrize("raw", [None, "", "yesterday", -5])
def test_parse_timestamp_rejects_garbage(raw: object) -> None:
    with pytest.raises(FleetInvalidInputError):
        parse_timestamp(raw)


@pytest.mark.parametrize("raw", [1e300, "1e300", 10**20])
def test_parse_timestamp_rejects_out_of_range_epoch(raw: object) -> None:
    with pytest.raises(FleetInvalidInputError):
        parse_timestamp(raw)


def test_ensure_aware() -> None:
    aware = datetime(2026, 1, 1, tzinfo=timezone(timedelta(hours=-3)))
    assert ensure_aware(aware) is aware
    with pytest.raises(FleetInvalidInputError):
        ensure_aware(datetime(2026, 1, 1))


def test_safe_helpers() -> None:
    assert safe_int("4") == 4
    assert safe_int("--") is None
    assert safe_int(True) is None
    assert safe_str("  ") is None
    assert safe_str(" x ") == "x"
