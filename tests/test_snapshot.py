from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest

from pyfleet.exceptions import FleetInvalidInputError
from pyfleet.models.events import Location, LocationEvent
from pyfleet.state.aging import AgeBucket
from pyfleet.state.snapshot import FleetSnapshot

T0 = datetime(2026, 1, 1, 8, 0, tzinfo=UTC)
RISK = Location.RISK_ZONE
SAFE = Location.SAFE_ZONE


def _event(report_id: int, vehicle_id: int, location: Location, minutes: float) -> LocationEvent:
    return LocationEvent(
        report_id=report_id,
        vehicle_id=vehicle_id,
        location=location,
        timestamp=T0 + timedelta(minutes=minutes),
    )


def _at(minutes: float) -> datetime:
    return T0 + timedelta(minutes=minutes)


def test_single_risk_vehicle_ages_through_buckets() -> None:
    snapshot = FleetSnapshot.from_events([_event(1, 1, RISK, 0)])

    assert snapshot.risk_aging_histogram(_at(4))[AgeBucket.UNDER_5] == [1]
    assert snapshot.risk_aging_histogram(_at(7))[AgeBucket.FROM_5_TO_10] == [1]
    assert snapshot.risk_aging_histogram(_at(61))[AgeBucket.OVER_60] == [1]
    assert snapshot.risk_aging_histogram(_at(61))[AgeBucket.UNDER_5] == []


def test_vehicle_back_in_safe_zone_absent_from_histogram() -> None:
    snapshot = FleetSnapshot.from_events([_event(1, 2, RISK, 0), _event(2, 2, SAFE, 2)])

    histogram = snapshot.risk_aging_histogram(_at(30))
    assert all(2 not in ids for ids in histogram.values())
    assert snapshot.location_summary() == {RISK: 0, SAFE: 1}


def test_re_reported_vehicle_aged_from_first_arrival() -> None:
    snapshot = FleetSnapshot.from_events([_event(1, 3, RISK, 0), _event(2, 3, RISK, 3)])

    # 11 minutes after arrival, 8 after the re-report.
    assert snapshot.risk_aging_histogram(_at(11))[AgeBucket.FROM_10_TO_60] == [3]


def test_histogram_has_all_buckets_in_order_with_sorted_ids() -> None:
    snapshot = FleetSnapshot.from_events(
        [
            _event(1, 40, RISK, 0),
            _event(2, 7, RISK, 0),
            _event(3, 15, RISK, 58),
            _event(4, 9, SAFE, 0),
        ]
    )

    histogram = snapshot.risk_aging_histogram(_at(60))
    assert list(histogram) == list(AgeBucket)
    assert histogram == {
        AgeBucket.UNDER_5: [15],
        AgeBucket.FROM_5_TO_10: [],
        AgeBucket.FROM_10_TO_60: [],
        AgeBucket.OVER_60: [7, 40],
    }


def test_location_summary_counts_every_location() -> None:
    assert FleetSnapshot().location_summary() == {RISK: 0, SAFE: 0}

    snapshot = FleetSnapshot.from_events(
        [_event(1, 1, RISK, 0), _event(2, 2, RISK, 0), _event(3, 3, SAFE, 0), _event(4, 1, SAFE, 1)]
    )
    assert snapshot.location_summary() == {RISK: 1, SAFE: 2}


def test_lookup_missing_vehicle_returns_none() -> None:
    snapshot = FleetSnapshot.from_events([_event(1, 1, RISK, 0)])

    assert snapshot.lookup(999) is None


def test_lookup_returns_latest_event_and_accepts_text() -> None:
    snapshot = FleetSnapshot.from_events([_event(1, 5, RISK, 0), _event(2, 5, SAFE, 4)])

    vehicle = snapshot.lookup(" 5 ")
    assert vehicle is not None
    assert vehicle.latest_event.report_id == 2
    assert vehicle.current_location == SAFE


@pytest.mark.parametrize("bad", ["", "abc", "-3", "0", "4.5", True])
def test_lookup_rejects_malformed_ids(bad: object) -> None:
    with pytest.raises(FleetInvalidInputError):
        FleetSnapshot().lookup(bad)


def test_history_newest_first_and_deduplicated() -> None:
    e1 = _event(1, 1, RISK, 0)
    e2 = _event(2, 2, RISK, 5)
    e3 = _event(3, 1, SAFE, 10)
    snapshot = FleetSnapshot.from_events([e2, e1, e3, e2])

    assert snapshot.history() == [e3, e2, e1]
    assert snapshot.history("1") == [e3, e1]


def test_histogram_defaults_to_current_time() -> None:
    snapshot = FleetSnapshot.from_events([_event(1, 1, RISK, 0)])

    assert snapshot.risk_aging_histogram()[AgeBucket.OVER_60] == [1]


def test_histogram_rejects_naive_now() -> None:
    with pytest.raises(FleetInvalidInputError):
        FleetSnapshot().risk_aging_histogram(datetime(2026, 1, 1))
