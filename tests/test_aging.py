from __future__ import annotations

from datetime import UTC, datetime, timedelta, timezone

import pytest

from pyfleet.exceptions import FleetInvalidInputError
from pyfleet.state.aging import AgeBucket, bucket_for_minutes, classify, elapsed_minutes

T0 = datetime(2026, 1, 1, 8, 0, tzinfo=UTC)


@pytest.mark.parametrize(
    ("minutes", "expected"),
    [
        (0, AgeBucket.UNDER_5),
        (4.999, AgeBucket.UNDER_5),
        (5, AgeBucket.FROM_5_TO_10),
        (9.999, AgeBucket.FROM_5_TO_10),
        (10, AgeBucket.FROM_10_TO_60),
        (59.999, AgeBucket.FROM_10_TO_60),
        (60, AgeBucket.OVER_60),
        (60 * 24 * 30, AgeBucket.OVER_60),
    ],
)
def test_bucket_boundaries_are_half_open(minutes: float, expected: AgeBucket) -> None:
    assert bucket_for_minutes(minutes) == expected
    assert classify(T0 + timedelta(minutes=minutes), T0) == expected


def test_every_minute_falls_in_exactly_one_bucket() -> None:
    ranges = {
        AgeBucket.UNDER_5: (0, 5),
        AgeBucket.FROM_5_TO_10: (5, 10),
        AgeBucket.FROM_10_TO_60: (10, 60),
        AgeBucket.OVER_60: (60, float("inf")),
    }
    for tenth in range(0, 1500):
        minutes = tenth / 10
        matching = [bucket for bucket, (low, high) in ranges.items() if low <= minutes < high]
        assert matching == [bucket_for_minutes(minutes)]


def test_buckets_declared_in_ascending_order_with_labels() -> None:
    assert [bucket.label for bucket in AgeBucket] == ["<5 min", "5-10 min", "10-60 min", ">60 min"]


def test_clock_skew_clamps_to_zero() -> None:
    since = T0 + timedelta(minutes=3)
    assert elapsed_minutes(T0, since) == 0.0
    assert classify(T0, since) == AgeBucket.UNDER_5


def test_non_utc_offsets_compare_by_instant() -> None:
    plus_two = T0.astimezone(timezone(timedelta(hours=2)))
    assert elapsed_minutes(plus_two + timedelta(minutes=7), T0) == pytest.approx(7.0)


def test_naive_datetimes_rejected() -> None:
    with pytest.raises(FleetInvalidInputError):
        classify(datetime(2026, 1, 1, 9, 0), T0)
