"""Time-in-location classification.

Maps the time a vehicle has spent at its current location onto four fixed,
half-open age ranges: ``[0, 5)``, ``[5, 10)``, ``[10, 60)`` and
``[60, inf)`` minutes.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from enum import StrEnum

from pyfleet._constants import BUCKET_5_MIN, BUCKET_10_MIN, BUCKET_60_MIN
from pyfleet.ingestion.normalize import ensure_aware


class AgeBucket(StrEnum):
    """Age ranges, declared in ascending order."""

    UNDER_5 = "under_5"
    FROM_5_TO_10 = "from_5_to_10"
    FROM_10_TO_60 = "from_10_to_60"
    OVER_60 = "over_60"

    @property
    def label(self) -> str:
        return _LABELS[self]


_LABELS: dict[AgeBucket, str] = {
    AgeBucket.UNDER_5: "<5 min",
    AgeBucket.FROM_5_TO_10: "5-10 min",
    AgeBucket.FROM_10_TO_60: "10-60 min",
    AgeBucket.OVER_60: ">60 min",
}


def elapsed_minutes(now: datetime, since: datetime) -> float:
    """Minutes from *since* to *now*, clamped to zero on clock skew."""
    delta = ensure_aware(now, name="now") - ensure_aware(since, name="since")
    if delta < timedelta(0):
        return 0.0
    return delta.total_seconds() / 60.0


def bucket_for_minutes(minutes: float) -> AgeBucket:
    if minutes < BUCKET_5_MIN:
        return AgeBucket.UNDER_5
    if minutes < BUCKET_10_MIN:
        return AgeBucket.FROM_5_TO_10
    if minutes < BUCKET_60_MIN:
        return AgeBucket.FROM_10_TO_60
    return AgeBucket.OVER_60


def classify(now: datetime, since: datetime) -> AgeBucket:
    """Bucket the time elapsed between *since* and *now*.

    A *since* later than *now* (clock skew between reporters) counts as
    zero elapsed time rather than an error.
    """
    return bucket_for_minutes(elapsed_minutes(now, since))
