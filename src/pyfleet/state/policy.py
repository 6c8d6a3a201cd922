"""Deterministic event ordering policy.

This module contains *no* payload parsing. Events reaching it are already
validated :class:`LocationEvent` objects.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime

from pyfleet.models.events import LocationEvent


def event_sort_key(event: LocationEvent) -> tuple[datetime, int, str, int]:
    """Total order over events of one vehicle.

    Timestamp first, then ``report_id`` (insertion order). The trailing
    fields only matter for corrupt input where two different events share a
    ``report_id``; they keep the result independent of delivery order.
    """
    return (event.timestamp, event.report_id, event.location.value, event.reporter_count)


def unique_events(events: Iterable[LocationEvent]) -> set[LocationEvent]:
    """Collapse re-delivered copies of the same event."""
    return set(events)


def newest_first(events: Iterable[LocationEvent]) -> list[LocationEvent]:
    return sorted(events, key=event_sort_key, reverse=True)
