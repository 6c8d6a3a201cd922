"""Fleet reconciliation.

Derives the current state of every vehicle from the full event history.
The result depends only on the *set* of events passed in, so re-running it
after a duplicate notification, or on a re-ordered fetch, is harmless.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Iterable, Sequence

from pyfleet.models.events import LocationEvent
from pyfleet.models.vehicle import Vehicle
from pyfleet.state.policy import newest_first, unique_events

_logger = logging.getLogger(__name__)


def _reconcile_vehicle(vehicle_id: int, events: Sequence[LocationEvent], *, history: bool) -> Vehicle:
    ordered = newest_first(events)
    latest = ordered[0]

    # Walk back through the run of reports at the same location; its oldest
    # member is when the vehicle entered that location.
    arrival = latest.timestamp
    if history:
        for event in ordered[1:]:
            if event.location != latest.location:
                break
            arrival = event.timestamp

    return Vehicle(
        vehicle_id=vehicle_id,
        current_location=latest.location,
        arrival_at_current_location=arrival,
        latest_event=latest,
        event_count=len(ordered),
    )


def reconcile(events: Iterable[LocationEvent], *, history: bool = True) -> dict[int, Vehicle]:
    """Build the ``vehicle_id -> Vehicle`` mapping for an event set.

    Parameters
    ----------
    events
        Any iterable of events, in any order, possibly with duplicates.
    history
        When ``False`` arrival time is the latest event's timestamp, as if
        the upstream kept only one event per vehicle. Repeated reports at
        the same location then reset the vehicle's age.

    Returns
    -------
    dict
        Vehicles keyed by id, in ascending id order.
    """
    grouped: dict[int, list[LocationEvent]] = defaultdict(list)
    unique = unique_events(events)
    for event in unique:
        grouped[event.vehicle_id].append(event)

    vehicles = {
        vehicle_id: _reconcile_vehicle(vehicle_id, grouped[vehicle_id], history=history)
        for vehicle_id in sorted(grouped)
    }
    _logger.debug("Reconciled %d events into %d vehicles (history=%s)", len(unique), len(vehicles), history)
    return vehicles
