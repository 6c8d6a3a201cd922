"""Read-only projections over reconciled fleet state."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from pyfleet.ingestion.normalize import ensure_aware, parse_vehicle_id
from pyfleet.models.events import Location, LocationEvent
from pyfleet.models.vehicle import Vehicle
from pyfleet.state.aging import AgeBucket, classify
from pyfleet.state.policy import newest_first, unique_events
from pyfleet.state.reconcile import reconcile


class FleetSnapshot(BaseModel):
    """Immutable result of one reconciliation.

    A snapshot is never updated in place. Owners replace it wholesale with a
    newer one, so readers always see a consistent view.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    vehicles: dict[int, Vehicle] = Field(default_factory=dict)
    events: tuple[LocationEvent, ...] = ()
    """Full log, newest first."""
    generation: int = 0
    reconciled_at: datetime | None = None

    @classmethod
    def from_events(
        cls,
        events: Iterable[LocationEvent],
        *,
        history: bool = True,
        generation: int = 0,
        reconciled_at: datetime | None = None,
    ) -> FleetSnapshot:
        log = newest_first(unique_events(events))
        return cls(
            vehicles=reconcile(log, history=history),
            events=tuple(log),
            generation=generation,
            reconciled_at=reconciled_at,
        )

    def location_summary(self) -> dict[Location, int]:
        """Number of vehicles per current location (every location present)."""
        counts = {location: 0 for location in Location}
        for vehicle in self.vehicles.values():
            counts[vehicle.current_location] += 1
        return counts

    def risk_aging_histogram(self, now: datetime | None = None) -> dict[AgeBucket, list[int]]:
        """Risk-zone vehicle ids grouped by time since arrival.

        All buckets are present, in ascending age order; ids within a bucket
        are ascending.
        """
        now = ensure_aware(now, name="now") if now is not None else datetime.now(UTC)
        histogram: dict[AgeBucket, list[int]] = {bucket: [] for bucket in AgeBucket}
        for vehicle_id in sorted(self.vehicles):
            vehicle = self.vehicles[vehicle_id]
            if not vehicle.is_at_risk:
                continue
            histogram[classify(now, vehicle.arrival_at_current_location)].append(vehicle_id)
        return histogram

    def lookup(self, vehicle_id: Any) -> Vehicle | None:
        """Return the vehicle or ``None`` when it has no events.

        *vehicle_id* may be raw text (``"12"``); malformed ids raise
        :class:`pyfleet.exceptions.FleetInvalidInputError`.
        """
        return self.vehicles.get(parse_vehicle_id(vehicle_id))

    def history(self, vehicle_id: Any | None = None) -> list[LocationEvent]:
        """The event log, newest first, optionally for one vehicle."""
        if vehicle_id is None:
            return list(self.events)
        wanted = parse_vehicle_id(vehicle_id)
        return [event for event in self.events if event.vehicle_id == wanted]
