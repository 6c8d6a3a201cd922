"""Derived vehicle model."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from pyfleet.models.events import Location, LocationEvent


class Vehicle(BaseModel):
    """Current state of one vehicle, derived from its events.

    There is no vehicle registry: a ``Vehicle`` exists only while at least
    one event references its id, and it is rebuilt on every reconciliation.
    """

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
    )

    vehicle_id: int
    current_location: Location
    arrival_at_current_location: datetime
    """When the vehicle last entered ``current_location``."""
    latest_event: LocationEvent
    """The current-state event, for display."""
    event_count: int = Field(default=1, ge=1)

    @property
    def is_at_risk(self) -> bool:
        return self.current_location == Location.RISK_ZONE
