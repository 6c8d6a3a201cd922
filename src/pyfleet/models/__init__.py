"""Typed models for location events and derived vehicle state."""

from pyfleet.models.events import Location, LocationEvent
from pyfleet.models.vehicle import Vehicle

__all__ = [
    "Location",
    "LocationEvent",
    "Vehicle",
]
