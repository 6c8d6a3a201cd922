"""pyfleet - Fleet location state reconciliation and risk aging."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("pyfleet")
except PackageNotFoundError:
    __version__ = "0+local"
from pyfleet.config import FleetConfig
from pyfleet.exceptions import (
    FleetConfigError,
    FleetError,
    FleetInvalidInputError,
    FleetMirrorError,
    FleetPersistenceError,
)
from pyfleet.models import Location, LocationEvent, Vehicle
from pyfleet.monitor import FleetMonitor
from pyfleet.state import AgeBucket, FleetSnapshot, classify, reconcile
from pyfleet.store import EventLogStore, MemoryEventLogStore, RestEventLogStore

__all__ = [
    "__version__",
    "AgeBucket",
    "EventLogStore",
    "FleetConfig",
    "FleetConfigError",
    "FleetError",
    "FleetInvalidInputError",
    "FleetMirrorError",
    "FleetMonitor",
    "FleetPersistenceError",
    "FleetSnapshot",
    "Location",
    "LocationEvent",
    "MemoryEventLogStore",
    "RestEventLogStore",
    "Vehicle",
    "classify",
    "reconcile",
]
