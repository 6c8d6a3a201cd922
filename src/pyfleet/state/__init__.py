"""State layer.

This package is the single source of truth for how the location event log
is reduced into per-vehicle state and queried. Everything in it is pure and
synchronous.
"""

from pyfleet.state.aging import AgeBucket, classify
from pyfleet.state.reconcile import reconcile
from pyfleet.state.snapshot import FleetSnapshot

__all__ = [
    "AgeBucket",
    "FleetSnapshot",
    "classify",
    "reconcile",
]
