"""Event log store implementations."""

from pyfleet.store.base import EventLogStore, InsertCallback
from pyfleet.store.memory import MemoryEventLogStore
from pyfleet.store.rest import RestEventLogStore

__all__ = [
    "EventLogStore",
    "InsertCallback",
    "MemoryEventLogStore",
    "RestEventLogStore",
]
