"""Event log store interface and insert-signal fan-out."""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime
from typing import Protocol

from pyfleet.models.events import Location, LocationEvent

_logger = logging.getLogger(__name__)

InsertCallback = Callable[[str], None]
"""Fire-and-forget insert signal. The argument is the table name."""


class EventLogStore(Protocol):
    """Append-only location event log.

    Implementations raise :class:`pyfleet.exceptions.FleetPersistenceError`
    on read/write failures and
    :class:`pyfleet.exceptions.FleetInvalidInputError` before mutating
    anything when the report itself is malformed.
    """

    @property
    def table(self) -> str: ...

    async def append(
        self,
        vehicle_id: int | str,
        location: Location | str,
        timestamp: datetime,
        reporter_count: int = 1,
    ) -> LocationEvent: ...

    async def load_all(self) -> list[LocationEvent]: ...

    def subscribe(self, callback: InsertCallback) -> Callable[[], None]: ...


class InsertSubscribers:
    """Registry of in-process insert callbacks."""

    def __init__(self) -> None:
        self._callbacks: list[InsertCallback] = []

    def __len__(self) -> int:
        return len(self._callbacks)

    def add(self, callback: InsertCallback) -> Callable[[], None]:
        self._callbacks.append(callback)

        def _remove() -> None:
            if callback in self._callbacks:
                self._callbacks.remove(callback)

        return _remove

    def notify(self, table: str) -> None:
        """Signal every subscriber. A failing callback never blocks the others."""
        for callback in list(self._callbacks):
            try:
                callback(table)
            except Exception:
                _logger.warning("Insert callback failed for table=%s", table, exc_info=True)
