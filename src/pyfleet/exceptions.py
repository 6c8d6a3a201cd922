"""Custom exception hierarchy for pyfleet."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from pyfleet.models.events import LocationEvent


class FleetError(Exception):
    """Base exception for all pyfleet errors."""


class FleetConfigError(FleetError):
    """Invalid or missing configuration."""


class FleetInvalidInputError(FleetError, ValueError):
    """Caller-supplied input was rejected before touching the store.

    Covers malformed vehicle ids (empty, non-numeric, non-positive),
    unknown location names and timezone-naive timestamps.
    """


class FleetPersistenceError(FleetError):
    """Event log store read/write failure (network, non-2xx, invalid payload).

    Never fatal: the failed operation can be retried as-is.
    """

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        endpoint: str = "",
    ) -> None:
        self.status_code = status_code
        self.endpoint = endpoint
        super().__init__(message)


class FleetMirrorError(FleetPersistenceError):
    """The event was appended but the current-location mirror update failed.

    The event log stays authoritative. The mirror table is stale for the
    affected vehicle until its next successful report.
    """

    def __init__(
        self,
        message: str,
        *,
        event: LocationEvent,
        status_code: int | None = None,
        endpoint: str = "",
    ) -> None:
        self.event = event
        super().__init__(message, status_code=status_code, endpoint=endpoint)
