"""High-level async monitor for fleet location state."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Callable
from datetime import UTC, datetime
from typing import Any

import aiohttp

from pyfleet._mqtt import FleetMqttRuntime, InsertNotification, bootstrap_from_config
from pyfleet._transport import RestTransport
from pyfleet.config import FleetConfig
from pyfleet.exceptions import FleetError, FleetMirrorError
from pyfleet.models.events import Location, LocationEvent
from pyfleet.models.vehicle import Vehicle
from pyfleet.state.aging import AgeBucket
from pyfleet.state.snapshot import FleetSnapshot
from pyfleet.store.base import EventLogStore
from pyfleet.store.rest import RestEventLogStore

_logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(UTC)


class FleetMonitor:
    """Keeps a reconciled snapshot of the fleet current with its event log.

    Usage::

        async with FleetMonitor(FleetConfig.from_env()) as monitor:
            await monitor.report(12, Location.RISK_ZONE)
            histogram = monitor.risk_aging_histogram()

    The monitor owns the only mutable state: the current
    :class:`FleetSnapshot`, which every refresh replaces wholesale. Refreshes
    are numbered when they start; a refresh that finishes after a newer one
    has been installed is discarded.
    """

    def __init__(
        self,
        config: FleetConfig | None = None,
        *,
        store: EventLogStore | None = None,
        session: aiohttp.ClientSession | None = None,
        on_snapshot: Callable[[FleetSnapshot], None] | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._config = config or FleetConfig()
        self._store = store
        self._external_session = session is not None
        self._http_session = session
        self._on_snapshot = on_snapshot
        self._clock = clock
        self._snapshot = FleetSnapshot()
        self._generation = 0
        self._loop: asyncio.AbstractEventLoop | None = None
        self._unsubscribe: Callable[[], None] | None = None
        self._mqtt_runtime: FleetMqttRuntime | None = None
        self._pending_refresh: asyncio.Task[None] | None = None
        self._refresh_again = False
        self._reports_in_flight = 0

    # ------------------------------------------------------------------
    # Context manager lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> FleetMonitor:
        self._loop = asyncio.get_running_loop()
        if self._store is None:
            self._config.validate_for_rest()
            if self._http_session is None:
                self._http_session = aiohttp.ClientSession()
            self._store = RestEventLogStore(self._config, RestTransport(self._config, self._http_session))
        self._unsubscribe = self._store.subscribe(self._on_store_insert)
        self._ensure_mqtt_started()
        try:
            await self.refresh()
        except BaseException:
            await self.__aexit__(None, None, None)
            raise
        return self

    async def __aexit__(self, *exc: Any) -> None:
        self._stop_mqtt()
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        task = self._pending_refresh
        self._pending_refresh = None
        if task is not None and not task.done():
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task
        if not self._external_session and self._http_session is not None:
            await self._http_session.close()
            self._http_session = None
        self._loop = None

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _require_store(self) -> EventLogStore:
        if self._store is None:
            raise FleetError("Monitor not initialized. Use 'async with FleetMonitor(...) as monitor:'")
        return self._store

    def _install(self, snapshot: FleetSnapshot) -> bool:
        if snapshot.generation <= self._snapshot.generation:
            _logger.debug(
                "Discarding superseded snapshot generation=%d (installed=%d)",
                snapshot.generation,
                self._snapshot.generation,
            )
            return False
        self._snapshot = snapshot
        if self._on_snapshot is not None:
            try:
                self._on_snapshot(snapshot)
            except Exception:
                _logger.debug("on_snapshot callback failed", exc_info=True)
        return True

    # ------------------------------------------------------------------
    # Insert notifications
    # ------------------------------------------------------------------

    def _ensure_mqtt_started(self) -> None:
        """Best-effort MQTT startup (failures must not break the REST flow)."""
        if not self._config.mqtt_enabled:
            return
        if self._mqtt_runtime is not None and self._mqtt_runtime.is_running:
            return
        loop = self._loop or asyncio.get_running_loop()
        try:
            bootstrap = bootstrap_from_config(self._config)
            runtime = FleetMqttRuntime(
                loop=loop,
                on_insert=self._on_mqtt_insert,
                table=self._require_store().table,
                keepalive=self._config.mqtt_keepalive,
                logger=_logger,
            )
            runtime.start(bootstrap)
            self._mqtt_runtime = runtime
        except Exception:
            _logger.warning("MQTT startup failed; live updates disabled", exc_info=True)

    def _stop_mqtt(self) -> None:
        runtime = self._mqtt_runtime
        self._mqtt_runtime = None
        if runtime is not None:
            runtime.stop()

    def _on_store_insert(self, table: str) -> None:
        if self._reports_in_flight:
            # Covered by the refresh that report() runs once its append returns.
            _logger.debug("Store insert signal table=%s folded into report refresh", table)
            return
        _logger.debug("Store insert signal table=%s", table)
        self.request_refresh()

    def _on_mqtt_insert(self, notification: InsertNotification) -> None:
        """Handle an insert signal (called on the loop via call_soon_threadsafe)."""
        self.request_refresh()

    def request_refresh(self) -> None:
        """Schedule a background refresh, coalescing bursts of signals.

        While a refresh is pending, any number of further signals schedule
        exactly one follow-up refresh.
        """
        if self._loop is None:
            return
        task = self._pending_refresh
        if task is not None and not task.done():
            self._refresh_again = True
            return
        self._refresh_again = False
        self._pending_refresh = self._loop.create_task(self._run_scheduled_refresh())

    async def _run_scheduled_refresh(self) -> None:
        while True:
            self._refresh_again = False
            try:
                await self.refresh()
            except Exception:
                _logger.warning("Background refresh failed; keeping previous snapshot", exc_info=True)
            if not self._refresh_again:
                return

    async def wait_idle(self) -> None:
        """Wait until no background refresh is pending."""
        while (task := self._pending_refresh) is not None and not task.done():
            await asyncio.shield(task)

    # ------------------------------------------------------------------
    # Reconciliation
    # ------------------------------------------------------------------

    @property
    def snapshot(self) -> FleetSnapshot:
        """The most recently installed snapshot."""
        return self._snapshot

    async def refresh(self) -> FleetSnapshot:
        """Re-read the full log and reconcile it.

        Raises :class:`FleetPersistenceError` if the log cannot be read; the
        previous snapshot stays installed.
        """
        store = self._require_store()
        self._generation += 1
        generation = self._generation
        events = await store.load_all()
        snapshot = FleetSnapshot.from_events(
            events,
            history=self._config.reconcile_history,
            generation=generation,
            reconciled_at=self._clock(),
        )
        if self._install(snapshot):
            _logger.debug(
                "Installed snapshot generation=%d vehicles=%d events=%d",
                generation,
                len(snapshot.vehicles),
                len(snapshot.events),
            )
        return self._snapshot

    async def report(
        self,
        vehicle_id: int | str,
        location: Location | str,
        *,
        timestamp: datetime | None = None,
        reporter_count: int = 1,
    ) -> LocationEvent:
        """Append a location report and refresh.

        Input is validated before the store is touched. Once the event is
        appended, a failing refresh is logged and the previous snapshot kept;
        the caller still gets the persisted event, so a retry never
        duplicates it. If the mirror update fails, the snapshot is refreshed
        before :class:`FleetMirrorError` propagates.
        """
        store = self._require_store()
        when = timestamp if timestamp is not None else self._clock()
        try:
            event = await self._append(store, vehicle_id, location, when, reporter_count)
        except FleetMirrorError:
            await self._refresh_after_append()
            raise
        await self._refresh_after_append()
        return event

    async def _append(
        self,
        store: EventLogStore,
        vehicle_id: int | str,
        location: Location | str,
        timestamp: datetime,
        reporter_count: int,
    ) -> LocationEvent:
        self._reports_in_flight += 1
        try:
            return await store.append(vehicle_id, location, timestamp, reporter_count)
        finally:
            self._reports_in_flight -= 1

    async def _refresh_after_append(self) -> None:
        try:
            await self.refresh()
        except FleetError:
            _logger.warning("Refresh after append failed; keeping previous snapshot", exc_info=True)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def location_summary(self) -> dict[Location, int]:
        return self._snapshot.location_summary()

    def risk_aging_histogram(self, now: datetime | None = None) -> dict[AgeBucket, list[int]]:
        return self._snapshot.risk_aging_histogram(now if now is not None else self._clock())

    def lookup(self, vehicle_id: int | str) -> Vehicle | None:
        return self._snapshot.lookup(vehicle_id)

    def history(self, vehicle_id: int | str | None = None) -> list[LocationEvent]:
        return self._snapshot.history(vehicle_id)
