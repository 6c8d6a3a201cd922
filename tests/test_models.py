from __future__ import annotations

from datetime import UTC, datetime

import pytest
from pydantic import ValidationError

from pyfleet.models.events import Location, LocationEvent
from pyfleet.models.vehicle import Vehicle
from pyfleet.state.policy import event_sort_key


def _row(**overrides: object) -> dict[str, object]:
    row: dict[str, object] = {
        "idReporte": 41,
        "FechaHora": "2026-02-14T09:15:00+00:00",
        "IdCoche": 118,
        "Ubicacion": "Salida Por Tango",
        "NCPU": 1,
    }
    row.update(overrides)
    return row


def test_location_event_from_store_row() -> None:
    event = LocationEvent.model_validate(_row())

    assert event.report_id == 41
    assert event.vehicle_id == 118
    assert event.location == Location.RISK_ZONE
    assert event.timestamp == datetime(2026, 2, 14, 9, 15, tzinfo=UTC)
    assert event.reporter_count == 1


def test_location_event_by_field_name() -> None:
    event = LocationEvent(
        report_id=1,
        vehicle_id="9",
        timestamp=datetime(2026, 1, 1, tzinfo=UTC),
        location="safe",
    )

    assert event.vehicle_id == 9
    assert event.location == Location.SAFE_ZONE


def test_missing_reporter_count_defaults_to_one() -> None:
    row = _row()
    del row["NCPU"]
    assert LocationEvent.model_validate(row).reporter_count == 1
    assert LocationEvent.model_validate(_row(NCPU=None)).reporter_count == 1


@pytest.mark.parametrize(
    "overrides",
    [
        {"IdCoche": "abc"},
        {"IdCoche": 0},
        {"Ubicacion": "Somewhere"},
        {"FechaHora": "not a date"},
        {"NCPU": 0},
    ],
)
def test_malformed_rows_rejected(overrides: dict[str, object]) -> None:
    with pytest.raises(ValidationError):
        LocationEvent.model_validate(_row(**overrides))


def test_location_event_is_frozen_and_hashable() -> None:
    event = LocationEvent.model_validate(_row())

    with pytest.raises(ValidationError):
        event.vehicle_id = 5  # type: ignore[misc]
    assert len({event, LocationEvent.model_validate(_row())}) == 1


def test_to_row_round_trips_store_columns() -> None:
    event = LocationEvent.model_validate(_row())
    row = event.to_row()

    assert row["Ubicacion"] == "Salida Por Tango"
    assert row["IdCoche"] == 118
    assert LocationEvent.model_validate(row) == event


def test_sort_key_uses_report_id_for_ties() -> None:
    first = LocationEvent.model_validate(_row(idReporte=1))
    second = LocationEvent.model_validate(_row(idReporte=2))

    assert event_sort_key(first) < event_sort_key(second)


def test_location_labels() -> None:
    assert Location.RISK_ZONE.label == "Salida Por Tango"
    assert Location.SAFE_ZONE.label == "En Tienda"
    assert Location.from_name("nowhere") is None


def test_vehicle_is_at_risk() -> None:
    event = LocationEvent.model_validate(_row())
    vehicle = Vehicle(
        vehicle_id=118,
        current_location=Location.RISK_ZONE,
        arrival_at_current_location=event.timestamp,
        latest_event=event,
    )

    assert vehicle.is_at_risk
    assert vehicle.event_count == 1
