from __future__ import annotations

from datetime import UTC, datetime

import pytest

from pyfleet.exceptions import FleetInvalidInputError, FleetPersistenceError
from pyfleet.ingestion.rows import parse_event_row, parse_event_rows, validate_report
from pyfleet.models.events import Location


def _row(report_id: int, **overrides: object) -> dict[str, object]:
    row: dict[str, object] = {
        "idReporte": report_id,
        "FechaHora": "2026-02-14T09:15:00+00:00",
        "IdCoche": 7,
        "Ubicacion": "En Tienda",
        "NCPU": 2,
    }
    row.update(overrides)
    return row


def test_parse_event_rows_skips_out_of_range_timestamp() -> None:
    events = parse_event_rows([_row(1), _row(2, FechaHora=1e300)], endpoint="Reportes")

    assert [event.report_id for event in events] == [1]


def test_parse_event_row_out_of_range_timestamp_is_persistence_error() -> None:
    with pytest.raises(FleetPersistenceError):
        parse_event_row(_row(3, FechaHora=1e300), endpoint="Reportes")


def test_parse_event_rows_rejects_non_list_payload() -> None:
    with pytest.raises(FleetPersistenceError):
        parse_event_rows({"message": "nope"}, endpoint="Reportes")


def test_validate_report_normalizes_input() -> None:
    when = datetime(2026, 2, 14, 9, 15, tzinfo=UTC)

    assert validate_report("12", "safe", when, 3) == (12, Location.SAFE_ZONE, when, 3)


@pytest.mark.parametrize("timestamp", ["2026-02-14T09:15:00+00:00", 1771060500, None])
def test_validate_report_rejects_non_datetime_timestamp(timestamp: object) -> None:
    with pytest.raises(FleetInvalidInputError):
        validate_report(12, Location.RISK_ZONE, timestamp, 1)  # type: ignore[arg-type]
