"""Location event model."""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from pyfleet._constants import (
    COL_LOCATION,
    COL_REPORT_ID,
    COL_REPORTER_COUNT,
    COL_TIMESTAMP,
    COL_VEHICLE_ID,
    RISK_ZONE_NAME,
    SAFE_ZONE_NAME,
)
from pyfleet.ingestion.normalize import parse_location, parse_timestamp, parse_vehicle_id, safe_int


class Location(StrEnum):
    """Where a vehicle can be reported."""

    RISK_ZONE = "risk_zone"
    SAFE_ZONE = "safe_zone"

    @property
    def label(self) -> str:
        """Human-readable name as stored in the event log."""
        return _LABELS[self]

    @classmethod
    def from_name(cls, name: str) -> Location | None:
        """Resolve a stored label, enum value or short alias (``risk``/``safe``)."""
        key = name.strip().casefold()
        for location in cls:
            if key in (location.value, location.label.casefold(), location.value.split("_", 1)[0]):
                return location
        return None


_LABELS: dict[Location, str] = {
    Location.RISK_ZONE: RISK_ZONE_NAME,
    Location.SAFE_ZONE: SAFE_ZONE_NAME,
}


class LocationEvent(BaseModel):
    """A single immutable location report from the event log.

    Parameters
    ----------
    report_id : int
        Store-assigned id, increasing in insertion order.
    vehicle_id : int
        Reported vehicle.
    timestamp : datetime
        When the report was filed (aware, UTC).
    location : Location
        Reported location.
    reporter_count : int
        Number of operators who filed this report.
    """

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
    )

    report_id: int = Field(validation_alias=AliasChoices("report_id", COL_REPORT_ID, "id"))
    vehicle_id: int = Field(validation_alias=AliasChoices("vehicle_id", COL_VEHICLE_ID))
    timestamp: datetime = Field(validation_alias=AliasChoices("timestamp", COL_TIMESTAMP))
    location: Location = Field(validation_alias=AliasChoices("location", COL_LOCATION))
    reporter_count: int = Field(default=1, ge=1, validation_alias=AliasChoices("reporter_count", COL_REPORTER_COUNT))

    @field_validator("report_id", mode="before")
    @classmethod
    def _coerce_report_id(cls, value: Any) -> Any:
        parsed = safe_int(value)
        return value if parsed is None else parsed

    @field_validator("vehicle_id", mode="before")
    @classmethod
    def _coerce_vehicle_id(cls, value: Any) -> int:
        return parse_vehicle_id(value)

    @field_validator("timestamp", mode="before")
    @classmethod
    def _coerce_timestamp(cls, value: Any) -> datetime:
        return parse_timestamp(value)

    @field_validator("location", mode="before")
    @classmethod
    def _coerce_location(cls, value: Any) -> Location:
        return parse_location(value)

    @field_validator("reporter_count", mode="before")
    @classmethod
    def _coerce_reporter_count(cls, value: Any) -> Any:
        parsed = safe_int(value)
        return 1 if parsed is None else parsed

    def to_row(self) -> dict[str, Any]:
        """Serialize using the hosted store's column names."""
        return {
            COL_REPORT_ID: self.report_id,
            COL_TIMESTAMP: self.timestamp.isoformat(),
            COL_VEHICLE_ID: self.vehicle_id,
            COL_LOCATION: self.location.label,
            COL_REPORTER_COUNT: self.reporter_count,
        }
