"""
pollen_api/core/models.py
Typed forecast data. Field names are Pythonic; the JSON wire names
(city_name / forecast_text / values) are aliases, and both are accepted on input.
All models are frozen — a published Snapshot is never mutated.
"""

from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter


class Measurement(BaseModel):
    model_config = ConfigDict(frozen=True)

    name:  str
    value: int = Field(..., description="Pollen count, 0 when the source shows '-'")


class ForecastRecord(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    location_name: str                      = Field(..., alias="city_name")
    summary_text:  str                      = Field(..., alias="forecast_text")
    measurements:  tuple[Measurement, ...]  = Field(default=(), alias="values")


_RECORDS = TypeAdapter(tuple[ForecastRecord, ...])


class Snapshot(BaseModel):
    """Result of one successful rebuild. Records keep document order."""

    model_config = ConfigDict(frozen=True)

    records:     tuple[ForecastRecord, ...] = ()
    captured_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    def to_wire(self) -> list[dict[str, Any]]:
        return [r.model_dump(mode="json", by_alias=True) for r in self.records]

    @classmethod
    def from_wire(cls, data: list[dict[str, Any]], captured_at: datetime | None = None) -> "Snapshot":
        records = _RECORDS.validate_python(data)
        if captured_at is None:
            return cls(records=records)
        return cls(records=records, captured_at=captured_at)
