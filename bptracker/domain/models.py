"""
Domain models for blood pressure tracking.

These models are framework-agnostic and use Pydantic for validation.
Field names follow the persisted layout (camelCase aliases such as
``heartRate``) while Python code uses snake_case attributes.
"""

import datetime as dt
from enum import Enum
from typing import Any, Literal

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    NonNegativeInt,
    PositiveInt,
    model_validator,
)

NumericField = Literal["systolic", "diastolic", "heart_rate"]
NUMERIC_FIELDS: tuple[NumericField, ...] = ("systolic", "diastolic", "heart_rate")


class TimeOfDay(str, Enum):
    """Default labels for when in the day a reading was taken."""

    MORNING = "Morning"
    NIGHT = "Night"


class UndoState(str, Enum):
    """States of the reversible delete."""

    IDLE = "idle"
    PENDING_UNDO = "pending_undo"


class SubReading(BaseModel):
    """One measurement set: pressure pair plus heart rate."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    systolic: PositiveInt = Field(description="Systolic pressure in mmHg")
    diastolic: PositiveInt = Field(description="Diastolic pressure in mmHg")
    # Optional only because the earliest stored format had no heart rate.
    heart_rate: PositiveInt | None = Field(
        default=None, alias="heartRate", description="Heart rate in beats/min"
    )


class Reading(BaseModel):
    """A recorded entry for one date and time-of-day label."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    date: dt.date
    time: str = Field(min_length=1)
    readings: tuple[SubReading, ...] = Field(min_length=1, max_length=2)

    @model_validator(mode="before")
    @classmethod
    def _accept_flat_layout(cls, data: Any) -> Any:
        """Normalize legacy flat records ``{date, time, systolic, diastolic}``."""
        if isinstance(data, dict) and "readings" not in data and "systolic" in data:
            sub = {k: data[k] for k in ("systolic", "diastolic", "heartRate") if k in data}
            rest = {k: v for k, v in data.items() if k not in sub}
            return {**rest, "readings": [sub]}
        return data

    @property
    def is_paired(self) -> bool:
        return len(self.readings) == 2

    @property
    def first(self) -> SubReading:
        return self.readings[0]

    @property
    def second(self) -> SubReading | None:
        return self.readings[1] if self.is_paired else None

    def values(self, field: NumericField) -> list[int]:
        """Values of ``field`` across sub-readings, skipping absent heart rates."""
        return [v for v in (getattr(sub, field) for sub in self.readings) if v is not None]


class DailyAverage(BaseModel):
    """Rounded per-day means. Derived on demand, never persisted."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    systolic: NonNegativeInt
    diastolic: NonNegativeInt
    heart_rate: NonNegativeInt = Field(alias="heartRate")

    @classmethod
    def zero(cls) -> "DailyAverage":
        return cls(systolic=0, diastolic=0, heart_rate=0)


class ChartPoint(BaseModel):
    """Display record for one reading in a time-series chart."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    name: str = Field(description="Composite label: '<time> - <date>'")
    date: dt.date
    time: str

    systolic: int
    diastolic: int
    heart_rate: int | None = Field(default=None, alias="heartRate")

    systolic2: int | None = None
    diastolic2: int | None = None
    heart_rate2: int | None = Field(default=None, alias="heartRate2")

    # Unrounded means, present for paired readings only
    avg_systolic: float | None = Field(default=None, alias="avgSystolic")
    avg_diastolic: float | None = Field(default=None, alias="avgDiastolic")
    avg_heart_rate: float | None = Field(default=None, alias="avgHeartRate")

    def to_record(self) -> dict[str, Any]:
        """Alias-keyed mapping as consumed by a chart surface."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class PendingDeletion(BaseModel):
    """A removed reading that can still be put back."""

    model_config = ConfigDict(frozen=True)

    reading: Reading
    original_index: NonNegativeInt
    expires_at: dt.datetime
