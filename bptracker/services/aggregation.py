"""
Derived views over the reading collection.

Nothing here is stored: averages and chart points are recomputed from the
current snapshot whenever the collection or the selected date changes.

Rounding convention: sums are divided by the number of contributing
sub-readings and rounded once, half away from zero (120.5 -> 121).
"""

import datetime as dt
from collections.abc import Iterable, Sequence
from decimal import ROUND_HALF_UP, Decimal

from bptracker.domain.models import (
    NUMERIC_FIELDS,
    ChartPoint,
    DailyAverage,
    NumericField,
    Reading,
)


def round_half_away(value: float | Decimal) -> int:
    """Round to the nearest integer, ties away from zero."""
    return int(Decimal(value).quantize(Decimal(1), rounding=ROUND_HALF_UP))


def _mean(values: Sequence[int]) -> int:
    if not values:
        return 0
    return round_half_away(Decimal(sum(values)) / len(values))


def readings_on(readings: Iterable[Reading], target_date: dt.date) -> list[Reading]:
    """Readings whose date equals ``target_date``, in collection order."""
    return [r for r in readings if r.date == target_date]


def daily_average(readings: Iterable[Reading], target_date: dt.date) -> DailyAverage:
    """
    Mean of each field across every sub-reading recorded on ``target_date``.

    A paired entry contributes two values per field, a single entry one. Heart
    rate only counts sub-readings that carry one. No matching readings gives
    the zero average.
    """
    matching = readings_on(readings, target_date)
    if not matching:
        return DailyAverage.zero()

    totals: dict[NumericField, list[int]] = {field: [] for field in NUMERIC_FIELDS}
    for reading in matching:
        for field in NUMERIC_FIELDS:
            totals[field].extend(reading.values(field))

    return DailyAverage(
        systolic=_mean(totals["systolic"]),
        diastolic=_mean(totals["diastolic"]),
        heart_rate=_mean(totals["heart_rate"]),
    )


def _pair_mean(reading: Reading, field: NumericField) -> float | None:
    values = reading.values(field)
    if len(values) != 2:
        return None
    return (values[0] + values[1]) / 2


def chart_point(reading: Reading) -> ChartPoint:
    first, second = reading.first, reading.second
    return ChartPoint(
        name=f"{reading.time} - {reading.date.isoformat()}",
        date=reading.date,
        time=reading.time,
        systolic=first.systolic,
        diastolic=first.diastolic,
        heart_rate=first.heart_rate,
        systolic2=second.systolic if second else None,
        diastolic2=second.diastolic if second else None,
        heart_rate2=second.heart_rate if second else None,
        avg_systolic=_pair_mean(reading, "systolic"),
        avg_diastolic=_pair_mean(reading, "diastolic"),
        avg_heart_rate=_pair_mean(reading, "heart_rate"),
    )


def chart_series(readings: Iterable[Reading]) -> list[ChartPoint]:
    """One chart point per reading, in collection order (no re-sorting)."""
    return [chart_point(r) for r in readings]


def combined_value(reading: Reading, field: NumericField) -> int | None:
    """
    Rounded mean of ``field`` over the reading's sub-readings, for list views.

    For a single sub-reading this is its own value. Returns None when the field
    is absent (heart rate on legacy records).
    """
    values = reading.values(field)
    if not values:
        return None
    return round_half_away(Decimal(sum(values)) / len(values))
