"""Tests for daily averages, chart series and combined list values."""

import datetime as dt

import pytest
from hypothesis import given
from hypothesis import strategies as st

from bptracker.domain.models import DailyAverage, Reading, SubReading
from bptracker.services.aggregation import (
    chart_series,
    combined_value,
    daily_average,
    readings_on,
    round_half_away,
)
from conftest import TODAY, make_reading

YESTERDAY = TODAY - dt.timedelta(days=1)


@pytest.mark.parametrize(
    "value,expected", [(82.5, 83), (72.5, 73), (72.4, 72), (125.0, 125), (0.5, 1), (-0.5, -1)]
)
def test_round_half_away(value: float, expected: int) -> None:
    assert round_half_away(value) == expected


class TestDailyAverage:
    def test_empty_collection_is_zero(self) -> None:
        assert daily_average([], TODAY) == DailyAverage.zero()

    def test_no_matching_date_is_zero(self) -> None:
        assert daily_average([make_reading(day=YESTERDAY)], TODAY) == DailyAverage.zero()

    def test_averages_across_sub_readings_not_entries(self) -> None:
        readings = [
            make_reading(time="Morning", first=(120, 80, 70), second=(120, 80, 70)),
            make_reading(time="Night", first=(130, 85, 75), second=(130, 85, 75)),
        ]
        assert daily_average(readings, TODAY) == DailyAverage(
            systolic=125, diastolic=83, heart_rate=73
        )

    def test_mixed_single_and_paired_entries(self) -> None:
        readings = [
            make_reading(first=(120, 80, 60), second=(130, 90, 70)),
            make_reading(time="Night", first=(140, 100, 80)),
        ]
        # three sub-readings: (120+130+140)/3, (80+90+100)/3, (60+70+80)/3
        assert daily_average(readings, TODAY) == DailyAverage(
            systolic=130, diastolic=90, heart_rate=70
        )

    def test_rounds_once_at_the_end(self) -> None:
        readings = [
            make_reading(first=(120, 80, 70), second=(121, 80, 70)),
            make_reading(time="Night", first=(120, 80, 70), second=(121, 80, 70)),
            make_reading(time="Night", first=(120, 80, 70)),
        ]
        # 602/5 = 120.4; rounding per entry first would give 121
        assert daily_average(readings, TODAY).systolic == 120

    def test_only_matching_date_counts(self) -> None:
        readings = [
            make_reading(first=(120, 80, 70)),
            make_reading(day=YESTERDAY, first=(200, 120, 100)),
        ]
        assert daily_average(readings, TODAY) == DailyAverage(
            systolic=120, diastolic=80, heart_rate=70
        )

    def test_legacy_readings_without_heart_rate(self) -> None:
        legacy = Reading(
            date=TODAY, time="Morning", readings=(SubReading(systolic=120, diastolic=80),)
        )
        assert daily_average([legacy], TODAY) == DailyAverage(
            systolic=120, diastolic=80, heart_rate=0
        )
        with_hr = [legacy, make_reading(time="Night", first=(130, 90, 66))]
        assert daily_average(with_hr, TODAY) == DailyAverage(
            systolic=125, diastolic=85, heart_rate=66
        )


def test_readings_on_keeps_order() -> None:
    a, b, c = make_reading(time="A"), make_reading(day=YESTERDAY), make_reading(time="C")
    assert readings_on([a, b, c], TODAY) == [a, c]


class TestChartSeries:
    def test_single_sub_reading_point(self) -> None:
        (point,) = chart_series([make_reading()])
        assert point.name == "Morning - 2024-03-15"
        assert point.systolic == 120
        assert point.systolic2 is None
        assert point.avg_systolic is None

    def test_paired_point_keeps_fractional_means(self) -> None:
        (point,) = chart_series([make_reading(first=(120, 80, 70), second=(125, 85, 73))])
        assert point.systolic2 == 125
        assert point.avg_systolic == 122.5
        assert point.avg_diastolic == 82.5
        assert point.avg_heart_rate == 71.5
        assert point.to_record()["avgSystolic"] == 122.5

    def test_preserves_store_order_without_sorting(self) -> None:
        readings = [make_reading(), make_reading(day=YESTERDAY, time="Night")]
        names = [p.name for p in chart_series(readings)]
        assert names == ["Morning - 2024-03-15", "Night - 2024-03-14"]

    def test_empty(self) -> None:
        assert chart_series([]) == []


class TestCombinedValue:
    def test_paired_rounds_half_away(self) -> None:
        reading = make_reading(first=(120, 80, 70), second=(125, 85, 75))
        assert combined_value(reading, "systolic") == 123
        assert combined_value(reading, "diastolic") == 83
        assert combined_value(reading, "heart_rate") == 73

    def test_single_returns_own_value(self) -> None:
        assert combined_value(make_reading(first=(118, 79, 66)), "diastolic") == 79

    def test_missing_heart_rate_is_none(self) -> None:
        legacy = Reading(
            date=TODAY, time="Morning", readings=(SubReading(systolic=120, diastolic=80),)
        )
        assert combined_value(legacy, "heart_rate") is None

    @given(
        v1=st.integers(min_value=1, max_value=300),
        v2=st.integers(min_value=1, max_value=300),
    )
    def test_matches_rounded_pair_mean(self, v1: int, v2: int) -> None:
        reading = make_reading(first=(v1, 80, 70), second=(v2, 80, 70))
        value = combined_value(reading, "systolic")
        expected = (v1 + v2) // 2 + (1 if (v1 + v2) % 2 else 0)
        assert value == expected
        assert isinstance(value, int) and value >= 0
