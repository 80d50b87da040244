"""Tests for the reading domain models."""

import datetime as dt

import pytest
from pydantic import ValidationError as PydanticValidationError

from bptracker.domain.models import ChartPoint, DailyAverage, Reading, SubReading
from conftest import TODAY, make_reading


class TestSubReading:
    def test_accepts_camel_case_heart_rate(self) -> None:
        sub = SubReading.model_validate({"systolic": 120, "diastolic": 80, "heartRate": 70})
        assert sub.heart_rate == 70

    @pytest.mark.parametrize("field", ["systolic", "diastolic", "heart_rate"])
    def test_rejects_non_positive_values(self, field: str) -> None:
        values = {"systolic": 120, "diastolic": 80, "heart_rate": 70, field: 0}
        with pytest.raises(PydanticValidationError):
            SubReading(**values)

    def test_is_immutable(self) -> None:
        sub = SubReading(systolic=120, diastolic=80, heart_rate=70)
        with pytest.raises(PydanticValidationError, match="frozen"):
            sub.systolic = 130  # type: ignore


class TestReading:
    def test_paired_reading_exposes_both_sub_readings(self) -> None:
        reading = make_reading(second=(130, 85, 75))
        assert reading.is_paired
        assert reading.first.systolic == 120
        assert reading.second is not None and reading.second.systolic == 130
        assert reading.values("diastolic") == [80, 85]

    def test_single_reading_has_no_second(self) -> None:
        reading = make_reading()
        assert not reading.is_paired
        assert reading.second is None

    def test_more_than_two_sub_readings_rejected(self) -> None:
        sub = SubReading(systolic=120, diastolic=80, heart_rate=70)
        with pytest.raises(PydanticValidationError):
            Reading(date=TODAY, time="Morning", readings=(sub, sub, sub))

    def test_empty_sub_readings_rejected(self) -> None:
        with pytest.raises(PydanticValidationError):
            Reading(date=TODAY, time="Morning", readings=())

    def test_flat_legacy_record_normalized(self) -> None:
        reading = Reading.model_validate(
            {"date": "2024-03-01", "time": "Night", "systolic": 118, "diastolic": 76}
        )
        assert reading.date == dt.date(2024, 3, 1)
        assert reading.readings == (SubReading(systolic=118, diastolic=76),)
        assert reading.values("heart_rate") == []


def test_daily_average_zero() -> None:
    assert DailyAverage.zero() == DailyAverage(systolic=0, diastolic=0, heart_rate=0)


def test_chart_point_record_uses_aliases_and_drops_absent_fields() -> None:
    point = ChartPoint(
        name="Morning - 2024-03-15",
        date=TODAY,
        time="Morning",
        systolic=120,
        diastolic=80,
        heart_rate=70,
    )
    assert point.to_record() == {
        "name": "Morning - 2024-03-15",
        "date": "2024-03-15",
        "time": "Morning",
        "systolic": 120,
        "diastolic": 80,
        "heartRate": 70,
    }
