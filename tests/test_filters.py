from __future__ import annotations

from datetime import date, datetime

import pytest

from glucose_analytics.errors import ConfigurationError
from glucose_analytics.filters import (
    filter_by_date,
    filter_by_date_range,
    filter_by_day_of_week,
    filter_by_time_of_day,
    filter_last_n_days,
    unique_dates,
)
from glucose_analytics.model import GlucoseReading, InsulinReading


def _r(ts: datetime, value: float = 6.0) -> GlucoseReading:
    return GlucoseReading(timestamp=ts, value=value)


# 2025-12-15 es lunes
WEEK = [_r(datetime(2025, 12, 15 + i, 12, 0)) for i in range(7)]


def test_filter_by_date_range_inclusive() -> None:
    out = filter_by_date_range(WEEK, date(2025, 12, 16), date(2025, 12, 18))
    assert [r.timestamp.day for r in out] == [16, 17, 18]


def test_filter_by_date_range_open_bounds() -> None:
    assert len(filter_by_date_range(WEEK, start=date(2025, 12, 20))) == 2
    assert len(filter_by_date_range(WEEK, end=date(2025, 12, 15))) == 1
    assert len(filter_by_date_range(WEEK)) == 7


def test_filter_by_date_works_for_insulin() -> None:
    doses = [
        InsulinReading(timestamp=datetime(2025, 12, 15, 8, 0), dose=4.0, kind="bolus"),
        InsulinReading(timestamp=datetime(2025, 12, 16, 8, 0), dose=5.0, kind="bolus"),
    ]
    assert filter_by_date(doses, date(2025, 12, 16)) == [doses[1]]


def test_filter_by_day_of_week() -> None:
    assert len(filter_by_day_of_week(WEEK, "All Days")) == 7
    assert len(filter_by_day_of_week(WEEK, "Workday")) == 5
    weekend = filter_by_day_of_week(WEEK, "Weekend")
    assert [r.timestamp.weekday() for r in weekend] == [5, 6]
    assert filter_by_day_of_week(WEEK, "Wednesday") == [WEEK[2]]


def test_filter_by_day_of_week_unknown_raises() -> None:
    with pytest.raises(ConfigurationError, match="Funday"):
        filter_by_day_of_week(WEEK, "Funday")


def test_filter_by_time_of_day_plain_and_wrapping() -> None:
    readings = [_r(datetime(2025, 12, 15, h, 30)) for h in (1, 8, 12, 22)]
    day = filter_by_time_of_day(readings, "08:00", "22:30")
    assert [r.timestamp.hour for r in day] == [8, 12, 22]
    night = filter_by_time_of_day(readings, "22:00", "02:00")
    assert [r.timestamp.hour for r in night] == [1, 22]


def test_filter_by_time_of_day_empty_bound_disables_filter() -> None:
    assert len(filter_by_time_of_day(WEEK, "", "10:00")) == 7


def test_filter_by_time_of_day_invalid_raises() -> None:
    with pytest.raises(ConfigurationError):
        filter_by_time_of_day(WEEK, "25:00", "10:00")
    with pytest.raises(ConfigurationError):
        filter_by_time_of_day(WEEK, "ocho", "10:00")


def test_filter_last_n_days_uses_latest_or_reference() -> None:
    # ancla 21 -> desde el 18 a medianoche
    assert [r.timestamp.day for r in filter_last_n_days(WEEK, 3)] == [18, 19, 20, 21]
    out = filter_last_n_days(WEEK, 1, reference=date(2025, 12, 17))
    assert [r.timestamp.day for r in out] == [16, 17]
    assert filter_last_n_days([], 3) == []


def test_unique_dates_sorted() -> None:
    readings = [WEEK[3], WEEK[0], WEEK[3]]
    assert unique_dates(readings) == [date(2025, 12, 15), date(2025, 12, 18)]
