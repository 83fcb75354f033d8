from __future__ import annotations

from datetime import date, datetime, timedelta

import pytest

from glucose_analytics.errors import ConfigurationError
from glucose_analytics.model import GlucoseReading, GlucoseThresholds
from glucose_analytics.tir import (
    calculate_percentage,
    calculate_range_stats,
    classify_glucose,
    format_week_range,
    percentage_to_duration,
    tir_by_date,
    tir_by_day_of_week,
    tir_by_hour,
    tir_by_period,
    tir_by_week,
    week_start,
)

T = GlucoseThresholds()


def _r(ts: datetime, value: float = 6.0) -> GlucoseReading:
    return GlucoseReading(timestamp=ts, value=value)


def test_classify_boundaries() -> None:
    assert classify_glucose(3.9, T) == "inRange"
    assert classify_glucose(10.0, T) == "inRange"
    assert classify_glucose(3.89, T) == "low"
    assert classify_glucose(10.01, T) == "high"
    assert classify_glucose(13.9, T, 5) == "high"
    assert classify_glucose(14.0, T, 5) == "veryHigh"
    assert classify_glucose(2.9, T, 5) == "veryLow"
    assert classify_glucose(2.9, T, 3) == "low"
    assert classify_glucose(14.0, T, 3) == "high"


def test_invalid_mode_raises() -> None:
    with pytest.raises(ConfigurationError, match="Invalid category mode"):
        classify_glucose(5.0, T, 4)  # type: ignore[arg-type]


def test_range_stats_counts_sum_to_total() -> None:
    base = datetime(2025, 12, 15, 0, 0)
    values = [2.5, 3.5, 5.0, 7.0, 11.0, 15.0]
    readings = [_r(base + timedelta(minutes=5 * i), v) for i, v in enumerate(values)]

    three = calculate_range_stats(readings, T, 3)
    assert (three.low, three.in_range, three.high, three.total) == (2, 2, 2, 6)
    assert three.very_low is None

    five = calculate_range_stats(readings, T, 5)
    assert (five.very_low, five.low, five.in_range, five.high, five.very_high) == (1, 1, 2, 1, 1)
    assert five.low + five.in_range + five.high + five.very_low + five.very_high == five.total
    assert five.count("veryHigh") == 1


def test_range_stats_empty() -> None:
    stats = calculate_range_stats([], T, 5)
    assert stats.total == 0
    assert stats.very_low == 0


def test_percentage_helpers() -> None:
    assert calculate_percentage(1, 3) == 33.3
    assert calculate_percentage(5, 0) == 0.0
    assert percentage_to_duration(288, 72) == "6h"
    assert percentage_to_duration(288, 9) == "45m"
    assert percentage_to_duration(288, 14) == "1h 10m"
    assert percentage_to_duration(0, 0) == "0m"


def test_tir_by_day_of_week_aggregates() -> None:
    # lunes 15 .. domingo 21, dos lecturas por día, una alta el sábado
    readings = []
    for i in range(7):
        day = datetime(2025, 12, 15 + i, 9, 0)
        readings.append(_r(day, 6.0))
        readings.append(_r(day + timedelta(hours=6), 12.0 if i == 5 else 6.0))

    report = tir_by_day_of_week(readings, T)
    assert [r.day for r in report] == [
        "Monday",
        "Tuesday",
        "Wednesday",
        "Thursday",
        "Friday",
        "Saturday",
        "Sunday",
        "Workday",
        "Weekend",
    ]
    by_day = {r.day: r.stats for r in report}
    assert by_day["Workday"].total == 10
    assert by_day["Weekend"].total == 4
    assert by_day["Weekend"].high == 1
    assert by_day["Saturday"].high == 1
    assert sum(by_day[name].total for name in ("Workday", "Weekend")) == len(readings)


def test_tir_by_day_of_week_empty_has_all_buckets() -> None:
    report = tir_by_day_of_week([], T, 5)
    assert len(report) == 9
    assert all(r.stats.total == 0 for r in report)


def test_tir_by_date_sorted() -> None:
    readings = [_r(datetime(2025, 12, 16, 8, 0)), _r(datetime(2025, 12, 15, 8, 0), 2.0)]
    report = tir_by_date(readings, T)
    assert [r.day for r in report] == [date(2025, 12, 15), date(2025, 12, 16)]
    assert report[0].stats.low == 1


def test_week_helpers() -> None:
    assert week_start(date(2025, 12, 21)) == date(2025, 12, 15)
    assert week_start(date(2025, 12, 15)) == date(2025, 12, 15)
    assert format_week_range(date(2025, 10, 6), date(2025, 10, 12)) == "Oct 6-12"
    assert format_week_range(date(2025, 9, 29), date(2025, 10, 5)) == "Sep 29-Oct 5"


def test_tir_by_week_groups_monday_start() -> None:
    readings = [_r(datetime(2025, 12, 14, 8, 0)), _r(datetime(2025, 12, 15, 8, 0))]
    report = tir_by_week(readings, T)
    assert [r.week_label for r in report] == ["Dec 8-14", "Dec 15-21"]
    assert report[1].week_start == date(2025, 12, 15)
    assert report[1].week_end == date(2025, 12, 21)


def test_tir_by_period_omits_windows_longer_than_history() -> None:
    readings = [_r(datetime(2025, 12, 1, 12, 0) + timedelta(days=i)) for i in range(10)]
    periods = tir_by_period(readings, T)
    assert [p.days for p in periods] == [7, 3]
    assert periods[0].period == "7 days"
    # ventanas inclusivas: del día ancla - n a medianoche hasta el ancla
    assert periods[0].stats.total == 8
    assert periods[1].stats.total == 4


def test_tir_by_period_with_long_history_and_reference() -> None:
    readings = [_r(datetime(2025, 11, 1, 12, 0) + timedelta(days=i)) for i in range(40)]
    periods = tir_by_period(readings, T, reference=date(2025, 12, 1))
    assert [p.days for p in periods] == [28, 14, 7, 3]
    assert periods[-1].stats.total == 4
    assert tir_by_period([], T) == []


def test_tir_by_hour_groups() -> None:
    readings = [_r(datetime(2025, 12, 15, h, 10), 12.0 if h == 7 else 6.0) for h in range(24)]
    hourly = tir_by_hour(readings, T)
    assert len(hourly) == 24
    assert hourly[7].hour_label == "07:00"
    assert hourly[7].stats.high == 1

    grouped = tir_by_hour(readings, T, group_size=6)
    assert [g.hour_label for g in grouped] == [
        "00:00-05:59",
        "06:00-11:59",
        "12:00-17:59",
        "18:00-23:59",
    ]
    assert grouped[1].stats.total == 6
    assert grouped[1].stats.high == 1


def test_tir_by_hour_invalid_group() -> None:
    with pytest.raises(ConfigurationError):
        tir_by_hour([], T, group_size=5)


def test_tir_stats_percentage_and_sum() -> None:
    readings = [_r(datetime(2025, 12, 15, 8, i), v) for i, v in enumerate((2.0, 6.0, 6.0))]
    stats = calculate_range_stats(readings, T)
    assert stats.percentage("inRange") == 66.7
    assert stats.percentage("veryLow") == 0.0
    assert calculate_range_stats([], T).percentage("low") == 0.0
    doubled = stats + stats
    assert (doubled.low, doubled.in_range, doubled.total) == (2, 4, 6)
    assert doubled.very_low is None
