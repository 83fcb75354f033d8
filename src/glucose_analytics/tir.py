"""Tiempo en rango (TIR): clasificación y agrupaciones por día, semana, período y hora."""

from __future__ import annotations

import logging
import math
from collections import Counter
from collections.abc import Iterable, Mapping, Sequence
from datetime import date, datetime, time, timedelta

import pandas as pd
from dateutil.relativedelta import MO, relativedelta

from glucose_analytics.errors import validate_category_mode, validate_hour_group
from glucose_analytics.filters import DAY_NAMES, filter_last_n_days
from glucose_analytics.frames import readings_to_frame
from glucose_analytics.model import (
    DailyTIR,
    DayOfWeekTIR,
    GlucoseReading,
    GlucoseThresholds,
    HourlyTIR,
    PeriodTIR,
    RangeCategory,
    RangeCategoryMode,
    TIRStats,
    WeeklyTIR,
)

logger = logging.getLogger(__name__)

PERIOD_DAYS: tuple[int, ...] = (28, 14, 7, 3)

_MONTHS: tuple[str, ...] = (
    "Jan",
    "Feb",
    "Mar",
    "Apr",
    "May",
    "Jun",
    "Jul",
    "Aug",
    "Sep",
    "Oct",
    "Nov",
    "Dec",
)


def classify_glucose(
    value: float, thresholds: GlucoseThresholds, mode: RangeCategoryMode = 3
) -> RangeCategory:
    """Classify one value (mmol/L) into a range category.

    Both bounds of the in-range band are inclusive. In 3-category mode the
    very low/very high bands merge into low/high.

    Raises:
        ConfigurationError: If ``mode`` is not 3 or 5.
    """
    validate_category_mode(mode)
    if value < thresholds.very_low:
        return "veryLow" if mode == 5 else "low"
    if value < thresholds.low:
        return "low"
    if value <= thresholds.high:
        return "inRange"
    if value <= thresholds.very_high:
        return "high"
    return "veryHigh" if mode == 5 else "high"


def empty_stats(mode: RangeCategoryMode = 3) -> TIRStats:
    """Zero-filled stats for the given mode."""
    validate_category_mode(mode)
    if mode == 5:
        return TIRStats(low=0, in_range=0, high=0, total=0, very_low=0, very_high=0)
    return TIRStats(low=0, in_range=0, high=0, total=0)


def _stats_from_counts(
    counts: Mapping[str, int], total: int, mode: RangeCategoryMode
) -> TIRStats:
    if mode == 5:
        return TIRStats(
            low=int(counts.get("low", 0)),
            in_range=int(counts.get("inRange", 0)),
            high=int(counts.get("high", 0)),
            total=total,
            very_low=int(counts.get("veryLow", 0)),
            very_high=int(counts.get("veryHigh", 0)),
        )
    return TIRStats(
        low=int(counts.get("low", 0)),
        in_range=int(counts.get("inRange", 0)),
        high=int(counts.get("high", 0)),
        total=total,
    )


def calculate_range_stats(
    readings: Iterable[GlucoseReading],
    thresholds: GlucoseThresholds,
    mode: RangeCategoryMode = 3,
) -> TIRStats:
    """Count readings per range category.

    Args:
        readings: Glucose readings (mmol/L).
        thresholds: Range thresholds.
        mode: 3 or 5 categories.

    Returns:
        Counts that sum to ``total``; all zeros for empty input.
    """
    validate_category_mode(mode)
    counts = Counter(classify_glucose(r.value, thresholds, mode) for r in readings)
    return _stats_from_counts(counts, sum(counts.values()), mode)


def calculate_percentage(count: int, total: int, precision: int = 1) -> float:
    """Percentage of ``total``, rounded; 0 when ``total`` is 0."""
    if total == 0:
        return 0.0
    return round(count / total * 100, precision)


def percentage_to_duration(total_readings: int, category_readings: int) -> str:
    """Express a share of readings as time of a 24 h day ("6h", "45m", "1h 10m").

    The result is rounded to the nearest 5 minutes.
    """
    if total_readings == 0:
        return "0m"
    minutes_per_reading = 24 * 60 / total_readings
    total_minutes = math.floor(category_readings * minutes_per_reading / 5 + 0.5) * 5
    hours, minutes = divmod(total_minutes, 60)
    if hours == 0:
        return f"{minutes}m"
    if minutes == 0:
        return f"{hours}h"
    return f"{hours}h {minutes}m"


def _categorized_frame(
    readings: Sequence[GlucoseReading],
    thresholds: GlucoseThresholds,
    mode: RangeCategoryMode,
) -> pd.DataFrame:
    """Frame de lecturas con columna ``category``."""
    frame = readings_to_frame(readings)
    frame["category"] = [
        classify_glucose(v, thresholds, mode) for v in frame["value"].tolist()
    ]
    return frame


def _grouped_stats(
    frame: pd.DataFrame, key: str, mode: RangeCategoryMode
) -> dict[object, TIRStats]:
    """Agrupa por ``key`` y cuenta categorías por grupo."""
    if frame.empty:
        return {}
    out: dict[object, TIRStats] = {}
    for group, categories in frame.groupby(key)["category"]:
        counts = categories.value_counts().to_dict()
        # numpy int64 -> int para que las claves coincidan con range()
        group_key = group.item() if hasattr(group, "item") else group
        out[group_key] = _stats_from_counts(counts, int(len(categories)), mode)
    return out


def tir_by_day_of_week(
    readings: Sequence[GlucoseReading],
    thresholds: GlucoseThresholds,
    mode: RangeCategoryMode = 3,
) -> list[DayOfWeekTIR]:
    """TIR for Monday..Sunday, then "Workday" and "Weekend".

    The two aggregates are sums of the daily buckets, so every reading is
    counted exactly once in each of them.
    """
    validate_category_mode(mode)
    grouped = _grouped_stats(_categorized_frame(readings, thresholds, mode), "weekday", mode)
    daily = [grouped.get(idx, empty_stats(mode)) for idx in range(7)]

    reports = [DayOfWeekTIR(day=DAY_NAMES[idx], stats=daily[idx]) for idx in range(7)]
    reports.append(DayOfWeekTIR(day="Workday", stats=sum(daily[1:5], daily[0])))
    reports.append(DayOfWeekTIR(day="Weekend", stats=daily[5] + daily[6]))
    return reports


def tir_by_date(
    readings: Sequence[GlucoseReading],
    thresholds: GlucoseThresholds,
    mode: RangeCategoryMode = 3,
) -> list[DailyTIR]:
    """TIR per calendar date, oldest first."""
    validate_category_mode(mode)
    grouped = _grouped_stats(_categorized_frame(readings, thresholds, mode), "date", mode)
    return [DailyTIR(day=day, stats=stats) for day, stats in sorted(grouped.items())]


def week_start(day: date) -> date:
    """Monday on or before ``day``."""
    return day + relativedelta(weekday=MO(-1))


def format_week_range(start: date, end: date) -> str:
    """Label a week as "Oct 6-12" or "Sep 29-Oct 5"."""
    start_month = _MONTHS[start.month - 1]
    if start.month == end.month:
        return f"{start_month} {start.day}-{end.day}"
    return f"{start_month} {start.day}-{_MONTHS[end.month - 1]} {end.day}"


def tir_by_week(
    readings: Sequence[GlucoseReading],
    thresholds: GlucoseThresholds,
    mode: RangeCategoryMode = 3,
) -> list[WeeklyTIR]:
    """TIR per Monday-start week, oldest first."""
    validate_category_mode(mode)
    frame = _categorized_frame(readings, thresholds, mode)
    frame["week_start"] = [week_start(d) for d in frame["date"].tolist()]
    grouped = _grouped_stats(frame, "week_start", mode)

    reports: list[WeeklyTIR] = []
    for start, stats in sorted(grouped.items()):
        end = start + timedelta(days=6)
        reports.append(
            WeeklyTIR(
                week_label=format_week_range(start, end),
                week_start=start,
                week_end=end,
                stats=stats,
            )
        )
    return reports


def tir_by_period(
    readings: Sequence[GlucoseReading],
    thresholds: GlucoseThresholds,
    mode: RangeCategoryMode = 3,
    reference: date | None = None,
) -> list[PeriodTIR]:
    """TIR for trailing 28/14/7/3-day windows.

    Windows end on ``reference`` (or the latest reading's date). A window is
    emitted only when the data spans at least that many days; shorter
    histories yield fewer periods.

    Args:
        readings: Glucose readings in any order.
        thresholds: Range thresholds.
        mode: 3 or 5 categories.
        reference: Optional end date (a ``datetime`` is used as-is).

    Returns:
        Periods from longest to shortest.
    """
    validate_category_mode(mode)
    if not readings:
        return []

    earliest = min(r.timestamp for r in readings)
    anchor = _period_anchor(readings, reference, earliest)
    span_days = math.ceil((anchor - earliest).total_seconds() / 86400)

    periods: list[PeriodTIR] = []
    for days in PERIOD_DAYS:
        if days > span_days:
            logger.debug("Omitting %d-day period, data spans %d days", days, span_days)
            continue
        window = filter_last_n_days(readings, days, anchor.date())
        periods.append(
            PeriodTIR(
                period=f"{days} days",
                days=days,
                stats=calculate_range_stats(window, thresholds, mode),
            )
        )
    return periods


def _period_anchor(
    readings: Sequence[GlucoseReading], reference: date | None, earliest: datetime
) -> datetime:
    """Instante final: la referencia (medianoche si es date) o la última lectura."""
    if reference is None:
        return max(r.timestamp for r in readings)
    if isinstance(reference, datetime):
        return reference
    return datetime.combine(reference, time.min, tzinfo=earliest.tzinfo)


def tir_by_hour(
    readings: Sequence[GlucoseReading],
    thresholds: GlucoseThresholds,
    mode: RangeCategoryMode = 3,
    group_size: int = 1,
) -> list[HourlyTIR]:
    """TIR per hour of day, optionally coalesced into 2/3/4/6-hour groups.

    Returns:
        ``24 // group_size`` buckets in hour order, including empty ones.

    Raises:
        ConfigurationError: If ``group_size`` is not 1, 2, 3, 4 or 6.
    """
    validate_category_mode(mode)
    validate_hour_group(group_size)
    frame = _categorized_frame(readings, thresholds, mode)
    frame["hour_group"] = [hour // group_size for hour in frame["hour"].tolist()]
    grouped = _grouped_stats(frame, "hour_group", mode)

    reports: list[HourlyTIR] = []
    for index in range(24 // group_size):
        start_hour = index * group_size
        if group_size == 1:
            label = f"{start_hour:02d}:00"
        else:
            label = f"{start_hour:02d}:00-{start_hour + group_size - 1:02d}:59"
        reports.append(
            HourlyTIR(
                hour=start_hour,
                hour_label=label,
                stats=grouped.get(index, empty_stats(mode)),
            )
        )
    return reports
