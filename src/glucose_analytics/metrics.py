"""Métricas descriptivas de glucosa (media, mediana, cuartiles, incidentes, unicornios)."""

from __future__ import annotations

from collections.abc import Iterable, Sequence

import pandas as pd

from glucose_analytics.agp import calculate_percentile
from glucose_analytics.model import (
    GlucoseReading,
    GlucoseThresholds,
    HighLowIncidents,
    QuartileStats,
)
from glucose_analytics.tir import classify_glucose
from glucose_analytics.units import mgdl_to_mmol

UNICORN_MMOL = 5.0
UNICORN_TOLERANCE_MMOL = 0.05
UNICORN_100_MGDL_IN_MMOL = mgdl_to_mmol(100)
UNICORN_TOLERANCE_100_MGDL = mgdl_to_mmol(0.5)

WAKEUP_HOURS = range(6, 9)
BEDTIME_HOURS = range(21, 24)


def _values(readings: Iterable[GlucoseReading]) -> pd.Series:
    return pd.Series([r.value for r in readings], dtype="float64")


def average_glucose(readings: Sequence[GlucoseReading]) -> float | None:
    """Mean glucose in mmol/L, or ``None`` without readings."""
    if not readings:
        return None
    return float(_values(readings).mean())


def standard_deviation(readings: Sequence[GlucoseReading]) -> float | None:
    """Population standard deviation in mmol/L (0 for a single reading)."""
    if not readings:
        return None
    return float(_values(readings).std(ddof=0))


def median_glucose(readings: Sequence[GlucoseReading]) -> float | None:
    """Median glucose in mmol/L."""
    if not readings:
        return None
    return calculate_percentile(sorted(r.value for r in readings), 50)


def quartiles(readings: Sequence[GlucoseReading]) -> QuartileStats | None:
    """25/50/75th percentiles plus min and max, same interpolation as the AGP."""
    if not readings:
        return None
    ordered = sorted(r.value for r in readings)
    return QuartileStats(
        q25=calculate_percentile(ordered, 25),
        q50=calculate_percentile(ordered, 50),
        q75=calculate_percentile(ordered, 75),
        minimum=ordered[0],
        maximum=ordered[-1],
    )


def days_with_data(readings: Iterable[GlucoseReading]) -> int:
    """Number of distinct calendar dates with readings."""
    return len({r.timestamp.date() for r in readings})


def count_high_low_incidents(
    readings: Iterable[GlucoseReading], thresholds: GlucoseThresholds
) -> HighLowIncidents:
    """Count transitions into each out-of-range zone (5-category classification).

    Entering "high" from "veryHigh" (or "low" from "veryLow") is a recovery,
    not a new incident.
    """
    high = low = very_high = very_low = 0
    previous: str | None = None
    for reading in sorted(readings, key=lambda r: r.timestamp):
        current = classify_glucose(reading.value, thresholds, 5)
        if previous is not None and current != previous:
            if current == "high" and previous != "veryHigh":
                high += 1
            elif current == "veryHigh":
                very_high += 1
            elif current == "low" and previous != "veryLow":
                low += 1
            elif current == "veryLow":
                very_low += 1
        previous = current
    return HighLowIncidents(
        high_count=high,
        low_count=low,
        very_high_count=very_high,
        very_low_count=very_low,
    )


def count_unicorns(readings: Iterable[GlucoseReading]) -> int:
    """Readings at exactly 5.0 mmol/L or 100 mg/dL, within display tolerance."""
    return sum(
        1
        for r in readings
        if abs(r.value - UNICORN_MMOL) < UNICORN_TOLERANCE_MMOL
        or abs(r.value - UNICORN_100_MGDL_IN_MMOL) < UNICORN_TOLERANCE_100_MGDL
    )


def _average_in_hours(readings: Iterable[GlucoseReading], hours: range) -> float | None:
    selected = [r for r in readings if r.timestamp.hour in hours]
    return average_glucose(selected)


def wakeup_average(readings: Iterable[GlucoseReading]) -> float | None:
    """Mean glucose between 06:00 and 08:59."""
    return _average_in_hours(readings, WAKEUP_HOURS)


def bedtime_average(readings: Iterable[GlucoseReading]) -> float | None:
    """Mean glucose between 21:00 and 23:59."""
    return _average_in_hours(readings, BEDTIME_HOURS)
