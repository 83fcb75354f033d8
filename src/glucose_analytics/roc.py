"""Velocidad de cambio (RoC) de glucosa: derivadas, categorías, suavizado y rachas.

All rates are expressed in mmol/L per 5 minutes. Use
``glucose_analytics.units.roc_per_minute`` to show them per minute.
"""

from __future__ import annotations

import bisect
import colorsys
import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, replace
from datetime import date, timedelta

import pandas as pd

from glucose_analytics.errors import validate_roc_interval
from glucose_analytics.filters import filter_by_date, unique_dates
from glucose_analytics.model import GlucoseReading, RoCCategory, RoCDataPoint, RoCStats
from glucose_analytics.tir import calculate_percentage
from glucose_analytics.units import roc_per_five_minutes

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RoCConfig:
    """Thresholds and heuristics for RoC analysis (rates per 5 minutes)."""

    good_threshold: float = 0.3
    medium_threshold: float = 0.55
    color_cap: float = 0.6
    color_saturation: float = 0.8
    color_value: float = 0.9
    max_gap_minutes: float = 30.0
    min_gap_minutes: float = 1.0
    # Tunable heuristics, kept at their historical values.
    interval_tolerance: float = 0.2
    streak_gap_minutes: float = 10.0
    smoothing_window_minutes: float = 15.0


DEFAULT_ROC_CONFIG = RoCConfig()


def categorize_roc(roc: float, config: RoCConfig = DEFAULT_ROC_CONFIG) -> RoCCategory:
    """Classify an absolute rate as good, medium or bad."""
    if roc <= config.good_threshold:
        return "good"
    if roc <= config.medium_threshold:
        return "medium"
    return "bad"


def roc_color(roc: float, config: RoCConfig = DEFAULT_ROC_CONFIG) -> str:
    """Map a rate to an "rgb(r, g, b)" color from green (0) to red (cap and above).

    Hue moves linearly from 120 to 0 degrees; saturation and value are fixed.
    """
    normalized = min(max(roc, 0.0) / config.color_cap, 1.0)
    hue = 120.0 * (1.0 - normalized)
    r, g, b = colorsys.hsv_to_rgb(hue / 360.0, config.color_saturation, config.color_value)
    return f"rgb({round(r * 255)}, {round(g * 255)}, {round(b * 255)})"


def _minutes_between(earlier: GlucoseReading, later: GlucoseReading) -> float:
    return (later.timestamp - earlier.timestamp).total_seconds() / 60


def _make_point(
    earlier: GlucoseReading,
    later: GlucoseReading,
    minutes: float,
    config: RoCConfig,
) -> RoCDataPoint:
    """Punto RoC para el par (earlier, later), fechado en la lectura posterior."""
    signed = roc_per_five_minutes((later.value - earlier.value) / minutes)
    roc = abs(signed)
    return RoCDataPoint(
        timestamp=later.timestamp,
        roc=roc,
        roc_signed=signed,
        category=categorize_roc(roc, config),
        color=roc_color(roc, config),
        glucose_value=later.value,
    )


def calculate_roc(
    readings: Iterable[GlucoseReading], config: RoCConfig = DEFAULT_ROC_CONFIG
) -> list[RoCDataPoint]:
    """RoC between each pair of consecutive readings.

    Pairs more than ``max_gap_minutes`` apart (sensor gap) or less than
    ``min_gap_minutes`` apart (duplicates/noise) produce no point.

    Args:
        readings: Glucose readings in any order.
        config: RoC configuration.

    Returns:
        Points in time order, each dated at the later reading of its pair.
    """
    ordered = sorted(readings, key=lambda r: r.timestamp)
    points: list[RoCDataPoint] = []
    skipped = 0
    for previous, current in zip(ordered, ordered[1:]):
        minutes = _minutes_between(previous, current)
        if minutes > config.max_gap_minutes or minutes < config.min_gap_minutes:
            skipped += 1
            continue
        points.append(_make_point(previous, current, minutes, config))
    if skipped:
        logger.debug("RoC: skipped %d pairs outside the accepted gap", skipped)
    return points


def calculate_roc_over_interval(
    readings: Iterable[GlucoseReading],
    interval_minutes: int,
    config: RoCConfig = DEFAULT_ROC_CONFIG,
) -> list[RoCDataPoint]:
    """RoC of each reading against the earlier reading closest to ``interval`` ago.

    A match is accepted only within ``interval_tolerance`` of the interval;
    readings without a match are skipped.

    Raises:
        ConfigurationError: If ``interval_minutes`` is not 15, 30, 60 or 120.
    """
    validate_roc_interval(interval_minutes)
    ordered = sorted(readings, key=lambda r: r.timestamp)
    timestamps = [r.timestamp for r in ordered]
    interval = timedelta(minutes=interval_minutes)
    tolerance = interval * config.interval_tolerance

    points: list[RoCDataPoint] = []
    unmatched = 0
    for i, current in enumerate(ordered):
        target = current.timestamp - interval
        pos = bisect.bisect_left(timestamps, target, 0, i)
        candidates = [c for c in (pos - 1, pos) if 0 <= c < i]
        if not candidates:
            unmatched += 1
            continue
        best = min(candidates, key=lambda c: abs(timestamps[c] - target))
        if abs(timestamps[best] - target) > tolerance:
            unmatched += 1
            continue
        minutes = _minutes_between(ordered[best], current)
        if minutes < config.min_gap_minutes:
            unmatched += 1
            continue
        points.append(_make_point(ordered[best], current, minutes, config))
    if unmatched:
        logger.debug(
            "RoC %d-min interval: %d readings without a match", interval_minutes, unmatched
        )
    return points


def smooth_roc(
    points: Iterable[RoCDataPoint], config: RoCConfig = DEFAULT_ROC_CONFIG
) -> list[RoCDataPoint]:
    """Centered time-windowed mean of ``roc`` (default ±7.5 minutes).

    Uses a pandas time-based rolling window, closed on both ends, over
    time-sorted points. The smoothed value is clamped to be non-negative, and
    category and color are recomputed from it.
    """
    ordered = sorted(points, key=lambda p: p.timestamp)
    if not ordered:
        return []

    series = pd.Series(
        [p.roc for p in ordered],
        index=pd.DatetimeIndex([p.timestamp for p in ordered]),
        dtype="float64",
    )
    window = timedelta(minutes=config.smoothing_window_minutes)
    means = (
        series.rolling(window, center=True, closed="both", min_periods=1)
        .mean()
        .clip(lower=0.0)
    )
    return [
        replace(
            point,
            roc=mean,
            category=categorize_roc(mean, config),
            color=roc_color(mean, config),
        )
        for point, mean in zip(ordered, means.tolist())
    ]


def longest_category_streak(
    points: Iterable[RoCDataPoint],
    category: RoCCategory,
    config: RoCConfig = DEFAULT_ROC_CONFIG,
) -> int:
    """Longest run of one category, in whole minutes.

    Consecutive matching points stay in the same run when they are at most
    ``streak_gap_minutes`` apart. Returns 0 when no point matches.
    """
    gap = timedelta(minutes=config.streak_gap_minutes)
    best = 0
    run_start: RoCDataPoint | None = None
    previous: RoCDataPoint | None = None
    for point in sorted(points, key=lambda p: p.timestamp):
        if point.category != category:
            run_start = previous = None
            continue
        if run_start is None or previous is None or point.timestamp - previous.timestamp > gap:
            run_start = point
        previous = point
        duration = int((point.timestamp - run_start.timestamp).total_seconds() // 60)
        best = max(best, duration)
    return best


def calculate_roc_stats(points: Sequence[RoCDataPoint]) -> RoCStats:
    """Population mean/min/max/SD of ``roc`` plus per-category shares.

    Returns:
        All-zero stats for empty input.
    """
    if not points:
        return RoCStats(
            mean_roc=0.0,
            min_roc=0.0,
            max_roc=0.0,
            sd_roc=0.0,
            good_count=0,
            medium_count=0,
            bad_count=0,
            good_percentage=0.0,
            medium_percentage=0.0,
            bad_percentage=0.0,
            total_count=0,
        )

    values = pd.Series([p.roc for p in points], dtype="float64")
    total = len(points)
    good = sum(1 for p in points if p.category == "good")
    medium = sum(1 for p in points if p.category == "medium")
    bad = sum(1 for p in points if p.category == "bad")
    return RoCStats(
        mean_roc=float(values.mean()),
        min_roc=float(values.min()),
        max_roc=float(values.max()),
        sd_roc=float(values.std(ddof=0)),
        good_count=good,
        medium_count=medium,
        bad_count=bad,
        good_percentage=calculate_percentage(good, total),
        medium_percentage=calculate_percentage(medium, total),
        bad_percentage=calculate_percentage(bad, total),
        total_count=total,
    )


def filter_roc_by_date(points: Iterable[RoCDataPoint], day: date) -> list[RoCDataPoint]:
    """Points dated on one calendar day."""
    return filter_by_date(points, day)


def unique_roc_dates(points: Iterable[RoCDataPoint]) -> list[date]:
    """Sorted calendar dates that have RoC points."""
    return unique_dates(points)
