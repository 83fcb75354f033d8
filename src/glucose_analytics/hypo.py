"""Detección de hipoglucemias a partir de lecturas consecutivas."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from dataclasses import replace

from glucose_analytics.model import GlucoseReading, GlucoseThresholds, HypoPeriod, HypoStats

logger = logging.getLogger(__name__)

HYPO_RECOVERY_OFFSET = 0.6
CONSECUTIVE_READINGS_REQUIRED = 3


def _period(
    ordered: Sequence[GlucoseReading],
    start_index: int,
    end_index: int,
    nadir_index: int,
    is_severe: bool,
) -> HypoPeriod:
    start = ordered[start_index].timestamp
    end = ordered[end_index].timestamp
    return HypoPeriod(
        start_time=start,
        end_time=end,
        duration_minutes=(end - start).total_seconds() / 60,
        nadir=ordered[nadir_index].value,
        nadir_time=ordered[nadir_index].timestamp,
        is_severe=is_severe,
    )


def detect_hypo_periods(
    readings: Iterable[GlucoseReading],
    threshold: float,
    is_severe: bool = False,
) -> list[HypoPeriod]:
    """Detect hypoglycemia periods below ``threshold`` (mmol/L).

    A period starts at the first of three consecutive readings below the
    threshold. It ends at the first of three consecutive readings at or above
    both the threshold and ``nadir + 0.6``. A period still open at the end of
    the data ends at the last reading.

    Args:
        readings: Glucose readings in any order.
        threshold: Detection threshold in mmol/L.
        is_severe: Value stored on every detected period.

    Returns:
        Periods in time order.
    """
    ordered = sorted(readings, key=lambda r: r.timestamp)
    if len(ordered) < CONSECUTIVE_READINGS_REQUIRED:
        return []

    periods: list[HypoPeriod] = []
    in_hypo = False
    start_index = nadir_index = -1
    below = above = 0

    for i, reading in enumerate(ordered):
        if not in_hypo:
            if reading.value >= threshold:
                below = 0
                continue
            below += 1
            if below >= CONSECUTIVE_READINGS_REQUIRED:
                in_hypo = True
                start_index = i - (CONSECUTIVE_READINGS_REQUIRED - 1)
                # ante empate gana la lectura más reciente
                nadir_index = min(
                    range(i, start_index - 1, -1), key=lambda j: ordered[j].value
                )
                above = 0
            continue

        if reading.value < ordered[nadir_index].value:
            nadir_index = i
        recovery = max(threshold, ordered[nadir_index].value + HYPO_RECOVERY_OFFSET)
        if reading.value < recovery:
            above = 0
            continue
        above += 1
        if above >= CONSECUTIVE_READINGS_REQUIRED:
            end_index = i - (CONSECUTIVE_READINGS_REQUIRED - 1)
            periods.append(_period(ordered, start_index, end_index, nadir_index, is_severe))
            in_hypo = False
            below = above = 0

    if in_hypo:
        periods.append(
            _period(ordered, start_index, len(ordered) - 1, nadir_index, is_severe)
        )
    logger.debug("Detected %d hypo periods below %.1f", len(periods), threshold)
    return periods


def calculate_hypo_stats(
    readings: Iterable[GlucoseReading], thresholds: GlucoseThresholds
) -> HypoStats:
    """Hypo periods below ``low``, marked severe when the nadir is below ``very_low``."""
    periods = tuple(
        replace(p, is_severe=p.nadir < thresholds.very_low)
        for p in detect_hypo_periods(readings, thresholds.low)
    )
    severe = sum(1 for p in periods if p.is_severe)
    return HypoStats(
        severe_count=severe,
        non_severe_count=len(periods) - severe,
        total_count=len(periods),
        lowest_value=min((p.nadir for p in periods), default=None),
        longest_duration_minutes=max((p.duration_minutes for p in periods), default=0.0),
        total_duration_minutes=sum((p.duration_minutes for p in periods), 0.0),
        periods=periods,
    )
