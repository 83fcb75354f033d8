"""Perfil ambulatorio de glucosa (AGP): percentiles por franja de 5 minutos."""

from __future__ import annotations

import logging
import math
from collections.abc import Sequence
from datetime import datetime

from glucose_analytics.filters import DayOfWeekFilter, filter_by_day_of_week
from glucose_analytics.frames import readings_to_frame, slot_label
from glucose_analytics.model import AGPTimeSlotStats, GlucoseReading

logger = logging.getLogger(__name__)

SLOT_MINUTES = 5
PERCENTILES: tuple[int, ...] = (10, 25, 50, 75, 90)


def calculate_percentile(sorted_values: Sequence[float], percentile: float) -> float:
    """Percentile by linear interpolation between closest ranks.

    Args:
        sorted_values: Values in ascending order.
        percentile: Percentile in 0-100.

    Returns:
        Interpolated value; 0 for an empty sequence.
    """
    if not sorted_values:
        return 0.0
    if len(sorted_values) == 1:
        return float(sorted_values[0])

    rank = percentile / 100 * (len(sorted_values) - 1)
    lower = math.floor(rank)
    upper = math.ceil(rank)
    if lower == upper:
        return float(sorted_values[lower])
    low_value = sorted_values[lower]
    return low_value + (rank - lower) * (sorted_values[upper] - low_value)


def time_slots() -> list[str]:
    """All 288 slot labels from 00:00 to 23:55."""
    return [
        slot_label(hour, minute)
        for hour in range(24)
        for minute in range(0, 60, SLOT_MINUTES)
    ]


def time_slot_key(timestamp: datetime) -> str:
    """Slot label for a timestamp, ignoring its date."""
    return slot_label(timestamp.hour, timestamp.minute)


def _empty_slot(slot: str) -> AGPTimeSlotStats:
    return AGPTimeSlotStats(
        time_slot=slot,
        lowest=0.0,
        p10=0.0,
        p25=0.0,
        p50=0.0,
        p75=0.0,
        p90=0.0,
        highest=0.0,
        count=0,
    )


def _slot_stats(slot: str, values: list[float]) -> AGPTimeSlotStats:
    ordered = sorted(values)
    p10, p25, p50, p75, p90 = (calculate_percentile(ordered, p) for p in PERCENTILES)
    return AGPTimeSlotStats(
        time_slot=slot,
        lowest=ordered[0],
        p10=p10,
        p25=p25,
        p50=p50,
        p75=p75,
        p90=p90,
        highest=ordered[-1],
        count=len(ordered),
    )


def build_agp_profile(readings: Sequence[GlucoseReading]) -> list[AGPTimeSlotStats]:
    """Build the 288-slot daily percentile profile.

    Readings from different days fold into the same time-of-day slot. Slots
    without readings are zero-filled with ``count == 0``.

    Args:
        readings: Glucose readings in any order (mmol/L).

    Returns:
        Exactly 288 slot statistics in time order.
    """
    frame = readings_to_frame(readings)
    grouped: dict[str, list[float]] = {}
    if not frame.empty:
        grouped = {
            str(slot): values.tolist()
            for slot, values in frame.groupby("slot")["value"]
        }
    logger.debug(
        "AGP profile from %d readings, %d slots with data", len(frame), len(grouped)
    )
    return [
        _slot_stats(slot, grouped[slot]) if slot in grouped else _empty_slot(slot)
        for slot in time_slots()
    ]


def build_agp_profile_for_days(
    readings: Sequence[GlucoseReading], day_filter: DayOfWeekFilter | str
) -> list[AGPTimeSlotStats]:
    """AGP profile restricted to a weekday, Workday or Weekend filter."""
    return build_agp_profile(filter_by_day_of_week(readings, day_filter))
