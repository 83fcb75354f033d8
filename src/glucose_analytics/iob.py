"""Insulina activa (IOB) con un modelo de decaimiento exponencial simple."""

from __future__ import annotations

import logging
import math
from collections.abc import Iterable, Sequence
from datetime import date, datetime, time, timedelta, tzinfo

import pandas as pd
from dateutil.rrule import MINUTELY, rrule

from glucose_analytics.errors import ConfigurationError, validate_insulin_duration
from glucose_analytics.filters import filter_by_date
from glucose_analytics.model import (
    DailyInsulinTotals,
    HourlyInsulin,
    InsulinReading,
    IOBDataPoint,
)

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL_MINUTES = 15


def active_insulin(dose: float, hours_since: float, duration_hours: float) -> float:
    """Insulin still active ``hours_since`` hours after a dose.

    ``dose * exp(-ln2 / half_life * t)`` with ``half_life = duration / 2``,
    and 0 outside ``[0, duration)``.
    """
    if hours_since < 0 or hours_since >= duration_hours:
        return 0.0
    half_life = duration_hours / 2
    return dose * math.exp(-math.log(2) / half_life * hours_since)


def calculate_iob_at(
    doses: Iterable[InsulinReading], at: datetime, duration_hours: float
) -> IOBDataPoint:
    """Basal, bolus and total IOB at one instant, rounded to 0.01 U.

    Only doses in ``[at - duration, at]`` contribute.

    Raises:
        ConfigurationError: If ``duration_hours`` is not positive.
    """
    validate_insulin_duration(duration_hours)
    lookback = at - timedelta(hours=duration_hours)
    basal = bolus = 0.0
    for dose in doses:
        if not lookback <= dose.timestamp <= at:
            continue
        hours = (at - dose.timestamp).total_seconds() / 3600
        amount = active_insulin(dose.dose, hours, duration_hours)
        if dose.kind == "basal":
            basal += amount
        else:
            bolus += amount
    return IOBDataPoint(
        time=at,
        basal_iob=round(basal, 2),
        bolus_iob=round(bolus, 2),
        total_iob=round(basal + bolus, 2),
    )


def _day_start(day: date, doses: Sequence[InsulinReading], tz: tzinfo | None) -> datetime:
    """Medianoche del día, con la zona horaria dada o la de las dosis."""
    if tz is None and doses:
        tz = doses[0].timestamp.tzinfo
    return datetime.combine(day, time.min, tzinfo=tz)


def doses_for_day(
    doses: Sequence[InsulinReading],
    day: date,
    duration_hours: float,
    tz: tzinfo | None = None,
) -> list[InsulinReading]:
    """Doses relevant to a day's timeline.

    Includes doses from up to ``duration_hours`` before midnight, since they
    are still active when the day starts.
    """
    validate_insulin_duration(duration_hours)
    start = _day_start(day, doses, tz)
    lookback = start - timedelta(hours=duration_hours)
    end = start + timedelta(days=1)
    return [d for d in doses if lookback <= d.timestamp <= end]


def daily_iob(
    doses: Sequence[InsulinReading],
    day: date,
    duration_hours: float,
    interval_minutes: int = DEFAULT_INTERVAL_MINUTES,
    tz: tzinfo | None = None,
) -> list[IOBDataPoint]:
    """IOB timeline from midnight to the following midnight, both included.

    Args:
        doses: All insulin doses; the lookback window is applied here.
        day: Calendar day to sample.
        duration_hours: Insulin action duration (typically 3-6 h).
        interval_minutes: Sampling step.
        tz: Time zone of the day; defaults to the doses' zone.

    Returns:
        Evenly spaced samples (97 at the default 15-minute step).

    Raises:
        ConfigurationError: If the duration or the interval is not positive.
    """
    validate_insulin_duration(duration_hours)
    if interval_minutes <= 0:
        raise ConfigurationError(
            f"Sampling interval must be positive, got {interval_minutes!r}"
        )
    start = _day_start(day, doses, tz)
    relevant = doses_for_day(doses, day, duration_hours, start.tzinfo)
    logger.debug(
        "IOB timeline for %s: %d of %d doses in window", day, len(relevant), len(doses)
    )
    samples = rrule(
        MINUTELY,
        interval=interval_minutes,
        dtstart=start,
        until=start + timedelta(days=1),
    )
    return [calculate_iob_at(relevant, at, duration_hours) for at in samples]


def daily_insulin_totals(doses: Sequence[InsulinReading]) -> list[DailyInsulinTotals]:
    """Basal, bolus and total insulin per calendar date (0.1 U), oldest first."""
    if not doses:
        return []
    frame = pd.DataFrame(
        {
            "date": [d.timestamp.date() for d in doses],
            "kind": [d.kind for d in doses],
            "dose": [float(d.dose) for d in doses],
        }
    )
    table = (
        frame.groupby(["date", "kind"])["dose"]
        .sum()
        .unstack(fill_value=0.0)
        .reindex(columns=["basal", "bolus"], fill_value=0.0)
        .sort_index()
    )
    return [
        DailyInsulinTotals(
            day=day,
            basal_total=round(float(row["basal"]), 1),
            bolus_total=round(float(row["bolus"]), 1),
            total_insulin=round(float(row["basal"] + row["bolus"]), 1),
        )
        for day, row in table.iterrows()
    ]


def hourly_insulin(doses: Sequence[InsulinReading], day: date) -> list[HourlyInsulin]:
    """Per-hour insulin breakdown for one calendar day.

    Args:
        doses: Insulin doses; only those dated ``day`` are used.
        day: Calendar day to summarize.

    Returns:
        24 entries (00:00 to 23:00) with the mean basal dose (0.01 U) and the
        bolus sum (0.1 U) of each hour; hours without doses are zero.
    """
    selected = filter_by_date(doses, day)
    basal = pd.Series(dtype="float64")
    bolus = pd.Series(dtype="float64")
    if selected:
        frame = pd.DataFrame(
            {
                "hour": [d.timestamp.hour for d in selected],
                "kind": [d.kind for d in selected],
                "dose": [float(d.dose) for d in selected],
            }
        )
        basal = frame[frame["kind"] == "basal"].groupby("hour")["dose"].mean()
        bolus = frame[frame["kind"] == "bolus"].groupby("hour")["dose"].sum()
    basal = basal.reindex(range(24), fill_value=0.0)
    bolus = bolus.reindex(range(24), fill_value=0.0)
    return [
        HourlyInsulin(
            hour=hour,
            hour_label=f"{hour:02d}:00",
            basal_rate=round(float(basal[hour]), 2),
            bolus_total=round(float(bolus[hour]), 1),
        )
        for hour in range(24)
    ]
