"""Modelos tipados para lecturas de glucosa/insulina y resultados de análisis."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Literal

InsulinKind = Literal["basal", "bolus"]
RangeCategoryMode = Literal[3, 5]
RangeCategory = Literal["veryLow", "low", "inRange", "high", "veryHigh"]
RoCCategory = Literal["good", "medium", "bad"]


@dataclass(frozen=True)
class GlucoseReading:
    """One glucose measurement event (timestamped, mmol/L)."""

    timestamp: datetime
    value: float


@dataclass(frozen=True)
class InsulinReading:
    """One insulin delivery event."""

    timestamp: datetime
    dose: float
    kind: InsulinKind


@dataclass(frozen=True)
class GlucoseThresholds:
    """Range thresholds in mmol/L.

    Callers are expected to check ordering with
    ``glucose_analytics.errors.validate_thresholds`` before use.
    """

    very_low: float = 3.0
    low: float = 3.9
    high: float = 10.0
    very_high: float = 13.9


@dataclass(frozen=True)
class AGPTimeSlotStats:
    """Percentile summary for one 5-minute time-of-day slot."""

    time_slot: str
    lowest: float
    p10: float
    p25: float
    p50: float
    p75: float
    p90: float
    highest: float
    count: int


@dataclass(frozen=True)
class TIRStats:
    """Reading counts per range category.

    ``very_low`` and ``very_high`` are only set in 5-category mode.
    """

    low: int
    in_range: int
    high: int
    total: int
    very_low: int | None = None
    very_high: int | None = None

    def __add__(self, other: TIRStats) -> TIRStats:
        return TIRStats(
            low=self.low + other.low,
            in_range=self.in_range + other.in_range,
            high=self.high + other.high,
            total=self.total + other.total,
            very_low=_add_optional(self.very_low, other.very_low),
            very_high=_add_optional(self.very_high, other.very_high),
        )

    def count(self, category: RangeCategory) -> int:
        """Return the count for a category (0 when not tracked)."""
        values: dict[str, int | None] = {
            "veryLow": self.very_low,
            "low": self.low,
            "inRange": self.in_range,
            "high": self.high,
            "veryHigh": self.very_high,
        }
        return values[category] or 0

    def percentage(self, category: RangeCategory, precision: int = 1) -> float:
        """Share of ``total`` in a category, rounded; 0 when there is no data."""
        if self.total == 0:
            return 0.0
        return round(self.count(category) / self.total * 100, precision)


def _add_optional(a: int | None, b: int | None) -> int | None:
    if a is None and b is None:
        return None
    return (a or 0) + (b or 0)


@dataclass(frozen=True)
class DayOfWeekTIR:
    """TIR for one weekday, or the Workday/Weekend aggregates."""

    day: str
    stats: TIRStats


@dataclass(frozen=True)
class DailyTIR:
    """TIR for one calendar date."""

    day: date
    stats: TIRStats


@dataclass(frozen=True)
class WeeklyTIR:
    """TIR for one Monday-start week."""

    week_label: str
    week_start: date
    week_end: date
    stats: TIRStats


@dataclass(frozen=True)
class PeriodTIR:
    """TIR for a trailing window of ``days`` days."""

    period: str
    days: int
    stats: TIRStats


@dataclass(frozen=True)
class HourlyTIR:
    """TIR for one hour (or group of hours) of the day."""

    hour: int
    hour_label: str
    stats: TIRStats


@dataclass(frozen=True)
class RoCDataPoint:
    """Rate of change at one reading, in mmol/L per 5 minutes."""

    timestamp: datetime
    roc: float
    roc_signed: float
    category: RoCCategory
    color: str
    glucose_value: float


@dataclass(frozen=True)
class RoCStats:
    """Rollup of a RoC series."""

    mean_roc: float
    min_roc: float
    max_roc: float
    sd_roc: float
    good_count: int
    medium_count: int
    bad_count: int
    good_percentage: float
    medium_percentage: float
    bad_percentage: float
    total_count: int


@dataclass(frozen=True)
class RiskStats:
    """Glycemic risk indices; ``None`` when there is no data."""

    lbgi: float | None = None
    hbgi: float | None = None
    bgri: float | None = None
    j_index: float | None = None


@dataclass(frozen=True)
class QuartileStats:
    """Quartiles and extremes of glucose values (mmol/L)."""

    q25: float
    q50: float
    q75: float
    minimum: float
    maximum: float


@dataclass(frozen=True)
class HighLowIncidents:
    """Number of transitions into each out-of-range zone."""

    high_count: int = 0
    low_count: int = 0
    very_high_count: int = 0
    very_low_count: int = 0


@dataclass(frozen=True)
class FluxResult:
    """Stability grade derived from CV%."""

    grade: str
    score: float
    description: str


@dataclass(frozen=True)
class HypoPeriod:
    """One detected hypoglycemia episode."""

    start_time: datetime
    end_time: datetime
    duration_minutes: float
    nadir: float
    nadir_time: datetime
    is_severe: bool


@dataclass(frozen=True)
class HypoStats:
    """Aggregate hypoglycemia statistics."""

    severe_count: int
    non_severe_count: int
    total_count: int
    lowest_value: float | None
    longest_duration_minutes: float
    total_duration_minutes: float
    periods: tuple[HypoPeriod, ...]


@dataclass(frozen=True)
class IOBDataPoint:
    """Insulin on board at one instant, in units."""

    time: datetime
    basal_iob: float
    bolus_iob: float
    total_iob: float


@dataclass(frozen=True)
class DailyInsulinTotals:
    """Delivered insulin per calendar date."""

    day: date
    basal_total: float
    bolus_total: float
    total_insulin: float


@dataclass(frozen=True)
class HourlyInsulin:
    """Insulin delivered in one hour of a day.

    ``basal_rate`` is the mean basal dose recorded in the hour; ``bolus_total``
    is the sum of boluses.
    """

    hour: int
    hour_label: str
    basal_rate: float
    bolus_total: float
