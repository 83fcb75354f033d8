"""Filtros de lecturas por fecha, día de semana y franja horaria."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from datetime import date, datetime, timedelta
from typing import Literal, Protocol, TypeVar

from glucose_analytics.errors import ConfigurationError

DAY_NAMES: tuple[str, ...] = (
    "Monday",
    "Tuesday",
    "Wednesday",
    "Thursday",
    "Friday",
    "Saturday",
    "Sunday",
)

DayOfWeekFilter = Literal[
    "All Days",
    "Workday",
    "Weekend",
    "Monday",
    "Tuesday",
    "Wednesday",
    "Thursday",
    "Friday",
    "Saturday",
    "Sunday",
]


class Timestamped(Protocol):
    """Anything carrying a reading timestamp."""

    @property
    def timestamp(self) -> datetime: ...


R = TypeVar("R", bound=Timestamped)


def filter_by_date_range(
    readings: Iterable[R],
    start: date | None = None,
    end: date | None = None,
) -> list[R]:
    """Keep readings whose calendar date falls in ``[start, end]``.

    Args:
        readings: Glucose or insulin readings.
        start: First day included; ``None`` leaves the range open.
        end: Last day included; ``None`` leaves the range open.

    Returns:
        Matching readings in input order.
    """
    out: list[R] = []
    for r in readings:
        day = r.timestamp.date()
        if start is not None and day < _as_date(start):
            continue
        if end is not None and day > _as_date(end):
            continue
        out.append(r)
    return out


def filter_by_date(readings: Iterable[R], day: date) -> list[R]:
    """Keep readings taken on one calendar date."""
    return filter_by_date_range(readings, start=day, end=day)


def filter_last_n_days(
    readings: Sequence[R],
    days: int,
    reference: date | None = None,
) -> list[R]:
    """Keep readings from midnight of ``anchor - days`` to the end of ``anchor``.

    The anchor is ``reference`` when given, otherwise the date of the latest
    reading.
    """
    if not readings:
        return []
    anchor = latest_date(readings) if reference is None else _as_date(reference)
    return filter_by_date_range(readings, start=anchor - timedelta(days=days), end=anchor)


def filter_by_day_of_week(
    readings: Iterable[R], day_filter: DayOfWeekFilter | str
) -> list[R]:
    """Keep readings matching a weekday, Workday (Mon-Fri) or Weekend.

    Raises:
        ConfigurationError: If ``day_filter`` is not a known filter.
    """
    if day_filter == "All Days":
        return list(readings)
    if day_filter == "Workday":
        wanted = set(range(5))
    elif day_filter == "Weekend":
        wanted = {5, 6}
    elif day_filter in DAY_NAMES:
        wanted = {DAY_NAMES.index(day_filter)}
    else:
        raise ConfigurationError(f"Unknown day-of-week filter: {day_filter!r}")
    return [r for r in readings if r.timestamp.weekday() in wanted]


def filter_by_time_of_day(readings: Iterable[R], start: str, end: str) -> list[R]:
    """Keep readings whose wall-clock time lies in ``[start, end]`` ("HH:MM").

    A range with ``start`` after ``end`` wraps past midnight. An empty bound
    disables the filter.
    """
    if not start or not end:
        return list(readings)
    start_min = _parse_hhmm(start)
    end_min = _parse_hhmm(end)

    out: list[R] = []
    for r in readings:
        minutes = r.timestamp.hour * 60 + r.timestamp.minute
        if start_min <= end_min:
            keep = start_min <= minutes <= end_min
        else:
            keep = minutes >= start_min or minutes <= end_min
        if keep:
            out.append(r)
    return out


def unique_dates(readings: Iterable[Timestamped]) -> list[date]:
    """Sorted calendar dates that have at least one reading."""
    return sorted({r.timestamp.date() for r in readings})


def latest_date(readings: Iterable[Timestamped]) -> date:
    """Calendar date of the latest reading."""
    return max(r.timestamp for r in readings).date()


def _as_date(value: date) -> date:
    """Normaliza datetime -> date (datetime es subclase de date)."""
    if isinstance(value, datetime):
        return value.date()
    return value


def _parse_hhmm(text: str) -> int:
    """Convierte "HH:MM" a minutos desde medianoche."""
    try:
        hours, minutes = (int(part) for part in text.split(":"))
    except ValueError as exc:
        raise ConfigurationError(f"Invalid time of day: {text!r}") from exc
    if not (0 <= hours < 24 and 0 <= minutes < 60):
        raise ConfigurationError(f"Invalid time of day: {text!r}")
    return hours * 60 + minutes
