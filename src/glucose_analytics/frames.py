"""Conversión de lecturas a DataFrame con columnas derivadas de fecha/hora."""

from __future__ import annotations

from collections.abc import Sequence

import pandas as pd

from glucose_analytics.model import GlucoseReading

FRAME_COLUMNS: list[str] = [
    "datetime",
    "date",
    "weekday",
    "hour",
    "slot",
    "value",
]


def slot_label(hour: int, minute: int) -> str:
    """Format a 5-minute slot as HH:MM, rounding minutes down."""
    return f"{hour:02d}:{minute // 5 * 5:02d}"


def readings_to_frame(readings: Sequence[GlucoseReading]) -> pd.DataFrame:
    """Convert glucose readings to a time-sorted DataFrame.

    Derived columns are taken from each reading's own wall clock, so readings
    from different days share ``hour``/``slot`` values.

    Args:
        readings: Glucose readings in any order.

    Returns:
        DataFrame with columns datetime, date, weekday (0=Monday), hour,
        slot ("HH:MM") and value (mmol/L).
    """
    rows = [
        {
            "datetime": r.timestamp,
            "date": r.timestamp.date(),
            "weekday": r.timestamp.weekday(),
            "hour": r.timestamp.hour,
            "slot": slot_label(r.timestamp.hour, r.timestamp.minute),
            "value": float(r.value),
        }
        for r in readings
    ]
    if not rows:
        return pd.DataFrame(columns=FRAME_COLUMNS)
    df = pd.DataFrame(rows, columns=FRAME_COLUMNS)
    return df.sort_values("datetime", kind="stable").reset_index(drop=True)
