from __future__ import annotations

from datetime import date, datetime

from glucose_analytics.frames import FRAME_COLUMNS, readings_to_frame, slot_label
from glucose_analytics.model import GlucoseReading


def test_readings_to_frame_empty() -> None:
    df = readings_to_frame([])
    assert df.empty
    assert list(df.columns) == FRAME_COLUMNS


def test_readings_to_frame_orders_and_derives_columns() -> None:
    readings = [
        GlucoseReading(timestamp=datetime(2025, 12, 16, 8, 34, 45), value=6.1),
        GlucoseReading(timestamp=datetime(2025, 12, 15, 7, 15, 59), value=5.5),
    ]
    df = readings_to_frame(readings)
    assert list(df["date"]) == [date(2025, 12, 15), date(2025, 12, 16)]
    assert list(df["slot"]) == ["07:15", "08:30"]
    assert list(df["hour"]) == [7, 8]
    # 2025-12-15 es lunes
    assert list(df["weekday"]) == [0, 1]
    assert list(df["value"]) == [5.5, 6.1]


def test_slot_label_rounds_down_to_five_minutes() -> None:
    assert slot_label(0, 0) == "00:00"
    assert slot_label(14, 34) == "14:30"
    assert slot_label(23, 59) == "23:55"
