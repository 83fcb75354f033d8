"""Errores de configuración y validadores (fallan rápido ante defectos del caller)."""

from __future__ import annotations

from glucose_analytics.model import GlucoseThresholds

ROC_INTERVALS: tuple[int, ...] = (15, 30, 60, 120)
HOUR_GROUP_SIZES: tuple[int, ...] = (1, 2, 3, 4, 6)
CATEGORY_MODES: tuple[int, ...] = (3, 5)


class ConfigurationError(ValueError):
    """Raised when a caller passes an invalid configuration value."""


def validate_thresholds(thresholds: GlucoseThresholds) -> GlucoseThresholds:
    """Check ``very_low < low < high < very_high``.

    Args:
        thresholds: Thresholds to validate.

    Returns:
        The same thresholds, for chaining.

    Raises:
        ConfigurationError: If the ordering does not hold.
    """
    t = thresholds
    if not t.very_low < t.low < t.high < t.very_high:
        raise ConfigurationError(
            "Thresholds must satisfy very_low < low < high < very_high, got "
            f"{t.very_low}/{t.low}/{t.high}/{t.very_high}"
        )
    return thresholds


def validate_category_mode(mode: int) -> int:
    """Reject anything other than 3 or 5 categories."""
    if mode not in CATEGORY_MODES:
        raise ConfigurationError(f"Invalid category mode: {mode!r} (expected 3 or 5)")
    return mode


def validate_roc_interval(interval_minutes: int) -> int:
    """Reject RoC intervals outside 15/30/60/120 minutes."""
    if interval_minutes not in ROC_INTERVALS:
        raise ConfigurationError(
            f"Invalid RoC interval: {interval_minutes!r} (expected one of {ROC_INTERVALS})"
        )
    return interval_minutes


def validate_hour_group(group_size: int) -> int:
    """Reject hour group sizes that do not divide the day evenly."""
    if group_size not in HOUR_GROUP_SIZES:
        raise ConfigurationError(
            f"Invalid hour group size: {group_size!r} (expected one of {HOUR_GROUP_SIZES})"
        )
    return group_size


def validate_insulin_duration(duration_hours: float) -> float:
    """Reject non-positive insulin action durations."""
    if duration_hours <= 0:
        raise ConfigurationError(
            f"Insulin duration must be positive, got {duration_hours!r}"
        )
    return duration_hours
