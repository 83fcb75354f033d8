"""Conversión de unidades de glucosa, HbA1c y velocidad de cambio."""

from __future__ import annotations

from typing import Literal

from glucose_analytics.errors import ConfigurationError

GlucoseUnit = Literal["mmol/L", "mg/dL"]
HbA1cUnit = Literal["%", "mmol/mol"]

MMOL_TO_MGDL = 18.0182
HBA1C_IFCC_OFFSET = 2.15
HBA1C_IFCC_FACTOR = 10.929
ROC_WINDOW_MINUTES = 5


def mmol_to_mgdl(value_mmol: float) -> float:
    """Convert mmol/L to mg/dL (unrounded)."""
    return value_mmol * MMOL_TO_MGDL


def mgdl_to_mmol(value_mgdl: float) -> float:
    """Convert mg/dL to mmol/L (unrounded)."""
    return value_mgdl / MMOL_TO_MGDL


def convert_glucose(value_mmol: float, unit: GlucoseUnit) -> float:
    """Convert a canonical mmol/L value for display.

    Args:
        value_mmol: Glucose value in mmol/L.
        unit: Display unit.

    Returns:
        Integer-rounded mg/dL, or the value unchanged for mmol/L.

    Raises:
        ConfigurationError: If ``unit`` is not a known glucose unit.
    """
    if unit == "mg/dL":
        return float(round(mmol_to_mgdl(value_mmol)))
    if unit == "mmol/L":
        return value_mmol
    raise ConfigurationError(f"Unknown glucose unit: {unit!r}")


def format_glucose(value_mmol: float, unit: GlucoseUnit) -> str:
    """Format a canonical value as text in the display unit."""
    converted = convert_glucose(value_mmol, unit)
    if unit == "mg/dL":
        return str(int(converted))
    return f"{converted:.1f}"


def hba1c_percent_to_mmol_mol(hba1c_percent: float) -> float:
    """Convert HbA1c from NGSP % to IFCC mmol/mol."""
    return (hba1c_percent - HBA1C_IFCC_OFFSET) * HBA1C_IFCC_FACTOR


def hba1c_mmol_mol_to_percent(hba1c_mmol_mol: float) -> float:
    """Convert HbA1c from IFCC mmol/mol to NGSP %."""
    return hba1c_mmol_mol / HBA1C_IFCC_FACTOR + HBA1C_IFCC_OFFSET


def convert_hba1c(hba1c_percent: float, unit: HbA1cUnit) -> float:
    """Express an HbA1c percentage in the requested unit."""
    if unit == "mmol/mol":
        return hba1c_percent_to_mmol_mol(hba1c_percent)
    if unit == "%":
        return hba1c_percent
    raise ConfigurationError(f"Unknown HbA1c unit: {unit!r}")


def roc_per_minute(roc_per_five_minutes: float) -> float:
    """Convert a RoC in mmol/L per 5 min to mmol/L per minute."""
    return roc_per_five_minutes / ROC_WINDOW_MINUTES


def roc_per_five_minutes(roc_per_min: float) -> float:
    """Convert a RoC in mmol/L per minute to mmol/L per 5 min."""
    return roc_per_min * ROC_WINDOW_MINUTES
