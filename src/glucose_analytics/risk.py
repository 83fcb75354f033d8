"""Índices de riesgo glucémico: LBGI/HBGI/BGRI, J-Index, CV% y HbA1c estimada.

The risk formulas are defined in mg/dL, so canonical mmol/L values are
converted before use. Every index is ``None`` for empty input; zero would be
a meaningful (and false) clinical value.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Sequence

from glucose_analytics.metrics import average_glucose, standard_deviation
from glucose_analytics.model import FluxResult, GlucoseReading, RiskStats
from glucose_analytics.units import HbA1cUnit, convert_hba1c, mmol_to_mgdl

logger = logging.getLogger(__name__)

_FLUX_GRADES: tuple[tuple[float, str, str], ...] = (
    (20, "A+", "Extremely steady glucose values"),
    (26, "A", "Very steady glucose values"),
    (33, "B", "Reasonably steady glucose values"),
    (40, "C", "Moderate glucose variability"),
    (50, "D", "High glucose variability"),
)


def risk_transform(bg_mgdl: float) -> float:
    """Symmetrized risk-space value: negative for hypo, positive for hyper."""
    return 1.509 * (math.log(bg_mgdl) ** 1.084 - 5.381)


def _risk_indices(
    readings: Sequence[GlucoseReading],
) -> tuple[float, float] | None:
    """Devuelve (LBGI, HBGI) o None si no hay valores válidos."""
    low_total = high_total = 0.0
    valid = 0
    for reading in readings:
        bg = mmol_to_mgdl(reading.value)
        # ln(bg) < 0 below 1 mg/dL, outside the transform domain
        if bg < 1:
            continue
        f = risk_transform(bg)
        if f < 0:
            low_total += 10 * f**2
        elif f > 0:
            high_total += 10 * f**2
        valid += 1
    if valid < len(readings):
        logger.warning(
            "Risk indices: skipped %d values below 1 mg/dL", len(readings) - valid
        )
    if valid == 0:
        return None
    return low_total / valid, high_total / valid


def calculate_j_index(readings: Sequence[GlucoseReading]) -> float | None:
    """J-Index ``0.001 * (mean + sd)^2`` with mean and SD in mg/dL."""
    mean = average_glucose(readings)
    sd = standard_deviation(readings)
    if mean is None or sd is None:
        return None
    return 0.001 * (mmol_to_mgdl(mean) + mmol_to_mgdl(sd)) ** 2


def calculate_risk_stats(readings: Sequence[GlucoseReading]) -> RiskStats:
    """LBGI, HBGI, BGRI and J-Index for a reading set.

    Args:
        readings: Glucose readings (mmol/L).

    Returns:
        ``RiskStats`` with every field ``None`` for empty input.
    """
    if not readings:
        return RiskStats()
    indices = _risk_indices(readings)
    j_index = calculate_j_index(readings)
    if indices is None:
        return RiskStats(j_index=j_index)
    lbgi, hbgi = indices
    return RiskStats(lbgi=lbgi, hbgi=hbgi, bgri=lbgi + hbgi, j_index=j_index)


def coefficient_of_variation(readings: Sequence[GlucoseReading]) -> float | None:
    """CV% ``100 * sd / mean`` (unit-invariant).

    Returns ``None`` for empty input or a zero mean.
    """
    mean = average_glucose(readings)
    sd = standard_deviation(readings)
    if mean is None or sd is None or mean == 0:
        return None
    return 100 * sd / mean


def estimated_hba1c(
    readings: Sequence[GlucoseReading], unit: HbA1cUnit = "%"
) -> float | None:
    """Estimated HbA1c from mean glucose using the ADAG formula.

    ``(mean_mgdl + 46.7) / 28.7`` in %, optionally expressed in mmol/mol.
    """
    mean = average_glucose(readings)
    if mean is None:
        return None
    percent = (mmol_to_mgdl(mean) + 46.7) / 28.7
    return convert_hba1c(percent, unit)


def calculate_flux(readings: Sequence[GlucoseReading]) -> FluxResult | None:
    """Grade glucose stability from CV%: A+ (steadiest) to F."""
    cv = coefficient_of_variation(readings)
    if cv is None:
        return None
    for limit, grade, description in _FLUX_GRADES:
        if cv <= limit:
            return FluxResult(grade=grade, score=cv, description=description)
    return FluxResult(grade="F", score=cv, description="Very high glucose variability")
