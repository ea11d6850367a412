# riskwise/scoring/monitoring.py
"""
Monitoring arithmetic: control performance and exposure vs. tolerance.

KCI targets, realizations and risk tolerances are free text ("95%",
"Maksimal 3 hari", "Rp 10.000.000"); only their leading number counts.
"""

import math
import re

EXPOSURE_AT_OR_ABOVE_TOLERANCE = (
    "PERHATIAN: Paparan Risiko (Risk Exposure) ≥ Toleransi Risiko. "
    "Pertimbangkan Tindakan Mitigasi (RM) dan perbaiki/susun Tindakan Korektif (Crr)."
)
EXPOSURE_BELOW_TOLERANCE = (
    "INFO: Paparan Risiko < Toleransi Risiko. "
    "Lanjutkan pengendalian sesuai rencana. Perbaiki jika perlu."
)

# KCI wording that marks the target as a ceiling (smaller realization is better)
_UPPER_BOUND_MARKERS = ("maksimal", "maks")

_NUMBER_PREFIX = re.compile(r"[-+]?(?:\d+\.?\d*|\.\d+)")


def leading_number(text: object, decimal_comma: bool = True) -> float | None:
    """
    First number in free text, after dropping everything but digits and signs.

    With decimal_comma the first comma reads as a decimal point, so "2,5
    hari" gives 2.5. Returns None when no number is left.
    """
    if text is None:
        return None
    kept = re.sub(r"[^0-9.,-]+" if decimal_comma else r"[^0-9.-]+", "", str(text))
    if decimal_comma:
        kept = kept.replace(",", ".", 1)
    match = _NUMBER_PREFIX.match(kept)
    return float(match.group()) if match else None


def is_upper_bound_indicator(key_control_indicator: str | None) -> bool:
    """True when the KCI reads as a maximum, e.g. "Maksimal 2 temuan"."""
    if not key_control_indicator:
        return False
    lowered = key_control_indicator.lower()
    return any(marker in lowered for marker in _UPPER_BOUND_MARKERS)


def calculate_performance(
    target: object, realization: object, upper_bound: bool = False
) -> int | None:
    """
    Control performance as a whole percentage, never below zero.

    Args:
        target: KCI target
        realization: KCI realization for the monitoring session
        upper_bound: Target is a ceiling; performance drops as realization
            rises above it: (2 * target - realization) / target

    Returns:
        Rounded percentage, or None when either value has no number or the
        target is zero
    """
    numeric_target = leading_number(target)
    numeric_realization = leading_number(realization)
    if numeric_target is None or numeric_realization is None or numeric_target == 0:
        return None

    if upper_bound:
        ratio = (2 * numeric_target - numeric_realization) / numeric_target
    else:
        ratio = numeric_realization / numeric_target
    # Half rounds up
    return max(0, math.floor(ratio * 100 + 0.5))


def exposure_exceeds_tolerance(
    exposure_value: float | None, risk_tolerance: str | None
) -> bool | None:
    """
    Compare a recorded exposure against the cause's risk tolerance.

    Returns None when there is no exposure value or the tolerance has no number.
    """
    if exposure_value is None:
        return None
    tolerance = leading_number(risk_tolerance, decimal_comma=False)
    if tolerance is None:
        return None
    return exposure_value >= tolerance


def tolerance_guidance(exposure_value: float | None, risk_tolerance: str | None) -> str | None:
    """Advice text for an exposure measured against its tolerance."""
    exceeded = exposure_exceeds_tolerance(exposure_value, risk_tolerance)
    if exceeded is None:
        return None
    return EXPOSURE_AT_OR_ABOVE_TOLERANCE if exceeded else EXPOSURE_BELOW_TOLERANCE
