# riskwise/scoring/__init__.py
"""Rating scales and risk classification."""

from .classifier import (
    NOT_ASSESSED,
    RISK_BANDS,
    RiskAssessment,
    band_for_score,
    classify,
    recommended_control_types,
    risk_matrix,
)
from .monitoring import (
    calculate_performance,
    exposure_exceeds_tolerance,
    is_upper_bound_indicator,
    tolerance_guidance,
)
from .scale import IMPACT_SCALE, LIKELIHOOD_SCALE, RatingScale

__all__ = [
    "RatingScale",
    "LIKELIHOOD_SCALE",
    "IMPACT_SCALE",
    "RiskAssessment",
    "NOT_ASSESSED",
    "RISK_BANDS",
    "band_for_score",
    "classify",
    "risk_matrix",
    "recommended_control_types",
    "calculate_performance",
    "is_upper_bound_indicator",
    "exposure_exceeds_tolerance",
    "tolerance_guidance",
]
