# riskwise/suggestions/__init__.py
"""AI suggestions: provider, output schemas and sanitizers."""

from .provider import SuggestionProvider
from .sanitize import (
    sanitize_control_measure_suggestions,
    sanitize_kri_tolerance,
    sanitize_potential_risk_suggestions,
    sanitize_risk_cause_suggestions,
    sanitize_risk_parameters,
)
from .schemas import (
    ControlMeasureSuggestion,
    ControlMeasureSuggestions,
    KriToleranceSuggestion,
    PotentialRiskSuggestion,
    PotentialRiskSuggestions,
    RiskCauseSuggestion,
    RiskCauseSuggestions,
    RiskParameterSuggestion,
)

__all__ = [
    "SuggestionProvider",
    # Sanitizers
    "sanitize_potential_risk_suggestions",
    "sanitize_risk_cause_suggestions",
    "sanitize_risk_parameters",
    "sanitize_control_measure_suggestions",
    "sanitize_kri_tolerance",
    # Schemas
    "PotentialRiskSuggestion",
    "PotentialRiskSuggestions",
    "RiskCauseSuggestion",
    "RiskCauseSuggestions",
    "RiskParameterSuggestion",
    "ControlMeasureSuggestion",
    "ControlMeasureSuggestions",
    "KriToleranceSuggestion",
]
