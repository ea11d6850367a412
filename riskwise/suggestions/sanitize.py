# riskwise/suggestions/sanitize.py
"""
Sanitizers for raw AI suggestion output.

Every function here accepts anything (None, a list, a partial dict, garbage)
and returns a typed, structurally complete result. They never raise for
malformed input: invalid entries are dropped or coerced, missing text gets a
documented Indonesian placeholder.
"""

import logging
from typing import Any

from pydantic import BaseModel, ValidationError

from riskwise.suggestions.schemas import (
    ControlMeasureSuggestion,
    ControlMeasureSuggestions,
    KriToleranceSuggestion,
    PotentialRiskSuggestion,
    PotentialRiskSuggestions,
    RiskCauseSuggestion,
    RiskCauseSuggestions,
    RiskParameterSuggestion,
)

logger = logging.getLogger(__name__)


def _list_payload(raw: Any, keys: tuple[str, ...], label: str) -> list | None:
    """
    Find the suggestion array in a raw payload.

    Accepts a bare list or a dict holding the list under one of keys.
    Returns None when neither is present.
    """
    if isinstance(raw, list):
        return raw
    if isinstance(raw, dict):
        for key in keys:
            value = raw.get(key)
            if isinstance(value, list):
                return value
    logger.warning(f"AI output for {label} was not in the expected format")
    return None


def _validate_items(model: type[BaseModel], items: list, label: str) -> list:
    valid = []
    for index, item in enumerate(items):
        try:
            valid.append(model.model_validate(item))
        except ValidationError as e:
            logger.info(f"Dropped {label} entry {index}: {e.error_count()} validation error(s)")
    return valid


def sanitize_risk_cause_suggestions(raw: Any) -> RiskCauseSuggestions:
    """
    Clean brainstormed risk causes.

    Unknown sources become None; entries without a description are skipped.
    """
    items = _list_payload(raw, ("suggestedCauses", "suggested_causes", "causes"), "risk causes")
    if items is None:
        return RiskCauseSuggestions()

    causes = [
        cause
        for cause in _validate_items(RiskCauseSuggestion, items, "risk cause")
        if cause.description
    ]
    return RiskCauseSuggestions(suggested_causes=causes)


def sanitize_potential_risk_suggestions(raw: Any) -> PotentialRiskSuggestions:
    """
    Clean brainstormed potential risks.

    Unknown categories become None. A legacy {"risks": [...]} payload, whose
    entries may be plain strings, is adapted.
    """
    items = _list_payload(
        raw, ("potentialRisks", "potential_risks", "risks"), "potential risks"
    )
    if items is None:
        return PotentialRiskSuggestions()

    risks = [
        risk
        for risk in _validate_items(PotentialRiskSuggestion, items, "potential risk")
        if risk.description
    ]
    return PotentialRiskSuggestions(potential_risks=risks)


def sanitize_risk_parameters(raw: Any) -> RiskParameterSuggestion:
    """
    Clean a likelihood/impact suggestion.

    Levels survive only when they are exact members of their scale. A missing
    payload yields None levels with "could not suggest" justifications.
    """
    if not isinstance(raw, dict):
        logger.warning("AI output for risk parameter suggestion was not in the expected format")
        return RiskParameterSuggestion.unavailable()

    try:
        return RiskParameterSuggestion.model_validate(raw)
    except ValidationError as e:
        logger.warning(f"AI risk parameter suggestion rejected: {e.error_count()} error(s)")
        return RiskParameterSuggestion.unavailable()


def sanitize_control_measure_suggestions(
    raw: Any, limit: int | None = None
) -> ControlMeasureSuggestions:
    """
    Clean suggested control measures.

    Entries with a control type outside Prv/RM/Crr, or with an empty
    description or justification, are dropped entirely.

    Args:
        raw: Raw provider output
        limit: Keep at most this many valid suggestions
    """
    items = _list_payload(
        raw, ("suggestions", "suggestedControls", "controlMeasures"), "control measures"
    )
    if items is None:
        return ControlMeasureSuggestions()

    suggestions = _validate_items(ControlMeasureSuggestion, items, "control measure")
    if limit is not None:
        suggestions = suggestions[:limit]
    return ControlMeasureSuggestions(suggestions=suggestions)


def sanitize_kri_tolerance(raw: Any) -> KriToleranceSuggestion:
    """
    Clean a KRI/tolerance suggestion.

    A missing payload yields the "AI could not suggest" placeholders; missing
    individual fields get their own placeholders.
    """
    if not isinstance(raw, dict):
        logger.warning("AI output for KRI/tolerance suggestion was null or not an object")
        return KriToleranceSuggestion.unavailable()

    try:
        return KriToleranceSuggestion.model_validate(raw)
    except ValidationError as e:
        logger.warning(f"AI KRI/tolerance suggestion rejected: {e.error_count()} error(s)")
        return KriToleranceSuggestion.unavailable()
