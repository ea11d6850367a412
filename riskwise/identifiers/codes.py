# riskwise/identifiers/codes.py
"""Hierarchical display codes, e.g. A1.PR2.PC1.Prv.3."""

from riskwise.models.enums import ControlMeasureType


def potential_risk_code(goal_code: str, risk_sequence: int) -> str:
    return f"{goal_code}.PR{risk_sequence}"


def risk_cause_code(goal_code: str, risk_sequence: int, cause_sequence: int) -> str:
    return f"{potential_risk_code(goal_code, risk_sequence)}.PC{cause_sequence}"


def control_measure_code(
    goal_code: str,
    risk_sequence: int,
    cause_sequence: int,
    control_type: ControlMeasureType,
    control_sequence: int,
) -> str:
    cause_code = risk_cause_code(goal_code, risk_sequence, cause_sequence)
    return f"{cause_code}.{control_type.value}.{control_sequence}"
