# riskwise/identifiers/__init__.py
"""Goal codes, child sequence numbers and display codes."""

from .codes import control_measure_code, potential_risk_code, risk_cause_code
from .sequencer import (
    FALLBACK_PREFIX,
    assign_goal_code,
    goal_code_prefix,
    goal_code_sort_key,
    next_sequence,
)

__all__ = [
    "assign_goal_code",
    "goal_code_prefix",
    "goal_code_sort_key",
    "next_sequence",
    "FALLBACK_PREFIX",
    "potential_risk_code",
    "risk_cause_code",
    "control_measure_code",
]
