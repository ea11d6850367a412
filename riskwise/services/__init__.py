# riskwise/services/__init__.py
"""Record services: the operations the CLI and MCP server expose."""

from .control_measure_service import (
    accept_control_measure_suggestions,
    add_control_measure,
    delete_control_measure,
    get_control_measure,
    list_control_measures,
    update_control_measure,
)
from .base import record_code, resolve_tenant
from .goal_service import create_goal, delete_goal, get_goal, list_goals, update_goal
from .monitoring_service import (
    ExposureOverview,
    create_monitoring_session,
    default_session_dates,
    delete_monitoring_session,
    delete_risk_exposure,
    get_monitoring_session,
    get_risk_exposure,
    list_monitoring_sessions,
    list_risk_exposures,
    monitoring_overview,
    record_risk_exposure,
    update_monitoring_session,
)
from .potential_risk_service import (
    accept_potential_risk_suggestions,
    add_potential_risk,
    delete_potential_risk,
    get_potential_risk,
    list_potential_risks,
    update_potential_risk,
)
from .risk_cause_service import (
    PrioritizedRiskCause,
    accept_risk_cause_suggestions,
    add_risk_cause,
    analyze_risk_cause,
    assess_risk_cause,
    delete_risk_cause,
    get_risk_cause,
    list_prioritized_risk_causes,
    list_risk_causes,
    update_risk_cause,
)

__all__ = [
    # Goals
    "create_goal",
    "get_goal",
    "list_goals",
    "update_goal",
    "delete_goal",
    # Potential risks
    "add_potential_risk",
    "get_potential_risk",
    "list_potential_risks",
    "update_potential_risk",
    "delete_potential_risk",
    "accept_potential_risk_suggestions",
    # Risk causes
    "add_risk_cause",
    "get_risk_cause",
    "list_risk_causes",
    "update_risk_cause",
    "analyze_risk_cause",
    "assess_risk_cause",
    "delete_risk_cause",
    "accept_risk_cause_suggestions",
    "list_prioritized_risk_causes",
    "PrioritizedRiskCause",
    # Control measures
    "add_control_measure",
    "get_control_measure",
    "list_control_measures",
    "update_control_measure",
    "delete_control_measure",
    "accept_control_measure_suggestions",
    # Monitoring
    "default_session_dates",
    "create_monitoring_session",
    "get_monitoring_session",
    "list_monitoring_sessions",
    "update_monitoring_session",
    "delete_monitoring_session",
    "record_risk_exposure",
    "get_risk_exposure",
    "list_risk_exposures",
    "delete_risk_exposure",
    "monitoring_overview",
    "ExposureOverview",
    # Display
    "record_code",
    "resolve_tenant",
]
