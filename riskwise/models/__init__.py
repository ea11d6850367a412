# riskwise/models/__init__.py
"""
Data models for riskwise.

Provides the closed enumerations, domain records and record stores.
"""

from riskwise.models.enums import (
    ControlMeasureType,
    EntityKind,
    Impact,
    Likelihood,
    MonitoringFrequency,
    MonitoringStatus,
    RiskCategory,
    RiskLevel,
    RiskSource,
)
from riskwise.models.records import (
    ControlMeasure,
    Goal,
    InMemoryRecordStore,
    MonitoredControl,
    MonitoringSession,
    PotentialRisk,
    Record,
    RiskCause,
    RiskExposure,
    TenantContext,
    exposure_id,
    generate_record_id,
)
from riskwise.models.store import RecordStore

__all__ = [
    # Enumerations
    "Likelihood",
    "Impact",
    "RiskLevel",
    "RiskSource",
    "ControlMeasureType",
    "RiskCategory",
    "EntityKind",
    "MonitoringStatus",
    "MonitoringFrequency",
    # Records
    "TenantContext",
    "Goal",
    "PotentialRisk",
    "RiskCause",
    "ControlMeasure",
    "MonitoringSession",
    "MonitoredControl",
    "RiskExposure",
    "Record",
    "exposure_id",
    "generate_record_id",
    # Storage
    "RecordStore",
    "InMemoryRecordStore",
]
