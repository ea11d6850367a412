# riskwise/models/records.py
"""
Domain records and in-memory storage.

Records are plain dataclasses; services build them and stores persist them.
"""

import copy
import dataclasses
import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Any, ClassVar
from uuid import uuid4

from riskwise.errors import DuplicateIdentifierError, InvalidRecordError, RecordNotFoundError
from riskwise.models.enums import (
    ControlMeasureType,
    EntityKind,
    Impact,
    Likelihood,
    MonitoringStatus,
    RiskCategory,
    RiskSource,
)
from riskwise.models.store import RecordStore

logger = logging.getLogger(__name__)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class TenantContext:
    """The UPR (risk-owning unit) and reporting period that scope all data."""

    upr_id: str
    period: str

    def __post_init__(self) -> None:
        if not self.upr_id or not self.upr_id.strip():
            raise InvalidRecordError("UPR ID is required")
        if not self.period or not self.period.strip():
            raise InvalidRecordError("Period is required")


@dataclass
class Goal:
    """Top-level organizational objective."""

    KIND: ClassVar[EntityKind] = EntityKind.GOAL
    IMMUTABLE: ClassVar[frozenset[str]] = frozenset(
        {"id", "upr_id", "period", "code", "created_at"}
    )

    id: str
    upr_id: str
    period: str
    code: str
    name: str
    description: str
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime | None = None

    def identifier_scope(self) -> tuple:
        return (self.upr_id, self.period, self.code)

    def sort_key(self) -> tuple:
        return (self.created_at,)


@dataclass
class PotentialRisk:
    """A risk that threatens a Goal."""

    KIND: ClassVar[EntityKind] = EntityKind.POTENTIAL_RISK
    IMMUTABLE: ClassVar[frozenset[str]] = frozenset(
        {"id", "goal_id", "upr_id", "period", "sequence_number", "identified_at"}
    )

    id: str
    goal_id: str
    upr_id: str
    period: str
    sequence_number: int
    description: str
    category: RiskCategory | None = None
    owner: str | None = None
    likelihood: Likelihood | None = None
    impact: Impact | None = None
    identified_at: datetime = field(default_factory=utcnow)
    updated_at: datetime | None = None

    def identifier_scope(self) -> tuple:
        return (self.goal_id, self.sequence_number)

    def sort_key(self) -> tuple:
        return (self.sequence_number,)


@dataclass
class RiskCause:
    """A decomposed cause of a PotentialRisk, carrying its own analysis."""

    KIND: ClassVar[EntityKind] = EntityKind.RISK_CAUSE
    IMMUTABLE: ClassVar[frozenset[str]] = frozenset(
        {"id", "potential_risk_id", "goal_id", "upr_id", "period", "sequence_number", "created_at"}
    )

    id: str
    potential_risk_id: str
    goal_id: str
    upr_id: str
    period: str
    sequence_number: int
    description: str
    source: RiskSource
    key_risk_indicator: str | None = None
    risk_tolerance: str | None = None
    likelihood: Likelihood | None = None
    impact: Impact | None = None
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime | None = None

    def identifier_scope(self) -> tuple:
        return (self.potential_risk_id, self.sequence_number)

    def sort_key(self) -> tuple:
        return (self.sequence_number,)


@dataclass
class ControlMeasure:
    """An action mitigating a RiskCause. Numbered per control type."""

    KIND: ClassVar[EntityKind] = EntityKind.CONTROL_MEASURE
    IMMUTABLE: ClassVar[frozenset[str]] = frozenset(
        {
            "id",
            "risk_cause_id",
            "potential_risk_id",
            "goal_id",
            "upr_id",
            "period",
            "control_type",
            "sequence_number",
            "created_at",
        }
    )

    id: str
    risk_cause_id: str
    potential_risk_id: str
    goal_id: str
    upr_id: str
    period: str
    control_type: ControlMeasureType
    sequence_number: int
    description: str
    key_control_indicator: str | None = None
    target: str | None = None
    responsible_person: str | None = None
    deadline: date | None = None
    budget: float | None = None
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime | None = None

    def identifier_scope(self) -> tuple:
        return (self.risk_cause_id, self.control_type, self.sequence_number)

    def sort_key(self) -> tuple:
        return (list(ControlMeasureType).index(self.control_type), self.sequence_number)


@dataclass
class MonitoringSession:
    """A monitoring window during which exposures are recorded per risk cause."""

    KIND: ClassVar[EntityKind] = EntityKind.MONITORING_SESSION
    IMMUTABLE: ClassVar[frozenset[str]] = frozenset({"id", "upr_id", "period", "created_at"})

    id: str
    upr_id: str
    period: str
    name: str
    start_date: date
    end_date: date
    status: MonitoringStatus = MonitoringStatus.AKTIF
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime | None = None

    def identifier_scope(self) -> tuple:
        return (self.id,)

    def sort_key(self) -> tuple:
        # Latest end date first
        return (-self.end_date.toordinal(), self.created_at)


@dataclass
class MonitoredControl:
    """KCI realization of one control measure within a risk exposure."""

    control_measure_id: str
    realization_kci: str | None = None
    performance_percentage: float | None = None
    supporting_evidence_url: str | None = None
    monitoring_result_notes: str = ""
    follow_up_plan: str = ""


@dataclass
class RiskExposure:
    """
    Exposure of one risk cause observed in one monitoring session.

    At most one per (session, cause) pair; the id is derived from both so a
    repeated recording updates the existing exposure.
    """

    KIND: ClassVar[EntityKind] = EntityKind.RISK_EXPOSURE
    IMMUTABLE: ClassVar[frozenset[str]] = frozenset(
        {
            "id",
            "monitoring_session_id",
            "risk_cause_id",
            "potential_risk_id",
            "goal_id",
            "upr_id",
            "period",
            "recorded_at",
        }
    )

    id: str
    monitoring_session_id: str
    risk_cause_id: str
    potential_risk_id: str
    goal_id: str
    upr_id: str
    period: str
    exposure_value: float | None = None
    exposure_unit: str | None = None
    notes: str | None = None
    monitored_controls: list[MonitoredControl] = field(default_factory=list)
    recorded_at: datetime = field(default_factory=utcnow)
    updated_at: datetime | None = None

    def identifier_scope(self) -> tuple:
        return (self.monitoring_session_id, self.risk_cause_id)

    def sort_key(self) -> tuple:
        return (self.risk_cause_id,)


def exposure_id(session_id: str, cause_id: str) -> str:
    """Deterministic id of the exposure of a cause within a session."""
    return f"{session_id}_{cause_id}"


Record = Goal | PotentialRisk | RiskCause | ControlMeasure | MonitoringSession | RiskExposure

RECORD_TYPES: dict[EntityKind, type] = {
    EntityKind.GOAL: Goal,
    EntityKind.POTENTIAL_RISK: PotentialRisk,
    EntityKind.RISK_CAUSE: RiskCause,
    EntityKind.CONTROL_MEASURE: ControlMeasure,
    EntityKind.MONITORING_SESSION: MonitoringSession,
    EntityKind.RISK_EXPOSURE: RiskExposure,
}


def mutable_fields(kind: EntityKind) -> set[str]:
    """Field names an update may touch for the given kind."""
    record_type = RECORD_TYPES[kind]
    return {f.name for f in dataclasses.fields(record_type)} - record_type.IMMUTABLE


def check_patch(kind: EntityKind, patch: dict[str, Any]) -> None:
    """
    Reject updates to unknown or immutable fields.

    Raises:
        InvalidRecordError: If any key is not a mutable field of the kind
    """
    invalid = set(patch) - mutable_fields(kind)
    if invalid:
        raise InvalidRecordError(f"Cannot update {kind.value} fields: {sorted(invalid)}")


class InMemoryRecordStore(RecordStore):
    """
    Simple in-memory record storage.

    Single-process only. Returns copies so callers can't mutate stored state
    behind the store's back.
    """

    def __init__(self) -> None:
        """Initialize empty store."""
        self._records: dict[EntityKind, dict[str, Any]] = {kind: {} for kind in EntityKind}
        logger.info("Initialized InMemoryRecordStore")

    async def create(self, kind: EntityKind, record: Record) -> Record:
        table = self._records[kind]
        if record.id in table:
            raise ValueError(f"{kind.value} {record.id} already exists")

        scope = record.identifier_scope()
        if any(existing.identifier_scope() == scope for existing in table.values()):
            raise DuplicateIdentifierError(f"{kind.value} identifier {scope} already taken")

        table[record.id] = copy.deepcopy(record)
        logger.info(f"Added {kind.value} {record.id}")
        return copy.deepcopy(record)

    async def get(self, kind: EntityKind, record_id: str) -> Record | None:
        record = self._records[kind].get(record_id)
        return copy.deepcopy(record) if record else None

    async def list_records(
        self, kind: EntityKind, ctx: TenantContext, **filters: Any
    ) -> list[Record]:
        matches = [
            record
            for record in self._records[kind].values()
            if record.upr_id == ctx.upr_id
            and record.period == ctx.period
            and all(getattr(record, name) == value for name, value in filters.items())
        ]
        return [copy.deepcopy(r) for r in sorted(matches, key=lambda r: r.sort_key())]

    async def update(self, kind: EntityKind, record_id: str, **patch: Any) -> Record:
        record = self._records[kind].get(record_id)
        if not record:
            raise RecordNotFoundError(kind.value, record_id)

        check_patch(kind, patch)
        for key, value in patch.items():
            setattr(record, key, copy.deepcopy(value))
        record.updated_at = utcnow()

        logger.info(f"Updated {kind.value} {record_id}: {list(patch.keys())}")
        return copy.deepcopy(record)

    async def delete(self, kind: EntityKind, record_id: str) -> None:
        if self._records[kind].pop(record_id, None) is None:
            raise RecordNotFoundError(kind.value, record_id)
        logger.info(f"Deleted {kind.value} {record_id}")


def generate_record_id() -> str:
    """
    Generate a unique record ID.

    Returns:
        12-character hex string (UUID4 truncated)
    """
    return uuid4().hex[:12]
