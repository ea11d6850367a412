# riskwise/services/monitoring_service.py
"""
Monitoring sessions and the risk exposures recorded in them.

A session is a dated monitoring window. While it is active, each risk cause
in the tenant can get one exposure in it: the observed exposure value, notes,
and the KCI realization of the cause's control measures.
"""

import calendar
import logging
import math
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date
from typing import Any

from riskwise.cascade import CascadeReport, delete_monitoring_session_cascade
from riskwise.errors import InvalidRecordError
from riskwise.identifiers import goal_code_sort_key, risk_cause_code
from riskwise.models.enums import EntityKind, MonitoringFrequency, MonitoringStatus
from riskwise.models.records import (
    MonitoredControl,
    MonitoringSession,
    RiskCause,
    RiskExposure,
    TenantContext,
    exposure_id,
    generate_record_id,
    utcnow,
)
from riskwise.models.store import RecordStore
from riskwise.scoring import (
    calculate_performance,
    exposure_exceeds_tolerance,
    is_upper_bound_indicator,
    tolerance_guidance,
)
from riskwise.validation import sanitize_optional_text, sanitize_text

from .base import ensure_complete, parse_choice, require

logger = logging.getLogger(__name__)

MIN_SESSION_NAME_LENGTH = 5


def default_session_dates(
    frequency: MonitoringFrequency | str, today: date | None = None
) -> tuple[date, date]:
    """
    Start and end of the monitoring window containing today.

    Bulanan covers the month, Triwulanan the calendar quarter, Semesteran
    January-June or July-December, Tahunan the calendar year.
    """
    frequency = parse_choice(MonitoringFrequency, frequency, "monitoring frequency", required=True)
    today = today or date.today()

    if frequency is MonitoringFrequency.BULANAN:
        first_month = last_month = today.month
    elif frequency is MonitoringFrequency.TRIWULANAN:
        first_month = (today.month - 1) // 3 * 3 + 1
        last_month = first_month + 2
    elif frequency is MonitoringFrequency.SEMESTERAN:
        first_month = 1 if today.month <= 6 else 7
        last_month = first_month + 5
    else:
        first_month, last_month = 1, 12

    last_day = calendar.monthrange(today.year, last_month)[1]
    return date(today.year, first_month, 1), date(today.year, last_month, last_day)


def _parse_date(value: date | str, field: str) -> date:
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(value)
    except (TypeError, ValueError):
        raise InvalidRecordError(f"Invalid {field} {value!r}; expected YYYY-MM-DD") from None


def _session_name(name: str) -> str:
    name = sanitize_text(name, "Session name", max_length=200)
    if len(name) < MIN_SESSION_NAME_LENGTH:
        raise InvalidRecordError(
            f"Session name must be at least {MIN_SESSION_NAME_LENGTH} characters"
        )
    return name


def _check_window(start_date: date, end_date: date) -> None:
    if end_date < start_date:
        raise InvalidRecordError(
            f"Session end date {end_date.isoformat()} is before its start date "
            f"{start_date.isoformat()}"
        )


async def create_monitoring_session(
    ctx: TenantContext,
    store: RecordStore,
    name: str,
    start_date: date | str | None = None,
    end_date: date | str | None = None,
    frequency: MonitoringFrequency | str = MonitoringFrequency.BULANAN,
    today: date | None = None,
) -> MonitoringSession:
    """
    Open a new active monitoring session.

    Missing dates are filled from the window the frequency puts around today.

    Raises:
        InvalidRecordError: If the name is too short, a date is malformed,
            or the session ends before it starts
    """
    name = _session_name(name)
    default_start, default_end = default_session_dates(frequency, today)
    start = _parse_date(start_date, "start date") if start_date is not None else default_start
    end = _parse_date(end_date, "end date") if end_date is not None else default_end
    _check_window(start, end)

    session = MonitoringSession(
        id=generate_record_id(),
        upr_id=ctx.upr_id,
        period=ctx.period,
        name=name,
        start_date=start,
        end_date=end,
        created_at=utcnow(),
    )
    await store.create(EntityKind.MONITORING_SESSION, session)
    logger.info(
        f"Opened monitoring session {session.id} ({start.isoformat()} to {end.isoformat()}) "
        f"for {ctx.upr_id}/{ctx.period}"
    )
    return session


async def get_monitoring_session(
    ctx: TenantContext, store: RecordStore, session_id: str
) -> MonitoringSession:
    return await require(store, EntityKind.MONITORING_SESSION, session_id, ctx)


async def list_monitoring_sessions(
    ctx: TenantContext, store: RecordStore
) -> list[MonitoringSession]:
    """Sessions in the tenant, latest end date first."""
    return await store.list_records(EntityKind.MONITORING_SESSION, ctx)


async def update_monitoring_session(
    ctx: TenantContext,
    store: RecordStore,
    session_id: str,
    name: str | None = None,
    start_date: date | str | None = None,
    end_date: date | str | None = None,
    status: MonitoringStatus | str | None = None,
) -> MonitoringSession:
    """
    Rename, re-date or change the status of a session.

    Dates are checked against each other after merging with the stored ones.
    """
    session = await require(store, EntityKind.MONITORING_SESSION, session_id, ctx)
    patch: dict[str, Any] = {}
    if name is not None:
        patch["name"] = _session_name(name)
    if start_date is not None:
        patch["start_date"] = _parse_date(start_date, "start date")
    if end_date is not None:
        patch["end_date"] = _parse_date(end_date, "end date")
    if status is not None:
        patch["status"] = parse_choice(MonitoringStatus, status, "session status")
    _check_window(
        patch.get("start_date", session.start_date), patch.get("end_date", session.end_date)
    )
    return await store.update(EntityKind.MONITORING_SESSION, session_id, **patch)


async def delete_monitoring_session(
    ctx: TenantContext, store: RecordStore, session_id: str, prefer_batch: bool = True
) -> CascadeReport:
    """
    Delete a session with every exposure recorded in it.

    Raises:
        RecordNotFoundError: If the session isn't in the tenant
        CascadeIncompleteError: If the cascade stopped part-way
    """
    report = await delete_monitoring_session_cascade(
        session_id, ctx, store, prefer_batch=prefer_batch
    )
    return ensure_complete(report)


def _parse_exposure_value(value: float | int | str | None) -> float | None:
    if value is None:
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise InvalidRecordError(f"Invalid exposure value {value!r}") from None
    if not math.isfinite(number):
        raise InvalidRecordError(f"Exposure value must be a finite number, got {value!r}")
    return number


async def _monitored_controls(
    store: RecordStore,
    cause: RiskCause,
    entries: Iterable[MonitoredControl | dict[str, Any]],
) -> list[MonitoredControl]:
    """
    Validate per-control realizations against the cause's control measures.

    Performance is derived from the control's KCI target when not given.
    """
    monitored: list[MonitoredControl] = []
    seen: set[str] = set()
    for entry in entries:
        if isinstance(entry, dict):
            try:
                entry = MonitoredControl(**entry)
            except TypeError as e:
                raise InvalidRecordError(f"Invalid monitored control: {e}") from None

        control = await store.get(EntityKind.CONTROL_MEASURE, entry.control_measure_id)
        if control is None or control.risk_cause_id != cause.id:
            raise InvalidRecordError(
                f"Control measure {entry.control_measure_id} is not a control of "
                f"risk cause {cause.id}"
            )
        if control.id in seen:
            raise InvalidRecordError(f"Control measure {control.id} is listed twice")
        seen.add(control.id)

        realization = entry.realization_kci
        if realization is not None:
            realization = sanitize_optional_text(str(realization), max_length=500)
        performance = entry.performance_percentage
        if performance is None:
            performance = calculate_performance(
                control.target,
                realization,
                upper_bound=is_upper_bound_indicator(control.key_control_indicator),
            )
        else:
            try:
                performance = float(performance)
            except (TypeError, ValueError):
                raise InvalidRecordError(
                    f"Invalid performance {performance!r} for {control.id}"
                ) from None
            if not math.isfinite(performance) or performance < 0:
                raise InvalidRecordError(f"Invalid performance {performance!r} for {control.id}")

        monitored.append(
            MonitoredControl(
                control_measure_id=control.id,
                realization_kci=realization,
                performance_percentage=performance,
                supporting_evidence_url=sanitize_optional_text(
                    entry.supporting_evidence_url, max_length=2000
                ),
                monitoring_result_notes=sanitize_optional_text(entry.monitoring_result_notes)
                or "",
                follow_up_plan=sanitize_optional_text(entry.follow_up_plan) or "",
            )
        )
    return monitored


async def record_risk_exposure(
    ctx: TenantContext,
    store: RecordStore,
    session_id: str,
    risk_cause_id: str,
    exposure_value: float | str | None = None,
    exposure_unit: str | None = None,
    notes: str | None = None,
    monitored_controls: Iterable[MonitoredControl | dict[str, Any]] | None = None,
) -> RiskExposure:
    """
    Record (or re-record) the exposure of a risk cause in an active session.

    A cause has at most one exposure per session. Recording it again updates
    that exposure: arguments left as None keep their stored values, and the
    original recorded_at timestamp is kept.

    Raises:
        RecordNotFoundError: If the session or cause isn't in the tenant
        InvalidRecordError: If the session isn't active, neither a value nor
            notes would be stored, or a monitored control doesn't belong to
            the cause
    """
    session = await require(store, EntityKind.MONITORING_SESSION, session_id, ctx)
    if session.status is not MonitoringStatus.AKTIF:
        raise InvalidRecordError(
            f"Monitoring session {session.id} is {session.status.value}; "
            "exposures can only be recorded in an active session"
        )
    cause = await require(store, EntityKind.RISK_CAUSE, risk_cause_id, ctx)

    patch: dict[str, Any] = {}
    if exposure_value is not None:
        patch["exposure_value"] = _parse_exposure_value(exposure_value)
    if exposure_unit is not None:
        patch["exposure_unit"] = sanitize_optional_text(exposure_unit, max_length=100)
    if notes is not None:
        patch["notes"] = sanitize_optional_text(notes)
    if monitored_controls is not None:
        patch["monitored_controls"] = await _monitored_controls(store, cause, monitored_controls)

    record_id = exposure_id(session.id, cause.id)
    existing = await store.get(EntityKind.RISK_EXPOSURE, record_id)

    value = patch.get("exposure_value", existing.exposure_value if existing else None)
    kept_notes = patch.get("notes", existing.notes if existing else None)
    if value is None and not kept_notes:
        raise InvalidRecordError("An exposure needs an exposure value or notes")

    if existing is not None:
        exposure = await store.update(EntityKind.RISK_EXPOSURE, record_id, **patch)
        logger.info(f"Updated exposure of {cause.id} in session {session.id}")
        return exposure

    exposure = RiskExposure(
        id=record_id,
        monitoring_session_id=session.id,
        risk_cause_id=cause.id,
        potential_risk_id=cause.potential_risk_id,
        goal_id=cause.goal_id,
        upr_id=ctx.upr_id,
        period=ctx.period,
        recorded_at=utcnow(),
        **patch,
    )
    await store.create(EntityKind.RISK_EXPOSURE, exposure)
    logger.info(f"Recorded exposure of {cause.id} in session {session.id}")
    return exposure


async def get_risk_exposure(
    ctx: TenantContext, store: RecordStore, session_id: str, risk_cause_id: str
) -> RiskExposure:
    return await require(
        store, EntityKind.RISK_EXPOSURE, exposure_id(session_id, risk_cause_id), ctx
    )


async def list_risk_exposures(
    ctx: TenantContext, store: RecordStore, session_id: str
) -> list[RiskExposure]:
    """Exposures recorded in a session, by risk cause id."""
    await require(store, EntityKind.MONITORING_SESSION, session_id, ctx)
    return await store.list_records(
        EntityKind.RISK_EXPOSURE, ctx, monitoring_session_id=session_id
    )


async def delete_risk_exposure(
    ctx: TenantContext, store: RecordStore, session_id: str, risk_cause_id: str
) -> None:
    record_id = exposure_id(session_id, risk_cause_id)
    await require(store, EntityKind.RISK_EXPOSURE, record_id, ctx)
    await store.delete(EntityKind.RISK_EXPOSURE, record_id)
    logger.info(f"Deleted exposure of {risk_cause_id} in session {session_id}")


@dataclass
class ExposureOverview:
    """A risk cause in a monitoring session, with its exposure if recorded."""

    cause: RiskCause
    code: str
    exposure: RiskExposure | None

    @property
    def exceeds_tolerance(self) -> bool | None:
        value = self.exposure.exposure_value if self.exposure else None
        return exposure_exceeds_tolerance(value, self.cause.risk_tolerance)

    @property
    def guidance(self) -> str | None:
        value = self.exposure.exposure_value if self.exposure else None
        return tolerance_guidance(value, self.cause.risk_tolerance)


async def monitoring_overview(
    ctx: TenantContext, store: RecordStore, session_id: str
) -> list[ExposureOverview]:
    """
    Every risk cause in the tenant alongside its exposure in the session.

    Causes come in code order; those without an exposure yet have None.
    """
    exposures = {
        exposure.risk_cause_id: exposure
        for exposure in await list_risk_exposures(ctx, store, session_id)
    }
    goals = {goal.id: goal for goal in await store.list_records(EntityKind.GOAL, ctx)}
    risks = {
        risk.id: risk for risk in await store.list_records(EntityKind.POTENTIAL_RISK, ctx)
    }

    rows = []
    for cause in await store.list_records(EntityKind.RISK_CAUSE, ctx):
        goal = goals.get(cause.goal_id)
        risk = risks.get(cause.potential_risk_id)
        if goal is None or risk is None:
            continue
        code = risk_cause_code(goal.code, risk.sequence_number, cause.sequence_number)
        rows.append(
            (
                (goal_code_sort_key(goal.code), risk.sequence_number, cause.sequence_number),
                ExposureOverview(cause, code, exposures.get(cause.id)),
            )
        )
    rows.sort(key=lambda row: row[0])
    return [overview for _, overview in rows]
