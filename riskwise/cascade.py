# riskwise/cascade.py
"""
Cascading deletion across the goal -> risk -> cause -> control hierarchy.

Risk exposures hang off both a risk cause and a monitoring session and go
with whichever of the two is deleted.

Deletion order is strictly child-before-parent. Backends that support batched
deletes run the whole plan in one transaction; otherwise the plan runs
sequentially and stops at the first failure, reporting what was already
removed. Nothing is retried or rolled back in sequential mode.
"""

import logging
from dataclasses import dataclass, field

from riskwise.errors import RecordNotFoundError
from riskwise.models.enums import EntityKind
from riskwise.models.records import TenantContext
from riskwise.models.store import RecordStore

logger = logging.getLogger(__name__)

DeletionStep = tuple[EntityKind, str]


@dataclass
class CascadeReport:
    """Outcome of a cascading delete."""

    root_kind: EntityKind
    root_id: str
    planned: list[DeletionStep] = field(default_factory=list)
    deleted: list[DeletionStep] = field(default_factory=list)
    failed_step: str | None = None
    error: str | None = None
    transactional: bool = False

    @property
    def completed(self) -> bool:
        return self.failed_step is None

    @property
    def remaining(self) -> list[DeletionStep]:
        """Planned deletions that did not happen."""
        done = set(self.deleted)
        return [step for step in self.planned if step not in done]


async def _require_root(
    store: RecordStore, kind: EntityKind, record_id: str, ctx: TenantContext
) -> None:
    record = await store.get(kind, record_id)
    if record is None or record.upr_id != ctx.upr_id or record.period != ctx.period:
        raise RecordNotFoundError(kind.value, record_id)


async def _plan_risk_cause(
    store: RecordStore, cause_id: str, ctx: TenantContext
) -> list[DeletionStep]:
    controls = await store.list_records(
        EntityKind.CONTROL_MEASURE, ctx, risk_cause_id=cause_id
    )
    steps = [(EntityKind.CONTROL_MEASURE, control.id) for control in controls]
    exposures = await store.list_records(EntityKind.RISK_EXPOSURE, ctx, risk_cause_id=cause_id)
    steps.extend((EntityKind.RISK_EXPOSURE, exposure.id) for exposure in exposures)
    steps.append((EntityKind.RISK_CAUSE, cause_id))
    return steps


async def _plan_potential_risk(
    store: RecordStore, risk_id: str, ctx: TenantContext
) -> list[DeletionStep]:
    steps: list[DeletionStep] = []
    causes = await store.list_records(EntityKind.RISK_CAUSE, ctx, potential_risk_id=risk_id)
    for cause in causes:
        steps.extend(await _plan_risk_cause(store, cause.id, ctx))
    steps.append((EntityKind.POTENTIAL_RISK, risk_id))
    return steps


async def _plan_goal(store: RecordStore, goal_id: str, ctx: TenantContext) -> list[DeletionStep]:
    steps: list[DeletionStep] = []
    risks = await store.list_records(EntityKind.POTENTIAL_RISK, ctx, goal_id=goal_id)
    for risk in risks:
        steps.extend(await _plan_potential_risk(store, risk.id, ctx))
    steps.append((EntityKind.GOAL, goal_id))
    return steps


async def _plan_monitoring_session(
    store: RecordStore, session_id: str, ctx: TenantContext
) -> list[DeletionStep]:
    exposures = await store.list_records(
        EntityKind.RISK_EXPOSURE, ctx, monitoring_session_id=session_id
    )
    steps = [(EntityKind.RISK_EXPOSURE, exposure.id) for exposure in exposures]
    steps.append((EntityKind.MONITORING_SESSION, session_id))
    return steps


_PLANNERS = {
    EntityKind.GOAL: _plan_goal,
    EntityKind.POTENTIAL_RISK: _plan_potential_risk,
    EntityKind.RISK_CAUSE: _plan_risk_cause,
    EntityKind.MONITORING_SESSION: _plan_monitoring_session,
}


async def plan_cascade(
    kind: EntityKind, record_id: str, ctx: TenantContext, store: RecordStore
) -> list[DeletionStep]:
    """
    List every deletion a cascade from the given root would perform, in order.

    Raises:
        RecordNotFoundError: If the root doesn't exist in the tenant
    """
    await _require_root(store, kind, record_id, ctx)
    return await _PLANNERS[kind](store, record_id, ctx)


async def _run_cascade(
    kind: EntityKind,
    record_id: str,
    ctx: TenantContext,
    store: RecordStore,
    prefer_batch: bool,
) -> CascadeReport:
    report = CascadeReport(root_kind=kind, root_id=record_id)

    await _require_root(store, kind, record_id, ctx)
    try:
        report.planned = await _PLANNERS[kind](store, record_id, ctx)
    except Exception as e:
        logger.error(f"Cascade of {kind.value} {record_id} failed while loading descendants: {e}")
        report.failed_step = f"load descendants of {kind.value} {record_id}"
        report.error = str(e)
        return report

    logger.info(f"Cascade of {kind.value} {record_id}: {len(report.planned)} deletion(s) planned")

    if prefer_batch and store.supports_batch_delete:
        report.transactional = True
        try:
            await store.delete_batch(report.planned)
        except Exception as e:
            logger.error(f"Batched cascade of {kind.value} {record_id} rolled back: {e}")
            report.failed_step = f"batch delete of {len(report.planned)} record(s)"
            report.error = str(e)
            return report
        report.deleted = list(report.planned)
        return report

    for step_kind, step_id in report.planned:
        try:
            await store.delete(step_kind, step_id)
        except Exception as e:
            logger.error(
                f"Cascade of {kind.value} {record_id} stopped at {step_kind.value} {step_id} "
                f"after {len(report.deleted)} deletion(s): {e}"
            )
            report.failed_step = f"delete {step_kind.value} {step_id}"
            report.error = str(e)
            return report
        report.deleted.append((step_kind, step_id))
        logger.debug(f"Cascade deleted {step_kind.value} {step_id}")

    return report


async def delete_goal_cascade(
    goal_id: str, ctx: TenantContext, store: RecordStore, prefer_batch: bool = True
) -> CascadeReport:
    """
    Delete a goal with all of its potential risks, causes and controls.

    Args:
        goal_id: Goal to delete
        ctx: Tenant the goal belongs to
        store: Record store
        prefer_batch: Use one transaction when the store supports it

    Returns:
        CascadeReport; check report.completed

    Raises:
        RecordNotFoundError: If the goal doesn't exist in the tenant
    """
    return await _run_cascade(EntityKind.GOAL, goal_id, ctx, store, prefer_batch)


async def delete_potential_risk_cascade(
    risk_id: str, ctx: TenantContext, store: RecordStore, prefer_batch: bool = True
) -> CascadeReport:
    """Delete a potential risk with its causes and their controls."""
    return await _run_cascade(EntityKind.POTENTIAL_RISK, risk_id, ctx, store, prefer_batch)


async def delete_risk_cause_cascade(
    cause_id: str, ctx: TenantContext, store: RecordStore, prefer_batch: bool = True
) -> CascadeReport:
    """Delete a risk cause with its controls and recorded exposures."""
    return await _run_cascade(EntityKind.RISK_CAUSE, cause_id, ctx, store, prefer_batch)


async def delete_monitoring_session_cascade(
    session_id: str, ctx: TenantContext, store: RecordStore, prefer_batch: bool = True
) -> CascadeReport:
    """Delete a monitoring session with the exposures recorded in it."""
    return await _run_cascade(EntityKind.MONITORING_SESSION, session_id, ctx, store, prefer_batch)
