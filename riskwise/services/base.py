# riskwise/services/base.py
"""
Helpers shared by the record services.

Every service function takes an explicit TenantContext and RecordStore;
there is no ambient tenant.
"""

import logging
from collections.abc import Awaitable, Callable
from enum import Enum
from typing import Any

from riskwise.cascade import CascadeReport
from riskwise.config.schema import TenantConfig
from riskwise.errors import (
    CascadeIncompleteError,
    DuplicateIdentifierError,
    InvalidRecordError,
    RecordNotFoundError,
)
from riskwise.identifiers import control_measure_code, potential_risk_code, risk_cause_code
from riskwise.models.enums import EntityKind, enum_values, member_or_none
from riskwise.models.records import Record, TenantContext
from riskwise.models.store import RecordStore

logger = logging.getLogger(__name__)

DEFAULT_MAX_RETRIES = 3


async def require(
    store: RecordStore, kind: EntityKind, record_id: str, ctx: TenantContext
) -> Record:
    """
    Load a record that must exist in the caller's tenant.

    Raises:
        RecordNotFoundError: If missing or owned by another tenant
    """
    record = await store.get(kind, record_id)
    if record is None or record.upr_id != ctx.upr_id or record.period != ctx.period:
        raise RecordNotFoundError(kind.value, record_id)
    return record


def parse_choice(enum_cls: type[Enum], value: Any, field: str, required: bool = False) -> Any:
    """
    Resolve user input to a member of a closed enumeration.

    Raises:
        InvalidRecordError: If value is outside the enumeration (or None when required)
    """
    if value is None and not required:
        return None
    member = member_or_none(enum_cls, value)
    if member is None:
        raise InvalidRecordError(
            f"Invalid {field} {value!r}; expected one of: {', '.join(enum_values(enum_cls))}"
        )
    return member


async def create_with_retry(
    store: RecordStore,
    kind: EntityKind,
    build: Callable[[], Awaitable[Record]],
    max_retries: int = DEFAULT_MAX_RETRIES,
) -> Record:
    """
    Create a record whose identifier is derived from a live sibling scan.

    build() re-scans and returns a fresh record on every attempt. When the
    store rejects the identifier because a concurrent writer took it, the
    scan is repeated, up to max_retries extra attempts.

    Raises:
        DuplicateIdentifierError: If every attempt collided
    """
    attempt = 0
    while True:
        record = await build()
        try:
            return await store.create(kind, record)
        except DuplicateIdentifierError as e:
            attempt += 1
            if attempt > max_retries:
                logger.error(f"Giving up on {kind.value} after {attempt} attempt(s): {e}")
                raise
            logger.warning(f"Identifier collision on {kind.value} (attempt {attempt}): {e}")


def ensure_complete(report: CascadeReport) -> CascadeReport:
    """
    Raise when a cascade stopped part-way.

    Raises:
        CascadeIncompleteError: Carrying the report
    """
    if not report.completed:
        raise CascadeIncompleteError(report)
    return report


async def record_code(ctx: TenantContext, store: RecordStore, record: Record) -> str:
    """
    Hierarchical display code of a record, e.g. "A1.PR2.PC1.Prv.3".

    Codes are derived from the ancestors' codes and sequence numbers on
    every call and never stored.
    """
    if record.KIND is EntityKind.GOAL:
        return record.code
    goal = await require(store, EntityKind.GOAL, record.goal_id, ctx)
    if record.KIND is EntityKind.POTENTIAL_RISK:
        return potential_risk_code(goal.code, record.sequence_number)

    risk = await require(store, EntityKind.POTENTIAL_RISK, record.potential_risk_id, ctx)
    if record.KIND is EntityKind.RISK_CAUSE:
        return risk_cause_code(goal.code, risk.sequence_number, record.sequence_number)

    cause = await require(store, EntityKind.RISK_CAUSE, record.risk_cause_id, ctx)
    return control_measure_code(
        goal.code,
        risk.sequence_number,
        cause.sequence_number,
        record.control_type,
        record.sequence_number,
    )


def resolve_tenant(
    upr_id: str | None, period: str | None, defaults: TenantConfig | None = None
) -> TenantContext:
    """
    Build the tenant for a request, falling back to configured defaults.

    Raises:
        InvalidRecordError: If neither the request nor the config names one
    """
    defaults = defaults or TenantConfig()
    return TenantContext(upr_id=upr_id or defaults.upr_id or "", period=period or defaults.period or "")
