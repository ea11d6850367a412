# riskwise/services/control_measure_service.py
"""Control measure operations."""

import logging
import math
from collections.abc import Iterable
from datetime import date
from typing import Any

from riskwise.errors import InvalidRecordError
from riskwise.identifiers import next_sequence
from riskwise.models.enums import ControlMeasureType, EntityKind
from riskwise.models.records import ControlMeasure, TenantContext, generate_record_id, utcnow
from riskwise.models.store import RecordStore
from riskwise.suggestions.schemas import ControlMeasureSuggestion, ControlMeasureSuggestions
from riskwise.validation import sanitize_optional_text, sanitize_text

from .base import DEFAULT_MAX_RETRIES, create_with_retry, parse_choice, require

logger = logging.getLogger(__name__)


def _parse_deadline(value: date | str | None) -> date | None:
    if value is None or isinstance(value, date):
        return value
    try:
        return date.fromisoformat(value)
    except (TypeError, ValueError):
        raise InvalidRecordError(f"Invalid deadline {value!r}; expected YYYY-MM-DD") from None


def _parse_budget(value: float | int | str | None) -> float | None:
    if value is None:
        return None
    try:
        budget = float(value)
    except (TypeError, ValueError):
        raise InvalidRecordError(f"Invalid budget {value!r}") from None
    if not math.isfinite(budget):
        raise InvalidRecordError(f"Budget must be a finite amount, got {value!r}")
    if budget < 0:
        raise InvalidRecordError("Budget cannot be negative")
    return budget


def _clean_patch(patch: dict[str, Any]) -> dict[str, Any]:
    cleaned = dict(patch)
    if "description" in cleaned:
        cleaned["description"] = sanitize_text(cleaned["description"])
    for field in ("key_control_indicator", "target", "responsible_person"):
        if field in cleaned:
            cleaned[field] = sanitize_optional_text(cleaned[field])
    if "deadline" in cleaned:
        cleaned["deadline"] = _parse_deadline(cleaned["deadline"])
    if "budget" in cleaned:
        cleaned["budget"] = _parse_budget(cleaned["budget"])
    return cleaned


async def add_control_measure(
    ctx: TenantContext,
    store: RecordStore,
    risk_cause_id: str,
    control_type: ControlMeasureType | str,
    description: str,
    key_control_indicator: str | None = None,
    target: str | None = None,
    responsible_person: str | None = None,
    deadline: date | str | None = None,
    budget: float | None = None,
    max_retries: int = DEFAULT_MAX_RETRIES,
) -> ControlMeasure:
    """
    Add a control measure under a risk cause.

    Sequence numbers count separately per control type, so the first Prv and
    the first RM under the same cause are both number 1.

    Raises:
        RecordNotFoundError: If the cause isn't in the tenant
        InvalidRecordError: If the type is unknown or a field is invalid
    """
    cause = await require(store, EntityKind.RISK_CAUSE, risk_cause_id, ctx)
    control_type = parse_choice(ControlMeasureType, control_type, "control type", required=True)
    fields = _clean_patch(
        {
            "description": description,
            "key_control_indicator": key_control_indicator,
            "target": target,
            "responsible_person": responsible_person,
            "deadline": deadline,
            "budget": budget,
        }
    )
    record_id = generate_record_id()

    async def build() -> ControlMeasure:
        siblings = await store.list_records(
            EntityKind.CONTROL_MEASURE, ctx, risk_cause_id=cause.id
        )
        return ControlMeasure(
            id=record_id,
            risk_cause_id=cause.id,
            potential_risk_id=cause.potential_risk_id,
            goal_id=cause.goal_id,
            upr_id=ctx.upr_id,
            period=ctx.period,
            control_type=control_type,
            sequence_number=next_sequence(siblings, control_type),
            created_at=utcnow(),
            **fields,
        )

    control = await create_with_retry(store, EntityKind.CONTROL_MEASURE, build, max_retries)
    logger.info(
        f"Added control measure {control_type.value}.{control.sequence_number} "
        f"({control.id}) to {cause.id}"
    )
    return control


async def get_control_measure(
    ctx: TenantContext, store: RecordStore, control_id: str
) -> ControlMeasure:
    return await require(store, EntityKind.CONTROL_MEASURE, control_id, ctx)


async def list_control_measures(
    ctx: TenantContext, store: RecordStore, risk_cause_id: str | None = None
) -> list[ControlMeasure]:
    """Controls of one cause (Prv, RM, Crr, each by number), or the whole tenant."""
    if risk_cause_id is None:
        return await store.list_records(EntityKind.CONTROL_MEASURE, ctx)
    await require(store, EntityKind.RISK_CAUSE, risk_cause_id, ctx)
    return await store.list_records(EntityKind.CONTROL_MEASURE, ctx, risk_cause_id=risk_cause_id)


async def update_control_measure(
    ctx: TenantContext, store: RecordStore, control_id: str, **patch: Any
) -> ControlMeasure:
    """
    Edit a control measure.

    The control type is fixed at creation since the sequence number is
    counted within it.
    """
    await require(store, EntityKind.CONTROL_MEASURE, control_id, ctx)
    return await store.update(EntityKind.CONTROL_MEASURE, control_id, **_clean_patch(patch))


async def delete_control_measure(ctx: TenantContext, store: RecordStore, control_id: str) -> None:
    """Delete one control measure; it has no dependents."""
    await require(store, EntityKind.CONTROL_MEASURE, control_id, ctx)
    await store.delete(EntityKind.CONTROL_MEASURE, control_id)


async def accept_control_measure_suggestions(
    ctx: TenantContext,
    store: RecordStore,
    risk_cause_id: str,
    suggestions: ControlMeasureSuggestions | Iterable[ControlMeasureSuggestion],
    max_retries: int = DEFAULT_MAX_RETRIES,
) -> list[ControlMeasure]:
    """Store accepted control suggestions under a cause, numbered per type."""
    if isinstance(suggestions, ControlMeasureSuggestions):
        suggestions = suggestions.suggestions

    created = []
    for suggestion in suggestions:
        created.append(
            await add_control_measure(
                ctx,
                store,
                risk_cause_id,
                suggestion.suggested_control_type,
                suggestion.description,
                max_retries=max_retries,
            )
        )
    return created
