# riskwise/services/potential_risk_service.py
"""Potential risk operations."""

import logging
from collections.abc import Iterable
from typing import Any

from riskwise.cascade import CascadeReport, delete_potential_risk_cascade
from riskwise.identifiers import next_sequence
from riskwise.models.enums import EntityKind, Impact, Likelihood, RiskCategory
from riskwise.models.records import PotentialRisk, TenantContext, generate_record_id, utcnow
from riskwise.models.store import RecordStore
from riskwise.suggestions.schemas import PotentialRiskSuggestion, PotentialRiskSuggestions
from riskwise.validation import sanitize_optional_text, sanitize_text

from .base import DEFAULT_MAX_RETRIES, create_with_retry, ensure_complete, parse_choice, require

logger = logging.getLogger(__name__)


def _clean_patch(patch: dict[str, Any]) -> dict[str, Any]:
    cleaned = dict(patch)
    if "description" in cleaned:
        cleaned["description"] = sanitize_text(cleaned["description"])
    if "owner" in cleaned:
        cleaned["owner"] = sanitize_optional_text(cleaned["owner"], max_length=200)
    if "category" in cleaned:
        cleaned["category"] = parse_choice(RiskCategory, cleaned["category"], "category")
    if "likelihood" in cleaned:
        cleaned["likelihood"] = parse_choice(Likelihood, cleaned["likelihood"], "likelihood")
    if "impact" in cleaned:
        cleaned["impact"] = parse_choice(Impact, cleaned["impact"], "impact")
    return cleaned


async def add_potential_risk(
    ctx: TenantContext,
    store: RecordStore,
    goal_id: str,
    description: str,
    category: RiskCategory | str | None = None,
    owner: str | None = None,
    likelihood: Likelihood | str | None = None,
    impact: Impact | str | None = None,
    max_retries: int = DEFAULT_MAX_RETRIES,
) -> PotentialRisk:
    """
    Add a potential risk under a goal with the next sequence number.

    Raises:
        RecordNotFoundError: If the goal isn't in the tenant
        InvalidRecordError: If description is blank or an enum value is unknown
    """
    goal = await require(store, EntityKind.GOAL, goal_id, ctx)
    fields = _clean_patch(
        {
            "description": description,
            "category": category,
            "owner": owner,
            "likelihood": likelihood,
            "impact": impact,
        }
    )
    record_id = generate_record_id()

    async def build() -> PotentialRisk:
        siblings = await store.list_records(EntityKind.POTENTIAL_RISK, ctx, goal_id=goal.id)
        return PotentialRisk(
            id=record_id,
            goal_id=goal.id,
            upr_id=ctx.upr_id,
            period=ctx.period,
            sequence_number=next_sequence(siblings),
            identified_at=utcnow(),
            **fields,
        )

    risk = await create_with_retry(store, EntityKind.POTENTIAL_RISK, build, max_retries)
    logger.info(f"Added potential risk {goal.code}.PR{risk.sequence_number} ({risk.id})")
    return risk


async def get_potential_risk(
    ctx: TenantContext, store: RecordStore, risk_id: str
) -> PotentialRisk:
    return await require(store, EntityKind.POTENTIAL_RISK, risk_id, ctx)


async def list_potential_risks(
    ctx: TenantContext, store: RecordStore, goal_id: str | None = None
) -> list[PotentialRisk]:
    """Potential risks of one goal, or of the whole tenant when goal_id is None."""
    if goal_id is None:
        return await store.list_records(EntityKind.POTENTIAL_RISK, ctx)
    await require(store, EntityKind.GOAL, goal_id, ctx)
    return await store.list_records(EntityKind.POTENTIAL_RISK, ctx, goal_id=goal_id)


async def update_potential_risk(
    ctx: TenantContext, store: RecordStore, risk_id: str, **patch: Any
) -> PotentialRisk:
    """
    Edit description, category, owner, likelihood or impact.

    Raises:
        InvalidRecordError: For blank text, unknown enum values or immutable fields
    """
    await require(store, EntityKind.POTENTIAL_RISK, risk_id, ctx)
    return await store.update(EntityKind.POTENTIAL_RISK, risk_id, **_clean_patch(patch))


async def delete_potential_risk(
    ctx: TenantContext, store: RecordStore, risk_id: str, prefer_batch: bool = True
) -> CascadeReport:
    """Delete a potential risk with its causes and controls."""
    report = await delete_potential_risk_cascade(risk_id, ctx, store, prefer_batch=prefer_batch)
    return ensure_complete(report)


async def accept_potential_risk_suggestions(
    ctx: TenantContext,
    store: RecordStore,
    goal_id: str,
    suggestions: PotentialRiskSuggestions | Iterable[PotentialRiskSuggestion],
    max_retries: int = DEFAULT_MAX_RETRIES,
) -> list[PotentialRisk]:
    """Store accepted brainstormed risks under a goal, numbered in order."""
    if isinstance(suggestions, PotentialRiskSuggestions):
        suggestions = suggestions.potential_risks

    created = []
    for suggestion in suggestions:
        created.append(
            await add_potential_risk(
                ctx,
                store,
                goal_id,
                suggestion.description,
                category=suggestion.category,
                max_retries=max_retries,
            )
        )
    return created
