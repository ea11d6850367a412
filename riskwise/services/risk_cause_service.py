# riskwise/services/risk_cause_service.py
"""Risk cause operations, analysis and the risk-priority view."""

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any

from riskwise.cascade import CascadeReport, delete_risk_cause_cascade
from riskwise.errors import InvalidRecordError
from riskwise.identifiers import goal_code_sort_key, next_sequence, risk_cause_code
from riskwise.models.enums import EntityKind, Impact, Likelihood, RiskSource
from riskwise.models.records import (
    Goal,
    PotentialRisk,
    RiskCause,
    TenantContext,
    generate_record_id,
    utcnow,
)
from riskwise.models.store import RecordStore
from riskwise.scoring import RiskAssessment, classify
from riskwise.suggestions.schemas import RiskCauseSuggestion, RiskCauseSuggestions
from riskwise.validation import sanitize_optional_text, sanitize_text

from .base import DEFAULT_MAX_RETRIES, create_with_retry, ensure_complete, parse_choice, require

logger = logging.getLogger(__name__)


@dataclass
class PrioritizedRiskCause:
    """An analyzed cause with its ancestry and derived assessment."""

    cause: RiskCause
    potential_risk: PotentialRisk
    goal: Goal
    assessment: RiskAssessment

    @property
    def code(self) -> str:
        return risk_cause_code(
            self.goal.code, self.potential_risk.sequence_number, self.cause.sequence_number
        )


def _clean_patch(patch: dict[str, Any]) -> dict[str, Any]:
    cleaned = dict(patch)
    if "description" in cleaned:
        cleaned["description"] = sanitize_text(cleaned["description"])
    if "source" in cleaned:
        cleaned["source"] = parse_choice(RiskSource, cleaned["source"], "source", required=True)
    for field in ("key_risk_indicator", "risk_tolerance"):
        if field in cleaned:
            cleaned[field] = sanitize_optional_text(cleaned[field])
    if "likelihood" in cleaned:
        cleaned["likelihood"] = parse_choice(Likelihood, cleaned["likelihood"], "likelihood")
    if "impact" in cleaned:
        cleaned["impact"] = parse_choice(Impact, cleaned["impact"], "impact")
    return cleaned


async def add_risk_cause(
    ctx: TenantContext,
    store: RecordStore,
    potential_risk_id: str,
    description: str,
    source: RiskSource | str,
    key_risk_indicator: str | None = None,
    risk_tolerance: str | None = None,
    likelihood: Likelihood | str | None = None,
    impact: Impact | str | None = None,
    max_retries: int = DEFAULT_MAX_RETRIES,
) -> RiskCause:
    """
    Add a cause under a potential risk with the next sequence number.

    Raises:
        RecordNotFoundError: If the potential risk isn't in the tenant
        InvalidRecordError: If description is blank, source missing or an enum value unknown
    """
    risk = await require(store, EntityKind.POTENTIAL_RISK, potential_risk_id, ctx)
    fields = _clean_patch(
        {
            "description": description,
            "source": source,
            "key_risk_indicator": key_risk_indicator,
            "risk_tolerance": risk_tolerance,
            "likelihood": likelihood,
            "impact": impact,
        }
    )
    record_id = generate_record_id()

    async def build() -> RiskCause:
        siblings = await store.list_records(
            EntityKind.RISK_CAUSE, ctx, potential_risk_id=risk.id
        )
        return RiskCause(
            id=record_id,
            potential_risk_id=risk.id,
            goal_id=risk.goal_id,
            upr_id=ctx.upr_id,
            period=ctx.period,
            sequence_number=next_sequence(siblings),
            created_at=utcnow(),
            **fields,
        )

    cause = await create_with_retry(store, EntityKind.RISK_CAUSE, build, max_retries)
    logger.info(f"Added risk cause PC{cause.sequence_number} ({cause.id}) to {risk.id}")
    return cause


async def get_risk_cause(ctx: TenantContext, store: RecordStore, cause_id: str) -> RiskCause:
    return await require(store, EntityKind.RISK_CAUSE, cause_id, ctx)


async def list_risk_causes(
    ctx: TenantContext, store: RecordStore, potential_risk_id: str | None = None
) -> list[RiskCause]:
    """Causes of one potential risk, or of the whole tenant when potential_risk_id is None."""
    if potential_risk_id is None:
        return await store.list_records(EntityKind.RISK_CAUSE, ctx)
    await require(store, EntityKind.POTENTIAL_RISK, potential_risk_id, ctx)
    return await store.list_records(
        EntityKind.RISK_CAUSE, ctx, potential_risk_id=potential_risk_id
    )


async def update_risk_cause(
    ctx: TenantContext, store: RecordStore, cause_id: str, **patch: Any
) -> RiskCause:
    await require(store, EntityKind.RISK_CAUSE, cause_id, ctx)
    return await store.update(EntityKind.RISK_CAUSE, cause_id, **_clean_patch(patch))


async def analyze_risk_cause(
    ctx: TenantContext,
    store: RecordStore,
    cause_id: str,
    likelihood: Likelihood | str | None,
    impact: Impact | str | None,
    key_risk_indicator: str | None = None,
    risk_tolerance: str | None = None,
) -> RiskCause:
    """
    Record the likelihood/impact analysis of a cause.

    KRI and tolerance are only changed when given. Passing None for a rating
    clears it, which puts the cause back to N/A.
    """
    patch: dict[str, Any] = {"likelihood": likelihood, "impact": impact}
    if key_risk_indicator is not None:
        patch["key_risk_indicator"] = key_risk_indicator
    if risk_tolerance is not None:
        patch["risk_tolerance"] = risk_tolerance
    cause = await update_risk_cause(ctx, store, cause_id, **patch)
    assessment = classify(cause.likelihood, cause.impact)
    logger.info(f"Analyzed risk cause {cause_id}: {assessment.level.value} ({assessment.score})")
    return cause


async def assess_risk_cause(
    ctx: TenantContext, store: RecordStore, cause_id: str
) -> RiskAssessment:
    """Derive the current score and level of a cause; never stored."""
    cause = await require(store, EntityKind.RISK_CAUSE, cause_id, ctx)
    return classify(cause.likelihood, cause.impact)


async def delete_risk_cause(
    ctx: TenantContext, store: RecordStore, cause_id: str, prefer_batch: bool = True
) -> CascadeReport:
    """Delete a cause with its control measures."""
    report = await delete_risk_cause_cascade(cause_id, ctx, store, prefer_batch=prefer_batch)
    return ensure_complete(report)


async def accept_risk_cause_suggestions(
    ctx: TenantContext,
    store: RecordStore,
    potential_risk_id: str,
    suggestions: RiskCauseSuggestions | Iterable[RiskCauseSuggestion],
    default_source: RiskSource | str | None = None,
    max_retries: int = DEFAULT_MAX_RETRIES,
) -> list[RiskCause]:
    """
    Store accepted brainstormed causes under a potential risk.

    Suggestions whose source the AI left undetermined take default_source.

    Raises:
        InvalidRecordError: If a suggestion has no source and no default is given
            (checked before anything is stored)
    """
    if isinstance(suggestions, RiskCauseSuggestions):
        suggestions = suggestions.suggested_causes
    suggestions = list(suggestions)
    default = parse_choice(RiskSource, default_source, "source")

    if default is None and any(s.source is None for s in suggestions):
        raise InvalidRecordError(
            "Some suggested causes have no source; choose a default source to accept them"
        )

    created = []
    for suggestion in suggestions:
        created.append(
            await add_risk_cause(
                ctx,
                store,
                potential_risk_id,
                suggestion.description,
                source=suggestion.source or default,
                max_retries=max_retries,
            )
        )
    return created


async def list_prioritized_risk_causes(
    ctx: TenantContext, store: RecordStore, descending: bool = True
) -> list[PrioritizedRiskCause]:
    """
    Analyzed causes across the tenant ranked by risk score.

    Causes missing a likelihood or impact are left out. Ties keep code order.
    """
    goals = {goal.id: goal for goal in await store.list_records(EntityKind.GOAL, ctx)}
    risks = {
        risk.id: risk for risk in await store.list_records(EntityKind.POTENTIAL_RISK, ctx)
    }

    ranked = []
    for cause in await store.list_records(EntityKind.RISK_CAUSE, ctx):
        assessment = classify(cause.likelihood, cause.impact)
        risk = risks.get(cause.potential_risk_id)
        goal = goals.get(cause.goal_id)
        if not assessment.is_complete or risk is None or goal is None:
            continue
        ranked.append(PrioritizedRiskCause(cause, risk, goal, assessment))

    ranked.sort(
        key=lambda p: (
            goal_code_sort_key(p.goal.code),
            p.potential_risk.sequence_number,
            p.cause.sequence_number,
        )
    )
    ranked.sort(key=lambda p: p.assessment.score, reverse=descending)
    return ranked
