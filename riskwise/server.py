# riskwise/server.py
"""
FastMCP server instance with tool registration.

CRITICAL: configure_logging() is called first to prevent stdout pollution.
All logging goes to stderr as JSON.

Every tool takes the tenant (upr_id, period) explicitly; when omitted, the
defaults from the config file's tenant section apply.
"""

# Configure logging FIRST before any other imports
from riskwise.logging_config import configure_logging, level_for_verbosity

configure_logging()

# Now safe to import everything else
import logging
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from fastmcp import FastMCP
from fastmcp.exceptions import ToolError

from riskwise import services
from riskwise.config.loader import load_config
from riskwise.errors import RiskwiseError
from riskwise.llm.factory import create_llm_client
from riskwise.models.enums import EntityKind
from riskwise.models.factory import open_store
from riskwise.models.records import TenantContext, exposure_id
from riskwise.models.responses import (
    AssessmentResponse,
    CascadeResponse,
    exposure_overview_payload,
    record_payload,
)
from riskwise.models.store import RecordStore
from riskwise.scoring import classify, recommended_control_types, risk_matrix
from riskwise.suggestions import (
    SuggestionProvider,
    sanitize_control_measure_suggestions,
    sanitize_potential_risk_suggestions,
    sanitize_risk_cause_suggestions,
)
from riskwise.validation import sanitize_record_id

logger = logging.getLogger(__name__)

# Create FastMCP instance
mcp = FastMCP("riskwise")

# Load configuration
_config = load_config()
configure_logging(level_for_verbosity(_config.output.verbosity))
logger.info(f"Loaded configuration: provider={_config.provider}, storage={_config.storage.backend}")

# Initialized by __main__.py
_store: RecordStore | None = None
_provider: SuggestionProvider | None = None


async def get_store() -> RecordStore:
    """
    Get the record store opened at startup.

    Raises:
        RuntimeError: If the server was not initialized (should never happen)
    """
    if _store is None:
        raise RuntimeError("Server not initialized. Call initialize_server() first.")
    return _store


def get_provider() -> SuggestionProvider:
    if _provider is None:
        raise RuntimeError("Server not initialized. Call initialize_server() first.")
    return _provider


async def initialize_server(config=None) -> None:
    """
    Open the record store and build the suggestion provider.

    Must be called before any tool calls. Called by __main__.py on startup.

    Args:
        config: RiskwiseConfig instance (defaults to module-level _config if None)
    """
    global _store, _provider

    actual_config = config or _config
    _store = await open_store(actual_config)
    _provider = SuggestionProvider(create_llm_client(actual_config), actual_config.suggestions)
    logger.info("Server initialized: record store + suggestion provider ready")


async def shutdown_server() -> None:
    global _store
    if _store is not None:
        await _store.close()
        _store = None


@contextmanager
def _domain_errors() -> Iterator[None]:
    """Report domain failures to the MCP client as tool errors."""
    try:
        yield
    except RiskwiseError as e:
        raise ToolError(str(e)) from e


def _tenant(upr_id: str | None, period: str | None) -> TenantContext:
    return services.resolve_tenant(upr_id, period, _config.tenant)


def _patch(**fields: Any) -> dict[str, Any]:
    return {key: value for key, value in fields.items() if value is not None}


async def _payload(ctx: TenantContext, store: RecordStore, record) -> dict:
    return record_payload(record, await services.record_code(ctx, store, record))


# Goals


@mcp.tool()
async def create_goal(
    name: str, description: str, upr_id: str | None = None, period: str | None = None
) -> dict:
    """Create a goal. Its code (e.g. A1) is derived from the first letter of the name."""
    with _domain_errors():
        ctx = _tenant(upr_id, period)
        store = await get_store()
        goal = await services.create_goal(
            ctx, store, name, description, max_retries=_config.identifiers.max_retries
        )
        return record_payload(goal)


@mcp.tool()
async def list_goals(upr_id: str | None = None, period: str | None = None) -> dict:
    """List the goals of a UPR and period."""
    with _domain_errors():
        ctx = _tenant(upr_id, period)
        goals = await services.list_goals(ctx, await get_store())
        return {"goals": [record_payload(goal) for goal in goals], "total": len(goals)}


@mcp.tool()
async def update_goal(
    goal_id: str,
    name: str | None = None,
    description: str | None = None,
    upr_id: str | None = None,
    period: str | None = None,
) -> dict:
    """Edit a goal's name or description. The code never changes."""
    with _domain_errors():
        ctx = _tenant(upr_id, period)
        goal = await services.update_goal(
            ctx, await get_store(), sanitize_record_id(goal_id), name=name, description=description
        )
        return record_payload(goal)


@mcp.tool()
async def delete_goal(goal_id: str, upr_id: str | None = None, period: str | None = None) -> dict:
    """Delete a goal with all its potential risks, causes and control measures."""
    with _domain_errors():
        ctx = _tenant(upr_id, period)
        report = await services.delete_goal(
            ctx,
            await get_store(),
            sanitize_record_id(goal_id),
            prefer_batch=_config.cascade.prefer_batch,
        )
        return CascadeResponse.from_report(report).model_dump()


# Potential risks


@mcp.tool()
async def add_potential_risk(
    goal_id: str,
    description: str,
    category: str | None = None,
    owner: str | None = None,
    likelihood: str | None = None,
    impact: str | None = None,
    upr_id: str | None = None,
    period: str | None = None,
) -> dict:
    """Add a potential risk under a goal. It is numbered PR1, PR2, ... within the goal."""
    with _domain_errors():
        ctx = _tenant(upr_id, period)
        store = await get_store()
        risk = await services.add_potential_risk(
            ctx,
            store,
            sanitize_record_id(goal_id),
            description,
            category=category,
            owner=owner,
            likelihood=likelihood,
            impact=impact,
            max_retries=_config.identifiers.max_retries,
        )
        return await _payload(ctx, store, risk)


@mcp.tool()
async def list_potential_risks(
    goal_id: str | None = None, upr_id: str | None = None, period: str | None = None
) -> dict:
    """List potential risks of a goal, or of the whole UPR and period."""
    with _domain_errors():
        ctx = _tenant(upr_id, period)
        store = await get_store()
        risks = await services.list_potential_risks(
            ctx, store, sanitize_record_id(goal_id) if goal_id else None
        )
        return {"potential_risks": [await _payload(ctx, store, r) for r in risks], "total": len(risks)}


@mcp.tool()
async def update_potential_risk(
    risk_id: str,
    description: str | None = None,
    category: str | None = None,
    owner: str | None = None,
    likelihood: str | None = None,
    impact: str | None = None,
    upr_id: str | None = None,
    period: str | None = None,
) -> dict:
    """Edit a potential risk. Only the given fields change."""
    with _domain_errors():
        ctx = _tenant(upr_id, period)
        store = await get_store()
        risk = await services.update_potential_risk(
            ctx,
            store,
            sanitize_record_id(risk_id),
            **_patch(
                description=description,
                category=category,
                owner=owner,
                likelihood=likelihood,
                impact=impact,
            ),
        )
        return await _payload(ctx, store, risk)


@mcp.tool()
async def delete_potential_risk(
    risk_id: str, upr_id: str | None = None, period: str | None = None
) -> dict:
    """Delete a potential risk with its causes and control measures."""
    with _domain_errors():
        ctx = _tenant(upr_id, period)
        report = await services.delete_potential_risk(
            ctx,
            await get_store(),
            sanitize_record_id(risk_id),
            prefer_batch=_config.cascade.prefer_batch,
        )
        return CascadeResponse.from_report(report).model_dump()


# Risk causes


@mcp.tool()
async def add_risk_cause(
    potential_risk_id: str,
    description: str,
    source: str,
    key_risk_indicator: str | None = None,
    risk_tolerance: str | None = None,
    likelihood: str | None = None,
    impact: str | None = None,
    upr_id: str | None = None,
    period: str | None = None,
) -> dict:
    """Add a cause (source Internal or Eksternal) under a potential risk."""
    with _domain_errors():
        ctx = _tenant(upr_id, period)
        store = await get_store()
        cause = await services.add_risk_cause(
            ctx,
            store,
            sanitize_record_id(potential_risk_id),
            description,
            source,
            key_risk_indicator=key_risk_indicator,
            risk_tolerance=risk_tolerance,
            likelihood=likelihood,
            impact=impact,
            max_retries=_config.identifiers.max_retries,
        )
        return await _payload(ctx, store, cause)


@mcp.tool()
async def list_risk_causes(
    potential_risk_id: str | None = None, upr_id: str | None = None, period: str | None = None
) -> dict:
    """List causes of a potential risk, or of the whole UPR and period."""
    with _domain_errors():
        ctx = _tenant(upr_id, period)
        store = await get_store()
        causes = await services.list_risk_causes(
            ctx, store, sanitize_record_id(potential_risk_id) if potential_risk_id else None
        )
        return {"risk_causes": [await _payload(ctx, store, c) for c in causes], "total": len(causes)}


@mcp.tool()
async def update_risk_cause(
    cause_id: str,
    description: str | None = None,
    source: str | None = None,
    key_risk_indicator: str | None = None,
    risk_tolerance: str | None = None,
    upr_id: str | None = None,
    period: str | None = None,
) -> dict:
    """Edit a cause's description, source, KRI or tolerance."""
    with _domain_errors():
        ctx = _tenant(upr_id, period)
        store = await get_store()
        cause = await services.update_risk_cause(
            ctx,
            store,
            sanitize_record_id(cause_id),
            **_patch(
                description=description,
                source=source,
                key_risk_indicator=key_risk_indicator,
                risk_tolerance=risk_tolerance,
            ),
        )
        return await _payload(ctx, store, cause)


@mcp.tool()
async def analyze_risk_cause(
    cause_id: str,
    likelihood: str | None,
    impact: str | None,
    key_risk_indicator: str | None = None,
    risk_tolerance: str | None = None,
    upr_id: str | None = None,
    period: str | None = None,
) -> dict:
    """Record likelihood and impact for a cause; returns it with its score and risk level."""
    with _domain_errors():
        ctx = _tenant(upr_id, period)
        store = await get_store()
        cause = await services.analyze_risk_cause(
            ctx,
            store,
            sanitize_record_id(cause_id),
            likelihood,
            impact,
            key_risk_indicator=key_risk_indicator,
            risk_tolerance=risk_tolerance,
        )
        return await _payload(ctx, store, cause)


@mcp.tool()
async def delete_risk_cause(
    cause_id: str, upr_id: str | None = None, period: str | None = None
) -> dict:
    """Delete a cause with its control measures and recorded exposures."""
    with _domain_errors():
        ctx = _tenant(upr_id, period)
        report = await services.delete_risk_cause(
            ctx,
            await get_store(),
            sanitize_record_id(cause_id),
            prefer_batch=_config.cascade.prefer_batch,
        )
        return CascadeResponse.from_report(report).model_dump()


@mcp.tool()
async def list_prioritized_risk_causes(
    descending: bool = True, upr_id: str | None = None, period: str | None = None
) -> dict:
    """Analyzed causes ranked by risk score (highest first unless descending is false)."""
    with _domain_errors():
        ctx = _tenant(upr_id, period)
        ranked = await services.list_prioritized_risk_causes(ctx, await get_store(), descending)
        return {
            "risk_causes": [
                record_payload(p.cause, p.code)
                | {"potential_risk": p.potential_risk.description, "goal": p.goal.name}
                for p in ranked
            ],
            "total": len(ranked),
        }


# Control measures


@mcp.tool()
async def add_control_measure(
    risk_cause_id: str,
    control_type: str,
    description: str,
    key_control_indicator: str | None = None,
    target: str | None = None,
    responsible_person: str | None = None,
    deadline: str | None = None,
    budget: float | None = None,
    upr_id: str | None = None,
    period: str | None = None,
) -> dict:
    """Add a control measure (type Prv, RM or Crr) under a cause. Deadline is YYYY-MM-DD."""
    with _domain_errors():
        ctx = _tenant(upr_id, period)
        store = await get_store()
        control = await services.add_control_measure(
            ctx,
            store,
            sanitize_record_id(risk_cause_id),
            control_type,
            description,
            key_control_indicator=key_control_indicator,
            target=target,
            responsible_person=responsible_person,
            deadline=deadline,
            budget=budget,
            max_retries=_config.identifiers.max_retries,
        )
        return await _payload(ctx, store, control)


@mcp.tool()
async def list_control_measures(
    risk_cause_id: str | None = None, upr_id: str | None = None, period: str | None = None
) -> dict:
    """List control measures of a cause, or of the whole UPR and period."""
    with _domain_errors():
        ctx = _tenant(upr_id, period)
        store = await get_store()
        controls = await services.list_control_measures(
            ctx, store, sanitize_record_id(risk_cause_id) if risk_cause_id else None
        )
        return {
            "control_measures": [await _payload(ctx, store, c) for c in controls],
            "total": len(controls),
        }


@mcp.tool()
async def update_control_measure(
    control_id: str,
    description: str | None = None,
    key_control_indicator: str | None = None,
    target: str | None = None,
    responsible_person: str | None = None,
    deadline: str | None = None,
    budget: float | None = None,
    upr_id: str | None = None,
    period: str | None = None,
) -> dict:
    """Edit a control measure. The control type cannot be changed."""
    with _domain_errors():
        ctx = _tenant(upr_id, period)
        store = await get_store()
        control = await services.update_control_measure(
            ctx,
            store,
            sanitize_record_id(control_id),
            **_patch(
                description=description,
                key_control_indicator=key_control_indicator,
                target=target,
                responsible_person=responsible_person,
                deadline=deadline,
                budget=budget,
            ),
        )
        return await _payload(ctx, store, control)


@mcp.tool()
async def delete_control_measure(
    control_id: str, upr_id: str | None = None, period: str | None = None
) -> dict:
    """Delete one control measure."""
    with _domain_errors():
        ctx = _tenant(upr_id, period)
        control_id = sanitize_record_id(control_id)
        await services.delete_control_measure(ctx, await get_store(), control_id)
        return {"deleted": [{"kind": EntityKind.CONTROL_MEASURE.value, "id": control_id}]}


# Monitoring


@mcp.tool()
async def create_monitoring_session(
    name: str,
    start_date: str | None = None,
    end_date: str | None = None,
    frequency: str | None = None,
    upr_id: str | None = None,
    period: str | None = None,
) -> dict:
    """
    Open an active monitoring session. Dates are YYYY-MM-DD; missing dates
    default to the window of frequency (Bulanan, Triwulanan, Semesteran,
    Tahunan) around today.
    """
    with _domain_errors():
        ctx = _tenant(upr_id, period)
        session = await services.create_monitoring_session(
            ctx,
            await get_store(),
            name,
            start_date=start_date,
            end_date=end_date,
            frequency=frequency or _config.monitoring.default_frequency,
        )
        return record_payload(session)


@mcp.tool()
async def list_monitoring_sessions(upr_id: str | None = None, period: str | None = None) -> dict:
    """List monitoring sessions, latest end date first."""
    with _domain_errors():
        ctx = _tenant(upr_id, period)
        sessions = await services.list_monitoring_sessions(ctx, await get_store())
        return {"sessions": [record_payload(s) for s in sessions], "total": len(sessions)}


@mcp.tool()
async def update_monitoring_session(
    session_id: str,
    name: str | None = None,
    start_date: str | None = None,
    end_date: str | None = None,
    status: str | None = None,
    upr_id: str | None = None,
    period: str | None = None,
) -> dict:
    """Rename or re-date a session, or set its status to Aktif, Selesai or Dibatalkan."""
    with _domain_errors():
        ctx = _tenant(upr_id, period)
        session = await services.update_monitoring_session(
            ctx,
            await get_store(),
            sanitize_record_id(session_id),
            **_patch(name=name, start_date=start_date, end_date=end_date, status=status),
        )
        return record_payload(session)


@mcp.tool()
async def delete_monitoring_session(
    session_id: str, upr_id: str | None = None, period: str | None = None
) -> dict:
    """Delete a monitoring session with the exposures recorded in it."""
    with _domain_errors():
        ctx = _tenant(upr_id, period)
        report = await services.delete_monitoring_session(
            ctx,
            await get_store(),
            sanitize_record_id(session_id),
            prefer_batch=_config.cascade.prefer_batch,
        )
        return CascadeResponse.from_report(report).model_dump()


@mcp.tool()
async def record_risk_exposure(
    session_id: str,
    risk_cause_id: str,
    exposure_value: float | None = None,
    exposure_unit: str | None = None,
    notes: str | None = None,
    monitored_controls: list[dict] | None = None,
    upr_id: str | None = None,
    period: str | None = None,
) -> dict:
    """
    Record or update a cause's exposure in an active session. Needs a value or notes.

    monitored_controls items: control_measure_id, realization_kci, and optionally
    performance_percentage (derived from the control's KCI target when omitted),
    supporting_evidence_url, monitoring_result_notes, follow_up_plan.
    """
    with _domain_errors():
        ctx = _tenant(upr_id, period)
        exposure = await services.record_risk_exposure(
            ctx,
            await get_store(),
            sanitize_record_id(session_id),
            sanitize_record_id(risk_cause_id),
            exposure_value=exposure_value,
            exposure_unit=exposure_unit,
            notes=notes,
            monitored_controls=monitored_controls,
        )
        return record_payload(exposure)


@mcp.tool()
async def get_monitoring_overview(
    session_id: str, upr_id: str | None = None, period: str | None = None
) -> dict:
    """Every risk cause with its exposure in the session and tolerance guidance."""
    with _domain_errors():
        ctx = _tenant(upr_id, period)
        store = await get_store()
        session = await services.get_monitoring_session(ctx, store, sanitize_record_id(session_id))
        rows = await services.monitoring_overview(ctx, store, session.id)
        return {
            "session": record_payload(session),
            "risk_causes": [exposure_overview_payload(row) for row in rows],
            "recorded": sum(1 for row in rows if row.exposure is not None),
        }


@mcp.tool()
async def delete_risk_exposure(
    session_id: str, risk_cause_id: str, upr_id: str | None = None, period: str | None = None
) -> dict:
    """Delete the exposure recorded for a cause in a session."""
    with _domain_errors():
        ctx = _tenant(upr_id, period)
        session_id = sanitize_record_id(session_id)
        risk_cause_id = sanitize_record_id(risk_cause_id)
        await services.delete_risk_exposure(ctx, await get_store(), session_id, risk_cause_id)
        record_id = exposure_id(session_id, risk_cause_id)
        return {"deleted": [{"kind": EntityKind.RISK_EXPOSURE.value, "id": record_id}]}


# Scoring


@mcp.tool()
async def classify_risk(likelihood: str | None, impact: str | None) -> dict:
    """Score a likelihood/impact pair and return its risk level and recommended control types."""
    with _domain_errors():
        assessment = classify(likelihood, impact)
        return AssessmentResponse.from_assessment(assessment).model_dump() | {
            "recommended_control_types": [t.value for t in recommended_control_types(assessment.level)]
        }


@mcp.tool()
async def get_risk_matrix() -> dict:
    """The 5x5 risk matrix: rows by likelihood, columns by impact, both ascending."""
    return {
        "matrix": [
            [AssessmentResponse.from_assessment(cell).model_dump() for cell in row]
            for row in risk_matrix()
        ]
    }


# Suggestions


@mcp.tool()
async def brainstorm_potential_risks(
    goal_id: str, count: int | None = None, upr_id: str | None = None, period: str | None = None
) -> dict:
    """Ask the local LLM for potential risks threatening a goal. Nothing is stored."""
    with _domain_errors():
        ctx = _tenant(upr_id, period)
        goal = await services.get_goal(ctx, await get_store(), sanitize_record_id(goal_id))
        result = await get_provider().brainstorm_potential_risks(goal, count)
        return result.model_dump(mode="json", by_alias=True)


@mcp.tool()
async def brainstorm_risk_causes(
    potential_risk_id: str,
    count: int | None = None,
    upr_id: str | None = None,
    period: str | None = None,
) -> dict:
    """Ask the local LLM for causes of a potential risk. Nothing is stored."""
    with _domain_errors():
        ctx = _tenant(upr_id, period)
        store = await get_store()
        risk = await services.get_potential_risk(ctx, store, sanitize_record_id(potential_risk_id))
        goal = await services.get_goal(ctx, store, risk.goal_id)
        result = await get_provider().brainstorm_risk_causes(risk, goal, count)
        return result.model_dump(mode="json", by_alias=True)


@mcp.tool()
async def suggest_risk_parameters(
    potential_risk_id: str,
    cause_id: str | None = None,
    upr_id: str | None = None,
    period: str | None = None,
) -> dict:
    """Ask the local LLM for likelihood and impact of a potential risk or one of its causes."""
    with _domain_errors():
        ctx = _tenant(upr_id, period)
        store = await get_store()
        risk = await services.get_potential_risk(ctx, store, sanitize_record_id(potential_risk_id))
        goal = await services.get_goal(ctx, store, risk.goal_id)
        cause = None
        if cause_id:
            cause = await services.get_risk_cause(ctx, store, sanitize_record_id(cause_id))
        result = await get_provider().suggest_risk_parameters(risk, goal, cause)
        return result.model_dump(mode="json", by_alias=True)


@mcp.tool()
async def suggest_control_measures(
    cause_id: str, count: int | None = None, upr_id: str | None = None, period: str | None = None
) -> dict:
    """Ask the local LLM for up to three control measures for a cause. Nothing is stored."""
    with _domain_errors():
        ctx = _tenant(upr_id, period)
        store = await get_store()
        cause = await services.get_risk_cause(ctx, store, sanitize_record_id(cause_id))
        risk = await services.get_potential_risk(ctx, store, cause.potential_risk_id)
        goal = await services.get_goal(ctx, store, cause.goal_id)
        result = await get_provider().suggest_control_measures(cause, risk, goal, count)
        return result.model_dump(mode="json", by_alias=True)


@mcp.tool()
async def suggest_kri_tolerance(
    cause_id: str, upr_id: str | None = None, period: str | None = None
) -> dict:
    """Ask the local LLM for a key risk indicator and tolerance for a cause."""
    with _domain_errors():
        ctx = _tenant(upr_id, period)
        store = await get_store()
        cause = await services.get_risk_cause(ctx, store, sanitize_record_id(cause_id))
        risk = await services.get_potential_risk(ctx, store, cause.potential_risk_id)
        goal = await services.get_goal(ctx, store, cause.goal_id)
        result = await get_provider().suggest_kri_tolerance(cause, risk, goal)
        return result.model_dump(mode="json", by_alias=True)


@mcp.tool()
async def accept_potential_risk_suggestions(
    goal_id: str,
    potential_risks: list[dict],
    upr_id: str | None = None,
    period: str | None = None,
) -> dict:
    """Store the chosen brainstormed potential risks under a goal."""
    with _domain_errors():
        ctx = _tenant(upr_id, period)
        store = await get_store()
        accepted = sanitize_potential_risk_suggestions({"potentialRisks": potential_risks})
        created = await services.accept_potential_risk_suggestions(
            ctx,
            store,
            sanitize_record_id(goal_id),
            accepted,
            max_retries=_config.identifiers.max_retries,
        )
        return {"potential_risks": [await _payload(ctx, store, r) for r in created]}


@mcp.tool()
async def accept_risk_cause_suggestions(
    potential_risk_id: str,
    suggested_causes: list[dict],
    default_source: str | None = None,
    upr_id: str | None = None,
    period: str | None = None,
) -> dict:
    """Store the chosen brainstormed causes. default_source fills causes without a source."""
    with _domain_errors():
        ctx = _tenant(upr_id, period)
        store = await get_store()
        accepted = sanitize_risk_cause_suggestions({"suggestedCauses": suggested_causes})
        created = await services.accept_risk_cause_suggestions(
            ctx,
            store,
            sanitize_record_id(potential_risk_id),
            accepted,
            default_source=default_source,
            max_retries=_config.identifiers.max_retries,
        )
        return {"risk_causes": [await _payload(ctx, store, c) for c in created]}


@mcp.tool()
async def accept_control_measure_suggestions(
    risk_cause_id: str,
    suggestions: list[dict],
    upr_id: str | None = None,
    period: str | None = None,
) -> dict:
    """Store the chosen suggested control measures under a cause."""
    with _domain_errors():
        ctx = _tenant(upr_id, period)
        store = await get_store()
        accepted = sanitize_control_measure_suggestions({"suggestions": suggestions})
        created = await services.accept_control_measure_suggestions(
            ctx,
            store,
            sanitize_record_id(risk_cause_id),
            accepted,
            max_retries=_config.identifiers.max_retries,
        )
        return {"control_measures": [await _payload(ctx, store, c) for c in created]}


logger.info("MCP server initialized with 35 tools")
