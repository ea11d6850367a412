# riskwise/cli.py
"""
CLI interface for riskwise.

Thin presentation layer over the services/ layer.
All commands delegate to the same functions that MCP wraps.
"""

import asyncio
import logging

import typer

from riskwise.config.loader import load_config
from riskwise.errors import RiskwiseError
from riskwise.logging_config import configure_logging, level_for_verbosity
from riskwise.models.enums import RiskLevel

app = typer.Typer(
    name="riskwise",
    help="Risk register: goals, potential risks, causes and controls, with local-LLM suggestions.",
    no_args_is_help=True,
)
goal_app = typer.Typer(help="Manage goals.", no_args_is_help=True)
risk_app = typer.Typer(help="Manage potential risks.", no_args_is_help=True)
cause_app = typer.Typer(help="Manage and analyze risk causes.", no_args_is_help=True)
control_app = typer.Typer(help="Manage control measures.", no_args_is_help=True)
suggest_app = typer.Typer(help="Ask the local LLM for suggestions.", no_args_is_help=True)
monitor_app = typer.Typer(
    help="Run monitoring sessions and record risk exposures.", no_args_is_help=True
)
app.add_typer(goal_app, name="goal")
app.add_typer(risk_app, name="risk")
app.add_typer(cause_app, name="cause")
app.add_typer(control_app, name="control")
app.add_typer(suggest_app, name="suggest")
app.add_typer(monitor_app, name="monitor")

UPR_OPTION = typer.Option(None, "--upr", "-u", help="UPR ID (defaults to tenant.upr_id in config)")
PERIOD_OPTION = typer.Option(None, "--period", "-p", help="Period (defaults to tenant.period in config)")
YES_OPTION = typer.Option(False, "--yes", "-y", help="Don't ask for confirmation")


def _run(coro):
    """Run async function from sync CLI context."""
    return asyncio.run(coro)


async def _get_store():
    """Open the configured record store."""
    from riskwise.models.factory import open_store

    return await open_store(load_config())


def _get_provider():
    """Build a suggestion provider from config."""
    from riskwise.llm.factory import create_llm_client
    from riskwise.suggestions import SuggestionProvider

    config = load_config()
    return SuggestionProvider(create_llm_client(config), config.suggestions)


def _tenant(upr: str | None, period: str | None):
    from riskwise.services import resolve_tenant

    return resolve_tenant(upr, period, load_config().tenant)


def _call(action):
    """
    Run action(store) against a freshly opened store.

    Domain errors are printed and end the command with exit code 1.
    """

    async def _go():
        store = await _get_store()
        try:
            return await action(store)
        finally:
            await store.close()

    try:
        return _run(_go())
    except RiskwiseError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)


def _level_color(level: RiskLevel) -> str:
    """Return ANSI color for a risk level."""
    colors = {
        RiskLevel.SANGAT_TINGGI: typer.colors.RED,
        RiskLevel.TINGGI: typer.colors.BRIGHT_RED,
        RiskLevel.SEDANG: typer.colors.YELLOW,
        RiskLevel.RENDAH: typer.colors.GREEN,
        RiskLevel.SANGAT_RENDAH: typer.colors.CYAN,
    }
    return colors.get(level, typer.colors.WHITE)


def _echo_assessment(likelihood, impact) -> None:
    from riskwise.scoring import classify

    assessment = classify(likelihood, impact)
    score = assessment.score if assessment.score is not None else "-"
    typer.echo(
        f"Score:    {score}  "
        + typer.style(assessment.level.value, fg=_level_color(assessment.level), bold=True)
    )


def _confirm_cascade(what: str, yes: bool) -> None:
    if not yes and not typer.confirm(f"Delete {what} and everything beneath it?"):
        raise typer.Exit(1)


def _echo_report(report) -> None:
    typer.echo(f"Deleted {len(report.deleted)} record(s):")
    for kind, record_id in report.deleted:
        typer.echo(f"  {kind.value:<18} {record_id}")


@app.callback()
def main(verbose: bool = typer.Option(False, "--verbose", "-v", help="Log debug output to stderr")):
    """Risk register: goals, potential risks, causes and controls, with local-LLM suggestions."""
    # Command output goes to stdout; logs stay on stderr and are quiet by default
    configure_logging(logging.DEBUG if verbose else level_for_verbosity("quiet"))


# Goals


@goal_app.command("add")
def goal_add(
    name: str = typer.Argument(..., help="Goal name; its first letter picks the code prefix"),
    description: str = typer.Argument(..., help="Goal description"),
    upr: str = UPR_OPTION,
    period: str = PERIOD_OPTION,
):
    """Create a goal."""
    from riskwise.services import create_goal

    async def _add(store):
        config = load_config()
        return await create_goal(
            _tenant(upr, period), store, name, description,
            max_retries=config.identifiers.max_retries,
        )

    goal = _call(_add)
    typer.echo(f"Created goal {goal.code}  ({goal.id})")


@goal_app.command("list")
def goal_list(upr: str = UPR_OPTION, period: str = PERIOD_OPTION):
    """List goals."""
    from riskwise.services import list_goals

    goals = _call(lambda store: list_goals(_tenant(upr, period), store))
    if not goals:
        typer.echo("No goals found.")
        return

    typer.echo(f"{'CODE':<6} {'ID':<14} NAME")
    typer.echo("-" * 60)
    for goal in goals:
        typer.echo(f"{goal.code:<6} {goal.id:<14} {goal.name}")


@goal_app.command("edit")
def goal_edit(
    goal_id: str = typer.Argument(..., help="Goal ID"),
    name: str = typer.Option(None, "--name", help="New name (the code is kept)"),
    description: str = typer.Option(None, "--description", "-d", help="New description"),
    upr: str = UPR_OPTION,
    period: str = PERIOD_OPTION,
):
    """Edit a goal."""
    from riskwise.services import update_goal
    from riskwise.validation import sanitize_record_id

    goal = _call(
        lambda store: update_goal(
            _tenant(upr, period), store, sanitize_record_id(goal_id),
            name=name, description=description,
        )
    )
    typer.echo(f"Updated goal {goal.code}")


@goal_app.command("delete")
def goal_delete(
    goal_id: str = typer.Argument(..., help="Goal ID"),
    yes: bool = YES_OPTION,
    upr: str = UPR_OPTION,
    period: str = PERIOD_OPTION,
):
    """Delete a goal with its potential risks, causes and control measures."""
    from riskwise.services import delete_goal
    from riskwise.validation import sanitize_record_id

    _confirm_cascade(f"goal {goal_id}", yes)
    report = _call(
        lambda store: delete_goal(
            _tenant(upr, period), store, sanitize_record_id(goal_id),
            prefer_batch=load_config().cascade.prefer_batch,
        )
    )
    _echo_report(report)


# Potential risks


@risk_app.command("add")
def risk_add(
    goal_id: str = typer.Argument(..., help="Goal ID"),
    description: str = typer.Argument(..., help="Risk description"),
    category: str = typer.Option(None, "--category", "-c", help="Risk category"),
    owner: str = typer.Option(None, "--owner", help="Risk owner"),
    likelihood: str = typer.Option(None, "--likelihood", "-l", help="Inherent likelihood"),
    impact: str = typer.Option(None, "--impact", "-i", help="Inherent impact"),
    upr: str = UPR_OPTION,
    period: str = PERIOD_OPTION,
):
    """Add a potential risk under a goal."""
    from riskwise.services import add_potential_risk, record_code
    from riskwise.validation import sanitize_record_id

    async def _add(store):
        ctx = _tenant(upr, period)
        risk = await add_potential_risk(
            ctx, store, sanitize_record_id(goal_id), description,
            category=category, owner=owner, likelihood=likelihood, impact=impact,
            max_retries=load_config().identifiers.max_retries,
        )
        return risk, await record_code(ctx, store, risk)

    risk, code = _call(_add)
    typer.echo(f"Added potential risk {code}  ({risk.id})")


@risk_app.command("list")
def risk_list(
    goal_id: str = typer.Option(None, "--goal", "-g", help="Only risks of this goal"),
    upr: str = UPR_OPTION,
    period: str = PERIOD_OPTION,
):
    """List potential risks."""
    from riskwise.services import list_potential_risks, record_code
    from riskwise.validation import sanitize_record_id

    async def _list(store):
        ctx = _tenant(upr, period)
        risks = await list_potential_risks(
            ctx, store, sanitize_record_id(goal_id) if goal_id else None
        )
        return [(await record_code(ctx, store, risk), risk) for risk in risks]

    rows = _call(_list)
    if not rows:
        typer.echo("No potential risks found.")
        return

    typer.echo(f"{'CODE':<10} {'ID':<14} {'CATEGORY':<22} DESCRIPTION")
    typer.echo("-" * 80)
    for code, risk in rows:
        category = risk.category.value if risk.category else "-"
        typer.echo(f"{code:<10} {risk.id:<14} {category:<22} {risk.description}")


@risk_app.command("edit")
def risk_edit(
    risk_id: str = typer.Argument(..., help="Potential risk ID"),
    description: str = typer.Option(None, "--description", "-d", help="New description"),
    category: str = typer.Option(None, "--category", "-c", help="Risk category"),
    owner: str = typer.Option(None, "--owner", help="Risk owner"),
    likelihood: str = typer.Option(None, "--likelihood", "-l", help="Inherent likelihood"),
    impact: str = typer.Option(None, "--impact", "-i", help="Inherent impact"),
    upr: str = UPR_OPTION,
    period: str = PERIOD_OPTION,
):
    """Edit a potential risk."""
    from riskwise.services import update_potential_risk
    from riskwise.validation import sanitize_record_id

    patch = {
        key: value
        for key, value in {
            "description": description,
            "category": category,
            "owner": owner,
            "likelihood": likelihood,
            "impact": impact,
        }.items()
        if value is not None
    }
    risk = _call(
        lambda store: update_potential_risk(
            _tenant(upr, period), store, sanitize_record_id(risk_id), **patch
        )
    )
    typer.echo(f"Updated potential risk {risk.id}")


@risk_app.command("delete")
def risk_delete(
    risk_id: str = typer.Argument(..., help="Potential risk ID"),
    yes: bool = YES_OPTION,
    upr: str = UPR_OPTION,
    period: str = PERIOD_OPTION,
):
    """Delete a potential risk with its causes and control measures."""
    from riskwise.services import delete_potential_risk
    from riskwise.validation import sanitize_record_id

    _confirm_cascade(f"potential risk {risk_id}", yes)
    report = _call(
        lambda store: delete_potential_risk(
            _tenant(upr, period), store, sanitize_record_id(risk_id),
            prefer_batch=load_config().cascade.prefer_batch,
        )
    )
    _echo_report(report)


# Risk causes


@cause_app.command("add")
def cause_add(
    risk_id: str = typer.Argument(..., help="Potential risk ID"),
    description: str = typer.Argument(..., help="Cause description"),
    source: str = typer.Option(..., "--source", "-s", help="Internal or Eksternal"),
    kri: str = typer.Option(None, "--kri", help="Key risk indicator"),
    tolerance: str = typer.Option(None, "--tolerance", help="Risk tolerance"),
    upr: str = UPR_OPTION,
    period: str = PERIOD_OPTION,
):
    """Add a cause under a potential risk."""
    from riskwise.services import add_risk_cause, record_code
    from riskwise.validation import sanitize_record_id

    async def _add(store):
        ctx = _tenant(upr, period)
        cause = await add_risk_cause(
            ctx, store, sanitize_record_id(risk_id), description, source,
            key_risk_indicator=kri, risk_tolerance=tolerance,
            max_retries=load_config().identifiers.max_retries,
        )
        return cause, await record_code(ctx, store, cause)

    cause, code = _call(_add)
    typer.echo(f"Added risk cause {code}  ({cause.id})")


@cause_app.command("list")
def cause_list(
    risk_id: str = typer.Option(None, "--risk", "-r", help="Only causes of this potential risk"),
    upr: str = UPR_OPTION,
    period: str = PERIOD_OPTION,
):
    """List risk causes with their current risk level."""
    from riskwise.scoring import classify
    from riskwise.services import list_risk_causes, record_code
    from riskwise.validation import sanitize_record_id

    async def _list(store):
        ctx = _tenant(upr, period)
        causes = await list_risk_causes(
            ctx, store, sanitize_record_id(risk_id) if risk_id else None
        )
        return [(await record_code(ctx, store, cause), cause) for cause in causes]

    rows = _call(_list)
    if not rows:
        typer.echo("No risk causes found.")
        return

    typer.echo(f"{'CODE':<14} {'ID':<14} {'SOURCE':<10} {'LEVEL':<15} DESCRIPTION")
    typer.echo("-" * 90)
    for code, cause in rows:
        level = classify(cause.likelihood, cause.impact).level
        typer.echo(
            f"{code:<14} {cause.id:<14} {cause.source.value:<10} "
            + typer.style(f"{level.value:<15}", fg=_level_color(level))
            + f" {cause.description}"
        )


@cause_app.command("edit")
def cause_edit(
    cause_id: str = typer.Argument(..., help="Risk cause ID"),
    description: str = typer.Option(None, "--description", "-d", help="New description"),
    source: str = typer.Option(None, "--source", "-s", help="Internal or Eksternal"),
    kri: str = typer.Option(None, "--kri", help="Key risk indicator"),
    tolerance: str = typer.Option(None, "--tolerance", help="Risk tolerance"),
    upr: str = UPR_OPTION,
    period: str = PERIOD_OPTION,
):
    """Edit a risk cause."""
    from riskwise.services import update_risk_cause
    from riskwise.validation import sanitize_record_id

    patch = {
        key: value
        for key, value in {
            "description": description,
            "source": source,
            "key_risk_indicator": kri,
            "risk_tolerance": tolerance,
        }.items()
        if value is not None
    }
    cause = _call(
        lambda store: update_risk_cause(
            _tenant(upr, period), store, sanitize_record_id(cause_id), **patch
        )
    )
    typer.echo(f"Updated risk cause {cause.id}")


@cause_app.command("analyze")
def cause_analyze(
    cause_id: str = typer.Argument(..., help="Risk cause ID"),
    likelihood: str = typer.Option(..., "--likelihood", "-l", help="Likelihood level"),
    impact: str = typer.Option(..., "--impact", "-i", help="Impact level"),
    kri: str = typer.Option(None, "--kri", help="Key risk indicator"),
    tolerance: str = typer.Option(None, "--tolerance", help="Risk tolerance"),
    upr: str = UPR_OPTION,
    period: str = PERIOD_OPTION,
):
    """Record likelihood and impact for a cause and show its risk level."""
    from riskwise.services import analyze_risk_cause
    from riskwise.validation import sanitize_record_id

    cause = _call(
        lambda store: analyze_risk_cause(
            _tenant(upr, period), store, sanitize_record_id(cause_id), likelihood, impact,
            key_risk_indicator=kri, risk_tolerance=tolerance,
        )
    )
    typer.echo(f"Cause:    {cause.id}")
    _echo_assessment(cause.likelihood, cause.impact)


@cause_app.command("delete")
def cause_delete(
    cause_id: str = typer.Argument(..., help="Risk cause ID"),
    yes: bool = YES_OPTION,
    upr: str = UPR_OPTION,
    period: str = PERIOD_OPTION,
):
    """Delete a risk cause with its control measures and recorded exposures."""
    from riskwise.services import delete_risk_cause
    from riskwise.validation import sanitize_record_id

    _confirm_cascade(f"risk cause {cause_id}", yes)
    report = _call(
        lambda store: delete_risk_cause(
            _tenant(upr, period), store, sanitize_record_id(cause_id),
            prefer_batch=load_config().cascade.prefer_batch,
        )
    )
    _echo_report(report)


# Control measures


@control_app.command("add")
def control_add(
    cause_id: str = typer.Argument(..., help="Risk cause ID"),
    control_type: str = typer.Argument(..., help="Prv, RM or Crr"),
    description: str = typer.Argument(..., help="Control description"),
    kci: str = typer.Option(None, "--kci", help="Key control indicator"),
    target: str = typer.Option(None, "--target", help="Target"),
    responsible: str = typer.Option(None, "--responsible", help="Person in charge"),
    deadline: str = typer.Option(None, "--deadline", help="Deadline (YYYY-MM-DD)"),
    budget: float = typer.Option(None, "--budget", help="Budget"),
    upr: str = UPR_OPTION,
    period: str = PERIOD_OPTION,
):
    """Add a control measure under a risk cause."""
    from riskwise.services import add_control_measure, record_code
    from riskwise.validation import sanitize_record_id

    async def _add(store):
        ctx = _tenant(upr, period)
        control = await add_control_measure(
            ctx, store, sanitize_record_id(cause_id), control_type, description,
            key_control_indicator=kci, target=target, responsible_person=responsible,
            deadline=deadline, budget=budget,
            max_retries=load_config().identifiers.max_retries,
        )
        return control, await record_code(ctx, store, control)

    control, code = _call(_add)
    typer.echo(f"Added control measure {code}  ({control.id})")


@control_app.command("list")
def control_list(
    cause_id: str = typer.Option(None, "--cause", "-c", help="Only controls of this cause"),
    upr: str = UPR_OPTION,
    period: str = PERIOD_OPTION,
):
    """List control measures."""
    from riskwise.services import list_control_measures, record_code
    from riskwise.validation import sanitize_record_id

    async def _list(store):
        ctx = _tenant(upr, period)
        controls = await list_control_measures(
            ctx, store, sanitize_record_id(cause_id) if cause_id else None
        )
        return [(await record_code(ctx, store, control), control) for control in controls]

    rows = _call(_list)
    if not rows:
        typer.echo("No control measures found.")
        return

    typer.echo(f"{'CODE':<20} {'ID':<14} {'DEADLINE':<11} DESCRIPTION")
    typer.echo("-" * 90)
    for code, control in rows:
        deadline = control.deadline.isoformat() if control.deadline else "-"
        typer.echo(f"{code:<20} {control.id:<14} {deadline:<11} {control.description}")


@control_app.command("delete")
def control_delete(
    control_id: str = typer.Argument(..., help="Control measure ID"),
    upr: str = UPR_OPTION,
    period: str = PERIOD_OPTION,
):
    """Delete a control measure."""
    from riskwise.services import delete_control_measure
    from riskwise.validation import sanitize_record_id

    _call(
        lambda store: delete_control_measure(
            _tenant(upr, period), store, sanitize_record_id(control_id)
        )
    )
    typer.echo(f"Deleted control measure {control_id}")


# Suggestions


@suggest_app.command("risks")
def suggest_risks(
    goal_id: str = typer.Argument(..., help="Goal ID"),
    count: int = typer.Option(None, "--count", "-n", help="Number of suggestions"),
    accept: bool = typer.Option(False, "--accept", help="Store every suggestion"),
    upr: str = UPR_OPTION,
    period: str = PERIOD_OPTION,
):
    """Brainstorm potential risks for a goal."""
    from riskwise.services import accept_potential_risk_suggestions, get_goal
    from riskwise.validation import sanitize_record_id

    async def _suggest(store):
        ctx = _tenant(upr, period)
        goal = await get_goal(ctx, store, sanitize_record_id(goal_id))
        result = await _get_provider().brainstorm_potential_risks(goal, count)
        created = []
        if accept:
            created = await accept_potential_risk_suggestions(ctx, store, goal.id, result)
        return result, created

    result, created = _call(_suggest)
    if not result.potential_risks:
        typer.echo("No suggestions.")
        return
    for n, suggestion in enumerate(result.potential_risks, 1):
        category = suggestion.category.value if suggestion.category else "-"
        typer.echo(f"{n}. [{category}] {suggestion.description}")
    if created:
        typer.echo(f"\nStored {len(created)} potential risk(s).")


@suggest_app.command("causes")
def suggest_causes(
    risk_id: str = typer.Argument(..., help="Potential risk ID"),
    count: int = typer.Option(None, "--count", "-n", help="Number of suggestions"),
    accept: bool = typer.Option(False, "--accept", help="Store every suggestion"),
    default_source: str = typer.Option(
        None, "--default-source", help="Source for accepted causes the AI left undetermined"
    ),
    upr: str = UPR_OPTION,
    period: str = PERIOD_OPTION,
):
    """Brainstorm causes of a potential risk."""
    from riskwise.services import accept_risk_cause_suggestions, get_goal, get_potential_risk
    from riskwise.validation import sanitize_record_id

    async def _suggest(store):
        ctx = _tenant(upr, period)
        risk = await get_potential_risk(ctx, store, sanitize_record_id(risk_id))
        goal = await get_goal(ctx, store, risk.goal_id)
        result = await _get_provider().brainstorm_risk_causes(risk, goal, count)
        created = []
        if accept:
            created = await accept_risk_cause_suggestions(
                ctx, store, risk.id, result, default_source=default_source
            )
        return result, created

    result, created = _call(_suggest)
    if not result.suggested_causes:
        typer.echo("No suggestions.")
        return
    for n, suggestion in enumerate(result.suggested_causes, 1):
        source = suggestion.source.value if suggestion.source else "?"
        typer.echo(f"{n}. [{source}] {suggestion.description}")
    if created:
        typer.echo(f"\nStored {len(created)} risk cause(s).")


@suggest_app.command("parameters")
def suggest_parameters(
    risk_id: str = typer.Argument(..., help="Potential risk ID"),
    cause_id: str = typer.Option(None, "--cause", "-c", help="Analyze this cause instead of the risk"),
    upr: str = UPR_OPTION,
    period: str = PERIOD_OPTION,
):
    """Suggest likelihood and impact."""
    from riskwise.services import get_goal, get_potential_risk, get_risk_cause
    from riskwise.validation import sanitize_record_id

    async def _suggest(store):
        ctx = _tenant(upr, period)
        risk = await get_potential_risk(ctx, store, sanitize_record_id(risk_id))
        goal = await get_goal(ctx, store, risk.goal_id)
        cause = None
        if cause_id:
            cause = await get_risk_cause(ctx, store, sanitize_record_id(cause_id))
        return await _get_provider().suggest_risk_parameters(risk, goal, cause)

    result = _call(_suggest)
    likelihood = result.suggested_likelihood.value if result.suggested_likelihood else "-"
    impact = result.suggested_impact.value if result.suggested_impact else "-"
    typer.echo(f"Likelihood: {likelihood}")
    typer.echo(f"  {result.likelihood_justification}")
    typer.echo(f"Impact:     {impact}")
    typer.echo(f"  {result.impact_justification}")
    if result.suggested_likelihood and result.suggested_impact:
        _echo_assessment(result.suggested_likelihood, result.suggested_impact)


@suggest_app.command("controls")
def suggest_controls(
    cause_id: str = typer.Argument(..., help="Risk cause ID"),
    count: int = typer.Option(None, "--count", "-n", help="Number of suggestions (max 3)"),
    accept: bool = typer.Option(False, "--accept", help="Store every suggestion"),
    upr: str = UPR_OPTION,
    period: str = PERIOD_OPTION,
):
    """Suggest control measures for a risk cause."""
    from riskwise.services import (
        accept_control_measure_suggestions,
        get_goal,
        get_potential_risk,
        get_risk_cause,
    )
    from riskwise.validation import sanitize_record_id

    async def _suggest(store):
        ctx = _tenant(upr, period)
        cause = await get_risk_cause(ctx, store, sanitize_record_id(cause_id))
        risk = await get_potential_risk(ctx, store, cause.potential_risk_id)
        goal = await get_goal(ctx, store, cause.goal_id)
        result = await _get_provider().suggest_control_measures(cause, risk, goal, count)
        created = []
        if accept:
            created = await accept_control_measure_suggestions(ctx, store, cause.id, result)
        return result, created

    result, created = _call(_suggest)
    if not result.suggestions:
        typer.echo("No suggestions.")
        return
    for n, suggestion in enumerate(result.suggestions, 1):
        typer.echo(f"{n}. [{suggestion.suggested_control_type.label}] {suggestion.description}")
        typer.echo(typer.style(f"   {suggestion.justification}", fg=typer.colors.BRIGHT_BLACK))
    if created:
        typer.echo(f"\nStored {len(created)} control measure(s).")


@suggest_app.command("kri")
def suggest_kri(
    cause_id: str = typer.Argument(..., help="Risk cause ID"),
    upr: str = UPR_OPTION,
    period: str = PERIOD_OPTION,
):
    """Suggest a key risk indicator and tolerance for a risk cause."""
    from riskwise.services import get_goal, get_potential_risk, get_risk_cause
    from riskwise.validation import sanitize_record_id

    async def _suggest(store):
        ctx = _tenant(upr, period)
        cause = await get_risk_cause(ctx, store, sanitize_record_id(cause_id))
        risk = await get_potential_risk(ctx, store, cause.potential_risk_id)
        goal = await get_goal(ctx, store, cause.goal_id)
        return await _get_provider().suggest_kri_tolerance(cause, risk, goal)

    result = _call(_suggest)
    typer.echo(f"KRI:       {result.suggested_kri}")
    typer.echo(f"  {result.kri_justification}")
    typer.echo(f"Tolerance: {result.suggested_tolerance}")
    typer.echo(f"  {result.tolerance_justification}")


# Monitoring


def _parse_control_realizations(values: list[str] | None) -> list[dict] | None:
    """Turn repeated CONTROL_ID=REALIZATION options into monitored controls."""
    if not values:
        return None
    from riskwise.validation import sanitize_record_id

    monitored = []
    for value in values:
        control_id, sep, realization = value.partition("=")
        if not sep:
            raise typer.BadParameter(
                f"{value!r} is not CONTROL_ID=REALIZATION", param_hint="--control"
            )
        monitored.append(
            {
                "control_measure_id": sanitize_record_id(control_id.strip()),
                "realization_kci": realization,
            }
        )
    return monitored


@monitor_app.command("start")
def monitor_start(
    name: str = typer.Argument(..., help="Session name (at least 5 characters)"),
    start: str = typer.Option(None, "--start", help="Start date (YYYY-MM-DD)"),
    end: str = typer.Option(None, "--end", help="End date (YYYY-MM-DD)"),
    frequency: str = typer.Option(
        None, "--frequency", "-f",
        help="Bulanan, Triwulanan, Semesteran or Tahunan; picks the default dates",
    ),
    upr: str = UPR_OPTION,
    period: str = PERIOD_OPTION,
):
    """Open a monitoring session."""
    from riskwise.services import create_monitoring_session

    session = _call(
        lambda store: create_monitoring_session(
            _tenant(upr, period), store, name, start_date=start, end_date=end,
            frequency=frequency or load_config().monitoring.default_frequency,
        )
    )
    typer.echo(
        f"Opened monitoring session {session.id}  "
        f"({session.start_date.isoformat()} to {session.end_date.isoformat()})"
    )


@monitor_app.command("list")
def monitor_list(upr: str = UPR_OPTION, period: str = PERIOD_OPTION):
    """List monitoring sessions, latest first."""
    from riskwise.services import list_monitoring_sessions

    sessions = _call(lambda store: list_monitoring_sessions(_tenant(upr, period), store))
    if not sessions:
        typer.echo("No monitoring sessions found.")
        return

    typer.echo(f"{'ID':<14} {'STATUS':<11} {'START':<11} {'END':<11} NAME")
    typer.echo("-" * 80)
    for session in sessions:
        typer.echo(
            f"{session.id:<14} {session.status.value:<11} {session.start_date.isoformat():<11} "
            f"{session.end_date.isoformat():<11} {session.name}"
        )


def _set_session_status(session_id: str, status: str, upr: str | None, period: str | None):
    from riskwise.services import update_monitoring_session
    from riskwise.validation import sanitize_record_id

    session = _call(
        lambda store: update_monitoring_session(
            _tenant(upr, period), store, sanitize_record_id(session_id), status=status
        )
    )
    typer.echo(f"Monitoring session {session.id} is now {session.status.value}")


@monitor_app.command("close")
def monitor_close(
    session_id: str = typer.Argument(..., help="Monitoring session ID"),
    upr: str = UPR_OPTION,
    period: str = PERIOD_OPTION,
):
    """Mark a monitoring session as finished."""
    _set_session_status(session_id, "Selesai", upr, period)


@monitor_app.command("cancel")
def monitor_cancel(
    session_id: str = typer.Argument(..., help="Monitoring session ID"),
    upr: str = UPR_OPTION,
    period: str = PERIOD_OPTION,
):
    """Cancel a monitoring session."""
    _set_session_status(session_id, "Dibatalkan", upr, period)


@monitor_app.command("record")
def monitor_record(
    session_id: str = typer.Argument(..., help="Monitoring session ID"),
    cause_id: str = typer.Argument(..., help="Risk cause ID"),
    value: float = typer.Option(None, "--value", help="Observed risk exposure"),
    unit: str = typer.Option(None, "--unit", help="Unit of the exposure value"),
    notes: str = typer.Option(None, "--notes", help="Exposure notes"),
    controls: list[str] = typer.Option(
        None, "--control", "-k",
        help="KCI realization of a control, as CONTROL_ID=REALIZATION (repeatable)",
    ),
    upr: str = UPR_OPTION,
    period: str = PERIOD_OPTION,
):
    """Record the exposure of a risk cause in an active session."""
    from riskwise.services import record_risk_exposure
    from riskwise.validation import sanitize_record_id

    exposure = _call(
        lambda store: record_risk_exposure(
            _tenant(upr, period), store, sanitize_record_id(session_id),
            sanitize_record_id(cause_id), exposure_value=value, exposure_unit=unit,
            notes=notes, monitored_controls=_parse_control_realizations(controls),
        )
    )
    typer.echo(f"Recorded exposure {exposure.id}")
    for control in exposure.monitored_controls:
        performance = control.performance_percentage
        shown = f"{performance:g}%" if performance is not None else "-"
        typer.echo(f"  {control.control_measure_id:<14} performance {shown}")


@monitor_app.command("show")
def monitor_show(
    session_id: str = typer.Argument(..., help="Monitoring session ID"),
    upr: str = UPR_OPTION,
    period: str = PERIOD_OPTION,
):
    """Show every risk cause with its exposure in a session."""
    from riskwise.services import get_monitoring_session, monitoring_overview
    from riskwise.validation import sanitize_record_id

    async def _show(store):
        ctx = _tenant(upr, period)
        session = await get_monitoring_session(ctx, store, sanitize_record_id(session_id))
        return session, await monitoring_overview(ctx, store, session.id)

    session, rows = _call(_show)
    typer.echo(
        f"{session.name}  [{session.status.value}]  "
        f"{session.start_date.isoformat()} to {session.end_date.isoformat()}"
    )
    if not rows:
        typer.echo("No risk causes to monitor.")
        return

    for row in rows:
        typer.echo(f"\n{row.code:<14} {row.cause.description}")
        typer.echo(f"  Tolerance: {row.cause.risk_tolerance or '-'}")
        if row.exposure is None:
            typer.echo("  Exposure:  not recorded")
            continue
        value = row.exposure.exposure_value
        unit = f" {row.exposure.exposure_unit}" if row.exposure.exposure_unit else ""
        typer.echo(f"  Exposure:  {value if value is not None else '-'}{unit}")
        if row.exposure.notes:
            typer.echo(f"  Notes:     {row.exposure.notes}")
        if row.guidance:
            color = typer.colors.RED if row.exceeds_tolerance else typer.colors.GREEN
            typer.echo(typer.style(f"  {row.guidance}", fg=color))
        for control in row.exposure.monitored_controls:
            performance = control.performance_percentage
            shown = f"{performance:g}%" if performance is not None else "-"
            typer.echo(
                f"  - {control.control_measure_id:<14} "
                f"realization {control.realization_kci or '-'}, performance {shown}"
            )


@monitor_app.command("delete")
def monitor_delete(
    session_id: str = typer.Argument(..., help="Monitoring session ID"),
    yes: bool = YES_OPTION,
    upr: str = UPR_OPTION,
    period: str = PERIOD_OPTION,
):
    """Delete a monitoring session with its recorded exposures."""
    from riskwise.services import delete_monitoring_session
    from riskwise.validation import sanitize_record_id

    _confirm_cascade(f"monitoring session {session_id}", yes)
    report = _call(
        lambda store: delete_monitoring_session(
            _tenant(upr, period), store, sanitize_record_id(session_id),
            prefer_batch=load_config().cascade.prefer_batch,
        )
    )
    _echo_report(report)


# Scoring


@app.command()
def classify(
    likelihood: str = typer.Argument(..., help="Likelihood level"),
    impact: str = typer.Argument(..., help="Impact level"),
):
    """Score a likelihood/impact pair."""
    from riskwise.scoring import classify as classify_pair
    from riskwise.scoring import recommended_control_types

    try:
        assessment = classify_pair(likelihood, impact)
    except RiskwiseError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)

    _echo_assessment(likelihood, impact)
    labels = ", ".join(t.label for t in recommended_control_types(assessment.level))
    typer.echo(f"Controls: {labels}")


@app.command()
def matrix():
    """Show the 5x5 risk matrix."""
    from rich.console import Console
    from rich.table import Table

    from riskwise.models.enums import Impact, Likelihood
    from riskwise.scoring import risk_matrix

    styles = {
        RiskLevel.SANGAT_TINGGI: "bold red",
        RiskLevel.TINGGI: "red",
        RiskLevel.SEDANG: "yellow",
        RiskLevel.RENDAH: "green",
        RiskLevel.SANGAT_RENDAH: "cyan",
    }

    table = Table(title="Risk matrix (likelihood x impact)")
    table.add_column("Likelihood \\ Impact")
    for impact in Impact:
        table.add_column(impact.value, justify="center")
    for likelihood, row in zip(Likelihood, risk_matrix()):
        table.add_row(
            likelihood.value,
            *(f"[{styles[cell.level]}]{cell.score} {cell.level.value}[/]" for cell in row),
        )
    Console().print(table)


@app.command()
def priority(
    ascending: bool = typer.Option(False, "--ascending", help="Lowest score first"),
    upr: str = UPR_OPTION,
    period: str = PERIOD_OPTION,
):
    """Rank analyzed risk causes by score."""
    from riskwise.services import list_prioritized_risk_causes

    ranked = _call(
        lambda store: list_prioritized_risk_causes(
            _tenant(upr, period), store, descending=not ascending
        )
    )
    if not ranked:
        typer.echo("No analyzed risk causes.")
        return

    typer.echo(f"{'SCORE':<6} {'LEVEL':<15} {'CODE':<14} DESCRIPTION")
    typer.echo("-" * 80)
    for item in ranked:
        level = item.assessment.level
        typer.echo(
            f"{item.assessment.score:<6} "
            + typer.style(f"{level.value:<15}", fg=_level_color(level))
            + f" {item.code:<14} {item.cause.description}"
        )


@app.command()
def serve():
    """Start the MCP server (stdio transport)."""
    from riskwise.__main__ import main as serve_main

    asyncio.run(serve_main())


if __name__ == "__main__":
    app()
