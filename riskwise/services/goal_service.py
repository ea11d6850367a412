# riskwise/services/goal_service.py
"""Goal operations."""

import logging

from riskwise.cascade import CascadeReport, delete_goal_cascade
from riskwise.identifiers import assign_goal_code
from riskwise.models.enums import EntityKind
from riskwise.models.records import Goal, TenantContext, generate_record_id, utcnow
from riskwise.models.store import RecordStore
from riskwise.validation import sanitize_text

from .base import DEFAULT_MAX_RETRIES, create_with_retry, ensure_complete, require

logger = logging.getLogger(__name__)


async def create_goal(
    ctx: TenantContext,
    store: RecordStore,
    name: str,
    description: str,
    max_retries: int = DEFAULT_MAX_RETRIES,
) -> Goal:
    """
    Create a goal with the next free code for its name's prefix.

    A code collision with a concurrent creation is rejected by the store and
    retried with a fresh scan of the tenant's goals.

    Args:
        ctx: Tenant
        store: Record store
        name: Goal name; its first letter picks the code prefix
        description: Goal description
        max_retries: Extra attempts after a code collision

    Returns:
        The stored goal

    Raises:
        InvalidRecordError: If name or description is blank
        DuplicateIdentifierError: If every attempt collided
    """
    name = sanitize_text(name, "Name", max_length=500)
    description = sanitize_text(description)
    record_id = generate_record_id()

    async def build() -> Goal:
        existing = await store.list_records(EntityKind.GOAL, ctx)
        return Goal(
            id=record_id,
            upr_id=ctx.upr_id,
            period=ctx.period,
            code=assign_goal_code(name, existing),
            name=name,
            description=description,
            created_at=utcnow(),
        )

    goal = await create_with_retry(store, EntityKind.GOAL, build, max_retries)
    logger.info(f"Created goal {goal.code} ({goal.id}) for {ctx.upr_id}/{ctx.period}")
    return goal


async def get_goal(ctx: TenantContext, store: RecordStore, goal_id: str) -> Goal:
    return await require(store, EntityKind.GOAL, goal_id, ctx)


async def list_goals(ctx: TenantContext, store: RecordStore) -> list[Goal]:
    """All goals in the tenant, oldest first."""
    return await store.list_records(EntityKind.GOAL, ctx)


async def update_goal(
    ctx: TenantContext,
    store: RecordStore,
    goal_id: str,
    name: str | None = None,
    description: str | None = None,
) -> Goal:
    """
    Edit a goal's name or description.

    The code is kept even when the new name starts with another letter.
    """
    await require(store, EntityKind.GOAL, goal_id, ctx)
    patch = {}
    if name is not None:
        patch["name"] = sanitize_text(name, "Name", max_length=500)
    if description is not None:
        patch["description"] = sanitize_text(description)
    return await store.update(EntityKind.GOAL, goal_id, **patch)


async def delete_goal(
    ctx: TenantContext, store: RecordStore, goal_id: str, prefer_batch: bool = True
) -> CascadeReport:
    """
    Delete a goal and everything beneath it.

    Raises:
        RecordNotFoundError: If the goal isn't in the tenant
        CascadeIncompleteError: If the cascade stopped part-way
    """
    report = await delete_goal_cascade(goal_id, ctx, store, prefer_batch=prefer_batch)
    return ensure_complete(report)
