# riskwise/identifiers/sequencer.py
"""
Identifier assignment for goals and child records.

Identifiers are re-derived from the live sibling set on every creation; there
is no persisted counter. A stale sibling set can produce a duplicate, which
the store rejects and the calling service retries with a fresh scan.
"""

import re
from collections.abc import Iterable

from riskwise.models.enums import ControlMeasureType

FALLBACK_PREFIX = "X"

_LEADING_DIGITS = re.compile(r"^\d+")


def goal_code_prefix(name: str) -> str:
    """Uppercase first letter of the name, or X when it isn't A-Z."""
    first = name[:1].upper()
    return first if re.fullmatch(r"[A-Z]", first) else FALLBACK_PREFIX


def _code_of(goal: object) -> str | None:
    code = goal if isinstance(goal, str) else getattr(goal, "code", None)
    return code if isinstance(code, str) else None


def code_suffix(code: str, prefix: str) -> int | None:
    """
    Numeric part of a goal code that starts with prefix.

    Leading digits only, so "A12b" yields 12. Returns None when the code has
    another prefix or no digits after it.
    """
    if not code.startswith(prefix):
        return None
    match = _LEADING_DIGITS.match(code[len(prefix):])
    return int(match.group()) if match else None


def assign_goal_code(name: str, existing_goals: Iterable[object]) -> str:
    """
    Compute the code for a new goal.

    Args:
        name: Name of the goal being created
        existing_goals: Every goal (or goal code) currently in the tenant

    Returns:
        Prefix letter followed by one more than the highest suffix in use
        for that prefix. Gaps left by deleted goals are never refilled.
    """
    prefix = goal_code_prefix(name)
    highest = 0
    for goal in existing_goals:
        code = _code_of(goal)
        if code is None:
            continue
        suffix = code_suffix(code, prefix)
        if suffix is not None and suffix > highest:
            highest = suffix
    return f"{prefix}{highest + 1}"


def next_sequence(
    existing_siblings: Iterable[object],
    control_type: ControlMeasureType | None = None,
) -> int:
    """
    Compute the sequence number for a new child record.

    Siblings are grouped by parent; pass control_type to number control
    measures per type. The result is the group size plus one, raised past the
    highest surviving number when earlier siblings were deleted, so existing
    numbers are never reused or renumbered.

    Args:
        existing_siblings: Records sharing the new record's parent
        control_type: Restrict the group to control measures of this type

    Returns:
        Sequence number starting at 1
    """
    group = [
        sibling
        for sibling in existing_siblings
        if control_type is None or getattr(sibling, "control_type", None) == control_type
    ]
    highest = max((sibling.sequence_number for sibling in group), default=0)
    return max(len(group), highest) + 1


def goal_code_sort_key(code: str) -> tuple[str, int]:
    """Order goal codes by prefix, then numerically by suffix (A2 before A10)."""
    prefix = code[:1]
    return prefix, code_suffix(code, prefix) or 0
