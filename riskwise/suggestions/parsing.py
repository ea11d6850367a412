# riskwise/suggestions/parsing.py
"""JSON extraction from raw LLM text."""

import json
import re
from typing import Any

_CLOSERS = {"{": "}", "[": "]"}


def _open_delimiters(text: str) -> tuple[list[str], bool]:
    """Track unclosed { and [ accounting for JSON string escaping.

    Returns (stack of open delimiters, ended_in_string).
    """
    stack: list[str] = []
    in_string = False
    escape = False
    for ch in text:
        if escape:
            escape = False
            continue
        if ch == "\\" and in_string:
            escape = True
            continue
        if ch == '"':
            in_string = not in_string
            continue
        if in_string:
            continue
        if ch in _CLOSERS:
            stack.append(ch)
        elif ch in ("}", "]") and stack:
            stack.pop()
    return stack, in_string


def _repair_truncated_json(candidate: str) -> Any | None:
    """Close a response cut off at the token limit.

    Trims back one character at a time (dropping dangling commas and colons)
    until closing the open delimiters yields valid JSON.
    """
    text = candidate
    for _ in range(200):  # max trim attempts
        stack, in_string = _open_delimiters(text)
        closed = text + ('"' if in_string else "")
        suffix = "".join(_CLOSERS[ch] for ch in reversed(stack))
        try:
            return json.loads(closed + suffix)
        except json.JSONDecodeError:
            pass

        text = text.rstrip()
        if not text:
            return None
        text = text[:-1].rstrip().rstrip(",:")

    return None


def extract_json(raw_output: str) -> Any:
    """
    Extract JSON from LLM output, handling common formatting variations.

    Tries multiple extraction strategies:
    1. Direct JSON parse (if output is pure JSON)
    2. Code fence extraction (```json ... ```)
    3. Bare code block extraction ({...} or [...])
    4. Repair of output truncated mid-object

    Args:
        raw_output: Raw text from LLM

    Returns:
        Parsed JSON value (usually a dict, sometimes a list)

    Raises:
        ValueError: If no valid JSON found
    """
    # Strategy 1: Direct parse
    try:
        return json.loads(raw_output.strip())
    except json.JSONDecodeError:
        pass

    # Strategy 2: Code fence (```json ... ```)
    fence_match = re.search(
        r"```(?:json)?\s*\n(.*?)\n```", raw_output, re.DOTALL | re.IGNORECASE
    )
    if fence_match:
        try:
            return json.loads(fence_match.group(1).strip())
        except json.JSONDecodeError:
            pass

    # Strategy 3: Bare code block ({...} or [...])
    json_match = re.search(r"(\{.*\}|\[.*\])", raw_output, re.DOTALL)
    if json_match:
        try:
            return json.loads(json_match.group(1))
        except json.JSONDecodeError:
            pass

    # Strategy 4: Truncated output
    starts = [i for i in (raw_output.find("{"), raw_output.find("[")) if i != -1]
    if starts:
        repaired = _repair_truncated_json(raw_output[min(starts):])
        if repaired is not None:
            return repaired

    preview = raw_output[:500].replace("\n", "\\n")
    raise ValueError(
        f"Could not extract valid JSON from output ({len(raw_output)} chars). "
        f"Preview: {preview}"
    )
