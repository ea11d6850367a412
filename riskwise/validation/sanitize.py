# riskwise/validation/sanitize.py
"""
Input sanitization and validation utilities.

Checks user-supplied text and record ids before they reach a service.
"""

import logging
import re

from riskwise.errors import InvalidRecordError

logger = logging.getLogger(__name__)


def sanitize_text(text: str | None, field: str = "Description", max_length: int = 5000) -> str:
    """
    Sanitize and validate required free text.

    Strips whitespace and validates non-empty.
    Truncates to max_length if needed.

    Args:
        text: User-provided text
        field: Field name used in error messages
        max_length: Maximum allowed length (default 5000)

    Returns:
        Cleaned text

    Raises:
        InvalidRecordError: If text is missing or empty after stripping
    """
    cleaned = text.strip() if isinstance(text, str) else ""

    if not cleaned:
        raise InvalidRecordError(f"{field} cannot be empty")

    if len(cleaned) > max_length:
        logger.warning(f"{field} truncated from {len(cleaned)} to {max_length} characters")
        cleaned = cleaned[:max_length]

    return cleaned


def sanitize_optional_text(text: str | None, max_length: int = 5000) -> str | None:
    """Strip optional free text; blank becomes None."""
    if text is None:
        return None
    cleaned = text.strip()
    if not cleaned:
        return None
    return cleaned[:max_length]


def sanitize_record_id(record_id: str) -> str:
    """
    Sanitize and validate a record ID.

    Record IDs must be alphanumeric with hyphens only, 8-64 characters.

    Raises:
        InvalidRecordError: If record ID format is invalid
    """
    # Validate format: alphanumeric + hyphens, 8-64 chars
    pattern = r"^[a-zA-Z0-9-]{8,64}$"
    if not isinstance(record_id, str) or not re.match(pattern, record_id):
        raise InvalidRecordError(
            f"Invalid record ID '{record_id}': must be 8-64 alphanumeric characters or hyphens"
        )

    return record_id
