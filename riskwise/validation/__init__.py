# riskwise/validation/__init__.py
"""Input validation and sanitization utilities."""

from .sanitize import sanitize_optional_text, sanitize_record_id, sanitize_text

__all__ = [
    "sanitize_text",
    "sanitize_optional_text",
    "sanitize_record_id",
]
