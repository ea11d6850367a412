# tests/unit/test_validation.py
"""Tests for user input sanitization."""

import pytest

from riskwise.errors import InvalidRecordError
from riskwise.validation import sanitize_optional_text, sanitize_record_id, sanitize_text


class TestSanitizeText:
    def test_strips_whitespace(self):
        assert sanitize_text("  Keep costs down  ") == "Keep costs down"

    @pytest.mark.parametrize("value", ["", "   ", None])
    def test_blank_raises(self, value):
        with pytest.raises(InvalidRecordError, match="Name cannot be empty"):
            sanitize_text(value, "Name")

    def test_truncates_long_text(self):
        assert sanitize_text("x" * 20, max_length=5) == "xxxxx"


class TestSanitizeOptionalText:
    def test_blank_becomes_none(self):
        assert sanitize_optional_text("   ") is None
        assert sanitize_optional_text(None) is None

    def test_keeps_text(self):
        assert sanitize_optional_text(" Budi ") == "Budi"


class TestSanitizeRecordId:
    def test_accepts_generated_ids(self):
        assert sanitize_record_id("abc123def456") == "abc123def456"

    @pytest.mark.parametrize("value", ["short", "has space here", "../../etc/passwd", "x" * 65])
    def test_rejects_malformed(self, value):
        with pytest.raises(InvalidRecordError):
            sanitize_record_id(value)
