# riskwise/errors.py
"""
Exception taxonomy for riskwise.

Services raise these; the MCP layer converts them to ToolError and the CLI
prints them.
"""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from riskwise.cascade import CascadeReport


class RiskwiseError(Exception):
    """Base class for all riskwise errors."""


class UnknownLevel(RiskwiseError, ValueError):
    """
    A rating value outside its declared scale reached the scoring layer.

    Signals that something bypassed sanitization; treat as data corruption,
    not as a user mistake.
    """

    def __init__(self, scale: str, value: object) -> None:
        self.scale = scale
        self.value = value
        super().__init__(f"Unknown {scale} level: {value!r}")


class InvalidRecordError(RiskwiseError, ValueError):
    """User-supplied record data was rejected."""


class RecordNotFoundError(RiskwiseError, LookupError):
    """Record does not exist or belongs to another tenant."""

    def __init__(self, kind: str, record_id: str) -> None:
        self.kind = kind
        self.record_id = record_id
        super().__init__(f"{kind} {record_id} not found")


class DuplicateIdentifierError(RiskwiseError):
    """A code or sequence number is already taken within its scope."""


class CascadeIncompleteError(RiskwiseError):
    """A cascading delete stopped part-way; the report lists what was removed."""

    def __init__(self, report: "CascadeReport") -> None:
        self.report = report
        super().__init__(
            f"Cascade delete of {report.root_kind.value} {report.root_id} stopped at "
            f"{report.failed_step}: {report.error} "
            f"({len(report.deleted)} record(s) already deleted)"
        )
