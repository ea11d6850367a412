# riskwise/models/responses.py
"""
Response shapes for MCP tool and CLI output.

Records serialize to plain JSON-safe dicts; derived values (risk level,
cascade outcome) use Pydantic models for consistency.
"""

import dataclasses
from datetime import date, datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field

from riskwise.cascade import CascadeReport
from riskwise.models.records import Record
from riskwise.scoring import RiskAssessment, classify


def _json_value(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return value


class AssessmentResponse(BaseModel):
    """Derived risk score and level."""

    score: int | None = Field(description="likelihood weight x impact weight (1-25), None if unanalyzed")
    level: str = Field(description="Risk level, or N/A when likelihood or impact is missing")

    @classmethod
    def from_assessment(cls, assessment: RiskAssessment) -> "AssessmentResponse":
        return cls(score=assessment.score, level=assessment.level.value)


class CascadeResponse(BaseModel):
    """Outcome of a cascading delete."""

    root_kind: str
    root_id: str
    completed: bool
    deleted: list[dict[str, str]] = Field(description="Deleted records in deletion order")
    failed_step: str | None = None
    error: str | None = None
    transactional: bool = Field(description="True if the deletions ran in one transaction")

    @classmethod
    def from_report(cls, report: CascadeReport) -> "CascadeResponse":
        return cls(
            root_kind=report.root_kind.value,
            root_id=report.root_id,
            completed=report.completed,
            deleted=[{"kind": kind.value, "id": record_id} for kind, record_id in report.deleted],
            failed_step=report.failed_step,
            error=report.error,
            transactional=report.transactional,
        )


def record_payload(record: Record, code: str | None = None) -> dict[str, Any]:
    """
    Serialize a record to a JSON-safe dict.

    A derived display code, when given, is added under "display_code".

    Records carrying likelihood and impact also get their derived assessment
    under "assessment"; it is computed here and never stored.
    """
    payload = {key: _json_value(value) for key, value in dataclasses.asdict(record).items()}
    if code is not None:
        payload["display_code"] = code
    if hasattr(record, "likelihood") and hasattr(record, "impact"):
        assessment = classify(record.likelihood, record.impact)
        payload["assessment"] = AssessmentResponse.from_assessment(assessment).model_dump()
    return payload


def exposure_overview_payload(overview) -> dict[str, Any]:
    """
    Serialize one row of a monitoring overview.

    The cause carries its display code; exposure is None until recorded.
    Tolerance comparison and guidance are derived on every call.
    """
    return {
        "risk_cause": record_payload(overview.cause, overview.code),
        "exposure": record_payload(overview.exposure) if overview.exposure else None,
        "exceeds_tolerance": overview.exceeds_tolerance,
        "guidance": overview.guidance,
    }
