# riskwise/suggestions/schemas.py
"""
Schemas for AI suggestion output.

Models accept the camelCase keys the prompts ask for as well as snake_case,
and tolerate common LLM field-name variations. Closed-enum fields are
coerced to None when the value isn't a member of the enumeration.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from riskwise.models.enums import (
    ControlMeasureType,
    Impact,
    Likelihood,
    RiskCategory,
    RiskSource,
    member_or_none,
)

NO_JUSTIFICATION = "Tidak ada justifikasi tambahan dari AI."
LIKELIHOOD_UNAVAILABLE = (
    "AI tidak dapat memberikan saran level kemungkinan berdasarkan informasi yang diberikan."
)
IMPACT_UNAVAILABLE = (
    "AI tidak dapat memberikan saran level dampak berdasarkan informasi yang diberikan."
)

KRI_UNAVAILABLE = "AI tidak dapat memberikan saran KRI saat ini."
TOLERANCE_UNAVAILABLE = "AI tidak dapat memberikan saran Toleransi Risiko saat ini."
JUSTIFICATION_UNAVAILABLE = "Tidak ada justifikasi dari AI."
NO_KRI = "Tidak ada saran KRI dari AI."
NO_KRI_JUSTIFICATION = "Tidak ada justifikasi KRI dari AI."
NO_TOLERANCE = "Tidak ada saran Toleransi dari AI."
NO_TOLERANCE_JUSTIFICATION = "Tidak ada justifikasi Toleransi dari AI."


def _rename(data: dict, aliases: dict[str, str]) -> dict:
    data = dict(data)
    for old, new in aliases.items():
        if old in data and new not in data:
            data[new] = data.pop(old)
    return data


def _clean_text(value: Any) -> str:
    return value.strip() if isinstance(value, str) else ""


class SuggestionModel(BaseModel):
    """Base for suggestion payloads: camelCase aliases, unknown keys ignored."""

    model_config = ConfigDict(extra="ignore", alias_generator=to_camel, populate_by_name=True)


class RiskCauseSuggestion(SuggestionModel):
    """One brainstormed cause."""

    description: str = Field(default="", description="Short description of the cause")
    source: RiskSource | None = Field(
        default=None,
        description="Internal or Eksternal; None when undetermined",
    )

    @model_validator(mode="before")
    @classmethod
    def _normalize_field_names(cls, data: Any) -> Any:
        """Handle LLM field name variations."""
        if not isinstance(data, dict):
            return data
        return _rename(data, {"desc": "description", "cause": "description", "sumber": "source"})

    @field_validator("description", mode="before")
    @classmethod
    def _text(cls, value: Any) -> str:
        return _clean_text(value)

    @field_validator("source", mode="before")
    @classmethod
    def _known_source(cls, value: Any) -> RiskSource | None:
        return member_or_none(RiskSource, value)


class RiskCauseSuggestions(SuggestionModel):
    suggested_causes: list[RiskCauseSuggestion] = Field(default_factory=list)


class PotentialRiskSuggestion(SuggestionModel):
    """One brainstormed potential risk."""

    description: str = Field(default="", description="Short description of the risk")
    category: RiskCategory | None = Field(
        default=None,
        description="Best-fitting category; None when nothing fits",
    )

    @model_validator(mode="before")
    @classmethod
    def _normalize_field_names(cls, data: Any) -> Any:
        """Handle LLM field name variations; plain strings become descriptions."""
        if isinstance(data, str):
            return {"description": data}
        if not isinstance(data, dict):
            return data
        return _rename(data, {"desc": "description", "risk": "description", "kategori": "category"})

    @field_validator("description", mode="before")
    @classmethod
    def _text(cls, value: Any) -> str:
        return _clean_text(value)

    @field_validator("category", mode="before")
    @classmethod
    def _known_category(cls, value: Any) -> RiskCategory | None:
        return member_or_none(RiskCategory, value)


class PotentialRiskSuggestions(SuggestionModel):
    potential_risks: list[PotentialRiskSuggestion] = Field(default_factory=list)


class RiskParameterSuggestion(SuggestionModel):
    """Suggested likelihood and impact with justifications."""

    suggested_likelihood: Likelihood | None = None
    likelihood_justification: str = NO_JUSTIFICATION
    suggested_impact: Impact | None = None
    impact_justification: str = NO_JUSTIFICATION

    @model_validator(mode="before")
    @classmethod
    def _drop_blank_justifications(cls, data: Any) -> Any:
        """Blank or non-text justifications fall back to the default."""
        if not isinstance(data, dict):
            return data
        data = _rename(data, {"likelihood": "suggestedLikelihood", "impact": "suggestedImpact"})
        for key in (
            "likelihoodJustification",
            "likelihood_justification",
            "impactJustification",
            "impact_justification",
        ):
            if key in data and not _clean_text(data[key]):
                data.pop(key)
        return data

    @field_validator("suggested_likelihood", mode="before")
    @classmethod
    def _known_likelihood(cls, value: Any) -> Likelihood | None:
        return member_or_none(Likelihood, value)

    @field_validator("suggested_impact", mode="before")
    @classmethod
    def _known_impact(cls, value: Any) -> Impact | None:
        return member_or_none(Impact, value)

    @classmethod
    def unavailable(cls) -> "RiskParameterSuggestion":
        """Result used when the provider produced nothing at all."""
        return cls(
            likelihood_justification=LIKELIHOOD_UNAVAILABLE,
            impact_justification=IMPACT_UNAVAILABLE,
        )


class ControlMeasureSuggestion(SuggestionModel):
    """
    One suggested control.

    No defaults: an entry missing its type, description or justification is
    not usable and is rejected as a whole.
    """

    description: str = Field(min_length=1)
    suggested_control_type: ControlMeasureType
    justification: str = Field(min_length=1)

    @model_validator(mode="before")
    @classmethod
    def _normalize_field_names(cls, data: Any) -> Any:
        """Handle LLM field name variations."""
        if not isinstance(data, dict):
            return data
        return _rename(
            data,
            {
                "controlType": "suggestedControlType",
                "control_type": "suggestedControlType",
                "type": "suggestedControlType",
                "reason": "justification",
            },
        )

    @field_validator("description", "justification", mode="before")
    @classmethod
    def _text(cls, value: Any) -> str:
        return _clean_text(value)

    @field_validator("suggested_control_type", mode="before")
    @classmethod
    def _exact_type(cls, value: Any) -> Any:
        # Exact codes only ("prv" or "Preventif" are rejected)
        return member_or_none(ControlMeasureType, value) or value


class ControlMeasureSuggestions(SuggestionModel):
    suggestions: list[ControlMeasureSuggestion] = Field(default_factory=list)


class KriToleranceSuggestion(SuggestionModel):
    """Suggested key risk indicator and tolerance, with justifications."""

    suggested_kri: str = Field(default=NO_KRI, alias="suggestedKRI")
    kri_justification: str = NO_KRI_JUSTIFICATION
    suggested_tolerance: str = NO_TOLERANCE
    tolerance_justification: str = NO_TOLERANCE_JUSTIFICATION

    @model_validator(mode="before")
    @classmethod
    def _drop_blank_fields(cls, data: Any) -> Any:
        """Blank or non-text fields fall back to per-field placeholders."""
        if not isinstance(data, dict):
            return data
        data = _rename(data, {"suggestedKri": "suggestedKRI", "kri": "suggestedKRI"})
        return {key: value for key, value in data.items() if _clean_text(value)}

    @classmethod
    def unavailable(cls) -> "KriToleranceSuggestion":
        """Result used when the provider produced nothing at all."""
        return cls(
            suggested_kri=KRI_UNAVAILABLE,
            kri_justification=JUSTIFICATION_UNAVAILABLE,
            suggested_tolerance=TOLERANCE_UNAVAILABLE,
            tolerance_justification=JUSTIFICATION_UNAVAILABLE,
        )
