# riskwise/suggestions/provider.py
"""
AI suggestion provider.

Builds a prompt per suggestion kind, calls the configured LLM client and
hands whatever comes back (or None on any failure) to the matching
sanitizer. Callers always receive a typed, validated result.
"""

import logging
from typing import Any, Protocol

from riskwise.config.schema import SuggestionsConfig
from riskwise.models.enums import Impact, Likelihood, RiskCategory, RiskLevel, RiskSource, enum_values
from riskwise.models.records import Goal, PotentialRisk, RiskCause
from riskwise.scoring.classifier import classify, recommended_control_types

from .parsing import extract_json
from .prompts import load_prompt
from .sanitize import (
    sanitize_control_measure_suggestions,
    sanitize_kri_tolerance,
    sanitize_potential_risk_suggestions,
    sanitize_risk_cause_suggestions,
    sanitize_risk_parameters,
)
from .schemas import (
    ControlMeasureSuggestions,
    KriToleranceSuggestion,
    PotentialRiskSuggestions,
    RiskCauseSuggestions,
    RiskParameterSuggestion,
)

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "Anda adalah seorang ahli manajemen risiko berpengalaman di sektor publik. "
    "Anda memberikan saran yang spesifik dan dapat diimplementasikan, menggunakan "
    "Bahasa Indonesia yang baik dan benar, dan selalu menjawab dalam format JSON "
    "yang diminta tanpa teks tambahan."
)

MAX_CONTROL_SUGGESTIONS = 3

NOT_DETERMINED = "Tidak ditentukan"
NOT_ANALYZED = "Belum dianalisis"


class LLMClient(Protocol):
    """What the provider needs from an LLM client."""

    async def generate_with_fallback(self, messages: list[dict]) -> tuple[str, str]: ...


def _category_text(category: RiskCategory | None) -> str:
    return category.value if category else NOT_DETERMINED


def _control_guidance(level: RiskLevel) -> str:
    if level is RiskLevel.NOT_AVAILABLE:
        return (
            "Tingkat risiko penyebab belum ditentukan, berikan saran pengendalian umum "
            "yang mungkin efektif."
        )
    types = recommended_control_types(level)
    names = [f"{control_type.label} ({control_type.value})" for control_type in types]
    focus = names[0] if len(names) == 1 else ", ".join(names[:-1]) + " dan " + names[-1]
    return f"Karena tingkat risiko penyebab adalah '{level.value}', fokus pada tindakan {focus}."


class SuggestionProvider:
    """
    Generative suggestions for each step of the risk register.

    Every public method returns a sanitized result and never raises for LLM
    failures: unreachable servers, timeouts and unparseable output all
    degrade to the sanitizer's fallback result.
    """

    def __init__(self, client: LLMClient, config: SuggestionsConfig | None = None):
        """
        Initialize provider.

        Args:
            client: LLM client (OllamaClient or LMStudioClient)
            config: Default suggestion counts
        """
        self.client = client
        self.config = config or SuggestionsConfig()

    async def _request(self, prompt_name: str, **fields: Any) -> Any | None:
        """Render a prompt, call the LLM and parse its JSON; None on any failure."""
        prompt = load_prompt(prompt_name).format(**fields)
        messages = [
            {"role": "system", "content": SYSTEM_PROMPT},
            {"role": "user", "content": prompt},
        ]

        try:
            raw_output, model_used = await self.client.generate_with_fallback(messages)
        except Exception as e:
            logger.warning(f"Suggestion request '{prompt_name}' failed: {e}")
            return None

        try:
            payload = extract_json(raw_output)
        except ValueError as e:
            logger.warning(f"Suggestion '{prompt_name}' from {model_used} was not JSON: {e}")
            return None

        logger.info(f"Suggestion '{prompt_name}' answered by {model_used}")
        return payload

    async def brainstorm_potential_risks(
        self, goal: Goal, count: int | None = None
    ) -> PotentialRiskSuggestions:
        """Suggest potential risks that threaten a goal."""
        raw = await self._request(
            "potential_risks",
            categories=", ".join(enum_values(RiskCategory)),
            goal_name=goal.name,
            goal_description=goal.description,
            count=count or self.config.potential_risks,
        )
        return sanitize_potential_risk_suggestions(raw)

    async def brainstorm_risk_causes(
        self, risk: PotentialRisk, goal: Goal, count: int | None = None
    ) -> RiskCauseSuggestions:
        """Suggest causes of a potential risk (Fishbone approach)."""
        raw = await self._request(
            "risk_causes",
            sources=", ".join(enum_values(RiskSource)),
            risk_description=risk.description,
            risk_category=_category_text(risk.category),
            goal_description=goal.description,
            count=count or self.config.risk_causes,
        )
        return sanitize_risk_cause_suggestions(raw)

    async def suggest_risk_parameters(
        self, risk: PotentialRisk, goal: Goal, cause: RiskCause | None = None
    ) -> RiskParameterSuggestion:
        """
        Suggest likelihood and impact.

        With a cause, the analysis targets that cause; without one it targets
        the inherent potential risk.
        """
        if cause is not None:
            subject = f"Analisis untuk Penyebab Risiko: {cause.description}"
        else:
            subject = "Analisis untuk Potensi Risiko Inheren (sebelum kontrol atau analisis penyebab detail)."
        raw = await self._request(
            "risk_parameters",
            likelihood_levels=", ".join(enum_values(Likelihood)),
            impact_levels=", ".join(enum_values(Impact)),
            risk_description=risk.description,
            risk_category=_category_text(risk.category),
            goal_description=goal.description,
            analysis_subject=subject,
        )
        return sanitize_risk_parameters(raw)

    async def suggest_control_measures(
        self,
        cause: RiskCause,
        risk: PotentialRisk,
        goal: Goal,
        count: int | None = None,
    ) -> ControlMeasureSuggestions:
        """Suggest up to three control measures for an analyzed cause."""
        count = min(count or self.config.control_measures, MAX_CONTROL_SUGGESTIONS)
        assessment = classify(cause.likelihood, cause.impact)
        raw = await self._request(
            "control_measures",
            goal_description=goal.description,
            risk_description=risk.description,
            cause_description=cause.description,
            risk_level=assessment.level.value,
            likelihood=cause.likelihood.value if cause.likelihood else NOT_ANALYZED,
            impact=cause.impact.value if cause.impact else NOT_ANALYZED,
            guidance=_control_guidance(assessment.level),
            count=count,
        )
        return sanitize_control_measure_suggestions(raw, limit=count)

    async def suggest_kri_tolerance(
        self, cause: RiskCause, risk: PotentialRisk, goal: Goal
    ) -> KriToleranceSuggestion:
        """Suggest a key risk indicator and tolerance for a cause."""
        raw = await self._request(
            "kri_tolerance",
            cause_description=cause.description,
            risk_description=risk.description,
            risk_category=_category_text(risk.category),
            goal_description=goal.description,
        )
        return sanitize_kri_tolerance(raw)
