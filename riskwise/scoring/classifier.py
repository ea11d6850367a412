# riskwise/scoring/classifier.py
"""
Risk classification: likelihood x impact -> score and risk band.

Bands are fixed. Classification is pure and meant to be called at read time;
the derived level is never stored on a record.
"""

from dataclasses import dataclass

from riskwise.models.enums import ControlMeasureType, Impact, Likelihood, RiskLevel

from .scale import IMPACT_SCALE, LIKELIHOOD_SCALE

# (inclusive lower bound, band), highest first
RISK_BANDS: tuple[tuple[int, RiskLevel], ...] = (
    (20, RiskLevel.SANGAT_TINGGI),
    (16, RiskLevel.TINGGI),
    (12, RiskLevel.SEDANG),
    (6, RiskLevel.RENDAH),
    (1, RiskLevel.SANGAT_RENDAH),
)

_GUIDANCE = {
    RiskLevel.SANGAT_TINGGI: (
        ControlMeasureType.PREVENTIVE,
        ControlMeasureType.RISK_MITIGATING,
        ControlMeasureType.CORRECTIVE,
    ),
    RiskLevel.TINGGI: (
        ControlMeasureType.PREVENTIVE,
        ControlMeasureType.RISK_MITIGATING,
        ControlMeasureType.CORRECTIVE,
    ),
    RiskLevel.SEDANG: (
        ControlMeasureType.PREVENTIVE,
        ControlMeasureType.RISK_MITIGATING,
    ),
    RiskLevel.RENDAH: (ControlMeasureType.PREVENTIVE,),
    RiskLevel.SANGAT_RENDAH: (ControlMeasureType.PREVENTIVE,),
}


@dataclass(frozen=True)
class RiskAssessment:
    """Score and band for one likelihood/impact pair."""

    score: int | None
    level: RiskLevel

    @property
    def is_complete(self) -> bool:
        """True when both ratings were present."""
        return self.score is not None


NOT_ASSESSED = RiskAssessment(score=None, level=RiskLevel.NOT_AVAILABLE)


def band_for_score(score: int) -> RiskLevel:
    """Map a 1-25 score to its band."""
    for lower_bound, level in RISK_BANDS:
        if score >= lower_bound:
            return level
    raise ValueError(f"Score {score} is below the lowest risk band")


def classify(
    likelihood: Likelihood | str | None, impact: Impact | str | None
) -> RiskAssessment:
    """
    Classify a likelihood/impact pair.

    Missing ratings mean the analysis is incomplete, which is not an error.

    Raises:
        UnknownLevel: If a rating is present but outside its scale
    """
    if likelihood is None or impact is None:
        return NOT_ASSESSED

    score = LIKELIHOOD_SCALE.weight_of(likelihood) * IMPACT_SCALE.weight_of(impact)
    return RiskAssessment(score=score, level=band_for_score(score))


def risk_matrix() -> list[list[RiskAssessment]]:
    """
    Full 5x5 matrix, rows by likelihood (ascending), columns by impact (ascending).
    """
    return [[classify(likelihood, impact) for impact in Impact] for likelihood in Likelihood]


def recommended_control_types(level: RiskLevel) -> tuple[ControlMeasureType, ...]:
    """
    Control types to favour for a given band.

    An unassessed cause gets all three types.
    """
    return _GUIDANCE.get(level, tuple(ControlMeasureType))
