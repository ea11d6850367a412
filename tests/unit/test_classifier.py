# tests/unit/test_classifier.py
"""
Tests for risk classification.

Covers the full 5x5 grid, band boundaries, the N/A case and control guidance.
"""

import pytest

from riskwise.errors import UnknownLevel
from riskwise.models.enums import ControlMeasureType, Impact, Likelihood, RiskLevel
from riskwise.scoring import (
    NOT_ASSESSED,
    band_for_score,
    classify,
    recommended_control_types,
    risk_matrix,
)

EXPECTED_BANDS = {
    range(1, 6): RiskLevel.SANGAT_RENDAH,
    range(6, 12): RiskLevel.RENDAH,
    range(12, 16): RiskLevel.SEDANG,
    range(16, 20): RiskLevel.TINGGI,
    range(20, 26): RiskLevel.SANGAT_TINGGI,
}


def _expected_level(score: int) -> RiskLevel:
    for scores, level in EXPECTED_BANDS.items():
        if score in scores:
            return level
    raise AssertionError(f"no band for {score}")


class TestClassify:
    @pytest.mark.parametrize(
        "l_weight,likelihood", list(enumerate(Likelihood, start=1))
    )
    @pytest.mark.parametrize("i_weight,impact", list(enumerate(Impact, start=1)))
    def test_every_combination(self, l_weight, likelihood, i_weight, impact):
        assessment = classify(likelihood, impact)
        assert assessment.score == l_weight * i_weight
        assert assessment.level is _expected_level(l_weight * i_weight)
        assert assessment.is_complete

    @pytest.mark.parametrize(
        "likelihood,impact,score,level",
        [
            (Likelihood.HAMPIR_PASTI, Impact.SANGAT_SIGNIFIKAN, 25, RiskLevel.SANGAT_TINGGI),
            (Likelihood.SERING, Impact.SANGAT_SIGNIFIKAN, 20, RiskLevel.SANGAT_TINGGI),
            (Likelihood.SERING, Impact.MAYOR, 16, RiskLevel.TINGGI),
            (Likelihood.KADANG_KADANG, Impact.SANGAT_SIGNIFIKAN, 15, RiskLevel.SEDANG),
            (Likelihood.KADANG_KADANG, Impact.MAYOR, 12, RiskLevel.SEDANG),
            (Likelihood.JARANG, Impact.SANGAT_SIGNIFIKAN, 10, RiskLevel.RENDAH),
            (Likelihood.JARANG, Impact.MODERAT, 6, RiskLevel.RENDAH),
            (Likelihood.HAMPIR_PASTI, Impact.TIDAK_SIGNIFIKAN, 5, RiskLevel.SANGAT_RENDAH),
            (Likelihood.HAMPIR_TIDAK_TERJADI, Impact.TIDAK_SIGNIFIKAN, 1, RiskLevel.SANGAT_RENDAH),
        ],
    )
    def test_band_boundaries(self, likelihood, impact, score, level):
        assessment = classify(likelihood, impact)
        assert (assessment.score, assessment.level) == (score, level)

    def test_accepts_string_values(self):
        assessment = classify("Sering", "Mayor")
        assert assessment.score == 16
        assert assessment.level is RiskLevel.TINGGI

    @pytest.mark.parametrize(
        "likelihood,impact",
        [(None, Impact.MAYOR), (Likelihood.SERING, None), (None, None)],
    )
    def test_missing_rating_is_not_available(self, likelihood, impact):
        assessment = classify(likelihood, impact)
        assert assessment == NOT_ASSESSED
        assert assessment.score is None
        assert assessment.level is RiskLevel.NOT_AVAILABLE
        assert not assessment.is_complete

    def test_unknown_level_raises(self):
        with pytest.raises(UnknownLevel):
            classify("Kadang kadang", Impact.MINOR)

    def test_band_for_score_below_range_raises(self):
        with pytest.raises(ValueError):
            band_for_score(0)


class TestRiskMatrix:
    def test_matrix_is_five_by_five(self):
        matrix = risk_matrix()
        assert len(matrix) == 5
        assert all(len(row) == 5 for row in matrix)

    def test_corners(self):
        matrix = risk_matrix()
        assert matrix[0][0].score == 1
        assert matrix[0][0].level is RiskLevel.SANGAT_RENDAH
        assert matrix[4][4].score == 25
        assert matrix[4][4].level is RiskLevel.SANGAT_TINGGI

    def test_rows_are_likelihood_columns_are_impact(self):
        matrix = risk_matrix()
        # Sering (row 4) x Minor (column 2)
        assert matrix[3][1] == classify(Likelihood.SERING, Impact.MINOR)


class TestRecommendedControlTypes:
    def test_high_levels_get_all_types(self):
        for level in (RiskLevel.SANGAT_TINGGI, RiskLevel.TINGGI):
            assert set(recommended_control_types(level)) == set(ControlMeasureType)

    def test_medium_gets_preventive_and_mitigating(self):
        assert recommended_control_types(RiskLevel.SEDANG) == (
            ControlMeasureType.PREVENTIVE,
            ControlMeasureType.RISK_MITIGATING,
        )

    def test_low_levels_get_preventive(self):
        for level in (RiskLevel.RENDAH, RiskLevel.SANGAT_RENDAH):
            assert recommended_control_types(level) == (ControlMeasureType.PREVENTIVE,)

    def test_not_available_gets_all_types(self):
        assert set(recommended_control_types(RiskLevel.NOT_AVAILABLE)) == set(ControlMeasureType)
