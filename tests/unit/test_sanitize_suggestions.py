# tests/unit/test_sanitize_suggestions.py
"""
Tests for AI suggestion sanitizers.

Sanitizers accept anything and always return a complete, typed result.
"""

import pytest

from riskwise.models.enums import ControlMeasureType, Impact, Likelihood, RiskCategory, RiskSource
from riskwise.suggestions import (
    sanitize_control_measure_suggestions,
    sanitize_kri_tolerance,
    sanitize_potential_risk_suggestions,
    sanitize_risk_cause_suggestions,
    sanitize_risk_parameters,
)
from riskwise.suggestions.schemas import (
    IMPACT_UNAVAILABLE,
    JUSTIFICATION_UNAVAILABLE,
    KRI_UNAVAILABLE,
    LIKELIHOOD_UNAVAILABLE,
    NO_JUSTIFICATION,
    NO_KRI,
    NO_KRI_JUSTIFICATION,
    NO_TOLERANCE,
    NO_TOLERANCE_JUSTIFICATION,
    TOLERANCE_UNAVAILABLE,
)

GARBAGE = [None, {}, "not json", 42, [None]]


class TestRiskCauseSuggestions:
    @pytest.mark.parametrize("raw", GARBAGE)
    def test_garbage_yields_empty(self, raw):
        assert sanitize_risk_cause_suggestions(raw).suggested_causes == []

    def test_valid_entries(self):
        raw = {
            "suggestedCauses": [
                {"description": "Pegawai kurang terlatih", "source": "Internal"},
                {"description": "Perubahan regulasi", "source": "Eksternal"},
            ]
        }
        result = sanitize_risk_cause_suggestions(raw)
        assert [c.source for c in result.suggested_causes] == [
            RiskSource.INTERNAL,
            RiskSource.EKSTERNAL,
        ]

    def test_unknown_source_becomes_none(self):
        raw = {"suggestedCauses": [{"description": "Banjir", "source": "external"}]}
        cause = sanitize_risk_cause_suggestions(raw).suggested_causes[0]
        assert cause.description == "Banjir"
        assert cause.source is None

    def test_blank_descriptions_are_skipped(self):
        raw = [{"description": "  "}, {"description": "Server down", "source": "Internal"}]
        result = sanitize_risk_cause_suggestions(raw)
        assert [c.description for c in result.suggested_causes] == ["Server down"]


class TestPotentialRiskSuggestions:
    @pytest.mark.parametrize("raw", GARBAGE)
    def test_garbage_yields_empty(self, raw):
        assert sanitize_potential_risk_suggestions(raw).potential_risks == []

    def test_valid_and_invalid_category(self):
        raw = {
            "potentialRisks": [
                {"description": "Denda pajak", "category": "Keuangan"},
                {"description": "Demo warga", "category": "Sosial"},
            ]
        }
        risks = sanitize_potential_risk_suggestions(raw).potential_risks
        assert risks[0].category is RiskCategory.KEUANGAN
        assert risks[1].category is None
        assert risks[1].description == "Demo warga"

    def test_legacy_string_list(self):
        result = sanitize_potential_risk_suggestions({"risks": ["Kebocoran data", "  "]})
        assert [r.description for r in result.potential_risks] == ["Kebocoran data"]
        assert result.potential_risks[0].category is None


class TestRiskParameters:
    @pytest.mark.parametrize("raw", [None, "text", [1, 2]])
    def test_missing_payload_is_unavailable(self, raw):
        result = sanitize_risk_parameters(raw)
        assert result.suggested_likelihood is None
        assert result.suggested_impact is None
        assert result.likelihood_justification == LIKELIHOOD_UNAVAILABLE
        assert result.impact_justification == IMPACT_UNAVAILABLE

    def test_empty_object_gets_default_justifications(self):
        result = sanitize_risk_parameters({})
        assert result.suggested_likelihood is None
        assert result.likelihood_justification == NO_JUSTIFICATION
        assert result.impact_justification == NO_JUSTIFICATION

    def test_valid_levels(self):
        result = sanitize_risk_parameters(
            {
                "suggestedLikelihood": "Sering",
                "likelihoodJustification": "Terjadi tiap bulan",
                "suggestedImpact": "Mayor",
                "impactJustification": "",
            }
        )
        assert result.suggested_likelihood is Likelihood.SERING
        assert result.suggested_impact is Impact.MAYOR
        assert result.likelihood_justification == "Terjadi tiap bulan"
        assert result.impact_justification == NO_JUSTIFICATION

    def test_non_member_levels_become_none(self):
        result = sanitize_risk_parameters({"suggestedLikelihood": "High", "suggestedImpact": "mayor"})
        assert result.suggested_likelihood is None
        assert result.suggested_impact is None


class TestControlMeasureSuggestions:
    @pytest.mark.parametrize("raw", GARBAGE)
    def test_garbage_yields_empty(self, raw):
        assert sanitize_control_measure_suggestions(raw).suggestions == []

    def test_invalid_entries_are_dropped(self):
        raw = {
            "suggestions": [
                {"description": "SOP verifikasi", "suggestedControlType": "Prv", "justification": "Mencegah"},
                {"description": "Asuransi", "suggestedControlType": "Preventif", "justification": "x"},
                {"description": "Backup", "suggestedControlType": "Crr", "justification": ""},
                {"description": "", "suggestedControlType": "RM", "justification": "y"},
                {"description": "Audit", "controlType": "RM", "reason": "Deteksi dini"},
            ]
        }
        result = sanitize_control_measure_suggestions(raw)
        assert [(s.description, s.suggested_control_type) for s in result.suggestions] == [
            ("SOP verifikasi", ControlMeasureType.PREVENTIVE),
            ("Audit", ControlMeasureType.RISK_MITIGATING),
        ]

    def test_limit(self):
        entry = {"description": "d", "suggestedControlType": "Prv", "justification": "j"}
        result = sanitize_control_measure_suggestions([entry] * 5, limit=3)
        assert len(result.suggestions) == 3


class TestKriTolerance:
    @pytest.mark.parametrize("raw", [None, "text", []])
    def test_missing_payload_is_unavailable(self, raw):
        result = sanitize_kri_tolerance(raw)
        assert result.suggested_kri == KRI_UNAVAILABLE
        assert result.kri_justification == JUSTIFICATION_UNAVAILABLE
        assert result.suggested_tolerance == TOLERANCE_UNAVAILABLE
        assert result.tolerance_justification == JUSTIFICATION_UNAVAILABLE

    def test_missing_fields_get_placeholders(self):
        result = sanitize_kri_tolerance({"suggestedKRI": "Jumlah insiden per bulan"})
        assert result.suggested_kri == "Jumlah insiden per bulan"
        assert result.kri_justification == NO_KRI_JUSTIFICATION
        assert result.suggested_tolerance == NO_TOLERANCE
        assert result.tolerance_justification == NO_TOLERANCE_JUSTIFICATION

    def test_blank_fields_get_placeholders(self):
        result = sanitize_kri_tolerance({"suggestedKRI": " ", "suggestedTolerance": "Maks 2"})
        assert result.suggested_kri == NO_KRI
        assert result.suggested_tolerance == "Maks 2"

    def test_serializes_with_prompt_keys(self):
        dumped = sanitize_kri_tolerance({}).model_dump(by_alias=True)
        assert set(dumped) == {
            "suggestedKRI",
            "kriJustification",
            "suggestedTolerance",
            "toleranceJustification",
        }
