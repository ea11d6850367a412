# tests/unit/test_sequencer.py
"""Tests for goal code assignment and child sequence numbering."""

from types import SimpleNamespace

import pytest

from riskwise.identifiers import (
    FALLBACK_PREFIX,
    assign_goal_code,
    control_measure_code,
    goal_code_prefix,
    goal_code_sort_key,
    next_sequence,
    potential_risk_code,
    risk_cause_code,
)
from riskwise.identifiers.sequencer import code_suffix
from riskwise.models.enums import ControlMeasureType


def _sibling(sequence_number, control_type=None):
    return SimpleNamespace(sequence_number=sequence_number, control_type=control_type)


class TestGoalCodePrefix:
    @pytest.mark.parametrize(
        "name,prefix",
        [("alpha", "A"), ("Apple", "A"), ("zebra", "Z"), ("7-Eleven", "X"), ("", "X"), (" lead", "X")],
    )
    def test_prefix(self, name, prefix):
        assert goal_code_prefix(name) == prefix

    def test_non_ascii_letter_falls_back(self):
        assert goal_code_prefix("Éclair") == FALLBACK_PREFIX


class TestCodeSuffix:
    def test_leading_digits_only(self):
        assert code_suffix("A12b", "A") == 12

    def test_other_prefix(self):
        assert code_suffix("B3", "A") is None

    def test_no_digits(self):
        assert code_suffix("AB1", "A") is None


class TestAssignGoalCode:
    def test_first_goal_gets_one(self):
        assert assign_goal_code("alpha", []) == "A1"

    def test_same_letter_increments(self):
        assert assign_goal_code("Apple", ["A1"]) == "A2"

    def test_other_letters_are_independent(self):
        assert assign_goal_code("Budget", ["A1", "A2"]) == "B1"

    def test_fallback_prefix_counts_x_codes(self):
        assert assign_goal_code("7-Eleven", ["A1"]) == "X1"
        assert assign_goal_code("9 lives", ["X1"]) == "X2"

    def test_accepts_goal_objects(self):
        goals = [SimpleNamespace(code="A1"), SimpleNamespace(code="A3")]
        assert assign_goal_code("Another", goals) == "A4"

    def test_freed_numbers_are_not_reused(self):
        # A2 was deleted; A3 survives
        assert assign_goal_code("Again", ["A1", "A3"]) == "A4"

    def test_is_deterministic_for_same_input(self):
        existing = ["A1", "B1"]
        assert assign_goal_code("apex", existing) == assign_goal_code("apex", existing)


class TestNextSequence:
    def test_first_child(self):
        assert next_sequence([]) == 1

    def test_contiguous(self):
        assert next_sequence([_sibling(1), _sibling(2)]) == 3

    def test_gap_from_deleted_middle_sibling(self):
        # PR2 deleted: PR1 and PR3 survive, next is PR4 (no reuse, no renumbering)
        assert next_sequence([_sibling(1), _sibling(3)]) == 4

    def test_gap_from_deleted_first_sibling(self):
        assert next_sequence([_sibling(2)]) == 3

    def test_controls_numbered_per_type(self):
        siblings = [
            _sibling(1, ControlMeasureType.PREVENTIVE),
            _sibling(2, ControlMeasureType.PREVENTIVE),
            _sibling(1, ControlMeasureType.RISK_MITIGATING),
        ]
        assert next_sequence(siblings, ControlMeasureType.PREVENTIVE) == 3
        assert next_sequence(siblings, ControlMeasureType.RISK_MITIGATING) == 2
        assert next_sequence(siblings, ControlMeasureType.CORRECTIVE) == 1


class TestDisplayCodes:
    def test_potential_risk_code(self):
        assert potential_risk_code("A1", 2) == "A1.PR2"

    def test_risk_cause_code(self):
        assert risk_cause_code("A1", 2, 1) == "A1.PR2.PC1"

    def test_control_measure_code(self):
        code = control_measure_code("A1", 2, 1, ControlMeasureType.PREVENTIVE, 3)
        assert code == "A1.PR2.PC1.Prv.3"


class TestGoalCodeSortKey:
    def test_numeric_suffix_order(self):
        codes = ["A10", "B1", "A2", "A1"]
        assert sorted(codes, key=goal_code_sort_key) == ["A1", "A2", "A10", "B1"]

    def test_code_without_digits_sorts_first(self):
        assert goal_code_sort_key("A") == ("A", 0)
