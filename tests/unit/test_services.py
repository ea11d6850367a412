# tests/unit/test_services.py
"""
Tests for the record services.

Run against the in-memory store; identifier races are simulated with a
store that rejects the first create.
"""

from datetime import date

import pytest
import pytest_asyncio

from riskwise import services
from riskwise.config.schema import TenantConfig
from riskwise.errors import (
    CascadeIncompleteError,
    DuplicateIdentifierError,
    InvalidRecordError,
    RecordNotFoundError,
)
from riskwise.models import (
    ControlMeasureType,
    EntityKind,
    Impact,
    InMemoryRecordStore,
    Likelihood,
    RiskCategory,
    RiskLevel,
    RiskSource,
    TenantContext,
)
from riskwise.suggestions.schemas import (
    ControlMeasureSuggestion,
    PotentialRiskSuggestion,
    PotentialRiskSuggestions,
    RiskCauseSuggestion,
    RiskCauseSuggestions,
)

CTX = TenantContext(upr_id="upr-keuangan", period="2025")
OTHER_CTX = TenantContext(upr_id="upr-keuangan", period="2024")


class RacingStore(InMemoryRecordStore):
    """Rejects the first `collisions` creates as if another writer won the race."""

    def __init__(self, collisions: int) -> None:
        super().__init__()
        self.collisions = collisions
        self.attempts = 0

    async def create(self, kind, record):
        self.attempts += 1
        if self.collisions > 0:
            self.collisions -= 1
            raise DuplicateIdentifierError(f"{kind.value} identifier taken")
        return await super().create(kind, record)


class FailingDeleteStore(InMemoryRecordStore):
    async def delete(self, kind, record_id):
        if kind is EntityKind.POTENTIAL_RISK:
            raise ConnectionError("lost connection")
        await super().delete(kind, record_id)


@pytest.fixture
def store() -> InMemoryRecordStore:
    return InMemoryRecordStore()


@pytest_asyncio.fixture
async def goal(store):
    return await services.create_goal(CTX, store, "Anggaran efisien", "Realisasi anggaran 95%")


@pytest_asyncio.fixture
async def risk(store, goal):
    return await services.add_potential_risk(
        CTX, store, goal.id, "Keterlambatan pencairan dana", category="Keuangan"
    )


@pytest_asyncio.fixture
async def cause(store, risk):
    return await services.add_risk_cause(
        CTX, store, risk.id, "Dokumen pendukung tidak lengkap", "Internal"
    )


class TestResolveTenant:
    def test_explicit_values_win(self):
        ctx = services.resolve_tenant("upr-a", "2025", TenantConfig(upr_id="upr-b", period="2024"))
        assert ctx == TenantContext("upr-a", "2025")

    def test_falls_back_to_config(self):
        ctx = services.resolve_tenant(None, None, TenantConfig(upr_id="upr-b", period="2024"))
        assert ctx == TenantContext("upr-b", "2024")

    def test_missing_tenant_raises(self):
        with pytest.raises(InvalidRecordError, match="UPR ID is required"):
            services.resolve_tenant(None, "2025")


class TestGoals:
    @pytest.mark.asyncio
    async def test_codes_follow_first_letter(self, store):
        alpha = await services.create_goal(CTX, store, "alpha", "first")
        apple = await services.create_goal(CTX, store, "Apple", "second")
        seven = await services.create_goal(CTX, store, "7-Eleven", "third")

        assert [alpha.code, apple.code, seven.code] == ["A1", "A2", "X1"]

    @pytest.mark.asyncio
    async def test_codes_are_per_tenant(self, store):
        await services.create_goal(CTX, store, "Anggaran", "x")
        other = await services.create_goal(OTHER_CTX, store, "Anggaran", "x")
        assert other.code == "A1"

    @pytest.mark.asyncio
    async def test_deleted_code_is_not_reused(self, store):
        await services.create_goal(CTX, store, "Alpha", "x")
        second = await services.create_goal(CTX, store, "Beta", "x")
        third = await services.create_goal(CTX, store, "Bravo", "x")
        await services.delete_goal(CTX, store, second.id)

        fourth = await services.create_goal(CTX, store, "Bold", "x")
        assert third.code == "B2"
        assert fourth.code == "B3"

    @pytest.mark.asyncio
    async def test_blank_name_rejected(self, store):
        with pytest.raises(InvalidRecordError, match="Name cannot be empty"):
            await services.create_goal(CTX, store, "   ", "description")

    @pytest.mark.asyncio
    async def test_update_keeps_code(self, store, goal):
        updated = await services.update_goal(CTX, store, goal.id, name="Zero waste")
        assert updated.name == "Zero waste"
        assert updated.code == "A1"

    @pytest.mark.asyncio
    async def test_other_tenant_cannot_read(self, store, goal):
        with pytest.raises(RecordNotFoundError):
            await services.get_goal(OTHER_CTX, store, goal.id)
        assert await services.list_goals(OTHER_CTX, store) == []


class TestIdentifierRetry:
    @pytest.mark.asyncio
    async def test_collision_is_retried(self):
        store = RacingStore(collisions=1)
        goal = await services.create_goal(CTX, store, "Alpha", "x")

        assert goal.code == "A1"
        assert store.attempts == 2

    @pytest.mark.asyncio
    async def test_gives_up_after_max_retries(self):
        store = RacingStore(collisions=10)
        with pytest.raises(DuplicateIdentifierError):
            await services.create_goal(CTX, store, "Alpha", "x", max_retries=2)
        assert store.attempts == 3


class TestPotentialRisks:
    @pytest.mark.asyncio
    async def test_numbered_within_goal(self, store, goal):
        first = await services.add_potential_risk(CTX, store, goal.id, "Risiko satu")
        second = await services.add_potential_risk(CTX, store, goal.id, "Risiko dua")
        assert (first.sequence_number, second.sequence_number) == (1, 2)

    @pytest.mark.asyncio
    async def test_gap_is_kept_after_delete(self, store, goal):
        first = await services.add_potential_risk(CTX, store, goal.id, "Risiko satu")
        second = await services.add_potential_risk(CTX, store, goal.id, "Risiko dua")
        third = await services.add_potential_risk(CTX, store, goal.id, "Risiko tiga")
        await services.delete_potential_risk(CTX, store, second.id)

        fourth = await services.add_potential_risk(CTX, store, goal.id, "Risiko empat")
        remaining = await services.list_potential_risks(CTX, store, goal.id)

        assert [r.sequence_number for r in remaining] == [1, 3, 4]
        assert (await services.get_potential_risk(CTX, store, third.id)).sequence_number == 3
        assert first.sequence_number == 1 and fourth.sequence_number == 4

    @pytest.mark.asyncio
    async def test_unknown_category_rejected(self, store, goal):
        with pytest.raises(InvalidRecordError, match="Invalid category"):
            await services.add_potential_risk(CTX, store, goal.id, "x", category="Sosial")

    @pytest.mark.asyncio
    async def test_missing_goal(self, store):
        with pytest.raises(RecordNotFoundError):
            await services.add_potential_risk(CTX, store, "nonexistent1", "x")

    @pytest.mark.asyncio
    async def test_update(self, store, risk):
        updated = await services.update_potential_risk(
            CTX, store, risk.id, owner="Kabag Keuangan", likelihood="Jarang"
        )
        assert updated.owner == "Kabag Keuangan"
        assert updated.likelihood is Likelihood.JARANG
        assert updated.category is RiskCategory.KEUANGAN

    @pytest.mark.asyncio
    async def test_accept_suggestions(self, store, goal):
        suggestions = PotentialRiskSuggestions(
            potential_risks=[
                PotentialRiskSuggestion(description="Denda pajak", category=RiskCategory.HUKUM),
                PotentialRiskSuggestion(description="Salah input"),
            ]
        )
        created = await services.accept_potential_risk_suggestions(CTX, store, goal.id, suggestions)

        assert [(r.sequence_number, r.category) for r in created] == [
            (1, RiskCategory.HUKUM),
            (2, None),
        ]


class TestRiskCauses:
    @pytest.mark.asyncio
    async def test_source_required(self, store, risk):
        with pytest.raises(InvalidRecordError, match="Invalid source"):
            await services.add_risk_cause(CTX, store, risk.id, "Penyebab", None)

    @pytest.mark.asyncio
    async def test_inherits_ancestry(self, store, goal, risk, cause):
        assert cause.potential_risk_id == risk.id
        assert cause.goal_id == goal.id
        assert cause.sequence_number == 1
        assert cause.source is RiskSource.INTERNAL

    @pytest.mark.asyncio
    async def test_analyze_then_assess(self, store, cause):
        analyzed = await services.analyze_risk_cause(
            CTX, store, cause.id, "Sering", "Mayor", key_risk_indicator="Dokumen ditolak/bulan"
        )
        assessment = await services.assess_risk_cause(CTX, store, cause.id)

        assert analyzed.likelihood is Likelihood.SERING
        assert analyzed.impact is Impact.MAYOR
        assert analyzed.key_risk_indicator == "Dokumen ditolak/bulan"
        assert (assessment.score, assessment.level) == (16, RiskLevel.TINGGI)

    @pytest.mark.asyncio
    async def test_clearing_a_rating_returns_to_not_available(self, store, cause):
        await services.analyze_risk_cause(CTX, store, cause.id, "Sering", "Mayor")
        await services.analyze_risk_cause(CTX, store, cause.id, "Sering", None)

        assessment = await services.assess_risk_cause(CTX, store, cause.id)
        assert assessment.level is RiskLevel.NOT_AVAILABLE

    @pytest.mark.asyncio
    async def test_analyze_rejects_unknown_level(self, store, cause):
        with pytest.raises(InvalidRecordError, match="Invalid likelihood"):
            await services.analyze_risk_cause(CTX, store, cause.id, "Often", "Mayor")

    @pytest.mark.asyncio
    async def test_accept_suggestions_with_default_source(self, store, risk):
        suggestions = RiskCauseSuggestions(
            suggested_causes=[
                RiskCauseSuggestion(description="Regulasi baru", source=RiskSource.EKSTERNAL),
                RiskCauseSuggestion(description="SDM kurang"),
            ]
        )
        created = await services.accept_risk_cause_suggestions(
            CTX, store, risk.id, suggestions, default_source="Internal"
        )
        assert [c.source for c in created] == [RiskSource.EKSTERNAL, RiskSource.INTERNAL]

    @pytest.mark.asyncio
    async def test_accept_without_source_stores_nothing(self, store, risk):
        suggestions = [
            RiskCauseSuggestion(description="Regulasi baru", source=RiskSource.EKSTERNAL),
            RiskCauseSuggestion(description="SDM kurang"),
        ]
        with pytest.raises(InvalidRecordError, match="default source"):
            await services.accept_risk_cause_suggestions(CTX, store, risk.id, suggestions)
        assert await services.list_risk_causes(CTX, store, risk.id) == []


class TestPrioritized:
    @pytest.mark.asyncio
    async def test_ranked_by_score_with_code_tiebreak(self, store, goal, risk):
        low = await services.add_risk_cause(CTX, store, risk.id, "Rendah", "Internal")
        high = await services.add_risk_cause(CTX, store, risk.id, "Tinggi", "Eksternal")
        tie = await services.add_risk_cause(CTX, store, risk.id, "Tinggi juga", "Internal")
        await services.add_risk_cause(CTX, store, risk.id, "Belum dianalisis", "Internal")

        await services.analyze_risk_cause(CTX, store, low.id, "Jarang", "Minor")
        await services.analyze_risk_cause(CTX, store, high.id, "Hampir Pasti", "Mayor")
        await services.analyze_risk_cause(CTX, store, tie.id, "Sering", "Sangat Signifikan")

        ranked = await services.list_prioritized_risk_causes(CTX, store)

        assert [p.cause.id for p in ranked] == [high.id, tie.id, low.id]
        assert [p.assessment.score for p in ranked] == [20, 20, 4]
        assert ranked[0].code == "A1.PR1.PC2"

    @pytest.mark.asyncio
    async def test_ascending(self, store, risk):
        first = await services.add_risk_cause(CTX, store, risk.id, "A", "Internal")
        second = await services.add_risk_cause(CTX, store, risk.id, "B", "Internal")
        await services.analyze_risk_cause(CTX, store, first.id, "Sering", "Mayor")
        await services.analyze_risk_cause(CTX, store, second.id, "Jarang", "Minor")

        ranked = await services.list_prioritized_risk_causes(CTX, store, descending=False)
        assert [p.cause.id for p in ranked] == [second.id, first.id]

    @pytest.mark.asyncio
    async def test_tie_orders_goal_codes_numerically(self, store):
        goals = [
            await services.create_goal(CTX, store, f"Alpha {n}", f"Sasaran {n}") for n in range(10)
        ]
        assert [g.code for g in goals][-1] == "A10"

        for goal in (goals[9], goals[1]):
            risk = await services.add_potential_risk(CTX, store, goal.id, f"Risiko {goal.code}")
            cause = await services.add_risk_cause(CTX, store, risk.id, "Penyebab", "Internal")
            await services.analyze_risk_cause(CTX, store, cause.id, "Sering", "Mayor")

        ranked = await services.list_prioritized_risk_causes(CTX, store)
        assert [p.goal.code for p in ranked] == ["A2", "A10"]


class TestControlMeasures:
    @pytest.mark.asyncio
    async def test_numbered_per_type(self, store, cause):
        prv1 = await services.add_control_measure(CTX, store, cause.id, "Prv", "SOP")
        rm1 = await services.add_control_measure(CTX, store, cause.id, "RM", "Asuransi")
        prv2 = await services.add_control_measure(
            CTX, store, cause.id, ControlMeasureType.PREVENTIVE, "Pelatihan"
        )

        assert (prv1.sequence_number, rm1.sequence_number, prv2.sequence_number) == (1, 1, 2)
        assert await services.record_code(CTX, store, prv2) == "A1.PR1.PC1.Prv.2"

    @pytest.mark.asyncio
    async def test_deadline_and_budget(self, store, cause):
        control = await services.add_control_measure(
            CTX, store, cause.id, "Crr", "Pemulihan", deadline="2025-12-31", budget="2500000"
        )
        assert control.deadline == date(2025, 12, 31)
        assert control.budget == 2500000.0

    @pytest.mark.parametrize(
        "kwargs,match",
        [
            ({"control_type": "Preventif"}, "Invalid control type"),
            ({"deadline": "31/12/2025"}, "Invalid deadline"),
            ({"budget": -1}, "negative"),
            ({"budget": "inf"}, "finite"),
            ({"budget": "nan"}, "finite"),
            ({"budget": float("-inf")}, "finite"),
        ],
    )
    @pytest.mark.asyncio
    async def test_invalid_input(self, store, cause, kwargs, match):
        params = {"control_type": "Prv", "description": "SOP"} | kwargs
        with pytest.raises(InvalidRecordError, match=match):
            await services.add_control_measure(CTX, store, cause.id, **params)

    @pytest.mark.asyncio
    async def test_control_type_cannot_change(self, store, cause):
        control = await services.add_control_measure(CTX, store, cause.id, "Prv", "SOP")
        with pytest.raises(InvalidRecordError):
            await services.update_control_measure(CTX, store, control.id, control_type="Crr")

    @pytest.mark.asyncio
    async def test_accept_suggestions(self, store, cause):
        suggestions = [
            ControlMeasureSuggestion(
                description="Checklist", suggested_control_type=ControlMeasureType.PREVENTIVE,
                justification="Mencegah dokumen kurang",
            ),
            ControlMeasureSuggestion(
                description="Verifikasi ganda", suggested_control_type=ControlMeasureType.PREVENTIVE,
                justification="Deteksi dini",
            ),
        ]
        created = await services.accept_control_measure_suggestions(CTX, store, cause.id, suggestions)
        assert [c.sequence_number for c in created] == [1, 2]

    @pytest.mark.asyncio
    async def test_delete_single(self, store, cause):
        control = await services.add_control_measure(CTX, store, cause.id, "Prv", "SOP")
        await services.delete_control_measure(CTX, store, control.id)
        assert await services.list_control_measures(CTX, store, cause.id) == []


class TestDeletes:
    @pytest.mark.asyncio
    async def test_delete_goal_returns_report(self, store, goal, cause):
        report = await services.delete_goal(CTX, store, goal.id)
        assert report.completed
        assert len(report.deleted) == 3

    @pytest.mark.asyncio
    async def test_incomplete_cascade_raises_with_report(self):
        store = FailingDeleteStore()
        goal = await services.create_goal(CTX, store, "Alpha", "x")
        risk = await services.add_potential_risk(CTX, store, goal.id, "Risk")
        await services.add_risk_cause(CTX, store, risk.id, "Cause", "Internal")

        with pytest.raises(CascadeIncompleteError) as exc_info:
            await services.delete_goal(CTX, store, goal.id)

        report = exc_info.value.report
        assert len(report.deleted) == 1
        assert report.failed_step == f"delete potential_risks {risk.id}"
