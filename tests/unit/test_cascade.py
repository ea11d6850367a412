# tests/unit/test_cascade.py
"""
Tests for cascading deletion.

Builds a small hierarchy through the services, then deletes from each root
kind and checks order, completeness and partial-failure reporting.
"""

from pathlib import Path

import pytest
import pytest_asyncio

from riskwise.cascade import (
    delete_goal_cascade,
    delete_monitoring_session_cascade,
    delete_potential_risk_cascade,
    delete_risk_cause_cascade,
    plan_cascade,
)
from riskwise.errors import RecordNotFoundError
from riskwise.models import EntityKind, InMemoryRecordStore, TenantContext
from riskwise.models.sqlite_store import SQLiteRecordStore
from riskwise.services import (
    add_control_measure,
    add_potential_risk,
    add_risk_cause,
    create_goal,
    create_monitoring_session,
    record_risk_exposure,
)

CTX = TenantContext(upr_id="upr-operasi", period="2025")


class FailingDeleteStore(InMemoryRecordStore):
    """In-memory store whose delete fails for one record id."""

    def __init__(self, fail_on: str | None = None) -> None:
        super().__init__()
        self.fail_on = fail_on

    async def delete(self, kind, record_id):
        if record_id == self.fail_on:
            raise ConnectionError("database went away")
        await super().delete(kind, record_id)


class FailingBatchStore(InMemoryRecordStore):
    """In-memory store that claims batch support and always fails the batch."""

    supports_batch_delete = True

    async def delete_batch(self, items):
        raise RuntimeError("transaction aborted")


async def _populate(store):
    """
    Goal -> R1 (C1 -> K1, K2; C2 -> K3), R2 (C3).

    Returns a dict of name -> record id.
    """
    goal = await create_goal(CTX, store, "Operasi lancar", "Layanan tanpa gangguan")
    r1 = await add_potential_risk(CTX, store, goal.id, "Gangguan server")
    r2 = await add_potential_risk(CTX, store, goal.id, "Kekurangan staf")
    c1 = await add_risk_cause(CTX, store, r1.id, "Perangkat usang", "Internal")
    c2 = await add_risk_cause(CTX, store, r1.id, "Pemadaman listrik", "Eksternal")
    c3 = await add_risk_cause(CTX, store, r2.id, "Rekrutmen lambat", "Internal")
    k1 = await add_control_measure(CTX, store, c1.id, "Prv", "Peremajaan perangkat")
    k2 = await add_control_measure(CTX, store, c1.id, "Crr", "Prosedur pemulihan")
    k3 = await add_control_measure(CTX, store, c2.id, "RM", "Genset cadangan")
    return {
        "goal": goal.id, "r1": r1.id, "r2": r2.id,
        "c1": c1.id, "c2": c2.id, "c3": c3.id,
        "k1": k1.id, "k2": k2.id, "k3": k3.id,
    }


@pytest_asyncio.fixture
async def populated():
    store = InMemoryRecordStore()
    ids = await _populate(store)
    return store, ids


async def _remaining(store) -> int:
    total = 0
    for kind in EntityKind:
        total += len(await store.list_records(kind, CTX))
    return total


class TestPlan:
    @pytest.mark.asyncio
    async def test_goal_plan_is_child_before_parent(self, populated):
        store, ids = populated
        plan = await plan_cascade(EntityKind.GOAL, ids["goal"], CTX, store)

        assert [record_id for _, record_id in plan] == [
            ids["k1"], ids["k2"], ids["c1"],
            ids["k3"], ids["c2"],
            ids["r1"],
            ids["c3"], ids["r2"],
            ids["goal"],
        ]

    @pytest.mark.asyncio
    async def test_every_record_precedes_its_parent(self, populated):
        store, ids = populated
        plan = await plan_cascade(EntityKind.GOAL, ids["goal"], CTX, store)
        position = {record_id: index for index, (_, record_id) in enumerate(plan)}

        for kind in (EntityKind.POTENTIAL_RISK, EntityKind.RISK_CAUSE, EntityKind.CONTROL_MEASURE):
            for record in await store.list_records(kind, CTX):
                assert position[record.id] < position[record.goal_id]

    @pytest.mark.asyncio
    async def test_missing_root_raises(self, populated):
        store, _ = populated
        with pytest.raises(RecordNotFoundError):
            await plan_cascade(EntityKind.GOAL, "nonexistent1", CTX, store)

    @pytest.mark.asyncio
    async def test_root_in_other_tenant_is_not_found(self, populated):
        store, ids = populated
        other = TenantContext(upr_id="upr-operasi", period="2026")
        with pytest.raises(RecordNotFoundError):
            await delete_goal_cascade(ids["goal"], other, store)


class TestSequentialCascade:
    @pytest.mark.asyncio
    async def test_goal_cascade_removes_everything(self, populated):
        store, ids = populated
        report = await delete_goal_cascade(ids["goal"], CTX, store)

        assert report.completed
        assert not report.transactional
        assert len(report.deleted) == 9
        assert report.deleted[-1] == (EntityKind.GOAL, ids["goal"])
        assert await _remaining(store) == 0

    @pytest.mark.asyncio
    async def test_potential_risk_cascade_leaves_siblings(self, populated):
        store, ids = populated
        report = await delete_potential_risk_cascade(ids["r1"], CTX, store)

        assert report.completed
        assert len(report.deleted) == 6
        assert await store.get(EntityKind.POTENTIAL_RISK, ids["r2"]) is not None
        assert await store.get(EntityKind.RISK_CAUSE, ids["c3"]) is not None
        assert await store.get(EntityKind.GOAL, ids["goal"]) is not None

    @pytest.mark.asyncio
    async def test_risk_cause_cascade(self, populated):
        store, ids = populated
        report = await delete_risk_cause_cascade(ids["c1"], CTX, store)

        assert report.deleted == [
            (EntityKind.CONTROL_MEASURE, ids["k1"]),
            (EntityKind.CONTROL_MEASURE, ids["k2"]),
            (EntityKind.RISK_CAUSE, ids["c1"]),
        ]
        assert await store.get(EntityKind.CONTROL_MEASURE, ids["k3"]) is not None

    @pytest.mark.asyncio
    async def test_partial_failure_reports_progress(self):
        store = FailingDeleteStore()
        ids = await _populate(store)
        store.fail_on = ids["c2"]

        report = await delete_goal_cascade(ids["goal"], CTX, store)

        assert not report.completed
        assert report.failed_step == f"delete risk_causes {ids['c2']}"
        assert "database went away" in report.error
        assert [record_id for _, record_id in report.deleted] == [
            ids["k1"], ids["k2"], ids["c1"], ids["k3"],
        ]
        # Nothing after the failing step was attempted
        assert await store.get(EntityKind.GOAL, ids["goal"]) is not None
        assert await store.get(EntityKind.RISK_CAUSE, ids["c3"]) is not None
        assert (EntityKind.GOAL, ids["goal"]) in report.remaining


class TestBatchCascade:
    @pytest.mark.asyncio
    async def test_sqlite_batch_removes_everything(self, tmp_path: Path):
        store = SQLiteRecordStore(str(tmp_path / "riskwise.db"))
        await store.initialize()
        ids = await _populate(store)

        report = await delete_goal_cascade(ids["goal"], CTX, store)

        assert report.completed
        assert report.transactional
        assert len(report.deleted) == 9
        assert await _remaining(store) == 0

    @pytest.mark.asyncio
    async def test_prefer_batch_false_runs_sequentially(self, tmp_path: Path):
        store = SQLiteRecordStore(str(tmp_path / "riskwise.db"))
        await store.initialize()
        ids = await _populate(store)

        report = await delete_potential_risk_cascade(ids["r2"], CTX, store, prefer_batch=False)

        assert report.completed
        assert not report.transactional
        assert report.deleted == [
            (EntityKind.RISK_CAUSE, ids["c3"]),
            (EntityKind.POTENTIAL_RISK, ids["r2"]),
        ]

    @pytest.mark.asyncio
    async def test_failed_batch_deletes_nothing(self):
        store = FailingBatchStore()
        ids = await _populate(store)

        report = await delete_goal_cascade(ids["goal"], CTX, store)

        assert not report.completed
        assert report.transactional
        assert report.deleted == []
        assert report.failed_step == "batch delete of 9 record(s)"
        assert await _remaining(store) == 9


async def _monitor(store, ids):
    """One session with exposures recorded for C1 and C3."""
    session = await create_monitoring_session(
        CTX, store, "Pemantauan Juni", start_date="2025-06-01", end_date="2025-06-30"
    )
    for cause in ("c1", "c3"):
        await record_risk_exposure(CTX, store, session.id, ids[cause], exposure_value=1)
    return session.id


class TestExposureCascade:
    @pytest.mark.asyncio
    async def test_cause_plan_removes_exposures_before_cause(self, populated):
        store, ids = populated
        session_id = await _monitor(store, ids)

        plan = await plan_cascade(EntityKind.RISK_CAUSE, ids["c1"], CTX, store)

        assert plan == [
            (EntityKind.CONTROL_MEASURE, ids["k1"]),
            (EntityKind.CONTROL_MEASURE, ids["k2"]),
            (EntityKind.RISK_EXPOSURE, f"{session_id}_{ids['c1']}"),
            (EntityKind.RISK_CAUSE, ids["c1"]),
        ]

    @pytest.mark.asyncio
    async def test_goal_cascade_keeps_sessions(self, tmp_path: Path):
        store = SQLiteRecordStore(str(tmp_path / "riskwise.db"))
        await store.initialize()
        ids = await _populate(store)
        session_id = await _monitor(store, ids)

        report = await delete_goal_cascade(ids["goal"], CTX, store)

        assert report.completed
        assert len(report.deleted) == 11
        assert await store.list_records(EntityKind.RISK_EXPOSURE, CTX) == []
        assert await store.get(EntityKind.MONITORING_SESSION, session_id) is not None

    @pytest.mark.asyncio
    async def test_session_cascade_in_one_batch(self, tmp_path: Path):
        store = SQLiteRecordStore(str(tmp_path / "riskwise.db"))
        await store.initialize()
        ids = await _populate(store)
        session_id = await _monitor(store, ids)

        report = await delete_monitoring_session_cascade(session_id, CTX, store)

        assert report.transactional
        assert report.deleted[-1] == (EntityKind.MONITORING_SESSION, session_id)
        assert len(report.deleted) == 3
        assert await store.get(EntityKind.RISK_CAUSE, ids["c1"]) is not None
