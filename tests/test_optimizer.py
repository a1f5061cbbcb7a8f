"""Tests for the optimization orchestrator."""

from __future__ import annotations

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from datetime import date

import pytest

from schedule_optimizer.config import OptimizerSettings
from schedule_optimizer.data.models import (
    DEFAULT_SCHEDULE_NAME,
    Course,
    OptimizationRequest,
    Room,
    Schedule,
    ScheduleStatus,
    Slot,
    Teacher,
)
from schedule_optimizer.data.store import InMemoryRoomStore, InMemoryScheduleStore
from schedule_optimizer.engine.optimizer import (
    OptimizationError,
    OptimizationPhase,
    ScheduleOptimizer,
)
from schedule_optimizer.engine.training import TARGET_TEACHER_UTILIZATION, HistoricalTargets

T1 = Teacher(id="t1", name="Ms Rivera")
R1 = Room(id="r1", name="101")
R2 = Room(id="r2", name="102")
ALGEBRA = Course(id="alg", name="Algebra I", is_core_required=True, credits=1.0)


class FailingScheduleStore(InMemoryScheduleStore):
    """Store whose writes always fail."""

    def save(self, schedule: Schedule) -> Schedule:
        if schedule.optimization_score is not None:
            raise RuntimeError("database unavailable")
        return super().save(schedule)


class SlowLookupStore(InMemoryScheduleStore):
    """Store whose lookups take long enough for requests to overlap."""

    def find_by_exact_name(self, name: str):
        found = super().find_by_exact_name(name)
        time.sleep(0.05)
        return found


class FailingRoomStore:

    def list_all_rooms(self) -> list[Room]:
        raise RuntimeError("room service unavailable")


@pytest.fixture
def fall_schedule() -> Schedule:
    return Schedule(
        id="sch1",
        name="Fall 2026",
        slots=[
            Slot(id="s1", teacher=T1, room=R1, course=ALGEBRA, day=0,
                 start_minutes="08:00", end_minutes="08:50"),
            Slot(id="s2", teacher=T1, room=R2, course=ALGEBRA, day=0,
                 start_minutes="08:30", end_minutes="09:20"),
        ],
    )


@pytest.fixture
def store(fall_schedule) -> InMemoryScheduleStore:
    return InMemoryScheduleStore([fall_schedule])


@pytest.fixture
def optimizer(store) -> ScheduleOptimizer:
    return ScheduleOptimizer(store, InMemoryRoomStore([R1, R2]))


class TestLookupOrCreate:

    def test_existing_schedule_found_case_insensitively(self, optimizer, store):
        saved = optimizer.optimize(OptimizationRequest(schedule_name="fall 2026"))

        assert saved.id == "sch1"
        assert len(store) == 1
        assert store.get("sch1") is saved

    def test_missing_name_creates_draft(self, optimizer, store):
        result = optimizer.run(OptimizationRequest(
            start_date=date(2026, 9, 1),
            end_date=date(2027, 6, 30),
        ))

        assert result.created
        schedule = result.schedule
        assert schedule.id is not None
        assert schedule.name == DEFAULT_SCHEDULE_NAME
        assert schedule.status == ScheduleStatus.DRAFT
        assert schedule.start_date == date(2026, 9, 1)
        assert schedule.created_date == date.today()
        assert schedule.optimization_score == 0.0
        assert len(store) == 2

    def test_unknown_name_creates_named_schedule(self, optimizer, store):
        schedule = optimizer.optimize(OptimizationRequest(schedule_name="Spring 2027"))
        assert schedule.name == "Spring 2027"
        assert store.find_by_exact_name("spring 2027") is schedule

    def test_none_request(self, optimizer, store, caplog):
        with caplog.at_level(logging.ERROR, logger="schedule_optimizer"):
            assert optimizer.optimize(None) is None
        assert len(store) == 1


class TestRun:

    def test_phases_update_schedule(self, optimizer):
        result = optimizer.run(OptimizationRequest(schedule_name="Fall 2026"))
        schedule = result.schedule

        assert result.phase is OptimizationPhase.DONE
        assert schedule.total_conflicts == 1
        assert schedule.resolved_conflicts == 1
        assert schedule.get_slot("s2").start_minutes == 570
        assert schedule.teacher_utilization == pytest.approx(2 / 30 * 100)
        assert schedule.efficiency_rate == pytest.approx(result.efficiency.efficiency_rate)
        assert schedule.optimization_score == pytest.approx(result.final_score)
        assert schedule.last_modified_date == date.today()
        assert result.waste.total_possible_slots == 2 * 7 * 5

    def test_caller_schedule_not_mutated(self, optimizer, fall_schedule):
        optimizer.run(OptimizationRequest(schedule_name="Fall 2026"))

        assert fall_schedule.optimization_score is None
        assert fall_schedule.get_slot("s2").start_minutes == 510

    def test_idempotent(self, optimizer):
        first = optimizer.run(OptimizationRequest(schedule_name="Fall 2026"))
        second = optimizer.run(OptimizationRequest(schedule_name="Fall 2026"))

        assert second.conflicts.total_conflicts == 0
        assert [s.start_minutes for s in second.schedule.slots] == [
            s.start_minutes for s in first.schedule.slots
        ]
        assert second.final_score == pytest.approx(first.final_score)

    def test_empty_schedule_scores_zero(self):
        store = InMemoryScheduleStore([Schedule(id="e", name="Empty")])
        optimizer = ScheduleOptimizer(store, InMemoryRoomStore([R1]))

        result = optimizer.run(OptimizationRequest(schedule_name="Empty"))

        assert result.final_score == 0.0
        assert result.schedule.teacher_utilization is None
        assert result.waste.total_possible_slots == 0

    def test_trained_targets_reported(self, store):
        targets = HistoricalTargets()
        targets.train([Schedule(optimization_score=90.0, teacher_utilization=50.0)])
        optimizer = ScheduleOptimizer(store, InMemoryRoomStore([R1]), targets=targets)

        result = optimizer.run(OptimizationRequest(schedule_name="Fall 2026"))

        assert result.targets[TARGET_TEACHER_UTILIZATION] == 50.0

    def test_custom_settings(self, store):
        settings = OptimizerSettings(candidate_start_times=["13:00"])
        optimizer = ScheduleOptimizer(store, InMemoryRoomStore([R1]), settings=settings)

        result = optimizer.run(OptimizationRequest(schedule_name="Fall 2026"))

        assert result.schedule.get_slot("s2").start_minutes == 780


class TestFailures:

    def test_persist_failure_leaves_store_untouched(self, fall_schedule):
        store = FailingScheduleStore([fall_schedule])
        optimizer = ScheduleOptimizer(store, InMemoryRoomStore([R1]))

        with pytest.raises(OptimizationError) as exc_info:
            optimizer.run(OptimizationRequest(schedule_name="Fall 2026"))

        assert exc_info.value.phase is OptimizationPhase.PERSIST
        assert isinstance(exc_info.value.cause, RuntimeError)
        stored = store.get("sch1")
        assert stored is fall_schedule
        assert stored.optimization_score is None
        assert stored.get_slot("s2").start_minutes == 510

    def test_optimize_returns_none_on_failure(self, fall_schedule, caplog):
        store = FailingScheduleStore([fall_schedule])
        optimizer = ScheduleOptimizer(store, InMemoryRoomStore([R1]))

        with caplog.at_level(logging.ERROR, logger="schedule_optimizer"):
            assert optimizer.optimize(OptimizationRequest(schedule_name="Fall 2026")) is None

        assert "Optimization reached error state" in caplog.text
        assert "persist" in caplog.text

    def test_waste_failure(self, store, fall_schedule):
        optimizer = ScheduleOptimizer(store, FailingRoomStore())

        with pytest.raises(OptimizationError) as exc_info:
            optimizer.run(OptimizationRequest(schedule_name="Fall 2026"))

        assert exc_info.value.phase is OptimizationPhase.WASTE
        assert store.get("sch1") is fall_schedule
        assert fall_schedule.total_conflicts is None


class TestIntrospection:

    def test_compute_score_does_not_persist(self, optimizer, store, fall_schedule):
        score = optimizer.compute_score(fall_schedule)
        assert 0.0 <= score <= 100.0
        assert store.get("sch1").optimization_score is None

    def test_single_phases(self, optimizer, fall_schedule):
        report = optimizer.detect_and_resolve_conflicts(fall_schedule)
        assert report.resolved_conflicts == 1

        assert optimizer.audit_flow(fall_schedule).is_clean
        assert sum(optimizer.classify_priorities(fall_schedule).counts.values()) == 2
        assert optimizer.analyze_waste(fall_schedule).total_possible_slots == 70

    def test_train(self, optimizer):
        optimizer.train([Schedule(optimization_score=95.0, room_utilization=40.0)])
        assert optimizer.targets.is_trained


def test_concurrent_runs_on_same_schedule(optimizer, store):
    with ThreadPoolExecutor(max_workers=4) as pool:
        results = list(pool.map(
            lambda _: optimizer.run(OptimizationRequest(schedule_name="Fall 2026")),
            range(4),
        ))

    assert all(r.phase is OptimizationPhase.DONE for r in results)
    assert len(store) == 1
    final = store.get("sch1")
    assert final.get_slot("s2").start_minutes == 570


def test_concurrent_first_requests_create_one_schedule():
    store = SlowLookupStore()
    optimizer = ScheduleOptimizer(store, InMemoryRoomStore([R1]))

    with ThreadPoolExecutor(max_workers=4) as pool:
        results = list(pool.map(
            lambda name: optimizer.run(OptimizationRequest(schedule_name=name)),
            ["Spring", "spring", "SPRING", "Spring"],
        ))

    assert len(store) == 1
    assert sum(r.created for r in results) == 1
    assert len({r.schedule.id for r in results}) == 1


def test_lock_entries_released_after_runs(optimizer):
    optimizer.run(OptimizationRequest(schedule_name="Fall 2026"))
    optimizer.run(OptimizationRequest(schedule_name="Spring 2027"))
    assert optimizer._locks == {}


class TestOptimizeSchedule:

    def test_persists_loaded_schedule(self, optimizer, store, fall_schedule):
        result = optimizer.optimize_schedule(fall_schedule)

        assert not result.created
        assert store.get("sch1") is result.schedule
        assert result.schedule.get_slot("s2").start_minutes == 570
        assert fall_schedule.get_slot("s2").start_minutes == 510
        assert fall_schedule.optimization_score is None

    def test_unsaved_schedule_gets_id(self, optimizer, store):
        result = optimizer.optimize_schedule(Schedule(name="Summer"))
        assert result.created
        assert store.get(result.schedule.id) is result.schedule

    def test_failure_leaves_store_untouched(self, fall_schedule):
        store = FailingScheduleStore([fall_schedule])
        optimizer = ScheduleOptimizer(store, InMemoryRoomStore([R1]))

        with pytest.raises(OptimizationError) as exc_info:
            optimizer.optimize_schedule(fall_schedule)

        assert exc_info.value.phase is OptimizationPhase.PERSIST
        assert store.get("sch1") is fall_schedule
        assert fall_schedule.total_conflicts is None
