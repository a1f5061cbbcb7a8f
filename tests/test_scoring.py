"""Tests for the optimization score calculator."""

from __future__ import annotations

import pytest

from schedule_optimizer.config import OptimizerSettings, ScoreWeights
from schedule_optimizer.data.models import Course, Room, Schedule, Slot, Teacher
from schedule_optimizer.engine.scoring import ScoreBreakdown, ScoreCalculator, compute_score, score_breakdown

T1 = Teacher(id="t1", name="Ms Rivera")
T2 = Teacher(id="t2", name="Mr Okafor")
R1 = Room(id="r1", name="101")

CORE = Course(id="alg", name="Algebra I", is_core_required=True, credits=1.0)
ELECTIVE = Course(id="art", name="Art", credits=1.0)


def make_slot(slot_id: str, start: str, end: str, teacher=T1, course=None, day: int = 0) -> Slot:
    return Slot(
        id=slot_id, teacher=teacher, course=course, day=day,
        start_minutes=start, end_minutes=end,
    )


class TestScoreCalculator:

    def test_empty_schedule_scores_zero(self):
        breakdown = score_breakdown(Schedule())
        assert breakdown == ScoreBreakdown()
        assert compute_score(Schedule()) == 0.0

    def test_all_sub_scores_maxed(self):
        # 35 untimed slots on one teacher and one room: full utilization,
        # no gaps, no courses and no recorded conflicts
        schedule = Schedule(slots=[Slot(id=f"s{n}", teacher=T1, room=R1) for n in range(35)])

        breakdown = score_breakdown(schedule)

        assert breakdown.teacher_utilization == pytest.approx(100.0)
        assert breakdown.room_utilization == pytest.approx(100.0)
        assert breakdown.preference == 100.0
        assert breakdown.conflict_resolution == 100.0
        assert breakdown.compactness == 100.0
        assert breakdown.final_score == pytest.approx(100.0)

    def test_weighted_sum(self):
        schedule = Schedule(slots=[make_slot("a", "08:00", "08:50", course=CORE)])

        breakdown = score_breakdown(schedule)

        expected = (
            breakdown.teacher_utilization * 0.25
            + breakdown.room_utilization * 0.20
            + breakdown.preference * 0.25
            + breakdown.conflict_resolution * 0.15
            + breakdown.compactness * 0.15
        )
        assert breakdown.final_score == pytest.approx(expected)
        assert breakdown.weighted["preference"] == pytest.approx(25.0)

    def test_score_clamped_to_100(self):
        heavy = ScoreWeights(
            teacher_utilization=1.0,
            room_utilization=1.0,
            preference=1.0,
            conflict_resolution=1.0,
            compactness=1.0,
        )
        schedule = Schedule(slots=[Slot(id=f"s{n}", teacher=T1, room=R1) for n in range(35)])
        assert compute_score(schedule, OptimizerSettings(weights=heavy)) == 100.0

    def test_score_in_range(self):
        schedule = Schedule(slots=[
            make_slot("a", "08:00", "08:50", course=CORE),
            make_slot("b", "14:00", "14:50", course=CORE),
            make_slot("c", "08:30", "09:20", teacher=T2, course=ELECTIVE),
        ])
        assert 0.0 <= compute_score(schedule) <= 100.0

    def test_to_dict(self):
        breakdown = ScoreBreakdown(preference=66.6666, final_score=50.0)
        data = breakdown.to_dict()
        assert data["preference"] == 66.67
        assert data["finalScore"] == 50.0


class TestConflictResolutionScore:

    def test_no_conflicts(self):
        assert ScoreCalculator().calculate_conflict_resolution_score(Schedule()) == 100.0

    def test_partial_resolution(self):
        schedule = Schedule(total_conflicts=4, resolved_conflicts=3)
        assert ScoreCalculator().calculate_conflict_resolution_score(schedule) == 75.0

    def test_full_resolution(self):
        schedule = Schedule(total_conflicts=1, resolved_conflicts=1)
        assert ScoreCalculator().calculate_conflict_resolution_score(schedule) == 100.0


class TestCompactnessScore:

    def test_gap_above_noise_floor(self):
        # gaps of 10 (at the floor, ignored) and 90 minutes
        schedule = Schedule(slots=[
            make_slot("a", "08:00", "08:50"),
            make_slot("b", "09:00", "09:50"),
            make_slot("c", "11:20", "12:10"),
        ])
        assert ScoreCalculator().calculate_compactness_score(schedule) == pytest.approx(25.0)

    def test_gap_averaged_over_teachers(self):
        schedule = Schedule(slots=[
            make_slot("a", "08:00", "08:50"),
            make_slot("b", "10:50", "11:40"),
            make_slot("c", "08:00", "08:50", teacher=T2),
            make_slot("d", "08:50", "09:40", teacher=T2),
        ])
        # (120 + 0) / 2 teachers = 60 -> 50
        assert ScoreCalculator().calculate_compactness_score(schedule) == pytest.approx(50.0)

    def test_large_gaps_floor_at_zero(self):
        schedule = Schedule(slots=[
            make_slot("a", "07:30", "08:20"),
            make_slot("b", "14:30", "15:20"),
        ])
        assert ScoreCalculator().calculate_compactness_score(schedule) == 0.0

    def test_single_slot_teachers_ignored(self):
        schedule = Schedule(slots=[make_slot("a", "08:00", "08:50")])
        assert ScoreCalculator().calculate_compactness_score(schedule) == 100.0

    def test_gaps_across_days_ignored(self):
        schedule = Schedule(slots=[
            make_slot("a", "08:00", "08:50", day=0),
            make_slot("b", "14:00", "14:50", day=1),
        ])
        assert ScoreCalculator().calculate_compactness_score(schedule) == 100.0

    def test_teacher_without_same_day_pair_still_averaged(self):
        # t1 teaches once on Monday and once on Tuesday, t2 has a 60 minute gap
        schedule = Schedule(slots=[
            make_slot("a", "08:00", "08:50", day=0),
            make_slot("b", "08:00", "08:50", day=1),
            make_slot("c", "08:00", "08:50", teacher=T2, day=0),
            make_slot("d", "09:50", "10:40", teacher=T2, day=0),
        ])
        # 60 minutes over 2 teachers -> 30 -> 75
        assert ScoreCalculator().calculate_compactness_score(schedule) == pytest.approx(75.0)


class TestPreferenceScore:

    def test_core_course_after_noon_not_satisfied(self):
        schedule = Schedule(slots=[make_slot("a", "14:00", "14:50", course=CORE)])
        assert ScoreCalculator().calculate_preference_score(schedule) == 0.0

    def test_mixed(self):
        schedule = Schedule(slots=[
            make_slot("a", "08:00", "08:50", course=CORE),
            make_slot("b", "14:00", "14:50", course=CORE),
            make_slot("c", "15:00", "15:50", course=ELECTIVE),
        ])
        assert ScoreCalculator().calculate_preference_score(schedule) == pytest.approx(200 / 3)

    def test_slots_without_course_or_start_skipped(self):
        schedule = Schedule(slots=[
            make_slot("a", "14:00", "14:50"),
            Slot(id="b", course=CORE, day=0),
        ])
        assert ScoreCalculator().calculate_preference_score(schedule) == 100.0

    def test_noon_is_not_before_noon(self):
        schedule = Schedule(slots=[make_slot("a", "12:00", "12:50", course=CORE)])
        assert ScoreCalculator().calculate_preference_score(schedule) == 0.0
