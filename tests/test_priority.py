"""Tests for priority classification."""

from __future__ import annotations

import logging

import pytest

from schedule_optimizer.data.models import Course, Schedule, Slot
from schedule_optimizer.engine.priority import (
    PriorityCategory,
    classify_course,
    classify_priorities,
    classify_slot,
)


class TestClassifyCourse:

    def test_core_required_is_urgent_important(self):
        course = Course(id="c1", name="Algebra I", is_core_required=True, credits=1.0)
        assert classify_course(course) is PriorityCategory.URGENT_IMPORTANT

    def test_core_required_wins_over_advanced_name(self):
        course = Course(id="c1", name="AP Calculus", is_core_required=True)
        assert classify_course(course) is PriorityCategory.URGENT_IMPORTANT

    @pytest.mark.parametrize("name", ["AP Biology", "Honors English", "IB History", "ap chemistry"])
    def test_advanced_courses_are_important(self, name):
        course = Course(id="c1", name=name, credits=1.0)
        assert classify_course(course) is PriorityCategory.NOT_URGENT_IMPORTANT

    def test_marker_needs_trailing_space(self):
        # "APPLIED" contains "AP" but not "AP "
        course = Course(id="c1", name="Applied Math", credits=1.0)
        assert classify_course(course) is PriorityCategory.URGENT_NOT_IMPORTANT

    def test_full_credit_is_urgent(self):
        assert classify_course(Course(id="c1", name="Art", credits=1.0)) is (
            PriorityCategory.URGENT_NOT_IMPORTANT
        )

    def test_partial_credit_is_neither(self):
        assert classify_course(Course(id="c1", name="Study Hall", credits=0.5)) is (
            PriorityCategory.NOT_URGENT_NOT_IMPORTANT
        )

    def test_missing_fields(self):
        assert classify_course(Course(id="c1")) is PriorityCategory.NOT_URGENT_NOT_IMPORTANT
        assert classify_course(None) is PriorityCategory.NOT_URGENT_NOT_IMPORTANT


def test_classification_ignores_time():
    course = Course(id="c1", name="Algebra I", is_core_required=True)
    morning = Slot(id="a", course=course, day=0, start_minutes="08:00", end_minutes="08:50")
    afternoon = Slot(id="b", course=course, day=0, start_minutes="14:00", end_minutes="14:50")
    assert classify_slot(morning) is classify_slot(afternoon) is PriorityCategory.URGENT_IMPORTANT


def test_classify_priorities(caplog):
    schedule = Schedule(id="sch1", slots=[
        Slot(id="a", course=Course(id="c1", name="Algebra I", is_core_required=True)),
        Slot(id="b", course=Course(id="c2", name="AP Biology")),
        Slot(id="c", course=Course(id="c3", name="Art", credits=1.0)),
        Slot(id="d"),
    ])

    with caplog.at_level(logging.INFO, logger="schedule_optimizer"):
        breakdown = classify_priorities(schedule)

    assert breakdown.category_of("a") is PriorityCategory.URGENT_IMPORTANT
    assert breakdown.category_of("b") is PriorityCategory.NOT_URGENT_IMPORTANT
    assert breakdown.category_of("c") is PriorityCategory.URGENT_NOT_IMPORTANT
    assert breakdown.category_of("d") is PriorityCategory.NOT_URGENT_NOT_IMPORTANT
    assert sum(breakdown.counts.values()) == 4
    assert "Priority matrix for schedule sch1" in caplog.text


def test_classify_priorities_empty_schedule():
    breakdown = classify_priorities(Schedule())
    assert all(n == 0 for n in breakdown.counts.values())
