"""
Advisory flow checks on a schedule.

These checks never change the schedule or its score; violations are
logged and returned for reporting.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Optional

from schedule_optimizer.config import OptimizerSettings
from schedule_optimizer.data.models import DayOfWeek, Schedule, day_name, minutes_to_time

from .index import group_slots_by_teacher, sort_by_day_and_start

logger = logging.getLogger(__name__)


@dataclass
class WipViolation:
    """A teacher preparing too many distinct courses on one day."""
    teacher_id: str
    day: Optional[DayOfWeek]
    course_count: int
    limit: int

    def __str__(self) -> str:
        return (
            f"Teacher {self.teacher_id} has {self.course_count} preps on "
            f"{day_name(self.day)} (max: {self.limit})"
        )


@dataclass
class GapViolation:
    """An idle gap between two consecutive slots of one teacher."""
    teacher_id: str
    day: Optional[DayOfWeek]
    gap_minutes: int
    after_slot_id: str
    before_slot_id: str

    def __str__(self) -> str:
        return (
            f"Large gap ({self.gap_minutes} min) in teacher {self.teacher_id} "
            f"schedule on {day_name(self.day)}"
        )


@dataclass
class MissingTimeViolation:
    slot_id: str

    def __str__(self) -> str:
        return f"Slot {self.slot_id} missing time information"


@dataclass
class FlowReport:
    wip_violations: list[WipViolation] = field(default_factory=list)
    gap_violations: list[GapViolation] = field(default_factory=list)
    missing_times: list[MissingTimeViolation] = field(default_factory=list)

    @property
    def total_violations(self) -> int:
        return len(self.wip_violations) + len(self.gap_violations) + len(self.missing_times)

    @property
    def is_clean(self) -> bool:
        return self.total_violations == 0


class FlowAuditor:
    """Work-in-progress, gap and completeness checks."""

    def __init__(self, settings: Optional[OptimizerSettings] = None):
        self.settings = settings or OptimizerSettings()

    def audit(self, schedule: Schedule) -> FlowReport:
        report = FlowReport()

        if not schedule.slots:
            return report

        report.wip_violations = self.check_wip_limits(schedule)
        report.gap_violations = self.check_gaps(schedule)
        report.missing_times = self.check_slot_times(schedule)

        logger.info(
            "Flow audit for schedule %s: %d WIP, %d gap, %d missing-time violations",
            schedule.id,
            len(report.wip_violations),
            len(report.gap_violations),
            len(report.missing_times),
        )
        return report

    def check_wip_limits(self, schedule: Schedule) -> list[WipViolation]:
        """Flag teacher-days with more distinct courses than max_preps_per_day."""
        limit = self.settings.max_preps_per_day
        preps: dict[str, dict[Optional[DayOfWeek], set[str]]] = defaultdict(lambda: defaultdict(set))

        for slot in schedule.slots:
            if slot.teacher_id is not None and slot.course_id is not None:
                preps[slot.teacher_id][slot.day].add(slot.course_id)

        violations = []
        for teacher_id, days in preps.items():
            for day, courses in days.items():
                if len(courses) > limit:
                    violation = WipViolation(teacher_id, day, len(courses), limit)
                    logger.warning("%s", violation)
                    violations.append(violation)
        return violations

    def check_gaps(self, schedule: Schedule) -> list[GapViolation]:
        """Flag same-day gaps longer than max_gap_minutes between consecutive slots."""
        violations = []

        for teacher_id, slots in group_slots_by_teacher(schedule.slots).items():
            ordered = sort_by_day_and_start(slots)
            for current, nxt in zip(ordered, ordered[1:]):
                if current.day != nxt.day:
                    continue
                gap = nxt.start_minutes - current.end_minutes
                if gap > self.settings.max_gap_minutes:
                    violation = GapViolation(teacher_id, current.day, gap, current.id, nxt.id)
                    logger.debug(
                        "%s (%s-%s)", violation,
                        minutes_to_time(current.end_minutes), minutes_to_time(nxt.start_minutes),
                    )
                    violations.append(violation)
        return violations

    def check_slot_times(self, schedule: Schedule) -> list[MissingTimeViolation]:
        violations = []
        for slot in schedule.slots:
            if not slot.has_times:
                violation = MissingTimeViolation(slot.id)
                logger.warning("%s", violation)
                violations.append(violation)
        return violations


def audit_flow(schedule: Schedule, settings: Optional[OptimizerSettings] = None) -> FlowReport:
    """Run all flow checks on a schedule."""
    return FlowAuditor(settings).audit(schedule)
