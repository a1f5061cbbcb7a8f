"""
Optimization score calculator.

Combines five sub-scores, each in [0, 100], into one weighted score:
- Teacher utilization
- Room utilization
- Preference satisfaction (core courses scheduled before noon)
- Conflict resolution rate
- Compactness (absence of idle gaps in teacher days)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional

from schedule_optimizer.config import OptimizerSettings
from schedule_optimizer.data.models import Schedule

from .index import group_slots_by_teacher, sort_by_day_and_start
from .priority import PriorityCategory, classify_slot
from .waste import calculate_room_utilization, calculate_teacher_utilization

logger = logging.getLogger(__name__)


@dataclass
class ScoreBreakdown:
    """Sub-scores and the final weighted score."""
    teacher_utilization: float = 0.0
    room_utilization: float = 0.0
    preference: float = 0.0
    conflict_resolution: float = 0.0
    compactness: float = 0.0
    final_score: float = 0.0
    weighted: dict[str, float] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "teacherUtilization": round(self.teacher_utilization, 2),
            "roomUtilization": round(self.room_utilization, 2),
            "preference": round(self.preference, 2),
            "conflictResolution": round(self.conflict_resolution, 2),
            "compactness": round(self.compactness, 2),
            "finalScore": round(self.final_score, 2),
        }


class ScoreCalculator:
    """
    Calculator for the optimization score.

    Usage:
        calculator = ScoreCalculator(settings)
        breakdown = calculator.calculate(schedule)
        print(breakdown.final_score)
    """

    def __init__(self, settings: Optional[OptimizerSettings] = None):
        self.settings = settings or OptimizerSettings()

    def calculate(self, schedule: Schedule) -> ScoreBreakdown:
        """Calculate every sub-score and the weighted total. Empty schedules score 0."""
        if not schedule.slots:
            logger.info("Schedule %s has no slots, score is 0", schedule.id)
            return ScoreBreakdown()

        weights = self.settings.weights
        breakdown = ScoreBreakdown(
            teacher_utilization=calculate_teacher_utilization(schedule.slots, self.settings),
            room_utilization=calculate_room_utilization(schedule.slots, self.settings),
            preference=self.calculate_preference_score(schedule),
            conflict_resolution=self.calculate_conflict_resolution_score(schedule),
            compactness=self.calculate_compactness_score(schedule),
        )
        breakdown.weighted = {
            "teacher_utilization": breakdown.teacher_utilization * weights.teacher_utilization,
            "room_utilization": breakdown.room_utilization * weights.room_utilization,
            "preference": breakdown.preference * weights.preference,
            "conflict_resolution": breakdown.conflict_resolution * weights.conflict_resolution,
            "compactness": breakdown.compactness * weights.compactness,
        }
        breakdown.final_score = min(100.0, max(0.0, sum(breakdown.weighted.values())))

        logger.info(
            "Score breakdown for schedule %s - Teacher: %.1f, Room: %.1f, Conflicts: %.1f, "
            "Compactness: %.1f, Preference: %.1f. Final: %.1f",
            schedule.id,
            breakdown.teacher_utilization,
            breakdown.room_utilization,
            breakdown.conflict_resolution,
            breakdown.compactness,
            breakdown.preference,
            breakdown.final_score,
        )
        logger.debug("Weighted contributions: %s", breakdown.weighted)
        return breakdown

    def calculate_conflict_resolution_score(self, schedule: Schedule) -> float:
        total = schedule.total_conflicts or 0
        resolved = schedule.resolved_conflicts or 0
        if total == 0:
            return 100.0
        return min(resolved, total) / total * 100

    def calculate_compactness_score(self, schedule: Schedule) -> float:
        """
        Score idle time in teacher days.

        For each teacher with at least two timed slots, gaps between
        consecutive same-day slots longer than the noise floor are summed.
        The total is averaged over those teachers and scaled so that an
        average of max_acceptable_gap_minutes or more scores 0.
        """
        floor = self.settings.gap_noise_floor_minutes
        total_gap = 0.0
        teacher_count = 0

        for slots in group_slots_by_teacher(schedule.slots).values():
            ordered = sort_by_day_and_start(slots)
            if len(ordered) < 2:
                continue

            for current, nxt in zip(ordered, ordered[1:]):
                if current.day is None or current.day != nxt.day:
                    continue
                gap = nxt.start_minutes - current.end_minutes
                if gap > floor:
                    total_gap += gap
            teacher_count += 1

        if teacher_count == 0:
            return 100.0

        avg_gap = total_gap / teacher_count
        return max(0.0, 100 - (avg_gap / self.settings.max_acceptable_gap_minutes * 100))

    def calculate_preference_score(self, schedule: Schedule) -> float:
        """Percentage of course slots whose timing satisfies their priority."""
        cutoff = self.settings.preference_cutoff_minutes
        satisfied = 0
        total = 0

        for slot in schedule.slots:
            if slot.course is None or slot.start_minutes is None:
                continue
            total += 1
            if classify_slot(slot) is not PriorityCategory.URGENT_IMPORTANT:
                satisfied += 1
            elif slot.start_minutes < cutoff:
                satisfied += 1

        if total == 0:
            return 100.0
        return satisfied / total * 100


def score_breakdown(schedule: Schedule, settings: Optional[OptimizerSettings] = None) -> ScoreBreakdown:
    return ScoreCalculator(settings).calculate(schedule)


def compute_score(schedule: Schedule, settings: Optional[OptimizerSettings] = None) -> float:
    """Calculate the weighted optimization score in [0, 100]."""
    return ScoreCalculator(settings).calculate(schedule).final_score
