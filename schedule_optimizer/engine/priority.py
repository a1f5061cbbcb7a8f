"""
Eisenhower-matrix priority classification of slots.

The category depends only on the course a slot carries:
- Core required courses are urgent and important
- AP, Honors and IB courses are important but not urgent
- Other full-credit courses are urgent but not important
- Everything else is neither
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from schedule_optimizer.data.models import Course, Schedule, Slot

logger = logging.getLogger(__name__)

ADVANCED_COURSE_MARKERS = ("AP ", "HONORS", "IB ")


class PriorityCategory(str, Enum):
    URGENT_IMPORTANT = "urgent_important"
    NOT_URGENT_IMPORTANT = "not_urgent_important"
    URGENT_NOT_IMPORTANT = "urgent_not_important"
    NOT_URGENT_NOT_IMPORTANT = "not_urgent_not_important"


def classify_course(course: Optional[Course]) -> PriorityCategory:
    """Classify a course into a priority category."""
    if course is None:
        return PriorityCategory.NOT_URGENT_NOT_IMPORTANT

    if course.is_core_required:
        return PriorityCategory.URGENT_IMPORTANT

    name = (course.name or "").upper()
    if any(marker in name for marker in ADVANCED_COURSE_MARKERS):
        return PriorityCategory.NOT_URGENT_IMPORTANT

    if course.credits is not None and course.credits >= 1.0:
        return PriorityCategory.URGENT_NOT_IMPORTANT

    return PriorityCategory.NOT_URGENT_NOT_IMPORTANT


def classify_slot(slot: Slot) -> PriorityCategory:
    return classify_course(slot.course)


@dataclass
class PriorityBreakdown:
    """Slot IDs per priority category."""
    slots_by_category: dict[PriorityCategory, list[str]] = field(
        default_factory=lambda: {category: [] for category in PriorityCategory}
    )

    @property
    def counts(self) -> dict[PriorityCategory, int]:
        return {category: len(ids) for category, ids in self.slots_by_category.items()}

    def category_of(self, slot_id: str) -> Optional[PriorityCategory]:
        for category, ids in self.slots_by_category.items():
            if slot_id in ids:
                return category
        return None


def classify_priorities(schedule: Schedule) -> PriorityBreakdown:
    """Classify every slot in the schedule and log the category counts."""
    breakdown = PriorityBreakdown()

    if not schedule.slots:
        return breakdown

    for slot in schedule.slots:
        breakdown.slots_by_category[classify_slot(slot)].append(slot.id)

    counts = breakdown.counts
    logger.info(
        "Priority matrix for schedule %s: urgent+important=%d, important=%d, "
        "urgent=%d, neither=%d",
        schedule.id,
        counts[PriorityCategory.URGENT_IMPORTANT],
        counts[PriorityCategory.NOT_URGENT_IMPORTANT],
        counts[PriorityCategory.URGENT_NOT_IMPORTANT],
        counts[PriorityCategory.NOT_URGENT_NOT_IMPORTANT],
    )
    return breakdown
