"""
Utilization and waste measurement.

Utilization is measured against fixed capacity assumptions:
- A teacher is fully used at max_slots_per_teacher slots
- A room is fully used at max_slots_per_room slots

Waste compares the slots in use with every room-period in the week.
"""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass
from typing import Iterable, Optional

from schedule_optimizer.config import OptimizerSettings
from schedule_optimizer.data.models import Room, Schedule, Slot

logger = logging.getLogger(__name__)


@dataclass
class WasteAnalysis:
    """Unused capacity in a schedule."""
    empty_slots: int = 0
    underutilized_rooms: int = 0
    waste_percentage: float = 0.0
    total_possible_slots: int = 0
    used_slots: int = 0


@dataclass
class EfficiencyMetrics:
    teacher_utilization: float = 0.0
    room_utilization: float = 0.0

    @property
    def efficiency_rate(self) -> float:
        return (self.teacher_utilization + self.room_utilization) / 2.0


def _average_utilization(resource_ids: Iterable[Optional[str]], capacity: int) -> float:
    counts = Counter(rid for rid in resource_ids if rid is not None)
    if not counts:
        return 0.0
    total = sum(min(count / capacity, 1.0) for count in counts.values())
    return total / len(counts) * 100


def calculate_teacher_utilization(
    slots: list[Slot],
    settings: Optional[OptimizerSettings] = None,
) -> float:
    """Average per-teacher load as a percentage, over teachers with at least one slot."""
    settings = settings or OptimizerSettings()
    return _average_utilization((s.teacher_id for s in slots), settings.max_slots_per_teacher)


def calculate_room_utilization(
    slots: list[Slot],
    settings: Optional[OptimizerSettings] = None,
) -> float:
    """Average per-room load as a percentage, over rooms with at least one slot."""
    settings = settings or OptimizerSettings()
    return _average_utilization((s.room_id for s in slots), settings.max_slots_per_room)


def measure_efficiency(schedule: Schedule, settings: Optional[OptimizerSettings] = None) -> EfficiencyMetrics:
    return EfficiencyMetrics(
        teacher_utilization=calculate_teacher_utilization(schedule.slots, settings),
        room_utilization=calculate_room_utilization(schedule.slots, settings),
    )


def analyze_waste(
    schedule: Schedule,
    rooms: list[Room],
    settings: Optional[OptimizerSettings] = None,
) -> WasteAnalysis:
    """
    Measure unused capacity.

    Args:
        schedule: Schedule to analyze
        rooms: Every room in the school
        settings: Optimizer settings (defaults if None)

    Returns:
        WasteAnalysis; all zeros for a schedule without slots
    """
    settings = settings or OptimizerSettings()
    if not schedule.slots:
        return WasteAnalysis()

    total_possible = len(rooms) * settings.periods_per_day * settings.days_per_week
    used = len(schedule.slots)

    room_usage = Counter(s.room_id for s in schedule.slots if s.room_id is not None)
    underutilized = sum(
        1 for count in room_usage.values()
        if count < settings.underutilized_room_threshold
    )

    empty = total_possible - used
    waste = empty / total_possible * 100 if total_possible else 0.0

    analysis = WasteAnalysis(
        empty_slots=empty,
        underutilized_rooms=underutilized,
        waste_percentage=waste,
        total_possible_slots=total_possible,
        used_slots=used,
    )

    logger.debug(
        "Waste analysis - Empty slots: %d, Underutilized rooms: %d, Waste: %.1f%%",
        analysis.empty_slots, analysis.underutilized_rooms, analysis.waste_percentage,
    )
    if analysis.underutilized_rooms > 0:
        logger.info("Consider consolidating %d underutilized rooms", analysis.underutilized_rooms)

    return analysis
