"""
Conflict detection and repair.

Detection compares every pair of slots sharing a teacher or a room.
Repair is first-fit: the second slot of each conflicting pair is moved to
the first candidate start time that collides with no other slot sharing
its teacher or room on that day. There is no backtracking, so the order in
which conflicts are processed affects the outcome and processing must stay
sequential.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from schedule_optimizer.config import OptimizerSettings
from schedule_optimizer.data.models import LAST_MINUTE_OF_DAY, Schedule, Slot, minutes_to_time

from .index import group_slots_by_room, group_slots_by_teacher

logger = logging.getLogger(__name__)


class ResourceKind(str, Enum):
    TEACHER = "teacher"
    ROOM = "room"


# =============================================================================
# Value Types
# =============================================================================

@dataclass
class Conflict:
    """Two slots on the same resource whose times overlap on the same day."""
    first: Slot
    second: Slot
    resource: ResourceKind
    resource_id: str

    def __str__(self) -> str:
        return f"{self.resource.value} {self.resource_id}: {self.first} overlaps {self.second}"


@dataclass
class Relocation:
    """A slot moved by the resolver."""
    slot_id: str
    old_start_minutes: int
    new_start_minutes: int
    duration_minutes: int

    def __str__(self) -> str:
        return (
            f"Slot {self.slot_id}: {minutes_to_time(self.old_start_minutes)} -> "
            f"{minutes_to_time(self.new_start_minutes)}"
        )


@dataclass
class ConflictReport:
    """Outcome of one detect-and-resolve pass."""
    conflicts: list[Conflict] = field(default_factory=list)
    relocations: list[Relocation] = field(default_factory=list)
    unresolved: list[Conflict] = field(default_factory=list)

    @property
    def total_conflicts(self) -> int:
        return len(self.conflicts)

    @property
    def resolved_conflicts(self) -> int:
        return len(self.relocations)

    @property
    def teacher_conflicts(self) -> int:
        return sum(1 for c in self.conflicts if c.resource is ResourceKind.TEACHER)

    @property
    def room_conflicts(self) -> int:
        return sum(1 for c in self.conflicts if c.resource is ResourceKind.ROOM)

    @property
    def resolution_rate(self) -> float:
        """Percentage of conflicts resolved; 100 when there were none."""
        if not self.conflicts:
            return 100.0
        return self.resolved_conflicts / self.total_conflicts * 100


# =============================================================================
# Detection
# =============================================================================

def slots_overlap(a: Slot, b: Slot) -> bool:
    """
    Check whether two slots overlap.

    Same day and half-open [start, end) ranges that intersect. Touching
    endpoints do not overlap; slots missing a time never overlap.
    """
    if a.day != b.day:
        return False
    if not (a.has_times and b.has_times):
        return False
    return a.start_minutes < b.end_minutes and b.start_minutes < a.end_minutes


def find_time_conflicts(
    slots: list[Slot],
    resource: ResourceKind = ResourceKind.TEACHER,
    resource_id: str = "",
) -> list[Conflict]:
    """
    Find every overlapping pair in a list of slots sharing one resource.

    Pairs are produced in (i, j) order with i < j.
    """
    conflicts = []
    for i in range(len(slots)):
        for j in range(i + 1, len(slots)):
            if slots_overlap(slots[i], slots[j]):
                conflicts.append(Conflict(slots[i], slots[j], resource, resource_id))
    return conflicts


# =============================================================================
# Resolution
# =============================================================================

class ConflictResolver:
    """
    First-fit conflict repair over a fixed list of candidate start times.

    Usage:
        resolver = ConflictResolver(settings)
        report = resolver.detect_and_resolve(schedule)
    """

    def __init__(self, settings: Optional[OptimizerSettings] = None):
        self.settings = settings or OptimizerSettings()

    def detect_and_resolve(self, schedule: Schedule) -> ConflictReport:
        """
        Detect and repair conflicts, teacher groups first, then room groups.

        Each group is detected against the slot times current at that point,
        so earlier relocations influence later groups. Sets total_conflicts
        and resolved_conflicts on the schedule.
        """
        report = ConflictReport()

        if not schedule.slots:
            logger.warning("No slots to optimize in schedule %s", schedule.id)
            return report

        for resource, grouper in (
            (ResourceKind.TEACHER, group_slots_by_teacher),
            (ResourceKind.ROOM, group_slots_by_room),
        ):
            for resource_id, slots in grouper(schedule.slots).items():
                conflicts = find_time_conflicts(slots, resource, resource_id)
                report.conflicts.extend(conflicts)
                self._resolve(conflicts, schedule, report)

        schedule.total_conflicts = report.total_conflicts
        schedule.resolved_conflicts = report.resolved_conflicts

        logger.info(
            "Resolved %d/%d conflicts in schedule %s",
            report.resolved_conflicts, report.total_conflicts, schedule.id,
        )
        return report

    def _resolve(self, conflicts: list[Conflict], schedule: Schedule, report: ConflictReport) -> None:
        for conflict in conflicts:
            slot = conflict.second
            new_start = self.find_available_time(slot, schedule)
            if new_start is None:
                logger.debug("No free candidate time for %s", slot)
                report.unresolved.append(conflict)
                continue

            old_start = slot.start_minutes
            duration = slot.duration_minutes
            slot.move_to(new_start)
            report.relocations.append(Relocation(slot.id, old_start, new_start, duration))
            logger.debug("Moved %s (was %s)", slot, minutes_to_time(old_start))

    def find_available_time(self, slot: Slot, schedule: Schedule) -> Optional[int]:
        """Return the first candidate start time free of collisions, or None."""
        for start in self.settings.candidate_start_times:
            if not self.has_conflict_at(slot, start, schedule):
                return start
        return None

    def has_conflict_at(self, slot: Slot, start: int, schedule: Schedule) -> bool:
        """
        Check whether placing the slot at start would collide with another slot.

        Only slots sharing the teacher or the room on the same day count.
        The tested window is collision_window_minutes long, or the slot's own
        duration when that setting is None. A start that would push the slot
        past the end of the day counts as a collision.
        """
        if start + slot.duration_minutes > LAST_MINUTE_OF_DAY:
            return True

        window = self.settings.collision_window_minutes or slot.duration_minutes
        end = start + window

        for other in schedule.slots:
            if other is slot or not other.has_times:
                continue
            if other.day != slot.day:
                continue

            same_teacher = slot.teacher_id is not None and slot.teacher_id == other.teacher_id
            same_room = slot.room_id is not None and slot.room_id == other.room_id
            if not (same_teacher or same_room):
                continue

            if start < other.end_minutes and end > other.start_minutes:
                return True

        return False


def detect_and_resolve_conflicts(
    schedule: Schedule,
    settings: Optional[OptimizerSettings] = None,
) -> ConflictReport:
    """Detect and repair teacher and room conflicts in place."""
    return ConflictResolver(settings).detect_and_resolve(schedule)


def detect_conflicts(schedule: Schedule) -> list[Conflict]:
    """List current teacher and room conflicts without repairing them."""
    conflicts = []
    for teacher_id, slots in group_slots_by_teacher(schedule.slots).items():
        conflicts.extend(find_time_conflicts(slots, ResourceKind.TEACHER, teacher_id))
    for room_id, slots in group_slots_by_room(schedule.slots).items():
        conflicts.extend(find_time_conflicts(slots, ResourceKind.ROOM, room_id))
    return conflicts
