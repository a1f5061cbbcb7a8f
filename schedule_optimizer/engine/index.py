"""Group slots by the resource they occupy."""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from typing import Callable, Iterable, Optional

from schedule_optimizer.data.models import Slot


@dataclass
class ResourceIndex:
    """Slots grouped by teacher ID and by room ID."""
    by_teacher: dict[str, list[Slot]] = field(default_factory=dict)
    by_room: dict[str, list[Slot]] = field(default_factory=dict)


def _group_by(slots: Iterable[Slot], key: Callable[[Slot], Optional[str]]) -> dict[str, list[Slot]]:
    grouped: dict[str, list[Slot]] = defaultdict(list)
    for slot in slots:
        resource_id = key(slot)
        if resource_id is not None:
            grouped[resource_id].append(slot)
    return dict(grouped)


def group_slots_by_teacher(slots: Iterable[Slot]) -> dict[str, list[Slot]]:
    """Group slots by teacher, skipping slots without a teacher."""
    return _group_by(slots, lambda s: s.teacher_id)


def group_slots_by_room(slots: Iterable[Slot]) -> dict[str, list[Slot]]:
    """Group slots by room, skipping slots without a room."""
    return _group_by(slots, lambda s: s.room_id)


def build_resource_index(slots: list[Slot]) -> ResourceIndex:
    return ResourceIndex(
        by_teacher=group_slots_by_teacher(slots),
        by_room=group_slots_by_room(slots),
    )


def sort_by_day_and_start(slots: Iterable[Slot]) -> list[Slot]:
    """Timed slots ordered by (day, start time); untimed slots are dropped."""
    timed = [s for s in slots if s.has_times]
    return sorted(
        timed,
        key=lambda s: (s.day.value if s.day is not None else -1, s.start_minutes),
    )
