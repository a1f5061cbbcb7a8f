"""
Collaborator contracts for schedule and room persistence.

The optimizer only reads and writes through these narrow protocols. The
in-memory implementations back the CLI and the tests.
"""

from __future__ import annotations

import logging
import uuid
from typing import Optional, Protocol

from .loader import SchoolDataset, schedule_to_record
from .models import Room, Schedule

logger = logging.getLogger(__name__)


class ScheduleStore(Protocol):
    """Schedule persistence contract."""

    def find_by_exact_name(self, name: str) -> Optional[Schedule]:
        """Find a schedule whose name matches case-insensitively."""
        ...

    def save(self, schedule: Schedule) -> Schedule:
        """Insert or replace a schedule by identity."""
        ...


class RoomStore(Protocol):
    """Read-only room listing used for waste analysis."""

    def list_all_rooms(self) -> list[Room]:
        ...


class InMemoryScheduleStore:
    """Dictionary-backed ScheduleStore keyed by schedule ID."""

    def __init__(self, schedules: Optional[list[Schedule]] = None):
        self._schedules: dict[str, Schedule] = {}
        for schedule in schedules or []:
            self.save(schedule)

    @classmethod
    def from_dataset(cls, dataset: SchoolDataset) -> InMemoryScheduleStore:
        return cls(dataset.build_schedules())

    def find_by_exact_name(self, name: str) -> Optional[Schedule]:
        if not name:
            return None
        wanted = name.casefold()
        for schedule in self._schedules.values():
            if schedule.name and schedule.name.casefold() == wanted:
                return schedule
        return None

    def save(self, schedule: Schedule) -> Schedule:
        if schedule.id is None:
            schedule.id = uuid.uuid4().hex
            logger.debug("Assigned id %s to schedule '%s'", schedule.id, schedule.name)
        self._schedules[schedule.id] = schedule
        return schedule

    def get(self, schedule_id: str) -> Optional[Schedule]:
        return self._schedules.get(schedule_id)

    def find_all(self) -> list[Schedule]:
        return list(self._schedules.values())

    def to_dataset(self, reference: SchoolDataset) -> SchoolDataset:
        """Rebuild a dataset with this store's schedules and the reference entities."""
        return SchoolDataset(
            teachers=reference.teachers,
            rooms=reference.rooms,
            courses=reference.courses,
            schedules=[schedule_to_record(s) for s in self._schedules.values()],
        )

    def __len__(self) -> int:
        return len(self._schedules)


class InMemoryRoomStore:
    """Fixed room universe."""

    def __init__(self, rooms: Optional[list[Room]] = None):
        self._rooms = list(rooms or [])

    @classmethod
    def from_dataset(cls, dataset: SchoolDataset) -> InMemoryRoomStore:
        return cls(dataset.rooms)

    def list_all_rooms(self) -> list[Room]:
        return list(self._rooms)
