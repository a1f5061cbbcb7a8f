"""Load and validate school scheduling data from JSON files."""

from __future__ import annotations

import json
import logging
import re
from datetime import date
from pathlib import Path
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .models import (
    Course,
    DayOfWeek,
    MinutesFromMidnight,
    Room,
    Schedule,
    ScheduleStatus,
    Slot,
    Teacher,
    minutes_to_time,
    time_to_minutes,
)

logger = logging.getLogger(__name__)


class DataValidationError(Exception):
    """Raised when school data fails validation."""
    pass


# =============================================================================
# Input Records (id-referenced)
# =============================================================================

class SlotRecord(BaseModel):
    """A slot as stored on disk, referencing entities by ID."""
    model_config = ConfigDict(extra="forbid")

    id: str = Field(min_length=1)
    teacher_id: Optional[str] = None
    room_id: Optional[str] = None
    course_id: Optional[str] = None
    day: Optional[DayOfWeek] = None
    start_time: Optional[MinutesFromMidnight] = None
    end_time: Optional[MinutesFromMidnight] = None

    @field_validator("start_time", "end_time", mode="before")
    @classmethod
    def parse_time(cls, value: Any) -> Any:
        if isinstance(value, str):
            return time_to_minutes(value)
        return value


class ScheduleRecord(BaseModel):
    """A schedule as stored on disk."""
    model_config = ConfigDict(extra="forbid")

    id: Optional[str] = None
    name: str = Field(min_length=1)
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    status: ScheduleStatus = ScheduleStatus.DRAFT
    slots: list[SlotRecord] = Field(default_factory=list)

    optimization_score: Optional[float] = None
    total_conflicts: Optional[int] = None
    resolved_conflicts: Optional[int] = None
    teacher_utilization: Optional[float] = None
    room_utilization: Optional[float] = None
    efficiency_rate: Optional[float] = None
    created_date: Optional[date] = None
    last_modified_date: Optional[date] = None


class SchoolDataset(BaseModel):
    """
    Complete scheduling dataset.

    Holds the reference data (teachers, rooms, courses) and the schedules
    whose slots point at them by ID.
    """
    model_config = ConfigDict(extra="forbid")

    teachers: list[Teacher] = Field(default_factory=list)
    rooms: list[Room] = Field(default_factory=list)
    courses: list[Course] = Field(default_factory=list)
    schedules: list[ScheduleRecord] = Field(default_factory=list)

    _teacher_map: dict[str, Teacher] = {}
    _room_map: dict[str, Room] = {}
    _course_map: dict[str, Course] = {}

    def model_post_init(self, __context: Any) -> None:
        """Build lookup maps after model initialization."""
        self._teacher_map = {t.id: t for t in self.teachers}
        self._room_map = {r.id: r for r in self.rooms}
        self._course_map = {c.id: c for c in self.courses}

    @model_validator(mode="after")
    def validate_references(self) -> "SchoolDataset":
        """Validate slot references and ID uniqueness."""
        errors: list[str] = []

        def check_duplicates(items: list, entity_name: str) -> None:
            seen: set[str] = set()
            for item in items:
                if item.id is None:
                    continue
                if item.id in seen:
                    errors.append(f"Duplicate {entity_name} ID: {item.id}")
                seen.add(item.id)

        check_duplicates(self.teachers, "teacher")
        check_duplicates(self.rooms, "room")
        check_duplicates(self.courses, "course")
        check_duplicates(self.schedules, "schedule")

        teacher_ids = {t.id for t in self.teachers}
        room_ids = {r.id for r in self.rooms}
        course_ids = {c.id for c in self.courses}

        for schedule in self.schedules:
            check_duplicates(schedule.slots, f"slot in schedule '{schedule.name}'")
            for slot in schedule.slots:
                if slot.teacher_id is not None and slot.teacher_id not in teacher_ids:
                    errors.append(f"Slot {slot.id}: unknown teacher_id '{slot.teacher_id}'")
                if slot.room_id is not None and slot.room_id not in room_ids:
                    errors.append(f"Slot {slot.id}: unknown room_id '{slot.room_id}'")
                if slot.course_id is not None and slot.course_id not in course_ids:
                    errors.append(f"Slot {slot.id}: unknown course_id '{slot.course_id}'")
                if (
                    slot.start_time is not None
                    and slot.end_time is not None
                    and slot.start_time >= slot.end_time
                ):
                    errors.append(
                        f"Slot {slot.id}: start {minutes_to_time(slot.start_time)} "
                        f"is not before end {minutes_to_time(slot.end_time)}"
                    )

        if errors:
            raise DataValidationError("; ".join(errors))
        return self

    # -------------------------------------------------------------------------
    # Lookups
    # -------------------------------------------------------------------------

    def get_teacher(self, teacher_id: Optional[str]) -> Optional[Teacher]:
        return self._teacher_map.get(teacher_id) if teacher_id else None

    def get_room(self, room_id: Optional[str]) -> Optional[Room]:
        return self._room_map.get(room_id) if room_id else None

    def get_course(self, course_id: Optional[str]) -> Optional[Course]:
        return self._course_map.get(course_id) if course_id else None

    # -------------------------------------------------------------------------
    # Conversion
    # -------------------------------------------------------------------------

    def build_schedule(self, record: ScheduleRecord) -> Schedule:
        """Resolve a schedule record's ID references into a Schedule."""
        slots = [
            Slot(
                id=s.id,
                teacher=self.get_teacher(s.teacher_id),
                room=self.get_room(s.room_id),
                course=self.get_course(s.course_id),
                day=s.day,
                start_minutes=s.start_time,
                end_minutes=s.end_time,
            )
            for s in record.slots
        ]
        fields = record.model_dump(exclude={"slots"})
        return Schedule(slots=slots, **fields)

    def build_schedules(self) -> list[Schedule]:
        return [self.build_schedule(record) for record in self.schedules]

    def summary(self) -> dict[str, Any]:
        """Get summary statistics."""
        return {
            "teachers": len(self.teachers),
            "rooms": len(self.rooms),
            "courses": len(self.courses),
            "schedules": len(self.schedules),
            "slots": sum(len(s.slots) for s in self.schedules),
        }


def schedule_to_record(schedule: Schedule) -> ScheduleRecord:
    """Flatten a Schedule back into its on-disk, ID-referenced form."""
    slots = [
        SlotRecord(
            id=slot.id,
            teacher_id=slot.teacher_id,
            room_id=slot.room_id,
            course_id=slot.course_id,
            day=slot.day,
            start_time=slot.start_minutes,
            end_time=slot.end_minutes,
        )
        for slot in schedule.slots
    ]
    fields = schedule.model_dump(exclude={"slots"})
    return ScheduleRecord(slots=slots, **fields)


# =============================================================================
# JSON Loading Helpers
# =============================================================================

def load_dataset(path: Union[str, Path]) -> SchoolDataset:
    """
    Load and validate a school dataset from a JSON file.

    Keys may be camelCase or snake_case; slot times may be 'HH:MM' strings
    or minutes from midnight.

    Args:
        path: Path to the JSON file

    Returns:
        Validated SchoolDataset

    Raises:
        FileNotFoundError: If the file doesn't exist
        json.JSONDecodeError: If the file isn't valid JSON
        DataValidationError: If references or IDs are inconsistent
        pydantic.ValidationError: If the data fails schema validation
    """
    path = Path(path)

    with open(path) as f:
        data = json.load(f)

    dataset = parse_dataset(data)
    logger.info("Loaded dataset from %s: %s", path, dataset.summary())
    return dataset


def parse_dataset(data: dict) -> SchoolDataset:
    """Validate an already-decoded dataset dictionary."""
    return SchoolDataset.model_validate(convert_keys_to_snake_case(data))


def save_dataset(dataset: SchoolDataset, path: Union[str, Path]) -> None:
    """Write a dataset back to JSON using time strings for slot times."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    payload = dataset.model_dump(mode="json")
    for schedule in payload["schedules"]:
        for slot in schedule["slots"]:
            for key in ("start_time", "end_time"):
                if slot[key] is not None:
                    slot[key] = minutes_to_time(slot[key])

    with open(path, "w") as f:
        json.dump(payload, f, indent=2)


def convert_keys_to_snake_case(obj: Any) -> Any:
    """Recursively convert dictionary keys from camelCase to snake_case."""

    def to_snake_case(name: str) -> str:
        name = re.sub(r'([A-Z]+)([A-Z][a-z])', r'\1_\2', name)
        name = re.sub(r'([a-z\d])([A-Z])', r'\1_\2', name)
        return name.lower()

    if isinstance(obj, dict):
        return {to_snake_case(k): convert_keys_to_snake_case(v) for k, v in obj.items()}
    elif isinstance(obj, list):
        return [convert_keys_to_snake_case(item) for item in obj]
    else:
        return obj

