"""
Pydantic models for the schedule optimizer data model.

Time conventions:
- Time is represented as minutes from midnight (0-1439)
- Days are 0-6 (Monday-Sunday)

Example times:
- 7:30 AM = 450
- 12:00 PM = 720
- 2:30 PM = 870
"""

from __future__ import annotations

import re
from datetime import date
from enum import Enum
from typing import Annotated, Any, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)


# =============================================================================
# Constants and Enums
# =============================================================================

class DayOfWeek(int, Enum):
    """Day of week: 0=Monday through 6=Sunday."""
    MONDAY = 0
    TUESDAY = 1
    WEDNESDAY = 2
    THURSDAY = 3
    FRIDAY = 4
    SATURDAY = 5
    SUNDAY = 6


class ScheduleStatus(str, Enum):
    """Lifecycle status of a schedule."""
    DRAFT = "draft"
    PUBLISHED = "published"
    ARCHIVED = "archived"


DEFAULT_SCHEDULE_NAME = "Optimized Schedule"

LAST_MINUTE_OF_DAY = 1439

MinutesFromMidnight = Annotated[int, Field(ge=0, le=LAST_MINUTE_OF_DAY, description="Time as minutes from midnight")]

_TIME_PATTERN = re.compile(r"^(\d{1,2}):(\d{2})$")


# =============================================================================
# Helper Functions
# =============================================================================

def minutes_to_time(minutes: int) -> str:
    """Convert minutes from midnight to HH:MM format."""
    h, m = divmod(minutes, 60)
    return f"{h:02d}:{m:02d}"


def time_to_minutes(time_str: str) -> int:
    """Convert HH:MM format to minutes from midnight."""
    match = _TIME_PATTERN.match(time_str.strip())
    if not match:
        raise ValueError(f"Invalid time '{time_str}', expected HH:MM")
    h, m = int(match.group(1)), int(match.group(2))
    if h > 23 or m > 59:
        raise ValueError(f"Invalid time '{time_str}', expected HH:MM")
    return h * 60 + m


def day_name(day: Optional[int]) -> str:
    """Get day name from index."""
    if day is None:
        return "Unscheduled"
    names = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"]
    return names[day] if 0 <= day <= 6 else f"Day {day}"


def _coerce_time(value: Any) -> Any:
    """Accept 'HH:MM' strings wherever minutes are expected."""
    if isinstance(value, str):
        return time_to_minutes(value)
    return value


# =============================================================================
# Reference Entities
# =============================================================================

class Teacher(BaseModel):
    """Teacher entity."""
    model_config = ConfigDict(extra="forbid")

    id: str = Field(min_length=1, description="Unique identifier")
    name: str = Field(min_length=1, description="Full name")
    code: Optional[str] = Field(default=None, max_length=5, description="Short code (e.g., initials)")
    email: Optional[str] = Field(default=None, description="Email address")

    def __str__(self) -> str:
        return f"{self.name} ({self.code or self.id})"


class Room(BaseModel):
    """Room/facility."""
    model_config = ConfigDict(extra="forbid")

    id: str = Field(min_length=1, description="Unique identifier")
    name: str = Field(min_length=1, description="Room name/number")
    capacity: Optional[int] = Field(default=None, ge=1, description="Max capacity")
    building: Optional[str] = Field(default=None, description="Building name")

    def __str__(self) -> str:
        return self.name


class Course(BaseModel):
    """Course offered by the school."""
    model_config = ConfigDict(extra="forbid")

    id: str = Field(min_length=1, description="Unique identifier")
    name: Optional[str] = Field(default=None, description="Course name (e.g., 'AP Biology')")
    code: Optional[str] = Field(default=None, max_length=10, description="Short code")
    is_core_required: Optional[bool] = Field(default=None, description="Required core course")
    credits: Optional[float] = Field(default=None, ge=0, description="Credit value")

    def __str__(self) -> str:
        return f"{self.name or self.id} ({self.code or self.id})"


# =============================================================================
# Schedule Models
# =============================================================================

class Slot(BaseModel):
    """
    One scheduled occurrence of a course.

    Teacher, room and course references are optional; an absent reference
    means no conflict is possible on that axis. A slot missing either time is
    skipped by conflict and compactness computations.
    """
    model_config = ConfigDict(extra="forbid")

    id: str = Field(min_length=1, description="Unique identifier")
    teacher: Optional[Teacher] = Field(default=None, description="Assigned teacher")
    room: Optional[Room] = Field(default=None, description="Assigned room")
    course: Optional[Course] = Field(default=None, description="Course taught")
    day: Optional[DayOfWeek] = Field(default=None, description="Day of week")
    start_minutes: Optional[MinutesFromMidnight] = Field(default=None, description="Start time")
    end_minutes: Optional[MinutesFromMidnight] = Field(default=None, description="End time")

    @field_validator("start_minutes", "end_minutes", mode="before")
    @classmethod
    def parse_time(cls, value: Any) -> Any:
        return _coerce_time(value)

    @model_validator(mode="after")
    def validate_time_range(self) -> "Slot":
        """Ensure start time is before end time when both are present."""
        if (
            self.start_minutes is not None
            and self.end_minutes is not None
            and self.start_minutes >= self.end_minutes
        ):
            raise ValueError(
                f"start_minutes ({self.start_minutes}) must be less than "
                f"end_minutes ({self.end_minutes})"
            )
        return self

    @property
    def has_times(self) -> bool:
        return self.start_minutes is not None and self.end_minutes is not None

    @property
    def duration_minutes(self) -> Optional[int]:
        """Configured duration, or None when a time is missing."""
        if not self.has_times:
            return None
        return self.end_minutes - self.start_minutes

    @property
    def teacher_id(self) -> Optional[str]:
        return self.teacher.id if self.teacher else None

    @property
    def room_id(self) -> Optional[str]:
        return self.room.id if self.room else None

    @property
    def course_id(self) -> Optional[str]:
        return self.course.id if self.course else None

    def move_to(self, start_minutes: int) -> None:
        """Move the slot to a new start time, keeping its duration."""
        duration = self.duration_minutes
        if duration is None:
            raise ValueError(f"Slot {self.id} has no time range to move")
        self.start_minutes = start_minutes
        self.end_minutes = start_minutes + duration

    def __str__(self) -> str:
        if self.has_times:
            when = f"{minutes_to_time(self.start_minutes)}-{minutes_to_time(self.end_minutes)}"
        else:
            when = "no time"
        return f"Slot {self.id} ({day_name(self.day)} {when})"


class Schedule(BaseModel):
    """The optimization unit: a named timetable and its slots."""
    model_config = ConfigDict(extra="forbid")

    id: Optional[str] = Field(default=None, description="Identity assigned by the store")
    name: str = Field(default=DEFAULT_SCHEDULE_NAME, min_length=1, description="Display name")
    start_date: Optional[date] = Field(default=None, description="First valid date")
    end_date: Optional[date] = Field(default=None, description="Last valid date")
    status: ScheduleStatus = Field(default=ScheduleStatus.DRAFT, description="Lifecycle status")
    slots: list[Slot] = Field(default_factory=list, description="Scheduled slots, in order")

    optimization_score: Optional[float] = Field(default=None, description="Last optimization score")
    total_conflicts: Optional[int] = Field(default=None, ge=0)
    resolved_conflicts: Optional[int] = Field(default=None, ge=0)
    teacher_utilization: Optional[float] = Field(default=None)
    room_utilization: Optional[float] = Field(default=None)
    efficiency_rate: Optional[float] = Field(default=None)

    created_date: Optional[date] = Field(default=None)
    last_modified_date: Optional[date] = Field(default=None)

    @property
    def has_slots(self) -> bool:
        return bool(self.slots)

    def get_slot(self, slot_id: str) -> Optional[Slot]:
        """Get slot by ID."""
        for slot in self.slots:
            if slot.id == slot_id:
                return slot
        return None

    def __str__(self) -> str:
        return f"Schedule {self.id or '<new>'}: {self.name} ({len(self.slots)} slots)"


class OptimizationRequest(BaseModel):
    """Caller-facing request to optimize a schedule."""
    model_config = ConfigDict(extra="forbid")

    schedule_name: Optional[str] = Field(default=None, description="Schedule to look up by name")
    start_date: Optional[date] = Field(default=None, description="Validity start for a new schedule")
    end_date: Optional[date] = Field(default=None, description="Validity end for a new schedule")

    @model_validator(mode="after")
    def validate_date_range(self) -> "OptimizationRequest":
        if self.start_date and self.end_date and self.start_date > self.end_date:
            raise ValueError(
                f"start_date ({self.start_date}) must not be after end_date ({self.end_date})"
            )
        return self

    @property
    def has_name(self) -> bool:
        return bool(self.schedule_name and self.schedule_name.strip())
