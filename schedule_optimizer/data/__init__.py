"""Data models, loading utilities and store contracts."""

from .models import (
    Course,
    DayOfWeek,
    OptimizationRequest,
    Room,
    Schedule,
    ScheduleStatus,
    Slot,
    Teacher,
    day_name,
    minutes_to_time,
    time_to_minutes,
)
from .loader import (
    DataValidationError,
    SchoolDataset,
    ScheduleRecord,
    SlotRecord,
    load_dataset,
    parse_dataset,
    save_dataset,
    schedule_to_record,
)
from .store import (
    InMemoryRoomStore,
    InMemoryScheduleStore,
    RoomStore,
    ScheduleStore,
)

__all__ = [
    # Models
    "Course",
    "DayOfWeek",
    "OptimizationRequest",
    "Room",
    "Schedule",
    "ScheduleStatus",
    "Slot",
    "Teacher",
    "day_name",
    "minutes_to_time",
    "time_to_minutes",
    # Loader
    "DataValidationError",
    "SchoolDataset",
    "ScheduleRecord",
    "SlotRecord",
    "load_dataset",
    "parse_dataset",
    "save_dataset",
    "schedule_to_record",
    # Stores
    "InMemoryRoomStore",
    "InMemoryScheduleStore",
    "RoomStore",
    "ScheduleStore",
]
