"""
Optimizer configuration.

All tunable constants of the optimization passes live here so that a run
can be reproduced from a single settings file.
"""

from __future__ import annotations

import json
import logging
import math
from pathlib import Path
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .data.loader import convert_keys_to_snake_case
from .data.models import time_to_minutes

logger = logging.getLogger(__name__)


# 07:30 through 14:30, hourly
DEFAULT_CANDIDATE_START_TIMES = [450, 510, 570, 630, 690, 750, 810, 870]


class ScoreWeights(BaseModel):
    """Weights for the five optimization sub-scores. Should sum to 1.0."""
    model_config = ConfigDict(extra="forbid")

    teacher_utilization: float = Field(default=0.25, ge=0, le=1)
    room_utilization: float = Field(default=0.20, ge=0, le=1)
    preference: float = Field(default=0.25, ge=0, le=1)
    conflict_resolution: float = Field(default=0.15, ge=0, le=1)
    compactness: float = Field(default=0.15, ge=0, le=1)

    @model_validator(mode="after")
    def check_total(self) -> "ScoreWeights":
        if not math.isclose(self.total, 1.0, abs_tol=1e-6):
            logger.warning("Score weights sum to %.3f, expected 1.0", self.total)
        return self

    @property
    def total(self) -> float:
        return (
            self.teacher_utilization
            + self.room_utilization
            + self.preference
            + self.conflict_resolution
            + self.compactness
        )


class OptimizerSettings(BaseModel):
    """Constants used by the optimization phases."""
    model_config = ConfigDict(extra="forbid")

    weights: ScoreWeights = Field(default_factory=ScoreWeights)

    # Conflict resolution
    candidate_start_times: list[int] = Field(
        default_factory=lambda: list(DEFAULT_CANDIDATE_START_TIMES),
        min_length=1,
        description="Start times tried in order when relocating a slot",
    )
    collision_window_minutes: Optional[int] = Field(
        default=50,
        ge=1,
        description="Window tested at each candidate; None uses the slot's own duration",
    )

    # Flow audit
    max_preps_per_day: int = Field(default=4, ge=1)
    max_gap_minutes: int = Field(default=60, ge=0)

    # Compactness
    gap_noise_floor_minutes: int = Field(default=10, ge=0)
    max_acceptable_gap_minutes: float = Field(default=120.0, gt=0)

    # Utilization and waste
    max_slots_per_teacher: int = Field(default=30, ge=1)
    max_slots_per_room: int = Field(default=35, ge=1)
    periods_per_day: int = Field(default=7, ge=1)
    days_per_week: int = Field(default=5, ge=1, le=7)
    underutilized_room_threshold: int = Field(default=10, ge=0)

    # Preference satisfaction
    preference_cutoff_minutes: int = Field(default=720, ge=0, le=1440)

    # Historical targets
    training_score_threshold: float = Field(default=70.0, ge=0, le=100)

    @field_validator("candidate_start_times", mode="before")
    @classmethod
    def parse_start_times(cls, value):
        if isinstance(value, list):
            return [time_to_minutes(v) if isinstance(v, str) else v for v in value]
        return value


def load_settings(path: Union[str, Path]) -> OptimizerSettings:
    """
    Load optimizer settings from a JSON file.

    Args:
        path: Path to the JSON file

    Returns:
        Validated OptimizerSettings

    Raises:
        FileNotFoundError: If the file doesn't exist
        json.JSONDecodeError: If the file isn't valid JSON
        pydantic.ValidationError: If a setting is out of range
    """
    with open(Path(path)) as f:
        data = json.load(f)
    settings = OptimizerSettings.model_validate(convert_keys_to_snake_case(data))
    logger.info("Loaded optimizer settings from %s", path)
    return settings
