"""Schedule Optimizer - heuristic conflict repair and scoring for school timetables."""

from .config import OptimizerSettings, ScoreWeights, load_settings
from .data.models import OptimizationRequest, Schedule, Slot
from .engine.optimizer import (
    OptimizationError,
    OptimizationPhase,
    OptimizationResult,
    ScheduleOptimizer,
)
from .engine.training import HistoricalTargets
from .cli import app as cli_app

__all__ = [
    # Configuration
    "OptimizerSettings",
    "ScoreWeights",
    "load_settings",
    # Models
    "OptimizationRequest",
    "Schedule",
    "Slot",
    # Optimizer
    "OptimizationError",
    "OptimizationPhase",
    "OptimizationResult",
    "ScheduleOptimizer",
    "HistoricalTargets",
    # CLI
    "cli_app",
]
