"""
Historical targets learned from past schedules.

Training averages the utilization and efficiency of past schedules that
scored above a threshold. The resulting targets are advisory: they are
reported alongside optimization results but do not feed the score.
"""

from __future__ import annotations

import logging
from typing import Callable, Optional

from schedule_optimizer.data.models import Schedule

logger = logging.getLogger(__name__)

DEFAULT_SCORE_THRESHOLD = 70.0

# Used when no successful schedule carries the field
FALLBACK_TEACHER_UTILIZATION = 70.0
FALLBACK_ROOM_UTILIZATION = 60.0
FALLBACK_EFFICIENCY = 65.0

TARGET_TEACHER_UTILIZATION = "target_teacher_utilization"
TARGET_ROOM_UTILIZATION = "target_room_utilization"
TARGET_EFFICIENCY = "target_efficiency"


def _average(
    schedules: list[Schedule],
    getter: Callable[[Schedule], Optional[float]],
    fallback: float,
) -> float:
    values = [v for v in (getter(s) for s in schedules) if v is not None]
    if not values:
        return fallback
    return sum(values) / len(values)


class HistoricalTargets:
    """
    Target utilization values derived from successful past schedules.

    Only train() changes the state. Passing no schedules leaves it untouched;
    passing schedules of which none scored above the threshold clears it.
    """

    def __init__(self, score_threshold: float = DEFAULT_SCORE_THRESHOLD):
        self.score_threshold = score_threshold
        self._targets: dict[str, float] = {}
        self._trained = False
        self.sample_size = 0

    @property
    def is_trained(self) -> bool:
        return self._trained

    @property
    def targets(self) -> dict[str, float]:
        return dict(self._targets)

    def get(self, name: str) -> Optional[float]:
        return self._targets.get(name)

    def train(self, schedules: Optional[list[Schedule]]) -> dict[str, float]:
        """
        Derive targets from historical schedules.

        Args:
            schedules: Past schedules with their stored metrics

        Returns:
            The current targets (empty if nothing qualified)
        """
        logger.info("Training targets with %d historical schedules", len(schedules) if schedules else 0)

        if not schedules:
            logger.warning("No historical schedules provided for training")
            return self.targets

        self._targets.clear()
        self._trained = False
        self.sample_size = 0

        successful = [
            s for s in schedules
            if s.optimization_score is not None and s.optimization_score > self.score_threshold
        ]
        if not successful:
            logger.warning("No successful schedules found for training")
            return self.targets

        self._targets = {
            TARGET_TEACHER_UTILIZATION: _average(
                successful, lambda s: s.teacher_utilization, FALLBACK_TEACHER_UTILIZATION
            ),
            TARGET_ROOM_UTILIZATION: _average(
                successful, lambda s: s.room_utilization, FALLBACK_ROOM_UTILIZATION
            ),
            TARGET_EFFICIENCY: _average(
                successful, lambda s: s.efficiency_rate, FALLBACK_EFFICIENCY
            ),
        }
        self._trained = True
        self.sample_size = len(successful)

        logger.info(
            "Targets trained from %d schedules - Teacher: %.1f, Room: %.1f, Efficiency: %.1f",
            self.sample_size,
            self._targets[TARGET_TEACHER_UTILIZATION],
            self._targets[TARGET_ROOM_UTILIZATION],
            self._targets[TARGET_EFFICIENCY],
        )
        return self.targets
