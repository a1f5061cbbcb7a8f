"""
Schedule optimization orchestrator.

Runs the optimization phases against one schedule in a fixed order:

    LOOKUP_OR_CREATE -> CONSTRAINT -> FLOW -> PRIORITY -> WASTE -> SCORE -> PERSIST -> DONE

The phases work on a private copy of the schedule. Nothing is written to
the schedule store until PERSIST, so a run that fails part way leaves both
the store and the caller's schedule exactly as they were.
"""

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Iterator, Optional

from schedule_optimizer.config import OptimizerSettings
from schedule_optimizer.data.models import (
    DEFAULT_SCHEDULE_NAME,
    OptimizationRequest,
    Schedule,
    ScheduleStatus,
)
from schedule_optimizer.data.store import RoomStore, ScheduleStore

from .conflicts import ConflictReport, ConflictResolver
from .flow import FlowAuditor, FlowReport
from .priority import PriorityBreakdown, classify_priorities
from .scoring import ScoreBreakdown, ScoreCalculator
from .training import HistoricalTargets
from .waste import EfficiencyMetrics, WasteAnalysis, analyze_waste, measure_efficiency

logger = logging.getLogger(__name__)


class OptimizationPhase(str, Enum):
    LOOKUP_OR_CREATE = "lookup_or_create"
    CONSTRAINT = "constraint"
    FLOW = "flow"
    PRIORITY = "priority"
    WASTE = "waste"
    SCORE = "score"
    PERSIST = "persist"
    DONE = "done"
    ERROR = "error"


class OptimizationError(Exception):
    """An optimization run failed; nothing was persisted."""

    def __init__(self, phase: OptimizationPhase, cause: BaseException):
        self.phase = phase
        self.cause = cause
        super().__init__(f"Optimization failed in {phase.value} phase: {cause}")


@dataclass
class OptimizationResult:
    """Everything one optimization run produced."""
    schedule: Schedule
    created: bool = False
    phase: OptimizationPhase = OptimizationPhase.DONE
    conflicts: ConflictReport = field(default_factory=ConflictReport)
    flow: FlowReport = field(default_factory=FlowReport)
    priorities: PriorityBreakdown = field(default_factory=PriorityBreakdown)
    waste: WasteAnalysis = field(default_factory=WasteAnalysis)
    efficiency: EfficiencyMetrics = field(default_factory=EfficiencyMetrics)
    score: ScoreBreakdown = field(default_factory=ScoreBreakdown)
    targets: dict[str, float] = field(default_factory=dict)

    @property
    def final_score(self) -> float:
        return self.score.final_score


class ScheduleOptimizer:
    """
    Heuristic schedule optimizer.

    Usage:
        optimizer = ScheduleOptimizer(schedule_store, room_store)
        schedule = optimizer.optimize(OptimizationRequest(schedule_name="Fall"))
        if schedule is None:
            ...  # failure was logged, nothing changed
    """

    def __init__(
        self,
        schedule_store: ScheduleStore,
        room_store: RoomStore,
        settings: Optional[OptimizerSettings] = None,
        targets: Optional[HistoricalTargets] = None,
    ):
        self.schedule_store = schedule_store
        self.room_store = room_store
        self.settings = settings or OptimizerSettings()
        self.targets = targets or HistoricalTargets(self.settings.training_score_threshold)

        self.resolver = ConflictResolver(self.settings)
        self.auditor = FlowAuditor(self.settings)
        self.calculator = ScoreCalculator(self.settings)

        # name -> [lock, number of runs holding or waiting on it]
        self._locks: dict[str, list] = {}
        self._locks_guard = threading.Lock()

    # -------------------------------------------------------------------------
    # Entry points
    # -------------------------------------------------------------------------

    def optimize(self, request: Optional[OptimizationRequest]) -> Optional[Schedule]:
        """
        Optimize the requested schedule and persist the result.

        Returns:
            The saved schedule, or None if the request was missing or any
            phase failed. Failures are logged with the phase that raised.
        """
        if request is None:
            logger.error("No optimization request given")
            return None

        try:
            return self.run(request).schedule
        except OptimizationError as e:
            logger.error(
                "Optimization reached %s state: %s",
                OptimizationPhase.ERROR.value, e,
                exc_info=e.cause,
            )
            return None

    def run(self, request: OptimizationRequest) -> OptimizationResult:
        """
        Optimize the requested schedule and return every phase output.

        Raises:
            OptimizationError: If any phase fails; nothing has been persisted
        """
        logger.info("Starting schedule optimization for request: %s", request)

        name = request.schedule_name.strip() if request.has_name else DEFAULT_SCHEDULE_NAME

        with self._lock_for(name):
            with self._phase(OptimizationPhase.LOOKUP_OR_CREATE):
                original, created = self._find_or_create(request)
            return self._run_phases(original, created)

    def optimize_schedule(self, schedule: Schedule) -> OptimizationResult:
        """Run every phase on an already loaded schedule and persist it."""
        with self._lock_for(schedule.name):
            return self._run_phases(schedule, created=schedule.id is None)

    # -------------------------------------------------------------------------
    # Introspection (each runs one phase directly on the given schedule)
    # -------------------------------------------------------------------------

    def detect_and_resolve_conflicts(self, schedule: Schedule) -> ConflictReport:
        return self.resolver.detect_and_resolve(schedule)

    def audit_flow(self, schedule: Schedule) -> FlowReport:
        return self.auditor.audit(schedule)

    def classify_priorities(self, schedule: Schedule) -> PriorityBreakdown:
        return classify_priorities(schedule)

    def analyze_waste(self, schedule: Schedule) -> WasteAnalysis:
        return analyze_waste(schedule, self.room_store.list_all_rooms(), self.settings)

    def compute_score(self, schedule: Schedule) -> float:
        return self.calculator.calculate(schedule).final_score

    def train(self, schedules: Optional[list[Schedule]]) -> dict[str, float]:
        """Derive historical targets from past schedules."""
        return self.targets.train(schedules)

    # -------------------------------------------------------------------------
    # Phases
    # -------------------------------------------------------------------------

    def _run_phases(self, original: Schedule, created: bool) -> OptimizationResult:
        working = original.model_copy(deep=True)
        result = OptimizationResult(schedule=working, created=created)
        label = working.id or working.name

        with self._phase(OptimizationPhase.CONSTRAINT, label):
            result.conflicts = self.resolver.detect_and_resolve(working)

        with self._phase(OptimizationPhase.FLOW, label):
            result.flow = self.auditor.audit(working)

        with self._phase(OptimizationPhase.PRIORITY, label):
            result.priorities = classify_priorities(working)

        with self._phase(OptimizationPhase.WASTE, label):
            if working.slots:
                result.waste = self.analyze_waste(working)
                result.efficiency = measure_efficiency(working, self.settings)
                working.teacher_utilization = result.efficiency.teacher_utilization
                working.room_utilization = result.efficiency.room_utilization
                working.efficiency_rate = result.efficiency.efficiency_rate
                logger.info("Efficiency for schedule %s: %.1f", label, working.efficiency_rate)

        with self._phase(OptimizationPhase.SCORE, label):
            result.score = self.calculator.calculate(working)
            working.optimization_score = result.score.final_score
            working.last_modified_date = date.today()

        with self._phase(OptimizationPhase.PERSIST, label):
            result.schedule = self.schedule_store.save(working)

        result.targets = self.targets.targets
        result.phase = OptimizationPhase.DONE
        logger.info(
            "Schedule %s optimized with score: %.1f",
            result.schedule.id, result.final_score,
        )
        return result

    def _find_or_create(self, request: OptimizationRequest) -> tuple[Schedule, bool]:
        if request.has_name:
            existing = self.schedule_store.find_by_exact_name(request.schedule_name.strip())
            if existing is not None:
                logger.info("Found existing schedule %s ('%s')", existing.id, existing.name)
                return existing, False

        schedule = Schedule(
            name=request.schedule_name.strip() if request.has_name else DEFAULT_SCHEDULE_NAME,
            start_date=request.start_date,
            end_date=request.end_date,
            status=ScheduleStatus.DRAFT,
            created_date=date.today(),
        )
        logger.info("Created new draft schedule '%s'", schedule.name)
        return schedule, True

    @contextmanager
    def _phase(self, phase: OptimizationPhase, label: Optional[str] = None) -> Iterator[None]:
        logger.debug("Entering %s phase for schedule %s", phase.value, label)
        try:
            yield
        except OptimizationError:
            raise
        except Exception as e:
            raise OptimizationError(phase, e) from e

    @contextmanager
    def _lock_for(self, name: str) -> Iterator[None]:
        """Serialize runs on one schedule name; the entry is dropped once unused."""
        key = name.casefold()
        with self._locks_guard:
            entry = self._locks.setdefault(key, [threading.Lock(), 0])
            entry[1] += 1
        try:
            with entry[0]:
                yield
        finally:
            with self._locks_guard:
                entry[1] -= 1
                if entry[1] == 0:
                    del self._locks[key]
