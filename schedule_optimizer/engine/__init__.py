"""
Optimization engine.

Each module implements one pass over a schedule; the optimizer module runs
them in order and persists the result.
"""

from .index import (
    ResourceIndex,
    build_resource_index,
    group_slots_by_room,
    group_slots_by_teacher,
)
from .conflicts import (
    Conflict,
    ConflictReport,
    ConflictResolver,
    Relocation,
    ResourceKind,
    detect_and_resolve_conflicts,
    detect_conflicts,
    find_time_conflicts,
    slots_overlap,
)
from .priority import (
    PriorityBreakdown,
    PriorityCategory,
    classify_course,
    classify_priorities,
    classify_slot,
)
from .flow import (
    FlowAuditor,
    FlowReport,
    GapViolation,
    MissingTimeViolation,
    WipViolation,
    audit_flow,
)
from .waste import (
    EfficiencyMetrics,
    WasteAnalysis,
    analyze_waste,
    calculate_room_utilization,
    calculate_teacher_utilization,
    measure_efficiency,
)
from .scoring import (
    ScoreBreakdown,
    ScoreCalculator,
    compute_score,
    score_breakdown,
)
from .training import HistoricalTargets
from .optimizer import (
    OptimizationError,
    OptimizationPhase,
    OptimizationResult,
    ScheduleOptimizer,
)

__all__ = [
    # Index
    "ResourceIndex",
    "build_resource_index",
    "group_slots_by_room",
    "group_slots_by_teacher",
    # Conflicts
    "Conflict",
    "ConflictReport",
    "ConflictResolver",
    "Relocation",
    "ResourceKind",
    "detect_and_resolve_conflicts",
    "detect_conflicts",
    "find_time_conflicts",
    "slots_overlap",
    # Priority
    "PriorityBreakdown",
    "PriorityCategory",
    "classify_course",
    "classify_priorities",
    "classify_slot",
    # Flow
    "FlowAuditor",
    "FlowReport",
    "GapViolation",
    "MissingTimeViolation",
    "WipViolation",
    "audit_flow",
    # Waste
    "EfficiencyMetrics",
    "WasteAnalysis",
    "analyze_waste",
    "calculate_room_utilization",
    "calculate_teacher_utilization",
    "measure_efficiency",
    # Scoring
    "ScoreBreakdown",
    "ScoreCalculator",
    "compute_score",
    "score_breakdown",
    # Training
    "HistoricalTargets",
    # Orchestration
    "OptimizationError",
    "OptimizationPhase",
    "OptimizationResult",
    "ScheduleOptimizer",
]
