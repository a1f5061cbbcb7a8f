"""
Output schema for optimization runs.

Defines the JSON-serializable summary of an OptimizationResult and a plain
text report for terminals and logs.
"""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from schedule_optimizer.data.models import day_name, minutes_to_time
from schedule_optimizer.engine.optimizer import OptimizationResult


def _camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.title() for part in rest)


class _Output(BaseModel):
    model_config = ConfigDict(alias_generator=_camel, populate_by_name=True)


# =============================================================================
# Sections
# =============================================================================

class ScheduleSummary(_Output):
    id: Optional[str]
    name: str
    status: str
    slot_count: int
    created: bool
    optimization_score: Optional[float]
    total_conflicts: Optional[int]
    resolved_conflicts: Optional[int]
    teacher_utilization: Optional[float]
    room_utilization: Optional[float]
    efficiency_rate: Optional[float]


class ScoreOutput(_Output):
    teacher_utilization: float
    room_utilization: float
    preference: float
    conflict_resolution: float
    compactness: float
    final_score: float
    weighted: dict[str, float] = Field(default_factory=dict)


class ConflictOutput(_Output):
    resource: str
    resource_id: str
    first_slot_id: str
    second_slot_id: str
    day: str
    resolved: bool


class RelocationOutput(_Output):
    slot_id: str
    old_start_time: str
    new_start_time: str
    duration_minutes: int


class FlowOutput(_Output):
    wip_violations: list[str] = Field(default_factory=list)
    gap_violations: list[str] = Field(default_factory=list)
    missing_times: list[str] = Field(default_factory=list)


class WasteOutput(_Output):
    empty_slots: int
    underutilized_rooms: int
    waste_percentage: float
    total_possible_slots: int
    used_slots: int


class OptimizationReport(_Output):
    """Complete report of one optimization run."""
    schedule: ScheduleSummary
    score: ScoreOutput
    conflicts: list[ConflictOutput] = Field(default_factory=list)
    relocations: list[RelocationOutput] = Field(default_factory=list)
    priorities: dict[str, int] = Field(default_factory=dict)
    flow: FlowOutput = Field(default_factory=FlowOutput)
    waste: WasteOutput
    targets: dict[str, float] = Field(default_factory=dict)

    def to_json(self, indent: int = 2) -> str:
        """Serialize to JSON string."""
        return self.model_dump_json(by_alias=True, indent=indent)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary."""
        return self.model_dump(by_alias=True)


# =============================================================================
# Conversion Functions
# =============================================================================

def create_report(result: OptimizationResult) -> OptimizationReport:
    """Build an OptimizationReport from an optimization result."""
    schedule = result.schedule
    unresolved = {id(c) for c in result.conflicts.unresolved}

    return OptimizationReport(
        schedule=ScheduleSummary(
            id=schedule.id,
            name=schedule.name,
            status=schedule.status.value,
            slot_count=len(schedule.slots),
            created=result.created,
            optimization_score=schedule.optimization_score,
            total_conflicts=schedule.total_conflicts,
            resolved_conflicts=schedule.resolved_conflicts,
            teacher_utilization=schedule.teacher_utilization,
            room_utilization=schedule.room_utilization,
            efficiency_rate=schedule.efficiency_rate,
        ),
        score=ScoreOutput(
            teacher_utilization=result.score.teacher_utilization,
            room_utilization=result.score.room_utilization,
            preference=result.score.preference,
            conflict_resolution=result.score.conflict_resolution,
            compactness=result.score.compactness,
            final_score=result.score.final_score,
            weighted=result.score.weighted,
        ),
        conflicts=[
            ConflictOutput(
                resource=c.resource.value,
                resource_id=c.resource_id,
                first_slot_id=c.first.id,
                second_slot_id=c.second.id,
                day=day_name(c.first.day),
                resolved=id(c) not in unresolved,
            )
            for c in result.conflicts.conflicts
        ],
        relocations=[
            RelocationOutput(
                slot_id=r.slot_id,
                old_start_time=minutes_to_time(r.old_start_minutes),
                new_start_time=minutes_to_time(r.new_start_minutes),
                duration_minutes=r.duration_minutes,
            )
            for r in result.conflicts.relocations
        ],
        priorities={category.value: n for category, n in result.priorities.counts.items()},
        flow=FlowOutput(
            wip_violations=[str(v) for v in result.flow.wip_violations],
            gap_violations=[str(v) for v in result.flow.gap_violations],
            missing_times=[str(v) for v in result.flow.missing_times],
        ),
        waste=WasteOutput(
            empty_slots=result.waste.empty_slots,
            underutilized_rooms=result.waste.underutilized_rooms,
            waste_percentage=result.waste.waste_percentage,
            total_possible_slots=result.waste.total_possible_slots,
            used_slots=result.waste.used_slots,
        ),
        targets=result.targets,
    )


def generate_report(result: OptimizationResult) -> str:
    """
    Generate a human-readable optimization report.

    Args:
        result: Output of ScheduleOptimizer.run()

    Returns:
        Formatted report string
    """
    schedule = result.schedule
    score = result.score
    lines = []

    lines.append("=" * 70)
    lines.append(f"SCHEDULE OPTIMIZATION REPORT: {schedule.name}")
    lines.append("=" * 70)
    lines.append(f"Schedule ID: {schedule.id}")
    lines.append(f"Status: {schedule.status.value}")
    lines.append(f"Slots: {len(schedule.slots)}")
    lines.append(f"Overall Score: {score.final_score:.1f}/100")
    lines.append("")

    lines.append("-" * 40)
    lines.append("SCORE BREAKDOWN")
    lines.append("-" * 40)
    lines.append(f"Teacher Utilization: {score.teacher_utilization:.1f}")
    lines.append(f"Room Utilization: {score.room_utilization:.1f}")
    lines.append(f"Preference Satisfaction: {score.preference:.1f}")
    lines.append(f"Conflict Resolution: {score.conflict_resolution:.1f}")
    lines.append(f"Compactness: {score.compactness:.1f}")
    lines.append("")

    lines.append("-" * 40)
    lines.append("CONFLICTS")
    lines.append("-" * 40)
    lines.append(
        f"Resolved {result.conflicts.resolved_conflicts}/{result.conflicts.total_conflicts} "
        f"({result.conflicts.teacher_conflicts} teacher, {result.conflicts.room_conflicts} room)"
    )
    for relocation in result.conflicts.relocations:
        lines.append(f"  - {relocation}")
    for conflict in result.conflicts.unresolved:
        lines.append(f"  ! unresolved {conflict}")
    lines.append("")

    lines.append("-" * 40)
    lines.append("WASTE")
    lines.append("-" * 40)
    lines.append(f"Empty Slots: {result.waste.empty_slots}/{result.waste.total_possible_slots}")
    lines.append(f"Underutilized Rooms: {result.waste.underutilized_rooms}")
    lines.append(f"Waste: {result.waste.waste_percentage:.1f}%")
    lines.append(f"Efficiency Rate: {result.efficiency.efficiency_rate:.1f}%")
    lines.append("")

    if not result.flow.is_clean:
        lines.append("-" * 40)
        lines.append("FLOW WARNINGS")
        lines.append("-" * 40)
        for violation in (
            result.flow.wip_violations + result.flow.gap_violations + result.flow.missing_times
        ):
            lines.append(f"  * {violation}")
        lines.append("")

    lines.append("=" * 70)

    return "\n".join(lines)
