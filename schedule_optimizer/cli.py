"""
Command-line interface for the schedule optimizer.

Usage:
    python -m schedule_optimizer optimize school.json --schedule "Fall 2026" -o report.json
    python -m schedule_optimizer score school.json --schedule "Fall 2026"
    python -m schedule_optimizer conflicts school.json --schedule "Fall 2026"
    python -m schedule_optimizer train school.json
    python -m schedule_optimizer validate school.json
"""

from __future__ import annotations

import json
from datetime import datetime
from pathlib import Path
from typing import Optional

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from .config import OptimizerSettings, load_settings
from .data.loader import DataValidationError, SchoolDataset, load_dataset, save_dataset
from .data.models import OptimizationRequest, Schedule, day_name, minutes_to_time
from .data.store import InMemoryRoomStore, InMemoryScheduleStore
from .engine.conflicts import detect_conflicts
from .engine.optimizer import OptimizationError, OptimizationResult, ScheduleOptimizer
from .engine.scoring import ScoreBreakdown, score_breakdown
from .logging_config import configure_logging
from .output.report import create_report, generate_report

# Create Typer app
app = typer.Typer(
    name="schedule-optimizer",
    help="Heuristic school schedule optimizer: conflicts, utilization and scoring.",
    add_completion=False,
)

# Rich console for pretty output
console = Console()

DATE_FORMATS = ["%Y-%m-%d"]


# =============================================================================
# Helper Functions
# =============================================================================

def load_input(input_path: Path) -> SchoolDataset:
    """Load and validate input data."""
    if not input_path.exists():
        console.print(f"[red]Error:[/red] Input file not found: {input_path}")
        raise typer.Exit(code=1)

    try:
        return load_dataset(input_path)
    except (DataValidationError, ValidationError, json.JSONDecodeError) as e:
        console.print(f"[red]Error loading input:[/red] {escape(str(e))}")
        raise typer.Exit(code=1)


def load_config(config_path: Optional[Path]) -> OptimizerSettings:
    """Load optimizer settings, or defaults when no file is given."""
    if config_path is None:
        return OptimizerSettings()

    try:
        return load_settings(config_path)
    except (OSError, ValidationError, json.JSONDecodeError) as e:
        console.print(f"[red]Error loading config:[/red] {escape(str(e))}")
        raise typer.Exit(code=1)


def find_schedule(store: InMemoryScheduleStore, name: str) -> Schedule:
    schedule = store.find_by_exact_name(name)
    if schedule is None:
        console.print(f"[red]Error:[/red] Schedule '{name}' not found")
        names = ", ".join(s.name for s in store.find_all()) or "none"
        console.print(f"Available schedules: {names}")
        raise typer.Exit(code=1)
    return schedule


def _score_color(score: float) -> str:
    return "green" if score >= 80 else "yellow" if score >= 60 else "red"


def print_score_table(breakdown: ScoreBreakdown, settings: OptimizerSettings) -> None:
    """Print sub-scores with their weights."""
    weights = settings.weights
    table = Table(title="Score Breakdown", show_header=True, header_style="bold cyan")
    table.add_column("Component")
    table.add_column("Score", justify="right")
    table.add_column("Weight", justify="right")

    rows = [
        ("Teacher Utilization", breakdown.teacher_utilization, weights.teacher_utilization),
        ("Room Utilization", breakdown.room_utilization, weights.room_utilization),
        ("Preference Satisfaction", breakdown.preference, weights.preference),
        ("Conflict Resolution", breakdown.conflict_resolution, weights.conflict_resolution),
        ("Compactness", breakdown.compactness, weights.compactness),
    ]
    for name, score, weight in rows:
        color = _score_color(score)
        table.add_row(name, f"[{color}]{score:.1f}[/{color}]", f"{weight:.2f}")

    final_color = _score_color(breakdown.final_score)
    table.add_row(
        "[bold]Overall Score[/bold]",
        f"[bold {final_color}]{breakdown.final_score:.1f}/100[/bold {final_color}]",
        "",
    )
    console.print(table)


def print_summary(result: OptimizationResult) -> None:
    """Print optimization summary to console."""
    schedule = result.schedule
    score_text = Text(f"{result.final_score:.1f}", style=f"bold {_score_color(result.final_score)}")

    console.print(Panel(
        score_text,
        title=f"Schedule '{schedule.name}'",
        subtitle="created" if result.created else f"id {schedule.id}",
    ))

    table = Table(title="Summary", show_header=False, box=None)
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="white")

    table.add_row("Slots", str(len(schedule.slots)))
    table.add_row(
        "Conflicts Resolved",
        f"{result.conflicts.resolved_conflicts}/{result.conflicts.total_conflicts}",
    )
    table.add_row("Teacher Utilization", f"{result.efficiency.teacher_utilization:.1f}%")
    table.add_row("Room Utilization", f"{result.efficiency.room_utilization:.1f}%")
    table.add_row("Efficiency Rate", f"{result.efficiency.efficiency_rate:.1f}%")
    table.add_row("Waste", f"{result.waste.waste_percentage:.1f}%")
    table.add_row("Underutilized Rooms", str(result.waste.underutilized_rooms))
    table.add_row("Flow Warnings", str(result.flow.total_violations))

    console.print(table)


# =============================================================================
# Commands
# =============================================================================

@app.command()
def optimize(
    input_file: Path = typer.Argument(
        ...,
        help="Path to school dataset JSON file",
    ),
    schedule_name: Optional[str] = typer.Option(
        None,
        "--schedule", "-s",
        help="Schedule to optimize (matched case-insensitively); created if missing",
    ),
    start_date: Optional[datetime] = typer.Option(
        None,
        "--start",
        formats=DATE_FORMATS,
        help="Start date for a newly created schedule",
    ),
    end_date: Optional[datetime] = typer.Option(
        None,
        "--end",
        formats=DATE_FORMATS,
        help="End date for a newly created schedule",
    ),
    config: Optional[Path] = typer.Option(
        None,
        "--config", "-c",
        help="Path to optimizer settings JSON file",
    ),
    output: Optional[Path] = typer.Option(
        None,
        "--output", "-o",
        help="Path to write the optimization report JSON",
    ),
    save: Optional[Path] = typer.Option(
        None,
        "--save",
        help="Path to write the dataset with the optimized schedule",
    ),
    show_report: bool = typer.Option(
        False,
        "--report", "-r",
        help="Print the full text report",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose", "-v",
        help="Enable verbose logging",
    ),
) -> None:
    """
    Optimize a schedule: resolve conflicts, audit flow, measure waste and score.

    Example:
        python -m schedule_optimizer optimize school.json --schedule "Fall 2026" -o report.json
    """
    configure_logging(verbose)

    dataset = load_input(input_file)
    settings = load_config(config)

    schedule_store = InMemoryScheduleStore.from_dataset(dataset)
    optimizer = ScheduleOptimizer(
        schedule_store,
        InMemoryRoomStore.from_dataset(dataset),
        settings=settings,
    )

    try:
        request = OptimizationRequest(
            schedule_name=schedule_name,
            start_date=start_date.date() if start_date else None,
            end_date=end_date.date() if end_date else None,
        )
    except ValidationError as e:
        console.print(f"[red]Invalid request:[/red] {escape(str(e))}")
        raise typer.Exit(code=1)

    console.print(f"\n[bold]Optimizing[/bold] {schedule_name or 'new schedule'}...")

    try:
        result = optimizer.run(request)
    except OptimizationError as e:
        console.print(
            f"[red]Optimization failed in {e.phase.value} phase:[/red] {escape(str(e.cause))}"
        )
        raise typer.Exit(code=1)

    console.print()
    print_summary(result)
    console.print()
    print_score_table(result.score, settings)

    if show_report:
        console.print()
        console.print(generate_report(result), markup=False)

    if output:
        output.parent.mkdir(parents=True, exist_ok=True)
        with open(output, "w") as f:
            f.write(create_report(result).to_json())
        console.print(f"\n[green]Report saved to:[/green] {output}")

    if save:
        save_dataset(schedule_store.to_dataset(dataset), save)
        console.print(f"[green]Dataset saved to:[/green] {save}")

    console.print()


@app.command()
def score(
    input_file: Path = typer.Argument(..., help="Path to school dataset JSON file"),
    schedule_name: str = typer.Option(..., "--schedule", "-s", help="Schedule to score"),
    config: Optional[Path] = typer.Option(None, "--config", "-c", help="Optimizer settings JSON"),
    as_json: bool = typer.Option(False, "--json", help="Print the breakdown as JSON"),
) -> None:
    """
    Score a schedule as it stands, without resolving conflicts.

    Example:
        python -m schedule_optimizer score school.json --schedule "Fall 2026"
    """
    dataset = load_input(input_file)
    settings = load_config(config)
    schedule = find_schedule(InMemoryScheduleStore.from_dataset(dataset), schedule_name)

    breakdown = score_breakdown(schedule, settings)

    if as_json:
        console.print_json(json.dumps(breakdown.to_dict()))
    else:
        print_score_table(breakdown, settings)


@app.command()
def conflicts(
    input_file: Path = typer.Argument(..., help="Path to school dataset JSON file"),
    schedule_name: str = typer.Option(..., "--schedule", "-s", help="Schedule to inspect"),
) -> None:
    """
    List teacher and room double-bookings in a schedule.

    Example:
        python -m schedule_optimizer conflicts school.json --schedule "Fall 2026"
    """
    dataset = load_input(input_file)
    schedule = find_schedule(InMemoryScheduleStore.from_dataset(dataset), schedule_name)

    found = detect_conflicts(schedule)
    if not found:
        console.print("[green]No conflicts found.[/green]")
        return

    table = Table(title=f"Conflicts in '{schedule.name}'", show_header=True, header_style="bold cyan")
    table.add_column("Resource")
    table.add_column("Day")
    table.add_column("First Slot")
    table.add_column("Second Slot")

    for conflict in found:
        table.add_row(
            f"{conflict.resource.value} {conflict.resource_id}",
            day_name(conflict.first.day),
            f"{conflict.first.id} {minutes_to_time(conflict.first.start_minutes)}-"
            f"{minutes_to_time(conflict.first.end_minutes)}",
            f"{conflict.second.id} {minutes_to_time(conflict.second.start_minutes)}-"
            f"{minutes_to_time(conflict.second.end_minutes)}",
        )

    console.print(table)
    console.print(f"\n[yellow]{len(found)} conflict(s) found.[/yellow]")


@app.command()
def train(
    input_file: Path = typer.Argument(..., help="Path to school dataset JSON file"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logging"),
) -> None:
    """
    Derive target utilization values from the dataset's past schedules.

    Example:
        python -m schedule_optimizer train history.json
    """
    configure_logging(verbose)

    dataset = load_input(input_file)
    store = InMemoryScheduleStore.from_dataset(dataset)
    optimizer = ScheduleOptimizer(store, InMemoryRoomStore.from_dataset(dataset))

    targets = optimizer.train(store.find_all())
    if not optimizer.targets.is_trained:
        console.print(
            f"[yellow]No schedules scored above {optimizer.targets.score_threshold:.0f}; "
            "no targets derived.[/yellow]"
        )
        return

    table = Table(title="Historical Targets", show_header=True, header_style="bold cyan")
    table.add_column("Target")
    table.add_column("Value", justify="right")
    for name, value in targets.items():
        table.add_row(name, f"{value:.1f}")

    console.print(table)
    console.print(f"[dim]From {optimizer.targets.sample_size} schedule(s)[/dim]")


@app.command()
def validate(
    input_file: Path = typer.Argument(..., help="Path to school dataset JSON file"),
) -> None:
    """
    Validate a school dataset.

    Checks for:
    - Valid JSON structure
    - Schema compliance
    - Reference integrity (teacher, room and course IDs)
    - Slots missing time information

    Example:
        python -m schedule_optimizer validate school.json
    """
    console.print(f"\n[bold]Validating:[/bold] {input_file}\n")

    dataset = load_input(input_file)
    console.print("[green]Schema and references are valid[/green]")

    warnings = []
    for record in dataset.schedules:
        missing = [s.id for s in record.slots if s.start_time is None or s.end_time is None]
        if missing:
            warnings.append(
                f"Schedule '{record.name}' has {len(missing)} slot(s) without times: "
                f"{', '.join(missing[:5])}"
            )
        if not record.slots:
            warnings.append(f"Schedule '{record.name}' has no slots")

    if warnings:
        console.print("[yellow]Warnings found:[/yellow]")
        for w in warnings:
            console.print(f"  - {w}")

    table = Table(show_header=False, box=None)
    table.add_column("Entity", style="cyan")
    table.add_column("Count", style="white")
    for name, count in dataset.summary().items():
        table.add_row(name.title(), str(count))
    console.print(table)

    console.print("\n[green]Validation complete.[/green]\n")


# =============================================================================
# Main Entry Point
# =============================================================================

def main() -> None:
    """Main entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
