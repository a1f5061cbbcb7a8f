"""Output formatting for optimization results."""

from .report import (
    OptimizationReport,
    create_report,
    generate_report,
)

__all__ = [
    "OptimizationReport",
    "create_report",
    "generate_report",
]
