"""Logging setup for the command-line interface."""

from __future__ import annotations

import logging
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

PACKAGE_LOGGER = "schedule_optimizer"


def configure_logging(verbose: bool = False, console: Optional[Console] = None) -> None:
    """
    Route package logs through Rich.

    Args:
        verbose: Show DEBUG messages instead of WARNING and above
        console: Console to write to (stderr by default)
    """
    handler = RichHandler(
        console=console or Console(stderr=True),
        show_path=verbose,
        rich_tracebacks=True,
    )
    handler.setFormatter(logging.Formatter("%(message)s", datefmt="[%X]"))

    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.handlers.clear()
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG if verbose else logging.WARNING)
