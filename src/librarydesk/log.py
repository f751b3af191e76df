"""Logging setup for the command-line interface."""

import logging
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler


def configure_logging(level: str = "WARNING", console: Optional[Console] = None) -> None:
    """Route the package's log records through Rich.

    Args:
        level: Log level name (DEBUG, INFO, ...)
        console: Console to write to (default: stderr)
    """
    handler = RichHandler(
        console=console or Console(stderr=True),
        show_path=False,
        rich_tracebacks=True,
    )
    handler.setFormatter(logging.Formatter("%(message)s"))

    logger = logging.getLogger("librarydesk")
    logger.handlers.clear()
    logger.addHandler(handler)
    logger.setLevel(level.upper())
    logger.propagate = False
