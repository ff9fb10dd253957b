"""Logging setup for the command line."""

from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

logger = logging.getLogger("icns")


def configure_logging(level: str = "WARNING") -> None:
    """Send ``icns`` log records to stderr through rich.

    Safe to call repeatedly; the handler is installed once and only the level
    changes afterwards.
    """
    logger.setLevel(getattr(logging, level.upper(), logging.WARNING))
    if getattr(logger, "_icns_configured", False):
        return
    handler = RichHandler(console=Console(stderr=True), show_path=False, rich_tracebacks=True)
    handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(handler)
    logger.propagate = False
    setattr(logger, "_icns_configured", True)
