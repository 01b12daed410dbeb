"""Logging configuration for command-line use."""

import logging

from rich.console import Console
from rich.logging import RichHandler


def configure_logging(level: str = "WARNING", console: Console | None = None) -> None:
    """
    Route pr_tracker log records to a Rich handler on stderr.

    Only the package logger is configured, so embedding applications keep
    control of the root logger.

    Args:
        level: Logging level name (DEBUG, INFO, WARNING, ...)
        console: Console to log to (defaults to a stderr console)
    """
    package_logger = logging.getLogger("pr_tracker")
    package_logger.setLevel(level.upper())

    for handler in list(package_logger.handlers):
        if isinstance(handler, RichHandler):
            package_logger.removeHandler(handler)

    handler = RichHandler(
        console=console or Console(stderr=True),
        show_path=False,
        rich_tracebacks=True,
    )
    handler.setFormatter(logging.Formatter("%(message)s"))
    package_logger.addHandler(handler)
