"""Logging setup for the command-line entry point."""

from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler


def configure_logging(level: str = "INFO", console: Console | None = None) -> logging.Logger:
    """Attach a RichHandler to the ``kart`` logger (once) and set its level."""
    log = logging.getLogger("kart")
    log.setLevel(level.upper())
    if not any(isinstance(h, RichHandler) for h in log.handlers):
        log.addHandler(
            RichHandler(
                console=console or Console(stderr=True),
                show_path=False,
                rich_tracebacks=True,
            )
        )
    return log
