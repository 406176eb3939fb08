"""Progress reporter protocol and best-effort delivery.

Long-running operations accept an optional reporter and emit
``ProgressEvent`` objects to it.  Delivery is best-effort: a reporter that
raises is logged and ignored, never failing the owning operation.
"""

from __future__ import annotations

import logging
from typing import Protocol, runtime_checkable

from kart.models.progress import ProgressEvent

logger = logging.getLogger(__name__)


@runtime_checkable
class ProgressReporter(Protocol):
    """Protocol for progress sinks."""

    def emit(self, event: ProgressEvent) -> None:
        """Receive one progress event."""
        ...


def report_progress(
    reporter: ProgressReporter | None,
    message: str,
    *,
    stage: str | None = None,
) -> None:
    """Send *message* to *reporter* if one is set.

    Reporter failures are logged at WARNING and swallowed.
    """
    if reporter is None:
        return
    event = ProgressEvent(message=message, stage=stage)
    try:
        reporter.emit(event)
    except Exception as exc:  # noqa: BLE001
        logger.warning("Progress reporter %r failed on %r: %s", reporter, message, exc)


class LoggingReporter:
    """Writes progress events to a logger at INFO."""

    def __init__(self, log: logging.Logger | None = None) -> None:
        self._log = log or logging.getLogger("kart.progress")

    def emit(self, event: ProgressEvent) -> None:
        if event.stage:
            self._log.info("[%s] %s", event.stage, event.message)
        else:
            self._log.info("%s", event.message)


class CollectingReporter:
    """Keeps every event in memory, in arrival order."""

    def __init__(self) -> None:
        self.events: list[ProgressEvent] = []

    def emit(self, event: ProgressEvent) -> None:
        self.events.append(event)

    @property
    def messages(self) -> list[str]:
        return [event.message for event in self.events]


__all__ = [
    "CollectingReporter",
    "LoggingReporter",
    "ProgressReporter",
    "report_progress",
]
