"""Rich console reporter used by the CLI."""

from __future__ import annotations

from rich.console import Console

from kart.models.progress import ProgressEvent


class ConsoleReporter:
    """Prints progress events as dim status lines.

    Parameters
    ----------
    console:
        Rich Console instance.  A new one is created if not provided.
    """

    def __init__(self, console: Console | None = None) -> None:
        self.console = console or Console()

    def emit(self, event: ProgressEvent) -> None:
        stamp = event.timestamp.strftime("%H:%M:%S")
        prefix = f"[cyan]{event.stage}[/cyan] " if event.stage else ""
        self.console.print(f"[dim]{stamp}[/dim] {prefix}{event.message}")
