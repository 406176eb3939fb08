"""``kart status PROJECT CHANNEL``: show what is released on a channel."""

from __future__ import annotations

import typer

from kart.cli._context import console, fail, open_engine
from kart.cli.render import release_panel
from kart.core.errors import KartError


def status_cmd(
    ctx: typer.Context,
    project: str = typer.Argument(..., help="Project name."),
    channel: str = typer.Argument(..., help="Release channel."),
) -> None:
    """Show the build currently released on PROJECT/CHANNEL."""
    engine = open_engine(ctx)
    try:
        current = engine.status(project, channel)
    except KartError as exc:
        fail(str(exc))

    if current is None:
        console.print(f"[dim]Nothing released on {project}/{channel} yet.[/dim]")
        return
    console.print(release_panel(current, title=f"{project}/{channel}"))
