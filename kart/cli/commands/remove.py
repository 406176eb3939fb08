"""``kart remove PROJECT CHANNEL NUMBER``: delete an archived build."""

from __future__ import annotations

import typer

from kart.cli._context import console, fail, open_catalog
from kart.core.errors import KartError


def remove_cmd(
    ctx: typer.Context,
    project: str = typer.Argument(..., help="Project name."),
    channel: str = typer.Argument(..., help="Channel name."),
    number: int = typer.Argument(..., min=1, help="Build number."),
) -> None:
    """Remove build NUMBER from PROJECT/CHANNEL.  Missing builds are not an error."""
    catalog = open_catalog(ctx)
    try:
        build = catalog.get(project, channel, number)
        if build is None:
            console.print(
                f"[yellow]Build {project}/{channel} #{number} not found; "
                "nothing to remove.[/yellow]"
            )
            return
        catalog.remove(build)
    except KartError as exc:
        fail(str(exc))
    console.print(f"[bold green]Removed[/bold green] {build.key}")
