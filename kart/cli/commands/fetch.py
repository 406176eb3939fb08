"""``kart fetch PROJECT CHANNEL NUMBER DEST``: download and unpack a build."""

from __future__ import annotations

from pathlib import Path

import typer

from kart.cli._context import console, fail, open_catalog
from kart.core.errors import KartError


def fetch_cmd(
    ctx: typer.Context,
    project: str = typer.Argument(..., help="Project name."),
    channel: str = typer.Argument(..., help="Channel name."),
    number: int = typer.Argument(..., min=1, help="Build number."),
    dest: Path = typer.Argument(..., help="Directory to unpack into."),
) -> None:
    """Unpack build NUMBER of PROJECT/CHANNEL into DEST."""
    catalog = open_catalog(ctx)
    try:
        build = catalog.get(project, channel, number)
        if build is None:
            fail(f"Build {project}/{channel} #{number} not found")
        target = catalog.fetch(build, dest)
    except KartError as exc:
        fail(str(exc))
    console.print(f"[bold green]Fetched[/bold green] {build.key} into {target}")
