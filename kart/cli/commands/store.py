"""``kart store SOURCE_DIR PROJECT CHANNEL VERSION``: archive a build."""

from __future__ import annotations

from pathlib import Path

import typer
from rich.panel import Panel

from kart.cli._context import console, fail, open_catalog, parse_pairs
from kart.core.errors import KartError


def store_cmd(
    ctx: typer.Context,
    source_dir: Path = typer.Argument(..., help="Directory to archive."),
    project: str = typer.Argument(..., help="Project name."),
    channel: str = typer.Argument(..., help="Channel the build belongs to."),
    version: str = typer.Argument(..., help="Build version, e.g. 1.2.3."),
    arch: str = typer.Option(None, "--arch", "-a", help="Architecture (default: all)."),
    name_pattern: str = typer.Option(
        None, "--name-pattern", help="Naming template recorded with the build."
    ),
    meta: list[str] = typer.Option(
        None, "--meta", "-m", help="Metadata as key=value; repeatable."
    ),
    ext: str = typer.Option("tar.gz", "--ext", help="Archive format."),
) -> None:
    """Archive SOURCE_DIR as the next build of PROJECT/CHANNEL."""
    metadata = parse_pairs(meta, option="--meta")
    catalog = open_catalog(ctx)
    try:
        build = catalog.store(
            source_dir,
            project,
            channel,
            version,
            arch=arch,
            name_pattern=name_pattern,
            metadata=metadata,
            ext=ext,
        )
    except (KartError, ValueError) as exc:
        fail(str(exc))

    console.print(
        Panel(
            "\n".join([
                "[bold green]Build archived![/bold green]",
                "",
                f"[bold]Build:[/bold]   {build.project}/{build.channel} #{build.number}",
                f"[bold]Version:[/bold] {build.version} ({build.arch})",
                f"[bold]Key:[/bold]     {build.key}",
            ]),
            title="[bold]kart store[/bold]",
            border_style="green",
            padding=(1, 2),
        )
    )
    # Plain number on its own line for scripting
    console.print(str(build.number))
