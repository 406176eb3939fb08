"""``kart release PROJECT CHANNEL NUMBER --track TRACK``: promote a build.

Copies the build object onto the release track and updates the track's
``kart.json`` manifest.  Progress is printed as it happens.  When the copy
succeeds but the manifest write fails, the command says so and exits 1;
re-running ``kart release`` with the same arguments repeats the (idempotent)
copy and the manifest write.
"""

from __future__ import annotations

import typer

from kart.cli._context import console, fail, open_catalog, open_engine
from kart.cli.render import release_panel
from kart.core.errors import KartError, ManifestWriteError
from kart.reporting.console import ConsoleReporter


def release_cmd(
    ctx: typer.Context,
    project: str = typer.Argument(..., help="Project name."),
    channel: str = typer.Argument(..., help="Channel holding the build."),
    number: int = typer.Argument(..., min=1, help="Build number to release."),
    track: str = typer.Option(None, "--track", "-t", help="Target release track."),
    name_pattern: str = typer.Option(
        None, "--name-pattern", help="Naming template for the release."
    ),
) -> None:
    """Promote build NUMBER of PROJECT/CHANNEL onto TRACK."""
    catalog = open_catalog(ctx)
    engine = open_engine(ctx)
    try:
        build = catalog.get(project, channel, number)
        if build is None:
            fail(f"Build {project}/{channel} #{number} not found")
        release = engine.release(
            build,
            track=track,
            name_pattern=name_pattern,
            reporter=ConsoleReporter(console),
        )
    except ManifestWriteError as exc:
        console.print(
            "[bold yellow]The release object was copied but the manifest "
            "is stale.[/bold yellow]"
        )
        fail(str(exc))
    except (KartError, ValueError) as exc:
        fail(str(exc))

    console.print()
    console.print(release_panel(release, title="Release complete"))
