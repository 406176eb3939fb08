"""Rich renderables for builds and releases."""

from __future__ import annotations

from collections.abc import Sequence

from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from kart.models.builds import Build, Release


def build_table(builds: Sequence[Build], *, title: str = "Builds") -> Table:
    """Render builds as a table, one row per build."""
    table = Table(title=title)
    table.add_column("#", justify="right", style="bold")
    table.add_column("Version", style="green")
    table.add_column("Arch")
    table.add_column("Ext", style="dim")
    table.add_column("Metadata")
    table.add_column("Key", style="cyan")

    for build in builds:
        meta = ", ".join(f"{k}={v}" for k, v in sorted(build.metadata.items()))
        table.add_row(
            str(build.number), build.version, build.arch, build.ext, meta, build.key
        )
    return table


def release_panel(release: Release, *, title: str = "Release") -> Panel:
    """Render a released record as a summary panel."""
    released = (
        release.release_date.isoformat() if release.release_date else "[dim]n/a[/dim]"
    )
    lines = [
        f"[bold]Project:[/bold]  {release.project}",
        f"[bold]Channel:[/bold]  {release.channel}",
        f"[bold]Version:[/bold]  {release.version}",
        f"[bold]Build:[/bold]    #{release.number} ({release.arch})",
        f"[bold]Key:[/bold]      {release.key}",
        f"[bold]Released:[/bold] {released}",
    ]
    if release.name_pattern:
        lines.append(f"[bold]File:[/bold]     {escape(release.file_name)}")
    if release.metadata:
        meta = ", ".join(f"{k}={v}" for k, v in sorted(release.metadata.items()))
        lines.append(f"[bold]Metadata:[/bold] {escape(meta)}")
    return Panel(
        "\n".join(lines),
        title=f"[bold]{title}[/bold]",
        border_style="green",
        padding=(1, 2),
    )
