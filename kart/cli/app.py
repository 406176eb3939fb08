"""Main Typer application: imports and registers all CLI commands.

Entry point: ``kart`` (configured via pyproject.toml scripts).
"""

from __future__ import annotations

import typer

from kart.cli.commands.fetch import fetch_cmd
from kart.cli.commands.list_cmd import list_cmd
from kart.cli.commands.release import release_cmd
from kart.cli.commands.remove import remove_cmd
from kart.cli.commands.status import status_cmd
from kart.cli.commands.store import store_cmd
from kart.config import KartSettings
from kart.log import configure_logging

app = typer.Typer(
    name="kart",
    help="kart: build-artifact archive and release-promotion catalog.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    add_completion=False,
)


@app.callback()
def main_callback(
    ctx: typer.Context,
    log_level: str = typer.Option(
        None, "--log-level", help="Override KART_LOG_LEVEL for this run."
    ),
) -> None:
    """Load settings from the environment and set up logging."""
    settings = KartSettings()
    configure_logging(log_level or settings.log_level)
    ctx.obj = settings


# Register subcommands
app.command(name="store", help="Archive a directory as a new build.")(store_cmd)
app.command(name="list", help="List archived builds.")(list_cmd)
app.command(name="remove", help="Remove an archived build.")(remove_cmd)
app.command(name="fetch", help="Download and unpack an archived build.")(fetch_cmd)
app.command(name="release", help="Promote a build onto a release track.")(release_cmd)
app.command(name="status", help="Show the build released on a channel.")(status_cmd)


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
