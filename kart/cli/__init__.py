"""kart CLI: Typer-based command-line interface.

Provides the ``kart`` command with subcommands for archiving, listing,
fetching and removing builds, promoting them onto release tracks and
checking release status.

All output uses Rich for formatted terminal display.
"""
