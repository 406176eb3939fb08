"""``kart list PROJECT CHANNEL``: list archived builds."""

from __future__ import annotations

from typing import Any

import typer
from pydantic import ValidationError

from kart.cli._context import console, fail, open_catalog, parse_pairs
from kart.cli.render import build_table
from kart.core.errors import KartError
from kart.models.listing import ListOptions, SortSpec


def _coerce_filter(pairs: dict[str, str]) -> dict[str, Any]:
    # Build numbers are integers; everything else compares as text
    coerced: dict[str, Any] = dict(pairs)
    if "number" in coerced:
        try:
            coerced["number"] = int(coerced["number"])
        except ValueError:
            fail(f"--filter number expects an integer, got {pairs['number']!r}")
    return coerced


def list_cmd(
    ctx: typer.Context,
    project: str = typer.Argument(..., help="Project name."),
    channel: str = typer.Argument(..., help="Channel name."),
    filters: list[str] = typer.Option(
        None, "--filter", "-f", help="Exact match as field=value; repeatable."
    ),
    sort: list[str] = typer.Option(
        None, "--sort", "-s", help="Sort field; repeatable, applied in order."
    ),
    desc: bool = typer.Option(False, "--desc", help="Sort in descending order."),
    limit: int = typer.Option(None, "--limit", "-n", min=0, help="Maximum rows."),
) -> None:
    """List builds of PROJECT/CHANNEL."""
    order = -1 if desc else 1
    try:
        options = ListOptions(
            filter=_coerce_filter(parse_pairs(filters, option="--filter")),
            sort=SortSpec(key=list(sort or ["number"]), order=order),
            limit=limit,
        )
    except ValidationError as exc:
        fail(str(exc))

    catalog = open_catalog(ctx)
    try:
        builds = catalog.list(project, channel, options)
    except KartError as exc:
        fail(str(exc))

    if not builds:
        console.print(f"[dim]No builds in {project}/{channel}.[/dim]")
        return
    console.print(build_table(builds, title=f"{project}/{channel}"))
