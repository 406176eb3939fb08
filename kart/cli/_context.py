"""Shared wiring for CLI commands: settings -> collaborators -> services."""

from __future__ import annotations

from collections.abc import Iterable
from typing import NoReturn

import typer
from rich.console import Console
from rich.markup import escape

from kart.config import KartSettings
from kart.core.catalog import Catalog
from kart.core.promotion import PromotionEngine
from kart.models.projects import ProjectConfig
from kart.storage import open_blob_store

console = Console()


def fail(message: str) -> NoReturn:
    """Print *message* as an error and exit with status 1."""
    console.print(f"[bold red]Error:[/bold red] {escape(message)}")
    raise typer.Exit(code=1)


def settings_from(ctx: typer.Context) -> KartSettings:
    if isinstance(ctx.obj, KartSettings):
        return ctx.obj
    return KartSettings()


def load_projects(settings: KartSettings) -> ProjectConfig:
    path = settings.projects_file
    if not path.is_file():
        fail(f"Project configuration not found: {path}")
    try:
        return ProjectConfig.load(path)
    except ValueError as exc:
        fail(f"Invalid project configuration {path}: {exc}")


def open_catalog(ctx: typer.Context) -> Catalog:
    settings = settings_from(ctx)
    return Catalog(open_blob_store(settings), load_projects(settings))


def open_engine(ctx: typer.Context) -> PromotionEngine:
    settings = settings_from(ctx)
    return PromotionEngine(open_blob_store(settings), load_projects(settings))


def parse_pairs(values: Iterable[str] | None, *, option: str) -> dict[str, str]:
    """Parse repeated ``key=value`` option values into a dict."""
    pairs: dict[str, str] = {}
    for item in values or ():
        key, sep, value = item.partition("=")
        if not sep or not key:
            fail(f"{option} expects key=value, got {item!r}")
        pairs[key] = value
    return pairs
