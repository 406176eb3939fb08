"""Shared test fixtures for kart."""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import pytest

from kart.core.catalog import Catalog
from kart.core.manifest import ReleaseManifest
from kart.core.promotion import PromotionEngine
from kart.models.builds import Build
from kart.models.projects import ProjectConfig
from kart.storage.memory import InMemoryBlobStore

ARCHIVE_BUCKET = "kart-archive"
RELEASE_BUCKET = "kart-releases"
FIXED_NOW = datetime(2026, 1, 2, 3, 4, 5, tzinfo=timezone.utc)

PROJECTS_DATA: dict[str, Any] = {
    "projects": {
        "testing": {
            "bucket": ARCHIVE_BUCKET,
            "channels": {
                "sync": {},
                "beta": {"deploy": {"track": "beta"}},
                "stable": {
                    "name_pattern": "{project}-{version}.{ext}",
                    "deploy": {"track": "stable", "bucket": RELEASE_BUCKET},
                },
                "edge": {"deploy": {"track": "nightly"}},
            },
        },
    },
}

PROJECTS_TOML = f"""
[projects.testing]
bucket = "{ARCHIVE_BUCKET}"

[projects.testing.channels.sync]

[projects.testing.channels.beta]
deploy = {{ track = "beta" }}

[projects.testing.channels.stable]
name_pattern = "{{project}}-{{version}}.{{ext}}"
deploy = {{ track = "stable", bucket = "{RELEASE_BUCKET}" }}

[projects.testing.channels.edge]
deploy = {{ track = "nightly" }}
"""


@pytest.fixture
def projects() -> ProjectConfig:
    """Provide the test project registry."""
    return ProjectConfig.model_validate(PROJECTS_DATA)


@pytest.fixture
def projects_file(tmp_path: Path) -> Path:
    """Write the test project registry as TOML and return its path."""
    path = tmp_path / "kart.toml"
    path.write_text(PROJECTS_TOML)
    return path


@pytest.fixture
def blob_store() -> InMemoryBlobStore:
    """Provide a fresh in-memory BlobStore."""
    return InMemoryBlobStore()


@pytest.fixture
def catalog(blob_store: InMemoryBlobStore, projects: ProjectConfig) -> Catalog:
    return Catalog(blob_store, projects)


@pytest.fixture
def manifest(blob_store: InMemoryBlobStore, projects: ProjectConfig) -> ReleaseManifest:
    return ReleaseManifest(blob_store, projects)


@pytest.fixture
def fixed_now() -> datetime:
    """The instant every engine fixture stamps releases with."""
    return FIXED_NOW


@pytest.fixture
def engine(blob_store: InMemoryBlobStore, projects: ProjectConfig) -> PromotionEngine:
    """Provide a PromotionEngine with a fixed clock."""
    return PromotionEngine(blob_store, projects, clock=lambda: FIXED_NOW)


# ---------------------------------------------------------------------------
# Build directory factories
# ---------------------------------------------------------------------------


@pytest.fixture
def make_build_dir(tmp_path: Path) -> Callable[..., Path]:
    """Factory fixture: create a build directory with files and subdirs."""
    counter = {"n": 0}

    def _factory(file_count: int = 2, subdirs: int = 0) -> Path:
        counter["n"] += 1
        root = tmp_path / f"build-{counter['n']}"
        root.mkdir()
        targets = [root] + [root / f"sub{i}" for i in range(subdirs)]
        for target in targets[1:]:
            target.mkdir()
        for i in range(file_count):
            target = targets[i % len(targets)]
            (target / f"file{i}.txt").write_text(f"content {counter['n']}-{i}\n")
        return root

    return _factory


@pytest.fixture
def archive_builds(
    catalog: Catalog, make_build_dir: Callable[..., Path]
) -> Callable[[list[dict[str, Any]]], list[Build]]:
    """Factory fixture: store one build per spec dict, in order."""

    def _factory(specs: list[dict[str, Any]]) -> list[Build]:
        builds: list[Build] = []
        for spec in specs:
            spec = dict(spec)
            builds.append(
                catalog.store(
                    make_build_dir(),
                    spec.pop("project", "testing"),
                    spec.pop("channel", "sync"),
                    spec.pop("version", "1.2.3"),
                    **spec,
                )
            )
        return builds

    return _factory
