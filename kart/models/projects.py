"""Project and channel configuration models.

``ProjectConfig`` is the read-only lookup consumed by the catalog and the
promotion engine.  It is passed in explicitly; nothing in the core reads
configuration from the environment.

Loaded from a TOML (or JSON) file such as::

    [projects.testing]
    bucket = "kart-archive"

    [projects.testing.channels.sync]

    [projects.testing.channels.stable]
    name_pattern = "{project}-{version}.{ext}"
    deploy = { track = "stable", bucket = "kart-releases" }
"""

from __future__ import annotations

import json
import tomllib
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, field_validator

from kart.core.errors import UnknownChannelError, UnknownProjectError
from kart.models.builds import check_name_pattern

DEFAULT_NAME_PATTERN = "{project}-{version}-{number}-{arch}.{ext}"


class DeploySpec(BaseModel):
    """Where releases promoted onto a channel land."""

    model_config = ConfigDict(frozen=True)

    track: str | None = None  # defaults to the channel name
    bucket: str | None = None  # defaults to the project bucket


class ChannelSpec(BaseModel):
    model_config = ConfigDict(frozen=True)

    name_pattern: str = DEFAULT_NAME_PATTERN
    deploy: DeploySpec = DeploySpec()

    @field_validator("name_pattern")
    @classmethod
    def _renderable_pattern(cls, value: str) -> str:
        return check_name_pattern(value)


class ProjectSpec(BaseModel):
    model_config = ConfigDict(frozen=True)

    bucket: str
    channels: dict[str, ChannelSpec] = Field(default_factory=dict)


class ResolvedChannel(BaseModel):
    """A channel lookup with every default applied."""

    model_config = ConfigDict(frozen=True)

    project: str
    channel: str
    deploy_track: str
    bucket: str
    name_pattern: str


class ProjectConfig(BaseModel):
    """Registry of projects and their channels."""

    model_config = ConfigDict(frozen=True)

    projects: dict[str, ProjectSpec] = Field(default_factory=dict)

    @classmethod
    def load(cls, path: Path | str) -> ProjectConfig:
        """Load from a ``.toml`` or ``.json`` file."""
        path = Path(path)
        raw = path.read_bytes()
        if path.suffix == ".json":
            data = json.loads(raw)
        else:
            data = tomllib.loads(raw.decode("utf-8"))
        return cls.model_validate(data)

    def _project(self, project: str) -> ProjectSpec:
        spec = self.projects.get(project)
        if spec is None:
            raise UnknownProjectError(project)
        return spec

    def resolve_bucket(self, project: str) -> str:
        """Return the archive bucket of *project*."""
        return self._project(project).bucket

    def resolve_channel(self, project: str, channel: str) -> ResolvedChannel:
        """Resolve *channel* of *project* into its deploy track and bucket.

        Raises
        ------
        UnknownProjectError
            If *project* is not registered.
        UnknownChannelError
            If *channel* is not registered for *project*.
        """
        spec = self._project(project)
        channel_spec = spec.channels.get(channel)
        if channel_spec is None:
            raise UnknownChannelError(project, channel)
        return ResolvedChannel(
            project=project,
            channel=channel,
            deploy_track=channel_spec.deploy.track or channel,
            bucket=channel_spec.deploy.bucket or spec.bucket,
            name_pattern=channel_spec.name_pattern,
        )
