"""kart data models: all Pydantic v2, all frozen (immutable)."""

from kart.models.blobs import BlobInfo
from kart.models.builds import Build, Release
from kart.models.listing import ListOptions, SortSpec
from kart.models.progress import ProgressEvent
from kart.models.projects import (
    ChannelSpec,
    DeploySpec,
    ProjectConfig,
    ProjectSpec,
    ResolvedChannel,
)

__all__ = [
    # builds
    "Build",
    "Release",
    # listing
    "ListOptions",
    "SortSpec",
    # storage
    "BlobInfo",
    # progress
    "ProgressEvent",
    # projects
    "ChannelSpec",
    "DeploySpec",
    "ProjectConfig",
    "ProjectSpec",
    "ResolvedChannel",
]
