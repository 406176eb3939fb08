"""Error taxonomy for the catalog and promotion engine.

Every error raised by kart derives from ``KartError``.  Identifier errors
(unknown project/channel, missing track) are caller-fixable and never
retried.  Storage errors chain the backend exception via ``raise ... from``.

Promotion errors carry the ``stage`` that failed so an operator can decide
whether to re-run only the remaining stage.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from kart.models.builds import Release


class KartError(RuntimeError):
    """Base class for every kart failure."""

    stage: str | None = None


class UnknownProjectError(KartError):
    """Raised when a project is not registered in the project configuration."""

    def __init__(self, project: str) -> None:
        super().__init__(f"Unknown project: {project!r}")
        self.project = project


class UnknownChannelError(KartError):
    """Raised when a channel is not registered for a known project."""

    def __init__(self, project: str, channel: str) -> None:
        super().__init__(f"Unknown channel {channel!r} for project {project!r}")
        self.project = project
        self.channel = channel


class SourceNotFoundError(KartError):
    """Raised when a build source directory is missing or unreadable."""

    def __init__(self, path: object) -> None:
        super().__init__(f"Source directory not found or not readable: {path}")
        self.path = path


class MissingTrackError(KartError):
    """Raised when a promotion is requested without a target track."""

    stage = "validate"


class StorageError(KartError):
    """Raised for any BlobStore failure that has no more specific type."""


class BlobNotFoundError(StorageError):
    """Raised when a requested object does not exist in the BlobStore."""

    def __init__(self, bucket: str, key: str) -> None:
        super().__init__(f"Object not found: {bucket}/{key}")
        self.bucket = bucket
        self.key = key


class BuildNotFoundError(BlobNotFoundError):
    """Raised when a catalogued build's archive is missing from storage."""


class PromotionCopyError(KartError):
    """Raised when the server-side copy of a promotion fails.

    No manifest write is attempted after this error.
    """

    stage = "copy"


class ManifestWriteError(KartError):
    """Raised when writing a release manifest fails.

    When raised from a promotion, the release object has already been
    copied; ``release`` holds the promoted record so the caller can retry
    the manifest write alone.
    """

    stage = "manifest-write"

    def __init__(self, message: str, *, release: Release | None = None) -> None:
        super().__init__(message)
        self.release = release


class ManifestReadError(KartError):
    """Raised when an existing release manifest cannot be read or parsed."""

    stage = "manifest-read"
