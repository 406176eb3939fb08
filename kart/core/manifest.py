"""Release manifest (``kart.json``): the per-track "currently released" pointer.

One manifest exists per (project, deploy track).  Its location depends only
on the track, never on the released build's version or number, so each
promotion to a track overwrites the previous pointer in place.  A missing
manifest means nothing has been released on that track yet.
"""

from __future__ import annotations

import logging

from pydantic import ValidationError

from kart.core.errors import (
    BlobNotFoundError,
    ManifestReadError,
    ManifestWriteError,
    StorageError,
)
from kart.core.keys import manifest_key
from kart.models.builds import Build, Release
from kart.models.projects import ProjectConfig
from kart.storage import BlobStore

logger = logging.getLogger(__name__)


class ReleaseManifest:
    """Reads and writes release manifests through a BlobStore.

    Parameters
    ----------
    store:
        Object storage backend.
    projects:
        Registry used to resolve a channel into its deploy track and bucket.
    """

    def __init__(self, store: BlobStore, projects: ProjectConfig) -> None:
        self._store = store
        self._projects = projects

    def location(self, project: str, channel: str) -> tuple[str, str]:
        """Return ``(bucket, key)`` of the manifest for *channel*'s deploy track."""
        resolved = self._projects.resolve_channel(project, channel)
        return resolved.bucket, manifest_key(project, resolved.deploy_track)

    def write(self, record: Build, *, channel: str | None = None) -> str:
        """Serialize *record* to JSON and store it as the track's manifest.

        The manifest location is derived from ``(record.project, channel)``;
        *channel* defaults to ``record.channel``.  Overwrites any existing
        manifest.  Returns the manifest key.

        Raises
        ------
        ManifestWriteError
            If the storage write fails.
        """
        bucket, key = self.location(record.project, channel or record.channel)
        try:
            self._store.put(bucket, key, record.to_json().encode("utf-8"))
        except StorageError as exc:
            raise ManifestWriteError(
                f"Failed writing release manifest {bucket}/{key}: {exc}"
            ) from exc
        logger.info("Wrote release manifest %s/%s (%s)", bucket, key, record.key)
        return key

    def read(self, project: str, channel: str) -> Release | None:
        """Return the released record for *channel*, or ``None`` if absent.

        Raises
        ------
        ManifestReadError
            On any storage failure other than not-found, or if the stored
            manifest is not a valid release record.
        """
        bucket, key = self.location(project, channel)
        try:
            data = self._store.get(bucket, key)
        except BlobNotFoundError:
            return None
        except StorageError as exc:
            raise ManifestReadError(
                f"Failed downloading release manifest {bucket}/{key}: {exc}"
            ) from exc
        try:
            return Release.from_json(data)
        except ValidationError as exc:
            raise ManifestReadError(
                f"Invalid release manifest {bucket}/{key}: {exc}"
            ) from exc
