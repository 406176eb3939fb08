"""Promotion engine: moves an archived build onto a release track.

A promotion runs strictly in order, with no implicit rollback::

    requested -> copying -> copied -> manifest_writing -> done
                    |                        |
                    v                        v
                 failed           failed (copied but unrecorded)

1. Validate the target track and resolve its configuration.
2. Build the Release (structural copy of the Build, channel = track).
3. Server-side copy of the Build object to the Release key.
4. Report progress and stamp ``release_date``.
5. Write the track's manifest from the *original* Build, so ``status``
   always names the live Build.

A copy failure raises ``PromotionCopyError`` and writes no manifest.  A
manifest failure after a successful copy raises ``ManifestWriteError``
carrying the promoted Release; retry with ``record_release`` alone.
Retries are always caller-driven.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime, timezone
from enum import Enum

from kart.core.errors import (
    ManifestWriteError,
    MissingTrackError,
    PromotionCopyError,
    StorageError,
)
from kart.core.manifest import ReleaseManifest
from kart.models.builds import Build, Release
from kart.models.projects import ProjectConfig
from kart.reporting import ProgressReporter, report_progress
from kart.storage import BlobStore

logger = logging.getLogger(__name__)

COPY_DONE_MESSAGE = "File moved to release channel"
MANIFEST_DONE_MESSAGE = "Release manifest updated"


class PromotionState(str, Enum):
    """States of a single promotion."""

    REQUESTED = "requested"
    COPYING = "copying"
    COPIED = "copied"
    MANIFEST_WRITING = "manifest_writing"
    DONE = "done"
    FAILED = "failed"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class PromotionEngine:
    """Promotes builds onto release tracks and reports release status.

    Parameters
    ----------
    store:
        Object storage backend.
    projects:
        Registry used to resolve buckets and deploy tracks.
    manifest:
        Manifest reader/writer.  Built from *store* and *projects* if not
        provided.
    clock:
        Returns the UTC time used to stamp ``release_date``.
    """

    def __init__(
        self,
        store: BlobStore,
        projects: ProjectConfig,
        *,
        manifest: ReleaseManifest | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._store = store
        self._projects = projects
        self._manifest = manifest or ReleaseManifest(store, projects)
        self._clock = clock

    @property
    def manifest(self) -> ReleaseManifest:
        return self._manifest

    def _transition(self, build: Build, state: PromotionState) -> None:
        logger.debug("Promotion of %s: %s", build.key, state.value)

    # ------------------------------------------------------------------
    # Release
    # ------------------------------------------------------------------

    def release(
        self,
        build: Build,
        *,
        track: str | None,
        name_pattern: str | None = None,
        reporter: ProgressReporter | None = None,
    ) -> Release:
        """Promote *build* onto *track* and return the stamped Release.

        *name_pattern* defaults to the track's configured pattern.

        The release object is written under ``<project>/<track>/`` in the
        track's deploy bucket, which is the archive bucket unless one is
        configured.  If *track* is also a catalog channel in that bucket, the
        release shows up among its builds and replaces any build there with
        the same version, number and arch.  Give such tracks their own
        deploy bucket.

        Raises
        ------
        MissingTrackError
            If *track* is empty.
        ValueError
            If *name_pattern* has a placeholder ``Release.file_name`` cannot
            fill.  Nothing is copied.
        UnknownProjectError, UnknownChannelError
            If the project or the track is not configured.  Nothing is copied.
        PromotionCopyError
            If the copy fails (including a missing source object).  No
            manifest is written.
        ManifestWriteError
            If the manifest write fails after a successful copy.  The error's
            ``release`` attribute holds the promoted Release.
        """
        if not track:
            raise MissingTrackError("No track specified")
        self._transition(build, PromotionState.REQUESTED)

        target = self._projects.resolve_channel(build.project, track)
        source_bucket = self._projects.resolve_bucket(build.project)
        rel = Release.from_build(
            build, track=track, name_pattern=name_pattern or target.name_pattern
        )

        self._transition(build, PromotionState.COPYING)
        try:
            self._store.copy(
                source_bucket, build.key, rel.key, dest_bucket=target.bucket
            )
        except StorageError as exc:
            self._transition(build, PromotionState.FAILED)
            raise PromotionCopyError(
                f"Promotion of {build.key} to track {track!r} failed at the copy "
                f"stage; no manifest was written: {exc}"
            ) from exc
        self._transition(build, PromotionState.COPIED)

        report_progress(reporter, COPY_DONE_MESSAGE, stage=PromotionState.COPIED.value)
        rel = rel.stamped(self._clock())

        self._transition(build, PromotionState.MANIFEST_WRITING)
        try:
            self.record_release(build, track)
        except ManifestWriteError as exc:
            self._transition(build, PromotionState.FAILED)
            raise ManifestWriteError(
                f"Promotion of {build.key} to track {track!r} failed at the "
                f"manifest-write stage; the release object {target.bucket}/{rel.key} "
                f"is in place, re-run the manifest write only: {exc}",
                release=rel,
            ) from exc
        report_progress(
            reporter, MANIFEST_DONE_MESSAGE, stage=PromotionState.DONE.value
        )
        self._transition(build, PromotionState.DONE)

        logger.info(
            "Released %s/%s #%d (%s) on track %s as %s/%s",
            build.project, build.channel, build.number, build.version,
            track, target.bucket, rel.key,
        )
        return rel

    def record_release(self, build: Build, track: str) -> str:
        """Write *track*'s manifest to point at *build*.  Returns the key.

        This is the manifest stage of ``release`` on its own, for retrying
        after a ``ManifestWriteError``.
        """
        return self._manifest.write(build, channel=track)

    # ------------------------------------------------------------------
    # Status
    # ------------------------------------------------------------------

    def status(self, project: str, channel: str) -> Release | None:
        """Return the released record for *channel*, or ``None``."""
        return self._manifest.read(project, channel)
