"""Build catalog: store, list, fetch and remove archived builds.

The catalog holds no state between calls: every entry lives in the
BlobStore as one archive object whose key is computed by the key scheme
and whose user metadata carries the build's metadata map as one JSON
document under ``kart-metadata``.

Build numbers are inferred per (project, channel) as ``max(existing) + 1``.
Inference is read-then-write with no lock around the backend, so two
concurrent ``store`` calls on the same (project, channel) can be assigned
the same number.  Callers that need stronger guarantees must serialize
stores per (project, channel) externally.
"""

from __future__ import annotations

import json
import logging
import re
from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import Any

from kart.core.errors import BlobNotFoundError, BuildNotFoundError, StorageError
from kart.core.keys import BuildKey, channel_prefix, compute_key, parse_key
from kart.core.packaging import check_source_dir, pack_directory, unpack_archive
from kart.models.builds import DEFAULT_EXT, Build, check_name_pattern
from kart.models.listing import ListOptions, SortSpec
from kart.models.projects import ProjectConfig
from kart.storage import BlobStore

logger = logging.getLogger(__name__)

# Blob metadata keys with this prefix are owned by kart, not by callers.
RESERVED_METADATA_PREFIX = "kart-"
_NAME_PATTERN_META = f"{RESERVED_METADATA_PREFIX}name-pattern"
# S3 lowercases user-metadata keys and only carries ASCII values, so the
# build's map travels as one ASCII JSON document under this key.
_BUILD_METADATA_META = f"{RESERVED_METADATA_PREFIX}metadata"

_DIGITS = re.compile(r"(\d+)")


def _natural_key(value: str) -> tuple[tuple[int, int, str], ...]:
    """Sort key ordering digit runs numerically: ``1.9 < 1.10``."""
    return tuple(
        (0, int(part), "") if part.isdigit() else (1, 0, part)
        for part in _DIGITS.split(value)
        if part
    )


def _sort_value(build: Build, field: str) -> Any:
    value = getattr(build, field)
    if field == "number":
        return value
    if field == "version":
        return _natural_key(value)
    if isinstance(value, Mapping):
        return tuple(sorted(value.items()))
    return "" if value is None else str(value)


def sort_builds(builds: Iterable[Build], spec: SortSpec) -> list[Build]:
    """Lexicographic sort over ``spec.key``; ``order=-1`` reverses."""
    return sorted(
        builds,
        key=lambda b: tuple(_sort_value(b, field) for field in spec.key),
        reverse=spec.order == -1,
    )


def _storage_metadata(build: Build) -> dict[str, str]:
    meta = {_BUILD_METADATA_META: json.dumps(build.metadata, sort_keys=True)}
    if build.name_pattern:
        meta[_NAME_PATTERN_META] = json.dumps(build.name_pattern)
    return meta


def _decode_metadata(
    bucket: str, key: str, stored: Mapping[str, str]
) -> tuple[dict[str, str], str | None]:
    """Recover ``(metadata, name_pattern)`` from blob user metadata.

    Objects archived as plain user-metadata entries are read as they are.
    """
    encoded = stored.get(_BUILD_METADATA_META)
    if encoded is None:
        metadata = {
            k: v for k, v in stored.items()
            if not k.startswith(RESERVED_METADATA_PREFIX)
        }
        return metadata, stored.get(_NAME_PATTERN_META)
    try:
        metadata = json.loads(encoded)
        pattern = stored.get(_NAME_PATTERN_META)
        name_pattern = None if pattern is None else json.loads(pattern)
    except ValueError as exc:
        raise StorageError(f"Corrupt build metadata on {bucket}/{key}: {exc}") from exc
    return metadata, name_pattern


class Catalog:
    """Archive catalog over a BlobStore.

    Parameters
    ----------
    store:
        Object storage backend.
    projects:
        Project/channel registry used to validate identifiers and resolve
        buckets.
    """

    def __init__(self, store: BlobStore, projects: ProjectConfig) -> None:
        self._store = store
        self._projects = projects

    # ------------------------------------------------------------------
    # Store
    # ------------------------------------------------------------------

    def store(
        self,
        source_dir: Path | str,
        project: str,
        channel: str,
        version: str,
        arch: str | None = None,
        name_pattern: str | None = None,
        metadata: Mapping[str, str] | None = None,
        *,
        ext: str = DEFAULT_EXT,
    ) -> Build:
        """Package *source_dir* and archive it as the next build.

        Raises
        ------
        UnknownProjectError, UnknownChannelError
            If the identifiers are not configured.  Nothing is written.
        SourceNotFoundError
            If *source_dir* is missing or unreadable.
        ValueError
            If *metadata* uses a reserved ``kart-`` key, *name_pattern* has a
            placeholder ``Release.file_name`` cannot fill, or *ext* is not a
            supported archive format.
        """
        self._projects.resolve_channel(project, channel)
        bucket = self._projects.resolve_bucket(project)
        source = check_source_dir(source_dir)

        metadata = dict(metadata or {})
        reserved = [k for k in metadata if k.startswith(RESERVED_METADATA_PREFIX)]
        if reserved:
            raise ValueError(f"Reserved metadata keys: {', '.join(sorted(reserved))}")
        if name_pattern is not None:
            check_name_pattern(name_pattern)

        data = pack_directory(source, ext)

        # Infer as late as possible to keep the race window small
        build = Build(
            project=project,
            channel=channel,
            version=version,
            number=self.next_number(project, channel),
            arch=arch,
            ext=ext,
            metadata=metadata,
            name_pattern=name_pattern,
        )
        self._store.put(bucket, build.key, data, metadata=_storage_metadata(build))
        logger.info(
            "Stored build %s/%s #%d (%s, %s) at %s/%s (%d bytes)",
            project, channel, build.number, version, build.arch, bucket, build.key, len(data),
        )
        return build

    def next_number(self, project: str, channel: str) -> int:
        """Return ``max(existing numbers in project+channel) + 1``."""
        bucket = self._projects.resolve_bucket(project)
        numbers = [
            parsed.number
            for parsed in self._parsed_keys(bucket, project, channel)
        ]
        return max(numbers, default=0) + 1

    # ------------------------------------------------------------------
    # List
    # ------------------------------------------------------------------

    def _parsed_keys(self, bucket: str, project: str, channel: str) -> list[BuildKey]:
        parsed_keys: list[BuildKey] = []
        for key in self._store.list(bucket, channel_prefix(project, channel)):
            parsed = parse_key(key)
            if parsed is None or (parsed.project, parsed.channel) != (project, channel):
                logger.debug("Skipping non-catalog key %s/%s", bucket, key)
                continue
            parsed_keys.append(parsed)
        return parsed_keys

    def _load(self, bucket: str, parsed: BuildKey) -> Build | None:
        key = compute_key(parsed)
        try:
            info = self._store.head(bucket, key)
        except BlobNotFoundError:
            # Removed between the listing and the head
            logger.debug("Entry vanished during listing: %s/%s", bucket, key)
            return None
        metadata, name_pattern = _decode_metadata(bucket, key, info.metadata)
        return Build(
            **parsed._asdict(), metadata=metadata, name_pattern=name_pattern
        )

    def list(
        self,
        project: str,
        channel: str,
        options: ListOptions | Mapping[str, Any] | None = None,
    ) -> list[Build]:
        """List builds of a (project, channel).

        ``options.filter`` is a strict AND of exact equality; a key that is
        not a Build field yields an empty result.  ``options.sort`` orders
        the result (default: ascending build number) and ``options.limit``
        truncates it after sorting.

        Raises
        ------
        UnknownProjectError, UnknownChannelError
            If the identifiers are not configured.
        """
        if options is None:
            options = ListOptions()
        elif not isinstance(options, ListOptions):
            options = ListOptions.model_validate(options)

        self._projects.resolve_channel(project, channel)
        bucket = self._projects.resolve_bucket(project)

        unknown = [name for name in options.filter if name not in Build.model_fields]
        if unknown:
            logger.debug("Unknown filter field(s) %s; nothing matches", unknown)
            return []

        key_filter = {k: v for k, v in options.filter.items() if k in BuildKey._fields}
        builds: list[Build] = []
        for parsed in self._parsed_keys(bucket, project, channel):
            if any(getattr(parsed, k) != v for k, v in key_filter.items()):
                continue
            build = self._load(bucket, parsed)
            if build is None:
                continue
            if all(getattr(build, k) == v for k, v in options.filter.items()):
                builds.append(build)

        builds = sort_builds(builds, options.sort or SortSpec(key=["number"]))
        if options.limit is not None:
            builds = builds[: options.limit]
        return builds

    def get(self, project: str, channel: str, number: int) -> Build | None:
        """Return the build with *number* in (project, channel), if any."""
        matches = self.list(project, channel, ListOptions(filter={"number": number}))
        return matches[0] if matches else None

    # ------------------------------------------------------------------
    # Fetch / remove
    # ------------------------------------------------------------------

    def fetch(self, build: Build, dest_dir: Path | str) -> Path:
        """Download *build*'s archive and unpack it into *dest_dir*.

        Raises
        ------
        BuildNotFoundError
            If the archive object no longer exists.
        """
        bucket = self._projects.resolve_bucket(build.project)
        try:
            data = self._store.get(bucket, build.key)
        except BlobNotFoundError as exc:
            raise BuildNotFoundError(bucket, build.key) from exc
        dest = unpack_archive(data, build.ext, dest_dir)
        logger.info("Fetched build %s into %s", build.key, dest)
        return dest

    def remove(self, build: Build) -> None:
        """Delete *build*'s archive.  Removing a missing build succeeds."""
        bucket = self._projects.resolve_bucket(build.project)
        self._store.delete(bucket, build.key)
        logger.info("Removed build %s/%s", bucket, build.key)
