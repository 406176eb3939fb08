"""Filesystem-backed BlobStore.

Storage layout::

    {root}/{bucket}/{key}                          object bytes
    {root}/.kart-metadata/{bucket}/{key}.json      user metadata

Writes go to a temp file in the target directory and are moved into place
with ``os.replace`` so readers never see a half-written object.
"""

from __future__ import annotations

import json
import logging
import os
import shutil
import uuid
from collections.abc import Mapping
from datetime import datetime, timezone
from pathlib import Path

from kart.core.errors import BlobNotFoundError, StorageError
from kart.models.blobs import BlobInfo

logger = logging.getLogger(__name__)

_METADATA_DIR = ".kart-metadata"


class FilesystemBlobStore:
    """Objects stored as plain files under *root*.

    Parameters
    ----------
    root:
        Root directory.  Each bucket is a subdirectory; created on demand.
    """

    def __init__(self, root: Path | str) -> None:
        self._root = Path(root)
        self._root.mkdir(parents=True, exist_ok=True)

    @property
    def root(self) -> Path:
        return self._root

    # ------------------------------------------------------------------
    # Paths
    # ------------------------------------------------------------------

    @staticmethod
    def _check_name(bucket: str, key: str) -> None:
        if not bucket or "/" in bucket or bucket.startswith("."):
            raise StorageError(f"Invalid bucket name: {bucket!r}")
        if not key or any(part in ("", ".", "..") for part in key.split("/")):
            raise StorageError(f"Invalid object key: {key!r}")

    def _object_path(self, bucket: str, key: str) -> Path:
        self._check_name(bucket, key)
        return self._root / bucket / key

    def _metadata_path(self, bucket: str, key: str) -> Path:
        self._check_name(bucket, key)
        return self._root / _METADATA_DIR / bucket / f"{key}.json"

    @staticmethod
    def _write_atomic(path: Path, data: bytes) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp = path.with_name(f".{path.name}.{uuid.uuid4().hex[:8]}.tmp")
        try:
            tmp.write_bytes(data)
            os.replace(tmp, path)
        finally:
            tmp.unlink(missing_ok=True)

    # ------------------------------------------------------------------
    # BlobStore
    # ------------------------------------------------------------------

    def put(
        self,
        bucket: str,
        key: str,
        data: bytes,
        *,
        metadata: Mapping[str, str] | None = None,
    ) -> None:
        path = self._object_path(bucket, key)
        try:
            self._write_atomic(
                self._metadata_path(bucket, key),
                json.dumps(dict(metadata or {}), sort_keys=True).encode("utf-8"),
            )
            self._write_atomic(path, data)
        except OSError as exc:
            raise StorageError(f"Failed writing {bucket}/{key}: {exc}") from exc
        logger.debug("FilesystemBlobStore: wrote %s/%s (%d bytes)", bucket, key, len(data))

    def get(self, bucket: str, key: str) -> bytes:
        path = self._object_path(bucket, key)
        try:
            return path.read_bytes()
        except (FileNotFoundError, IsADirectoryError):
            raise BlobNotFoundError(bucket, key) from None
        except OSError as exc:
            raise StorageError(f"Failed reading {bucket}/{key}: {exc}") from exc

    def _read_metadata(self, bucket: str, key: str) -> dict[str, str]:
        try:
            return json.loads(self._metadata_path(bucket, key).read_bytes())
        except FileNotFoundError:
            return {}
        except (OSError, ValueError) as exc:
            raise StorageError(f"Corrupt metadata for {bucket}/{key}: {exc}") from exc

    def head(self, bucket: str, key: str) -> BlobInfo:
        path = self._object_path(bucket, key)
        try:
            stat = path.stat()
        except FileNotFoundError:
            raise BlobNotFoundError(bucket, key) from None
        if not path.is_file():
            raise BlobNotFoundError(bucket, key)
        return BlobInfo(
            bucket=bucket,
            key=key,
            size=stat.st_size,
            metadata=self._read_metadata(bucket, key),
            last_modified=datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc),
        )

    def copy(
        self,
        bucket: str,
        source_key: str,
        dest_key: str,
        *,
        dest_bucket: str | None = None,
    ) -> None:
        target_bucket = dest_bucket or bucket
        source = self._object_path(bucket, source_key)
        dest = self._object_path(target_bucket, dest_key)
        if not source.is_file():
            raise BlobNotFoundError(bucket, source_key)
        metadata = self._read_metadata(bucket, source_key)
        tmp = dest.with_name(f".{dest.name}.{uuid.uuid4().hex[:8]}.tmp")
        try:
            dest.parent.mkdir(parents=True, exist_ok=True)
            shutil.copyfile(source, tmp)
            self._write_atomic(
                self._metadata_path(target_bucket, dest_key),
                json.dumps(metadata, sort_keys=True).encode("utf-8"),
            )
            os.replace(tmp, dest)
        except FileNotFoundError:
            raise BlobNotFoundError(bucket, source_key) from None
        except OSError as exc:
            raise StorageError(
                f"Failed copying {bucket}/{source_key} to {target_bucket}/{dest_key}: {exc}"
            ) from exc
        finally:
            tmp.unlink(missing_ok=True)

    def delete(self, bucket: str, key: str) -> None:
        try:
            self._object_path(bucket, key).unlink(missing_ok=True)
            self._metadata_path(bucket, key).unlink(missing_ok=True)
        except OSError as exc:
            raise StorageError(f"Failed deleting {bucket}/{key}: {exc}") from exc

    def list(self, bucket: str, prefix: str) -> list[str]:
        if not bucket or "/" in bucket or bucket.startswith("."):
            raise StorageError(f"Invalid bucket name: {bucket!r}")
        bucket_dir = self._root / bucket
        if not bucket_dir.is_dir():
            return []
        # Narrow the walk to the deepest directory named by the prefix
        base = bucket_dir / prefix.rsplit("/", 1)[0] if "/" in prefix else bucket_dir
        if not base.is_dir():
            return []
        keys = (
            path.relative_to(bucket_dir).as_posix()
            for path in base.rglob("*")
            if path.is_file() and not path.name.startswith(".")
        )
        return sorted(key for key in keys if key.startswith(prefix))
