"""In-memory BlobStore, used for tests and dry runs."""

from __future__ import annotations

import threading
from collections.abc import Mapping
from datetime import datetime, timezone

from kart.core.errors import BlobNotFoundError
from kart.models.blobs import BlobInfo


class InMemoryBlobStore:
    """Dict-backed BlobStore.  Thread-safe."""

    def __init__(self) -> None:
        self._objects: dict[tuple[str, str], tuple[bytes, dict[str, str], datetime]] = {}
        self._lock = threading.Lock()

    def put(
        self,
        bucket: str,
        key: str,
        data: bytes,
        *,
        metadata: Mapping[str, str] | None = None,
    ) -> None:
        with self._lock:
            self._objects[(bucket, key)] = (
                bytes(data),
                dict(metadata or {}),
                datetime.now(timezone.utc),
            )

    def _entry(self, bucket: str, key: str) -> tuple[bytes, dict[str, str], datetime]:
        try:
            return self._objects[(bucket, key)]
        except KeyError:
            raise BlobNotFoundError(bucket, key) from None

    def get(self, bucket: str, key: str) -> bytes:
        with self._lock:
            return self._entry(bucket, key)[0]

    def head(self, bucket: str, key: str) -> BlobInfo:
        with self._lock:
            data, metadata, modified = self._entry(bucket, key)
        return BlobInfo(
            bucket=bucket,
            key=key,
            size=len(data),
            metadata=dict(metadata),
            last_modified=modified,
        )

    def copy(
        self,
        bucket: str,
        source_key: str,
        dest_key: str,
        *,
        dest_bucket: str | None = None,
    ) -> None:
        with self._lock:
            data, metadata, _ = self._entry(bucket, source_key)
            self._objects[(dest_bucket or bucket, dest_key)] = (
                data,
                dict(metadata),
                datetime.now(timezone.utc),
            )

    def delete(self, bucket: str, key: str) -> None:
        with self._lock:
            self._objects.pop((bucket, key), None)

    def list(self, bucket: str, prefix: str) -> list[str]:
        with self._lock:
            return sorted(
                key
                for (obj_bucket, key) in self._objects
                if obj_bucket == bucket and key.startswith(prefix)
            )
