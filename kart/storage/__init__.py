"""BlobStore protocol and backend factory.

Every backend implements the ``BlobStore`` protocol: a flat
``(bucket, key) -> bytes`` object store with user metadata, server-side
copy, idempotent delete and prefix listing.  Backends are stateless between
calls and safe to share across in-flight operations.

Missing objects raise ``BlobNotFoundError``; every other backend failure
surfaces as ``StorageError`` with the backend exception chained.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from kart.models.blobs import BlobInfo

if TYPE_CHECKING:
    from kart.config import KartSettings


@runtime_checkable
class BlobStore(Protocol):
    """Protocol that every kart storage backend must implement."""

    def put(
        self,
        bucket: str,
        key: str,
        data: bytes,
        *,
        metadata: Mapping[str, str] | None = None,
    ) -> None:
        """Write *data* at *key*, replacing any existing object."""
        ...

    def get(self, bucket: str, key: str) -> bytes:
        """Return the object bytes.  Raises ``BlobNotFoundError``."""
        ...

    def head(self, bucket: str, key: str) -> BlobInfo:
        """Return size and metadata.  Raises ``BlobNotFoundError``."""
        ...

    def copy(
        self,
        bucket: str,
        source_key: str,
        dest_key: str,
        *,
        dest_bucket: str | None = None,
    ) -> None:
        """Server-side copy, preserving metadata.

        Raises ``BlobNotFoundError`` if the source does not exist.
        """
        ...

    def delete(self, bucket: str, key: str) -> None:
        """Delete *key*.  Deleting a missing key is not an error."""
        ...

    def list(self, bucket: str, prefix: str) -> list[str]:
        """Return every key under *prefix*, sorted."""
        ...


def open_blob_store(settings: KartSettings) -> BlobStore:
    """Build the backend selected by ``settings.storage_backend``."""
    if settings.storage_backend == "s3":
        from kart.storage.s3 import S3BlobStore

        return S3BlobStore.from_settings(settings)

    from kart.storage.filesystem import FilesystemBlobStore

    return FilesystemBlobStore(settings.storage_root)


__all__ = ["BlobStore", "open_blob_store"]
