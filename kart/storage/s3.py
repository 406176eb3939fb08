"""Amazon S3 (or S3-compatible) BlobStore.

Copies are server-side ``copy_object`` calls, so promotion never streams
archive bytes through the client.  Timeouts and retry attempts come from
``KartSettings``; a timed-out call surfaces as ``StorageError``.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

import boto3
from botocore.config import Config as BotoConfig
from botocore.exceptions import BotoCoreError, ClientError

from kart.core.errors import BlobNotFoundError, StorageError
from kart.models.blobs import BlobInfo

if TYPE_CHECKING:
    from kart.config import KartSettings

logger = logging.getLogger(__name__)

_NOT_FOUND_CODES = frozenset({"NoSuchKey", "404", "NotFound"})


def _is_not_found(exc: ClientError) -> bool:
    return exc.response.get("Error", {}).get("Code", "") in _NOT_FOUND_CODES


class S3BlobStore:
    """BlobStore backed by an S3 client.

    Parameters
    ----------
    client:
        A boto3 S3 client.  Use ``from_settings`` to build one from
        ``KartSettings``.
    """

    def __init__(self, client: Any) -> None:
        self._s3 = client

    @classmethod
    def from_settings(cls, settings: KartSettings) -> S3BlobStore:
        session = boto3.Session(region_name=settings.s3_region)
        client = session.client(
            "s3",
            region_name=settings.s3_region,
            endpoint_url=settings.s3_endpoint_url,
            config=BotoConfig(
                connect_timeout=settings.s3_request_timeout_s,
                read_timeout=settings.s3_request_timeout_s,
                retries={"max_attempts": settings.s3_max_attempts, "mode": "standard"},
            ),
        )
        return cls(client)

    def put(
        self,
        bucket: str,
        key: str,
        data: bytes,
        *,
        metadata: Mapping[str, str] | None = None,
    ) -> None:
        try:
            self._s3.put_object(
                Bucket=bucket, Key=key, Body=data, Metadata=dict(metadata or {})
            )
        except (ClientError, BotoCoreError) as exc:
            raise StorageError(f"Failed uploading s3://{bucket}/{key}: {exc}") from exc

    def get(self, bucket: str, key: str) -> bytes:
        try:
            resp = self._s3.get_object(Bucket=bucket, Key=key)
            return resp["Body"].read()
        except ClientError as exc:
            if _is_not_found(exc):
                raise BlobNotFoundError(bucket, key) from exc
            raise StorageError(f"Failed downloading s3://{bucket}/{key}: {exc}") from exc
        except BotoCoreError as exc:
            raise StorageError(f"Failed downloading s3://{bucket}/{key}: {exc}") from exc

    def head(self, bucket: str, key: str) -> BlobInfo:
        try:
            resp = self._s3.head_object(Bucket=bucket, Key=key)
        except ClientError as exc:
            if _is_not_found(exc):
                raise BlobNotFoundError(bucket, key) from exc
            raise StorageError(f"Failed reading s3://{bucket}/{key}: {exc}") from exc
        except BotoCoreError as exc:
            raise StorageError(f"Failed reading s3://{bucket}/{key}: {exc}") from exc
        return BlobInfo(
            bucket=bucket,
            key=key,
            size=resp.get("ContentLength", 0),
            metadata=resp.get("Metadata", {}),
            last_modified=resp.get("LastModified"),
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
        try:
            self._s3.copy_object(
                Bucket=target_bucket,
                Key=dest_key,
                CopySource={"Bucket": bucket, "Key": source_key},
            )
        except ClientError as exc:
            if _is_not_found(exc):
                raise BlobNotFoundError(bucket, source_key) from exc
            raise StorageError(
                f"Failed copying s3://{bucket}/{source_key} to "
                f"s3://{target_bucket}/{dest_key}: {exc}"
            ) from exc
        except BotoCoreError as exc:
            raise StorageError(
                f"Failed copying s3://{bucket}/{source_key} to "
                f"s3://{target_bucket}/{dest_key}: {exc}"
            ) from exc
        logger.debug(
            "S3BlobStore: copied s3://%s/%s to s3://%s/%s",
            bucket, source_key, target_bucket, dest_key,
        )

    def delete(self, bucket: str, key: str) -> None:
        # S3 DeleteObject succeeds for missing keys
        try:
            self._s3.delete_object(Bucket=bucket, Key=key)
        except ClientError as exc:
            if _is_not_found(exc):
                return
            raise StorageError(f"Failed deleting s3://{bucket}/{key}: {exc}") from exc
        except BotoCoreError as exc:
            raise StorageError(f"Failed deleting s3://{bucket}/{key}: {exc}") from exc

    def list(self, bucket: str, prefix: str) -> list[str]:
        keys: list[str] = []
        try:
            paginator = self._s3.get_paginator("list_objects_v2")
            for page in paginator.paginate(Bucket=bucket, Prefix=prefix):
                keys.extend(obj["Key"] for obj in page.get("Contents", []))
        except (ClientError, BotoCoreError) as exc:
            raise StorageError(f"Failed listing s3://{bucket}/{prefix}: {exc}") from exc
        return sorted(keys)
