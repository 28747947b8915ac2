"""S3-compatible object storage client for uploaded learning assets.

Wraps boto3 with the four operations the console needs: upload by path,
public URL, pre-signed URL, and delete by path.  Assets are organised into
one bucket per category (see ``Settings.storage_buckets``).

boto3 is synchronous, so every network call is pushed onto a worker thread
with :func:`asyncio.to_thread` to keep the event loop free.
"""

from __future__ import annotations

import asyncio
import logging
from typing import BinaryIO
from urllib.parse import quote

import boto3
from botocore.client import Config as BotoConfig
from botocore.exceptions import BotoCoreError, ClientError

from curriculum_admin.config import Settings, get_settings
from curriculum_admin.exceptions import StorageError

logger = logging.getLogger(__name__)


class ObjectStorage:
    """Thin client around boto3 S3 for put, URL, presign and delete.

    Args:
        settings: Application settings; defaults to :func:`get_settings`.
        client: Pre-built boto3 S3 client (tests inject a mock here).
    """

    def __init__(self, settings: Settings | None = None, client=None) -> None:
        s = settings or get_settings()
        self.buckets: dict[str, str] = dict(s.storage_buckets)
        self.public_base_url: str = s.storage_public_base_url.rstrip("/")
        self.signed_url_ttl: int = s.signed_url_ttl_seconds
        self._client = client or boto3.client(
            "s3",
            endpoint_url=s.storage_endpoint_url,
            aws_access_key_id=s.storage_access_key or None,
            aws_secret_access_key=s.storage_secret_key or None,
            config=BotoConfig(signature_version="s3v4"),
            region_name=s.storage_region,
        )

    def bucket(self, category: str) -> str:
        """Return the bucket name for an asset category such as ``content``."""
        try:
            return self.buckets[category]
        except KeyError:
            raise StorageError(f"Unknown storage category: {category}") from None

    async def upload(
        self,
        bucket: str,
        path: str,
        body: bytes | BinaryIO,
        content_type: str = "application/octet-stream",
    ) -> str:
        """Upload bytes or a readable stream to ``bucket/path`` without overwriting.

        Returns:
            The object path that was written.

        Raises:
            StorageError: If the object already exists or the upload fails.
        """
        try:
            await asyncio.to_thread(
                self._client.put_object,
                Bucket=bucket,
                Key=path,
                Body=body,
                ContentType=content_type,
                CacheControl="max-age=3600",
                IfNoneMatch="*",
            )
        except (BotoCoreError, ClientError) as exc:
            logger.error("Upload to %s/%s failed: %s", bucket, path, exc)
            raise StorageError(f"Failed to upload file: {exc}", bucket, path) from exc
        logger.info("Uploaded %s/%s", bucket, path)
        return path

    def public_url(self, bucket: str, path: str) -> str:
        """Return the publicly resolvable URL of an object."""
        return f"{self.public_base_url}/{bucket}/{quote(path)}"

    async def signed_url(self, bucket: str, path: str, expires: int | None = None) -> str:
        """Generate a time-limited pre-signed GET URL for an object."""
        try:
            return await asyncio.to_thread(
                self._client.generate_presigned_url,
                "get_object",
                Params={"Bucket": bucket, "Key": path},
                ExpiresIn=expires or self.signed_url_ttl,
            )
        except (BotoCoreError, ClientError) as exc:
            raise StorageError(f"Failed to sign URL: {exc}", bucket, path) from exc

    async def delete(self, bucket: str, path: str) -> None:
        """Delete ``bucket/path``.

        Raises:
            StorageError: If the store rejects the delete.
        """
        try:
            await asyncio.to_thread(self._client.delete_object, Bucket=bucket, Key=path)
        except (BotoCoreError, ClientError) as exc:
            logger.error("Delete of %s/%s failed: %s", bucket, path, exc)
            raise StorageError(f"Failed to delete file: {exc}", bucket, path) from exc
        logger.info("Deleted %s/%s", bucket, path)
