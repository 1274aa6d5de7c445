"""S3-compatible storage client implementation.

This module builds the boto3 client shared by every bucket facade and
exposes the bucket-level commands (create, delete, list) that sit above
``ObjectStore``. It works with AWS S3, MinIO, and other S3-compatible
object storage services.

Dependencies:
    - boto3
    - botocore
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from objstore.infra.storage.bucket import ObjectStore
from objstore.infra.storage.client import (
    StorageError,
    ValidationError,
    send_request,
)
from objstore.infra.storage.metadata import MergeMetadata

if TYPE_CHECKING:
    from objstore.common.config import Settings

logger = logging.getLogger("storage")


class S3StorageClient:
    """S3-compatible object storage client.

    Supports AWS S3, MinIO, and other S3-compatible services.
    Uses boto3 for all storage operations. A prebuilt boto3 client can be
    injected through ``client``; otherwise one is built from ``settings``.
    """

    def __init__(self, *, settings: "Settings", client: Any | None = None) -> None:
        """Initialize the S3 client with configuration from settings.

        Args:
            settings: Settings containing S3 connection configuration.
            client: Optional boto3 ``s3`` client to use instead of building one.

        Raises:
            StorageError: If boto3 is not installed.
        """
        self._settings = settings
        self._client = client if client is not None else self._build_client(settings)

    @staticmethod
    def _build_client(settings: "Settings") -> Any:
        """Create a boto3 S3 client from settings."""
        try:
            import boto3
            from botocore.config import Config
        except ImportError as exc:
            raise StorageError(
                "boto3 and botocore are required for S3 storage backend. "
                "Install with: pip install boto3"
            ) from exc

        addressing_style = (settings.S3_ADDRESSING_STYLE or "path").strip().lower()
        config = Config(s3={"addressing_style": addressing_style})

        return boto3.client(
            "s3",
            endpoint_url=settings.S3_ENDPOINT_URL,
            region_name=settings.S3_REGION,
            aws_access_key_id=settings.S3_ACCESS_KEY_ID,
            aws_secret_access_key=settings.S3_SECRET_ACCESS_KEY,
            use_ssl=bool(settings.S3_USE_SSL),
            config=config,
        )

    @property
    def raw(self) -> Any:
        return self._client

    def close(self) -> None:
        """Release the connection pool held by the boto3 client."""
        close = getattr(self._client, "close", None)
        if close is not None:
            close()

    def get_bucket(
        self, bucket_name: str, merge_metadata: MergeMetadata | None = None
    ) -> ObjectStore:
        """Return a facade for an existing bucket; no request is sent."""
        return ObjectStore(
            bucket_name,
            client=self._client,
            merge_metadata=merge_metadata,
            chunk_size=self._settings.S3_CHUNK_SIZE,
        )

    def default_bucket(self, merge_metadata: MergeMetadata | None = None) -> ObjectStore:
        """Return a facade for the bucket configured as ``S3_BUCKET``."""
        if not self._settings.S3_BUCKET:
            raise ValidationError("S3_BUCKET is not configured")
        return self.get_bucket(self._settings.S3_BUCKET, merge_metadata=merge_metadata)

    async def create_bucket(
        self,
        bucket_name: str,
        merge_metadata: MergeMetadata | None = None,
        **config: Any,
    ) -> ObjectStore:
        """Create a bucket and return its facade.

        Args:
            bucket_name: Name of the bucket to create.
            merge_metadata: Metadata merge policy for the returned facade.
            **config: Extra ``CreateBucket`` parameters, passed through.

        Raises:
            BackendError: If the backend rejects the request.
        """
        if not bucket_name:
            raise ValidationError("bucket_name must be a non-empty string")
        params = {**config, "Bucket": bucket_name}
        await send_request(self._client, "create_bucket", bucket_name, **params)
        logger.info("bucket_created bucket=%s", bucket_name)
        return self.get_bucket(bucket_name, merge_metadata=merge_metadata)

    async def delete_bucket(self, bucket_name: str) -> None:
        """Delete an (empty) bucket.

        Raises:
            NotFoundError: If the bucket does not exist.
            BackendError: If the backend rejects the request.
        """
        if not bucket_name:
            raise ValidationError("bucket_name must be a non-empty string")
        await send_request(self._client, "delete_bucket", bucket_name, Bucket=bucket_name)
        logger.info("bucket_deleted bucket=%s", bucket_name)

    async def list_buckets(self) -> dict[str, Any]:
        """Return the raw ``ListBuckets`` response."""
        return await send_request(self._client, "list_buckets", "*")
