"""Object storage facade over S3-compatible backends.

This package wraps the boto3 S3 client behind a small bucket-scoped,
asyncio-friendly interface with metadata patching and rename support.
"""

from .bucket import ObjectStore
from .client import (
    BackendError,
    Blob,
    Metadata,
    NotFoundError,
    StorageError,
    ValidationError,
)
from .metadata import merge_metadata, overlay_metadata, serialize_metadata
from .s3_client import S3StorageClient
from .streams import DEFAULT_CHUNK_SIZE, BlobStream, blob_to_stream, stream_to_text

__all__ = [
    "BackendError",
    "Blob",
    "BlobStream",
    "DEFAULT_CHUNK_SIZE",
    "Metadata",
    "NotFoundError",
    "ObjectStore",
    "S3StorageClient",
    "StorageError",
    "ValidationError",
    "blob_to_stream",
    "merge_metadata",
    "overlay_metadata",
    "serialize_metadata",
    "stream_to_text",
]
