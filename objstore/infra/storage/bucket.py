"""Bucket-scoped object storage facade.

``ObjectStore`` turns ergonomic calls into boto3 S3 requests for a single
bucket. Every operation is a coroutine; the blocking boto3 call runs on a
worker thread so concurrent callers only share the (thread-safe) client.

Nothing here is transactional. ``put_head`` reads then copies, and
``rename`` copies then deletes; a failure between the steps leaves whatever
the completed steps produced, and concurrent writers to one key race with
last-write-wins on metadata.
"""

from __future__ import annotations

import logging
from typing import Any, Generic, Mapping, Sequence, cast

from objstore.infra.storage.client import (
    Blob,
    MetadataT,
    ValidationError,
    send_request,
)
from objstore.infra.storage.metadata import MergeMetadata, merge_metadata
from objstore.infra.storage.streams import (
    DEFAULT_CHUNK_SIZE,
    normalize_payload,
    stream_to_text,
)

logger = logging.getLogger("storage")

# System headers that a REPLACE copy would otherwise reset.
PRESERVED_HEADERS: tuple[str, ...] = (
    "ContentType",
    "ContentEncoding",
    "ContentDisposition",
    "ContentLanguage",
    "CacheControl",
    "Expires",
)


def _require_key(key: str) -> str:
    if not isinstance(key, str) or not key:
        raise ValidationError("object key must be a non-empty string")
    return key


class ObjectStore(Generic[MetadataT]):
    """Object operations scoped to one bucket.

    Args:
        bucket_name: Bucket every request targets.
        client: boto3 ``s3`` client (or anything with the same methods).
        merge_metadata: Optional ``(current, patch) -> metadata`` policy used
            by ``put_head``. When unset the patch is overlaid on the current
            metadata.
        chunk_size: Chunk size for blob uploads and text draining.
    """

    def __init__(
        self,
        bucket_name: str,
        *,
        client: Any,
        merge_metadata: MergeMetadata[MetadataT] | None = None,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
    ) -> None:
        if not bucket_name:
            raise ValidationError("bucket_name must be a non-empty string")
        self.bucket_name = bucket_name
        self._client = client
        self._merge_metadata = merge_metadata
        self._chunk_size = chunk_size

    @property
    def client(self) -> Any:
        return self._client

    async def _send(self, operation: str, target: str, **params: Any) -> Any:
        return await send_request(
            self._client, operation, f"{self.bucket_name}/{target}", **params
        )

    # -- Objects

    async def get_raw(self, key: str, **overrides: Any) -> dict[str, Any]:
        params = {"Bucket": self.bucket_name, "Key": _require_key(key), **overrides}
        return await self._send("get_object", key, **params)

    async def get(self, key: str) -> Any | None:
        response = await self.get_raw(key)
        return response.get("Body")

    async def get_text(self, key: str) -> str:
        body = await self.get(key)
        if body is None:
            return ""
        return await stream_to_text(body, chunk_size=self._chunk_size)

    async def put_raw(self, key: str, **overrides: Any) -> dict[str, Any]:
        params = {"Bucket": self.bucket_name, "Key": _require_key(key), **overrides}
        return await self._send("put_object", key, **params)

    async def put(self, key: str, data: Any) -> None:
        _require_key(key)
        params: dict[str, Any] = {
            "Body": normalize_payload(data, chunk_size=self._chunk_size)
        }
        if isinstance(data, Blob):
            params["ContentLength"] = int(data.size)
        await self.put_raw(key, **params)

    async def delete_raw(self, key: str) -> dict[str, Any]:
        return await self._send(
            "delete_object", key, Bucket=self.bucket_name, Key=_require_key(key)
        )

    async def delete(self, key: str) -> None:
        await self.delete_raw(key)

    async def delete_many(self, keys: Sequence[str]) -> dict[str, Any]:
        """Delete ``keys`` with a single bulk request.

        The backend reports success per key; the response is returned so the
        caller can inspect ``Errors``. Keys are not deduplicated.
        """
        if isinstance(keys, str) or not keys:
            raise ValidationError("keys must be a non-empty sequence of object keys")
        objects = [{"Key": _require_key(key)} for key in keys]
        response = await self._send(
            "delete_objects",
            f"<{len(objects)} keys>",
            Bucket=self.bucket_name,
            Delete={"Objects": objects, "Quiet": False},
        )
        for error in response.get("Errors") or []:
            logger.warning(
                "delete_many_key_failed bucket=%s key=%s code=%s message=%s",
                self.bucket_name,
                error.get("Key"),
                error.get("Code"),
                error.get("Message"),
            )
        return response

    async def copy_raw(self, old_key: str, new_key: str, **overrides: Any) -> dict[str, Any]:
        params = {
            "Bucket": self.bucket_name,
            "CopySource": {"Bucket": self.bucket_name, "Key": _require_key(old_key)},
            "Key": _require_key(new_key),
            **overrides,
        }
        return await self._send("copy_object", f"{old_key} -> {new_key}", **params)

    async def rename(self, old_key: str, new_key: str) -> None:
        """Move an object by copying it and deleting the source.

        If the delete fails the object exists under both keys and the delete
        error is raised; nothing is rolled back.
        """
        _require_key(old_key)
        _require_key(new_key)
        if old_key == new_key:
            return
        await self.copy_raw(old_key, new_key)
        await self.delete(old_key)
        logger.info(
            "object_renamed bucket=%s old_key=%s new_key=%s",
            self.bucket_name,
            old_key,
            new_key,
        )

    # -- Head

    async def get_head_raw(self, key: str, **overrides: Any) -> dict[str, Any]:
        params = {"Bucket": self.bucket_name, "Key": _require_key(key), **overrides}
        return await self._send("head_object", key, **params)

    async def get_head(self, key: str) -> MetadataT:
        response = await self.get_head_raw(key)
        return cast(MetadataT, dict(response.get("Metadata") or {}))

    async def get_heads_raw(self, **overrides: Any) -> dict[str, Any]:
        # The backend caps MaxKeys at 1000 whatever is requested.
        params = {"Bucket": self.bucket_name, **overrides}
        return await self._send("list_objects", params.get("Prefix") or "*", **params)

    async def get_heads(
        self,
        prefix: str | None = None,
        marker: str | None = None,
        limit: int | None = None,
    ) -> list[dict[str, Any]]:
        """List one page of objects. ``IsTruncated`` is not followed."""
        options: dict[str, Any] = {}
        if prefix is not None:
            options["Prefix"] = prefix
        if marker is not None:
            options["Marker"] = marker
        if limit is not None:
            options["MaxKeys"] = int(limit)
        response = await self.get_heads_raw(**options)
        return list(response.get("Contents") or [])

    async def put_head(self, key: str, metadata: Mapping[str, Any]) -> MetadataT:
        """Patch an object's metadata through a server-side self-copy.

        Reads the current head, merges ``metadata`` into its user metadata and
        rewrites the full set with ``MetadataDirective=REPLACE``. REPLACE also
        resets system headers, so the ones present on the head (content type,
        cache control, ...) are sent back unchanged. The payload is not
        re-sent. Returns the metadata that was written.
        """
        head = await self.get_head_raw(key)
        current = dict(head.get("Metadata") or {})
        new_metadata = merge_metadata(current, metadata, self._merge_metadata)
        system_headers = {
            name: head[name] for name in PRESERVED_HEADERS if head.get(name) is not None
        }
        await self.copy_raw(
            key,
            key,
            MetadataDirective="REPLACE",
            Metadata=new_metadata,
            **system_headers,
        )
        return cast(MetadataT, new_metadata)
