"""Payload normalization and stream helpers.

Payloads handed to ``ObjectStore.put`` arrive in several shapes. They are
normalized into something the boto3 ``PutObject`` call accepts as ``Body``:
bytes, or a readable file-like object.
"""

from __future__ import annotations

import asyncio
import io
from typing import Any, Iterator

from objstore.infra.storage.client import Blob, ValidationError

DEFAULT_CHUNK_SIZE = 64 * 1024


class BlobStream(io.RawIOBase):
    """Lazy, single-pass reader over a ``Blob``.

    Only the offset cursor is kept; each chunk is sliced from the blob on
    demand. Iterating yields fixed-size chunks, ``read`` serves the same bytes
    to consumers that pull by size.
    """

    def __init__(self, blob: Blob, chunk_size: int = DEFAULT_CHUNK_SIZE) -> None:
        if chunk_size <= 0:
            raise ValidationError(f"chunk_size must be positive, got {chunk_size}")
        super().__init__()
        self._blob = blob
        self._chunk_size = chunk_size
        self._offset = 0

    @property
    def size(self) -> int:
        return int(self._blob.size)

    @property
    def offset(self) -> int:
        return self._offset

    def readable(self) -> bool:
        return True

    def _next_chunk(self, limit: int) -> bytes:
        if self._offset >= self.size:
            return b""
        end = min(self._offset + limit, self.size)
        chunk = bytes(self._blob.slice(self._offset, end))
        self._offset = end
        return chunk

    def read(self, size: int = -1) -> bytes:
        if size is None or size < 0:
            parts = []
            while chunk := self._next_chunk(self._chunk_size):
                parts.append(chunk)
            return b"".join(parts)
        return self._next_chunk(size)

    def readinto(self, buffer: Any) -> int:
        view = memoryview(buffer)
        chunk = self._next_chunk(len(view))
        view[: len(chunk)] = chunk
        return len(chunk)

    def __iter__(self) -> Iterator[bytes]:
        return self

    def __next__(self) -> bytes:
        chunk = self._next_chunk(self._chunk_size)
        if not chunk:
            raise StopIteration
        return chunk


def blob_to_stream(blob: Blob, chunk_size: int = DEFAULT_CHUNK_SIZE) -> BlobStream:
    return BlobStream(blob, chunk_size=chunk_size)


def normalize_payload(data: Any, chunk_size: int = DEFAULT_CHUNK_SIZE) -> Any:
    """Return a ``Body`` value for ``PutObject``.

    Raises:
        ValidationError: If the payload shape is not supported.
    """
    if isinstance(data, (bytes, bytearray)):
        return data
    if isinstance(data, str):
        return data.encode("utf-8")
    if isinstance(data, Blob):
        return blob_to_stream(data, chunk_size=chunk_size)
    if hasattr(data, "read"):
        return data
    try:
        return bytes(memoryview(data))
    except TypeError as exc:
        raise ValidationError(
            f"Unsupported payload type: {type(data).__name__}"
        ) from exc


async def stream_to_text(stream: Any, chunk_size: int = DEFAULT_CHUNK_SIZE) -> str:
    """Drain ``stream`` to completion and decode it as UTF-8.

    Sync file-like streams are read chunk by chunk on a worker thread; async
    iterables are consumed directly. Invalid UTF-8 sequences are replaced
    with U+FFFD instead of raising. The stream cannot be read again.
    """
    if stream is None:
        return ""
    parts: list[bytes] = []
    if hasattr(stream, "__aiter__"):
        async for chunk in stream:
            parts.append(bytes(chunk))
    else:
        while True:
            chunk = await asyncio.to_thread(stream.read, chunk_size)
            if not chunk:
                break
            parts.append(bytes(chunk))
    return b"".join(parts).decode("utf-8", errors="replace")
