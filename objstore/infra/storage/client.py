"""Storage errors and shared types.

This module defines the error taxonomy raised by the object storage facade
and the small protocols it accepts as input, plus the single helper every
backend request goes through.
"""

from __future__ import annotations

import asyncio
import logging
from functools import partial
from typing import Any, Mapping, Protocol, TypeVar, runtime_checkable

Metadata = dict[str, str]
MetadataT = TypeVar("MetadataT", bound=Mapping[str, str])

NOT_FOUND_CODES = frozenset({"404", "NoSuchKey", "NoSuchBucket", "NotFound"})

logger = logging.getLogger("storage")


class StorageError(RuntimeError):
    """Raised when object storage operations fail."""


class NotFoundError(StorageError):
    """Raised when the target key or bucket does not exist."""


class BackendError(StorageError):
    """Raised for transport, auth, permission or service-side failures.

    The backend-supplied error code is kept in ``code`` and the original
    exception is chained as ``__cause__``.
    """

    def __init__(
        self, message: str, *, code: str | None = None, operation: str | None = None
    ) -> None:
        super().__init__(message)
        self.code = code
        self.operation = operation


class ValidationError(StorageError, ValueError):
    """Raised when the caller supplies an invalid key, batch or payload."""


@runtime_checkable
class Blob(Protocol):
    """In-memory binary blob with a known total size."""

    size: int

    def slice(self, start: int, end: int) -> bytes:
        ...


def error_code(exc: BaseException) -> str | None:
    """Return the backend error code carried by a botocore ``ClientError``."""
    response: Any = getattr(exc, "response", None)
    if not isinstance(response, Mapping):
        return None
    code = response.get("Error", {}).get("Code")
    return str(code) if code is not None else None


def translate_error(exc: Exception, operation: str, target: str) -> StorageError:
    """Map a botocore exception onto the storage error taxonomy."""
    code = error_code(exc)
    if code in NOT_FOUND_CODES:
        return NotFoundError(f"{operation} failed, {target} not found: {exc}")
    return BackendError(f"{operation} failed for {target}: {exc}", code=code, operation=operation)


async def send_request(client: Any, operation: str, target: str, **params: Any) -> Any:
    """Run one blocking boto3 call on a worker thread.

    Backend failures are re-raised through ``translate_error`` with the
    original exception chained.
    """
    method = getattr(client, operation)
    logger.debug("s3_request operation=%s target=%s", operation, target)
    try:
        return await asyncio.to_thread(partial(method, **params))
    except Exception as exc:
        raise translate_error(exc, operation, target) from exc
