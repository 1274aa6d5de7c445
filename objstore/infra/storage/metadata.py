from __future__ import annotations

from typing import Any, Callable, Mapping

from objstore.infra.storage.client import Metadata, MetadataT

MergeMetadata = Callable[[MetadataT, Metadata], Mapping[str, Any]]


def _to_string(value: Any) -> str:
    # Booleans and integral floats are spelled the way other S3 clients
    # write them: "true"/"false" and "1" rather than "True" and "1.0".
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def serialize_metadata(metadata: Mapping[str, Any] | None) -> Metadata:
    """Convert a metadata mapping into backend-ready string values.

    ``None`` values are dropped rather than written. Booleans become
    ``"true"``/``"false"``, integral floats lose their ``.0`` and everything
    else goes through ``str()``.
    """
    if not metadata or not isinstance(metadata, Mapping):
        return {}
    return {
        str(key): _to_string(value)
        for key, value in metadata.items()
        if value is not None
    }


def overlay_metadata(current: Mapping[str, str], patch: Mapping[str, str]) -> Metadata:
    """Shallow field-level overlay: fields in ``patch`` win, the rest are kept."""
    merged = dict(current)
    merged.update(patch)
    return merged


def merge_metadata(
    current: Mapping[str, str],
    patch: Mapping[str, Any],
    merge: MergeMetadata | None = None,
) -> Metadata:
    """Compute the full metadata set written by a metadata patch.

    A configured ``merge`` callable owns the whole policy and its result is
    written as-is (values stringified). Without one the patch is overlaid on
    ``current``. There is no way to remove a field with the default policy.
    """
    serialized = serialize_metadata(patch)
    if merge is not None:
        return serialize_metadata(merge(dict(current), serialized))
    return overlay_metadata(current, serialized)
