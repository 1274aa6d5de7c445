"""End-to-end facade scenarios against the in-memory fake S3 client."""

import pytest

from objstore.infra.storage.bucket import ObjectStore
from objstore.infra.storage.client import BackendError, NotFoundError
from tests.infra.fake_s3 import client_error


@pytest.mark.asyncio
async def test_put_get_head_delete_flow(store):
    await store.put("a.txt", "hello")
    assert await store.get_text("a.txt") == "hello"

    await store.put_head("a.txt", {"owner": "bob"})
    assert await store.get_head("a.txt") == {"owner": "bob"}

    await store.delete_many(["a.txt"])
    with pytest.raises(NotFoundError):
        await store.get("a.txt")


@pytest.mark.asyncio
async def test_put_head_keeps_payload_and_unrelated_fields(store, fake_s3):
    await store.put_raw("b.txt", Body=b"data", Metadata={"owner": "alice", "kind": "doc"})

    await store.put_head("b.txt", {"owner": "bob", "ignored": None})

    assert await store.get_head("b.txt") == {"owner": "bob", "kind": "doc"}
    assert await store.get_text("b.txt") == "data"


@pytest.mark.asyncio
async def test_put_head_with_custom_merge_controls_full_set(fake_s3):
    def keep_only_patch(current, patch):
        return patch

    store = ObjectStore("docs", client=fake_s3, merge_metadata=keep_only_patch)
    await store.put_raw("c.txt", Body=b"x", Metadata={"owner": "alice", "kind": "doc"})

    await store.put_head("c.txt", {"owner": "bob"})

    assert await store.get_head("c.txt") == {"owner": "bob"}


@pytest.mark.asyncio
async def test_put_head_missing_key(store):
    with pytest.raises(NotFoundError):
        await store.put_head("missing.txt", {"owner": "bob"})


@pytest.mark.asyncio
async def test_rename_moves_payload_and_metadata(store, fake_s3):
    await store.put_raw("old.txt", Body=b"payload", Metadata={"owner": "bob"})

    await store.rename("old.txt", "new.txt")

    assert fake_s3.operations()[-2:] == ["copy_object", "delete_object"]
    assert await store.get_text("new.txt") == "payload"
    assert await store.get_head("new.txt") == {"owner": "bob"}
    with pytest.raises(NotFoundError):
        await store.get_head("old.txt")


@pytest.mark.asyncio
async def test_rename_failed_delete_leaves_duplicate(store, fake_s3):
    await store.put("old.txt", "payload")
    fake_s3.failures["delete_object"] = client_error("AccessDenied", "DeleteObject")

    with pytest.raises(BackendError):
        await store.rename("old.txt", "new.txt")

    assert await store.get_text("old.txt") == "payload"
    assert await store.get_text("new.txt") == "payload"


@pytest.mark.asyncio
async def test_rename_same_key_issues_no_calls(store, fake_s3):
    await store.rename("same.txt", "same.txt")

    assert fake_s3.calls == []


@pytest.mark.asyncio
async def test_get_heads_prefix_marker_and_limit(store):
    for key in ["logs/1", "logs/2", "logs/3", "other/1"]:
        await store.put(key, key)

    entries = await store.get_heads(prefix="logs/", marker="logs/1", limit=1)

    assert [entry["Key"] for entry in entries] == ["logs/2"]
    assert entries[0]["Size"] == len("logs/2")


@pytest.mark.asyncio
async def test_get_heads_without_match_is_empty(store):
    await store.put("a.txt", "hello")

    assert await store.get_heads(prefix="nothing/") == []


@pytest.mark.asyncio
async def test_missing_bucket_is_not_found(fake_s3):
    store = ObjectStore("absent", client=fake_s3)

    with pytest.raises(NotFoundError, match="NoSuchBucket"):
        await store.get_heads()


@pytest.mark.asyncio
async def test_put_head_keeps_content_headers(store):
    await store.put_raw(
        "a.json",
        Body=b"{}",
        ContentType="application/json",
        CacheControl="no-cache",
        Metadata={"owner": "alice"},
    )

    await store.put_head("a.json", {"owner": "bob"})

    head = await store.get_head_raw("a.json")
    assert head["ContentType"] == "application/json"
    assert head["CacheControl"] == "no-cache"
    assert head["Metadata"] == {"owner": "bob"}
    assert await store.get_text("a.json") == "{}"


@pytest.mark.asyncio
async def test_get_text_with_invalid_utf8(store):
    await store.put("bad.txt", b"\xff\xfehi")

    assert await store.get_text("bad.txt") == "\ufffd\ufffdhi"


@pytest.mark.asyncio
async def test_parametrized_store_merge_receives_current_metadata(fake_s3):
    seen = []

    def merge(current: dict[str, str], patch: dict[str, str]) -> dict[str, str]:
        seen.append(current)
        return {**current, **patch, "revision": str(int(current.get("revision", "0")) + 1)}

    store = ObjectStore[dict[str, str]]("docs", client=fake_s3, merge_metadata=merge)
    await store.put_raw("r.txt", Body=b"x", Metadata={"revision": "1"})

    written = await store.put_head("r.txt", {"owner": "bob"})

    assert seen == [{"revision": "1"}]
    assert written == {"revision": "2", "owner": "bob"}
    assert await store.get_head("r.txt") == written
