from __future__ import annotations

import pytest

from objstore.infra.storage.bucket import ObjectStore
from tests.infra.fake_s3 import FakeS3Client


@pytest.fixture
def fake_s3() -> FakeS3Client:
    client = FakeS3Client()
    client.buckets.add("docs")
    return client


@pytest.fixture
def store(fake_s3: FakeS3Client) -> ObjectStore:
    return ObjectStore("docs", client=fake_s3)
