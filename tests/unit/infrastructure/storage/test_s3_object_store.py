from __future__ import annotations

import io
from typing import Any

import pytest
from botocore.exceptions import ClientError

from bistfin.domain.exceptions.storage import ArtifactIOError, ArtifactNotFound
from bistfin.infrastructure.storage.s3_object_store import S3ObjectStore


def _client_error(code: str, op: str) -> ClientError:
    return ClientError({"Error": {"Code": code, "Message": code}}, op)


class _Paginator:
    def __init__(self, pages: list[dict[str, Any]]) -> None:
        self.pages = pages
        self.kwargs: dict[str, Any] = {}

    def paginate(self, **kwargs: Any):
        self.kwargs = kwargs
        return iter(self.pages)


class _FakeS3:
    """Minimal stand-in for a boto3 S3 client."""

    def __init__(self) -> None:
        self.objects: dict[str, bytes] = {}
        self.puts: list[dict[str, Any]] = []
        self.deleted_batches: list[list[str]] = []
        self.paginator = _Paginator([])
        self.fail_put: ClientError | None = None

    def head_object(self, *, Bucket: str, Key: str) -> dict[str, Any]:
        if Key not in self.objects:
            raise _client_error("404", "HeadObject")
        return {}

    def get_object(self, *, Bucket: str, Key: str) -> dict[str, Any]:
        if Key not in self.objects:
            raise _client_error("NoSuchKey", "GetObject")
        return {"Body": io.BytesIO(self.objects[Key])}

    def put_object(self, **kwargs: Any) -> dict[str, Any]:
        if self.fail_put is not None:
            raise self.fail_put
        self.puts.append(kwargs)
        self.objects[kwargs["Key"]] = kwargs["Body"]
        return {}

    def delete_object(self, *, Bucket: str, Key: str) -> dict[str, Any]:
        self.objects.pop(Key, None)
        return {}

    def delete_objects(self, *, Bucket: str, Delete: dict[str, Any]) -> dict[str, Any]:
        keys = [o["Key"] for o in Delete["Objects"]]
        self.deleted_batches.append(keys)
        for key in keys:
            self.objects.pop(key, None)
        return {}

    def get_paginator(self, name: str) -> _Paginator:
        assert name == "list_objects_v2"
        return self.paginator


@pytest.mark.asyncio
async def test_write_puts_under_prefix_with_metadata() -> None:
    s3 = _FakeS3()
    store = S3ObjectStore("bucket", prefix="/public/", client=s3)

    await store.write_bytes(
        "isyatirim/A/mali-tablo.json",
        b"{}",
        content_type="application/json",
        cache_control="public, max-age=300",
    )

    assert s3.puts == [
        {
            "Bucket": "bucket",
            "Key": "public/isyatirim/A/mali-tablo.json",
            "Body": b"{}",
            "ContentType": "application/json",
            "CacheControl": "public, max-age=300",
        }
    ]
    assert await store.exists("isyatirim/A/mali-tablo.json")
    assert await store.read_text("isyatirim/A/mali-tablo.json") == "{}"


@pytest.mark.asyncio
async def test_missing_keys_map_to_not_found() -> None:
    store = S3ObjectStore("bucket", client=_FakeS3())
    assert not await store.exists("x.json")
    with pytest.raises(ArtifactNotFound):
        await store.read_bytes("x.json")


@pytest.mark.asyncio
async def test_client_errors_map_to_artifact_io_error() -> None:
    s3 = _FakeS3()
    s3.fail_put = _client_error("AccessDenied", "PutObject")
    store = S3ObjectStore("bucket", client=s3)
    with pytest.raises(ArtifactIOError) as ei:
        await store.write_bytes("x.json", b"{}", content_type="application/json")
    assert ei.value.details["path"] == "x.json"


@pytest.mark.asyncio
async def test_listing_strips_prefix_and_ignores_multipart_etags() -> None:
    s3 = _FakeS3()
    s3.paginator = _Paginator(
        [
            {"Contents": [{"Key": "public/kap/B/1-1.pdf", "Size": 4, "ETag": '"abc-2"'}]},
            {"Contents": [{"Key": "public/kap/A/summary.json", "Size": 2, "ETag": '"d41d"'}]},
            {},
        ]
    )
    store = S3ObjectStore("bucket", prefix="public", client=s3)

    listed = await store.list_by_prefix("kap/")

    assert s3.paginator.kwargs == {"Bucket": "bucket", "Prefix": "public/kap/"}
    assert [(d.path, d.size, d.md5) for d in listed] == [
        ("kap/A/summary.json", 2, "d41d"),
        ("kap/B/1-1.pdf", 4, None),
    ]


@pytest.mark.asyncio
async def test_recursive_delete_removes_folder_keys() -> None:
    s3 = _FakeS3()
    s3.paginator = _Paginator(
        [{"Contents": [{"Key": "isyatirim/A/mali-tablo.json", "Size": 2, "ETag": '"x"'}]}]
    )
    store = S3ObjectStore("bucket", client=s3)

    await store.delete("isyatirim/A", recursive=True)

    assert s3.deleted_batches == [["isyatirim/A/mali-tablo.json", "isyatirim/A"]]
