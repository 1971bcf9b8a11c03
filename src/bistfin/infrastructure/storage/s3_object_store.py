# src/bistfin/infrastructure/storage/s3_object_store.py
# Copyright (c)
# SPDX-License-Identifier: MIT
"""S3-compatible object store.

Synopsis:
    Implements the :class:`ObjectStore` port on a bucket reachable through
    boto3 (AWS S3 or any S3-compatible provider via ``endpoint_url``).
    Every object path is placed under an optional key prefix.

Design:
    * boto3 is synchronous; calls run in a worker thread via ``asyncio.to_thread``.
    * ``botocore`` client errors are mapped to :class:`ArtifactIOError`, with a
      404/NoSuchKey on read mapped to :class:`ArtifactNotFound`.
    * Recursive delete lists the prefix and removes keys in batches of 1000.

Layer:
    infrastructure/storage
"""

from __future__ import annotations

import asyncio
from typing import Any, Final

import boto3
from botocore.client import Config
from botocore.exceptions import BotoCoreError, ClientError

from bistfin.domain.exceptions.storage import ArtifactIOError, ArtifactNotFound
from bistfin.domain.interfaces.object_store import ObjectDescriptor

_NOT_FOUND_CODES: Final[frozenset[str]] = frozenset({"404", "NoSuchKey", "NotFound"})
_DELETE_BATCH: Final[int] = 1000


def _error_code(exc: ClientError) -> str:
    return str(exc.response.get("Error", {}).get("Code", ""))


class S3ObjectStore:
    """Object store backed by an S3 bucket."""

    def __init__(
        self,
        bucket: str,
        *,
        prefix: str = "",
        client: Any | None = None,
        endpoint_url: str | None = None,
        region: str | None = None,
    ) -> None:
        """Initialize the store.

        Args:
            bucket: Bucket name.
            prefix: Key prefix under which all object paths are placed.
            client: Optional preconfigured boto3 S3 client.
            endpoint_url: Endpoint for S3-compatible providers.
            region: Region name.
        """
        self._bucket = bucket
        self._prefix = prefix.strip("/")
        self._s3 = client or boto3.client(
            "s3",
            region_name=region,
            endpoint_url=endpoint_url,
            config=Config(signature_version="s3v4"),
        )

    def _key(self, path: str) -> str:
        rel = path.replace("\\", "/").lstrip("/")
        return f"{self._prefix}/{rel}" if self._prefix else rel

    def _rel(self, key: str) -> str:
        if self._prefix and key.startswith(self._prefix + "/"):
            return key[len(self._prefix) + 1 :]
        return key

    async def exists(self, path: str) -> bool:
        try:
            await asyncio.to_thread(self._s3.head_object, Bucket=self._bucket, Key=self._key(path))
            return True
        except ClientError as exc:
            if _error_code(exc) in _NOT_FOUND_CODES:
                return False
            raise ArtifactIOError(
                "object head failed", details={"path": path, "error": str(exc)}
            ) from exc
        except BotoCoreError as exc:
            raise ArtifactIOError(
                "object head failed", details={"path": path, "error": str(exc)}
            ) from exc

    async def read_bytes(self, path: str) -> bytes:
        def _read() -> bytes:
            obj = self._s3.get_object(Bucket=self._bucket, Key=self._key(path))
            return obj["Body"].read()

        try:
            return await asyncio.to_thread(_read)
        except ClientError as exc:
            if _error_code(exc) in _NOT_FOUND_CODES:
                raise ArtifactNotFound("object not found", details={"path": path}) from exc
            raise ArtifactIOError(
                "object read failed", details={"path": path, "error": str(exc)}
            ) from exc
        except BotoCoreError as exc:
            raise ArtifactIOError(
                "object read failed", details={"path": path, "error": str(exc)}
            ) from exc

    async def read_text(self, path: str) -> str:
        data = await self.read_bytes(path)
        try:
            return data.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise ArtifactIOError("object is not UTF-8 text", details={"path": path}) from exc

    async def write_bytes(
        self,
        path: str,
        data: bytes,
        *,
        content_type: str,
        cache_control: str | None = None,
    ) -> None:
        kwargs: dict[str, Any] = {
            "Bucket": self._bucket,
            "Key": self._key(path),
            "Body": data,
            "ContentType": content_type,
        }
        if cache_control:
            kwargs["CacheControl"] = cache_control
        try:
            await asyncio.to_thread(self._s3.put_object, **kwargs)
        except (ClientError, BotoCoreError) as exc:
            raise ArtifactIOError(
                "object write failed", details={"path": path, "error": str(exc)}
            ) from exc

    async def list_by_prefix(self, prefix: str) -> list[ObjectDescriptor]:
        try:
            return await asyncio.to_thread(self._list_sync, prefix)
        except (ClientError, BotoCoreError) as exc:
            raise ArtifactIOError(
                "object listing failed", details={"prefix": prefix, "error": str(exc)}
            ) from exc

    async def delete(self, path: str, *, recursive: bool = False) -> None:
        def _delete() -> None:
            if not recursive:
                self._s3.delete_object(Bucket=self._bucket, Key=self._key(path))
                return
            folder = path.rstrip("/") + "/"
            keys = [self._key(d.path) for d in self._list_sync(folder)]
            keys.append(self._key(path))
            for i in range(0, len(keys), _DELETE_BATCH):
                batch = keys[i : i + _DELETE_BATCH]
                self._s3.delete_objects(
                    Bucket=self._bucket,
                    Delete={"Objects": [{"Key": k} for k in batch], "Quiet": True},
                )

        try:
            await asyncio.to_thread(_delete)
        except (ClientError, BotoCoreError) as exc:
            raise ArtifactIOError(
                "object delete failed", details={"path": path, "error": str(exc)}
            ) from exc

    def _list_sync(self, prefix: str) -> list[ObjectDescriptor]:
        paginator = self._s3.get_paginator("list_objects_v2")
        out: list[ObjectDescriptor] = []
        for page in paginator.paginate(Bucket=self._bucket, Prefix=self._key(prefix)):
            for content in page.get("Contents", []):
                etag = str(content.get("ETag", "")).strip('"')
                out.append(
                    ObjectDescriptor(
                        path=self._rel(content["Key"]),
                        size=int(content.get("Size", 0)),
                        # Multipart ETags ("<md5>-<parts>") are not content digests.
                        md5=etag if etag and "-" not in etag else None,
                    )
                )
        out.sort(key=lambda d: d.path)
        return out
