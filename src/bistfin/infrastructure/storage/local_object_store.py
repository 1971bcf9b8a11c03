# src/bistfin/infrastructure/storage/local_object_store.py
# Copyright (c)
# SPDX-License-Identifier: MIT
"""Filesystem-backed object store.

Synopsis:
    Implements the :class:`ObjectStore` port over a local directory tree.
    Object paths map 1:1 to files below ``root``; writes are crash-safe
    (temp file in the same directory, then ``os.replace``).

Design:
    * Blocking filesystem calls run in a worker thread via ``asyncio.to_thread``.
    * ``content_type`` and ``cache_control`` are accepted for interface parity
      and ignored; a local tree carries no object metadata.
    * ``OSError`` is mapped to :class:`ArtifactIOError`.

Layer:
    infrastructure/storage
"""

from __future__ import annotations

import asyncio
import hashlib
import os
import shutil
import tempfile
from pathlib import Path

from bistfin.domain.exceptions.storage import ArtifactIOError, ArtifactNotFound
from bistfin.domain.interfaces.object_store import ObjectDescriptor

__all__ = ["LocalObjectStore", "atomic_write_bytes"]


def atomic_write_bytes(path: Path, data: bytes) -> None:
    """Write ``data`` to ``path`` through a temp file and an atomic replace."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix=path.stem + "_", suffix=".tmp", dir=str(path.parent))
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(data)
        os.replace(tmp_name, str(path))
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise


class LocalObjectStore:
    """Object store rooted at a local directory."""

    def __init__(self, root: Path) -> None:
        self._root = Path(root)

    @property
    def root(self) -> Path:
        return self._root

    def _resolve(self, path: str) -> Path:
        parts = [p for p in path.replace("\\", "/").split("/") if p and p != "."]
        if any(p == ".." for p in parts):
            raise ArtifactIOError("object path escapes the store root", details={"path": path})
        return self._root.joinpath(*parts)

    async def exists(self, path: str) -> bool:
        target = self._resolve(path)
        return await asyncio.to_thread(target.is_file)

    async def read_bytes(self, path: str) -> bytes:
        target = self._resolve(path)
        try:
            return await asyncio.to_thread(target.read_bytes)
        except FileNotFoundError as exc:
            raise ArtifactNotFound("object not found", details={"path": path}) from exc
        except OSError as exc:
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
        target = self._resolve(path)
        try:
            await asyncio.to_thread(atomic_write_bytes, target, data)
        except OSError as exc:
            raise ArtifactIOError(
                "object write failed", details={"path": path, "error": str(exc)}
            ) from exc

    async def list_by_prefix(self, prefix: str) -> list[ObjectDescriptor]:
        try:
            return await asyncio.to_thread(self._list_sync, prefix)
        except OSError as exc:
            raise ArtifactIOError(
                "object listing failed", details={"prefix": prefix, "error": str(exc)}
            ) from exc

    def _list_sync(self, prefix: str) -> list[ObjectDescriptor]:
        if not self._root.is_dir():
            return []
        out: list[ObjectDescriptor] = []
        for file in self._root.rglob("*"):
            if not file.is_file() or file.suffix == ".tmp":
                continue
            rel = file.relative_to(self._root).as_posix()
            if not rel.startswith(prefix):
                continue
            data = file.read_bytes()
            out.append(
                ObjectDescriptor(
                    path=rel,
                    size=len(data),
                    md5=hashlib.md5(data).hexdigest(),  # noqa: S324
                )
            )
        out.sort(key=lambda d: d.path)
        return out

    async def delete(self, path: str, *, recursive: bool = False) -> None:
        target = self._resolve(path)
        try:
            await asyncio.to_thread(self._delete_sync, target, recursive)
        except OSError as exc:
            raise ArtifactIOError(
                "object delete failed", details={"path": path, "error": str(exc)}
            ) from exc

    @staticmethod
    def _delete_sync(target: Path, recursive: bool) -> None:
        if target.is_dir():
            if not recursive:
                raise IsADirectoryError(str(target))
            shutil.rmtree(target)
        else:
            target.unlink(missing_ok=True)
