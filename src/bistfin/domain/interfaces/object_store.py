# src/bistfin/domain/interfaces/object_store.py
# Copyright (c)
# SPDX-License-Identifier: MIT
"""Object store port.

Purpose:
    Opaque key/value blob store used for snapshots, universe-adjacent
    artifacts, and disclosure PDFs. Paths are ``/``-separated and relative to
    the store root, e.g. ``isyatirim/SASA/mali-tablo.json``.

Implementations:
    * :class:`bistfin.infrastructure.storage.local_object_store.LocalObjectStore`
    * :class:`bistfin.infrastructure.storage.s3_object_store.S3ObjectStore`

Layer:
    domain/interfaces
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Protocol


@dataclass(frozen=True, slots=True)
class ObjectDescriptor:
    """Listing entry for one stored object.

    Attributes:
        path: Store-relative object path.
        size: Size in bytes.
        md5: Hex MD5 digest of the content, when the store can provide it.
    """

    path: str
    size: int
    md5: str | None = None


class ObjectStore(Protocol):
    """Minimal blob store contract.

    All failures other than a missing object on read are raised as
    :class:`bistfin.domain.exceptions.storage.ArtifactIOError`.
    """

    async def exists(self, path: str) -> bool:
        """Return whether an object exists at ``path``."""

    async def read_text(self, path: str) -> str:
        """Return the UTF-8 content of ``path``.

        Raises:
            ArtifactNotFound: If no object exists at ``path``.
        """

    async def read_bytes(self, path: str) -> bytes:
        """Return the raw content of ``path``.

        Raises:
            ArtifactNotFound: If no object exists at ``path``.
        """

    async def write_bytes(
        self,
        path: str,
        data: bytes,
        *,
        content_type: str,
        cache_control: str | None = None,
    ) -> None:
        """Create or fully overwrite the object at ``path``."""

    async def list_by_prefix(self, prefix: str) -> Sequence[ObjectDescriptor]:
        """List objects whose path starts with ``prefix``, sorted by path."""

    async def delete(self, path: str, *, recursive: bool = False) -> None:
        """Delete ``path``; with ``recursive`` delete everything under it.

        Deleting a missing path is not an error.
        """
