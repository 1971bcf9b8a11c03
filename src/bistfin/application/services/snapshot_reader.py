# src/bistfin/application/services/snapshot_reader.py
# Copyright (c)
# SPDX-License-Identifier: MIT
"""Read-side snapshot lookup with a bounded in-process cache.

Purpose:
    Resolve a ticker's snapshot in an object store that may hold documents
    written by older tooling, trying in order:

        1. ``{namespace}/{TICKER}/{filename}``
        2. ``{namespace}/{TICKER}.json``
        3. the first ``.json`` object under ``{namespace}/{TICKER}/``

Layer:
    application/services

Notes:
    - Found snapshots are cached per ticker in the injected :class:`TTLCache`;
      misses are not cached so a freshly ingested ticker shows up at once.
    - Undecodable candidates are logged and skipped.
"""

from __future__ import annotations

from bistfin.adapters.repositories.snapshot_repository import decode_snapshot
from bistfin.domain.entities.snapshot import Snapshot
from bistfin.domain.entities.universe import normalize_ticker
from bistfin.domain.exceptions.storage import ArtifactNotFound, SnapshotCorruptError
from bistfin.domain.interfaces.object_store import ObjectStore
from bistfin.infrastructure.caching.ttl_cache import TTLCache
from bistfin.infrastructure.logging.logger import get_json_logger

log = get_json_logger(__name__)


class SnapshotReader:
    """Cached multi-path snapshot lookup."""

    def __init__(
        self,
        store: ObjectStore,
        cache: TTLCache[Snapshot],
        *,
        namespace: str = "isyatirim",
        filename: str = "mali-tablo.json",
    ) -> None:
        self._store = store
        self._cache = cache
        self._namespace = namespace.strip("/")
        self._filename = filename

    async def candidate_paths(self, ticker: str) -> list[str]:
        """Return the lookup order for ``ticker``, listing the folder last."""
        folder = f"{self._namespace}/{ticker}"
        paths = [f"{folder}/{self._filename}", f"{folder}.json"]
        listed = await self._store.list_by_prefix(folder + "/")
        paths.extend(d.path for d in listed if d.path.endswith(".json") and d.path not in paths)
        return paths

    async def get(self, ticker: str) -> Snapshot | None:
        """Return the snapshot for ``ticker`` or ``None`` if none is readable.

        Raises:
            ArtifactIOError: On storage failures other than a missing object.
        """
        ticker = normalize_ticker(ticker)
        cached = self._cache.get(ticker)
        if cached is not None:
            return cached

        for path in await self.candidate_paths(ticker):
            try:
                text = await self._store.read_text(path)
            except ArtifactNotFound:
                continue
            try:
                snapshot = decode_snapshot(text)
            except SnapshotCorruptError as exc:
                log.warning(
                    "snapshot_reader.corrupt",
                    extra={"extra": {"path": path, "details": exc.details}},
                )
                continue
            self._cache.put(ticker, snapshot)
            log.debug("snapshot_reader.resolved", extra={"extra": {"ticker": ticker, "path": path}})
            return snapshot
        return None

    def invalidate(self, ticker: str) -> None:
        self._cache.invalidate(normalize_ticker(ticker))
