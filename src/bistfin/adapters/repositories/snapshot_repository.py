# src/bistfin/adapters/repositories/snapshot_repository.py
# Copyright (c)
# SPDX-License-Identifier: MIT
"""Snapshot repository.

Purpose:
    Persist per-ticker snapshots as JSON documents in an object store under
    ``{namespace}/{TICKER}/{filename}`` and expose the merge step used by the
    ingestion use case.

Layer:
    adapters/repositories

Notes:
    - ``load`` fails softly: a missing or undecodable document yields ``None``
      so that the caller bootstraps the ticker. Other storage failures are
      raised, because bootstrapping over a readable-but-unreachable snapshot
      would discard history.
    - ``save`` fully overwrites the stored document.
"""

from __future__ import annotations

import json
from collections.abc import MutableMapping, Sequence

from bistfin.domain.entities.line_item import IdentityKind, LineItem, RawRow
from bistfin.domain.entities.snapshot import Snapshot
from bistfin.domain.entities.universe import normalize_ticker
from bistfin.domain.exceptions.storage import ArtifactNotFound, SnapshotCorruptError
from bistfin.domain.interfaces.object_store import ObjectStore
from bistfin.domain.services.item_identity import DEFAULT_IDENTITY_ORDER
from bistfin.domain.services.snapshot_merge import merge_rows
from bistfin.domain.value_objects.period import Period
from bistfin.infrastructure.logging.logger import get_json_logger
from bistfin.infrastructure.storage.sync import JSON_CONTENT_TYPE

log = get_json_logger(__name__)


def encode_snapshot(snapshot: Snapshot) -> bytes:
    """Serialise a snapshot to its canonical on-disk bytes."""
    return json.dumps(snapshot.to_document(), ensure_ascii=False, indent=2).encode("utf-8")


def decode_snapshot(text: str) -> Snapshot:
    """Parse snapshot JSON text.

    Raises:
        SnapshotCorruptError: If the text is not a valid snapshot document.
    """
    try:
        doc = json.loads(text)
    except ValueError as exc:
        raise SnapshotCorruptError("snapshot is not valid JSON", details={"error": str(exc)}) from exc
    return Snapshot.from_document(doc)


class SnapshotRepository:
    """Load/save snapshots and merge fetched rows into their items."""

    def __init__(
        self,
        store: ObjectStore,
        *,
        namespace: str = "isyatirim",
        filename: str = "mali-tablo.json",
        identity_order: Sequence[IdentityKind] = DEFAULT_IDENTITY_ORDER,
    ) -> None:
        self._store = store
        self._namespace = namespace.strip("/")
        self._filename = filename
        self._identity_order = tuple(identity_order)

    def ticker_prefix(self, ticker: str) -> str:
        """Object-store folder holding every artifact of ``ticker``.

        Raises:
            InvalidTickerError: If ``ticker`` is not a valid symbol.
        """
        return f"{self._namespace}/{normalize_ticker(ticker)}"

    def path_for(self, ticker: str) -> str:
        return f"{self.ticker_prefix(ticker)}/{self._filename}"

    async def load(self, ticker: str) -> Snapshot | None:
        """Return the stored snapshot, or ``None`` if missing or corrupt.

        Raises:
            ArtifactIOError: On storage failures other than a missing object.
        """
        path = self.path_for(ticker)
        try:
            text = await self._store.read_text(path)
        except ArtifactNotFound:
            return None
        try:
            return decode_snapshot(text)
        except SnapshotCorruptError as exc:
            log.warning(
                "snapshot.corrupt",
                extra={"extra": {"ticker": ticker, "path": path, "details": exc.details}},
            )
            return None

    async def save(self, ticker: str, snapshot: Snapshot) -> None:
        """Persist ``snapshot``, replacing the previous version.

        Raises:
            ArtifactIOError: If the write fails.
        """
        await self._store.write_bytes(
            self.path_for(ticker),
            encode_snapshot(snapshot),
            content_type=JSON_CONTENT_TYPE,
        )

    async def delete(self, ticker: str) -> None:
        """Remove every artifact stored for ``ticker``."""
        await self._store.delete(self.ticker_prefix(ticker), recursive=True)

    def merge_rows(
        self,
        existing_items: MutableMapping[str, LineItem],
        new_rows: Sequence[RawRow],
        quad_periods: Sequence[Period],
    ) -> MutableMapping[str, LineItem]:
        """Fold one window's rows into ``existing_items`` (see ``merge_rows``)."""
        return merge_rows(
            existing_items,
            new_rows,
            quad_periods,
            identity_order=self._identity_order,
        )
