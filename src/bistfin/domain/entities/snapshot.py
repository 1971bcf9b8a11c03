# src/bistfin/domain/entities/snapshot.py
# Copyright (c)
# SPDX-License-Identifier: MIT
"""Per-ticker financial-statement snapshot.

Purpose:
    The persisted document for one ticker: metadata plus line items keyed by
    item identity. Provides the mapping to and from the JSON document shape.

Layer:
    domain/entities

Notes:
    - ``meta.period_keys`` reflects requested coverage, not populated coverage.
    - Documents written by the earlier tooling used ``meta.group`` and item
      fields ``tr``/``en``; :meth:`Snapshot.from_document` accepts both and
      :meth:`Snapshot.to_document` always emits the canonical names.
    - Item values are emitted in period order so that re-serialising an
      unchanged snapshot is byte-stable.
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from bistfin.domain.entities.line_item import LineItem
from bistfin.domain.exceptions.storage import SnapshotCorruptError
from bistfin.domain.value_objects.period import Period, sort_period_keys


@dataclass(slots=True)
class SnapshotMeta:
    """Snapshot metadata.

    Attributes:
        ticker: Uppercase ticker symbol.
        financial_group: Upstream consolidation basis (e.g. ``XI_29``).
        currency: Reporting currency (e.g. ``TRY``).
        fetched_at: Timestamp of the last successful write.
        period_keys: Ascending, deduplicated PeriodKeys covered so far.
    """

    ticker: str
    financial_group: str
    currency: str
    fetched_at: datetime
    period_keys: list[str] = field(default_factory=list)

    @property
    def last_period(self) -> Period | None:
        """Most recent covered period, or ``None`` for an empty snapshot."""
        if not self.period_keys:
            return None
        return Period.parse(self.period_keys[-1])

    @property
    def first_period(self) -> Period | None:
        """Earliest covered period, or ``None`` for an empty snapshot."""
        if not self.period_keys:
            return None
        return Period.parse(self.period_keys[0])


@dataclass(slots=True)
class Snapshot:
    """The full per-ticker document."""

    meta: SnapshotMeta
    items: dict[str, LineItem] = field(default_factory=dict)

    def to_document(self) -> dict[str, Any]:
        """Return the JSON-serialisable document form."""
        items: dict[str, Any] = {}
        for key, item in self.items.items():
            ordered = sort_period_keys(list(item.values))
            items[key] = {
                "code": item.code,
                "labelTr": item.label_tr,
                "labelEn": item.label_en,
                "values": {k: item.values[k] for k in ordered},
            }
        return {
            "meta": {
                "ticker": self.meta.ticker,
                "financialGroup": self.meta.financial_group,
                "currency": self.meta.currency,
                "fetchedAt": self.meta.fetched_at.isoformat(),
                "periodKeys": list(self.meta.period_keys),
            },
            "items": items,
        }

    @classmethod
    def from_document(cls, doc: Any) -> Snapshot:
        """Build a Snapshot from its JSON document form.

        Raises:
            SnapshotCorruptError: If the document does not have snapshot shape.
        """
        if not isinstance(doc, Mapping):
            raise SnapshotCorruptError("snapshot document is not an object")
        meta_raw = doc.get("meta")
        items_raw = doc.get("items") or {}
        if not isinstance(meta_raw, Mapping) or not isinstance(items_raw, Mapping):
            raise SnapshotCorruptError("snapshot document lacks meta/items objects")

        try:
            period_keys = sort_period_keys([str(k) for k in meta_raw.get("periodKeys") or []])
            fetched_raw = meta_raw.get("fetchedAt")
            fetched_at = (
                datetime.fromisoformat(str(fetched_raw).replace("Z", "+00:00"))
                if fetched_raw
                else datetime.fromtimestamp(0).astimezone()
            )
        except ValueError as exc:
            raise SnapshotCorruptError(
                "snapshot metadata is invalid", details={"error": str(exc)}
            ) from exc

        meta = SnapshotMeta(
            ticker=str(meta_raw.get("ticker") or "").upper(),
            financial_group=str(meta_raw.get("financialGroup") or meta_raw.get("group") or ""),
            currency=str(meta_raw.get("currency") or ""),
            fetched_at=fetched_at,
            period_keys=period_keys,
        )

        items: dict[str, LineItem] = {}
        for key, raw in items_raw.items():
            if not isinstance(raw, Mapping):
                raise SnapshotCorruptError("snapshot item is not an object", details={"item": key})
            values_raw = raw.get("values") or {}
            if not isinstance(values_raw, Mapping):
                raise SnapshotCorruptError("snapshot item values invalid", details={"item": key})
            try:
                values = {Period.parse(str(k)).key: _stored_value(v) for k, v in values_raw.items()}
            except ValueError as exc:
                raise SnapshotCorruptError(
                    "snapshot item has an invalid period key",
                    details={"item": key, "error": str(exc)},
                ) from exc
            items[str(key)] = LineItem(
                code=raw.get("code") or None,
                label_tr=raw.get("labelTr", raw.get("tr")) or None,
                label_en=raw.get("labelEn", raw.get("en")) or None,
                values=values,
            )
        return cls(meta=meta, items=items)


def _stored_value(value: Any) -> float | int | None:
    """Accept only finite numbers from a stored document; anything else is null."""
    if isinstance(value, bool) or not isinstance(value, int | float):
        return None
    if isinstance(value, float) and not math.isfinite(value):
        return None
    return value
