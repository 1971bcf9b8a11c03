# src/bistfin/domain/services/snapshot_merge.py
# Copyright (c)
# SPDX-License-Identifier: MIT
"""Snapshot merge semantics.

Purpose:
    Fold freshly fetched rows into an existing item mapping and maintain the
    snapshot's period coverage list.

Layer:
    domain/services

Notes:
    - Last write wins per ``(item, period key)``; this is how backfilled
      revisions replace previously published figures.
    - Period entries outside the merged window are never touched.
    - Descriptive attributes of an item are fixed at first observation.
"""

from __future__ import annotations

import math
from collections.abc import Iterable, MutableMapping, Sequence
from decimal import Decimal, InvalidOperation
from typing import Any

from bistfin.domain.entities.line_item import IdentityKind, LineItem, RawRow
from bistfin.domain.services.item_identity import DEFAULT_IDENTITY_ORDER, resolve_item_key
from bistfin.domain.value_objects.period import Period, sort_period_keys


def normalize_value(raw: Any) -> float | int | None:
    """Normalise one upstream cell to a finite number or ``None``.

    ``None``, empty or whitespace strings, non-numeric strings, booleans and
    non-finite numbers all become ``None``; a true zero stays ``0``. Integral
    values are returned as ``int`` so that repeated writes serialise
    identically.
    """
    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, int):
        return raw
    if isinstance(raw, float):
        number = raw
    elif isinstance(raw, Decimal | str):
        text = str(raw).strip()
        if not text:
            return None
        try:
            number = float(Decimal(text))
        except (InvalidOperation, ValueError):
            return None
    else:
        return None
    if not math.isfinite(number):
        return None
    return int(number) if number.is_integer() else number


def merge_rows(
    existing_items: MutableMapping[str, LineItem],
    new_rows: Iterable[RawRow],
    quad_periods: Sequence[Period],
    *,
    identity_order: Sequence[IdentityKind] = DEFAULT_IDENTITY_ORDER,
) -> MutableMapping[str, LineItem]:
    """Merge ``new_rows`` fetched for ``quad_periods`` into ``existing_items``.

    The mapping is updated in place and returned for convenience.

    Args:
        existing_items: Item mapping of the snapshot being built or updated.
        new_rows: Rows returned by one upstream request.
        quad_periods: The periods of that request, in request order; position
            ``i`` of each row's values belongs to ``quad_periods[i]``.
        identity_order: Identity fallback order.

    Returns:
        The updated mapping.
    """
    keys = [p.key for p in quad_periods]
    for row in new_rows:
        item_key = resolve_item_key(existing_items, row, identity_order)
        if item_key is None:
            continue
        item = existing_items.get(item_key)
        if item is None:
            item = LineItem(code=row.code, label_tr=row.label_tr, label_en=row.label_en)
            existing_items[item_key] = item
        for idx, period_key in enumerate(keys):
            value = row.values[idx] if idx < len(row.values) else None
            item.values[period_key] = normalize_value(value)
    return existing_items


def merge_period_keys(existing: Iterable[str], requested: Iterable[Period]) -> list[str]:
    """Return the sorted, deduplicated union of existing keys and new periods."""
    return sort_period_keys([*existing, *(p.key for p in requested)])
