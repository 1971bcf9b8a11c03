# src/bistfin/domain/services/item_identity.py
# Copyright (c)
# SPDX-License-Identifier: MIT
"""Line-item identity resolution.

Purpose:
    Derive the stable key under which a row's values are stored. The primary
    identity is the first non-empty attribute in a configurable fallback order
    (code, Turkish label, English label by default).

    Resolution against an existing item mapping keeps identities stable when
    upstream later adds or drops an attribute for the same row: if the
    primary identity is unknown but exactly one existing, compatible item
    matches on a fallback attribute, that item's key is reused.

Layer:
    domain/services

Notes:
    Pure domain logic; no logging or I/O.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Final

from bistfin.domain.entities.line_item import IdentityKind, ItemIdentity, LineItem, RawRow

DEFAULT_IDENTITY_ORDER: Final[tuple[IdentityKind, ...]] = (
    IdentityKind.CODE,
    IdentityKind.LABEL_TR,
    IdentityKind.LABEL_EN,
)


def resolve_item_identity(
    row: RawRow,
    order: Sequence[IdentityKind] = DEFAULT_IDENTITY_ORDER,
) -> ItemIdentity | None:
    """Return the primary identity of ``row``, or ``None`` if it has none."""
    for kind in order:
        value = row.attribute(kind)
        if value:
            return ItemIdentity(kind=kind, value=value)
    return None


def resolve_item_key(
    items: Mapping[str, LineItem],
    row: RawRow,
    order: Sequence[IdentityKind] = DEFAULT_IDENTITY_ORDER,
) -> str | None:
    """Resolve ``row`` to a key in ``items``, or to the key a new item would get.

    Returns:
        The existing item key when the row is already known, the primary
        identity value for an unseen row, or ``None`` for a row with no
        identity at all.
    """
    identity = resolve_item_identity(row, order)
    if identity is None:
        return None
    if identity.value in items:
        return identity.value

    for kind in order:
        value = row.attribute(kind)
        if not value:
            continue
        matches = [
            key
            for key, item in items.items()
            if item.attribute(kind) == value and _compatible(item, row)
        ]
        if len(matches) == 1:
            return matches[0]
    return identity.value


def _compatible(item: LineItem, row: RawRow) -> bool:
    # Two different upstream codes never denote the same item.
    return not (item.code and row.code and item.code != row.code)
