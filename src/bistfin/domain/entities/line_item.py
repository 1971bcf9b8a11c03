# src/bistfin/domain/entities/line_item.py
# Copyright (c)
# SPDX-License-Identifier: MIT
"""Financial-statement line items.

Purpose:
    Represent one statement row as observed from the upstream provider
    (:class:`RawRow`) and as persisted in a snapshot (:class:`LineItem`),
    together with the tagged identity used to key items across fetches.

Layer:
    domain/entities
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class IdentityKind(str, Enum):
    """Source attribute an item identity was derived from."""

    CODE = "code"
    LABEL_TR = "label_tr"
    LABEL_EN = "label_en"


@dataclass(frozen=True, slots=True)
class ItemIdentity:
    """Canonical identity of a line item within one ticker's snapshot.

    Attributes:
        kind: Which row attribute supplied the identity.
        value: The identity string; also the key in ``Snapshot.items``.
    """

    kind: IdentityKind
    value: str


@dataclass(frozen=True, slots=True)
class RawRow:
    """One parsed row from a single upstream request.

    Attributes:
        code: Upstream-assigned item code, if any.
        label_tr: Turkish description, if any.
        label_en: English description, if any.
        values: Positional values, one per requested period in request order.
            Already normalised: every entry is a finite number or ``None``.
    """

    code: str | None
    label_tr: str | None
    label_en: str | None
    values: tuple[float | int | None, ...]

    def attribute(self, kind: IdentityKind) -> str | None:
        """Return the row attribute backing ``kind``."""
        if kind is IdentityKind.CODE:
            return self.code
        if kind is IdentityKind.LABEL_TR:
            return self.label_tr
        return self.label_en


@dataclass(slots=True)
class LineItem:
    """A persisted line item with its period-keyed values.

    The descriptive attributes are fixed at first observation; only
    ``values`` is mutated by subsequent merges.
    """

    code: str | None = None
    label_tr: str | None = None
    label_en: str | None = None
    values: dict[str, float | int | None] = field(default_factory=dict)

    def attribute(self, kind: IdentityKind) -> str | None:
        """Return the item attribute backing ``kind``."""
        if kind is IdentityKind.CODE:
            return self.code
        if kind is IdentityKind.LABEL_TR:
            return self.label_tr
        return self.label_en
