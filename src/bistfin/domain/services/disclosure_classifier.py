# src/bistfin/domain/services/disclosure_classifier.py
# Copyright (c)
# SPDX-License-Identifier: MIT
"""Title-based classification of disclosure documents."""

from __future__ import annotations

from typing import Final

from bistfin.domain.entities.disclosure import DocumentKind

_OPERATING_MARKERS: Final[tuple[str, ...]] = (
    "faaliyet raporu",
    "yıllık faaliyet",
    "operating review",
    "annual report",
)


def _fold(text: str) -> str:
    # Dotted and dotless i compare equal; "İ".lower() would add a combining dot.
    return text.replace("İ", "i").lower().replace("ı", "i")


def looks_operating(title: str) -> bool:
    folded = _fold(title)
    return any(_fold(marker) in folded for marker in _OPERATING_MARKERS)


def classify_disclosure(title: str | None) -> DocumentKind:
    """Classify a disclosure title; anything not operating counts as financial."""
    if title and looks_operating(title):
        return DocumentKind.OPERATING
    return DocumentKind.FINANCIAL
