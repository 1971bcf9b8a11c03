# src/bistfin/domain/entities/disclosure.py
# Copyright (c)
# SPDX-License-Identifier: MIT
"""Public disclosure documents.

Purpose:
    Output contract of the disclosure crawler: per-filing metadata with the
    artifact paths of saved PDFs, grouped into a per-ticker summary document.

Layer:
    domain/entities
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any


class DocumentKind(str, Enum):
    """Coarse classification of a disclosure by its title."""

    FINANCIAL = "financial"
    OPERATING = "operating"


@dataclass(frozen=True, slots=True)
class DisclosureMetadata:
    """Listing entry for one disclosure as reported by the portal."""

    disclosure_index: str
    title: str | None = None
    publish_date: str | None = None


@dataclass(slots=True)
class DisclosureRecord:
    """A crawled disclosure with the object-store paths of its saved PDFs."""

    disclosure_index: str
    title: str | None = None
    publish_date: str | None = None
    pdfs: list[str] = field(default_factory=list)

    def to_document(self) -> dict[str, Any]:
        return {
            "disclosureIndex": self.disclosure_index,
            "kapTitle": self.title,
            "publishDate": self.publish_date,
            "pdfs": list(self.pdfs),
        }


@dataclass(slots=True)
class DisclosureSummary:
    """Per-ticker crawl result, newest disclosure first within each kind."""

    ticker: str
    generated_at: datetime
    financial: list[DisclosureRecord] = field(default_factory=list)
    operating: list[DisclosureRecord] = field(default_factory=list)

    def add(self, kind: DocumentKind, record: DisclosureRecord) -> None:
        if kind is DocumentKind.OPERATING:
            self.operating.append(record)
        else:
            self.financial.append(record)

    def to_document(self) -> dict[str, Any]:
        """Return the ``summary.json`` document form."""
        return {
            "ticker": self.ticker,
            "latest": {
                "financial": self.financial[0].to_document() if self.financial else None,
                "operating": self.operating[0].to_document() if self.operating else None,
            },
            "all": {
                "financial": [r.to_document() for r in self.financial],
                "operating": [r.to_document() for r in self.operating],
            },
            "generatedAt": self.generated_at.isoformat(),
        }
