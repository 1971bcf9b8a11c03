# src/bistfin/domain/interfaces/gateways/disclosure_portal_gateway.py
# Copyright (c)
# SPDX-License-Identifier: MIT
"""Disclosure portal gateway protocol.

Implementations:
    :class:`bistfin.adapters.gateways.kap_gateway.KapDisclosureGateway`

Layer:
    domain/interfaces/gateways
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol

from bistfin.domain.entities.disclosure import DisclosureMetadata


class DisclosurePortalGateway(Protocol):
    """Listing and document download for a regulatory filings portal."""

    async def list_disclosures(self, ticker: str) -> Sequence[DisclosureMetadata]:
        """Return the ticker's financial-report disclosures, newest first, unique by index."""

    async def fetch_pdf(self, disclosure_index: str) -> bytes | None:
        """Return the public PDF for a disclosure, or ``None`` if it has none."""
