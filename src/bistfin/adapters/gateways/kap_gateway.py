# src/bistfin/adapters/gateways/kap_gateway.py
# Copyright (c)
# SPDX-License-Identifier: MIT
"""KAP disclosure portal gateway.

Purpose:
    Implement :class:`DisclosurePortalGateway` over :class:`KapClient`:
    deduplicate the listing by disclosure index and order it newest first.

Layer:
    adapters/gateways
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from bistfin.domain.entities.disclosure import DisclosureMetadata
from bistfin.infrastructure.external_apis.kap.client import KapClient

_TITLE_KEYS = ("kapTitle", "title", "subject")
_DATE_KEYS = ("publishDate", "time")


def _first_text(row: Mapping[str, Any], keys: tuple[str, ...]) -> str | None:
    for key in keys:
        value = row.get(key)
        if value is not None and str(value).strip():
            return str(value).strip()
    return None


def _index_sort_key(index: str) -> tuple[int, int | str]:
    # Numeric indexes sort numerically; anything else goes last, lexicographically.
    try:
        return (0, -int(index))
    except ValueError:
        return (1, index)


def map_disclosures(rows: list[Mapping[str, Any]]) -> list[DisclosureMetadata]:
    """Map raw listing rows to unique metadata entries, newest first."""
    unique: dict[str, DisclosureMetadata] = {}
    for row in rows:
        raw_index = row.get("disclosureIndex")
        if raw_index is None or not str(raw_index).strip():
            continue
        index = str(raw_index).strip()
        unique[index] = DisclosureMetadata(
            disclosure_index=index,
            title=_first_text(row, _TITLE_KEYS),
            publish_date=_first_text(row, _DATE_KEYS),
        )
    return [unique[k] for k in sorted(unique, key=_index_sort_key)]


class KapDisclosureGateway:
    """Gateway listing financial-report disclosures from KAP."""

    def __init__(self, client: KapClient) -> None:
        self._client = client

    async def list_disclosures(self, ticker: str) -> list[DisclosureMetadata]:
        rows = await self._client.query_disclosures(ticker)
        return map_disclosures(rows)

    async def fetch_pdf(self, disclosure_index: str) -> bytes | None:
        return await self._client.fetch_pdf(disclosure_index)
