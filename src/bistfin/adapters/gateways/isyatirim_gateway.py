# src/bistfin/adapters/gateways/isyatirim_gateway.py
# Copyright (c)
# SPDX-License-Identifier: MIT
"""İş Yatırım financial statements gateway.

Purpose:
    Implement :class:`FinancialStatementsGateway` on top of the İş Yatırım
    transport client, mapping heterogeneous response rows into
    :class:`RawRow` observations.

Layer:
    adapters/gateways

Notes:
    Positional cells ``value1..value4`` are normalised here: anything that is
    not a finite number becomes ``None`` so that "no filing" is never confused
    with a true zero balance.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

from bistfin.domain.entities.line_item import RawRow
from bistfin.domain.services.snapshot_merge import normalize_value
from bistfin.domain.value_objects.period import Period
from bistfin.infrastructure.external_apis.isyatirim.client import IsYatirimClient


def _text(raw: Any) -> str | None:
    if raw is None:
        return None
    text = str(raw).strip()
    return text or None


def map_row(row: Mapping[str, Any], width: int) -> RawRow:
    """Map one upstream row to a RawRow carrying ``width`` positional values."""
    return RawRow(
        code=_text(row.get("itemCode")),
        label_tr=_text(row.get("itemDescTr")),
        label_en=_text(row.get("itemDescEng")),
        values=tuple(normalize_value(row.get(f"value{i}")) for i in range(1, width + 1)),
    )


class IsYatirimStatementsGateway:
    """Gateway fetching statement windows from İş Yatırım."""

    def __init__(self, client: IsYatirimClient) -> None:
        self._client = client

    async def fetch_quad(
        self,
        ticker: str,
        financial_group: str,
        currency: str,
        periods: Sequence[Period],
    ) -> list[RawRow]:
        """Fetch and map one window of up to four periods."""
        rows = await self._client.fetch_statement_window(
            ticker, financial_group, currency, periods
        )
        return [map_row(row, len(periods)) for row in rows]
