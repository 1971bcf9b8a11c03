# src/bistfin/domain/interfaces/gateways/financial_statements_gateway.py
# Copyright (c)
# SPDX-License-Identifier: MIT
"""Financial statements gateway protocol.

Purpose:
    Contract the ingestion use cases rely on to fetch one window of at most
    four periods for a ticker.

Implementations:
    :class:`bistfin.adapters.gateways.isyatirim_gateway.IsYatirimStatementsGateway`

Layer:
    domain/interfaces/gateways
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol

from bistfin.domain.entities.line_item import RawRow
from bistfin.domain.value_objects.period import Period


class FinancialStatementsGateway(Protocol):
    """Windowed access to upstream financial-statement rows."""

    async def fetch_quad(
        self,
        ticker: str,
        financial_group: str,
        currency: str,
        periods: Sequence[Period],
    ) -> Sequence[RawRow]:
        """Fetch statement rows for up to four periods in one request.

        Implementations do not retry and do not pace calls; callers must
        insert a cooldown between successive calls for the same ticker.

        Args:
            ticker: Uppercase ticker symbol.
            financial_group: Consolidation basis (e.g. ``XI_29``).
            currency: Reporting currency (e.g. ``TRY``).
            periods: One to four periods, in request order.

        Returns:
            Rows whose ``values[i]`` belongs to ``periods[i]``.

        Raises:
            UpstreamHttpError: On a non-success status or transport failure.
            MalformedResponseError: On an unparseable response body.
        """
