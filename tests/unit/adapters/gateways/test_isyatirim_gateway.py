from __future__ import annotations

import pytest

from bistfin.adapters.gateways.isyatirim_gateway import IsYatirimStatementsGateway, map_row
from bistfin.domain.value_objects.period import Period


def test_map_row_normalizes_positional_values_to_window_width() -> None:
    row = {
        "itemCode": " 1A ",
        "itemDescTr": "Dönen Varlıklar",
        "itemDescEng": "",
        "value1": "1500.0",
        "value2": None,
        "value3": "",
        "value4": "abc",
    }
    raw = map_row(row, 3)
    assert raw.code == "1A"
    assert raw.label_en is None
    assert raw.values == (1500, None, None)


class _FakeClient:
    def __init__(self, rows: list[dict]) -> None:
        self.rows = rows
        self.calls: list[tuple] = []

    async def fetch_statement_window(self, ticker, financial_group, currency, periods):
        self.calls.append((ticker, financial_group, currency, tuple(periods)))
        return self.rows


@pytest.mark.asyncio
async def test_fetch_quad_maps_rows() -> None:
    client = _FakeClient([{"itemCode": "1A", "value1": 1, "value2": 0}])
    gateway = IsYatirimStatementsGateway(client)  # type: ignore[arg-type]
    rows = await gateway.fetch_quad("SASA", "XI_29", "TRY", [Period(2024, 3), Period(2024, 6)])
    assert rows[0].values == (1, 0)
    assert client.calls[0][0] == "SASA"
