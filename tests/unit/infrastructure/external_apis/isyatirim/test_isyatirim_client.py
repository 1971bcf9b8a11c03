from __future__ import annotations

import httpx
import pytest
import respx

from bistfin.domain.exceptions.ingestion import MalformedResponseError, UpstreamHttpError
from bistfin.domain.value_objects.period import Period
from bistfin.infrastructure.external_apis.isyatirim.client import IsYatirimClient
from bistfin.infrastructure.external_apis.isyatirim.settings import IsYatirimSettings

SETTINGS = IsYatirimSettings()
HOST = "www.isyatirim.com.tr"
PATH = SETTINGS.statements_path
QUAD = [Period(2023, 3), Period(2023, 6), Period(2023, 9), Period(2023, 12)]


def _route() -> respx.Route:
    return respx.route(method="GET", host=HOST, path=PATH)


def test_build_params_encodes_indexed_year_period_pairs() -> None:
    params = IsYatirimClient.build_params("SASA", "XI_29", "TRY", QUAD[:2])
    assert params == [
        ("companyCode", "SASA"),
        ("exchange", "TRY"),
        ("financialGroup", "XI_29"),
        ("year1", "2023"),
        ("period1", "3"),
        ("year2", "2023"),
        ("period2", "6"),
    ]
    with pytest.raises(ValueError):
        IsYatirimClient.build_params("SASA", "XI_29", "TRY", [])
    with pytest.raises(ValueError):
        IsYatirimClient.build_params("SASA", "XI_29", "TRY", [*QUAD, Period(2024, 3)])


@pytest.mark.asyncio
@respx.mock
async def test_fetch_statement_window_happy_path_and_headers() -> None:
    rows = [{"itemCode": "1A", "itemDescTr": "Dönen", "itemDescEng": "Current", "value1": "10"}]
    route = _route().mock(return_value=httpx.Response(200, json={"ok": True, "value": rows}))
    async with httpx.AsyncClient() as http:
        client = IsYatirimClient(SETTINGS, http=http)
        out = await client.fetch_statement_window("SASA", "XI_29", "TRY", QUAD)

    assert out == rows
    request = route.calls.last.request
    assert request.headers["User-Agent"] == "Mozilla/5.0"
    assert request.url.params["companyCode"] == "SASA"
    assert request.url.params["year4"] == "2023"
    assert request.url.params["period4"] == "12"


@pytest.mark.asyncio
@respx.mock
async def test_non_success_status_maps_to_upstream_http_error() -> None:
    _route().mock(return_value=httpx.Response(503, text="busy"))
    async with httpx.AsyncClient() as http:
        client = IsYatirimClient(SETTINGS, http=http)
        with pytest.raises(UpstreamHttpError) as info:
            await client.fetch_statement_window("SASA", "XI_29", "TRY", QUAD)
    assert info.value.status_code == 503
    assert "companyCode=SASA" in info.value.url
    assert str(info.value).startswith("HTTP 503 on ")


@pytest.mark.asyncio
@respx.mock
async def test_transport_error_maps_to_upstream_http_error_without_status() -> None:
    _route().mock(side_effect=httpx.ConnectTimeout("timed out"))
    async with httpx.AsyncClient() as http:
        client = IsYatirimClient(SETTINGS, http=http)
        with pytest.raises(UpstreamHttpError) as info:
            await client.fetch_statement_window("SASA", "XI_29", "TRY", QUAD)
    assert info.value.status_code is None


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(200, content=b"<html>oops</html>"),
        httpx.Response(200, json=["not", "an", "object"]),
        httpx.Response(200, json={"ok": True}),
        httpx.Response(200, json={"value": "nope"}),
    ],
)
async def test_malformed_bodies_raise(response: httpx.Response) -> None:
    with respx.mock:
        _route().mock(return_value=response)
        async with httpx.AsyncClient() as http:
            client = IsYatirimClient(SETTINGS, http=http)
            with pytest.raises(MalformedResponseError):
                await client.fetch_statement_window("SASA", "XI_29", "TRY", QUAD)


@pytest.mark.asyncio
@respx.mock
async def test_null_value_means_no_rows() -> None:
    _route().mock(return_value=httpx.Response(200, json={"ok": True, "value": None}))
    async with httpx.AsyncClient() as http:
        client = IsYatirimClient(SETTINGS, http=http)
        assert await client.fetch_statement_window("SASA", "XI_29", "TRY", QUAD) == []
