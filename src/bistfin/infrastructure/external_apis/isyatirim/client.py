# src/bistfin/infrastructure/external_apis/isyatirim/client.py
# Copyright (c)
# SPDX-License-Identifier: MIT
"""İş Yatırım Transport Client — instrumented, async, single-shot.

This transport is framework-agnostic and provides:

* Async HTTP (httpx) with per-request timeout.
* Deterministic mapping to upstream domain errors.
* Prometheus-style latency, status and error metrics.

Endpoints:
    * fetch_statement_window: ``MaliTablo`` JSON for up to four periods.

Notes:
    * No retries and no pacing happen here; the ingestion use case owns both
      so that per-ticker call order stays strictly sequential.
    * Caller-facing exceptions are always upstream domain exceptions; httpx
      types never cross the boundary.
"""

from __future__ import annotations

import time
from collections.abc import Mapping, Sequence
from contextlib import suppress
from typing import Any, Final

import httpx

from bistfin.domain.exceptions.ingestion import MalformedResponseError, UpstreamHttpError
from bistfin.domain.value_objects.period import MAX_PERIODS_PER_REQUEST, Period
from bistfin.infrastructure.external_apis.isyatirim.settings import IsYatirimSettings
from bistfin.infrastructure.observability.metrics import (
    get_upstream_errors_total,
    get_upstream_http_status_total,
    get_upstream_latency_seconds,
)

_PROVIDER: Final[str] = "isyatirim"
_ENDPOINT: Final[str] = "mali_tablo"


class IsYatirimClient:
    """Transport client for the İş Yatırım financial-statement endpoint."""

    def __init__(
        self,
        settings: IsYatirimSettings,
        *,
        http: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the transport client.

        Args:
            settings:
                Provider settings loaded from environment or DI.
            http:
                Optional shared ``httpx.AsyncClient``. If omitted, a client is
                created and owned by this instance.
        """
        self._settings = settings
        self._url = f"{str(settings.base_url).rstrip('/')}{settings.statements_path}"
        self._timeout = float(settings.timeout_s)
        self._owns_client = http is None
        self._client = http or httpx.AsyncClient(timeout=self._timeout)
        self._headers = {"User-Agent": settings.user_agent, "Accept": "application/json"}

        self._latency = get_upstream_latency_seconds()
        self._status_total = get_upstream_http_status_total()
        self._errors = get_upstream_errors_total()

    async def aclose(self) -> None:
        """Close the underlying HTTP client if this instance owns it."""
        if self._owns_client and not self._client.is_closed:
            await self._client.aclose()

    @staticmethod
    def build_params(
        ticker: str,
        financial_group: str,
        currency: str,
        periods: Sequence[Period],
    ) -> list[tuple[str, str]]:
        """Encode the query string for one statement window.

        Each period becomes an indexed ``year{i}``/``period{i}`` pair, ``i``
        starting at 1, in request order.

        Raises:
            ValueError: If ``periods`` is empty or longer than four.
        """
        if not 1 <= len(periods) <= MAX_PERIODS_PER_REQUEST:
            raise ValueError(
                f"a window must hold 1..{MAX_PERIODS_PER_REQUEST} periods, got {len(periods)}"
            )
        params: list[tuple[str, str]] = [
            ("companyCode", ticker),
            ("exchange", currency),
            ("financialGroup", financial_group),
        ]
        for idx, period in enumerate(periods, start=1):
            params.append((f"year{idx}", str(period.year)))
            params.append((f"period{idx}", str(period.quarter)))
        return params

    async def fetch_statement_window(
        self,
        ticker: str,
        financial_group: str,
        currency: str,
        periods: Sequence[Period],
    ) -> list[Mapping[str, Any]]:
        """Fetch the raw ``value`` rows for one window of periods.

        Returns:
            The list held by the response envelope's ``value`` key.

        Raises:
            UpstreamHttpError: On non-2xx status or transport failure.
            MalformedResponseError: On non-JSON body or a missing ``value`` array.
        """
        params = self.build_params(ticker, financial_group, currency, periods)
        request_url = str(httpx.URL(self._url, params=params))

        start = time.perf_counter()
        error_reason: str | None = None
        try:
            response = await self._perform_request(params=params, request_url=request_url)
            return self._handle_response(response, request_url=request_url)
        except (UpstreamHttpError, MalformedResponseError) as exc:
            error_reason = type(exc).__name__
            raise
        finally:
            elapsed = time.perf_counter() - start
            outcome = "error" if error_reason else "success"
            with suppress(Exception):
                self._latency.labels(_PROVIDER, _ENDPOINT, outcome).observe(elapsed)
                if error_reason:
                    self._errors.labels(_PROVIDER, _ENDPOINT, error_reason).inc()

    async def _perform_request(
        self,
        *,
        params: list[tuple[str, str]],
        request_url: str,
    ) -> httpx.Response:
        """Execute a single HTTP GET and map transport errors."""
        try:
            return await self._client.get(
                self._url,
                params=params,
                headers=self._headers,
                timeout=self._timeout,
            )
        except httpx.RequestError as exc:
            raise UpstreamHttpError(
                "İş Yatırım transport failure.",
                status_code=None,
                url=request_url,
                details={"error": str(exc)},
            ) from exc

    def _handle_response(
        self,
        response: httpx.Response,
        *,
        request_url: str,
    ) -> list[Mapping[str, Any]]:
        """Map an HTTP response into the row list or a domain error."""
        with suppress(Exception):
            self._status_total.labels(_PROVIDER, _ENDPOINT, str(response.status_code)).inc()

        if not response.is_success:
            raise UpstreamHttpError(
                f"HTTP {response.status_code} on {request_url}",
                status_code=response.status_code,
                url=request_url,
            )

        try:
            payload = response.json()
        except ValueError as exc:
            raise MalformedResponseError(
                "İş Yatırım returned a non-JSON body.",
                details={"url": request_url},
            ) from exc

        if not isinstance(payload, Mapping):
            raise MalformedResponseError(
                "İş Yatırım response is not a JSON object.",
                details={"url": request_url, "type": type(payload).__name__},
            )
        rows = payload.get("value")
        if rows is None:
            # An envelope without data means the company has no filings for the window.
            if "value" in payload:
                return []
            raise MalformedResponseError(
                "İş Yatırım response lacks the 'value' array.",
                details={"url": request_url, "keys": sorted(payload)[:10]},
            )
        if not isinstance(rows, list):
            raise MalformedResponseError(
                "İş Yatırım 'value' is not an array.",
                details={"url": request_url},
            )
        return [row for row in rows if isinstance(row, Mapping)]
