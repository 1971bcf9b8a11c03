# src/bistfin/infrastructure/external_apis/kap/client.py
# Copyright (c)
# SPDX-License-Identifier: MIT
"""KAP Transport Client — async disclosure listing and PDF download.

Endpoints:
    * query_disclosures: ``POST /tr/api/memberDisclosureQuery`` (JSON list).
    * fetch_pdf: ``GET /tr/api/BildirimPdf/{index}`` (raw PDF bytes).

Notes:
    * The portal answers bare clients with HTML error pages; a browser-like
      user agent and locale header are always sent.
    * A PDF request that does not return a PDF yields ``None``: many
      disclosures have no attachment and this is not an error.
"""

from __future__ import annotations

import time
from collections.abc import Mapping
from contextlib import suppress
from typing import Any, Final

import httpx

from bistfin.domain.exceptions.ingestion import MalformedResponseError, UpstreamHttpError
from bistfin.infrastructure.external_apis.kap.settings import KapSettings
from bistfin.infrastructure.observability.metrics import (
    get_upstream_errors_total,
    get_upstream_http_status_total,
    get_upstream_latency_seconds,
)

_PROVIDER: Final[str] = "kap"
_QUERY_PATH: Final[str] = "/tr/api/memberDisclosureQuery"
_PDF_PATH: Final[str] = "/tr/api/BildirimPdf/{index}"
_PDF_MAGIC: Final[bytes] = b"%PDF"


class KapClient:
    """Transport client for the KAP public disclosure portal."""

    def __init__(self, settings: KapSettings, *, http: httpx.AsyncClient | None = None) -> None:
        self._settings = settings
        self._base = str(settings.base_url).rstrip("/")
        self._timeout = float(settings.timeout_s)
        self._owns_client = http is None
        self._client = http or httpx.AsyncClient(timeout=self._timeout, follow_redirects=True)
        self._headers = {
            "User-Agent": settings.user_agent,
            "Accept-Language": settings.locale,
        }

        self._latency = get_upstream_latency_seconds()
        self._status_total = get_upstream_http_status_total()
        self._errors = get_upstream_errors_total()

    async def aclose(self) -> None:
        if self._owns_client and not self._client.is_closed:
            await self._client.aclose()

    def query_body(self, ticker: str) -> dict[str, Any]:
        """Return the JSON body of a disclosure listing query for ``ticker``."""
        return {
            "disclosureClass": self._settings.disclosure_class,
            "term": ticker,
            "subjectList": [],
            "fromSrc": "Y",
            "srcCategory": "4",
            "bdkMemberOidList": [],
            "inactiveMkkMemberOidList": [],
            "mkkMemberOidList": [],
            "discIndex": [],
            "fromDate": "",
            "toDate": "",
            "year": "",
            "prd": "",
            "index": "",
        }

    async def query_disclosures(self, ticker: str) -> list[Mapping[str, Any]]:
        """Return the raw disclosure listing for ``ticker``.

        Raises:
            UpstreamHttpError: On non-2xx status or transport failure.
            MalformedResponseError: If the body is not a JSON array.
        """
        url = f"{self._base}{_QUERY_PATH}"
        response = await self._request(
            "query",
            "POST",
            url,
            json=self.query_body(ticker),
            headers={**self._headers, "Accept": "application/json"},
        )
        if not response.is_success:
            self._errors.labels(_PROVIDER, "query", "UpstreamHttpError").inc()
            raise UpstreamHttpError(
                f"HTTP {response.status_code} on {url}",
                status_code=response.status_code,
                url=url,
            )
        try:
            payload = response.json()
        except ValueError as exc:
            self._errors.labels(_PROVIDER, "query", "MalformedResponseError").inc()
            raise MalformedResponseError(
                "KAP returned a non-JSON disclosure listing.", details={"url": url}
            ) from exc
        if not isinstance(payload, list):
            self._errors.labels(_PROVIDER, "query", "MalformedResponseError").inc()
            raise MalformedResponseError(
                "KAP disclosure listing is not an array.",
                details={"url": url, "type": type(payload).__name__},
            )
        return [row for row in payload if isinstance(row, Mapping)]

    async def fetch_pdf(self, disclosure_index: str) -> bytes | None:
        """Download the public PDF of a disclosure.

        Returns:
            The PDF bytes, or ``None`` when the portal has no PDF for it.

        Raises:
            UpstreamHttpError: On transport failure.
        """
        url = f"{self._base}{_PDF_PATH.format(index=disclosure_index)}"
        response = await self._request(
            "pdf",
            "GET",
            url,
            headers={**self._headers, "Accept": "application/pdf"},
        )
        if not response.is_success:
            return None
        body = response.content
        if not body.startswith(_PDF_MAGIC):
            return None
        return body

    async def _request(self, endpoint: str, method: str, url: str, **kwargs: Any) -> httpx.Response:
        start = time.perf_counter()
        outcome = "error"
        try:
            response = await self._client.request(method, url, timeout=self._timeout, **kwargs)
        except httpx.RequestError as exc:
            with suppress(Exception):
                self._errors.labels(_PROVIDER, endpoint, "UpstreamHttpError").inc()
            raise UpstreamHttpError(
                "KAP transport failure.",
                status_code=None,
                url=url,
                details={"error": str(exc)},
            ) from exc
        else:
            outcome = "success" if response.is_success else "error"
            with suppress(Exception):
                self._status_total.labels(_PROVIDER, endpoint, str(response.status_code)).inc()
            return response
        finally:
            with suppress(Exception):
                self._latency.labels(_PROVIDER, endpoint, outcome).observe(
                    time.perf_counter() - start
                )
