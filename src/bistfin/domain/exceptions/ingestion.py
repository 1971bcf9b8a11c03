# src/bistfin/domain/exceptions/ingestion.py
# Copyright (c)
# SPDX-License-Identifier: MIT
"""Upstream ingestion exceptions.

Purpose:
    Error types raised while talking to the financial-statement and disclosure
    providers. Both concrete types derive from :class:`UpstreamError` so that
    orchestrators can recover them uniformly at the chunk level.

Layer:
    domain/exceptions

Notes:
    Infrastructure clients translate ``httpx`` failures into these types; no
    transport exception is allowed to leak past a client.
"""

from __future__ import annotations

from typing import Any

from bistfin.domain.exceptions.base import BistfinError


class UpstreamError(BistfinError):
    """Base class for provider-side failures that are recoverable per chunk."""

    code = "UPSTREAM_ERROR"


class UpstreamHttpError(UpstreamError):
    """Raised on a non-success HTTP status or a transport failure.

    Attributes:
        status_code:
            HTTP status returned by the provider, or ``None`` when the request
            never produced a response (timeout, connection reset).
        url:
            Fully-qualified request URL, including the query string.
    """

    code = "UPSTREAM_HTTP_ERROR"

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None,
        url: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        merged = {"status": status_code, "url": url}
        merged.update(details or {})
        super().__init__(message, details=merged)
        self.status_code = status_code
        self.url = url


class MalformedResponseError(UpstreamError):
    """Raised when a response body is not JSON or lacks the expected envelope."""

    code = "MALFORMED_RESPONSE"
