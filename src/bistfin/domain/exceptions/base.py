# src/bistfin/domain/exceptions/base.py
# Copyright (c)
# SPDX-License-Identifier: MIT
"""Base Domain Exceptions.

Summary:
    Canonical base class for every error raised by bistfin. Callers may rely on
    ``message`` being safe to print in an operator summary and on ``details``
    being a flat, JSON-serialisable mapping suitable for structured logs.

Layer:
    domain/exceptions
"""

from __future__ import annotations

from typing import Any


class BistfinError(Exception):
    """Base class for all domain/application exceptions.

    Attributes:
        code:
            Stable error code used for metrics labels and run summaries.
        message:
            Human-readable error message.
        details:
            Optional machine-readable diagnostic payload for logs.
    """

    code: str = "BISTFIN_ERROR"

    def __init__(self, message: str = "", *, details: dict[str, Any] | None = None) -> None:
        """Initialize an error instance.

        Args:
            message:
                Human-readable error message describing the failure.
            details:
                Optional structured diagnostic payload; must be safe to log.
        """
        super().__init__(message)
        self.message = message
        self.details: dict[str, Any] = details or {}

    def __str__(self) -> str:
        """Return the human-readable message for this error."""
        return self.message
