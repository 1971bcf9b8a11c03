# src/bistfin/domain/exceptions/universe.py
# Copyright (c)
# SPDX-License-Identifier: MIT
"""Ticker universe exceptions.

Every type here is fatal for a reconciliation run.

Layer:
    domain/exceptions
"""

from __future__ import annotations

from bistfin.domain.exceptions.base import BistfinError
from bistfin.domain.exceptions.storage import ArtifactIOError


class InvalidUniverseInputError(BistfinError):
    """Raised when the candidate universe file is missing or unreadable."""

    code = "INVALID_UNIVERSE_INPUT"


class UniverseWriteError(ArtifactIOError):
    """Raised when the tracked universe file cannot be rewritten."""

    code = "UNIVERSE_WRITE_FAILED"


class InvalidTickerError(InvalidUniverseInputError):
    """Raised when a symbol is not 1-12 uppercase letters or digits."""

    code = "INVALID_TICKER"
