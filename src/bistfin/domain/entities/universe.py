# src/bistfin/domain/entities/universe.py
# Copyright (c)
# SPDX-License-Identifier: MIT
"""Ticker universe and reconciliation diff.

Tickers double as object-store folder names, so only uppercase ASCII letters
and digits are accepted; anything else (``.``, ``/``, whitespace) is rejected
before it can reach a path.

Layer:
    domain/entities
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from typing import Final

from bistfin.domain.exceptions.universe import InvalidTickerError

TICKER_PATTERN: Final[re.Pattern[str]] = re.compile(r"^[A-Z0-9]{1,12}$")


def normalize_ticker(raw: str) -> str:
    """Return the canonical (trimmed, uppercase) form of a ticker symbol.

    Raises:
        InvalidTickerError: If the result is not 1-12 letters or digits.
    """
    ticker = raw.strip().upper()
    if not TICKER_PATTERN.match(ticker):
        raise InvalidTickerError(f"invalid ticker symbol {raw!r}", details={"symbol": raw})
    return ticker


@dataclass(frozen=True, slots=True)
class TickerUniverse:
    """Ordered, deduplicated, uppercase set of tracked tickers.

    Use :meth:`of` to build one; it applies normalisation and ordering.
    """

    tickers: tuple[str, ...] = ()

    @classmethod
    def of(cls, tickers: Iterable[str]) -> TickerUniverse:
        """Build a universe from arbitrary symbols (normalised, sorted, unique).

        Blank symbols are dropped.

        Raises:
            InvalidTickerError: If a non-blank symbol is not a valid ticker.
        """
        return cls(tuple(sorted({normalize_ticker(t) for t in tickers if t.strip()})))

    def __contains__(self, ticker: object) -> bool:
        return isinstance(ticker, str) and ticker.strip().upper() in self.tickers

    def __iter__(self) -> Iterator[str]:
        return iter(self.tickers)

    def __len__(self) -> int:
        return len(self.tickers)


@dataclass(frozen=True, slots=True)
class ReconciliationDiff:
    """Transient result of comparing two universes.

    Attributes:
        added: Tickers present in the new universe only.
        removed: Tickers present in the old universe only.
    """

    added: frozenset[str]
    removed: frozenset[str]

    @property
    def is_empty(self) -> bool:
        return not self.added and not self.removed
