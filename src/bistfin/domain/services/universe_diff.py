# src/bistfin/domain/services/universe_diff.py
# Copyright (c)
# SPDX-License-Identifier: MIT
"""Ticker universe parsing, rendering and diffing.

The on-disk universe format is newline-delimited plain text; blank lines and
lines starting with ``#`` are ignored, and symbols are case-normalised.

Layer:
    domain/services
"""

from __future__ import annotations

from bistfin.domain.entities.universe import ReconciliationDiff, TickerUniverse, normalize_ticker
from bistfin.domain.exceptions.universe import InvalidTickerError


def parse_universe_text(text: str) -> TickerUniverse:
    """Parse the plain-text universe format.

    Raises:
        InvalidTickerError: On the first line holding an invalid symbol.
    """
    symbols: list[str] = []
    for lineno, line in enumerate(text.splitlines(), start=1):
        stripped = line.strip()
        if not stripped or stripped.startswith("#"):
            continue
        try:
            symbols.append(normalize_ticker(stripped))
        except InvalidTickerError as exc:
            raise InvalidTickerError(
                f"invalid ticker symbol {stripped!r} on line {lineno}",
                details={"line": lineno, "symbol": stripped},
            ) from exc
    return TickerUniverse.of(symbols)


def render_universe_text(universe: TickerUniverse) -> str:
    """Render a universe as sorted uppercase lines with a trailing newline."""
    if not universe.tickers:
        return ""
    return "\n".join(universe.tickers) + "\n"


def diff_universes(old: TickerUniverse, new: TickerUniverse) -> ReconciliationDiff:
    """Compute added/removed tickers between two universes."""
    old_set = set(old.tickers)
    new_set = set(new.tickers)
    return ReconciliationDiff(
        added=frozenset(new_set - old_set),
        removed=frozenset(old_set - new_set),
    )
