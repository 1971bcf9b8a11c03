# src/bistfin/domain/value_objects/period.py
# Copyright (c)
# SPDX-License-Identifier: MIT
"""Fiscal period calculus.

Purpose:
    Model quarterly reporting periods as ``(year, quarter-end month)`` pairs and
    provide the window arithmetic used by the ingestion engine: the current
    period upper bound, inclusive ranges, lookback windows, and chunking.

Layer:
    domain/value_objects

Notes:
    - Pure functions only; no clock access. Callers pass ``now`` explicitly.
    - Quarter labels are cumulative quarter-end months: 3, 6, 9, 12.
    - ``Period.key`` is the only producer of the ``"YYYY/Q"`` string form.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime
from typing import Final, TypeVar

T = TypeVar("T")

QUARTER_LABELS: Final[tuple[int, ...]] = (3, 6, 9, 12)

#: Upstream API accepts at most four year/period pairs per request.
MAX_PERIODS_PER_REQUEST: Final[int] = 4


@dataclass(frozen=True, order=True, slots=True)
class Period:
    """A fiscal reporting marker, total-ordered by ``(year, quarter)``.

    Args:
        year: Calendar year of the reporting period.
        quarter: Cumulative quarter-end month label (3, 6, 9 or 12).

    Raises:
        ValueError: If ``quarter`` is not a valid label.
    """

    year: int
    quarter: int

    def __post_init__(self) -> None:
        if self.quarter not in QUARTER_LABELS:
            raise ValueError(f"quarter must be one of {QUARTER_LABELS}, got {self.quarter!r}")

    @property
    def key(self) -> str:
        """Canonical PeriodKey string, e.g. ``"2024/6"``."""
        return f"{self.year}/{self.quarter}"

    @classmethod
    def parse(cls, key: str) -> Period:
        """Parse a canonical PeriodKey back into a Period.

        Raises:
            ValueError: If ``key`` is not of the form ``"YYYY/Q"``.
        """
        year_s, sep, quarter_s = key.strip().partition("/")
        if not sep:
            raise ValueError(f"invalid period key {key!r}")
        try:
            return cls(int(year_s), int(quarter_s))
        except ValueError as exc:
            raise ValueError(f"invalid period key {key!r}") from exc

    def __str__(self) -> str:
        return self.key


def current_period(now: datetime) -> Period:
    """Return the period label of the quarter containing ``now``.

    This is the in-progress quarter, not the last completed one; it is used as
    the upper bound of every fetch window.
    """
    month = now.month
    quarter = next(label for label in QUARTER_LABELS if month <= label)
    return Period(now.year, quarter)


def periods_between_inclusive(start: Period, end: Period) -> list[Period]:
    """Enumerate every period from ``start`` to ``end`` inclusive, ascending.

    Returns an empty list when ``start > end``.
    """
    out: list[Period] = []
    for year in range(start.year, end.year + 1):
        for quarter in QUARTER_LABELS:
            period = Period(year, quarter)
            if period < start:
                continue
            if period > end:
                break
            out.append(period)
    return out


def previous_n_periods(origin: Period, n: int) -> list[Period]:
    """Return the ``n`` periods strictly before ``origin``, ascending.

    The last element is the period immediately preceding ``origin``.

    Raises:
        ValueError: If ``n`` is negative.
    """
    if n < 0:
        raise ValueError("n must be non-negative")
    year = origin.year
    idx = QUARTER_LABELS.index(origin.quarter)
    seq: list[Period] = []
    for _ in range(n):
        idx -= 1
        if idx < 0:
            idx = len(QUARTER_LABELS) - 1
            year -= 1
        seq.append(Period(year, QUARTER_LABELS[idx]))
    seq.reverse()
    return seq


def chunk(items: Sequence[T], size: int) -> list[list[T]]:
    """Split ``items`` into contiguous groups of at most ``size``.

    Raises:
        ValueError: If ``size`` is not positive.
    """
    if size < 1:
        raise ValueError("size must be positive")
    return [list(items[i : i + size]) for i in range(0, len(items), size)]


def sort_period_keys(keys: Sequence[str]) -> list[str]:
    """Deduplicate and sort PeriodKeys in period order (not lexical order)."""
    periods = {Period.parse(k) for k in keys}
    return [p.key for p in sorted(periods)]
