# src/bistfin/application/use_cases/ingestion/update_tickers_batch.py
# Copyright (c)
# SPDX-License-Identifier: MIT
"""Use case: update many tickers with bounded concurrency.

Tickers are independent: each one runs in its own asyncio task with its own
logging context, a failure in one is recorded and never aborts the others.
Windows of a single ticker stay sequential (see ``UpdateTickerSnapshot``).
"""

from __future__ import annotations

import asyncio
from collections.abc import Iterable
from dataclasses import dataclass, field

from bistfin.application.use_cases.ingestion.update_ticker_snapshot import (
    UpdateRequest,
    UpdateResult,
    UpdateTickerSnapshot,
)
from bistfin.domain.exceptions.base import BistfinError
from bistfin.infrastructure.logging.logger import get_json_logger

log = get_json_logger(__name__)


@dataclass
class BatchReport:
    """Aggregate of a batch run.

    Attributes:
        results: Per-ticker results, in input order, for tickers that completed.
        errors: Ticker → error message for tickers that raised.
    """

    results: list[UpdateResult] = field(default_factory=list)
    errors: dict[str, str] = field(default_factory=dict)

    @property
    def failed_tickers(self) -> list[str]:
        partial = [r.ticker for r in self.results if r.failed]
        return sorted(set(partial) | set(self.errors))

    @property
    def ok(self) -> bool:
        return not self.failed_tickers


class UpdateTickersBatch:
    """Run :class:`UpdateTickerSnapshot` over a list of tickers."""

    def __init__(self, updater: UpdateTickerSnapshot, *, max_concurrency: int = 8) -> None:
        if max_concurrency < 1:
            raise ValueError("max_concurrency must be at least 1")
        self._updater = updater
        self._max_concurrency = max_concurrency

    async def __call__(
        self,
        tickers: Iterable[str],
        *,
        financial_group: str = "XI_29",
        currency: str = "TRY",
    ) -> BatchReport:
        ordered = list(dict.fromkeys(t.strip().upper() for t in tickers if t.strip()))
        sem = asyncio.Semaphore(self._max_concurrency)
        report = BatchReport()

        async def _one(ticker: str) -> UpdateResult | None:
            async with sem:
                try:
                    return await self._updater(
                        UpdateRequest(ticker, financial_group=financial_group, currency=currency)
                    )
                except BistfinError as exc:
                    report.errors[ticker] = str(exc)
                    log.error(
                        "batch.ticker_failed",
                        extra={"extra": {"ticker": ticker, "code": exc.code, "details": exc.details}},
                    )
                except Exception as exc:  # noqa: BLE001
                    report.errors[ticker] = f"{type(exc).__name__}: {exc}"
                    log.exception("batch.ticker_crashed", extra={"extra": {"ticker": ticker}})
                return None

        log.info(
            "batch.start",
            extra={"extra": {"tickers": len(ordered), "concurrency": self._max_concurrency}},
        )
        outcomes = await asyncio.gather(*(_one(t) for t in ordered))
        report.results = [r for r in outcomes if r is not None]
        log.info(
            "batch.done",
            extra={
                "extra": {
                    "tickers": len(ordered),
                    "completed": len(report.results),
                    "failed": len(report.failed_tickers),
                }
            },
        )
        return report
