# src/bistfin/application/use_cases/ingestion/update_ticker_snapshot.py
# Copyright (c)
# SPDX-License-Identifier: MIT
"""Use case: bring one ticker's snapshot up to the current reporting period.

State machine:
    * ``NO_SNAPSHOT``  → bootstrap: fetch every period from the earliest
      supported one through the current period.
    * ``UP_TO_DATE``   → the last covered period is the current one; no
      network calls.
    * ``NEEDS_UPDATE`` → re-fetch the last ``backfill`` covered periods (to
      pick up revisions) and every newer period through the current one.
    * ``FAILED``       → terminal flag set when at least one chunk failed;
      successful chunks are still merged and persisted.

Scope:
    * Windows are fetched strictly sequentially with a cooldown between
      calls; the merge order of a ticker's windows is therefore deterministic.
    * ``meta.period_keys`` becomes the sorted union of the previous coverage
      and every requested period, including periods of a failed window and
      all-null ones. The snapshot is persisted once any window succeeded.
    * Re-running with no new upstream data leaves the document unchanged
      apart from ``fetchedAt``.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from functools import partial
from typing import Any

from bistfin.adapters.repositories.snapshot_repository import SnapshotRepository
from bistfin.domain.entities.line_item import LineItem
from bistfin.domain.entities.snapshot import Snapshot, SnapshotMeta
from bistfin.domain.entities.universe import normalize_ticker
from bistfin.domain.exceptions.ingestion import UpstreamError
from bistfin.domain.interfaces.gateways.financial_statements_gateway import (
    FinancialStatementsGateway,
)
from bistfin.domain.services.snapshot_merge import merge_period_keys
from bistfin.domain.value_objects.period import (
    MAX_PERIODS_PER_REQUEST,
    Period,
    chunk,
    current_period,
    periods_between_inclusive,
    previous_n_periods,
)
from bistfin.infrastructure.logging.logger import get_json_logger, set_run_context
from bistfin.infrastructure.observability.metrics import (
    get_chunk_failures_total,
    get_snapshot_updates_total,
)
from bistfin.infrastructure.resilience.retry import NO_RETRY, RetryPolicy, retry_async

log = get_json_logger(__name__)

#: Number of most recent known periods re-fetched on every incremental update.
BACKFILL = 4


class SnapshotState(str, Enum):
    """Classification of a ticker's snapshot at the start of an update."""

    NO_SNAPSHOT = "no_snapshot"
    UP_TO_DATE = "up_to_date"
    NEEDS_UPDATE = "needs_update"
    FAILED = "failed"


@dataclass(frozen=True)
class UpdateRequest:
    """Parameters for a single-ticker update."""

    ticker: str
    financial_group: str = "XI_29"
    currency: str = "TRY"


@dataclass(frozen=True)
class FetchPlan:
    """Periods an update will request, derived from the stored snapshot."""

    state: SnapshotState
    periods: tuple[Period, ...] = ()


@dataclass(frozen=True)
class ChunkFailure:
    """A window whose fetch failed after retries."""

    periods: tuple[str, ...]
    code: str
    message: str
    details: dict[str, Any] = field(default_factory=dict)


@dataclass
class UpdateResult:
    """Outcome of one ticker update.

    Attributes:
        ticker: Uppercase ticker.
        state: Entry classification (``NO_SNAPSHOT``, ``UP_TO_DATE`` or
            ``NEEDS_UPDATE``); :attr:`final_state` folds in failures.
        periods_requested: PeriodKeys the plan asked for.
        periods_fetched: PeriodKeys whose windows were answered.
        failures: One entry per failed window.
        persisted: Whether a snapshot was written.
    """

    ticker: str
    state: SnapshotState
    periods_requested: list[str] = field(default_factory=list)
    periods_fetched: list[str] = field(default_factory=list)
    failures: list[ChunkFailure] = field(default_factory=list)
    persisted: bool = False

    @property
    def failed(self) -> bool:
        return bool(self.failures)

    @property
    def final_state(self) -> SnapshotState:
        return SnapshotState.FAILED if self.failed else self.state

    @property
    def outcome(self) -> str:
        if self.failed:
            return "failed"
        return {
            SnapshotState.NO_SNAPSHOT: "bootstrapped",
            SnapshotState.NEEDS_UPDATE: "updated",
        }.get(self.state, "up_to_date")


class UpdateTickerSnapshot:
    """Incrementally update (or bootstrap) one ticker's snapshot."""

    def __init__(
        self,
        gateway: FinancialStatementsGateway,
        repository: SnapshotRepository,
        *,
        earliest: Period,
        backfill: int = BACKFILL,
        chunk_size: int = MAX_PERIODS_PER_REQUEST,
        cooldown_s: float = 0.4,
        retry_policy: RetryPolicy = NO_RETRY,
        clock: Callable[[], datetime] = lambda: datetime.now(UTC),
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        """Initialize the use case.

        Args:
            gateway: Financial statements gateway (one request per window).
            repository: Snapshot repository.
            earliest: Earliest supported period; bootstrap starts here.
            backfill: Known periods re-fetched on every incremental update.
            chunk_size: Periods per request, at most four.
            cooldown_s: Pause between successive window calls. Upstream
                throttles aggressive clients; keep this at 0.35s or more in
                production.
            retry_policy: Retries for a failed window before it is skipped.
            clock: Source of "now" for the current-period upper bound.
            sleep: Awaitable sleep, injectable for tests.
        """
        if backfill < 1:
            raise ValueError("backfill must be at least 1")
        if not 1 <= chunk_size <= MAX_PERIODS_PER_REQUEST:
            raise ValueError(f"chunk_size must be within 1..{MAX_PERIODS_PER_REQUEST}")
        self._gateway = gateway
        self._repo = repository
        self._earliest = earliest
        self._backfill = backfill
        self._chunk_size = chunk_size
        self._cooldown_s = cooldown_s
        self._retry = retry_policy
        self._clock = clock
        self._sleep = sleep

    def plan(self, snapshot: Snapshot | None, end: Period) -> FetchPlan:
        """Classify ``snapshot`` and compute the periods to request."""
        if snapshot is None or not snapshot.meta.period_keys:
            return FetchPlan(
                SnapshotState.NO_SNAPSHOT,
                tuple(periods_between_inclusive(self._earliest, end)),
            )

        last = Period.parse(snapshot.meta.period_keys[-1])
        if last == end:
            return FetchPlan(SnapshotState.UP_TO_DATE)

        back = previous_n_periods(last, self._backfill - 1)
        start = max(self._earliest, back[0] if back else last)
        wanted = periods_between_inclusive(start, end)
        # A stored period past ``end`` (clock skew) leaves nothing to request.
        if not wanted:
            return FetchPlan(SnapshotState.UP_TO_DATE)
        return FetchPlan(SnapshotState.NEEDS_UPDATE, tuple(wanted))

    async def __call__(self, req: UpdateRequest) -> UpdateResult:
        """Execute the update for ``req.ticker``.

        Returns:
            The update result; ``result.failed`` is set when any window failed.

        Raises:
            ArtifactIOError: If the snapshot cannot be read or written.
        """
        ticker = normalize_ticker(req.ticker)
        set_run_context(ticker=ticker)

        snapshot = await self._repo.load(ticker)
        end = current_period(self._clock())
        plan = self.plan(snapshot, end)
        result = UpdateResult(
            ticker=ticker,
            state=plan.state,
            periods_requested=[p.key for p in plan.periods],
        )

        if plan.state is SnapshotState.UP_TO_DATE:
            log.info(
                "snapshot.up_to_date",
                extra={"extra": {"ticker": ticker, "last": end.key}},
            )
            get_snapshot_updates_total().labels(result.outcome).inc()
            return result

        if snapshot is not None and plan.state is SnapshotState.NEEDS_UPDATE:
            items = snapshot.items
            previous_keys = list(snapshot.meta.period_keys)
            if snapshot.meta.financial_group and snapshot.meta.financial_group != req.financial_group:
                log.warning(
                    "snapshot.financial_group_changed",
                    extra={
                        "extra": {
                            "ticker": ticker,
                            "stored": snapshot.meta.financial_group,
                            "requested": req.financial_group,
                        }
                    },
                )
        else:
            items = {}
            previous_keys = []

        windows = chunk(plan.periods, self._chunk_size)
        log.info(
            "snapshot.update.start",
            extra={
                "extra": {
                    "ticker": ticker,
                    "state": plan.state.value,
                    "from": plan.periods[0].key,
                    "to": plan.periods[-1].key,
                    "calls": len(windows),
                }
            },
        )

        attempted: list[Period] = []
        fetched: list[Period] = []
        try:
            await self._fetch_windows(req, ticker, windows, items, attempted, fetched, result)
        finally:
            if fetched:
                merged = Snapshot(
                    meta=SnapshotMeta(
                        ticker=(snapshot.meta.ticker if snapshot else "") or ticker,
                        financial_group=req.financial_group,
                        currency=req.currency,
                        fetched_at=self._clock(),
                        period_keys=merge_period_keys(previous_keys, attempted),
                    ),
                    items=items,
                )
                await self._repo.save(ticker, merged)
                result.persisted = True
                result.periods_fetched = [p.key for p in fetched]

        get_snapshot_updates_total().labels(result.outcome).inc()
        log.info(
            "snapshot.update.done",
            extra={
                "extra": {
                    "ticker": ticker,
                    "outcome": result.outcome,
                    "fetched": len(result.periods_fetched),
                    "failed_calls": len(result.failures),
                    "persisted": result.persisted,
                }
            },
        )
        return result

    async def _fetch_windows(
        self,
        req: UpdateRequest,
        ticker: str,
        windows: Sequence[list[Period]],
        items: dict[str, LineItem],
        attempted: list[Period],
        fetched: list[Period],
        result: UpdateResult,
    ) -> None:
        for idx, window in enumerate(windows):
            if idx:
                await self._sleep(self._cooldown_s)
            keys = tuple(p.key for p in window)
            attempted.extend(window)
            try:
                rows = await retry_async(
                    lambda w=window: self._gateway.fetch_quad(
                        ticker, req.financial_group, req.currency, w
                    ),
                    policy=self._retry,
                    sleep=self._sleep,
                    on_retry=partial(_log_retry, ticker, keys),
                )
            except UpstreamError as exc:
                result.failures.append(
                    ChunkFailure(periods=keys, code=exc.code, message=str(exc), details=exc.details)
                )
                get_chunk_failures_total().labels(exc.code).inc()
                log.warning(
                    "snapshot.update.chunk_failed",
                    extra={
                        "extra": {
                            "ticker": ticker,
                            "call": idx + 1,
                            "of": len(windows),
                            "periods": list(keys),
                            "details": exc.details,
                        }
                    },
                )
                continue

            self._repo.merge_rows(items, rows, window)
            fetched.extend(window)
            log.debug(
                "snapshot.update.chunk_ok",
                extra={
                    "extra": {
                        "ticker": ticker,
                        "call": idx + 1,
                        "of": len(windows),
                        "periods": list(keys),
                        "rows": len(rows),
                    }
                },
            )


def _log_retry(ticker: str, keys: tuple[str, ...], attempt: int, exc: Exception, delay: float) -> None:
    log.info(
        "snapshot.update.chunk_retry",
        extra={
            "extra": {
                "ticker": ticker,
                "periods": list(keys),
                "attempt": attempt,
                "delay_s": round(delay, 3),
                "error": str(exc),
            }
        },
    )
