# src/bistfin/infrastructure/resilience/retry.py
# Copyright (c)
# SPDX-License-Identifier: MIT
"""Bounded retries for upstream window calls.

Synopsis:
    Orchestrator-level retry for a single upstream call. Clients never retry
    on their own; the ingestion use case wraps each window fetch in
    :func:`retry_async` with the configured :class:`RetryPolicy`.

Design:
    * Capped exponential backoff, optionally with full jitter.
    * Only transient upstream failures are retried by default: transport
      errors (no status), 408, 429, 5xx and malformed bodies. Other 4xx
      answers are final.
    * ``sleep`` and ``rng`` are injectable so tests never wait.

Layer:
    infrastructure/resilience
"""

from __future__ import annotations

import asyncio
import random
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Final, TypeVar

from bistfin.domain.exceptions.ingestion import MalformedResponseError, UpstreamHttpError

T = TypeVar("T")

_RETRYABLE_STATUSES: Final[frozenset[int]] = frozenset({408, 429})


@dataclass(frozen=True)
class RetryPolicy:
    """How often and how patiently to retry one call.

    Attributes:
        retries: Extra attempts after the first one; ``0`` disables retrying.
        base_s: Backoff before the first retry, doubled per attempt.
        cap_s: Upper bound for any single backoff.
        jitter: Draw each backoff uniformly from ``[0, backoff]``.
    """

    retries: int
    base_s: float = 0.5
    cap_s: float = 5.0
    jitter: bool = True

    def delay(self, attempt: int, rng: Callable[[], float] = random.random) -> float:
        """Backoff in seconds before retry number ``attempt`` (0-based)."""
        backoff = min(self.cap_s, self.base_s * (2**attempt))
        return backoff * rng() if self.jitter else backoff


NO_RETRY: Final[RetryPolicy] = RetryPolicy(retries=0)


def is_transient_upstream(exc: BaseException) -> bool:
    """Return True when ``exc`` is an upstream failure worth another attempt."""
    if isinstance(exc, MalformedResponseError):
        return True
    if isinstance(exc, UpstreamHttpError):
        status = exc.status_code
        return status is None or status >= 500 or status in _RETRYABLE_STATUSES
    return False


async def retry_async(
    fn: Callable[[], Awaitable[T]],
    *,
    policy: RetryPolicy,
    retry_on: Callable[[Exception], bool] = is_transient_upstream,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    on_retry: Callable[[int, Exception, float], None] | None = None,
) -> T:
    """Await ``fn`` until it succeeds or the policy gives up.

    Args:
        fn: Zero-arg coroutine factory; called once per attempt.
        policy: Retry budget and backoff.
        retry_on: Predicate selecting retryable exceptions.
        sleep: Awaitable sleep.
        on_retry: Called as ``on_retry(attempt, exc, delay)`` before each
            backoff, ``attempt`` counting retries from 1.

    Raises:
        Exception: The last error once the budget is spent, or the first
            error that ``retry_on`` rejects.
    """
    for attempt in range(policy.retries + 1):
        try:
            return await fn()
        except Exception as exc:  # noqa: BLE001
            if attempt == policy.retries or not retry_on(exc):
                raise
            delay = policy.delay(attempt)
            if on_retry is not None:
                on_retry(attempt + 1, exc, delay)
            await sleep(delay)
    raise AssertionError("unreachable")  # pragma: no cover
