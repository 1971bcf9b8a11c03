# src/bistfin/infrastructure/caching/ttl_cache.py
# Copyright (c)
# SPDX-License-Identifier: MIT
"""In-process TTL cache.

Synopsis:
    A bounded-lifetime mapping from key to ``(value, inserted_at)``. Instances
    are owned by one long-lived service object and injected where needed;
    there is no module-level cache.

Design:
    * Expiry is checked lazily on ``get``; ``purge_expired`` sweeps eagerly.
    * Monotonic clock, injectable for tests.
    * ``ttl_s <= 0`` disables caching (every ``put`` is a no-op).

Layer:
    infrastructure/caching
"""

from __future__ import annotations

import time
from collections.abc import Callable
from typing import Generic, TypeVar

V = TypeVar("V")


class TTLCache(Generic[V]):
    """Key/value cache whose entries expire ``ttl_s`` seconds after insertion."""

    def __init__(self, ttl_s: float, *, clock: Callable[[], float] = time.monotonic) -> None:
        self._ttl_s = float(ttl_s)
        self._clock = clock
        self._entries: dict[str, tuple[V, float]] = {}

    def get(self, key: str) -> V | None:
        """Return a live entry, evicting it first if it has expired."""
        hit = self._entries.get(key)
        if hit is None:
            return None
        value, inserted_at = hit
        if self._expired(inserted_at):
            del self._entries[key]
            return None
        return value

    def put(self, key: str, value: V) -> None:
        if self._ttl_s <= 0:
            return
        self._entries[key] = (value, self._clock())

    def invalidate(self, key: str) -> None:
        self._entries.pop(key, None)

    def purge_expired(self) -> int:
        """Drop every expired entry and return how many were removed."""
        stale = [k for k, (_, at) in self._entries.items() if self._expired(at)]
        for key in stale:
            del self._entries[key]
        return len(stale)

    def _expired(self, inserted_at: float) -> bool:
        return self._clock() - inserted_at > self._ttl_s

    def __len__(self) -> int:
        return len(self._entries)
