# src/bistfin/infrastructure/observability/metrics.py
# Copyright (c)
# SPDX-License-Identifier: MIT
"""Ingestion metrics.

Purpose:
    Prometheus-style metrics for upstream calls and snapshot updates:
      * Upstream latency histogram.
      * Upstream HTTP status distribution.
      * Upstream error counters by reason.
      * Snapshot update outcomes and chunk failures.

Design:
    Getter functions return lazily-created singleton metric instances so that
    importing this module never registers collectors twice.
"""

from __future__ import annotations

from typing import Any

from prometheus_client import Counter, Histogram

_upstream_latency_seconds: Any | None = None
_upstream_http_status_total: Any | None = None
_upstream_errors_total: Any | None = None
_snapshot_updates_total: Any | None = None
_chunk_failures_total: Any | None = None


def get_upstream_latency_seconds() -> Any:
    """Return (and lazily create) the upstream latency histogram."""
    global _upstream_latency_seconds
    if _upstream_latency_seconds is None:
        _upstream_latency_seconds = Histogram(
            "bistfin_upstream_latency_seconds",
            "Latency of upstream provider calls in seconds.",
            ["provider", "endpoint", "outcome"],
        )
    return _upstream_latency_seconds


def get_upstream_http_status_total() -> Any:
    """Return (and lazily create) the upstream HTTP status counter."""
    global _upstream_http_status_total
    if _upstream_http_status_total is None:
        _upstream_http_status_total = Counter(
            "bistfin_upstream_http_status_total",
            "Upstream HTTP responses by status code.",
            ["provider", "endpoint", "status"],
        )
    return _upstream_http_status_total


def get_upstream_errors_total() -> Any:
    """Return (and lazily create) the upstream error counter."""
    global _upstream_errors_total
    if _upstream_errors_total is None:
        _upstream_errors_total = Counter(
            "bistfin_upstream_errors_total",
            "Upstream client errors by reason.",
            ["provider", "endpoint", "reason"],
        )
    return _upstream_errors_total


def get_snapshot_updates_total() -> Any:
    """Return (and lazily create) the snapshot update outcome counter."""
    global _snapshot_updates_total
    if _snapshot_updates_total is None:
        _snapshot_updates_total = Counter(
            "bistfin_snapshot_updates_total",
            "Snapshot update runs by outcome.",
            ["outcome"],
        )
    return _snapshot_updates_total


def get_chunk_failures_total() -> Any:
    """Return (and lazily create) the failed chunk counter."""
    global _chunk_failures_total
    if _chunk_failures_total is None:
        _chunk_failures_total = Counter(
            "bistfin_chunk_failures_total",
            "Chunk fetches that failed after retries.",
            ["reason"],
        )
    return _chunk_failures_total
