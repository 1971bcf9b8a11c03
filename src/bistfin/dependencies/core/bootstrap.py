# src/bistfin/dependencies/core/bootstrap.py
# Copyright (c)
# SPDX-License-Identifier: MIT
"""Core bootstrap for the batch jobs (HTTP, object stores, use cases).

This module owns the lifecycle of shared infrastructure used by the CLI.
Configuration is read from Settings; all heavy lifting is delegated to the
infrastructure and application modules.

The single public surface is :func:`bootstrap`, an async context manager that
yields a :class:`Container` with every use case wired, and closes the shared
HTTP client on exit.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from dataclasses import dataclass

import httpx

from bistfin.adapters.gateways.isyatirim_gateway import IsYatirimStatementsGateway
from bistfin.adapters.gateways.kap_gateway import KapDisclosureGateway
from bistfin.adapters.repositories.snapshot_repository import SnapshotRepository
from bistfin.adapters.repositories.universe_repository import UniverseRepository
from bistfin.application.services.snapshot_reader import SnapshotReader
from bistfin.application.use_cases.disclosures.crawl_disclosures import CrawlDisclosures
from bistfin.application.use_cases.ingestion.update_ticker_snapshot import UpdateTickerSnapshot
from bistfin.application.use_cases.ingestion.update_tickers_batch import UpdateTickersBatch
from bistfin.application.use_cases.reconciliation.reconcile_universe import ReconcileUniverse
from bistfin.config.settings import Settings, get_settings
from bistfin.domain.entities.snapshot import Snapshot
from bistfin.domain.interfaces.object_store import ObjectStore
from bistfin.infrastructure.caching.ttl_cache import TTLCache
from bistfin.infrastructure.external_apis.isyatirim.client import IsYatirimClient
from bistfin.infrastructure.external_apis.isyatirim.settings import IsYatirimSettings
from bistfin.infrastructure.external_apis.kap.client import KapClient
from bistfin.infrastructure.external_apis.kap.settings import KapSettings
from bistfin.infrastructure.logging.logger import get_json_logger
from bistfin.infrastructure.resilience.retry import RetryPolicy
from bistfin.infrastructure.storage.local_object_store import LocalObjectStore
from bistfin.infrastructure.storage.s3_object_store import S3ObjectStore

logger = get_json_logger(__name__)


@dataclass
class Container:
    """Wired use cases and the stores they share."""

    settings: Settings
    local_store: ObjectStore
    remote_store: ObjectStore | None
    updater: UpdateTickerSnapshot
    batch: UpdateTickersBatch
    reconcile: ReconcileUniverse
    crawl: CrawlDisclosures
    reader: SnapshotReader
    universe: UniverseRepository


def build_remote_store(settings: Settings) -> S3ObjectStore | None:
    """Return the S3-compatible store, or ``None`` when no bucket is configured."""
    if not settings.remote_bucket:
        return None
    return S3ObjectStore(
        settings.remote_bucket,
        prefix=settings.remote_prefix,
        endpoint_url=settings.remote_endpoint_url,
        region=settings.remote_region,
    )


def build_container(
    settings: Settings,
    http: httpx.AsyncClient,
    *,
    local_store: ObjectStore | None = None,
    remote_store: ObjectStore | None = None,
) -> Container:
    """Wire every use case from ``settings`` and a shared HTTP client."""
    local = local_store or LocalObjectStore(settings.data_root)
    remote = remote_store if remote_store is not None else build_remote_store(settings)

    def _snapshots(store: ObjectStore) -> SnapshotRepository:
        return SnapshotRepository(
            store,
            namespace=settings.snapshot_namespace,
            filename=settings.snapshot_filename,
        )

    local_snapshots = _snapshots(local)
    updater = UpdateTickerSnapshot(
        IsYatirimStatementsGateway(IsYatirimClient(IsYatirimSettings(), http=http)),
        local_snapshots,
        earliest=settings.earliest,
        backfill=settings.backfill_periods,
        chunk_size=settings.chunk_size,
        cooldown_s=settings.cooldown_ms / 1000.0,
        retry_policy=RetryPolicy(retries=settings.chunk_retries),
    )
    batch = UpdateTickersBatch(updater, max_concurrency=settings.max_concurrency)
    universe = UniverseRepository(settings.universe_path)
    reconcile = ReconcileUniverse(
        universe,
        local_snapshots,
        batch,
        local_store=local,
        remote_store=remote,
        remote_snapshots=_snapshots(remote) if remote is not None else None,
        sync_prefix=settings.snapshot_namespace,
    )
    crawl = CrawlDisclosures(
        KapDisclosureGateway(KapClient(KapSettings(), http=http)),
        local,
        namespace=settings.disclosure_namespace,
    )
    reader = SnapshotReader(
        local,
        TTLCache[Snapshot](settings.cache_ttl_s),
        namespace=settings.snapshot_namespace,
        filename=settings.snapshot_filename,
    )
    return Container(
        settings=settings,
        local_store=local,
        remote_store=remote,
        updater=updater,
        batch=batch,
        reconcile=reconcile,
        crawl=crawl,
        reader=reader,
        universe=universe,
    )


@asynccontextmanager
async def bootstrap(settings: Settings | None = None) -> AsyncGenerator[Container, None]:
    """Initialize and teardown shared infrastructure.

    Args:
        settings: Optional explicit settings; defaults to :func:`get_settings`.

    Yields:
        Container: Wired use cases sharing one ``httpx.AsyncClient``.
    """
    settings = settings or get_settings()
    logger.info(
        "bootstrap.start",
        extra={
            "extra": {
                "environment": settings.environment.value,
                "data_root": str(settings.data_root),
                "remote": settings.remote_enabled,
            }
        },
    )
    http = httpx.AsyncClient(follow_redirects=True)
    try:
        yield build_container(settings, http)
    finally:
        await http.aclose()
        logger.info("bootstrap.stop")
