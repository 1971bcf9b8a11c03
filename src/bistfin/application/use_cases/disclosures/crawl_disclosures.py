# src/bistfin/application/use_cases/disclosures/crawl_disclosures.py
# Copyright (c)
# SPDX-License-Identifier: MIT
"""Use case: crawl a ticker's financial-report disclosures.

Output contract (under ``{namespace}/{TICKER}/``):
    * ``{index}-1.pdf`` for every disclosure with a public PDF.
    * ``summary.json``: ``{ticker, latest: {financial, operating},
      all: {financial, operating}, generatedAt}``.

A failed PDF download only leaves that record without PDFs; a failed listing
aborts the ticker.
"""

from __future__ import annotations

import asyncio
import json
import random
from collections.abc import Awaitable, Callable
from datetime import UTC, datetime

from bistfin.domain.entities.disclosure import DisclosureRecord, DisclosureSummary
from bistfin.domain.entities.universe import normalize_ticker
from bistfin.domain.exceptions.ingestion import UpstreamError
from bistfin.domain.interfaces.gateways.disclosure_portal_gateway import DisclosurePortalGateway
from bistfin.domain.interfaces.object_store import ObjectStore
from bistfin.domain.services.disclosure_classifier import classify_disclosure
from bistfin.infrastructure.logging.logger import get_json_logger, set_run_context
from bistfin.infrastructure.storage.sync import JSON_CONTENT_TYPE

log = get_json_logger(__name__)

SUMMARY_FILENAME = "summary.json"


def polite_delay_s() -> float:
    """Jittered pause between disclosure downloads (350–650 ms)."""
    return 0.35 + random.random() * 0.3  # noqa: S311


class CrawlDisclosures:
    """Download disclosure PDFs and write the per-ticker summary document."""

    def __init__(
        self,
        gateway: DisclosurePortalGateway,
        store: ObjectStore,
        *,
        namespace: str = "kap",
        delay: Callable[[], float] = polite_delay_s,
        clock: Callable[[], datetime] = lambda: datetime.now(UTC),
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._gateway = gateway
        self._store = store
        self._namespace = namespace.strip("/")
        self._delay = delay
        self._clock = clock
        self._sleep = sleep

    def summary_path(self, ticker: str) -> str:
        return f"{self._namespace}/{normalize_ticker(ticker)}/{SUMMARY_FILENAME}"

    async def __call__(self, ticker: str) -> DisclosureSummary:
        """Crawl ``ticker`` and persist its summary.

        Raises:
            UpstreamError: If the disclosure listing cannot be fetched.
            ArtifactIOError: If the summary cannot be written.
        """
        ticker = normalize_ticker(ticker)
        set_run_context(ticker=ticker)

        listing = await self._gateway.list_disclosures(ticker)
        log.info("disclosures.listed", extra={"extra": {"ticker": ticker, "count": len(listing)}})

        summary = DisclosureSummary(ticker=ticker, generated_at=self._clock())
        for idx, meta in enumerate(listing):
            if idx:
                await self._sleep(self._delay())
            record = DisclosureRecord(
                disclosure_index=meta.disclosure_index,
                title=meta.title,
                publish_date=meta.publish_date,
            )
            await self._save_pdf(ticker, record)
            summary.add(classify_disclosure(record.title), record)

        summary.generated_at = self._clock()
        payload = json.dumps(summary.to_document(), ensure_ascii=False, indent=2)
        await self._store.write_bytes(
            self.summary_path(ticker),
            payload.encode("utf-8"),
            content_type=JSON_CONTENT_TYPE,
        )
        log.info(
            "disclosures.summary_written",
            extra={
                "extra": {
                    "ticker": ticker,
                    "financial": len(summary.financial),
                    "operating": len(summary.operating),
                }
            },
        )
        return summary

    async def _save_pdf(self, ticker: str, record: DisclosureRecord) -> None:
        try:
            pdf = await self._gateway.fetch_pdf(record.disclosure_index)
        except UpstreamError as exc:
            log.warning(
                "disclosures.pdf_failed",
                extra={"extra": {"index": record.disclosure_index, "details": exc.details}},
            )
            return
        if pdf is None:
            log.debug("disclosures.pdf_missing", extra={"extra": {"index": record.disclosure_index}})
            return
        path = f"{self._namespace}/{ticker}/{record.disclosure_index}-1.pdf"
        await self._store.write_bytes(path, pdf, content_type="application/pdf")
        record.pdfs.append(path)
