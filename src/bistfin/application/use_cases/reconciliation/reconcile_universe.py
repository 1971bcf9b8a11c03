# src/bistfin/application/use_cases/reconciliation/reconcile_universe.py
# Copyright (c)
# SPDX-License-Identifier: MIT
"""Use case: reconcile the tracked ticker universe against a candidate list.

Steps:
    1. Refuse remote flags without a remote store, then read the tracked
       universe (absent → empty) and the candidate file (missing or holding
       an invalid symbol → fatal). Nothing is mutated before this step ends.
    2. Diff them and rewrite the tracked universe. The write happens before
       any per-ticker work and a failure aborts the run.
    3. Delete artifacts of removed tickers locally, and remotely when asked.
       Deletion failures are logged and counted, never fatal.
    4. Bootstrap added tickers through the batch updater.
    5. Optionally sync the local snapshot tree to the remote store.

Layer:
    application/use_cases
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from bistfin.adapters.repositories.snapshot_repository import SnapshotRepository
from bistfin.adapters.repositories.universe_repository import (
    UniverseRepository,
    read_candidate_universe,
)
from bistfin.application.use_cases.ingestion.update_tickers_batch import UpdateTickersBatch
from bistfin.domain.exceptions.storage import ArtifactIOError, RemoteStoreNotConfiguredError
from bistfin.domain.interfaces.object_store import ObjectStore
from bistfin.domain.services.universe_diff import diff_universes
from bistfin.infrastructure.logging.logger import get_json_logger
from bistfin.infrastructure.storage.sync import SyncReport, sync_tree

log = get_json_logger(__name__)


@dataclass(frozen=True)
class ReconcileRequest:
    """Parameters for one reconciliation run."""

    candidate_path: Path
    upload: bool = False
    delete_remote: bool = False
    financial_group: str = "XI_29"
    currency: str = "TRY"


@dataclass
class ReconciliationSummary:
    """Operator-facing outcome of a reconciliation run."""

    added: list[str] = field(default_factory=list)
    removed: list[str] = field(default_factory=list)
    bootstrapped: list[str] = field(default_factory=list)
    errors: dict[str, str] = field(default_factory=dict)
    sync: SyncReport | None = None

    @property
    def failed(self) -> list[str]:
        return sorted(self.errors)

    @property
    def ok(self) -> bool:
        return not self.errors and (self.sync is None or not self.sync.failed)

    def as_dict(self) -> dict[str, object]:
        out: dict[str, object] = {
            "added": len(self.added),
            "removed": len(self.removed),
            "failed": len(self.errors),
        }
        if self.sync is not None:
            out["uploaded"] = len(self.sync.uploaded)
            out["upload_failed"] = len(self.sync.failed)
        return out


class ReconcileUniverse:
    """Apply the minimal set of fetch/delete operations for a universe change."""

    def __init__(
        self,
        universe: UniverseRepository,
        local_snapshots: SnapshotRepository,
        batch: UpdateTickersBatch,
        *,
        local_store: ObjectStore,
        remote_store: ObjectStore | None = None,
        remote_snapshots: SnapshotRepository | None = None,
        sync_prefix: str = "",
    ) -> None:
        self._universe = universe
        self._local = local_snapshots
        self._batch = batch
        self._local_store = local_store
        self._remote_store = remote_store
        self._remote = remote_snapshots
        # Folder semantics: "isyatirim" must not match "isyatirim-old/".
        prefix = sync_prefix.strip("/")
        self._sync_prefix = f"{prefix}/" if prefix else ""

    async def __call__(self, req: ReconcileRequest) -> ReconciliationSummary:
        """Run the reconciliation.

        Raises:
            InvalidUniverseInputError: If the candidate file is missing or unreadable.
            UniverseWriteError: If the tracked universe cannot be rewritten.
            RemoteStoreNotConfiguredError: If ``upload`` or ``delete_remote`` is
                set but no remote store was configured.
        """
        self._require_remote(req)
        candidate = await read_candidate_universe(req.candidate_path)
        current = await self._universe.load()
        diff = diff_universes(current, candidate)
        summary = ReconciliationSummary(added=sorted(diff.added), removed=sorted(diff.removed))
        log.info(
            "reconcile.diff",
            extra={
                "extra": {
                    "tracked": len(current),
                    "candidate": len(candidate),
                    "added": summary.added,
                    "removed": summary.removed,
                }
            },
        )

        await self._universe.save(candidate)

        for ticker in summary.removed:
            await self._remove(ticker, delete_remote=req.delete_remote, summary=summary)

        if summary.added:
            report = await self._batch(
                summary.added,
                financial_group=req.financial_group,
                currency=req.currency,
            )
            for result in report.results:
                if result.failed:
                    summary.errors[result.ticker] = f"{len(result.failures)} chunk call(s) failed"
                elif result.persisted:
                    summary.bootstrapped.append(result.ticker)
            summary.errors.update(report.errors)

        if req.upload:
            summary.sync = await self._upload()

        log.info("reconcile.summary", extra={"extra": summary.as_dict()})
        return summary

    async def _remove(self, ticker: str, *, delete_remote: bool, summary: ReconciliationSummary) -> None:
        try:
            await self._local.delete(ticker)
        except ArtifactIOError as exc:
            summary.errors[ticker] = f"local delete failed: {exc}"
            log.warning(
                "reconcile.delete_failed",
                extra={"extra": {"ticker": ticker, "side": "local", "details": exc.details}},
            )
        if not delete_remote or self._remote is None:
            return
        try:
            await self._remote.delete(ticker)
        except ArtifactIOError as exc:
            summary.errors[ticker] = f"remote delete failed: {exc}"
            log.warning(
                "reconcile.delete_failed",
                extra={"extra": {"ticker": ticker, "side": "remote", "details": exc.details}},
            )

    def _require_remote(self, req: ReconcileRequest) -> None:
        missing = [
            flag
            for flag, wanted, configured in (
                ("upload", req.upload, self._remote_store),
                ("delete_remote", req.delete_remote, self._remote),
            )
            if wanted and configured is None
        ]
        if missing:
            raise RemoteStoreNotConfiguredError(
                "remote store is not configured; set BISTFIN_REMOTE_BUCKET or drop "
                + " and ".join(missing),
                details={"flags": missing},
            )

    async def _upload(self) -> SyncReport:
        assert self._remote_store is not None
        return await sync_tree(self._local_store, self._remote_store, self._sync_prefix)
