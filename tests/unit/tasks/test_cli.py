from __future__ import annotations

import json
from contextlib import asynccontextmanager
from datetime import UTC, datetime
from pathlib import Path
from types import SimpleNamespace

import pytest
from typer.testing import CliRunner

from bistfin.application.use_cases.ingestion.update_ticker_snapshot import (
    ChunkFailure,
    SnapshotState,
    UpdateResult,
)
from bistfin.application.use_cases.ingestion.update_tickers_batch import BatchReport
from bistfin.application.use_cases.reconciliation.reconcile_universe import ReconciliationSummary
from bistfin.config.settings import Settings
from bistfin.domain.entities.disclosure import DisclosureSummary
from bistfin.domain.entities.line_item import LineItem
from bistfin.domain.entities.snapshot import Snapshot, SnapshotMeta
from bistfin.domain.entities.universe import TickerUniverse
from bistfin.domain.exceptions.ingestion import UpstreamHttpError
from bistfin.domain.exceptions.storage import RemoteStoreNotConfiguredError
from bistfin.domain.exceptions.universe import InvalidUniverseInputError
from bistfin.tasks import cli

runner = CliRunner()


class _Recorder:
    def __init__(self, outcome) -> None:
        self.outcome = outcome
        self.calls: list[tuple] = []

    async def __call__(self, *args, **kwargs):
        self.calls.append((args, kwargs))
        if isinstance(self.outcome, Exception):
            raise self.outcome
        return self.outcome


@pytest.fixture
def container(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> SimpleNamespace:
    settings = Settings(_env_file=None, data_root=tmp_path, candidate_universe_path=tmp_path / "new.txt")
    fake = SimpleNamespace(
        settings=settings,
        reconcile=_Recorder(ReconciliationSummary()),
        batch=_Recorder(BatchReport()),
        crawl=_Recorder(DisclosureSummary("SASA", datetime(2024, 5, 15, tzinfo=UTC))),
        reader=SimpleNamespace(get=_Recorder(None)),
        universe=SimpleNamespace(load=_Recorder(TickerUniverse.of(["AAA", "BBB"]))),
    )

    @asynccontextmanager
    async def _bootstrap(_settings=None):
        yield fake

    monkeypatch.setattr(cli, "get_settings", lambda: settings)
    monkeypatch.setattr(cli, "bootstrap", _bootstrap)
    return fake


def test_reconcile_success_exits_zero(container: SimpleNamespace, tmp_path: Path) -> None:
    container.reconcile.outcome = ReconciliationSummary(added=["D"], removed=["A"], bootstrapped=["D"])

    result = runner.invoke(cli.app, ["reconcile", "--delete-remote"])

    assert result.exit_code == 0
    assert "added=1 removed=1 failed=0" in result.output
    (req,), _ = container.reconcile.calls[0]
    assert req.candidate_path == tmp_path / "new.txt"
    assert req.delete_remote and not req.upload


def test_reconcile_partial_failure_exits_two(container: SimpleNamespace) -> None:
    container.reconcile.outcome = ReconciliationSummary(added=["D"], errors={"D": "1 chunk call(s) failed"})
    result = runner.invoke(cli.app, ["reconcile", "--new", "other.txt"])
    assert result.exit_code == 2
    assert "D: 1 chunk call(s) failed" in result.output


def test_reconcile_fatal_error_exits_one(container: SimpleNamespace) -> None:
    container.reconcile.outcome = InvalidUniverseInputError("candidate universe not found")
    result = runner.invoke(cli.app, ["reconcile"])
    assert result.exit_code == 1


def test_update_requires_tickers_or_all(container: SimpleNamespace) -> None:
    result = runner.invoke(cli.app, ["update"])
    assert result.exit_code == 1
    assert container.batch.calls == []


def test_update_all_uses_tracked_universe(container: SimpleNamespace) -> None:
    container.batch.outcome = BatchReport(
        results=[UpdateResult(ticker="AAA", state=SnapshotState.UP_TO_DATE)]
    )

    result = runner.invoke(cli.app, ["update", "CCC", "--all", "--group", "UFRS"])

    assert result.exit_code == 0
    (symbols,), kwargs = container.batch.calls[0]
    assert symbols == ["CCC", "AAA", "BBB"]
    assert kwargs == {"financial_group": "UFRS", "currency": "TRY"}
    assert "AAA: up_to_date" in result.output


def test_update_with_failed_chunk_exits_two(container: SimpleNamespace) -> None:
    failure = ChunkFailure(periods=("2024/3",), code="UPSTREAM_HTTP_ERROR", message="HTTP 502")
    container.batch.outcome = BatchReport(
        results=[UpdateResult(ticker="SASA", state=SnapshotState.NEEDS_UPDATE, failures=[failure])]
    )
    result = runner.invoke(cli.app, ["update", "SASA"])
    assert result.exit_code == 2
    assert "SASA: failed" in result.output


def test_crawl_reports_per_ticker_errors(container: SimpleNamespace) -> None:
    container.crawl.outcome = UpstreamHttpError("HTTP 503", status_code=503, url="u")
    result = runner.invoke(cli.app, ["crawl-disclosures", "sasa"])
    assert result.exit_code == 2
    assert "SASA: error HTTP 503" in result.output


def test_show_prints_meta_summary(container: SimpleNamespace) -> None:
    snapshot = Snapshot(
        meta=SnapshotMeta(
            ticker="SASA",
            financial_group="XI_29",
            currency="TRY",
            fetched_at=datetime(2024, 5, 15, tzinfo=UTC),
            period_keys=["2023/12", "2024/3"],
        ),
        items={"1A": LineItem(code="1A", label_tr="Dönen Varlıklar", label_en=None, values={})},
    )
    container.reader.get.outcome = snapshot

    result = runner.invoke(cli.app, ["show", "sasa"])

    assert result.exit_code == 0
    doc = json.loads(result.stdout)
    assert doc["periods"] == 2
    assert doc["first"] == "2023/12"
    assert doc["last"] == "2024/3"
    assert doc["items"] == 1


def test_show_missing_snapshot_exits_one(container: SimpleNamespace) -> None:
    result = runner.invoke(cli.app, ["show", "NONE"])
    assert result.exit_code == 1


@pytest.mark.parametrize("flag", ["--upload", "--delete-remote"])
def test_reconcile_remote_flag_without_remote_store_exits_one(
    container: SimpleNamespace, flag: str
) -> None:
    container.reconcile.outcome = RemoteStoreNotConfiguredError("remote store is not configured")
    result = runner.invoke(cli.app, ["reconcile", flag])
    assert result.exit_code == 1
