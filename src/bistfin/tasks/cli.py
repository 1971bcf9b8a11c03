# src/bistfin/tasks/cli.py
# Copyright (c)
# SPDX-License-Identifier: MIT
"""bistfin CLI: operational commands (reconcile, update, crawl, show).

Commands:
    reconcile            Diff the tracked universe against a candidate list,
                         bootstrap additions and delete removals.
    update               Incrementally update one or more tickers (or --all).
    crawl-disclosures    Download financial-report disclosures from KAP.
    show                 Print a summary of a stored snapshot.

Exit codes:
    0  success
    1  fatal failure (bad input, universe write failure, unhandled error)
    2  completed, but one or more tickers failed

Environment:
    BISTFIN_*      Core settings (see ``bistfin.config.settings.Settings``).
    ISYATIRIM_*    Financial statements client settings.
    KAP_*          Disclosure portal client settings.
"""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from uuid import uuid4

import typer

from bistfin.adapters.repositories.snapshot_repository import encode_snapshot
from bistfin.application.use_cases.ingestion.update_tickers_batch import BatchReport
from bistfin.application.use_cases.reconciliation.reconcile_universe import (
    ReconcileRequest,
    ReconciliationSummary,
)
from bistfin.config.settings import get_settings
from bistfin.dependencies.core.bootstrap import bootstrap
from bistfin.domain.entities.disclosure import DisclosureSummary
from bistfin.domain.entities.snapshot import Snapshot
from bistfin.domain.exceptions.base import BistfinError
from bistfin.infrastructure.logging.logger import (
    configure_root_logging,
    get_json_logger,
    set_run_context,
)

configure_root_logging()
log = get_json_logger(__name__)

app = typer.Typer(add_completion=False, no_args_is_help=True)

EXIT_OK = 0
EXIT_FATAL = 1
EXIT_PARTIAL = 2


def _start_run(command: str) -> str:
    settings = get_settings()
    configure_root_logging(settings.log_level)
    run_id = uuid4().hex
    set_run_context(run_id=run_id)
    log.info("cli.start", extra={"extra": {"command": command}})
    return run_id


def _fatal(command: str, exc: BistfinError) -> typer.Exit:
    log.error(
        "cli.fatal",
        extra={"extra": {"command": command, "code": exc.code, "details": exc.details}},
    )
    typer.echo(f"error: {exc}", err=True)
    return typer.Exit(EXIT_FATAL)


def _print_reconciliation(summary: ReconciliationSummary) -> None:
    typer.echo(
        f"added={len(summary.added)} removed={len(summary.removed)} failed={len(summary.errors)}"
    )
    if summary.added:
        typer.echo("  + " + " ".join(summary.added))
    if summary.removed:
        typer.echo("  - " + " ".join(summary.removed))
    for ticker, message in sorted(summary.errors.items()):
        typer.echo(f"  ! {ticker}: {message}")
    if summary.sync is not None:
        typer.echo(
            f"upload: uploaded={len(summary.sync.uploaded)} unchanged={summary.sync.unchanged} "
            f"failed={len(summary.sync.failed)}"
        )


def _print_batch(report: BatchReport) -> None:
    for result in report.results:
        typer.echo(
            f"{result.ticker}: {result.outcome} fetched={len(result.periods_fetched)} "
            f"failed_calls={len(result.failures)}"
        )
    for ticker, message in sorted(report.errors.items()):
        typer.echo(f"{ticker}: error {message}")
    typer.echo(f"done: {len(report.results) + len(report.errors)} tickers, {len(report.failed_tickers)} failed")


@app.command("reconcile")
def reconcile(
    new: Path | None = typer.Option(  # noqa: B008
        None, "--new", help="Candidate universe file (default: BISTFIN_CANDIDATE_UNIVERSE_PATH)."
    ),
    upload: bool = typer.Option(False, "--upload", help="Sync local snapshots to remote afterwards."),
    delete_remote: bool = typer.Option(
        False, "--delete-remote", help="Also delete remote artifacts of removed tickers."
    ),
) -> None:
    """Reconcile the tracked ticker universe against a candidate list."""
    _start_run("reconcile")
    settings = get_settings()
    req = ReconcileRequest(
        candidate_path=new or settings.candidate_universe_path,
        upload=upload,
        delete_remote=delete_remote,
        financial_group=settings.financial_group,
        currency=settings.currency,
    )

    async def _run() -> ReconciliationSummary:
        async with bootstrap(settings) as container:
            return await container.reconcile(req)

    try:
        summary = asyncio.run(_run())
    except BistfinError as exc:
        raise _fatal("reconcile", exc) from exc

    _print_reconciliation(summary)
    if not summary.ok:
        raise typer.Exit(EXIT_PARTIAL)


@app.command("update")
def update(
    tickers: list[str] | None = typer.Argument(None, help="Tickers to update."),  # noqa: B008
    all_tickers: bool = typer.Option(False, "--all", help="Update every tracked ticker."),
    group: str | None = typer.Option(None, "--group", help="Financial group (default XI_29)."),
    currency: str | None = typer.Option(None, "--currency", help="Currency (default TRY)."),
) -> None:
    """Incrementally update snapshots for the given tickers."""
    _start_run("update")
    settings = get_settings()
    if not tickers and not all_tickers:
        typer.echo("error: pass one or more tickers, or --all", err=True)
        raise typer.Exit(EXIT_FATAL)

    async def _run() -> BatchReport:
        async with bootstrap(settings) as container:
            symbols = list(tickers or [])
            if all_tickers:
                symbols.extend(await container.universe.load())
            return await container.batch(
                symbols,
                financial_group=group or settings.financial_group,
                currency=currency or settings.currency,
            )

    try:
        report = asyncio.run(_run())
    except BistfinError as exc:
        raise _fatal("update", exc) from exc

    _print_batch(report)
    if not report.ok:
        raise typer.Exit(EXIT_PARTIAL)


@app.command("crawl-disclosures")
def crawl_disclosures(
    tickers: list[str] = typer.Argument(..., help="Tickers to crawl."),  # noqa: B008
) -> None:
    """Download KAP financial-report disclosures and write summaries."""
    _start_run("crawl-disclosures")
    settings = get_settings()

    async def _run() -> tuple[list[DisclosureSummary], dict[str, str]]:
        done: list[DisclosureSummary] = []
        errors: dict[str, str] = {}
        async with bootstrap(settings) as container:
            for ticker in tickers:
                try:
                    done.append(await container.crawl(ticker))
                except BistfinError as exc:
                    errors[ticker.upper()] = str(exc)
                    log.error(
                        "cli.crawl_failed",
                        extra={"extra": {"ticker": ticker, "code": exc.code, "details": exc.details}},
                    )
        return done, errors

    summaries, errors = asyncio.run(_run())
    for summary in summaries:
        typer.echo(
            f"{summary.ticker}: financial={len(summary.financial)} operating={len(summary.operating)}"
        )
    for ticker, message in sorted(errors.items()):
        typer.echo(f"{ticker}: error {message}")
    if errors:
        raise typer.Exit(EXIT_PARTIAL)


@app.command("show")
def show(
    ticker: str = typer.Argument(..., help="Ticker to show."),
    as_json: bool = typer.Option(False, "--json", help="Print the full snapshot document."),
) -> None:
    """Print a summary of the stored snapshot for TICKER."""
    _start_run("show")
    settings = get_settings()

    async def _run() -> Snapshot | None:
        async with bootstrap(settings) as container:
            return await container.reader.get(ticker)

    try:
        snapshot = asyncio.run(_run())
    except BistfinError as exc:
        raise _fatal("show", exc) from exc

    if snapshot is None:
        typer.echo(f"no snapshot for {ticker.upper()}", err=True)
        raise typer.Exit(EXIT_FATAL)
    if as_json:
        typer.echo(encode_snapshot(snapshot).decode("utf-8"))
        return

    meta = snapshot.meta
    typer.echo(
        json.dumps(
            {
                "ticker": meta.ticker,
                "financialGroup": meta.financial_group,
                "currency": meta.currency,
                "fetchedAt": meta.fetched_at.isoformat(),
                "periods": len(meta.period_keys),
                "first": meta.period_keys[0] if meta.period_keys else None,
                "last": meta.period_keys[-1] if meta.period_keys else None,
                "items": len(snapshot.items),
            },
            ensure_ascii=False,
            indent=2,
        )
    )


if __name__ == "__main__":
    app()
