# src/bistfin/infrastructure/logging/logger.py
# Copyright (c)
# SPDX-License-Identifier: MIT
"""Structured JSON logging utilities.

This module exposes an idempotent root configurator and a per-module logger
factory that produce one JSON object per line, suitable for batch job logs.

Features:
    * Stable keys: ``ts``, ``level``, ``logger``, ``message``.
    * Automatic enrichment with ``run_id`` and ``ticker`` via contextvars, so
      concurrent per-ticker tasks log with their own ticker attached.
    * Structured fields via ``extra={"extra": {...}}``.

Typical usage:
    configure_root_logging()
    log = get_json_logger(__name__)
    log.info("snapshot.saved", extra={"extra": {"ticker": "SASA"}})
"""

from __future__ import annotations

import json
import logging
import os
from contextvars import ContextVar
from datetime import UTC, datetime
from typing import Any

__all__ = [
    "configure_root_logging",
    "get_json_logger",
    "set_run_context",
    "get_run_id",
    "get_ticker",
]

_RUN_ID_CTX: ContextVar[str | None] = ContextVar("bistfin_run_id", default=None)
_TICKER_CTX: ContextVar[str | None] = ContextVar("bistfin_ticker", default=None)


def set_run_context(*, run_id: str | None = None, ticker: str | None = None) -> None:
    """Set correlation identifiers on the current context.

    Args:
        run_id: Identifier of the current CLI run.
        ticker: Ticker being processed by the current task.

    Notes:
        Additive: passing only one argument leaves the other unchanged. Each
        asyncio task gets its own copy of the context, so setting ``ticker``
        inside a per-ticker task does not leak into siblings.
    """
    if run_id is not None:
        _RUN_ID_CTX.set(run_id)
    if ticker is not None:
        _TICKER_CTX.set(ticker)


def get_run_id() -> str | None:
    """Return the current run id, if any."""
    return _RUN_ID_CTX.get(None)


def get_ticker() -> str | None:
    """Return the ticker bound to the current context, if any."""
    return _TICKER_CTX.get(None)


class _JsonFormatter(logging.Formatter):
    """JSON log formatter emitting stable keys and optional extras."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": datetime.now(tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        run_id = getattr(record, "run_id", None) or _RUN_ID_CTX.get(None)
        if run_id:
            payload["run_id"] = run_id
        ticker = getattr(record, "ticker", None) or _TICKER_CTX.get(None)
        if ticker:
            payload["ticker"] = ticker

        if record.exc_info:
            exc_type, exc_value, _ = record.exc_info
            if exc_type is not None:
                payload["exc_type"] = exc_type.__name__
            if exc_value is not None:
                payload["exc_message"] = str(exc_value)

        extra = getattr(record, "extra", None)
        if isinstance(extra, dict):
            payload.update(extra)

        return json.dumps(payload, separators=(",", ":"), ensure_ascii=False, default=str)


def configure_root_logging(level: str | int | None = None) -> None:
    """Initialize the root logger with a JSON stream handler (idempotent).

    Args:
        level: Logging level or level name. If ``None``, use env ``LOG_LEVEL`` or ``INFO``.
    """
    root = logging.getLogger()

    env_level = os.getenv("LOG_LEVEL")
    resolved: int | str = (
        level if level is not None else (env_level.upper() if env_level else "INFO")
    )
    root.setLevel(resolved.upper() if isinstance(resolved, str) else resolved)

    if any(isinstance(h.formatter, _JsonFormatter) for h in root.handlers):
        return

    handler = logging.StreamHandler()
    handler.setFormatter(_JsonFormatter())
    root.addHandler(handler)


def get_json_logger(name: str) -> logging.Logger:
    """Return a module-specific logger backed by the JSON root handler.

    This does *not* configure the root logger; call
    :func:`configure_root_logging` once at startup.
    """
    logger = logging.getLogger(name)
    logger.propagate = True
    return logger
