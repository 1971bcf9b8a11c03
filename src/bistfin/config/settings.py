# src/bistfin/config/settings.py
# Copyright (c)
# SPDX-License-Identifier: MIT
"""bistfin Configuration (Pydantic Settings, v2)

Summary:
    Typed, validated configuration for the ingestion jobs. Only the CLI and the
    dependency wiring read the process environment; use cases receive plain
    values or a ``Settings`` instance explicitly.

Design:
    - Pydantic v2 BaseSettings, env prefix ``BISTFIN_``.
    - Constrained numeric fields for pacing and concurrency knobs.
    - Singleton accessor ``get_settings()`` with LRU cache.
"""

from __future__ import annotations

from enum import Enum
from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from bistfin.domain.value_objects.period import Period


class Environment(str, Enum):
    """Logical deployment environment."""

    DEVELOPMENT = "development"
    TEST = "test"
    PRODUCTION = "production"


class Settings(BaseSettings):
    """Typed application configuration for bistfin."""

    # ---------------------------
    # Core
    # ---------------------------
    environment: Environment = Field(
        default=Environment.DEVELOPMENT,
        description="Logical deployment environment.",
    )
    log_level: str = Field(default="INFO", description="Root log level name.")

    # ---------------------------
    # Local artifacts
    # ---------------------------
    data_root: Path = Field(
        default=Path("public"),
        description="Root directory of the local object store.",
    )
    snapshot_namespace: str = Field(
        default="isyatirim",
        description="Object-store prefix holding per-ticker snapshot folders.",
    )
    snapshot_filename: str = Field(
        default="mali-tablo.json",
        description="File name of the snapshot document inside a ticker folder.",
    )
    disclosure_namespace: str = Field(
        default="kap",
        description="Object-store prefix holding per-ticker disclosure folders.",
    )
    universe_path: Path = Field(
        default=Path("data/tickers.txt"),
        description="Tracked ticker universe (source of truth).",
    )
    candidate_universe_path: Path = Field(
        default=Path("data/new-tickers.txt"),
        description="Default candidate universe for reconciliation runs.",
    )

    # ---------------------------
    # Fetch window & pacing
    # ---------------------------
    financial_group: str = Field(default="XI_29", description="Upstream financial group.")
    currency: str = Field(default="TRY", description="Upstream reporting currency.")
    earliest_period: str = Field(
        default="2008/3",
        description="Earliest supported period; bootstrap starts here.",
    )
    backfill_periods: int = Field(
        default=4,
        ge=1,
        le=16,
        description="Number of most recent known periods re-fetched on every update.",
    )
    chunk_size: int = Field(
        default=4,
        ge=1,
        le=4,
        description="Periods per upstream request (provider maximum is 4).",
    )
    cooldown_ms: int = Field(
        default=400,
        ge=0,
        le=60_000,
        description="Delay between successive chunk calls for one ticker (>=350 recommended).",
    )
    chunk_retries: int = Field(
        default=0,
        ge=0,
        le=5,
        description="Orchestrator-level retries for a failed chunk call.",
    )
    max_concurrency: int = Field(
        default=8,
        ge=1,
        le=20,
        description="Maximum number of tickers processed concurrently.",
    )
    cache_ttl_s: int = Field(
        default=300,
        ge=0,
        description="TTL of the in-process snapshot read cache.",
    )

    # ---------------------------
    # Remote object store (S3-compatible)
    # ---------------------------
    remote_bucket: str | None = Field(default=None, description="Remote bucket name.")
    remote_prefix: str = Field(default="", description="Key prefix inside the remote bucket.")
    remote_endpoint_url: str | None = Field(
        default=None,
        description="Endpoint URL for S3-compatible providers; None for AWS.",
    )
    remote_region: str | None = Field(default=None, description="Remote region name.")

    model_config = SettingsConfigDict(
        env_prefix="BISTFIN_",
        env_file=".env",
        extra="ignore",
    )

    @field_validator("earliest_period")
    @classmethod
    def _validate_earliest_period(cls, value: str) -> str:
        return Period.parse(value).key

    @property
    def earliest(self) -> Period:
        """``earliest_period`` as a :class:`Period`."""
        return Period.parse(self.earliest_period)

    @property
    def remote_enabled(self) -> bool:
        return bool(self.remote_bucket)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return the process-wide Settings instance."""
    return Settings()
