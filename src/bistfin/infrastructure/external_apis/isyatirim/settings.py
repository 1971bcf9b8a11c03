# src/bistfin/infrastructure/external_apis/isyatirim/settings.py
# Copyright (c)
# SPDX-License-Identifier: MIT
"""İş Yatırım transport client settings.

Purpose:
    Pydantic-based configuration for the financial-statement HTTP client.

Layer:
    infrastructure

Notes:
    Values are sourced from environment variables prefixed with ``ISYATIRIM_``.
"""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class IsYatirimSettings(BaseSettings):
    """Configuration for the İş Yatırım HTTP client.

    Environment variables (with ``model_config.env_prefix``):

    * ``ISYATIRIM_BASE_URL``
    * ``ISYATIRIM_STATEMENTS_PATH``
    * ``ISYATIRIM_USER_AGENT``
    * ``ISYATIRIM_TIMEOUT_S``
    """

    base_url: str = Field(
        "https://www.isyatirim.com.tr",
        description="Base URL of the financial-data website.",
    )
    statements_path: str = Field(
        "/_layouts/15/IsYatirim.Website/Common/Data.aspx/MaliTablo",
        description="Path of the financial-statement (MaliTablo) data endpoint.",
    )
    user_agent: str = Field(
        "Mozilla/5.0",
        description="User agent sent with every request.",
    )
    timeout_s: float = Field(
        20.0,
        description="Per-request timeout in seconds.",
    )

    model_config = SettingsConfigDict(
        env_prefix="ISYATIRIM_",
        extra="ignore",
    )
