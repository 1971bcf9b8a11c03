# src/bistfin/infrastructure/external_apis/kap/settings.py
# Copyright (c)
# SPDX-License-Identifier: MIT
"""KAP disclosure portal client settings.

Layer:
    infrastructure

Notes:
    Values are sourced from environment variables prefixed with ``KAP_``.
"""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class KapSettings(BaseSettings):
    """Configuration for the KAP HTTP client."""

    base_url: str = Field(
        "https://www.kap.org.tr",
        description="Base URL of the public disclosure portal.",
    )
    user_agent: str = Field(
        (
            "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
            "(KHTML, like Gecko) Chrome/124 Safari/537.36"
        ),
        description="Browser-like user agent; the portal rejects bare clients.",
    )
    locale: str = Field("tr-TR", description="Accept-Language sent with requests.")
    timeout_s: float = Field(60.0, description="Per-request timeout in seconds.")
    disclosure_class: str = Field(
        "FR",
        description="Disclosure class queried (FR = financial reports).",
    )

    model_config = SettingsConfigDict(
        env_prefix="KAP_",
        extra="ignore",
    )
