# src/bistfin/config/__init__.py
# Copyright (c)
# SPDX-License-Identifier: MIT
"""Configuration package."""

from bistfin.config.settings import Environment, Settings, get_settings

__all__ = ["Environment", "Settings", "get_settings"]
