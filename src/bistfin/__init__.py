# src/bistfin/__init__.py
# Copyright (c)
# SPDX-License-Identifier: MIT
"""bistfin: incremental financial-statement ingestion for Borsa Istanbul tickers."""

__version__ = "0.1.0"
