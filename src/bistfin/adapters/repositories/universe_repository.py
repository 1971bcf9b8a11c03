# src/bistfin/adapters/repositories/universe_repository.py
# Copyright (c)
# SPDX-License-Identifier: MIT
"""Universe file repository.

Purpose:
    Read and atomically rewrite newline-delimited ticker universe files.

Layer:
    adapters/repositories

Notes:
    - A missing tracked universe reads as empty (first run).
    - A missing candidate file is an input error, raised before any mutation.
"""

from __future__ import annotations

import asyncio
from pathlib import Path

from bistfin.domain.entities.universe import TickerUniverse
from bistfin.domain.exceptions.universe import InvalidUniverseInputError, UniverseWriteError
from bistfin.domain.services.universe_diff import parse_universe_text, render_universe_text
from bistfin.infrastructure.storage.local_object_store import atomic_write_bytes


class UniverseRepository:
    """Tracked universe stored as plain text at ``path``."""

    def __init__(self, path: Path) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    async def load(self) -> TickerUniverse:
        """Return the tracked universe; empty when the file does not exist yet.

        Raises:
            InvalidUniverseInputError: If the file exists but cannot be read.
        """
        try:
            text = await asyncio.to_thread(self._path.read_text, encoding="utf-8")
        except FileNotFoundError:
            return TickerUniverse()
        except (OSError, UnicodeDecodeError) as exc:
            raise InvalidUniverseInputError(
                "tracked universe is unreadable",
                details={"path": str(self._path), "error": str(exc)},
            ) from exc
        return parse_universe_text(text)

    async def save(self, universe: TickerUniverse) -> None:
        """Atomically replace the file with the rendered universe.

        Raises:
            UniverseWriteError: If the write fails; the old file is left intact.
        """
        data = render_universe_text(universe).encode("utf-8")
        try:
            await asyncio.to_thread(atomic_write_bytes, self._path, data)
        except OSError as exc:
            raise UniverseWriteError(
                "could not write tracked universe",
                details={"path": str(self._path), "error": str(exc)},
            ) from exc


async def read_candidate_universe(path: Path) -> TickerUniverse:
    """Read a candidate universe file.

    Raises:
        InvalidUniverseInputError: If the file is missing or unreadable.
    """
    try:
        text = await asyncio.to_thread(Path(path).read_text, encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise InvalidUniverseInputError(
            "candidate universe is missing or unreadable",
            details={"path": str(path), "error": str(exc)},
        ) from exc
    return parse_universe_text(text)
