from __future__ import annotations

from pathlib import Path

import pytest

from bistfin.adapters.repositories.universe_repository import (
    UniverseRepository,
    read_candidate_universe,
)
from bistfin.domain.entities.universe import TickerUniverse
from bistfin.domain.exceptions.universe import InvalidUniverseInputError, UniverseWriteError


@pytest.mark.asyncio
async def test_missing_tracked_universe_reads_empty(tmp_path: Path) -> None:
    repo = UniverseRepository(tmp_path / "data" / "tickers.txt")
    assert len(await repo.load()) == 0


@pytest.mark.asyncio
async def test_save_writes_sorted_uppercase_lines(tmp_path: Path) -> None:
    path = tmp_path / "data" / "tickers.txt"
    repo = UniverseRepository(path)
    await repo.save(TickerUniverse.of(["thyao", "ASELS", "asels"]))
    assert path.read_text(encoding="utf-8") == "ASELS\nTHYAO\n"
    assert (await repo.load()).tickers == ("ASELS", "THYAO")
    assert [p.name for p in path.parent.iterdir()] == ["tickers.txt"]


@pytest.mark.asyncio
async def test_save_failure_raises_universe_write_error(tmp_path: Path) -> None:
    blocker = tmp_path / "file"
    blocker.write_text("x")
    repo = UniverseRepository(blocker / "tickers.txt")
    with pytest.raises(UniverseWriteError):
        await repo.save(TickerUniverse.of(["A"]))


@pytest.mark.asyncio
async def test_missing_candidate_is_invalid_input(tmp_path: Path) -> None:
    with pytest.raises(InvalidUniverseInputError):
        await read_candidate_universe(tmp_path / "nope.txt")


@pytest.mark.asyncio
async def test_candidate_with_path_like_symbol_is_invalid_input(tmp_path: Path) -> None:
    candidate = tmp_path / "new.txt"
    candidate.write_text("SASA\n.\n", encoding="utf-8")
    with pytest.raises(InvalidUniverseInputError) as ei:
        await read_candidate_universe(candidate)
    assert ei.value.code == "INVALID_TICKER"
