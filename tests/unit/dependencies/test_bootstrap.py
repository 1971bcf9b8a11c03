from __future__ import annotations

from pathlib import Path

import httpx
import pytest

from bistfin.config.settings import Settings
from bistfin.dependencies.core.bootstrap import bootstrap, build_container, build_remote_store
from bistfin.infrastructure.storage.local_object_store import LocalObjectStore
from bistfin.infrastructure.storage.s3_object_store import S3ObjectStore


def test_no_remote_store_without_bucket(tmp_path: Path) -> None:
    assert build_remote_store(Settings(_env_file=None, data_root=tmp_path)) is None


def test_remote_store_from_settings(tmp_path: Path) -> None:
    settings = Settings(
        _env_file=None,
        data_root=tmp_path,
        remote_bucket="bist-public",
        remote_region="eu-central-1",
    )
    assert isinstance(build_remote_store(settings), S3ObjectStore)


@pytest.mark.asyncio
async def test_build_container_wires_local_store(tmp_path: Path, store_factory) -> None:
    remote = store_factory()
    settings = Settings(_env_file=None, data_root=tmp_path, universe_path=tmp_path / "tickers.txt")
    async with httpx.AsyncClient() as http:
        container = build_container(settings, http, remote_store=remote)

    assert isinstance(container.local_store, LocalObjectStore)
    assert container.local_store.root == tmp_path
    assert container.remote_store is remote
    assert list(await container.universe.load()) == []
    assert await container.reader.get("NONE") is None


@pytest.mark.asyncio
async def test_bootstrap_yields_container(tmp_path: Path) -> None:
    async with bootstrap(Settings(_env_file=None, data_root=tmp_path)) as container:
        assert container.remote_store is None
        assert container.crawl.summary_path("sasa") == "kap/SASA/summary.json"
