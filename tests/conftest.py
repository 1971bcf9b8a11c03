# tests/conftest.py
from __future__ import annotations

import hashlib
from collections.abc import Callable, Sequence
from datetime import UTC, datetime
from typing import Any

import pytest

from bistfin.domain.entities.line_item import RawRow
from bistfin.domain.exceptions.storage import ArtifactIOError, ArtifactNotFound
from bistfin.domain.interfaces.object_store import ObjectDescriptor
from bistfin.domain.value_objects.period import Period


class InMemoryObjectStore:
    """Dict-backed ObjectStore with optional injected failures."""

    def __init__(self) -> None:
        self.objects: dict[str, bytes] = {}
        self.meta: dict[str, dict[str, Any]] = {}
        self.fail_writes: set[str] = set()
        self.fail_deletes: set[str] = set()
        self.deleted: list[str] = []

    async def exists(self, path: str) -> bool:
        return path in self.objects

    async def read_bytes(self, path: str) -> bytes:
        if path not in self.objects:
            raise ArtifactNotFound("object not found", details={"path": path})
        return self.objects[path]

    async def read_text(self, path: str) -> str:
        return (await self.read_bytes(path)).decode("utf-8")

    async def write_bytes(
        self,
        path: str,
        data: bytes,
        *,
        content_type: str,
        cache_control: str | None = None,
    ) -> None:
        if path in self.fail_writes:
            raise ArtifactIOError("write failed", details={"path": path})
        self.objects[path] = bytes(data)
        self.meta[path] = {"content_type": content_type, "cache_control": cache_control}

    async def list_by_prefix(self, prefix: str) -> list[ObjectDescriptor]:
        return [
            ObjectDescriptor(path=p, size=len(b), md5=hashlib.md5(b).hexdigest())  # noqa: S324
            for p, b in sorted(self.objects.items())
            if p.startswith(prefix)
        ]

    async def delete(self, path: str, *, recursive: bool = False) -> None:
        if path in self.fail_deletes:
            raise ArtifactIOError("delete failed", details={"path": path})
        self.deleted.append(path)
        self.objects.pop(path, None)
        if recursive:
            folder = path.rstrip("/") + "/"
            for key in [k for k in self.objects if k.startswith(folder)]:
                del self.objects[key]


def default_rows(ticker: str, periods: Sequence[Period]) -> list[RawRow]:
    """Two deterministic rows whose values encode the period."""
    return [
        RawRow(
            code="1A",
            label_tr="Dönen Varlıklar",
            label_en="Current Assets",
            values=tuple(p.year * 10 + p.quarter for p in periods),
        ),
        RawRow(
            code=None,
            label_tr="Nakit",
            label_en="Cash",
            values=tuple(None for _ in periods),
        ),
    ]


class ScriptedGateway:
    """FinancialStatementsGateway returning scripted rows or raising per window."""

    def __init__(
        self,
        rows: Callable[[str, Sequence[Period]], list[RawRow]] = default_rows,
    ) -> None:
        self._rows = rows
        self.calls: list[tuple[str, str, str, tuple[str, ...]]] = []
        self.failures: dict[tuple[str, ...], list[Exception]] = {}

    def fail(self, keys: Sequence[str], *errors: Exception) -> None:
        """Raise ``errors`` (in order) for the window with exactly ``keys``."""
        self.failures[tuple(keys)] = list(errors)

    async def fetch_quad(
        self,
        ticker: str,
        financial_group: str,
        currency: str,
        periods: Sequence[Period],
    ) -> list[RawRow]:
        keys = tuple(p.key for p in periods)
        self.calls.append((ticker, financial_group, currency, keys))
        pending = self.failures.get(keys)
        if pending:
            raise pending.pop(0)
        return self._rows(ticker, periods)


class SleepRecorder:
    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


@pytest.fixture()
def memory_store() -> InMemoryObjectStore:
    return InMemoryObjectStore()


@pytest.fixture()
def store_factory() -> Callable[[], InMemoryObjectStore]:
    return InMemoryObjectStore


@pytest.fixture()
def gateway() -> ScriptedGateway:
    return ScriptedGateway()


@pytest.fixture()
def gateway_factory() -> type[ScriptedGateway]:
    return ScriptedGateway


@pytest.fixture()
def sleeper() -> SleepRecorder:
    return SleepRecorder()


@pytest.fixture()
def fixed_now() -> datetime:
    """A moment inside the 2024/6 reporting period."""
    return datetime(2024, 5, 15, 12, 0, tzinfo=UTC)
