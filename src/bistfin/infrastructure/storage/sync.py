# src/bistfin/infrastructure/storage/sync.py
# Copyright (c)
# SPDX-License-Identifier: MIT
"""One-way bulk sync between object stores.

Copies every object under a prefix from ``source`` to ``target`` when the
target copy is missing or its content digest differs. Nothing is deleted on
the target; removals are handled explicitly by the reconciler.
"""

from __future__ import annotations

import hashlib
import mimetypes
from dataclasses import dataclass, field
from typing import Final

from bistfin.domain.exceptions.storage import ArtifactIOError
from bistfin.domain.interfaces.object_store import ObjectStore
from bistfin.infrastructure.logging.logger import get_json_logger

log = get_json_logger(__name__)

#: Short public cache so edge caches pick up refreshed snapshots quickly.
PUBLIC_CACHE_CONTROL: Final[str] = "public, max-age=300, s-maxage=300, stale-while-revalidate=86400"

JSON_CONTENT_TYPE: Final[str] = "application/json; charset=utf-8"


def content_type_for(path: str) -> str:
    """Return the content type used when publishing ``path``."""
    if path.endswith(".json"):
        return JSON_CONTENT_TYPE
    guessed, _ = mimetypes.guess_type(path)
    return guessed or "application/octet-stream"


@dataclass(slots=True)
class SyncReport:
    uploaded: list[str] = field(default_factory=list)
    unchanged: int = 0
    failed: dict[str, str] = field(default_factory=dict)


async def sync_tree(source: ObjectStore, target: ObjectStore, prefix: str = "") -> SyncReport:
    """Upload changed or missing objects under ``prefix`` from source to target.

    Per-object failures are recorded in the report and do not stop the sync.

    Raises:
        ArtifactIOError: If either side cannot be listed.
    """
    report = SyncReport()
    remote = {d.path: d for d in await target.list_by_prefix(prefix)}
    for desc in await source.list_by_prefix(prefix):
        try:
            data = await source.read_bytes(desc.path)
            digest = desc.md5 or hashlib.md5(data).hexdigest()  # noqa: S324
            existing = remote.get(desc.path)
            if existing is not None and existing.md5 == digest:
                report.unchanged += 1
                continue
            await target.write_bytes(
                desc.path,
                data,
                content_type=content_type_for(desc.path),
                cache_control=PUBLIC_CACHE_CONTROL,
            )
            report.uploaded.append(desc.path)
        except ArtifactIOError as exc:
            report.failed[desc.path] = str(exc)
            log.warning(
                "sync.object_failed",
                extra={"extra": {"path": desc.path, "details": exc.details}},
            )
    log.info(
        "sync.done",
        extra={
            "extra": {
                "prefix": prefix,
                "uploaded": len(report.uploaded),
                "unchanged": report.unchanged,
                "failed": len(report.failed),
            }
        },
    )
    return report
