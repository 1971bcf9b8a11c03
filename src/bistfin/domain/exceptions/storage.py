# src/bistfin/domain/exceptions/storage.py
# Copyright (c)
# SPDX-License-Identifier: MIT
"""Artifact storage exceptions.

Layer:
    domain/exceptions
"""

from __future__ import annotations

from bistfin.domain.exceptions.base import BistfinError


class ArtifactIOError(BistfinError):
    """Raised when an object store read, write, list, or delete fails."""

    code = "ARTIFACT_IO_ERROR"


class ArtifactNotFound(ArtifactIOError):
    """Raised when a read targets an object that does not exist."""

    code = "ARTIFACT_NOT_FOUND"


class SnapshotCorruptError(BistfinError):
    """Raised when a stored snapshot cannot be decoded into a Snapshot."""

    code = "SNAPSHOT_CORRUPT"


class RemoteStoreNotConfiguredError(BistfinError):
    """Raised when a run asks for remote upload or delete without a remote store."""

    code = "REMOTE_NOT_CONFIGURED"
