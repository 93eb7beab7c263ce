# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Additive NuGet package cache layer.

Packages accumulate across builds. The record tracks a hash of the declared
package references and how many builds have restored the layer; the layer is
purged once it has been restored more than ``MAX_RESTORE_COUNT`` times, or
when its record is missing or unreadable.
"""

from __future__ import annotations

import hashlib
import logging
import shutil
from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Final

from ..dotnet.project import PackageReference
from .env import LayerEnv, ModificationBehavior, Scope
from .records import NUGET_RECORD_FILE, PackageCacheRecord, read_record, write_record

LOGGER = logging.getLogger(__name__)

NUGET_CACHE_LAYER_NAME: Final[str] = "nuget-cache"
MAX_RESTORE_COUNT: Final[int] = 10


class PackageCacheState(str, Enum):
    CREATED = "created"
    RESTORED = "restored"
    UPDATED = "updated"
    PURGED = "purged"
    INVALIDATED = "invalidated"


@dataclass(frozen=True, slots=True)
class NugetCacheLayer:
    path: Path
    state: PackageCacheState
    record: PackageCacheRecord
    previous_restore_count: int | None = None


def packages_hash(references: Iterable[PackageReference]) -> str:
    """Return a stable SHA-256 over the sorted, de-duplicated package references."""

    digest = hashlib.sha256()
    for token in sorted({reference.cache_token() for reference in references}):
        digest.update(token.encode("utf-8"))
        digest.update(b"\n")
    return digest.hexdigest()


def ensure_nuget_cache(layers_dir: Path, references: Iterable[PackageReference]) -> NugetCacheLayer:
    """Prepare the package cache layer for a build declaring ``references``.

    Args:
        layers_dir: Directory holding every layer of this build.
        references: Package references declared across the project graph.

    Returns:
        NugetCacheLayer: Prepared layer with its new record.
    """

    layer_path = layers_dir / NUGET_CACHE_LAYER_NAME
    record_path = layers_dir / NUGET_RECORD_FILE
    current_hash = packages_hash(references)
    previous = read_record(record_path, PackageCacheRecord)

    if previous is None:
        state = PackageCacheState.INVALIDATED if layer_path.exists() else PackageCacheState.CREATED
        restore_count = 1
    elif previous.restore_count > MAX_RESTORE_COUNT:
        state = PackageCacheState.PURGED
        restore_count = 1
    else:
        state = PackageCacheState.RESTORED if previous.packages_hash == current_hash else PackageCacheState.UPDATED
        restore_count = previous.restore_count + 1

    if state in {PackageCacheState.INVALIDATED, PackageCacheState.PURGED}:
        shutil.rmtree(layer_path, ignore_errors=True)
    layer_path.mkdir(parents=True, exist_ok=True)

    record = PackageCacheRecord(packages_hash=current_hash, restore_count=restore_count)
    write_record(record_path, record)
    LOGGER.debug("nuget cache %s (restore_count=%d)", state.value, restore_count)
    return NugetCacheLayer(
        path=layer_path,
        state=state,
        record=record,
        previous_restore_count=previous.restore_count if previous is not None else None,
    )


def nuget_cache_env(layer_path: Path, scope: Scope) -> LayerEnv:
    return (
        LayerEnv()
        .insert(scope, ModificationBehavior.OVERRIDE, "NUGET_PACKAGES", layer_path)
        .insert(scope, ModificationBehavior.DEFAULT, "NUGET_XMLDOC_MODE", "skip")
    )


__all__ = [
    "MAX_RESTORE_COUNT",
    "NUGET_CACHE_LAYER_NAME",
    "NugetCacheLayer",
    "PackageCacheState",
    "ensure_nuget_cache",
    "nuget_cache_env",
    "packages_hash",
]
