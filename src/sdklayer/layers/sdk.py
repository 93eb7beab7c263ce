# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Cached SDK layer: reuse the installed toolchain or replace it."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Final

from ..resolution.matcher import ResolvedRelease
from .acquisition import DEFAULT_TIMEOUT_SECONDS, HttpGet, RetryCallback, acquire_release
from .records import SDK_RECORD_FILE, CacheRecord, read_record, remove_record, write_record

LOGGER = logging.getLogger(__name__)

SDK_LAYER_NAME: Final[str] = "sdk"


class LayerState(str, Enum):
    """Outcome of preparing a cached layer."""

    RESTORED = "restored"
    INSTALLED = "installed"


@dataclass(frozen=True, slots=True)
class SdkLayer:
    """Prepared SDK layer and how it was obtained."""

    path: Path
    state: LayerState
    record: CacheRecord
    replaced: CacheRecord | None = None


def is_reusable(record: CacheRecord | None, release: ResolvedRelease) -> bool:
    """Return ``True`` when ``record`` describes exactly ``release``."""

    return record is not None and record == CacheRecord.from_release(release)


def ensure_sdk_layer(
    layers_dir: Path,
    release: ResolvedRelease,
    *,
    get: HttpGet | None = None,
    sleep: Callable[[float], None] = time.sleep,
    timeout: float = DEFAULT_TIMEOUT_SECONDS,
    on_retry: RetryCallback | None = None,
) -> SdkLayer:
    """Return an SDK layer holding ``release``, downloading it only on a cache miss.

    The layer is reused when the record persisted by a previous build equals
    the record for ``release`` and the layer directory still exists. Otherwise
    the old record and directory are removed before anything is downloaded, so
    a failed acquisition leaves neither a stale toolchain nor a record vouching
    for one.

    Args:
        layers_dir: Directory holding every layer of this build.
        release: Release chosen by the catalog matcher.
        get: HTTP GET callable forwarded to the acquisition engine.
        sleep: Sleep function used between download attempts.
        timeout: Per-attempt transport timeout in seconds.
        on_retry: Optional callback invoked before each download retry.

    Returns:
        SdkLayer: Prepared layer.
    """

    layer_path = layers_dir / SDK_LAYER_NAME
    record_path = layers_dir / SDK_RECORD_FILE
    expected = CacheRecord.from_release(release)
    previous = read_record(record_path, CacheRecord)

    if is_reusable(previous, release) and layer_path.is_dir():
        LOGGER.debug("sdk layer cache hit for %s", expected)
        return SdkLayer(path=layer_path, state=LayerState.RESTORED, record=expected)

    LOGGER.debug("sdk layer cache miss: previous=%s expected=%s", previous, expected)
    # The record goes first so a failed download never vouches for the old layer.
    remove_record(record_path)

    acquire_release(release, layer_path, get=get, sleep=sleep, timeout=timeout, on_retry=on_retry)
    write_record(record_path, expected)
    return SdkLayer(path=layer_path, state=LayerState.INSTALLED, record=expected, replaced=previous)


__all__ = ["SDK_LAYER_NAME", "LayerState", "SdkLayer", "ensure_sdk_layer", "is_reusable"]
