# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Cache metadata records persisted next to each layer directory."""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Final, TypeVar

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ..resolution.matcher import ResolvedRelease

LOGGER = logging.getLogger(__name__)

SDK_RECORD_FILE: Final[str] = "sdk.json"
NUGET_RECORD_FILE: Final[str] = "nuget-cache.json"

RecordT = TypeVar("RecordT", bound=BaseModel)


class CacheRecord(BaseModel):
    """Key of an installed SDK layer; equality decides reuse."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    version: str
    architecture: str
    sha256: str

    @classmethod
    def from_release(cls, release: ResolvedRelease) -> CacheRecord:
        return cls(version=str(release.version), architecture=release.architecture, sha256=release.sha256)


class PackageCacheRecord(BaseModel):
    """Key of the additive NuGet package cache layer."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    packages_hash: str
    restore_count: int = Field(ge=0)


def read_record(path: Path, model: type[RecordT]) -> RecordT | None:
    """Return the record stored at ``path`` or ``None`` when absent or unreadable.

    A record that cannot be parsed is treated exactly like a missing one so the
    caller falls back to re-creating the layer.
    """

    if not path.is_file():
        return None
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
        return model.model_validate(payload)
    except (OSError, UnicodeDecodeError, json.JSONDecodeError, ValidationError) as exc:
        LOGGER.debug("ignoring unreadable cache record %s: %s", path, exc)
        return None


def write_json(path: Path, payload: object) -> None:
    """Write ``payload`` as JSON to a sibling temp file and rename it over ``path``."""

    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
    tmp_path = Path(tmp_name)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            handle.write(json.dumps(payload, indent=2, sort_keys=True))
            handle.flush()
            os.fsync(handle.fileno())
        os.replace(tmp_path, path)
    except BaseException:
        tmp_path.unlink(missing_ok=True)
        raise


def write_record(path: Path, record: BaseModel) -> None:
    write_json(path, record.model_dump(mode="json"))


def remove_record(path: Path) -> None:
    path.unlink(missing_ok=True)


__all__ = [
    "NUGET_RECORD_FILE",
    "SDK_RECORD_FILE",
    "CacheRecord",
    "PackageCacheRecord",
    "read_record",
    "remove_record",
    "write_json",
    "write_record",
]
