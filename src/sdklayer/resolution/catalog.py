# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Static release catalog of downloadable SDK archives."""

from __future__ import annotations

import re
import tomllib
from collections.abc import Iterator, Sequence
from dataclasses import dataclass
from enum import Enum
from functools import lru_cache
from importlib import resources
from pathlib import Path
from typing import Final

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator, model_validator

from ..dotnet.runtime_identifier import normalize_architecture
from ..errors import CatalogError
from .version import InvalidVersionError, SdkVersion

CATALOG_RESOURCE: Final[str] = "inventory.toml"
_SHA256_PATTERN: Final[re.Pattern[str]] = re.compile(r"^[0-9a-f]{64}$")
_SHA256_PREFIX: Final[str] = "sha256:"


class ReleaseChannel(str, Enum):
    """Enumerate release channels recorded in the catalog."""

    STABLE = "stable"
    PREVIEW = "preview"
    RC = "rc"

    @classmethod
    def from_version(cls, version: SdkVersion) -> ReleaseChannel:
        if not version.is_prerelease:
            return cls.STABLE
        label = version.prerelease[0].lower()
        return cls.RC if label.startswith("rc") else cls.PREVIEW


class CatalogEntry(BaseModel):
    """One downloadable SDK archive for a specific OS and architecture."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True, extra="forbid")

    version: SdkVersion
    os: str
    arch: str
    url: str
    checksum: str
    channel: ReleaseChannel = ReleaseChannel.STABLE

    @field_validator("version", mode="before")
    @classmethod
    def _parse_version(cls, value: object) -> SdkVersion:
        if isinstance(value, SdkVersion):
            return value
        try:
            return SdkVersion.parse(str(value))
        except InvalidVersionError as exc:
            raise ValueError(str(exc)) from exc

    @field_validator("arch", mode="before")
    @classmethod
    def _normalise_arch(cls, value: object) -> str:
        return normalize_architecture(str(value))

    @field_validator("os", mode="before")
    @classmethod
    def _normalise_os(cls, value: object) -> str:
        return str(value).strip().lower()

    @field_validator("checksum", mode="before")
    @classmethod
    def _normalise_checksum(cls, value: object) -> str:
        text = str(value).strip().lower()
        if text.startswith(_SHA256_PREFIX):
            text = text[len(_SHA256_PREFIX) :]
        if not _SHA256_PATTERN.match(text):
            raise ValueError("checksum must be a hex-encoded SHA-256 digest")
        return text

    @model_validator(mode="before")
    @classmethod
    def _default_channel(cls, data: object) -> object:
        if isinstance(data, dict) and "channel" not in data and "version" in data:
            try:
                version = SdkVersion.parse(str(data["version"]))
            except InvalidVersionError:
                return data
            return {**data, "channel": ReleaseChannel.from_version(version).value}
        return data

    @property
    def sha256(self) -> str:
        return self.checksum

    @property
    def is_prerelease(self) -> bool:
        return self.channel is not ReleaseChannel.STABLE or self.version.is_prerelease


@dataclass(frozen=True, slots=True)
class ReleaseCatalog:
    """Immutable table of catalog entries loaded once per process."""

    entries: tuple[CatalogEntry, ...]

    def __iter__(self) -> Iterator[CatalogEntry]:
        return iter(self.entries)

    def __len__(self) -> int:
        return len(self.entries)

    def for_platform(self, os_name: str, arch: str) -> tuple[CatalogEntry, ...]:
        """Return entries built for exactly ``os_name``/``arch``."""

        return tuple(entry for entry in self.entries if entry.os == os_name and entry.arch == arch)


def parse_catalog(contents: str, *, source: str = CATALOG_RESOURCE) -> ReleaseCatalog:
    """Parse catalog TOML text into a :class:`ReleaseCatalog`.

    Args:
        contents: TOML document with an ``[[artifacts]]`` array.
        source: Name used in error messages.

    Returns:
        ReleaseCatalog: Parsed catalog.

    Raises:
        CatalogError: If the TOML is malformed or an entry fails validation.
    """

    try:
        document = tomllib.loads(contents)
    except tomllib.TOMLDecodeError as exc:
        raise CatalogError(f"{source}: invalid TOML ({exc})") from exc
    raw_entries = document.get("artifacts", [])
    if not isinstance(raw_entries, Sequence):
        raise CatalogError(f"{source}: `artifacts` must be an array of tables")
    entries: list[CatalogEntry] = []
    for index, raw in enumerate(raw_entries):
        try:
            entries.append(CatalogEntry.model_validate(raw))
        except ValidationError as exc:
            raise CatalogError(f"{source}: artifact #{index + 1} is invalid: {exc.errors()[0]['msg']}") from exc
    return ReleaseCatalog(entries=tuple(entries))


def load_catalog_file(path: Path) -> ReleaseCatalog:
    """Parse the catalog stored at ``path``.

    Raises:
        CatalogError: If the file cannot be read or fails validation.
    """

    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise CatalogError(f"{path}: unable to read catalog ({exc.strerror or exc})") from exc
    return parse_catalog(text, source=str(path))


@lru_cache(maxsize=1)
def load_bundled_catalog() -> ReleaseCatalog:
    """Return the catalog shipped inside the package, parsed once per process."""

    text = resources.files("sdklayer.data").joinpath(CATALOG_RESOURCE).read_text(encoding="utf-8")
    return parse_catalog(text)


__all__ = [
    "CATALOG_RESOURCE",
    "CatalogEntry",
    "ReleaseCatalog",
    "ReleaseChannel",
    "load_bundled_catalog",
    "load_catalog_file",
    "parse_catalog",
]
