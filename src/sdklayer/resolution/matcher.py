# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Select the single catalog release that satisfies a version requirement."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Final

from ..dotnet.runtime_identifier import TargetPlatform
from ..errors import UnresolvableVersionError
from .catalog import CatalogEntry, ReleaseCatalog
from .policies import MATCHERS
from .requirement import VersionRequirement
from .version import SdkVersion

LOGGER = logging.getLogger(__name__)

NEAREST_LIMIT: Final[int] = 3


@dataclass(frozen=True, slots=True)
class ResolvedRelease:
    """Catalog entry chosen for the current build."""

    version: SdkVersion
    architecture: str
    os: str
    url: str
    sha256: str

    @classmethod
    def from_entry(cls, entry: CatalogEntry) -> ResolvedRelease:
        return cls(
            version=entry.version,
            architecture=entry.arch,
            os=entry.os,
            url=entry.url,
            sha256=entry.sha256,
        )


def _nearest_versions(versions: Sequence[SdkVersion], base: SdkVersion) -> list[str]:
    """Return up to ``NEAREST_LIMIT`` versions on either side of ``base``."""

    ordered = sorted(set(versions))
    below = [version for version in ordered if version < base][-NEAREST_LIMIT:]
    above = [version for version in ordered if version >= base][:NEAREST_LIMIT]
    return [str(version) for version in (*below, *above)]


def _pick(pool: Sequence[CatalogEntry], requirement: VersionRequirement) -> CatalogEntry | None:
    matcher = MATCHERS[requirement.roll_forward]
    chosen = matcher([entry.version for entry in pool], requirement.base)
    if chosen is None:
        return None
    # Stable channel entries win over pre-release entries of equal precedence.
    matches = sorted(
        (entry for entry in pool if entry.version == chosen),
        key=lambda entry: entry.is_prerelease,
    )
    return matches[0]


def _candidate_pools(
    entries: Sequence[CatalogEntry],
    requirement: VersionRequirement,
) -> list[tuple[str, list[CatalogEntry]]]:
    """Return the pools to try in order, stable first."""

    stable = [entry for entry in entries if not entry.is_prerelease]
    prerelease = [entry for entry in entries if entry.is_prerelease]
    pin = requirement.version
    if pin is None:
        return [("stable", stable)]
    if pin.is_prerelease:
        same_minor = [entry for entry in prerelease if entry.version.major_minor == pin.major_minor]
        return [("stable+prerelease", stable + same_minor)]
    return [("stable", stable), ("prerelease", stable + prerelease)]


def resolve_release(
    requirement: VersionRequirement,
    catalog: ReleaseCatalog,
    platform: TargetPlatform,
) -> ResolvedRelease:
    """Match ``requirement`` against ``catalog`` for ``platform``.

    Only entries built for exactly ``platform.os``/``platform.arch`` are
    considered, and only those at or above the framework floor's
    ``major.minor``. Stable releases are tried first; pre-releases become
    eligible when the pin is itself a pre-release of the same minor, or when
    no stable release satisfies an explicit pin.

    Args:
        requirement: Requirement derived from ``global.json`` and the project graph.
        catalog: Release catalog to search.
        platform: Target operating system and architecture.

    Returns:
        ResolvedRelease: The single selected release.

    Raises:
        UnresolvableVersionError: If no entry satisfies the requirement.
    """

    platform_entries = catalog.for_platform(platform.os, platform.arch)
    all_versions = [entry.version for entry in platform_entries]
    floor = requirement.floor.major_minor
    label = f"{platform.os}/{platform.arch}"

    def unresolvable(reason: str = "") -> UnresolvableVersionError:
        return UnresolvableVersionError(
            str(requirement),
            label,
            _nearest_versions(all_versions, requirement.base),
            reason=reason,
        )

    if not platform_entries:
        raise unresolvable(f"The release catalog has no entries for {label}.")

    pin = requirement.version
    if pin is not None and pin.major_minor < floor:
        raise unresolvable(
            f"The pinned version {pin} in `global.json` is older than the project target framework "
            f"`{requirement.floor.moniker}` ({requirement.floor.path}); pin a {floor[0]}.{floor[1]} SDK or newer."
        )

    eligible = [entry for entry in platform_entries if entry.version.major_minor >= floor]
    for pool_name, pool in _candidate_pools(eligible, requirement):
        entry = _pick(pool, requirement)
        if entry is not None:
            LOGGER.debug(
                "resolved %s via %s pool for %s -> %s",
                requirement,
                pool_name,
                label,
                entry.version,
            )
            return ResolvedRelease.from_entry(entry)
    raise unresolvable()


__all__ = ["NEAREST_LIMIT", "ResolvedRelease", "resolve_release"]
