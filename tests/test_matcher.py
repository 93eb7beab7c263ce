# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Tests for catalog resolution."""

from __future__ import annotations

from pathlib import Path

import pytest

from sdklayer.dotnet.runtime_identifier import TargetPlatform
from sdklayer.dotnet.tfm import TargetFrameworkMoniker
from sdklayer.errors import UnresolvableVersionError
from sdklayer.resolution.policies import RollForward
from sdklayer.resolution.requirement import FrameworkFloor, VersionRequirement
from sdklayer.resolution.matcher import resolve_release
from sdklayer.resolution.version import SdkVersion

LINUX_AMD64 = TargetPlatform("linux", "amd64")


def _requirement(
    pin: str | None = None,
    policy: RollForward = RollForward.LATEST_MINOR,
    floor: str = "net8.0",
) -> VersionRequirement:
    return VersionRequirement(
        version=SdkVersion.parse(pin) if pin is not None else None,
        roll_forward=policy,
        floor=FrameworkFloor(TargetFrameworkMoniker.parse(floor), Path("/app/App.csproj")),
    )


def test_default_policy_picks_highest_in_floor_major(catalog_factory) -> None:
    catalog = catalog_factory("6.0.428", "8.0.106", "8.0.204", "9.0.102")

    release = resolve_release(_requirement(), catalog, LINUX_AMD64)

    assert str(release.version) == "8.0.204"
    assert release.architecture == "amd64"
    assert release.os == "linux"


def test_patch_policy_stays_in_feature_band(catalog_factory) -> None:
    catalog = catalog_factory("8.0.105", "8.0.106", "8.0.107", "8.0.205")

    release = resolve_release(_requirement("8.0.106", RollForward.PATCH), catalog, LINUX_AMD64)

    assert str(release.version) == "8.0.107"


def test_disable_requires_exact_version(catalog_factory) -> None:
    catalog = catalog_factory("8.0.105", "8.0.107")

    with pytest.raises(UnresolvableVersionError) as excinfo:
        resolve_release(_requirement("8.0.106", RollForward.DISABLE), catalog, LINUX_AMD64)

    assert excinfo.value.nearest == ("8.0.105", "8.0.107")
    assert "=8.0.106" in excinfo.value.details()


def test_only_requested_architecture_is_considered(catalog_factory, entry_factory) -> None:
    catalog = catalog_factory(
        entry_factory("8.0.204", arch="amd64"),
        entry_factory("8.0.403", arch="arm64"),
        entry_factory("8.0.404", os="darwin"),
    )

    release = resolve_release(_requirement(), catalog, LINUX_AMD64)

    assert str(release.version) == "8.0.204"


def test_platform_without_entries_fails(catalog_factory) -> None:
    catalog = catalog_factory("8.0.204", arch="arm64")

    with pytest.raises(UnresolvableVersionError, match="no entries for linux/amd64"):
        resolve_release(_requirement(), catalog, LINUX_AMD64)


def test_prereleases_are_ignored_without_a_pin(catalog_factory) -> None:
    catalog = catalog_factory("9.0.102", "9.0.200-preview.1")

    release = resolve_release(_requirement(floor="net9.0"), catalog, LINUX_AMD64)

    assert str(release.version) == "9.0.102"


def test_prerelease_pin_may_resolve_to_prerelease(catalog_factory) -> None:
    catalog = catalog_factory("9.0.100-rc.1.1", "9.0.100-rc.2.1", "8.0.403")

    release = resolve_release(
        _requirement("9.0.100-rc.1.1", RollForward.LATEST_PATCH, floor="net9.0"),
        catalog,
        LINUX_AMD64,
    )

    assert str(release.version) == "9.0.100-rc.2.1"


def test_stable_release_preferred_over_prerelease_for_stable_pin(catalog_factory) -> None:
    catalog = catalog_factory("10.0.100-rc.1", "10.0.100", "10.0.101")

    release = resolve_release(
        _requirement("10.0.100", RollForward.LATEST_FEATURE, floor="net10.0"),
        catalog,
        LINUX_AMD64,
    )

    assert str(release.version) == "10.0.101"


def test_stable_pin_falls_back_to_prerelease_when_no_stable_matches(catalog_factory) -> None:
    catalog = catalog_factory("10.0.100-rc.1", "9.0.102")

    release = resolve_release(
        _requirement("10.0.100-preview.1", RollForward.LATEST_FEATURE, floor="net10.0"),
        catalog,
        LINUX_AMD64,
    )
    fallback = resolve_release(
        _requirement("10.0.0", RollForward.MAJOR, floor="net9.0"),
        catalog,
        LINUX_AMD64,
    )

    assert str(release.version) == "10.0.100-rc.1"
    assert str(fallback.version) == "10.0.100-rc.1"


def test_pin_below_floor_is_rejected(catalog_factory) -> None:
    catalog = catalog_factory("6.0.428", "8.0.204")

    with pytest.raises(UnresolvableVersionError, match="older than the project target framework"):
        resolve_release(_requirement("6.0.428", RollForward.DISABLE), catalog, LINUX_AMD64)


def test_floor_excludes_older_releases_for_major_policies(catalog_factory) -> None:
    catalog = catalog_factory("8.0.106", "9.0.102")

    release = resolve_release(_requirement(policy=RollForward.MAJOR, floor="net9.0"), catalog, LINUX_AMD64)

    assert str(release.version) == "9.0.102"


def test_nearest_versions_are_bounded(catalog_factory) -> None:
    catalog = catalog_factory("7.0.100", "7.0.200", "7.0.300", "7.0.400", "9.0.100", "9.0.200", "9.0.300", "9.0.400")

    with pytest.raises(UnresolvableVersionError) as excinfo:
        resolve_release(_requirement(), catalog, LINUX_AMD64)

    assert excinfo.value.nearest == ("7.0.200", "7.0.300", "7.0.400", "9.0.100", "9.0.200", "9.0.300")


def test_major_only_pin_resolves_highest_release_of_that_major(catalog_factory) -> None:
    catalog = catalog_factory("8.0.106", "8.0.204", "8.0.403", "9.0.102")
    requirement = VersionRequirement(
        version=SdkVersion.parse_pin("8"),
        roll_forward=RollForward.LATEST_MINOR,
        floor=FrameworkFloor(TargetFrameworkMoniker.parse("net8.0"), Path("/app/App.csproj")),
    )

    release = resolve_release(requirement, catalog, LINUX_AMD64)

    assert str(release.version) == "8.0.403"
