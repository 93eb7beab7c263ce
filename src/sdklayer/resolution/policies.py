# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Roll-forward policies, one matching function per policy.

Every matcher receives the candidate versions (already narrowed to the target
architecture and release channel) plus the base version (the pin, or the
inferred floor) and returns the chosen version or ``None``.

``patch`` and ``feature`` pick the *nearest* scope above the base (the pin's
feature band first, then the next band that has any release) and take the
highest patch within it. ``minor`` and ``major`` share their matcher with the
"latest" variants and take the highest version inside the whole scope.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping, Sequence
from enum import Enum
from types import MappingProxyType
from typing import TypeAlias

from .version import SdkVersion

Matcher: TypeAlias = Callable[[Sequence[SdkVersion], SdkVersion], SdkVersion | None]


class RollForward(str, Enum):
    """Enumerate ``global.json`` roll-forward policy names."""

    DISABLE = "disable"
    PATCH = "patch"
    FEATURE = "feature"
    MINOR = "minor"
    MAJOR = "major"
    LATEST_PATCH = "latestPatch"
    LATEST_FEATURE = "latestFeature"
    LATEST_MINOR = "latestMinor"
    LATEST_MAJOR = "latestMajor"

    @classmethod
    def from_name(cls, raw: str) -> RollForward | None:
        """Return the policy matching ``raw`` case-insensitively, or ``None``."""

        lowered = raw.strip().lower()
        for policy in cls:
            if policy.value.lower() == lowered:
                return policy
        return None


DEFAULT_ROLL_FORWARD = RollForward.LATEST_MINOR


def _at_or_above(candidates: Iterable[SdkVersion], base: SdkVersion) -> list[SdkVersion]:
    return [version for version in candidates if version >= base]


def _nearest_group_max(
    candidates: Sequence[SdkVersion],
    group_key: Callable[[SdkVersion], tuple[int, ...]],
) -> SdkVersion | None:
    """Return the highest version inside the lowest group of ``candidates``."""

    if not candidates:
        return None
    nearest = min(group_key(version) for version in candidates)
    return max(version for version in candidates if group_key(version) == nearest)


def match_disable(candidates: Sequence[SdkVersion], base: SdkVersion) -> SdkVersion | None:
    """Require an exact match on every component."""

    return next((version for version in candidates if version == base), None)


def match_patch(candidates: Sequence[SdkVersion], base: SdkVersion) -> SdkVersion | None:
    """Highest patch at or above the base inside the base's feature band."""

    in_band = [version for version in _at_or_above(candidates, base) if version.band_key == base.band_key]
    return max(in_band, default=None)


def match_feature(candidates: Sequence[SdkVersion], base: SdkVersion) -> SdkVersion | None:
    """Lowest feature band at or above the base within the same minor, highest patch."""

    in_minor = [version for version in _at_or_above(candidates, base) if version.major_minor == base.major_minor]
    return _nearest_group_max(in_minor, lambda version: (version.feature_band,))


def match_latest_feature(candidates: Sequence[SdkVersion], base: SdkVersion) -> SdkVersion | None:
    """Highest version at or above the base within the same major.minor."""

    in_minor = [version for version in _at_or_above(candidates, base) if version.major_minor == base.major_minor]
    return max(in_minor, default=None)


def match_latest_minor(candidates: Sequence[SdkVersion], base: SdkVersion) -> SdkVersion | None:
    """Highest version at or above the base within the same major."""

    in_major = [version for version in _at_or_above(candidates, base) if version.major == base.major]
    return max(in_major, default=None)


def match_latest_major(candidates: Sequence[SdkVersion], base: SdkVersion) -> SdkVersion | None:
    """Highest version at or above the base."""

    return max(_at_or_above(candidates, base), default=None)


MATCHERS: Mapping[RollForward, Matcher] = MappingProxyType(
    {
        RollForward.DISABLE: match_disable,
        RollForward.PATCH: match_patch,
        # latestPatch and patch share a scope, and both already take the highest patch.
        RollForward.LATEST_PATCH: match_patch,
        RollForward.FEATURE: match_feature,
        RollForward.LATEST_FEATURE: match_latest_feature,
        # minor and major already take the highest release in their scope.
        RollForward.MINOR: match_latest_minor,
        RollForward.LATEST_MINOR: match_latest_minor,
        RollForward.MAJOR: match_latest_major,
        RollForward.LATEST_MAJOR: match_latest_major,
    }
)


def describe(policy: RollForward, base: SdkVersion) -> str:
    """Return a compact requirement description used in narration and errors."""

    if policy is RollForward.DISABLE:
        return f"={base}"
    if policy in {RollForward.PATCH, RollForward.LATEST_PATCH}:
        return f"{base.major}.{base.minor}.{base.feature_band}xx (>= {base}, {policy.value})"
    if policy in {RollForward.FEATURE, RollForward.LATEST_FEATURE}:
        return f"{base.major}.{base.minor}.x (>= {base}, {policy.value})"
    if policy in {RollForward.MINOR, RollForward.LATEST_MINOR}:
        return f"{base.major}.x (>= {base}, {policy.value})"
    return f">= {base} ({policy.value})"


__all__ = [
    "DEFAULT_ROLL_FORWARD",
    "MATCHERS",
    "Matcher",
    "RollForward",
    "describe",
    "match_disable",
    "match_feature",
    "match_latest_feature",
    "match_latest_major",
    "match_latest_minor",
    "match_patch",
]
