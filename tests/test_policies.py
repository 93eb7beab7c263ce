# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Tests for the roll-forward policy matchers."""

from __future__ import annotations

import pytest

from sdklayer.resolution.policies import MATCHERS, RollForward
from sdklayer.resolution.version import SdkVersion

CATALOG = [
    SdkVersion.parse(raw)
    for raw in (
        "6.0.428",
        "8.0.105",
        "8.0.106",
        "8.0.107",
        "8.0.205",
        "8.0.206",
        "8.0.403",
        "9.0.102",
        "9.0.203",
        "10.0.100",
    )
]


@pytest.mark.parametrize(
    ("policy", "base", "expected"),
    [
        (RollForward.DISABLE, "8.0.106", "8.0.106"),
        (RollForward.DISABLE, "8.0.104", None),
        (RollForward.PATCH, "8.0.106", "8.0.107"),
        (RollForward.PATCH, "8.0.108", None),
        (RollForward.LATEST_PATCH, "8.0.106", "8.0.107"),
        (RollForward.FEATURE, "8.0.106", "8.0.107"),
        (RollForward.FEATURE, "8.0.108", "8.0.206"),
        (RollForward.FEATURE, "8.0.404", None),
        (RollForward.LATEST_FEATURE, "8.0.106", "8.0.403"),
        (RollForward.MINOR, "8.0.110", "8.0.403"),
        (RollForward.MINOR, "8.0.404", None),
        (RollForward.MINOR, "9.0.204", None),
        (RollForward.LATEST_MINOR, "8.0.100", "8.0.403"),
        (RollForward.MAJOR, "8.0.404", "10.0.100"),
        (RollForward.MAJOR, "9.0.204", "10.0.100"),
        (RollForward.LATEST_MAJOR, "8.0.100", "10.0.100"),
    ],
)
def test_matchers(policy: RollForward, base: str, expected: str | None) -> None:
    chosen = MATCHERS[policy](CATALOG, SdkVersion.parse(base))

    assert (str(chosen) if chosen is not None else None) == expected


def test_every_policy_has_a_matcher() -> None:
    assert set(MATCHERS) == set(RollForward)


@pytest.mark.parametrize(("raw", "policy"), [("latestminor", RollForward.LATEST_MINOR), (" Disable ", RollForward.DISABLE)])
def test_from_name_is_case_insensitive(raw: str, policy: RollForward) -> None:
    assert RollForward.from_name(raw) is policy


def test_from_name_unknown() -> None:
    assert RollForward.from_name("newest") is None


def test_results_never_fall_below_base() -> None:
    base = SdkVersion.parse("8.0.206")
    for policy, matcher in MATCHERS.items():
        chosen = matcher(CATALOG, base)
        assert chosen is None or chosen >= base, policy


@pytest.mark.parametrize(
    ("policy", "expected"),
    [
        (RollForward.MINOR, "8.0.403"),
        (RollForward.LATEST_MINOR, "8.0.403"),
        (RollForward.MAJOR, "10.0.100"),
        (RollForward.LATEST_MAJOR, "10.0.100"),
    ],
)
def test_minor_and_major_take_the_highest_release_in_scope(policy: RollForward, expected: str) -> None:
    catalog = [SdkVersion.parse(raw) for raw in ("8.0.106", "8.0.204", "8.0.403", "9.0.102", "10.0.100")]

    chosen = MATCHERS[policy](catalog, SdkVersion.parse("8.0.100"))

    assert str(chosen) == expected


def test_minor_and_major_share_the_latest_matchers() -> None:
    assert MATCHERS[RollForward.MINOR] is MATCHERS[RollForward.LATEST_MINOR]
    assert MATCHERS[RollForward.MAJOR] is MATCHERS[RollForward.LATEST_MAJOR]
