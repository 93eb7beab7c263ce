# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Target framework moniker (TFM) parsing."""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Final

_DOTTED_PATTERN: Final[re.Pattern[str]] = re.compile(r"^(?P<prefix>netcoreapp|netstandard|net)(?P<major>\d+)\.(?P<minor>\d+)$")
_FRAMEWORK_PATTERN: Final[re.Pattern[str]] = re.compile(r"^net(?P<digits>\d{2,3})$")
_FIRST_NETCORE_NET_MAJOR: Final[int] = 5


class FrameworkFamily(str, Enum):
    """Enumerate runtime families a moniker can belong to."""

    NETCORE = "netcore"
    NETSTANDARD = "netstandard"
    NETFRAMEWORK = "netframework"

    @property
    def is_runtime(self) -> bool:
        """Return ``True`` when the family implies an SDK/runtime requirement."""

        return self is not FrameworkFamily.NETSTANDARD


class InvalidMonikerError(ValueError):
    """Raised when a moniker cannot be parsed; ``reason`` completes the sentence."""

    def __init__(self, moniker: str, reason: str) -> None:
        super().__init__(f"`{moniker}` {reason}")
        self.moniker = moniker
        self.reason = reason


@dataclass(frozen=True, slots=True)
class TargetFrameworkMoniker:
    """Parsed ``{family}{major}.{minor}`` moniker such as ``net8.0``."""

    raw: str
    family: FrameworkFamily
    major: int
    minor: int

    @classmethod
    def parse(cls, raw: str) -> TargetFrameworkMoniker:
        """Parse ``raw`` into a moniker.

        Args:
            raw: Moniker text taken from a project file.

        Returns:
            TargetFrameworkMoniker: Parsed moniker.

        Raises:
            InvalidMonikerError: If ``raw`` is malformed, platform specific, or
                names a ``net`` version that does not exist.
        """

        text = raw.strip().lower()
        if not text:
            raise InvalidMonikerError(raw, "is empty")
        if "-" in text:
            raise InvalidMonikerError(raw, "targets a platform-specific framework, which is not supported")

        dotted = _DOTTED_PATTERN.match(text)
        if dotted is not None:
            prefix = dotted.group("prefix")
            major = int(dotted.group("major"))
            minor = int(dotted.group("minor"))
            if prefix == "netstandard":
                family = FrameworkFamily.NETSTANDARD
            elif prefix == "netcoreapp" or major >= _FIRST_NETCORE_NET_MAJOR:
                family = FrameworkFamily.NETCORE
            else:
                raise InvalidMonikerError(raw, "is not a known framework version")
            return cls(raw=text, family=family, major=major, minor=minor)

        legacy = _FRAMEWORK_PATTERN.match(text)
        if legacy is not None:
            digits = legacy.group("digits")
            return cls(
                raw=text,
                family=FrameworkFamily.NETFRAMEWORK,
                major=int(digits[0]),
                minor=int(digits[1:]),
            )
        raise InvalidMonikerError(raw, "is not a valid target framework moniker")

    @property
    def major_minor(self) -> tuple[int, int]:
        return (self.major, self.minor)

    def __str__(self) -> str:
        return self.raw


__all__ = ["FrameworkFamily", "InvalidMonikerError", "TargetFrameworkMoniker"]
