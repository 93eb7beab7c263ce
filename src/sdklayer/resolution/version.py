# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""SDK version value type with feature-band and pre-release semantics.

.NET SDK versions follow ``MAJOR.MINOR.PATCH[-PRERELEASE]`` where the hundreds
digit of ``PATCH`` is the *feature band* and the remaining two digits are the
patch level within that band (``8.0.204`` is band 2, patch 4). Pre-release
precedence follows SemVer: numeric identifiers compare numerically, others
lexically, and a shorter identifier list sorts lower when all shared
identifiers are equal.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from functools import total_ordering
from typing import Final

_VERSION_PATTERN: Final[re.Pattern[str]] = re.compile(
    r"^(?P<major>0|[1-9]\d*)\.(?P<minor>0|[1-9]\d*)\.(?P<patch>0|[1-9]\d*)"
    r"(?:-(?P<pre>[0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*))?"
    r"(?:\+[0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*)?$"
)
_PIN_PATTERN: Final[re.Pattern[str]] = re.compile(
    r"^(?P<major>0|[1-9]\d*)(?:\.(?P<minor>0|[1-9]\d*)(?:\.(?P<patch>0|[1-9]\d*)(?:\.(?P<revision>\d+))?)?)?"
    r"(?:-(?P<pre>[0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*))?"
    r"(?:\+[0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*)?$"
)
FEATURE_BAND_WIDTH: Final[int] = 100


class InvalidVersionError(ValueError):
    """Raised when a string is not a well-formed SDK version."""


def _prerelease_key(identifiers: tuple[str, ...]) -> tuple[tuple[int, int | str], ...]:
    return tuple((0, int(part)) if part.isdigit() else (1, part) for part in identifiers)


@total_ordering
@dataclass(frozen=True, slots=True)
class SdkVersion:
    """Immutable SDK version with SemVer precedence."""

    major: int
    minor: int
    patch: int
    prerelease: tuple[str, ...] = ()

    @classmethod
    def parse(cls, raw: str) -> SdkVersion:
        """Parse ``raw`` into an :class:`SdkVersion`.

        Args:
            raw: Version string such as ``"8.0.204"`` or ``"9.0.100-rc.1.24452.12"``.

        Returns:
            SdkVersion: Parsed version. Build metadata is discarded.

        Raises:
            InvalidVersionError: If ``raw`` is not a three-component version.
        """

        match = _VERSION_PATTERN.match(raw.strip())
        if match is None:
            raise InvalidVersionError(f"'{raw}' is not a valid MAJOR.MINOR.PATCH version")
        pre = match.group("pre")
        return cls(
            major=int(match.group("major")),
            minor=int(match.group("minor")),
            patch=int(match.group("patch")),
            prerelease=tuple(pre.split(".")) if pre else (),
        )

    @classmethod
    def parse_pin(cls, raw: str) -> SdkVersion:
        """Parse a pinned version that may omit components or carry a revision.

        ``8`` and ``8.0`` expand to the first feature band, ``8.0.100``. A fourth
        ``revision`` component is accepted and dropped. A pre-release label is
        only valid once ``PATCH`` is present.

        Raises:
            InvalidVersionError: If ``raw`` is not a one to four component version.
        """

        match = _PIN_PATTERN.match(raw.strip())
        if match is None or (match.group("pre") and match.group("patch") is None):
            raise InvalidVersionError(f"'{raw}' is not a valid SDK version")
        if match.group("patch") is None:
            return cls(
                major=int(match.group("major")),
                minor=int(match.group("minor") or 0),
                patch=FEATURE_BAND_WIDTH,
            )
        pre = match.group("pre")
        return cls(
            major=int(match.group("major")),
            minor=int(match.group("minor")),
            patch=int(match.group("patch")),
            prerelease=tuple(pre.split(".")) if pre else (),
        )

    @property
    def feature_band(self) -> int:
        return self.patch // FEATURE_BAND_WIDTH

    @property
    def band_patch(self) -> int:
        return self.patch % FEATURE_BAND_WIDTH

    @property
    def is_prerelease(self) -> bool:
        return bool(self.prerelease)

    @property
    def major_minor(self) -> tuple[int, int]:
        return (self.major, self.minor)

    @property
    def band_key(self) -> tuple[int, int, int]:
        return (self.major, self.minor, self.feature_band)

    def _sort_key(self) -> tuple[int, int, int, int, tuple[tuple[int, int | str], ...]]:
        # A release sorts above every pre-release of the same core version.
        return (
            self.major,
            self.minor,
            self.patch,
            0 if self.prerelease else 1,
            _prerelease_key(self.prerelease),
        )

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, SdkVersion):
            return NotImplemented
        return self._sort_key() < other._sort_key()

    def __str__(self) -> str:
        core = f"{self.major}.{self.minor}.{self.patch}"
        if self.prerelease:
            return f"{core}-{'.'.join(self.prerelease)}"
        return core


__all__ = ["FEATURE_BAND_WIDTH", "InvalidVersionError", "SdkVersion"]
