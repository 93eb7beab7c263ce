# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Map target platforms onto .NET runtime identifiers (RIDs)."""

from __future__ import annotations

import os
import platform
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Final

from ..errors import ConfigError

SUPPORTED_OS: Final[tuple[str, ...]] = ("linux", "darwin")
SUPPORTED_ARCH: Final[tuple[str, ...]] = ("amd64", "arm64")

_RID_OS: Final[dict[str, str]] = {"linux": "linux", "darwin": "osx"}
_RID_ARCH: Final[dict[str, str]] = {"amd64": "x64", "arm64": "arm64"}


def normalize_architecture(machine: str) -> str:
    """Return the catalog architecture name for a raw machine string.

    Args:
        machine: Value such as ``platform.machine()`` or ``CNB_TARGET_ARCH``.

    Returns:
        str: ``amd64`` or ``arm64`` for known aliases, otherwise the lower-cased input.
    """

    normalized = machine.strip().lower()
    if normalized in {"x86_64", "amd64", "x64"}:
        return "amd64"
    if normalized in {"aarch64", "arm64"}:
        return "arm64"
    return normalized


@dataclass(frozen=True, slots=True)
class TargetPlatform:
    """Operating system and architecture the build produces output for."""

    os: str
    arch: str

    @property
    def runtime_identifier(self) -> str:
        """Return the RID, e.g. ``linux-x64``."""

        return f"{_RID_OS[self.os]}-{_RID_ARCH[self.arch]}"

    @classmethod
    def create(cls, os_name: str, arch: str) -> TargetPlatform:
        """Validate and build a platform from raw names.

        Raises:
            ConfigError: If the OS or architecture is unsupported.
        """

        os_value = os_name.strip().lower()
        arch_value = normalize_architecture(arch)
        if os_value not in SUPPORTED_OS:
            raise ConfigError(f"Unsupported target OS '{os_name}' (supported: {', '.join(SUPPORTED_OS)})")
        if arch_value not in SUPPORTED_ARCH:
            raise ConfigError(f"Unsupported target architecture '{arch}' (supported: {', '.join(SUPPORTED_ARCH)})")
        return cls(os=os_value, arch=arch_value)


def detect_target_platform(env: Mapping[str, str] | None = None) -> TargetPlatform:
    """Return the target platform from ``CNB_TARGET_OS``/``CNB_TARGET_ARCH`` or the host."""

    source = os.environ if env is None else env
    os_name = source.get("CNB_TARGET_OS") or platform.system()
    arch = source.get("CNB_TARGET_ARCH") or platform.machine()
    return TargetPlatform.create(os_name, arch)


__all__ = [
    "SUPPORTED_ARCH",
    "SUPPORTED_OS",
    "TargetPlatform",
    "detect_target_platform",
    "normalize_architecture",
]
