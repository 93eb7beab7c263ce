# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Derive the single SDK version requirement for a project graph."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Final

from ..dotnet.global_json import SdkPin
from ..dotnet.graph import ProjectGraph
from ..dotnet.project import ProjectDescriptor
from ..dotnet.tfm import FrameworkFamily, InvalidMonikerError, TargetFrameworkMoniker
from ..errors import ConflictingFrameworkError, InvalidFrameworkError, NoFrameworkDetectedError
from .policies import DEFAULT_ROLL_FORWARD, RollForward, describe
from .version import FEATURE_BAND_WIDTH, SdkVersion

FLOOR_FEATURE_BAND: Final[int] = 1


@dataclass(frozen=True, slots=True)
class FrameworkFloor:
    """Highest runtime moniker found across the graph."""

    moniker: TargetFrameworkMoniker
    path: Path

    @property
    def major_minor(self) -> tuple[int, int]:
        return self.moniker.major_minor


@dataclass(frozen=True, slots=True)
class VersionRequirement:
    """Pinned version (if any), roll-forward policy and inferred floor."""

    version: SdkVersion | None
    roll_forward: RollForward
    floor: FrameworkFloor

    @property
    def is_pinned(self) -> bool:
        return self.version is not None

    @property
    def base(self) -> SdkVersion:
        """Return the version matching starts from: the pin, else ``MAJOR.MINOR.100`` of the floor."""

        if self.version is not None:
            return self.version
        major, minor = self.floor.major_minor
        return SdkVersion(major, minor, FLOOR_FEATURE_BAND * FEATURE_BAND_WIDTH)

    def __str__(self) -> str:
        return describe(self.roll_forward, self.base)


def _parse_moniker(project: ProjectDescriptor) -> TargetFrameworkMoniker | None:
    if project.target_framework is None:
        return None
    try:
        return TargetFrameworkMoniker.parse(project.target_framework)
    except InvalidMonikerError as exc:
        raise InvalidFrameworkError(project.path, exc.moniker, exc.reason) from exc


def infer_framework_floor(projects: Sequence[ProjectDescriptor]) -> FrameworkFloor:
    """Return the highest runtime moniker declared across ``projects``.

    ``netstandard`` libraries do not constrain the SDK and are skipped.

    Args:
        projects: Every project in the graph.

    Returns:
        FrameworkFloor: Highest moniker (by major, then minor) and its project.

    Raises:
        InvalidFrameworkError: If a moniker is malformed, or the graph only
            targets .NET Framework.
        ConflictingFrameworkError: If runtime families are mixed.
        NoFrameworkDetectedError: If no project declares a runtime moniker.
    """

    runtime: list[tuple[ProjectDescriptor, TargetFrameworkMoniker]] = []
    for project in projects:
        moniker = _parse_moniker(project)
        if moniker is not None and moniker.family.is_runtime:
            runtime.append((project, moniker))

    if not runtime:
        raise NoFrameworkDetectedError([project.path for project in projects])

    families = {moniker.family for _, moniker in runtime}
    if len(families) > 1:
        raise ConflictingFrameworkError([(project.path, moniker.raw) for project, moniker in runtime])
    if families == {FrameworkFamily.NETFRAMEWORK}:
        project, moniker = runtime[0]
        raise InvalidFrameworkError(project.path, moniker.raw, "targets .NET Framework, which cannot be built here")

    project, moniker = max(runtime, key=lambda item: item[1].major_minor)
    return FrameworkFloor(moniker=moniker, path=project.path)


def derive_requirement(graph: ProjectGraph, pin: SdkPin | None) -> VersionRequirement:
    """Combine the optional ``global.json`` pin with the graph's framework floor.

    Args:
        graph: Parsed project graph.
        pin: Pin read from ``global.json``, if present.

    Returns:
        VersionRequirement: Requirement handed to the catalog matcher.
    """

    floor = infer_framework_floor(graph.projects)
    if pin is None:
        return VersionRequirement(version=None, roll_forward=DEFAULT_ROLL_FORWARD, floor=floor)
    return VersionRequirement(
        version=pin.version,
        roll_forward=pin.roll_forward or DEFAULT_ROLL_FORWARD,
        floor=floor,
    )


__all__ = [
    "FLOOR_FEATURE_BAND",
    "FrameworkFloor",
    "VersionRequirement",
    "derive_requirement",
    "infer_framework_floor",
]
