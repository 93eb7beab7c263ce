# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Derive launch processes from published executables."""

from __future__ import annotations

import re
from collections.abc import Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Final

from ..dotnet.graph import ProjectGraph
from ..dotnet.project import ProjectDescriptor, ProjectKind
from ..layers.records import write_json
from .commands import PUBLISH_DIR

WEB_PROCESS_TYPE: Final[str] = "web"
TEST_PROCESS_TYPE: Final[str] = "test"
FALLBACK_PROCESS_TYPE: Final[str] = "app"
PROCFILE: Final[str] = "Procfile"
LAUNCH_FILE: Final[str] = "launch.json"
WEB_URLS_SUFFIX: Final[str] = " --urls http://0.0.0.0:$PORT"

_SEPARATORS: Final[re.Pattern[str]] = re.compile(r"[ ._]")
_DISALLOWED: Final[re.Pattern[str]] = re.compile(r"[^a-z0-9-]")


@dataclass(frozen=True, slots=True)
class LaunchProcess:
    """Named, startable command registered for the built image."""

    type_name: str
    command: tuple[str, ...]
    args: tuple[str, ...] = ()
    working_dir: Path | None = None
    default: bool = False

    def to_payload(self) -> dict[str, object]:
        return {
            "type": self.type_name,
            "command": list(self.command),
            "args": list(self.args),
            "default": self.default,
            "working_dir": str(self.working_dir) if self.working_dir is not None else None,
        }


@dataclass(frozen=True, slots=True)
class ValidProcess:
    """Executable project whose published artifact exists."""

    process: LaunchProcess
    relative_source: Path
    relative_artifact: Path


@dataclass(frozen=True, slots=True)
class InvalidProcess:
    """Executable project with no published artifact."""

    relative_source: Path
    relative_artifact: Path


ProcessDetectionResult = ValidProcess | InvalidProcess


@dataclass(frozen=True, slots=True)
class LaunchDerivation:
    results: tuple[ProcessDetectionResult, ...] = field(default_factory=tuple)

    @property
    def processes(self) -> tuple[LaunchProcess, ...]:
        return tuple(result.process for result in self.results if isinstance(result, ValidProcess))


def sanitize_process_type(name: str) -> str:
    """Return ``name`` as a process type slug.

    Lower-cases the name, replaces spaces, periods and underscores with
    hyphens and drops every other character outside ``[a-z0-9-]``.

    >>> sanitize_process_type("MyApp.Web")
    'myapp-web'
    """

    return _DISALLOWED.sub("", _SEPARATORS.sub("-", name.lower()))


def executable_path(project: ProjectDescriptor) -> Path:
    return project.directory / PUBLISH_DIR / project.assembly_name


def _relative(path: Path, app_dir: Path) -> Path:
    try:
        return path.relative_to(app_dir)
    except ValueError:
        return path


def _launch_process(project: ProjectDescriptor, type_name: str) -> LaunchProcess:
    artifact = executable_path(project)
    command = str(artifact)
    if project.kind is ProjectKind.WEB:
        command += WEB_URLS_SUFFIX
    return LaunchProcess(
        type_name=type_name,
        command=("bash", "-c", command),
        working_dir=artifact.parent,
    )


def derive_launch_processes(graph: ProjectGraph, app_dir: Path) -> LaunchDerivation:
    """Map published executables in ``graph`` to launch processes.

    When exactly one executable was published its process type is ``web``;
    otherwise each process type is derived from the assembly name.

    Args:
        graph: Project graph that was published.
        app_dir: Application root used to render relative paths.

    Returns:
        LaunchDerivation: One result per executable project, in graph order.
    """

    candidates = [project for project in graph.projects if project.kind.is_executable]
    published = [project for project in candidates if executable_path(project).is_file()]
    single = len(published) == 1

    results: list[ProcessDetectionResult] = []
    for project in candidates:
        relative_source = _relative(project.path, app_dir)
        relative_artifact = _relative(executable_path(project), app_dir)
        if project not in published:
            results.append(InvalidProcess(relative_source, relative_artifact))
            continue
        type_name = WEB_PROCESS_TYPE if single else sanitize_process_type(project.assembly_name)
        process = _launch_process(project, type_name or FALLBACK_PROCESS_TYPE)
        results.append(ValidProcess(process, relative_source, relative_artifact))
    return LaunchDerivation(results=tuple(results))


def dotnet_test_process(command: Sequence[str]) -> LaunchProcess:
    return LaunchProcess(type_name=TEST_PROCESS_TYPE, command=tuple(command))


def has_procfile(app_dir: Path) -> bool:
    return (app_dir / PROCFILE).exists()


def write_launch(layers_dir: Path, processes: Sequence[LaunchProcess]) -> Path:
    """Persist ``processes`` to ``layers_dir/launch.json`` and return the file path."""

    path = layers_dir / LAUNCH_FILE
    write_json(path, {"processes": [process.to_payload() for process in processes]})
    return path


__all__ = [
    "LAUNCH_FILE",
    "PROCFILE",
    "TEST_PROCESS_TYPE",
    "WEB_PROCESS_TYPE",
    "InvalidProcess",
    "LaunchDerivation",
    "LaunchProcess",
    "ProcessDetectionResult",
    "ValidProcess",
    "derive_launch_processes",
    "dotnet_test_process",
    "executable_path",
    "has_procfile",
    "sanitize_process_type",
    "write_launch",
]
