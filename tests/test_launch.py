# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Tests for launch process derivation."""

from __future__ import annotations

import json
from pathlib import Path
from types import MappingProxyType

import pytest

from sdklayer.build.launch import (
    InvalidProcess,
    LaunchProcess,
    ValidProcess,
    derive_launch_processes,
    dotnet_test_process,
    has_procfile,
    sanitize_process_type,
    write_launch,
)
from sdklayer.dotnet.app_source import AppSource, AppSourceKind
from sdklayer.dotnet.graph import ProjectGraph
from sdklayer.dotnet.project import ProjectDescriptor, ProjectKind


def _project(app_dir: Path, assembly: str, kind: ProjectKind, *, published: bool = True) -> ProjectDescriptor:
    project = ProjectDescriptor(
        path=app_dir / assembly / f"{assembly}.csproj",
        kind=kind,
        target_framework="net8.0",
        assembly_name=assembly,
    )
    if published:
        artifact = project.directory / "bin" / "publish" / assembly
        artifact.parent.mkdir(parents=True, exist_ok=True)
        artifact.write_bytes(b"\x7fELF")
    return project


def _graph(app_dir: Path, *projects: ProjectDescriptor) -> ProjectGraph:
    return ProjectGraph(
        source=AppSource(AppSourceKind.SOLUTION, app_dir / "App.sln"),
        roots=tuple(project.path for project in projects),
        nodes=MappingProxyType({project.path: project for project in projects}),
    )


def test_single_executable_is_the_web_process(tmp_path: Path) -> None:
    web = _project(tmp_path, "MyApp.Web", ProjectKind.WEB)
    library = _project(tmp_path, "MyApp.Core", ProjectKind.LIBRARY, published=False)

    derivation = derive_launch_processes(_graph(tmp_path, web, library), tmp_path)

    (process,) = derivation.processes
    artifact = web.directory / "bin" / "publish" / "MyApp.Web"
    assert process.type_name == "web"
    assert process.command == ("bash", "-c", f"{artifact} --urls http://0.0.0.0:$PORT")
    assert process.working_dir == artifact.parent


def test_multiple_executables_use_assembly_names(tmp_path: Path) -> None:
    web = _project(tmp_path, "MyApp.Web", ProjectKind.WEB)
    worker = _project(tmp_path, "MyApp.Worker", ProjectKind.WORKER)

    derivation = derive_launch_processes(_graph(tmp_path, web, worker), tmp_path)

    assert [process.type_name for process in derivation.processes] == ["myapp-web", "myapp-worker"]
    assert derivation.processes[1].command[-1].endswith("MyApp.Worker")


def test_unpublished_candidates_are_reported(tmp_path: Path) -> None:
    console = _project(tmp_path, "Tool", ProjectKind.CONSOLE)
    missing = _project(tmp_path, "Ghost", ProjectKind.CONSOLE, published=False)

    derivation = derive_launch_processes(_graph(tmp_path, console, missing), tmp_path)

    valid, invalid = derivation.results
    assert isinstance(valid, ValidProcess)
    assert valid.process.type_name == "web"
    assert valid.relative_source == Path("Tool/Tool.csproj")
    assert isinstance(invalid, InvalidProcess)
    assert invalid.relative_artifact == Path("Ghost/bin/publish/Ghost")


def test_test_projects_are_not_candidates(tmp_path: Path) -> None:
    tests = _project(tmp_path, "App.Tests", ProjectKind.TEST)

    assert derive_launch_processes(_graph(tmp_path, tests), tmp_path).results == ()


@pytest.mark.parametrize(
    ("name", "expected"),
    [("MyApp.Web", "myapp-web"), ("My App_Worker", "my-app-worker"), ("Ünïcode+App", "ncodeapp"), ("++", "")],
)
def test_sanitize_process_type(name: str, expected: str) -> None:
    assert sanitize_process_type(name) == expected


def test_empty_sanitized_name_falls_back(tmp_path: Path) -> None:
    first = _project(tmp_path, "++", ProjectKind.CONSOLE)
    second = _project(tmp_path, "Api", ProjectKind.WEB)

    derivation = derive_launch_processes(_graph(tmp_path, first, second), tmp_path)

    assert [process.type_name for process in derivation.processes] == ["app", "api"]


def test_write_launch(tmp_path: Path) -> None:
    processes = [
        dotnet_test_process(["dotnet", "test", "App.sln"]),
        LaunchProcess("web", ("bash", "-c", "/workspace/bin/publish/App"), working_dir=Path("/workspace/bin/publish")),
    ]

    path = write_launch(tmp_path, processes)

    assert json.loads(path.read_text(encoding="utf-8")) == {
        "processes": [
            {"type": "test", "command": ["dotnet", "test", "App.sln"], "args": [], "default": False, "working_dir": None},
            {
                "type": "web",
                "command": ["bash", "-c", "/workspace/bin/publish/App"],
                "args": [],
                "default": False,
                "working_dir": "/workspace/bin/publish",
            },
        ]
    }


def test_has_procfile(tmp_path: Path) -> None:
    assert not has_procfile(tmp_path)
    (tmp_path / "Procfile").write_text("web: ./run\n", encoding="utf-8")
    assert has_procfile(tmp_path)
