# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""BDD scenarios and steps for SDK resolution and launch registration."""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType

from pytest_bdd import given, parsers, scenario, then, when

from sdklayer.build.launch import LaunchProcess, derive_launch_processes, executable_path
from sdklayer.build.process import CommandResult
from sdklayer.dotnet.app_source import AppSource, AppSourceKind, resolve_app_source
from sdklayer.dotnet.global_json import read_global_json
from sdklayer.dotnet.graph import ProjectGraph, load_project_graph
from sdklayer.dotnet.project import ProjectDescriptor, ProjectKind
from sdklayer.dotnet.runtime_identifier import TargetPlatform
from sdklayer.errors import AmbiguousRootError, SdkLayerError
from sdklayer.pipeline import BuildContext, build
from sdklayer.resolution.catalog import ReleaseCatalog
from sdklayer.resolution.matcher import ResolvedRelease, resolve_release
from sdklayer.resolution.requirement import VersionRequirement, derive_requirement


@scenario("resolution.feature", "Framework floor drives the default policy")
def test_framework_floor_default_policy() -> None:
    """Execute scenario via pytest-bdd."""


@scenario("resolution.feature", "Patch policy never leaves the feature band")
def test_patch_policy_stays_in_band() -> None:
    """Execute scenario via pytest-bdd."""


@scenario("resolution.feature", "Two solutions without a designation abort the build")
def test_two_solutions_abort() -> None:
    """Execute scenario via pytest-bdd."""


@scenario("resolution.feature", "A single published executable becomes the web process")
def test_single_executable_is_web() -> None:
    """Execute scenario via pytest-bdd."""


@scenario("resolution.feature", "Several published executables are named after their assemblies")
def test_several_executables_named_by_assembly() -> None:
    """Execute scenario via pytest-bdd."""


@dataclass
class Resolution:
    requirement: VersionRequirement
    release: ResolvedRelease


def _split(values: str) -> list[str]:
    return [value.strip() for value in values.split(",") if value.strip()]


@given(
    parsers.parse('a solution referencing projects targeting "{first}" and "{second}"'),
    target_fixture="app_dir",
)
def solution_with_two_projects(tmp_path: Path, write_project, write_solution, first: str, second: str) -> Path:
    app_dir = tmp_path / "app"
    entries = []
    for index, framework in enumerate((first, second), start=1):
        write_project(app_dir / f"Project{index}" / f"Project{index}.csproj", target_framework=framework)
        entries.append(f"Project{index}\\Project{index}.csproj")
    write_solution(app_dir / "App.sln", entries)
    return app_dir


@given("no global.json file")
def no_global_json(app_dir: Path) -> None:
    assert not (app_dir / "global.json").exists()


@given(parsers.parse('a global.json pinning "{version}" with roll forward "{policy}"'))
def global_json_pin(app_dir: Path, version: str, policy: str) -> None:
    (app_dir / "global.json").write_text(
        json.dumps({"sdk": {"version": version, "rollForward": policy}}),
        encoding="utf-8",
    )


@given(parsers.parse('a catalog containing "{versions}"'), target_fixture="catalog")
def catalog_with_versions(catalog_factory, versions: str) -> ReleaseCatalog:
    return catalog_factory(*_split(versions))


@given(parsers.parse('an application root with solutions "{first}" and "{second}"'), target_fixture="app_dir")
def root_with_two_solutions(tmp_path: Path, write_project, write_solution, first: str, second: str) -> Path:
    app_dir = tmp_path / "app"
    write_project(app_dir / "Web" / "Web.csproj", sdk="Microsoft.NET.Sdk.Web")
    for name in (first, second):
        write_solution(app_dir / name, ["Web\\Web.csproj"])
    return app_dir


@given(parsers.parse('published executables "{names}"'), target_fixture="graph")
def published_executables(tmp_path: Path, names: str) -> ProjectGraph:
    projects = []
    for name in _split(names):
        kind = ProjectKind.WORKER if name.endswith("Worker") else ProjectKind.WEB
        project = ProjectDescriptor(
            path=tmp_path / name / f"{name}.csproj",
            kind=kind,
            target_framework="net8.0",
            assembly_name=name,
        )
        artifact = executable_path(project)
        artifact.parent.mkdir(parents=True, exist_ok=True)
        artifact.write_bytes(b"\x7fELF")
        projects.append(project)
    return ProjectGraph(
        source=AppSource(AppSourceKind.SOLUTION, tmp_path / "App.sln"),
        roots=tuple(project.path for project in projects),
        nodes=MappingProxyType({project.path: project for project in projects}),
    )


@when("the SDK release is resolved", target_fixture="resolution")
def resolve(app_dir: Path, catalog: ReleaseCatalog) -> Resolution:
    source = resolve_app_source(app_dir, None)
    graph = load_project_graph(source, app_dir=app_dir)
    requirement = derive_requirement(graph, read_global_json(app_dir))
    release = resolve_release(requirement, catalog, TargetPlatform("linux", "amd64"))
    return Resolution(requirement=requirement, release=release)


@when("the build runs", target_fixture="outcome")
def run_build(tmp_path: Path, app_dir: Path, catalog: ReleaseCatalog, fake_http, no_sleep) -> SdkLayerError | None:
    def refuse(*args: object, **kwargs: object) -> CommandResult:
        raise AssertionError("no command may run")

    context = BuildContext(
        app_dir=app_dir,
        layers_dir=tmp_path / "layers",
        env={"CNB_TARGET_OS": "linux", "CNB_TARGET_ARCH": "amd64"},
        use_color=False,
        catalog=catalog,
        http_get=fake_http,
        sleep=no_sleep,
        runner=refuse,
    )
    try:
        build(context)
    except SdkLayerError as exc:
        return exc
    return None


@when("launch processes are derived", target_fixture="processes")
def derive(tmp_path: Path, graph: ProjectGraph) -> tuple[LaunchProcess, ...]:
    return derive_launch_processes(graph, tmp_path).processes


@then(parsers.parse('the inferred floor is "{floor}"'))
def assert_floor(resolution: Resolution, floor: str) -> None:
    major, minor = resolution.requirement.floor.major_minor
    assert f"{major}.{minor}" == floor


@then(parsers.parse('the resolved version is "{version}"'))
def assert_resolved(resolution: Resolution, version: str) -> None:
    assert str(resolution.release.version) == version
    assert resolution.release.architecture == "amd64"


@then(parsers.parse('the build fails with an ambiguous root naming "{first}" and "{second}"'))
def assert_ambiguous(outcome: SdkLayerError | None, first: str, second: str) -> None:
    assert isinstance(outcome, AmbiguousRootError)
    assert first in outcome.details()
    assert second in outcome.details()


@then("no download was attempted")
def assert_no_download(fake_http) -> None:
    assert fake_http.calls == []


@then(parsers.parse('the process types are "{types}"'))
def assert_process_types(processes: tuple[LaunchProcess, ...], types: str) -> None:
    assert [process.type_name for process in processes] == _split(types)
