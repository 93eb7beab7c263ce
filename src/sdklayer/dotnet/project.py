# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Parse MSBuild project files and file-based apps into immutable descriptors."""

from __future__ import annotations

import os
import xml.etree.ElementTree as ET
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Final

from ..errors import ParseError
from .tfm import FrameworkFamily, InvalidMonikerError, TargetFrameworkMoniker

PROJECT_EXTENSIONS: Final[tuple[str, ...]] = (".csproj", ".vbproj", ".fsproj")
FILE_BASED_APP_EXTENSIONS: Final[tuple[str, ...]] = (".cs",)
DIRECTORY_BUILD_PROPS: Final[str] = "Directory.Build.props"
DEFAULT_SDK: Final[str] = "Microsoft.NET.Sdk"
DEFAULT_FILE_BASED_APP_FRAMEWORK: Final[str] = "net10.0"
TEST_SDK_PACKAGE: Final[str] = "microsoft.net.test.sdk"

_SDK_DIRECTIVE: Final[str] = "#:sdk "
_FRAMEWORK_DIRECTIVE: Final[str] = "#:property TargetFramework="


class ProjectKind(str, Enum):
    """Enumerate the output kinds inferred from a project's SDK and properties."""

    CONSOLE = "console"
    WEB = "web"
    WORKER = "worker"
    TEST = "test"
    LIBRARY = "library"

    @property
    def is_executable(self) -> bool:
        return self in {ProjectKind.CONSOLE, ProjectKind.WEB, ProjectKind.WORKER}


@dataclass(frozen=True, slots=True)
class PackageReference:
    """NuGet package declared by a project."""

    name: str
    version: str | None = None

    def cache_token(self) -> str:
        return f"{self.name.lower()}@{self.version or ''}"


@dataclass(frozen=True, slots=True)
class ProjectDescriptor:
    """Immutable view of a single parsed project file."""

    path: Path
    kind: ProjectKind
    target_framework: str | None
    assembly_name: str
    project_references: tuple[Path, ...] = ()
    package_references: tuple[PackageReference, ...] = ()

    @property
    def directory(self) -> Path:
        return self.path.parent


@dataclass(slots=True)
class _ProjectProperties:
    target_framework: str | None = None
    target_frameworks: str | None = None
    output_type: str | None = None
    assembly_name: str | None = None
    is_test_project: bool = False


def _local_name(tag: str) -> str:
    return tag.rsplit("}", 1)[-1]


def _children(element: ET.Element, name: str) -> Iterable[ET.Element]:
    return (child for child in element if _local_name(child.tag) == name)


def _read_xml(path: Path) -> ET.Element:
    try:
        text = path.read_text(encoding="utf-8-sig")
    except OSError as exc:
        raise ParseError(path, f"unable to read file ({exc.strerror or exc})") from exc
    try:
        return ET.fromstring(text)
    except ET.ParseError as exc:
        line = exc.position[0] if exc.position else None
        raise ParseError(path, f"invalid XML: {exc}", line=line) from exc


def _collect_properties(root: ET.Element) -> _ProjectProperties:
    """Walk every ``PropertyGroup`` in document order; the last value wins."""

    props = _ProjectProperties()
    for group in _children(root, "PropertyGroup"):
        for element in group:
            name = _local_name(element.tag)
            value = (element.text or "").strip()
            if name == "TargetFramework" and value:
                props.target_framework = value
            elif name == "TargetFrameworks" and value:
                props.target_frameworks = value
            elif name == "OutputType" and value:
                props.output_type = value
            elif name == "AssemblyName":
                # A blank value still overrides earlier names and falls back to the stem.
                props.assembly_name = value
            elif name == "IsTestProject":
                props.is_test_project = value.lower() == "true"
    return props


def _select_framework(props: _ProjectProperties) -> str | None:
    if props.target_framework:
        return props.target_framework
    if not props.target_frameworks:
        return None
    candidates = [item.strip() for item in props.target_frameworks.split(";") if item.strip()]
    parsed: list[TargetFrameworkMoniker] = []
    for candidate in candidates:
        try:
            parsed.append(TargetFrameworkMoniker.parse(candidate))
        except InvalidMonikerError:
            continue
    runtime = [moniker for moniker in parsed if moniker.family is FrameworkFamily.NETCORE]
    if runtime:
        return max(runtime, key=lambda moniker: moniker.major_minor).raw
    return candidates[0] if candidates else None


def _directory_build_props_framework(start: Path, stop: Path | None) -> str | None:
    """Return ``TargetFramework`` from the nearest ``Directory.Build.props`` above ``start``.

    Args:
        start: Directory containing the project file.
        stop: Highest directory to search; only ``start`` is searched when ``None``.

    Returns:
        str | None: Framework declared by the nearest props file, if any.
    """

    current = start
    while True:
        candidate = current / DIRECTORY_BUILD_PROPS
        if candidate.is_file():
            props = _collect_properties(_read_xml(candidate))
            return _select_framework(props)
        if stop is None or current == stop or current.parent == current:
            return None
        try:
            current.relative_to(stop)
        except ValueError:
            return None
        current = current.parent


def _sdk_name(root: ET.Element) -> str | None:
    for element in _children(root, "Sdk"):
        name = element.get("Name")
        if name:
            return name
    attribute = root.get("Sdk")
    if attribute:
        # ``Sdk="Microsoft.NET.Sdk.Web/8.0.0"`` carries an optional version suffix.
        return attribute.split(";")[0].split("/")[0].strip()
    return None


def infer_project_kind(sdk_id: str | None, output_type: str | None, *, is_test: bool = False) -> ProjectKind:
    """Infer the project kind from the SDK identifier and ``OutputType``.

    Args:
        sdk_id: Project SDK identifier, e.g. ``Microsoft.NET.Sdk.Web``.
        output_type: Value of the last ``OutputType`` property, if any.
        is_test: Whether the project is marked or referenced as a test project.

    Returns:
        ProjectKind: Inferred kind; unknown SDKs are treated as libraries.
    """

    if is_test:
        return ProjectKind.TEST
    if sdk_id in {"Microsoft.NET.Sdk.Web", "Microsoft.NET.Sdk.Razor"}:
        return ProjectKind.WEB
    if sdk_id == "Microsoft.NET.Sdk.Worker":
        return ProjectKind.WORKER
    if sdk_id == DEFAULT_SDK and output_type is not None and output_type.lower() == "exe":
        return ProjectKind.CONSOLE
    return ProjectKind.LIBRARY


def _normalise_reference(base: Path, include: str) -> Path:
    return Path(os.path.normpath(base / include.replace("\\", "/")))


def _item_references(root: ET.Element, base: Path) -> tuple[tuple[Path, ...], tuple[PackageReference, ...]]:
    projects: list[Path] = []
    packages: list[PackageReference] = []
    for group in _children(root, "ItemGroup"):
        for element in group:
            name = _local_name(element.tag)
            include = (element.get("Include") or "").strip()
            if not include:
                continue
            if name == "ProjectReference":
                projects.append(_normalise_reference(base, include))
            elif name == "PackageReference":
                version = element.get("Version")
                if version is None:
                    nested = next(_children(element, "Version"), None)
                    version = (nested.text or "").strip() if nested is not None else None
                packages.append(PackageReference(name=include, version=version or None))
    return tuple(projects), tuple(packages)


def load_project(path: Path, *, search_root: Path | None = None) -> ProjectDescriptor:
    """Parse the MSBuild project file at ``path``.

    Args:
        path: Project file (``.csproj``, ``.vbproj`` or ``.fsproj``).
        search_root: Highest directory searched for ``Directory.Build.props``.

    Returns:
        ProjectDescriptor: Parsed descriptor.

    Raises:
        ParseError: If the file is unreadable or not well-formed XML.
    """

    root = _read_xml(path)
    props = _collect_properties(root)
    project_refs, package_refs = _item_references(root, path.parent)

    target_framework = _select_framework(props)
    if target_framework is None:
        target_framework = _directory_build_props_framework(path.parent, search_root)

    is_test = props.is_test_project or any(ref.name.lower() == TEST_SDK_PACKAGE for ref in package_refs)
    assembly_name = props.assembly_name if props.assembly_name else path.stem
    # A project that lists itself would otherwise be queued again by the graph walk.
    own_path = Path(os.path.normpath(path))
    return ProjectDescriptor(
        path=path,
        kind=infer_project_kind(_sdk_name(root), props.output_type, is_test=is_test),
        target_framework=target_framework,
        assembly_name=assembly_name,
        project_references=tuple(ref for ref in project_refs if ref != own_path),
        package_references=package_refs,
    )


def load_file_based_app(path: Path, *, search_root: Path | None = None) -> ProjectDescriptor:
    """Parse a single-file C# app using its ``#:`` directives.

    Only the first ``#:sdk`` and ``#:property TargetFramework=`` directives count.
    The assembly name is always the file stem.
    """

    try:
        content = path.read_text(encoding="utf-8-sig")
    except OSError as exc:
        raise ParseError(path, f"unable to read file ({exc.strerror or exc})") from exc

    sdk_id: str | None = None
    target_framework: str | None = None
    for line in content.splitlines():
        stripped = line.strip()
        if sdk_id is None and stripped.startswith(_SDK_DIRECTIVE):
            sdk_id = stripped[len(_SDK_DIRECTIVE) :].strip()
        if target_framework is None and stripped.startswith(_FRAMEWORK_DIRECTIVE):
            target_framework = stripped[len(_FRAMEWORK_DIRECTIVE) :].strip()
        if sdk_id is not None and target_framework is not None:
            break

    if target_framework is None:
        target_framework = _directory_build_props_framework(path.parent, search_root) or DEFAULT_FILE_BASED_APP_FRAMEWORK
    return ProjectDescriptor(
        path=path,
        kind=infer_project_kind(sdk_id or DEFAULT_SDK, "Exe"),
        target_framework=target_framework,
        assembly_name=path.stem,
    )


def is_project_file(path: Path) -> bool:
    return path.suffix.lower() in PROJECT_EXTENSIONS


def package_references(projects: Sequence[ProjectDescriptor]) -> tuple[PackageReference, ...]:
    """Return the de-duplicated, sorted package references across ``projects``."""

    unique = {ref for project in projects for ref in project.package_references}
    return tuple(sorted(unique, key=lambda ref: (ref.name.lower(), ref.version or "")))


__all__ = [
    "DIRECTORY_BUILD_PROPS",
    "FILE_BASED_APP_EXTENSIONS",
    "PROJECT_EXTENSIONS",
    "PackageReference",
    "ProjectDescriptor",
    "ProjectKind",
    "infer_project_kind",
    "is_project_file",
    "load_file_based_app",
    "load_project",
    "package_references",
]
