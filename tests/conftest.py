# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Shared pytest fixtures."""

from __future__ import annotations

import hashlib
import io
import tarfile
from collections.abc import Callable, Iterable, Iterator, Sequence
from dataclasses import dataclass, field
from pathlib import Path

import pytest
import requests

from sdklayer.console import get_console_manager
from sdklayer.resolution.catalog import CatalogEntry, ReleaseCatalog

ProjectWriter = Callable[..., Path]
SolutionWriter = Callable[[Path, Sequence[str]], Path]


def _render_project(
    *,
    sdk: str,
    target_framework: str | None,
    output_type: str | None,
    assembly_name: str | None,
    references: Sequence[str],
    packages: Sequence[tuple[str, str]],
) -> str:
    properties: list[str] = []
    if target_framework is not None:
        properties.append(f"    <TargetFramework>{target_framework}</TargetFramework>")
    if output_type is not None:
        properties.append(f"    <OutputType>{output_type}</OutputType>")
    if assembly_name is not None:
        properties.append(f"    <AssemblyName>{assembly_name}</AssemblyName>")
    items: list[str] = []
    items.extend(f'    <ProjectReference Include="{reference}" />' for reference in references)
    items.extend(f'    <PackageReference Include="{name}" Version="{version}" />' for name, version in packages)
    item_group = "  <ItemGroup>\n" + "\n".join(items) + "\n  </ItemGroup>\n" if items else ""
    return (
        f'<Project Sdk="{sdk}">\n'
        "  <PropertyGroup>\n" + "\n".join(properties) + "\n  </PropertyGroup>\n"
        f"{item_group}"
        "</Project>\n"
    )


@pytest.fixture
def write_project() -> ProjectWriter:
    """Return a helper that writes a minimal SDK-style project file."""

    def _write(
        path: Path,
        *,
        target_framework: str | None = "net8.0",
        sdk: str = "Microsoft.NET.Sdk",
        output_type: str | None = None,
        assembly_name: str | None = None,
        references: Sequence[str] = (),
        packages: Sequence[tuple[str, str]] = (),
    ) -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(
            _render_project(
                sdk=sdk,
                target_framework=target_framework,
                output_type=output_type,
                assembly_name=assembly_name,
                references=references,
                packages=packages,
            ),
            encoding="utf-8",
        )
        return path

    return _write


@pytest.fixture
def write_solution() -> SolutionWriter:
    """Return a helper that writes a classic ``.sln`` listing ``projects`` (backslash separated)."""

    def _write(path: Path, projects: Sequence[str]) -> Path:
        lines = [
            "Microsoft Visual Studio Solution File, Format Version 12.00",
            "# Visual Studio Version 17",
        ]
        for index, project in enumerate(projects):
            name = Path(project.replace("\\", "/")).stem
            guid = f"{{00000000-0000-0000-0000-{index:012d}}}"
            lines.append(
                f'Project("{{FAE04EC0-301F-11D3-BF4B-00C04F79EFBC}}") = "{name}", "{project}", "{guid}"'
            )
            lines.append("EndProject")
        lines.append("Global")
        lines.append("EndGlobal")
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text("\n".join(lines) + "\n", encoding="utf-8")
        return path

    return _write


def make_entry(version: str, *, os: str = "linux", arch: str = "amd64", payload: bytes | None = None) -> CatalogEntry:
    body = payload if payload is not None else f"sdk-{version}-{os}-{arch}".encode()
    return CatalogEntry.model_validate(
        {
            "version": version,
            "os": os,
            "arch": arch,
            "url": f"https://example.invalid/dotnet-sdk-{version}-{os}-{arch}.tar.gz",
            "checksum": f"sha256:{hashlib.sha256(body).hexdigest()}",
        }
    )


@pytest.fixture
def catalog_factory() -> Callable[..., ReleaseCatalog]:
    """Return a helper building a catalog from version strings (or ready-made entries)."""

    def _build(*versions: str | CatalogEntry, os: str = "linux", arch: str = "amd64") -> ReleaseCatalog:
        entries = tuple(
            item if isinstance(item, CatalogEntry) else make_entry(item, os=os, arch=arch) for item in versions
        )
        return ReleaseCatalog(entries=entries)

    return _build


def build_tarball(files: dict[str, bytes]) -> bytes:
    """Return gzipped tar bytes containing ``files`` (name -> content)."""

    buffer = io.BytesIO()
    with tarfile.open(fileobj=buffer, mode="w:gz") as archive:
        for name, content in files.items():
            info = tarfile.TarInfo(name=name)
            info.size = len(content)
            info.mode = 0o755
            archive.addfile(info, io.BytesIO(content))
    return buffer.getvalue()


@pytest.fixture
def tarball_factory() -> Callable[[dict[str, bytes]], bytes]:
    return build_tarball


@pytest.fixture
def entry_factory() -> Callable[..., CatalogEntry]:
    return make_entry


@pytest.fixture
def sdk_tarball() -> bytes:
    return build_tarball(
        {
            "dotnet": b"#!/bin/sh\n",
            "sdk/8.0.204/dotnet.dll": b"sdk",
            "host/fxr/8.0.4/libhostfxr.so": b"fxr",
            "shared/Microsoft.NETCore.App/8.0.4/System.dll": b"runtime",
            "LICENSE.txt": b"MIT",
            "ThirdPartyNotices.txt": b"notices",
        }
    )


class FakeResponse:
    """Stand-in for a streaming :class:`requests.Response`."""

    def __init__(self, body: bytes = b"", *, status: int = 200, chunk_size: int = 7) -> None:
        self.body = body
        self.status_code = status
        self.chunk_size = chunk_size
        self.closed = False

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            response = requests.Response()
            response.status_code = self.status_code
            raise requests.HTTPError(f"{self.status_code} error", response=response)

    def iter_content(self, chunk_size: int = 1) -> Iterator[bytes]:
        del chunk_size
        for start in range(0, len(self.body), self.chunk_size):
            yield self.body[start : start + self.chunk_size]

    def close(self) -> None:
        self.closed = True


Outcome = bytes | int | Exception


@dataclass
class FakeHttp:
    """Scripted HTTP GET.

    Each call pops the next queued outcome: ``bytes`` become a 200 response with
    that body, an ``int`` becomes an empty response with that status, and an
    exception is raised as-is.
    """

    outcomes: list[Outcome] = field(default_factory=list)
    calls: list[str] = field(default_factory=list)
    responses: list[FakeResponse] = field(default_factory=list)

    def __call__(self, url: str, *, timeout: float, stream: bool) -> FakeResponse:
        assert stream
        self.calls.append(url)
        if not self.outcomes:
            raise AssertionError(f"unexpected download of {url}")
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        if isinstance(outcome, int):
            response = FakeResponse(status=outcome)
        else:
            response = FakeResponse(outcome)
        self.responses.append(response)
        return response

    def queue(self, *outcomes: Outcome) -> FakeHttp:
        self.outcomes.extend(outcomes)
        return self


@pytest.fixture
def fake_http() -> FakeHttp:
    return FakeHttp()


@dataclass
class SleepRecorder:
    delays: list[float] = field(default_factory=list)

    def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


@pytest.fixture
def no_sleep() -> SleepRecorder:
    return SleepRecorder()


@pytest.fixture(autouse=True)
def _fresh_consoles() -> Iterable[None]:
    """Rebind Rich consoles to the streams captured by each test."""

    get_console_manager().reset()
    yield
    get_console_manager().reset()
