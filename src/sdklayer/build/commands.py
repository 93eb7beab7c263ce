# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Argument lists for the ``dotnet`` commands run during a build."""

from __future__ import annotations

import tempfile
from pathlib import Path
from typing import Final

from ..config.models import VerbosityLevel

DOTNET: Final[str] = "dotnet"
PUBLISH_DIR: Final[Path] = Path("bin") / "publish"
TOOL_MANIFEST: Final[Path] = Path(".config") / "dotnet-tools.json"
ARTIFACTS_DIR_NAME: Final[str] = "build_artifacts"


def _common_options(configuration: str | None, verbosity: VerbosityLevel | None) -> list[str]:
    options: list[str] = []
    if configuration:
        options.extend(["--configuration", configuration])
    if verbosity is not None:
        options.extend(["--verbosity", verbosity.value])
    return options


def dotnet_publish_command(
    path: Path,
    runtime_identifier: str,
    *,
    configuration: str | None = None,
    verbosity: VerbosityLevel | None = None,
    artifacts_root: Path | None = None,
) -> list[str]:
    """Return ``dotnet publish`` arguments for the solution, project or file-based app at ``path``.

    Args:
        path: Root file selected for the build.
        runtime_identifier: RID passed to ``--runtime``.
        configuration: Optional MSBuild configuration, e.g. ``Release``.
        verbosity: Optional MSBuild verbosity level.
        artifacts_root: Directory receiving intermediate build artifacts; the
            system temporary directory when omitted.

    Returns:
        list[str]: Command and arguments.
    """

    root = Path(tempfile.gettempdir()) if artifacts_root is None else artifacts_root
    return [
        DOTNET,
        "publish",
        str(path),
        "--runtime",
        runtime_identifier,
        f"-p:PublishDir={PUBLISH_DIR.as_posix()}",
        "--artifacts-path",
        str(root / ARTIFACTS_DIR_NAME),
        *_common_options(configuration, verbosity),
    ]


def dotnet_test_command(
    path: Path,
    *,
    configuration: str | None = None,
    verbosity: VerbosityLevel | None = None,
) -> list[str]:
    """Return the ``dotnet test`` command registered as the ``test`` process.

    The root is referenced by file name because the process runs from the app directory.
    """

    return [DOTNET, "test", path.name, *_common_options(configuration, verbosity)]


def find_tool_manifest(app_dir: Path) -> Path | None:
    manifest = app_dir / TOOL_MANIFEST
    return manifest if manifest.is_file() else None


def tool_restore_command(manifest: Path) -> list[str]:
    return [DOTNET, "tool", "restore", "--tool-manifest", str(manifest)]


__all__ = [
    "ARTIFACTS_DIR_NAME",
    "DOTNET",
    "PUBLISH_DIR",
    "TOOL_MANIFEST",
    "dotnet_publish_command",
    "dotnet_test_command",
    "find_tool_manifest",
    "tool_restore_command",
]
