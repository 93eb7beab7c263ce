# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Select the root solution, project or file-based app to build."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from ..errors import AmbiguousRootError, AppSourceNotFoundError, ConfigError, ConfiguredSolutionNotFoundError
from .project import FILE_BASED_APP_EXTENSIONS, PROJECT_EXTENSIONS
from .solution import SOLUTION_EXTENSIONS


class AppSourceKind(str, Enum):
    """Enumerate the kinds of root file a build can start from."""

    SOLUTION = "solution"
    PROJECT = "project"
    FILE_BASED_APP = "file-based app"


@dataclass(frozen=True, slots=True)
class AppSource:
    """Root file chosen for the build."""

    kind: AppSourceKind
    path: Path


def list_root_files(directory: Path, extensions: Sequence[str]) -> list[Path]:
    """Return regular files directly inside ``directory`` with one of ``extensions``.

    Args:
        directory: Directory to scan (not recursively).
        extensions: Lower-case suffixes including the leading dot.

    Returns:
        list[Path]: Matching files sorted by name.
    """

    if not directory.is_dir():
        return []
    return sorted(
        entry for entry in directory.iterdir() if entry.is_file() and entry.suffix.lower() in extensions
    )


_STRATEGIES: tuple[tuple[Sequence[str], AppSourceKind], ...] = (
    (SOLUTION_EXTENSIONS, AppSourceKind.SOLUTION),
    (PROJECT_EXTENSIONS, AppSourceKind.PROJECT),
    (FILE_BASED_APP_EXTENSIONS, AppSourceKind.FILE_BASED_APP),
)


def discover_app_source(directory: Path) -> AppSource:
    """Choose the single root file to build from ``directory``.

    Solutions win over project files, which win over file-based apps. Within the
    first kind present, exactly one candidate must exist.

    Args:
        directory: Application root.

    Returns:
        AppSource: Selected root file.

    Raises:
        AmbiguousRootError: If the winning kind has several candidates.
        AppSourceNotFoundError: If no candidate of any kind exists.
    """

    for extensions, kind in _STRATEGIES:
        candidates = list_root_files(directory, extensions)
        if len(candidates) == 1:
            return AppSource(kind=kind, path=candidates[0])
        if candidates:
            raise AmbiguousRootError(kind.value, candidates)
    raise AppSourceNotFoundError(directory)


def app_source_from_file(path: Path) -> AppSource:
    """Classify an explicitly designated file by its extension."""

    suffix = path.suffix.lower()
    for extensions, kind in _STRATEGIES:
        if suffix in extensions:
            return AppSource(kind=kind, path=path)
    raise ConfigError(
        f"The configured solution file `{path}` is not a solution, project or C# file "
        f"(expected one of {', '.join(ext for exts, _ in _STRATEGIES for ext in exts)})."
    )


def resolve_app_source(
    app_dir: Path,
    configured: Path | None,
    *,
    on_configured: Callable[[Path], None] | None = None,
) -> AppSource:
    """Resolve the build root, honouring a configured solution path.

    Args:
        app_dir: Application root directory.
        configured: Optional path from configuration, relative to ``app_dir``.
        on_configured: Optional callback notified with the configured path.

    Returns:
        AppSource: Selected root file.

    Raises:
        ConfiguredSolutionNotFoundError: If the configured path does not exist.
    """

    if configured is None:
        return discover_app_source(app_dir)
    if on_configured is not None:
        on_configured(configured)
    target = app_dir / configured
    if target.is_dir():
        return discover_app_source(target)
    if not target.is_file():
        raise ConfiguredSolutionNotFoundError(target)
    return app_source_from_file(target)


__all__ = [
    "AppSource",
    "AppSourceKind",
    "app_source_from_file",
    "discover_app_source",
    "list_root_files",
    "resolve_app_source",
]
