# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Parse ``.sln`` and ``.slnx`` solution files into ordered project listings."""

from __future__ import annotations

import os
import re
import xml.etree.ElementTree as ET
from dataclasses import dataclass
from pathlib import Path
from typing import Final

from ..errors import ParseError

SOLUTION_EXTENSIONS: Final[tuple[str, ...]] = (".sln", ".slnx")

# Project("{type-guid}") = "Name", "relative\path.csproj", "{project-guid}"
_PROJECT_LINE: Final[re.Pattern[str]] = re.compile(
    r'Project\("\{[^}]+\}"\)\s*=\s*"[^"]+",\s*"(?P<path>[^"]+\.[^"]+)",\s*"\{[^}]+\}"'
)


@dataclass(frozen=True, slots=True)
class SolutionDescriptor:
    """Ordered project listing read from one solution file."""

    path: Path
    entries: tuple[str, ...]

    @property
    def project_paths(self) -> tuple[Path, ...]:
        """Return listed project paths anchored at the solution directory."""

        return tuple(Path(os.path.normpath(self.path.parent / entry)) for entry in self.entries)


def extract_sln_entries(contents: str) -> tuple[str, ...]:
    """Return project paths listed in classic ``.sln`` text.

    Solution folders and solution items are skipped because their "path" has no
    file extension.

    Args:
        contents: Text of the solution file.

    Returns:
        tuple[str, ...]: Listed paths with backslashes normalised to ``/``.
    """

    entries: list[str] = []
    for line in contents.splitlines():
        match = _PROJECT_LINE.search(line)
        if match is not None:
            entries.append(match.group("path").replace("\\", "/"))
    return tuple(entries)


def extract_slnx_entries(contents: str, *, path: Path) -> tuple[str, ...]:
    """Return project paths listed in an XML ``.slnx`` solution.

    Args:
        contents: Text of the solution file.
        path: Solution path used for error context.

    Returns:
        tuple[str, ...]: ``Project/@Path`` values in document order, including
        projects nested in ``Folder`` elements.

    Raises:
        ParseError: If ``contents`` is not well-formed XML.
    """

    try:
        root = ET.fromstring(contents)
    except ET.ParseError as exc:
        line = exc.position[0] if exc.position else None
        raise ParseError(path, f"invalid solution XML: {exc}", line=line) from exc
    return tuple(
        element.get("Path", "").replace("\\", "/")
        for element in root.iter()
        if element.tag.rsplit("}", 1)[-1] == "Project" and element.get("Path")
    )


def load_solution(path: Path) -> SolutionDescriptor:
    """Read and parse the solution file at ``path``."""

    try:
        contents = path.read_text(encoding="utf-8-sig")
    except OSError as exc:
        raise ParseError(path, f"unable to read file ({exc.strerror or exc})") from exc
    if path.suffix.lower() == ".slnx":
        entries = extract_slnx_entries(contents, path=path)
    else:
        entries = extract_sln_entries(contents)
    return SolutionDescriptor(path=path, entries=entries)


def is_solution_file(path: Path) -> bool:
    return path.suffix.lower() in SOLUTION_EXTENSIONS


__all__ = [
    "SOLUTION_EXTENSIONS",
    "SolutionDescriptor",
    "extract_sln_entries",
    "extract_slnx_entries",
    "is_solution_file",
    "load_solution",
]
