# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Build the project graph reachable from the selected application root."""

from __future__ import annotations

import logging
from collections import deque
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType

from ..errors import BrokenReferenceError, NoSolutionProjectsError
from .app_source import AppSource, AppSourceKind
from .project import ProjectDescriptor, load_file_based_app, load_project
from .solution import SolutionDescriptor, load_solution

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ProjectGraph:
    """Closure of project descriptors keyed by path.

    ``roots`` lists the entry points (solution projects or the single root
    project) in declaration order; references are resolved by lookup in
    ``nodes`` rather than through object links.
    """

    source: AppSource
    roots: tuple[Path, ...]
    nodes: Mapping[Path, ProjectDescriptor]
    solution: SolutionDescriptor | None = None

    @property
    def path(self) -> Path:
        return self.source.path

    @property
    def projects(self) -> tuple[ProjectDescriptor, ...]:
        return tuple(self.nodes.values())

    def references_of(self, project: ProjectDescriptor) -> tuple[ProjectDescriptor, ...]:
        return tuple(self.nodes[ref] for ref in project.project_references if ref in self.nodes)


def _require_existing(referrer: Path, path: Path) -> None:
    if not path.is_file():
        raise BrokenReferenceError(referrer, path)


def load_project_graph(source: AppSource, *, app_dir: Path) -> ProjectGraph:
    """Parse ``source`` and every project reachable from it.

    Args:
        source: Root selected by :func:`~sdklayer.dotnet.app_source.resolve_app_source`.
        app_dir: Application root, the upper bound for ``Directory.Build.props`` lookups.

    Returns:
        ProjectGraph: Non-empty graph of parsed projects.

    Raises:
        NoSolutionProjectsError: If a solution lists no projects.
        BrokenReferenceError: If a listed or referenced project file is missing.
        ParseError: If any solution or project file is malformed.
    """

    if source.kind is AppSourceKind.FILE_BASED_APP:
        app = load_file_based_app(source.path, search_root=app_dir)
        return ProjectGraph(source=source, roots=(app.path,), nodes=MappingProxyType({app.path: app}))

    solution: SolutionDescriptor | None = None
    if source.kind is AppSourceKind.SOLUTION:
        solution = load_solution(source.path)
        if not solution.entries:
            raise NoSolutionProjectsError(source.path)
        roots = solution.project_paths
        for root in roots:
            _require_existing(source.path, root)
    else:
        roots = (source.path,)

    nodes: dict[Path, ProjectDescriptor] = {}
    pending: deque[Path] = deque(roots)
    while pending:
        path = pending.popleft()
        if path in nodes:
            continue
        project = load_project(path, search_root=app_dir)
        nodes[path] = project
        for reference in project.project_references:
            if reference in nodes:
                continue
            _require_existing(path, reference)
            pending.append(reference)

    LOGGER.debug("loaded project graph root=%s projects=%d", source.path, len(nodes))
    return ProjectGraph(
        source=source,
        roots=tuple(dict.fromkeys(roots)),
        nodes=MappingProxyType(nodes),
        solution=solution,
    )


__all__ = ["ProjectGraph", "load_project_graph"]
