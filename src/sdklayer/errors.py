# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Error taxonomy shared by every stage of the SDK layer pipeline.

Every error raised deliberately by ``sdklayer`` derives from :class:`SdkLayerError`
and carries a short ``title`` plus a :meth:`SdkLayerError.details` body. The CLI
renders both to stderr and aborts the build; there is no degraded success mode.
"""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path
from typing import ClassVar


class SdkLayerError(RuntimeError):
    """Base class for fatal, user-actionable build errors."""

    title: ClassVar[str] = "Build failed"

    def details(self) -> str:
        """Return the human readable body rendered beneath :attr:`title`.

        Returns:
            str: Actionable explanation of the failure.
        """

        return str(self)


class ConfigError(SdkLayerError):
    """Raised when build-tool configuration cannot be read or validated."""

    title = "Invalid build configuration"


class ParseError(SdkLayerError):
    """Raised when a solution, project or pinned-version file is malformed."""

    title = "Unable to parse file"

    def __init__(self, path: Path, reason: str, *, line: int | None = None) -> None:
        """Initialise the error with file context.

        Args:
            path: File that failed to parse.
            reason: Description of the parse failure.
            line: Optional one-based line number where parsing failed.
        """

        location = f"{path}:{line}" if line is not None else str(path)
        super().__init__(f"{location}: {reason}")
        self.path = path
        self.line = line
        self.reason = reason


class InvalidFrameworkError(ParseError):
    """Raised when a target framework moniker is malformed or unsupported."""

    title = "Unsupported target framework"

    def __init__(self, path: Path, moniker: str, reason: str) -> None:
        super().__init__(path, f"target framework `{moniker}` {reason}")
        self.moniker = moniker


class AppSourceNotFoundError(SdkLayerError):
    """Raised when the app root has no solution, project or file-based app."""

    title = "No .NET application found"

    def __init__(self, root: Path) -> None:
        super().__init__(
            f"The directory `{root}` contains no solution (`.sln`, `.slnx`), project "
            "(`.csproj`, `.vbproj`, `.fsproj`) or C# (`.cs`) file."
        )
        self.root = root


class AmbiguousRootError(SdkLayerError):
    """Raised when several candidate root files exist and none is designated."""

    title = "Ambiguous application root"

    def __init__(self, kind: str, candidates: Sequence[Path]) -> None:
        names = "`, `".join(str(path) for path in candidates)
        super().__init__(
            f"The root directory contains multiple {kind} files: `{names}`. "
            "Designate the one to build with `solution_file` in the `[sdklayer]` "
            "table of `project.toml`, or keep a single file at the root."
        )
        self.kind = kind
        self.candidates = tuple(candidates)


class ConfiguredSolutionNotFoundError(SdkLayerError):
    """Raised when ``solution_file`` points at a missing file."""

    title = "Configured solution file not found"

    def __init__(self, path: Path) -> None:
        super().__init__(f"The configured solution file `{path}` does not exist.")
        self.path = path


class BrokenReferenceError(SdkLayerError):
    """Raised when a solution or project references a missing project file."""

    title = "Referenced project file not found"

    def __init__(self, referrer: Path, missing: Path) -> None:
        super().__init__(
            f"`{referrer}` references the project file `{missing}`, which does not exist. "
            "Check that every referenced project is committed, that the path casing matches "
            "the file on disk, and that submodules are checked out."
        )
        self.referrer = referrer
        self.missing = missing


class NoSolutionProjectsError(SdkLayerError):
    """Raised when a solution file lists no projects."""

    title = "No project references found in solution"

    def __init__(self, path: Path) -> None:
        super().__init__(
            f"The solution file `{path}` has no project references. Reference the projects "
            "to build from the solution, or delete it to build a root project file instead."
        )
        self.path = path


class NoFrameworkDetectedError(SdkLayerError):
    """Raised when no project in the graph declares a runtime target framework."""

    title = "No target framework detected"

    def __init__(self, paths: Sequence[Path]) -> None:
        names = "`, `".join(str(path) for path in paths)
        super().__init__(
            f"None of the projects declare a `TargetFramework`: `{names}`. Add a "
            "`<TargetFramework>` property (for example `net8.0`) to the project file "
            "or to `Directory.Build.props`."
        )
        self.paths = tuple(paths)


class ConflictingFrameworkError(SdkLayerError):
    """Raised when the graph mixes incompatible runtime families."""

    title = "Conflicting target frameworks"

    def __init__(self, monikers: Sequence[tuple[Path, str]]) -> None:
        listing = ", ".join(f"`{moniker}` ({path})" for path, moniker in monikers)
        super().__init__(
            f"The project graph mixes incompatible runtime families: {listing}. "
            "A single build can only target one runtime family."
        )
        self.monikers = tuple(monikers)


class CatalogError(SdkLayerError):
    """Raised when the bundled release catalog is unreadable."""

    title = "Invalid release catalog"


class UnresolvableVersionError(SdkLayerError):
    """Raised when no catalog entry satisfies the version requirement."""

    title = "Unsupported .NET SDK version"

    def __init__(self, requirement: str, architecture: str, nearest: Sequence[str], *, reason: str = "") -> None:
        nearest_text = ", ".join(nearest) if nearest else "none"
        message = (
            f"No .NET SDK release for {architecture} satisfies the requirement {requirement}. "
            f"Nearest available versions: {nearest_text}."
        )
        if reason:
            message = f"{message} {reason}"
        super().__init__(message)
        self.requirement = requirement
        self.architecture = architecture
        self.nearest = tuple(nearest)


class IntegrityError(SdkLayerError):
    """Raised when a downloaded archive does not match its catalog checksum."""

    title = "SDK checksum verification failed"

    def __init__(self, url: str, expected: str, actual: str) -> None:
        super().__init__(
            f"The archive downloaded from {url} has SHA-256 `{actual}` but the catalog "
            f"expects `{expected}`. The download was discarded."
        )
        self.url = url
        self.expected = expected
        self.actual = actual


class DownloadError(SdkLayerError):
    """Raised when a download fails with a non-transient cause."""

    title = "Failed to download .NET SDK"


class DownloadExhaustedError(DownloadError):
    """Raised when transient download failures persist past the retry ceiling."""

    def __init__(self, url: str, attempts: int, cause: BaseException) -> None:
        super().__init__(
            f"Downloading {url} failed {attempts} times; last error: {cause}. "
            "This is usually a temporary network problem, retrying the build may succeed."
        )
        self.url = url
        self.attempts = attempts
        self.cause = cause


class ArchiveError(SdkLayerError):
    """Raised when a verified archive cannot be unpacked."""

    title = "Failed to install .NET SDK"


class BuildInvocationError(SdkLayerError):
    """Raised when an external ``dotnet`` command exits with a non-zero status."""

    title = "Command failed"

    def __init__(self, command: Sequence[str], returncode: int, output: str = "") -> None:
        rendered = " ".join(command)
        message = f"`{rendered}` exited with status {returncode}."
        if output:
            message = f"{message}\n\n{output}"
        super().__init__(message)
        self.command = tuple(command)
        self.returncode = returncode
        self.output = output


__all__ = [
    "AmbiguousRootError",
    "AppSourceNotFoundError",
    "ArchiveError",
    "BrokenReferenceError",
    "BuildInvocationError",
    "CatalogError",
    "ConfigError",
    "ConfiguredSolutionNotFoundError",
    "ConflictingFrameworkError",
    "DownloadError",
    "DownloadExhaustedError",
    "IntegrityError",
    "InvalidFrameworkError",
    "NoFrameworkDetectedError",
    "NoSolutionProjectsError",
    "ParseError",
    "SdkLayerError",
    "UnresolvableVersionError",
]
