# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Configuration models for the build agent."""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Final

from pydantic import BaseModel, ConfigDict, Field

from ..layers.acquisition import DEFAULT_TIMEOUT_SECONDS

PROJECT_TOML: Final[str] = "project.toml"
CONFIG_TABLE: Final[str] = "sdklayer"


class ExecutionEnvironment(str, Enum):
    """Enumerate the execution environments a build can target."""

    PRODUCTION = "production"
    TEST = "test"


class VerbosityLevel(str, Enum):
    """Enumerate MSBuild verbosity levels."""

    QUIET = "quiet"
    MINIMAL = "minimal"
    NORMAL = "normal"
    DETAILED = "detailed"
    DIAGNOSTIC = "diagnostic"

    @classmethod
    def from_name(cls, raw: str) -> VerbosityLevel | None:
        """Return the level for a full name or MSBuild abbreviation, else ``None``."""

        return _VERBOSITY_ALIASES.get(raw.strip().lower())


_VERBOSITY_ALIASES: Final[dict[str, VerbosityLevel]] = {
    "q": VerbosityLevel.QUIET,
    "quiet": VerbosityLevel.QUIET,
    "m": VerbosityLevel.MINIMAL,
    "minimal": VerbosityLevel.MINIMAL,
    "n": VerbosityLevel.NORMAL,
    "normal": VerbosityLevel.NORMAL,
    "d": VerbosityLevel.DETAILED,
    "detailed": VerbosityLevel.DETAILED,
    "diag": VerbosityLevel.DIAGNOSTIC,
    "diagnostic": VerbosityLevel.DIAGNOSTIC,
}


class MsbuildSection(BaseModel):
    """``msbuild`` sub-table of the ``[sdklayer]`` table."""

    model_config = ConfigDict(extra="ignore")

    configuration: str | None = None
    verbosity: str | None = None


class ProjectTomlSection(BaseModel):
    """``[sdklayer]`` table of ``project.toml``."""

    model_config = ConfigDict(extra="ignore")

    solution_file: Path | None = None
    msbuild: MsbuildSection = Field(default_factory=MsbuildSection)


class BuildConfiguration(BaseModel):
    """Effective configuration after merging ``project.toml`` and the environment."""

    model_config = ConfigDict(frozen=True)

    solution_file: Path | None = None
    build_configuration: str | None = None
    verbosity: VerbosityLevel | None = None
    execution_environment: ExecutionEnvironment = ExecutionEnvironment.PRODUCTION
    download_timeout: float = Field(default=DEFAULT_TIMEOUT_SECONDS, gt=0)
    catalog_path: Path | None = None

    @property
    def sdk_available_at_launch(self) -> bool:
        return self.execution_environment is ExecutionEnvironment.TEST


__all__ = [
    "CONFIG_TABLE",
    "PROJECT_TOML",
    "BuildConfiguration",
    "ExecutionEnvironment",
    "MsbuildSection",
    "ProjectTomlSection",
    "VerbosityLevel",
]
