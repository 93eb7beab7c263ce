# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Load build configuration from ``project.toml`` and the environment.

Environment variables take precedence over ``project.toml`` values.
"""

from __future__ import annotations

import os
import tomllib
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Final

from pydantic import ValidationError

from ..errors import ConfigError
from .models import (
    CONFIG_TABLE,
    PROJECT_TOML,
    BuildConfiguration,
    ExecutionEnvironment,
    ProjectTomlSection,
    VerbosityLevel,
)

BUILD_CONFIGURATION_ENV: Final[str] = "BUILD_CONFIGURATION"
VERBOSITY_ENV: Final[str] = "MSBUILD_VERBOSITY_LEVEL"
EXECUTION_ENVIRONMENT_ENV: Final[str] = "CNB_EXEC_ENV"
DOWNLOAD_TIMEOUT_ENV: Final[str] = "SDKLAYER_DOWNLOAD_TIMEOUT"
CATALOG_ENV: Final[str] = "SDKLAYER_CATALOG"


def load_project_toml(app_dir: Path) -> ProjectTomlSection | None:
    """Return the ``[sdklayer]`` table of ``app_dir/project.toml`` if present.

    Raises:
        ConfigError: If the file is not valid TOML or the table fails validation.
    """

    path = app_dir / PROJECT_TOML
    if not path.is_file():
        return None
    try:
        with path.open("rb") as handle:
            data: dict[str, Any] = tomllib.load(handle)
    except (OSError, tomllib.TOMLDecodeError) as exc:
        raise ConfigError(f"Unable to read {path}: {exc}") from exc
    section = data.get(CONFIG_TABLE)
    if section is None:
        return None
    if not isinstance(section, Mapping):
        raise ConfigError(f"{path}: `[{CONFIG_TABLE}]` must be a table")
    try:
        return ProjectTomlSection.model_validate(dict(section))
    except ValidationError as exc:
        raise ConfigError(f"{path}: invalid `[{CONFIG_TABLE}]` table: {exc.errors()[0]['msg']}") from exc


def _parse_verbosity(raw: str, *, source: str) -> VerbosityLevel:
    level = VerbosityLevel.from_name(raw)
    if level is None:
        raise ConfigError(
            f"Invalid MSBuild verbosity level '{raw}' in {source}. "
            "Use one of: q[uiet], m[inimal], n[ormal], d[etailed], diag[nostic]."
        )
    return level


def _parse_execution_environment(raw: str) -> ExecutionEnvironment:
    try:
        return ExecutionEnvironment(raw.strip().lower())
    except ValueError as exc:
        valid = ", ".join(env.value for env in ExecutionEnvironment)
        raise ConfigError(f"Unsupported execution environment '{raw}' in {EXECUTION_ENVIRONMENT_ENV} (expected {valid})") from exc


def _parse_timeout(raw: str) -> float:
    try:
        value = float(raw)
    except ValueError as exc:
        raise ConfigError(f"{DOWNLOAD_TIMEOUT_ENV} must be a number of seconds, got '{raw}'") from exc
    if value <= 0:
        raise ConfigError(f"{DOWNLOAD_TIMEOUT_ENV} must be positive, got '{raw}'")
    return value


def load_build_configuration(app_dir: Path, env: Mapping[str, str] | None = None) -> BuildConfiguration:
    """Merge ``project.toml`` with environment overrides.

    Args:
        app_dir: Application root containing the optional ``project.toml``.
        env: Environment mapping; defaults to :data:`os.environ`.

    Returns:
        BuildConfiguration: Effective configuration.

    Raises:
        ConfigError: If any value is invalid.
    """

    source = os.environ if env is None else env
    section = load_project_toml(app_dir) or ProjectTomlSection()

    build_configuration = source.get(BUILD_CONFIGURATION_ENV) or section.msbuild.configuration

    verbosity: VerbosityLevel | None = None
    if raw_verbosity := source.get(VERBOSITY_ENV):
        verbosity = _parse_verbosity(raw_verbosity, source=VERBOSITY_ENV)
    elif section.msbuild.verbosity:
        verbosity = _parse_verbosity(section.msbuild.verbosity, source=PROJECT_TOML)

    execution_environment = ExecutionEnvironment.PRODUCTION
    if raw_exec := source.get(EXECUTION_ENVIRONMENT_ENV):
        execution_environment = _parse_execution_environment(raw_exec)

    overrides: dict[str, Any] = {}
    if raw_timeout := source.get(DOWNLOAD_TIMEOUT_ENV):
        overrides["download_timeout"] = _parse_timeout(raw_timeout)
    if raw_catalog := source.get(CATALOG_ENV):
        overrides["catalog_path"] = Path(raw_catalog)

    return BuildConfiguration(
        solution_file=section.solution_file,
        build_configuration=build_configuration,
        verbosity=verbosity,
        execution_environment=execution_environment,
        **overrides,
    )


__all__ = [
    "BUILD_CONFIGURATION_ENV",
    "CATALOG_ENV",
    "DOWNLOAD_TIMEOUT_ENV",
    "EXECUTION_ENVIRONMENT_ENV",
    "VERBOSITY_ENV",
    "load_build_configuration",
    "load_project_toml",
]
