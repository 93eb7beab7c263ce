# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Build configuration loading and models."""

from __future__ import annotations

from .loader import load_build_configuration, load_project_toml
from .models import BuildConfiguration, ExecutionEnvironment, ProjectTomlSection, VerbosityLevel

__all__ = [
    "BuildConfiguration",
    "ExecutionEnvironment",
    "ProjectTomlSection",
    "VerbosityLevel",
    "load_build_configuration",
    "load_project_toml",
]
