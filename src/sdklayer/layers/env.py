# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Layer environment modifications and their on-disk representation.

A layer contributes environment variables through files named
``<NAME>.<behaviour>`` inside ``env/`` (every phase), ``env.build/`` or
``env.launch/``. The same modifications can be applied in-process to build the
environment for the ``dotnet`` commands run during the build.
"""

from __future__ import annotations

import shutil
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Final

RUNTIME_IDENTIFIER_VARIABLE: Final[str] = "DOTNET_RUNTIME_IDENTIFIER"
PATH_DELIMITER: Final[str] = ":"


class Scope(str, Enum):
    """Enumerate the phases an environment modification applies to."""

    ALL = "all"
    BUILD = "build"
    LAUNCH = "launch"

    @property
    def directory_name(self) -> str:
        return "env" if self is Scope.ALL else f"env.{self.value}"

    def includes(self, phase: Scope) -> bool:
        return self is Scope.ALL or self is phase


class ModificationBehavior(str, Enum):
    """Enumerate how a value combines with an existing variable."""

    OVERRIDE = "override"
    DEFAULT = "default"
    PREPEND = "prepend"
    APPEND = "append"
    DELIMITER = "delim"


@dataclass(frozen=True, slots=True)
class EnvModification:
    scope: Scope
    behavior: ModificationBehavior
    name: str
    value: str


@dataclass(slots=True)
class LayerEnv:
    """Ordered collection of environment modifications for a single layer."""

    modifications: list[EnvModification] = field(default_factory=list)

    def insert(self, scope: Scope, behavior: ModificationBehavior, name: str, value: str | Path) -> LayerEnv:
        """Append a modification and return ``self`` so calls can be chained."""

        self.modifications.append(EnvModification(scope, behavior, name, str(value)))
        return self

    def merge(self, other: LayerEnv) -> LayerEnv:
        """Append every modification of ``other`` and return ``self``."""

        self.modifications.extend(other.modifications)
        return self

    def apply(self, phase: Scope, base: Mapping[str, str]) -> dict[str, str]:
        """Return a copy of ``base`` with every modification visible in ``phase`` applied.

        Args:
            phase: ``Scope.BUILD`` or ``Scope.LAUNCH``.
            base: Environment to start from.

        Returns:
            dict[str, str]: New environment mapping.
        """

        result = dict(base)
        visible = [mod for mod in self.modifications if mod.scope.includes(phase)]
        delimiters = {mod.name: mod.value for mod in visible if mod.behavior is ModificationBehavior.DELIMITER}
        for mod in visible:
            existing = result.get(mod.name)
            delimiter = delimiters.get(mod.name, "")
            if mod.behavior is ModificationBehavior.OVERRIDE:
                result[mod.name] = mod.value
            elif mod.behavior is ModificationBehavior.DEFAULT:
                result.setdefault(mod.name, mod.value)
            elif mod.behavior is ModificationBehavior.PREPEND:
                result[mod.name] = f"{mod.value}{delimiter}{existing}" if existing else mod.value
            elif mod.behavior is ModificationBehavior.APPEND:
                result[mod.name] = f"{existing}{delimiter}{mod.value}" if existing else mod.value
        return result

    def write(self, layer_dir: Path) -> None:
        """Replace the env directories of ``layer_dir`` with this environment."""

        for scope in Scope:
            shutil.rmtree(layer_dir / scope.directory_name, ignore_errors=True)
        for mod in self.modifications:
            directory = layer_dir / mod.scope.directory_name
            directory.mkdir(parents=True, exist_ok=True)
            (directory / f"{mod.name}.{mod.behavior.value}").write_text(mod.value, encoding="utf-8")


def dotnet_layer_env(layer_dir: Path, scope: Scope) -> LayerEnv:
    """Return the base environment for layers that contain a ``dotnet`` installation."""

    return (
        LayerEnv()
        .insert(scope, ModificationBehavior.DELIMITER, "PATH", PATH_DELIMITER)
        .insert(scope, ModificationBehavior.PREPEND, "PATH", layer_dir)
        .insert(scope, ModificationBehavior.OVERRIDE, "DOTNET_CLI_TELEMETRY_OPTOUT", "true")
        # W^X breaks dotnet under amd64 emulation on arm64 hosts.
        .insert(scope, ModificationBehavior.OVERRIDE, "DOTNET_EnableWriteXorExecute", "0")
        .insert(scope, ModificationBehavior.OVERRIDE, "DOTNET_NOLOGO", "true")
        .insert(scope, ModificationBehavior.OVERRIDE, "DOTNET_ROOT", layer_dir)
        .insert(scope, ModificationBehavior.OVERRIDE, "DOTNET_RUNNING_IN_CONTAINER", "true")
    )


def runtime_identifier_env(runtime_identifier: str, scope: Scope) -> LayerEnv:
    return LayerEnv().insert(scope, ModificationBehavior.OVERRIDE, RUNTIME_IDENTIFIER_VARIABLE, runtime_identifier)


__all__ = [
    "PATH_DELIMITER",
    "RUNTIME_IDENTIFIER_VARIABLE",
    "EnvModification",
    "LayerEnv",
    "ModificationBehavior",
    "Scope",
    "dotnet_layer_env",
    "runtime_identifier_env",
]
