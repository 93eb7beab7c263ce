# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Launch-only runtime layer copied out of the SDK layer."""

from __future__ import annotations

import shutil
from pathlib import Path
from typing import Final

from ..errors import ArchiveError
from .env import Scope, dotnet_layer_env, runtime_identifier_env

RUNTIME_LAYER_NAME: Final[str] = "runtime"
RUNTIME_PATHS: Final[tuple[str, ...]] = ("dotnet", "host", "shared", "ThirdPartyNotices.txt", "LICENSE.txt")


def install_runtime_layer(layers_dir: Path, sdk_path: Path, runtime_identifier: str) -> Path:
    """Copy the runtime subset of ``sdk_path`` into a fresh ``runtime`` layer.

    Args:
        layers_dir: Directory holding every layer of this build.
        sdk_path: Installed SDK layer.
        runtime_identifier: RID exported to launched processes.

    Returns:
        Path: Runtime layer directory.

    Raises:
        ArchiveError: If a runtime path is missing from the SDK or cannot be copied.
    """

    layer_path = layers_dir / RUNTIME_LAYER_NAME
    shutil.rmtree(layer_path, ignore_errors=True)
    layer_path.mkdir(parents=True)
    for name in RUNTIME_PATHS:
        source = sdk_path / name
        destination = layer_path / name
        try:
            if source.is_dir():
                shutil.copytree(source, destination, symlinks=True)
            else:
                shutil.copy2(source, destination)
        except OSError as exc:
            raise ArchiveError(f"Unable to copy `{name}` from the SDK into the runtime layer: {exc}") from exc

    env = dotnet_layer_env(layer_path, Scope.LAUNCH).merge(runtime_identifier_env(runtime_identifier, Scope.LAUNCH))
    env.write(layer_path)
    return layer_path


__all__ = ["RUNTIME_LAYER_NAME", "RUNTIME_PATHS", "install_runtime_layer"]
