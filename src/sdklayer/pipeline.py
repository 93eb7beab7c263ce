# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Detect and build phases.

The build runs strictly in sequence: select the root, read the project graph,
derive the SDK requirement, resolve it against the catalog, prepare the cached
layers, run ``dotnet`` and register launch processes.
"""

from __future__ import annotations

import logging
import os
import time
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Final

from .build.commands import (
    dotnet_publish_command,
    dotnet_test_command,
    find_tool_manifest,
    tool_restore_command,
)
from .build.launch import (
    InvalidProcess,
    LaunchDerivation,
    LaunchProcess,
    ValidProcess,
    derive_launch_processes,
    dotnet_test_process,
    has_procfile,
    write_launch,
)
from .build.process import CommandOptions, CommandRunner, run_command
from .config import BuildConfiguration, ExecutionEnvironment, load_build_configuration
from .console import detect_tty
from .dotnet.app_source import AppSource, list_root_files, resolve_app_source
from .dotnet.global_json import read_global_json
from .dotnet.graph import ProjectGraph, load_project_graph
from .dotnet.project import FILE_BASED_APP_EXTENSIONS, PROJECT_EXTENSIONS, package_references
from .dotnet.runtime_identifier import detect_target_platform
from .dotnet.solution import SOLUTION_EXTENSIONS
from .layers.acquisition import HttpGet
from .layers.env import LayerEnv, ModificationBehavior, Scope, dotnet_layer_env, runtime_identifier_env
from .layers.nuget_cache import NugetCacheLayer, PackageCacheState, ensure_nuget_cache, nuget_cache_env
from .layers.runtime import install_runtime_layer
from .layers.sdk import LayerState, SdkLayer, ensure_sdk_layer
from .logging import bullet, command_output, done, section, sub_bullet, warn
from .resolution.catalog import ReleaseCatalog, load_bundled_catalog, load_catalog_file
from .resolution.matcher import ResolvedRelease, resolve_release
from .resolution.requirement import derive_requirement

LOGGER = logging.getLogger(__name__)

DETECT_EXTENSIONS: Final[tuple[str, ...]] = (
    *SOLUTION_EXTENSIONS,
    *PROJECT_EXTENSIONS,
    *FILE_BASED_APP_EXTENSIONS,
)
DOTNET_CLI_LAYER_NAME: Final[str] = "dotnet-cli"


def detect(app_dir: Path) -> bool:
    """Return ``True`` when ``app_dir`` holds a solution, project or C# file at its root."""

    return bool(list_root_files(app_dir, DETECT_EXTENSIONS))


@dataclass(slots=True)
class BuildContext:
    """Inputs of a single build invocation."""

    app_dir: Path
    layers_dir: Path
    env: Mapping[str, str] = field(default_factory=lambda: dict(os.environ))
    use_emoji: bool = False
    use_color: bool | None = None
    catalog: ReleaseCatalog | None = None
    http_get: HttpGet | None = None
    sleep: Callable[[float], None] = time.sleep
    runner: CommandRunner = run_command


@dataclass(frozen=True, slots=True)
class BuildResult:
    release: ResolvedRelease
    sdk_layer: SdkLayer
    nuget_cache: NugetCacheLayer
    processes: tuple[LaunchProcess, ...]


def _relative(path: Path, root: Path) -> str:
    try:
        return str(path.relative_to(root))
    except ValueError:
        return str(path)


class _Builder:
    """Carries the narration settings through the build steps."""

    def __init__(self, context: BuildContext, config: BuildConfiguration) -> None:
        self.context = context
        self.config = config

    def bullet(self, msg: str) -> None:
        bullet(msg, use_color=self.context.use_color)

    def sub_bullet(self, msg: str) -> None:
        sub_bullet(msg, use_color=self.context.use_color)

    def echo(self, line: str) -> None:
        command_output(line, use_color=self.context.use_color)

    def resolve(self) -> tuple[AppSource, ProjectGraph, ResolvedRelease]:
        app_dir = self.context.app_dir
        self.bullet("SDK version detection")
        source = resolve_app_source(
            app_dir,
            self.config.solution_file,
            on_configured=lambda path: self.sub_bullet(f"Using configured solution file: {path}"),
        )
        self.sub_bullet(f"Detected .NET {source.kind.value}: {_relative(source.path, app_dir)}")
        graph = load_project_graph(source, app_dir=app_dir)

        pin = read_global_json(app_dir)
        if pin is not None:
            self.sub_bullet(f"Detecting version requirement from {_relative(pin.path, app_dir)}")
        else:
            self.sub_bullet(f"Inferring version requirement from {_relative(source.path, app_dir)}")
        requirement = derive_requirement(graph, pin)
        self.sub_bullet(f"Detected version requirement: {requirement}")

        platform = detect_target_platform(self.context.env)
        catalog = self.load_catalog()
        release = resolve_release(requirement, catalog, platform)
        self.sub_bullet(f"Resolved .NET SDK version {release.version} ({platform.os}-{platform.arch})")
        return source, graph, release

    def load_catalog(self) -> ReleaseCatalog:
        if self.context.catalog is not None:
            return self.context.catalog
        if self.config.catalog_path is not None:
            self.sub_bullet(f"Using release catalog {self.config.catalog_path}")
            return load_catalog_file(self.config.catalog_path)
        return load_bundled_catalog()

    def install_sdk(self, release: ResolvedRelease) -> SdkLayer:
        self.bullet("SDK installation")

        def on_retry(attempt: int, error: BaseException, delay: float) -> None:
            warn(
                f"Download attempt {attempt} failed ({error}); retrying in {delay:.0f}s",
                use_emoji=self.context.use_emoji,
                use_color=self.context.use_color,
            )

        sdk = ensure_sdk_layer(
            self.context.layers_dir,
            release,
            get=self.context.http_get,
            sleep=self.context.sleep,
            timeout=self.config.download_timeout,
            on_retry=on_retry,
        )
        if sdk.state is LayerState.RESTORED:
            self.sub_bullet(f"Reusing cached SDK (version {release.version})")
        else:
            if sdk.replaced is not None:
                self.sub_bullet(f"Replaced cached .NET SDK (version {sdk.replaced.version})")
            self.sub_bullet(f"Downloaded SDK from {release.url}")
            self.sub_bullet("Verified SDK checksum")
            self.sub_bullet("Installed SDK")
        return sdk

    def prepare_nuget_cache(self, graph: ProjectGraph, scope: Scope) -> NugetCacheLayer:
        layer = ensure_nuget_cache(self.context.layers_dir, package_references(graph.projects))
        messages = {
            PackageCacheState.CREATED: "Created NuGet package cache",
            PackageCacheState.RESTORED: "Reusing NuGet package cache",
            PackageCacheState.UPDATED: "Reusing NuGet package cache (package references changed)",
            PackageCacheState.INVALIDATED: "Purged NuGet package cache due to invalid metadata",
            PackageCacheState.PURGED: f"Purged NuGet package cache after {layer.previous_restore_count} builds",
        }
        self.sub_bullet(messages[layer.state])
        nuget_cache_env(layer.path, scope).write(layer.path)
        return layer

    def write_environment(self, sdk: SdkLayer, nuget: NugetCacheLayer, rid: str, scope: Scope) -> dict[str, str]:
        """Write every layer env and return the environment for build commands."""

        sdk_env = dotnet_layer_env(sdk.path, scope).merge(runtime_identifier_env(rid, scope))
        sdk_env.write(sdk.path)

        cli_path = self.context.layers_dir / DOTNET_CLI_LAYER_NAME
        cli_path.mkdir(parents=True, exist_ok=True)
        cli_env = LayerEnv().insert(scope, ModificationBehavior.OVERRIDE, "DOTNET_CLI_HOME", cli_path)
        cli_env.write(cli_path)

        combined = LayerEnv().merge(sdk_env).merge(nuget_cache_env(nuget.path, scope)).merge(cli_env)
        return combined.apply(Scope.BUILD, self.context.env)

    def run(self, args: list[str], env: Mapping[str, str]) -> None:
        self.sub_bullet(f"Running `{' '.join(args)}`")
        self.context.runner(
            args,
            CommandOptions(cwd=self.context.app_dir, env=env),
            on_output=self.echo,
        )

    def register_processes(self, graph: ProjectGraph) -> tuple[LaunchProcess, ...]:
        self.bullet("Process types")
        self.sub_bullet("Detecting process types from published artifacts")
        derivation: LaunchDerivation = derive_launch_processes(graph, self.context.app_dir)
        if not derivation.results:
            self.sub_bullet("No candidate projects detected")
            return ()

        self.sub_bullet("Analyzing candidates:")
        for result in derivation.results:
            if isinstance(result, ValidProcess):
                self.sub_bullet(f"{result.relative_source}: Found artifact at {result.relative_artifact}")
            elif isinstance(result, InvalidProcess):
                self.sub_bullet(f"{result.relative_source}: No artifact found at {result.relative_artifact}")

        processes = derivation.processes
        if not processes:
            return ()
        if has_procfile(self.context.app_dir):
            self.sub_bullet("Procfile detected")
            self.sub_bullet("Skipping automatic registration (Procfile takes precedence)")
            self.sub_bullet("Available process types (for reference):")
            for process in processes:
                self.sub_bullet(f"{process.type_name}: {' '.join(process.command)}")
            return ()
        self.sub_bullet("No Procfile detected")
        self.sub_bullet("Registering launch processes:")
        for process in processes:
            self.sub_bullet(f"{process.type_name}: {' '.join(process.command)}")
        return processes


def build(context: BuildContext) -> BuildResult:
    """Run the build phase for ``context.app_dir``.

    Args:
        context: Build inputs and injectable collaborators.

    Returns:
        BuildResult: Resolved release, prepared layers and registered processes.

    Raises:
        SdkLayerError: On any failure; nothing is registered in that case.
    """

    started = time.monotonic()
    config = load_build_configuration(context.app_dir, context.env)
    builder = _Builder(context, config)
    section(".NET SDK layer", use_color=detect_tty() if context.use_color is None else context.use_color)

    source, graph, release = builder.resolve()
    sdk_scope = Scope.ALL if config.sdk_available_at_launch else Scope.BUILD
    rid = detect_target_platform(context.env).runtime_identifier

    sdk = builder.install_sdk(release)
    nuget = builder.prepare_nuget_cache(graph, sdk_scope)
    command_env = builder.write_environment(sdk, nuget, rid, sdk_scope)

    manifest = find_tool_manifest(context.app_dir)
    if manifest is not None:
        builder.bullet("Restore .NET tools")
        builder.sub_bullet("Tool manifest file detected")
        builder.run(tool_restore_command(manifest), command_env)

    processes: tuple[LaunchProcess, ...]
    if config.execution_environment is ExecutionEnvironment.PRODUCTION:
        builder.bullet("Publish app")
        builder.run(
            dotnet_publish_command(
                source.path,
                rid,
                configuration=config.build_configuration,
                verbosity=config.verbosity,
            ),
            command_env,
        )
        if not config.sdk_available_at_launch:
            install_runtime_layer(context.layers_dir, sdk.path, rid)
        processes = builder.register_processes(graph)
    else:
        command = dotnet_test_command(
            source.path,
            configuration=config.build_configuration,
            verbosity=config.verbosity,
        )
        processes = (dotnet_test_process(command),)

    write_launch(context.layers_dir, processes)
    LOGGER.debug("registered %d launch processes", len(processes))
    done(started, use_emoji=context.use_emoji, use_color=context.use_color)
    return BuildResult(release=release, sdk_layer=sdk, nuget_cache=nuget, processes=processes)


__all__ = ["DETECT_EXTENSIONS", "BuildContext", "BuildResult", "build", "detect"]
