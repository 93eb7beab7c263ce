# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Tests for layer environment modifications."""

from __future__ import annotations

from pathlib import Path

from sdklayer.layers.env import (
    RUNTIME_IDENTIFIER_VARIABLE,
    LayerEnv,
    ModificationBehavior,
    Scope,
    dotnet_layer_env,
    runtime_identifier_env,
)


def test_dotnet_env_prepends_path_and_sets_root(tmp_path: Path) -> None:
    env = dotnet_layer_env(tmp_path, Scope.BUILD).apply(Scope.BUILD, {"PATH": "/usr/bin", "DOTNET_ROOT": "/opt"})

    assert env["PATH"] == f"{tmp_path}:/usr/bin"
    assert env["DOTNET_ROOT"] == str(tmp_path)
    assert env["DOTNET_CLI_TELEMETRY_OPTOUT"] == "true"
    assert env["DOTNET_NOLOGO"] == "true"
    assert env["DOTNET_RUNNING_IN_CONTAINER"] == "true"
    assert env["DOTNET_EnableWriteXorExecute"] == "0"


def test_build_scoped_modifications_are_hidden_at_launch(tmp_path: Path) -> None:
    env = dotnet_layer_env(tmp_path, Scope.BUILD)

    assert env.apply(Scope.LAUNCH, {}) == {}
    assert "DOTNET_ROOT" in dotnet_layer_env(tmp_path, Scope.ALL).apply(Scope.LAUNCH, {})


def test_append_and_default_behaviours() -> None:
    env = (
        LayerEnv()
        .insert(Scope.ALL, ModificationBehavior.DELIMITER, "FLAGS", ";")
        .insert(Scope.ALL, ModificationBehavior.APPEND, "FLAGS", "b")
        .insert(Scope.ALL, ModificationBehavior.APPEND, "EMPTY", "x")
        .insert(Scope.ALL, ModificationBehavior.DEFAULT, "KEEP", "new")
    )

    assert env.apply(Scope.BUILD, {"FLAGS": "a", "KEEP": "old"}) == {"FLAGS": "a;b", "EMPTY": "x", "KEEP": "old"}


def test_write_lays_out_scoped_env_directories(tmp_path: Path) -> None:
    (tmp_path / "env.launch").mkdir()
    (tmp_path / "env.launch" / "STALE.override").write_text("1", encoding="utf-8")
    env = dotnet_layer_env(tmp_path, Scope.BUILD).merge(runtime_identifier_env("linux-x64", Scope.ALL))

    env.write(tmp_path)

    assert (tmp_path / "env.build" / "PATH.prepend").read_text(encoding="utf-8") == str(tmp_path)
    assert (tmp_path / "env.build" / "PATH.delim").read_text(encoding="utf-8") == ":"
    assert (tmp_path / "env" / f"{RUNTIME_IDENTIFIER_VARIABLE}.override").read_text(encoding="utf-8") == "linux-x64"
    assert not (tmp_path / "env.launch").exists()


def test_scope_directory_names() -> None:
    assert [scope.directory_name for scope in Scope] == ["env", "env.build", "env.launch"]
    assert Scope.ALL.includes(Scope.LAUNCH)
    assert not Scope.BUILD.includes(Scope.LAUNCH)
