# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Command line entry point exposing the ``detect`` and ``build`` phases."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Annotated, Final

import typer
from rich.text import Text

from ..console import detect_tty, get_console_manager
from ..errors import SdkLayerError
from ..logging import configure_debug_logging, fail
from ..pipeline import BuildContext, build, detect

DETECT_FAIL_EXIT_CODE: Final[int] = 100
ERROR_EXIT_CODE: Final[int] = 1

app = typer.Typer(
    name="sdklayer",
    help="Resolve, cache and install the .NET SDK for an application, then publish it.",
    no_args_is_help=True,
    add_completion=False,
)

AppDirOption = Annotated[
    Path,
    typer.Option("--app-dir", help="Application source directory.", file_okay=False, resolve_path=True),
]
EmojiOption = Annotated[bool, typer.Option("--emoji/--no-emoji", help="Toggle emoji in narration.")]
DebugOption = Annotated[bool, typer.Option("--debug", help="Emit debug traces to stderr.")]


def render_error(error: SdkLayerError, *, use_color: bool | None = None) -> None:
    """Render ``error`` to stderr as a bold title followed by its details.

    Details are printed unwrapped so long lines such as checksums reach the log
    intact at any console width.
    """

    color = detect_tty(sys.stderr) if use_color is None else use_color
    console = get_console_manager().get(color=color, emoji=False, stderr=True)
    console.print(Text(error.title, style="bold red" if color else ""))
    console.print(Text(error.details()), soft_wrap=True, crop=False)


@app.command("detect")
def detect_command(
    app_dir: AppDirOption = Path("."),
    emoji: EmojiOption = False,
) -> None:
    """Pass when the application root contains .NET sources; exit 100 otherwise."""

    if detect(app_dir):
        raise typer.Exit(code=0)
    fail(
        "No .NET application found. This requires solution (`.sln`, `.slnx`), project "
        "(`.csproj`, `.vbproj`, `.fsproj`) or C# (`.cs`) files in the root directory.",
        use_emoji=emoji,
    )
    raise typer.Exit(code=DETECT_FAIL_EXIT_CODE)


@app.command("build")
def build_command(
    layers_dir: Annotated[
        Path,
        typer.Option("--layers-dir", help="Directory receiving the cached layers.", file_okay=False, resolve_path=True),
    ],
    app_dir: AppDirOption = Path("."),
    emoji: EmojiOption = False,
    debug: DebugOption = False,
) -> None:
    """Resolve and install the SDK, publish the app and register launch processes."""

    configure_debug_logging(debug)
    context = BuildContext(app_dir=app_dir, layers_dir=layers_dir, use_emoji=emoji)
    try:
        build(context)
    except SdkLayerError as exc:
        render_error(exc)
        raise typer.Exit(code=ERROR_EXIT_CODE) from exc


def main() -> None:
    app()


__all__ = ["DETECT_FAIL_EXIT_CODE", "ERROR_EXIT_CODE", "app", "main", "render_error"]
