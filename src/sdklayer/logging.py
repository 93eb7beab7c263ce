# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""User-facing build narration with optional colour and emoji support.

Progress narration is written to stdout; warnings, failures and rendered errors
are written to stderr.
"""

from __future__ import annotations

import logging as _stdlib_logging
import time

from rich.logging import RichHandler
from rich.rule import Rule
from rich.text import Text

from .console import detect_tty, get_console_manager


def emoji(symbol: str, enable: bool) -> str:
    """Select an emoji symbol based on the caller's preference.

    Args:
        symbol: Emoji text to include in the output.
        enable: Flag indicating whether emoji output is desired.

    Returns:
        str: Emoji symbol when enabled, otherwise an empty string.
    """

    return symbol if enable else ""


def _print_line(
    msg: str,
    *,
    style: str | None,
    use_emoji: bool,
    use_color: bool | None = None,
    stderr: bool = False,
) -> None:
    """Render ``msg`` to the console using shared styling helpers.

    Args:
        msg: Message text to print to the console.
        style: Rich style name to apply when colour output is active.
        use_emoji: Flag indicating whether emoji output is desired.
        use_color: Optional explicit colour flag overriding TTY detection.
        stderr: ``True`` to write to the error stream.
    """

    color_enabled = detect_tty() if use_color is None else use_color
    console = get_console_manager().get(color=color_enabled, emoji=use_emoji, stderr=stderr)
    text = Text(msg)
    if style and color_enabled:
        text.stylize(style)
    console.print(text)


def section(title: str, *, use_color: bool) -> None:
    """Render a section header to delineate console output blocks.

    Args:
        title: Section title displayed to the user.
        use_color: Flag indicating whether ANSI colour support is desired.
    """

    console = get_console_manager().get(color=use_color, emoji=True)
    if use_color:
        console.print()
        console.print(Rule(title))
    else:
        console.print(f"\n--- {title} ---")


def bullet(msg: str, *, use_color: bool | None = None) -> None:
    """Emit a top-level build step heading."""

    _print_line(f"- {msg}", style="bold", use_emoji=False, use_color=use_color)


def sub_bullet(msg: str, *, use_color: bool | None = None) -> None:
    """Emit a detail line nested beneath the current build step."""

    _print_line(f"  - {msg}", style=None, use_emoji=False, use_color=use_color)


def command_output(line: str, *, use_color: bool | None = None) -> None:
    """Echo one line of external command output beneath the current step."""

    _print_line(f"      {line}", style="dim", use_emoji=False, use_color=use_color)


def ok(msg: str, *, use_emoji: bool, use_color: bool | None = None) -> None:
    """Emit a success message.

    Args:
        msg: Message text to display.
        use_emoji: Flag indicating whether emoji output is desired.
        use_color: Optional explicit colour flag overriding TTY detection.
    """

    prefix = emoji("✅ ", use_emoji)
    _print_line(f"{prefix}{msg}", style="green", use_emoji=use_emoji, use_color=use_color)


def warn(msg: str, *, use_emoji: bool, use_color: bool | None = None) -> None:
    """Emit a warning message to stderr.

    Args:
        msg: Message text to display.
        use_emoji: Flag indicating whether emoji output is desired.
        use_color: Optional explicit colour flag overriding TTY detection.
    """

    prefix = emoji("⚠️ ", use_emoji)
    _print_line(f"{prefix}{msg}", style="yellow", use_emoji=use_emoji, use_color=use_color, stderr=True)


def fail(msg: str, *, use_emoji: bool, use_color: bool | None = None) -> None:
    """Emit an error message to stderr.

    Args:
        msg: Message text to display.
        use_emoji: Flag indicating whether emoji output is desired.
        use_color: Optional explicit colour flag overriding TTY detection.
    """

    prefix = emoji("❌ ", use_emoji)
    _print_line(f"{prefix}{msg}", style="red", use_emoji=use_emoji, use_color=use_color, stderr=True)


def done(started: float, *, use_emoji: bool, use_color: bool | None = None) -> None:
    """Emit the closing line of a build including its elapsed time.

    Args:
        started: ``time.monotonic()`` reading taken when the build began.
        use_emoji: Flag indicating whether emoji output is desired.
        use_color: Optional explicit colour flag overriding TTY detection.
    """

    elapsed = time.monotonic() - started
    ok(f"Done (finished in {elapsed:.1f}s)", use_emoji=use_emoji, use_color=use_color)


def configure_debug_logging(enabled: bool) -> None:
    """Route library debug traces to stderr through Rich when ``enabled``."""

    if not enabled:
        return
    console = get_console_manager().get(color=detect_tty(), emoji=False, stderr=True)
    root = _stdlib_logging.getLogger("sdklayer")
    root.setLevel(_stdlib_logging.DEBUG)
    if not any(isinstance(handler, RichHandler) for handler in root.handlers):
        root.addHandler(RichHandler(console=console, show_path=False))


__all__ = [
    "bullet",
    "command_output",
    "configure_debug_logging",
    "done",
    "emoji",
    "fail",
    "ok",
    "section",
    "sub_bullet",
    "warn",
]
