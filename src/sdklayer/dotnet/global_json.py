# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Read the pinned SDK version from a root ``global.json`` file."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Final

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ..errors import ParseError
from ..resolution.policies import RollForward
from ..resolution.version import InvalidVersionError, SdkVersion

GLOBAL_JSON: Final[str] = "global.json"


class SdkSection(BaseModel):
    """Raw ``sdk`` object of ``global.json``."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    version: str | None = None
    roll_forward: str | None = Field(default=None, alias="rollForward")


class GlobalJsonDocument(BaseModel):
    """Raw ``global.json`` document."""

    model_config = ConfigDict(extra="ignore")

    sdk: SdkSection | None = None


@dataclass(frozen=True, slots=True)
class SdkPin:
    """Validated SDK pin taken from ``global.json``."""

    path: Path
    version: SdkVersion | None
    roll_forward: RollForward | None


def parse_global_json(contents: str, *, path: Path) -> SdkPin | None:
    """Parse ``global.json`` text into an :class:`SdkPin`.

    Args:
        contents: JSON document text.
        path: File path used for error context.

    Returns:
        SdkPin | None: Pin when the document has an ``sdk`` section, otherwise ``None``.

    Raises:
        ParseError: If the JSON is malformed, the version is not a one to
            four component SDK version, or ``rollForward`` is unknown.
    """

    try:
        document = GlobalJsonDocument.model_validate_json(contents)
    except ValidationError as exc:
        first = exc.errors()[0] if exc.errors() else {}
        raise ParseError(path, f"invalid JSON document: {first.get('msg', exc)}") from exc

    section = document.sdk
    if section is None:
        return None

    version: SdkVersion | None = None
    if section.version is not None and section.version.strip():
        try:
            version = SdkVersion.parse_pin(section.version)
        except InvalidVersionError as exc:
            raise ParseError(path, f"`sdk.version` {exc}") from exc

    roll_forward: RollForward | None = None
    if section.roll_forward is not None:
        roll_forward = RollForward.from_name(section.roll_forward)
        if roll_forward is None:
            valid = ", ".join(policy.value for policy in RollForward)
            raise ParseError(path, f"`sdk.rollForward` value '{section.roll_forward}' is not one of: {valid}")

    if roll_forward is RollForward.DISABLE and version is None:
        raise ParseError(path, "`sdk.rollForward` is 'disable' but no `sdk.version` is pinned")
    return SdkPin(path=path, version=version, roll_forward=roll_forward)


def read_global_json(app_dir: Path) -> SdkPin | None:
    """Return the pin declared by ``app_dir/global.json`` if the file exists."""

    path = app_dir / GLOBAL_JSON
    if not path.is_file():
        return None
    try:
        contents = path.read_text(encoding="utf-8-sig")
    except OSError as exc:
        raise ParseError(path, f"unable to read file ({exc.strerror or exc})") from exc
    return parse_global_json(contents, path=path)


__all__ = ["GLOBAL_JSON", "GlobalJsonDocument", "SdkPin", "parse_global_json", "read_global_json"]
