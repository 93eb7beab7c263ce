# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Download, verify and unpack SDK release archives.

Downloads stream into a temporary file while a SHA-256 digest is computed over
the same bytes. Transport failures are retried with exponential backoff; a
checksum mismatch is fatal and never retried. Archives are unpacked into a
sibling temporary directory and swapped into place so an interrupted build
never leaves a half-populated toolchain behind.
"""

from __future__ import annotations

import hashlib
import logging
import os
import shutil
import tarfile
import tempfile
import time
from collections.abc import Callable, Iterable
from pathlib import Path
from typing import Final, Protocol

import requests

from ..errors import ArchiveError, DownloadError, DownloadExhaustedError, IntegrityError
from ..resolution.matcher import ResolvedRelease

LOGGER = logging.getLogger(__name__)

MAX_ATTEMPTS: Final[int] = 5
BACKOFF_BASE_SECONDS: Final[float] = 1.0
DEFAULT_TIMEOUT_SECONDS: Final[float] = 60.0
CHUNK_SIZE: Final[int] = 1024 * 1024
TRANSIENT_STATUS_CODES: Final[frozenset[int]] = frozenset({408, 429})


class HttpResponse(Protocol):
    """Subset of :class:`requests.Response` used by downloads."""

    def raise_for_status(self) -> None:
        """Raise :class:`requests.HTTPError` for 4xx/5xx responses."""

    def iter_content(self, chunk_size: int = ...) -> Iterable[bytes]:
        """Yield the response body in chunks."""

    def close(self) -> None:
        """Release the underlying connection."""


class HttpGet(Protocol):
    """Callable compatible with ``requests.get`` for the parameters we pass."""

    def __call__(self, url: str, *, timeout: float, stream: bool) -> HttpResponse:
        """Return a streaming response for ``url``."""


RetryCallback = Callable[[int, BaseException, float], None]


def backoff_delay(attempt: int) -> float:
    """Return the wait before attempt ``attempt + 1`` (1s, 2s, 4s, 8s, ...)."""

    return BACKOFF_BASE_SECONDS * (2 ** (attempt - 1))


def _is_transient(exc: requests.RequestException) -> bool:
    if isinstance(exc, requests.HTTPError):
        status = exc.response.status_code if exc.response is not None else None
        return status is None or status >= 500 or status in TRANSIENT_STATUS_CODES
    return isinstance(
        exc,
        (requests.ConnectionError, requests.Timeout, requests.exceptions.ChunkedEncodingError),
    )


def _stream_to_file(get: HttpGet, url: str, destination: Path, *, timeout: float) -> str:
    """Write one download attempt to ``destination`` and return its hex digest."""

    digest = hashlib.sha256()
    response = get(url, timeout=timeout, stream=True)
    try:
        response.raise_for_status()
        with destination.open("wb") as handle:
            for chunk in response.iter_content(chunk_size=CHUNK_SIZE):
                if not chunk:
                    continue
                handle.write(chunk)
                digest.update(chunk)
    finally:
        response.close()
    return digest.hexdigest()


def download_archive(
    url: str,
    expected_sha256: str,
    destination: Path,
    *,
    get: HttpGet | None = None,
    sleep: Callable[[float], None] = time.sleep,
    timeout: float = DEFAULT_TIMEOUT_SECONDS,
    max_attempts: int = MAX_ATTEMPTS,
    on_retry: RetryCallback | None = None,
) -> Path:
    """Download ``url`` into ``destination`` and verify its SHA-256 digest.

    Args:
        url: Archive URL.
        expected_sha256: Lower-case hex digest the archive must match.
        destination: File the archive is written to.
        get: HTTP GET callable; defaults to :func:`requests.get`.
        sleep: Sleep function used between attempts.
        timeout: Per-attempt transport timeout in seconds.
        max_attempts: Total number of attempts before giving up.
        on_retry: Optional callback receiving ``(attempt, error, delay)`` before each wait.

    Returns:
        Path: ``destination``, holding the verified archive.

    Raises:
        IntegrityError: If the downloaded bytes do not match ``expected_sha256``.
        DownloadError: If the server answers with a non-transient error status.
        DownloadExhaustedError: If transient failures persist for every attempt.
    """

    http_get: HttpGet = requests.get if get is None else get
    for attempt in range(1, max_attempts + 1):
        try:
            actual = _stream_to_file(http_get, url, destination, timeout=timeout)
        except requests.RequestException as exc:
            destination.unlink(missing_ok=True)
            if not _is_transient(exc):
                raise DownloadError(f"Downloading {url} failed: {exc}") from exc
            if attempt == max_attempts:
                raise DownloadExhaustedError(url, attempt, exc) from exc
            delay = backoff_delay(attempt)
            LOGGER.debug("download attempt %d/%d of %s failed (%s); retrying in %.0fs", attempt, max_attempts, url, exc, delay)
            if on_retry is not None:
                on_retry(attempt, exc, delay)
            sleep(delay)
            continue

        if actual != expected_sha256.lower():
            destination.unlink(missing_ok=True)
            raise IntegrityError(url, expected_sha256, actual)
        LOGGER.debug("downloaded %s (sha256 %s) on attempt %d", url, actual, attempt)
        return destination
    raise AssertionError("unreachable")  # pragma: no cover


def _replace_directory(source: Path, target: Path) -> None:
    """Move ``source`` into ``target``, discarding any previous contents of ``target``."""

    if target.exists():
        retired = Path(tempfile.mkdtemp(prefix=f".{target.name}.old.", dir=target.parent))
        os.replace(target, retired / target.name)
        os.replace(source, target)
        shutil.rmtree(retired, ignore_errors=True)
    else:
        os.replace(source, target)


def install_archive(archive: Path, target: Path) -> None:
    """Unpack ``archive`` and swap the result into ``target``.

    Raises:
        ArchiveError: If the archive is corrupt or contains unsafe members.
    """

    target.parent.mkdir(parents=True, exist_ok=True)
    staging = Path(tempfile.mkdtemp(prefix=f".{target.name}.", dir=target.parent))
    try:
        with tarfile.open(archive, "r:*") as tar:
            tar.extractall(path=staging, filter="data")
    except (tarfile.TarError, OSError) as exc:
        shutil.rmtree(staging, ignore_errors=True)
        raise ArchiveError(f"Unable to unpack {archive.name} into {target}: {exc}") from exc
    _replace_directory(staging, target)


def acquire_release(
    release: ResolvedRelease,
    target: Path,
    *,
    get: HttpGet | None = None,
    sleep: Callable[[float], None] = time.sleep,
    timeout: float = DEFAULT_TIMEOUT_SECONDS,
    on_retry: RetryCallback | None = None,
) -> None:
    """Download, verify and unpack ``release`` into ``target``.

    The archive is staged next to ``target`` and removed once unpacked; on any
    failure ``target`` is left untouched.
    """

    target.parent.mkdir(parents=True, exist_ok=True)
    fd, archive_name = tempfile.mkstemp(prefix=f".{target.name}.", suffix=".tar.gz", dir=target.parent)
    os.close(fd)
    archive = Path(archive_name)
    try:
        download_archive(
            release.url,
            release.sha256,
            archive,
            get=get,
            sleep=sleep,
            timeout=timeout,
            on_retry=on_retry,
        )
        install_archive(archive, target)
    finally:
        archive.unlink(missing_ok=True)


__all__ = [
    "BACKOFF_BASE_SECONDS",
    "DEFAULT_TIMEOUT_SECONDS",
    "MAX_ATTEMPTS",
    "HttpGet",
    "HttpResponse",
    "acquire_release",
    "backoff_delay",
    "download_archive",
    "install_archive",
]
