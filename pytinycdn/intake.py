"""Resolve upload sources into validated local files with content digests."""

from __future__ import annotations

import hashlib
import logging
import os
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, Optional
from urllib.parse import urlparse

import httpx

from .exceptions import CdnEmptyFileError, CdnNotFoundError, CdnNotReadableError
from .utils import DEFAULT_TIMEOUT, filename_from_source

logger = logging.getLogger(__name__)

# Read size used while hashing
_HASH_BLOCK_SIZE = 64 * 1024

_URL_SCHEMES = ("http", "https")


@dataclass
class LocalFile:
    """A validated local file ready for upload.

    Downloaded sources live in a temporary file that is removed by
    :meth:`close` (or on leaving the ``with`` block).
    """

    path: Path
    filename: str
    size: int
    md5: str
    sha256: Optional[str] = None
    is_temporary: bool = False

    def open(self) -> BinaryIO:
        """Open the file for binary reading."""
        return open(self.path, "rb")

    def close(self) -> None:
        """Remove the temporary download, if any."""
        if self.is_temporary:
            try:
                self.path.unlink()
            except FileNotFoundError:
                pass
            self.is_temporary = False

    def __enter__(self) -> "LocalFile":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()


def is_url(source: str) -> bool:
    """Check whether ``source`` is a well-formed http(s) URL.

    Examples:
        >>> is_url("https://example.com/a.png")
        True
        >>> is_url("/tmp/a.png")
        False
    """
    parsed = urlparse(source)
    return parsed.scheme in _URL_SCHEMES and bool(parsed.netloc)


def download_to_temp(
    url: str, timeout: float = DEFAULT_TIMEOUT, verify_ssl: bool = True
) -> Path:
    """Download a URL into a private temporary file.

    A failed download leaves the temporary file empty. The caller's
    emptiness check treats it like a zero-byte source.

    Args:
        url: Source URL
        timeout: Request timeout in seconds
        verify_ssl: Whether TLS certificates are verified

    Returns:
        Path of the temporary file
    """
    fd, name = tempfile.mkstemp(prefix="tinycdn_download_")
    path = Path(name)
    try:
        with os.fdopen(fd, "wb") as f:
            try:
                with httpx.stream(
                    "GET",
                    url,
                    timeout=timeout,
                    verify=verify_ssl,
                    follow_redirects=True,
                ) as response:
                    response.raise_for_status()
                    for chunk in response.iter_bytes(chunk_size=_HASH_BLOCK_SIZE):
                        f.write(chunk)
            except httpx.HTTPError as e:
                logger.warning("Download of %s failed: %s", url, e)
    except BaseException:
        path.unlink(missing_ok=True)
        raise
    return path


def compute_digests(path: Path) -> tuple[str, Optional[str]]:
    """Compute the MD5 and, when available, SHA-256 digests of a file.

    Both digests are computed in a single pass.

    Args:
        path: File to hash

    Returns:
        Tuple of (md5 hex digest, sha256 hex digest or None)
    """
    md5 = hashlib.md5()
    sha256 = (
        hashlib.sha256() if "sha256" in hashlib.algorithms_available else None
    )

    with open(path, "rb") as f:
        while True:
            block = f.read(_HASH_BLOCK_SIZE)
            if not block:
                break
            md5.update(block)
            if sha256 is not None:
                sha256.update(block)

    return md5.hexdigest(), sha256.hexdigest() if sha256 is not None else None


def resolve_source(
    source: str | Path,
    filename: Optional[str] = None,
    timeout: float = DEFAULT_TIMEOUT,
    verify_ssl: bool = True,
) -> LocalFile:
    """Resolve a local path or URL into a validated :class:`LocalFile`.

    Args:
        source: Local path or http(s) URL
        filename: Optional name overriding the one derived from ``source``
        timeout: Download timeout in seconds for URL sources
        verify_ssl: Whether TLS certificates are verified for URL sources

    Returns:
        LocalFile with size and digests

    Raises:
        CdnNotFoundError: If a local path does not exist or is not a file
        CdnNotReadableError: If a local path cannot be read
        CdnEmptyFileError: If the file (or download) is empty
    """
    source = str(source)
    is_temporary = is_url(source)

    if is_temporary:
        path = download_to_temp(source, timeout=timeout, verify_ssl=verify_ssl)
    else:
        path = Path(source)
        if not path.is_file():
            raise CdnNotFoundError(f"File not found: {source}")
        if not os.access(path, os.R_OK):
            raise CdnNotReadableError(f"File not readable: {source}")

    try:
        size = path.stat().st_size
        if size == 0:
            raise CdnEmptyFileError(f"File is empty: {source}")
        md5, sha256 = compute_digests(path)
    except BaseException:
        if is_temporary:
            path.unlink(missing_ok=True)
        raise

    local_file = LocalFile(
        path=path,
        filename=filename or filename_from_source(source),
        size=size,
        md5=md5,
        sha256=sha256,
        is_temporary=is_temporary,
    )
    logger.debug("Resolved %s (%d bytes, md5=%s)", source, size, md5)
    return local_file
