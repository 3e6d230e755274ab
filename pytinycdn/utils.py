"""Utility functions and constants for the TinyCDN client."""

from datetime import datetime
from typing import Optional

# =============================================================================
# Constants
# =============================================================================

DEFAULT_API_URL: str = "https://cdn.tinycdn.cloud/api/"

# Chunk size for uploading file content in several round trips (512 KiB)
CHUNK_SIZE: int = 524288

# zlib level used for chunk compression
COMPRESSION_LEVEL: int = 9

DEFAULT_TIMEOUT: float = 30.0

# Default page size for list queries
DEFAULT_LIMIT: int = 100

FILE_TYPES: tuple[str, ...] = ("file", "image")
DEFAULT_FILE_TYPE: str = "file"


# =============================================================================
# Timestamp parsing utilities
# =============================================================================


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    """Parse a timestamp as returned by the TinyCDN API.

    Accepts ISO format (with or without a trailing ``Z``) as well as the
    ``YYYY-MM-DD HH:MM:SS`` form.

    Args:
        value: Timestamp string

    Returns:
        datetime object or None if parsing fails
    """
    if not value:
        return None

    if value.endswith("Z"):
        value = value[:-1] + "+00:00"

    try:
        return datetime.fromisoformat(value)
    except ValueError:
        pass

    try:
        return datetime.strptime(value, "%Y-%m-%d %H:%M:%S")
    except ValueError:
        return None


# =============================================================================
# Formatting utilities
# =============================================================================


def format_size(size_bytes: int) -> str:
    """Format file size in human-readable format.

    Args:
        size_bytes: Size in bytes

    Returns:
        Formatted size string (e.g., "1.5 MB", "256 B")
    """
    if size_bytes < 1024:
        return f"{size_bytes} B"
    elif size_bytes < 1024 * 1024:
        return f"{size_bytes / 1024:.1f} KB"
    elif size_bytes < 1024 * 1024 * 1024:
        return f"{size_bytes / 1024 / 1024:.1f} MB"
    else:
        return f"{size_bytes / 1024 / 1024 / 1024:.1f} GB"


def mask_token(token: Optional[str]) -> str:
    """Mask a secret token for display.

    Examples:
        >>> mask_token("abcdef123456")
        'abcd********'
        >>> mask_token("")
        ''
    """
    if not token:
        return ""
    visible = min(4, len(token) // 3)
    return token[:visible] + "*" * (len(token) - visible)


def filename_from_source(source: str) -> str:
    """Derive a file name from a local path or URL.

    The basename is taken and any query-string suffix after ``?`` is stripped.

    Examples:
        >>> filename_from_source("https://example.com/img/cat.png?size=large")
        'cat.png'
        >>> filename_from_source("/tmp/report.pdf")
        'report.pdf'
    """
    name = source.rstrip("/").replace("\\", "/").rsplit("/", 1)[-1]
    return name.split("?", 1)[0]


def normalize_file_type(file_type: Optional[str]) -> str:
    """Return ``file_type`` if it is a known type, else the default ``file``."""
    if file_type in FILE_TYPES:
        return file_type  # type: ignore[return-value]
    return DEFAULT_FILE_TYPE
