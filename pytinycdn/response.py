"""Normalization of TinyCDN response envelopes."""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from typing import Any

from .exceptions import CdnInvalidResponseError, CdnServiceError

logger = logging.getLogger(__name__)


def _effective_root(decoded: dict[str, Any]) -> dict[str, Any]:
    """Unwrap a doubly wrapped ``{"data": {"data": ..., "errors": ...}}`` body."""
    inner = decoded.get("data")
    if isinstance(inner, Mapping) and ("data" in inner or "errors" in inner):
        return dict(inner)
    return decoded


def parse_response(raw: bytes | str | None) -> dict[str, Any]:
    """Decode a raw response and resolve it to its data root.

    The service answers either ``{"data": ..., "errors": ...}`` or the same
    object wrapped once more under ``data``. Both shapes resolve to the inner
    object.

    Only the first reported service error is raised. Any further entries in
    ``errors`` are discarded.

    Args:
        raw: Raw response body

    Returns:
        The effective root object, to be indexed by operation name under
        ``data``

    Raises:
        CdnInvalidResponseError: If the body is empty or not a JSON object
        CdnServiceError: If the service reported an error
    """
    if not raw:
        raise CdnInvalidResponseError("Empty response from server")

    try:
        decoded = json.loads(raw)
    except ValueError as e:
        raise CdnInvalidResponseError("Response is not valid JSON") from e

    if not isinstance(decoded, dict):
        raise CdnInvalidResponseError(
            f"Unexpected response type: {type(decoded).__name__}"
        )

    root = _effective_root(decoded)

    errors = root.get("errors")
    if errors:
        first = errors[0] if isinstance(errors, list) else errors
        if not isinstance(first, Mapping):
            first = {"message": str(first)}
        if isinstance(errors, list) and len(errors) > 1:
            logger.debug("Discarding %d additional service errors", len(errors) - 1)
        try:
            code = int(first.get("code") or 0)
        except (TypeError, ValueError):
            code = 0
        raise CdnServiceError(
            str(first.get("message") or "Unknown service error"), code
        )

    return root
