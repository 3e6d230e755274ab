"""Encoding helpers for TinyCDN query-language requests."""

import json
from collections.abc import Mapping
from typing import Any


def dumps(value: Any) -> str:
    """Serialize a value to JSON without escaping unicode or slashes.

    The standard encoder never escapes ``/``, and ``ensure_ascii=False`` keeps
    non-ASCII code points as-is, so the text can be embedded verbatim in a
    query.

    Args:
        value: Any JSON-serializable value

    Returns:
        JSON text
    """
    return json.dumps(value, ensure_ascii=False)


def encode_arguments(args: Mapping[str, Any]) -> str:
    """Encode a mapping into the argument list of a query-language call.

    Key names are not validated.

    Args:
        args: Parameter name to value mapping

    Returns:
        Argument text such as ``file_id: 12, url: "https://a.b/c"``,
        or an empty string for an empty mapping

    Examples:
        >>> encode_arguments({"file_id": 12, "is_public": True})
        'file_id: 12, is_public: true'
        >>> encode_arguments({})
        ''
    """
    return ", ".join(f"{key}: {dumps(value)}" for key, value in args.items())
