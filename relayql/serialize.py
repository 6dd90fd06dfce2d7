"""QueryParams serialization.

The aggregate must be:

- Roundtrip-safe: ``from_dict(to_dict(p)) == p`` for every legal aggregate.
- Transport-neutral: the structural form holds only string-keyed mappings,
  lists and scalars.

A second stage, :func:`encode_query_params`, renders each top-level slot as
a single URL query-string value for read requests.  Mappings and lists become
percent-encoded compact JSON (``encodeURIComponent`` rules); the receiver
reverses this with :func:`decode_query_params`.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from typing import Any
from urllib.parse import quote, unquote

from relayql.errors import FormatError
from relayql.schema.query_params import QueryParams

#: Characters left unescaped in addition to ``A-Z a-z 0-9 _ . - ~``.
_URI_COMPONENT_SAFE = "!*'()"


def to_dict(params: QueryParams) -> dict[str, Any]:
    """
    Convert a QueryParams aggregate to its structural form.

    Args:
        params: The aggregate to convert

    Returns:
        Sparse dictionary with camelCase keys
    """
    return params.to_dict()


def from_dict(data: Mapping[str, Any]) -> QueryParams:
    """
    Reconstruct a QueryParams aggregate from its structural form.

    Raises:
        FormatError: If a token is unknown or the structure is malformed
    """
    return QueryParams.from_dict(data)


def to_json(params: QueryParams, indent: int | None = None) -> str:
    """
    Serialize a QueryParams aggregate to JSON.

    Args:
        params: The aggregate to serialize
        indent: Indentation level for pretty-printing

    Returns:
        JSON string representation
    """
    return json.dumps(to_dict(params), indent=indent)


def from_json(json_str: str) -> QueryParams:
    """
    Deserialize a QueryParams aggregate from JSON.

    Raises:
        FormatError: If the text is not valid JSON or not a valid aggregate
    """
    try:
        data = json.loads(json_str)
    except json.JSONDecodeError as exc:
        raise FormatError(f"Invalid JSON: {exc}", value=json_str) from exc
    return from_dict(data)


# ---------------------------------------------------------------------------
# URL transport encoding
# ---------------------------------------------------------------------------


def _encode_value(value: Any) -> str:
    if isinstance(value, (dict, list)):
        text = json.dumps(value, separators=(",", ":"))
        return quote(text, safe=_URI_COMPONENT_SAFE)
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def encode_query_params(params: QueryParams) -> dict[str, str]:
    """
    Flatten an aggregate into URL query parameters.

    Every populated slot becomes one string value. Absent slots are omitted.

    Args:
        params: The aggregate to encode

    Returns:
        Mapping of wire key to query-string value
    """
    return {key: _encode_value(value) for key, value in to_dict(params).items()}


def decode_query_params(query: Mapping[str, str]) -> QueryParams:
    """
    Rebuild an aggregate from values produced by :func:`encode_query_params`.

    Raises:
        FormatError: If a value cannot be decoded
    """
    data: dict[str, Any] = {}
    for key, raw in query.items():
        try:
            data[key] = json.loads(unquote(raw))
        except json.JSONDecodeError as exc:
            raise FormatError(f"Invalid value for {key!r}: {raw!r}", value=raw) from exc
    return from_dict(data)


# ---------------------------------------------------------------------------
# Diffing
# ---------------------------------------------------------------------------


def diff_params(p1: QueryParams, p2: QueryParams) -> dict[str, Any]:
    """
    Compare two aggregates and return their differences.

    Args:
        p1: First aggregate
        p2: Second aggregate

    Returns:
        ``{"same": bool, "differences": {path: change}}`` where a change is
        ``{"added": v}``, ``{"removed": v}`` or ``{"was": a, "now": b}``
    """

    def _diff(a: dict, b: dict, path: str = "") -> dict[str, Any]:
        differences = {}
        for key in sorted(set(a) | set(b)):
            current_path = f"{path}.{key}" if path else key
            if key not in a:
                differences[current_path] = {"added": b[key]}
            elif key not in b:
                differences[current_path] = {"removed": a[key]}
            elif a[key] != b[key]:
                if isinstance(a[key], dict) and isinstance(b[key], dict):
                    differences.update(_diff(a[key], b[key], current_path))
                else:
                    differences[current_path] = {"was": a[key], "now": b[key]}
        return differences

    diff = _diff(to_dict(p1), to_dict(p2))
    return {"same": not diff, "differences": diff}
