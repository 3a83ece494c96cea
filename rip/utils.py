"""Copy/merge helpers for headers, query values and path segments.

All helpers return new containers. Callers hand the results to a new Client
so the previous Client keeps its own copies.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any
from urllib.parse import urlencode

import httpx

QueryValues = dict[str, list[str]]


def copy_headers(headers: httpx.Headers | Mapping[str, str] | None) -> httpx.Headers:
    """Copy headers into a new case-insensitive httpx.Headers."""
    result = httpx.Headers()
    if headers is None:
        return result
    items = headers.multi_items() if isinstance(headers, httpx.Headers) else headers.items()
    for key, value in items:
        result[key] = value
    return result


def copy_values(values: Mapping[str, Iterable[str]] | None) -> QueryValues:
    """Copy query values, keeping per-key order."""
    if not values:
        return {}
    return {key: list(vals) for key, vals in values.items()}


def _as_value_list(value: Any) -> list[str]:
    """Normalize one query value (scalar or iterable) to a list of strings."""
    if value is None:
        return []
    if isinstance(value, (str, bytes)):
        return [value.decode("utf-8") if isinstance(value, bytes) else value]
    if isinstance(value, Iterable):
        return [str(v) for v in value]
    return [str(value)]


def merge_values(existing: Mapping[str, Iterable[str]], values: Mapping[str, Any]) -> QueryValues:
    """Return a copy of existing with values appended per key."""
    result = copy_values(existing)
    for key, value in values.items():
        result.setdefault(key, []).extend(_as_value_list(value))
    return result


def encode_query(values: Mapping[str, Iterable[str]]) -> str:
    """Encode query values as application/x-www-form-urlencoded.

    Keys are sorted; the order of values within a key is preserved.
    Returns "" for an empty mapping.
    """
    pairs: list[tuple[str, str]] = []
    for key in sorted(values):
        for value in values[key]:
            pairs.append((key, value))
    return urlencode(pairs)


def ensure_trailing_slash(path: str) -> str:
    """Force path to end in exactly one '/'."""
    return path.rstrip("/") + "/"


def normalize_path_parts(parts: Iterable[Any]) -> list[str]:
    """Turn raw path parts into segments ready to be joined.

    Each part is converted with str(), stripped of surrounding whitespace and
    leading '/'. Parts that end up empty are dropped. '?' and '#' are
    percent-encoded so they stay in the path. Every segment but the last one
    carries a trailing '/'.

        >>> normalize_path_parts(["this", "is", "", "  ", "product", 1])
        ['this/', 'is/', 'product/', '1']
    """
    segments = []
    for part in parts:
        segment = str(part).strip().lstrip("/").strip()
        if segment:
            segments.append(segment.replace("?", "%3F").replace("#", "%23"))

    return [ensure_trailing_slash(s) for s in segments[:-1]] + segments[-1:]
