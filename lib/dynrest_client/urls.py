from __future__ import annotations

import json
from collections.abc import Mapping
from typing import Any
from urllib.parse import quote

import httpx

from .config_types import ensure_base


def quote_segment(value: Any) -> str:
    """Percent-encode a single path segment (``/`` included)."""
    return quote(str(value), safe="-_.!~*'()")


def stringify_query_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (list, tuple)):
        return ",".join("" if v is None else stringify_query_value(v) for v in value)
    if isinstance(value, Mapping):
        return json.dumps(value, ensure_ascii=False, separators=(",", ":"))
    return str(value)


def build_url(base_url: str, path: str, query: Mapping[str, Any] | None = None) -> str:
    """Resolve ``path`` against ``base_url`` and append non-null ``query`` values.

    Resolution follows RFC 3986, so a path starting with ``/`` replaces the
    base path. Parameters already present in ``path`` are kept; new ones are
    appended in insertion order.
    """
    url = httpx.URL(ensure_base(base_url)).join(path)
    if query:
        items = list(url.params.multi_items())
        for key, value in query.items():
            if value is None:
                continue
            items.append((str(key), stringify_query_value(value)))
        url = url.copy_with(params=items)
    return str(url)
