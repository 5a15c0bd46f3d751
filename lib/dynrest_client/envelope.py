from __future__ import annotations

from typing import Any


def unwrap(parsed: Any) -> Any:
    """Strip a ``{"data": ...}`` envelope; anything else is returned unchanged.

    A null ``data`` counts as no envelope.
    """
    if isinstance(parsed, dict) and parsed.get("data") is not None:
        return parsed["data"]
    return parsed
