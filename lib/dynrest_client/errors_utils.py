from __future__ import annotations

from typing import Any

from .errors import ApiError, HttpError, ProblemError

PROBLEM_JSON = "application/problem+json"
APPLICATION_JSON = "application/json"


def looks_json(content_type: str) -> bool:
    ct = (content_type or "").lower()
    return APPLICATION_JSON in ct or PROBLEM_JSON in ct


def classify_error_response(status: int, reason: str, content_type: str, data: Any) -> ApiError:
    """Map a failed response onto the error taxonomy.

    ``data`` is the parsed body for JSON content types (raw text when parsing
    failed) and the raw text otherwise.
    """
    ct = (content_type or "").lower()
    fields = data if isinstance(data, dict) else {}

    if PROBLEM_JSON in ct and data:
        return ProblemError(
            str(fields.get("title") or "Request failed"),
            _int_or(fields.get("status"), status),
            fields.get("type"),
            data,
        )
    if APPLICATION_JSON in ct and data:
        return ApiError(
            str(fields.get("message") or "Request failed"),
            _int_or(fields.get("statusCode"), status),
            fields.get("type"),
            data,
        )
    return HttpError(f"HTTP {status} {reason or ''}".strip(), status, None, data)


def _int_or(value: Any, default: int) -> int:
    if value is None:
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        return default
