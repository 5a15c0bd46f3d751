from __future__ import annotations

from typing import Any


class DynrestClientError(Exception):
    """Base client error."""

    def __init__(
            self,
            message: str,
            status: int | None = None,
            code: str | None = None,
            data: Any = None,
            original_error: BaseException | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.status = status
        self.code = code
        self.data = data
        self.original_error = original_error


class ConfigError(DynrestClientError):
    """Invalid client configuration."""


class NetworkError(DynrestClientError):
    """Transport/network layer error."""


class ApiError(DynrestClientError):
    """Structured JSON error body without problem+json typing."""


class ProblemError(ApiError):
    """application/problem+json error (title/status/type)."""


class HttpError(ApiError):
    """Non-JSON failure body."""


class AuthError(ApiError):
    """401 Unauthorized. The session has been invalidated."""
