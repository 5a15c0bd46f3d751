"""Request-scoped client for server-side handlers.

The caller's bearer token is forwarded to the backend named by
``BACKEND_API_URL``. Nothing is persisted and nothing navigates; a 401 only
drops the request-scoped credential.
"""
from __future__ import annotations

import os
from collections.abc import Mapping

import httpx

from .client import ServiceRole
from .config_types import ClientConfig
from .credentials import Credential
from .errors import ConfigError
from .transport import Transport

ENV_BACKEND_URL = "BACKEND_API_URL"


def get_auth_token(headers: Mapping[str, str] | httpx.Headers) -> str | None:
    value = httpx.Headers(headers).get("authorization") or ""
    if value.startswith("Bearer "):
        return value[len("Bearer "):].strip() or None
    return None


class RequestClient:
    def __init__(self, transport: Transport):
        self._t = transport
        self.as_service_role = ServiceRole(transport)

    async def aclose(self) -> None:
        await self._t.aclose()

    async def __aenter__(self) -> "RequestClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()


def create_client_from_request(
        headers: Mapping[str, str] | httpx.Headers,
        *,
        environ: Mapping[str, str] | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
) -> RequestClient:
    env = os.environ if environ is None else environ
    backend_url = (env.get(ENV_BACKEND_URL) or "").strip()
    if not backend_url:
        raise ConfigError(f"{ENV_BACKEND_URL} is not set")
    token = get_auth_token(headers)
    cfg = ClientConfig(server_url=backend_url, token=token, transport=transport)
    return RequestClient(Transport(cfg, Credential(None, cfg.storage_key, token)))
