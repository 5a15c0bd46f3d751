from __future__ import annotations
from dataclasses import dataclass

import httpx

DEFAULT_STORAGE_KEY = "access_token"


def ensure_base(url: str) -> str:
    return url if url.endswith("/") else url + "/"


@dataclass(frozen=True)
class ClientConfig:
    server_url: str
    token: str | None = None
    storage_key: str = DEFAULT_STORAGE_KEY
    transport: httpx.AsyncBaseTransport | None = None
    timeout_s: float = 15.0
    client_version: str | None = None

    @property
    def base_url(self) -> str:
        return ensure_base(self.server_url)
