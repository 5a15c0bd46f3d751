from __future__ import annotations

import json
import logging
from typing import Any

import httpx

from .config_types import ClientConfig
from .credentials import Credential
from .encoding import FormData, RequestDescriptor
from .envelope import unwrap
from .errors import AuthError, NetworkError
from .errors_utils import classify_error_response, looks_json
from .navigation import Navigator
from .urls import build_url

logger = logging.getLogger(__name__)

USER_AGENT = "dynrest-client/0.1.0"


class Transport:
    def __init__(
            self,
            cfg: ClientConfig,
            credential: Credential,
            *,
            navigator: Navigator | None = None,
            client: httpx.AsyncClient | None = None,
    ):
        self._cfg = cfg
        self._credential = credential
        self._navigator = navigator
        self._owns_client = client is None
        if client is None:
            headers = {"User-Agent": USER_AGENT}
            if cfg.client_version:
                headers["X-Client-Version"] = cfg.client_version
            client = httpx.AsyncClient(
                timeout=cfg.timeout_s,
                headers=headers,
                transport=cfg.transport,
                follow_redirects=True,
            )
        self._client = client

    @property
    def config(self) -> ClientConfig:
        return self._cfg

    @property
    def credential(self) -> Credential:
        return self._credential

    @property
    def navigator(self) -> Navigator | None:
        return self._navigator

    def with_credential(self, credential: Credential, *, navigator: Navigator | None = None) -> "Transport":
        """Same connection pool, different credential."""
        return Transport(self._cfg, credential, navigator=navigator, client=self._client)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    def build_url(self, path: str, query: dict[str, Any] | None = None) -> str:
        return build_url(self._cfg.base_url, path, query)

    async def send(self, req: RequestDescriptor) -> Any:
        url = build_url(self._cfg.base_url, req.path, req.query)
        headers = {"Accept": "application/json", **req.headers}
        generation = self._credential.generation
        token = self._credential.get()
        if token:
            headers["Authorization"] = f"Bearer {token}"

        kwargs: dict[str, Any] = {}
        if isinstance(req.body, FormData):
            form_kwargs = req.body.request_kwargs()
            headers.update(form_kwargs.pop("headers", {}))
            kwargs.update(form_kwargs)
        elif req.body is not None:
            kwargs["content"] = req.body.encode("utf-8")

        try:
            r = await self._client.request(req.method, url, headers=headers, **kwargs)
        except httpx.RequestError as e:
            raise NetworkError(str(e) or e.__class__.__name__, original_error=e) from e
        logger.debug("%s %s -> %s", req.method, url, r.status_code)

        if r.status_code == 204:
            return None
        if r.status_code == 401:
            self._invalidate_session(generation)
            raise AuthError("Unauthorized", 401, "unauthorized")

        content_type = r.headers.get("content-type", "")
        text = r.text
        is_json = looks_json(content_type)
        data: Any = text
        if is_json:
            try:
                data = json.loads(text) if text else None
            except ValueError:
                # Served as JSON but not parseable: hand back the raw text.
                logger.debug("%s %s: response is not valid JSON, returning text", req.method, url)

        if not r.is_success:
            raise classify_error_response(r.status_code, r.reason_phrase, content_type, data)

        return unwrap(data) if is_json else text

    def _invalidate_session(self, generation: int) -> None:
        if not self._credential.invalidate(generation):
            return
        logger.warning("received 401 Unauthorized, session cleared")
        if self._navigator is not None:
            self._navigator.navigate("/")
