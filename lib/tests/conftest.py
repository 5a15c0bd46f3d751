from __future__ import annotations

import json

import httpx
import pytest

from dynrest_client import ClientConfig, DynrestClient, MemoryStorage, Navigator

SERVER_URL = "http://api.test/v1"


class Recorder:
    def __init__(self, responder):
        self.requests: list[httpx.Request] = []
        self._responder = responder

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self._responder(request)

    @property
    def last(self) -> httpx.Request:
        return self.requests[-1]


def json_response(payload, status: int = 200, content_type: str = "application/json") -> httpx.Response:
    return httpx.Response(status, content=json.dumps(payload).encode("utf-8"), headers={"content-type": content_type})


@pytest.fixture
def make_client():
    def _make(responder, *, token=None, storage=None, navigator=None, server_url=SERVER_URL):
        recorder = Recorder(responder)
        client = DynrestClient(
            ClientConfig(server_url=server_url, token=token, transport=httpx.MockTransport(recorder)),
            storage=storage if storage is not None else MemoryStorage(),
            navigator=navigator if navigator is not None else Navigator(),
        )
        return client, recorder

    return _make
