from __future__ import annotations

import httpx
import pytest

from conftest import Recorder, json_response
from dynrest_client import ConfigError, create_client_from_request
from dynrest_client.server import get_auth_token


def test_get_auth_token() -> None:
    assert get_auth_token({"Authorization": "Bearer abc"}) == "abc"
    assert get_auth_token({"authorization": "Bearer  abc "}) == "abc"
    assert get_auth_token({"Authorization": "Basic xyz"}) is None
    assert get_auth_token({}) is None


def test_missing_backend_url() -> None:
    with pytest.raises(ConfigError):
        create_client_from_request({"Authorization": "Bearer abc"}, environ={})


@pytest.mark.asyncio
async def test_forwards_caller_token() -> None:
    rec = Recorder(lambda r: json_response({"data": [{"id": "1"}]}))
    client = create_client_from_request(
        {"Authorization": "Bearer abc"},
        environ={"BACKEND_API_URL": "http://backend.test/api"},
        transport=httpx.MockTransport(rec),
    )

    async with client:
        res = await client.as_service_role.entities.Order.list()

    assert res == [{"id": "1"}]
    assert str(rec.last.url) == "http://backend.test/api/Order"
    assert rec.last.headers["authorization"] == "Bearer abc"


@pytest.mark.asyncio
async def test_without_caller_token_sends_no_authorization() -> None:
    rec = Recorder(lambda r: json_response({}))
    client = create_client_from_request(
        {},
        environ={"BACKEND_API_URL": "http://backend.test/api"},
        transport=httpx.MockTransport(rec),
    )

    await client.as_service_role.functions.report({"x": 1})
    await client.aclose()

    assert "authorization" not in rec.last.headers
    assert str(rec.last.url) == "http://backend.test/api/functions/report"
