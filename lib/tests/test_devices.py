from __future__ import annotations

import json

import pytest

from conftest import json_response
from dynrest_client import ApiError, NetworkError
from dynrest_client.devices import register_device, resolve_target_url


class FakeTransport:
    def __init__(self, outcomes):
        self.outcomes = list(outcomes)
        self.calls = []

    async def send(self, req):
        self.calls.append(req)
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


class FakeClient:
    def __init__(self, outcomes):
        self.transport = FakeTransport(outcomes)


class SleepRecorder:
    def __init__(self):
        self.delays = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


@pytest.mark.asyncio
async def test_register_device_request(make_client) -> None:
    client, rec = make_client(lambda r: json_response({"data": {"id": "d1"}}))

    res = await register_device(client, "fcm-1", device_id="uuid-1")

    assert res == {"id": "d1"}
    assert str(rec.last.url) == "http://api.test/v1/devices/register"
    assert rec.last.headers["x-uuid"] == "uuid-1"
    assert json.loads(rec.last.content) == {"fcm_token": "fcm-1", "device_type": "web"}


@pytest.mark.asyncio
async def test_register_device_retries_network_errors() -> None:
    client = FakeClient([NetworkError("down"), NetworkError("down"), {"id": "d1"}])
    sleep = SleepRecorder()

    res = await register_device(client, "fcm-1", sleep=sleep)

    assert res == {"id": "d1"}
    assert sleep.delays == [1.0, 2.0]
    assert len(client.transport.calls) == 3


@pytest.mark.asyncio
async def test_register_device_gives_up() -> None:
    client = FakeClient([NetworkError("down")] * 3)
    sleep = SleepRecorder()

    assert await register_device(client, sleep=sleep) is None
    assert sleep.delays == [1.0, 2.0]


@pytest.mark.asyncio
async def test_register_device_does_not_retry_api_errors() -> None:
    client = FakeClient([ApiError("nope", 400)])
    sleep = SleepRecorder()

    assert await register_device(client, "fcm-1", sleep=sleep) is None
    assert sleep.delays == []
    assert len(client.transport.calls) == 1


def test_resolve_target_url() -> None:
    assert resolve_target_url({"url": "/orders/1", "click_action": "/x"}) == "/orders/1"
    assert resolve_target_url({"click_action": "/x"}) == "/x"
    assert resolve_target_url({}) == "/"
    assert resolve_target_url(None) == "/"
