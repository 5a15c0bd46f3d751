from __future__ import annotations

from dynrest_client.envelope import unwrap


def test_unwrap_envelope() -> None:
    assert unwrap({"data": {"id": "1"}}) == {"id": "1"}
    assert unwrap({"data": [1, 2]}) == [1, 2]


def test_unwrap_without_envelope_is_identity() -> None:
    payload = {"id": "1"}
    assert unwrap(payload) is payload
    assert unwrap(unwrap(payload)) == {"id": "1"}
    assert unwrap([{"data": 1}]) == [{"data": 1}]
    assert unwrap("text") == "text"
    assert unwrap(None) is None


def test_null_data_is_not_an_envelope() -> None:
    assert unwrap({"data": None, "total": 0}) == {"data": None, "total": 0}
