from __future__ import annotations

import json

import httpx
import pytest

from conftest import json_response
from dynrest_client import AuthError, FormData, MemoryStorage, UploadFile


def _body(request: httpx.Request):
    return json.loads(request.content.decode("utf-8"))


@pytest.mark.asyncio
async def test_dynamic_namespace_posts_mapping_as_json(make_client) -> None:
    client, rec = make_client(lambda r: json_response({"data": {"ok": True}}))

    res = await client.widgets.frobnicate({"x": 1})

    assert res == {"ok": True}
    assert rec.last.method == "POST"
    assert str(rec.last.url) == "http://api.test/v1/widgets/frobnicate"
    assert rec.last.headers["content-type"] == "application/json"
    assert _body(rec.last) == {"x": 1}


@pytest.mark.asyncio
async def test_dynamic_namespace_without_body_is_get(make_client) -> None:
    client, rec = make_client(lambda r: json_response([]))

    await client.functions.ping()
    assert rec.last.method == "GET"
    assert str(rec.last.url) == "http://api.test/v1/functions/ping"

    await client.functions.ping({})
    assert rec.last.method == "GET"
    assert rec.last.content == b""


@pytest.mark.asyncio
async def test_dynamic_namespace_uploads_file(make_client) -> None:
    client, rec = make_client(lambda r: json_response({}))

    await client.functions.ocr(UploadFile(b"img", filename="scan.png", content_type="image/png"))

    assert rec.last.method == "POST"
    assert rec.last.headers["content-type"].startswith("multipart/form-data")
    assert b'name="file"; filename="scan.png"' in rec.last.content


def test_namespaces_and_methods_are_memoized(make_client) -> None:
    client, _ = make_client(lambda r: json_response({}))

    assert client.widgets is client.widgets
    assert client["widgets"] is client.namespace("widgets")
    assert client.widgets.frobnicate is client.widgets.method("frobnicate")
    assert client.entities.Order is client.entities["Order"]
    assert client.integrations.Core is client.integrations.package("Core")
    assert client.asServiceRole is client.as_service_role


def test_private_names_do_not_resolve(make_client) -> None:
    client, _ = make_client(lambda r: json_response({}))

    with pytest.raises(AttributeError):
        client._secret
    with pytest.raises(AttributeError):
        client.widgets._hidden
    with pytest.raises(AttributeError):
        client.entities._Order


@pytest.mark.asyncio
async def test_entity_list_query(make_client) -> None:
    client, rec = make_client(lambda r: json_response({"data": [{"id": "1"}]}))

    res = await client.entities.Order.list({"sort": "-created", "limit": 10})

    assert res == [{"id": "1"}]
    assert rec.last.method == "GET"
    assert str(rec.last.url) == "http://api.test/v1/Order?sort=-created&limit=10"


@pytest.mark.asyncio
async def test_entity_list_positional_and_fields(make_client) -> None:
    client, rec = make_client(lambda r: json_response([]))

    await client.entities.Order.list("-created", 5, 10, ["id", "total"])

    params = rec.last.url.params
    assert params["sort"] == "-created"
    assert params["limit"] == "5"
    assert params["skip"] == "10"
    assert params["fields"] == "id,total"


@pytest.mark.asyncio
async def test_entity_filter_bare_document(make_client) -> None:
    client, rec = make_client(lambda r: json_response([]))

    await client.entities.Order.filter({"status": "open", "limit": 5})

    params = rec.last.url.params
    assert json.loads(params["q"]) == {"status": "open"}
    assert params["limit"] == "5"
    assert "sort" not in params


@pytest.mark.asyncio
async def test_entity_filter_explicit_q(make_client) -> None:
    client, rec = make_client(lambda r: json_response([]))

    await client.entities.Order.filter({"q": {"total": {"$gt": 10}}, "sort": "-total"}, limit=3)

    params = rec.last.url.params
    assert json.loads(params["q"]) == {"total": {"$gt": 10}}
    assert params["sort"] == "-total"
    assert params["limit"] == "3"


@pytest.mark.asyncio
async def test_entity_get_quotes_id(make_client) -> None:
    client, rec = make_client(lambda r: json_response({"id": "a/b"}))

    await client.entities.Order.get("a/b")

    assert rec.last.method == "GET"
    assert rec.last.url.raw_path == b"/v1/Order/a%2Fb"


@pytest.mark.asyncio
async def test_entity_create_update_delete(make_client) -> None:
    client, rec = make_client(lambda r: json_response({"id": "7"}))
    order = client.entities.Order

    await order.create({"total": 3})
    assert rec.last.method == "POST"
    assert str(rec.last.url) == "http://api.test/v1/Order"
    assert _body(rec.last) == {"total": 3}

    await order.update("7", {"total": 4})
    assert rec.last.method == "PUT"
    assert str(rec.last.url) == "http://api.test/v1/Order/7"
    assert _body(rec.last) == {"total": 4}

    await order.delete("7")
    assert rec.last.method == "DELETE"
    assert str(rec.last.url) == "http://api.test/v1/Order/7"


@pytest.mark.asyncio
async def test_entity_create_with_file_is_multipart(make_client) -> None:
    client, rec = make_client(lambda r: json_response({"id": "7"}))

    await client.entities.Document.create(
        {"title": "x", "doc": UploadFile(b"abc", filename="a.txt", content_type="text/plain")}
    )

    assert rec.last.headers["content-type"].startswith("multipart/form-data")
    assert b'name="title"' in rec.last.content
    assert b'name="doc"; filename="a.txt"' in rec.last.content


@pytest.mark.asyncio
async def test_entity_delete_many_alias(make_client) -> None:
    client, rec = make_client(lambda r: json_response({"deleted": 2}))

    res = await client.entities.Order.deleteMany({"status": "old"})

    assert res == {"deleted": 2}
    assert str(rec.last.url) == "http://api.test/v1/Order/deleteMany"
    assert _body(rec.last) == {"query": {"status": "old"}}


@pytest.mark.asyncio
async def test_entity_bulk_create(make_client) -> None:
    client, rec = make_client(lambda r: json_response([]))

    await client.entities.Order.bulkCreate([{"total": 1}, {"total": 2}])
    assert str(rec.last.url) == "http://api.test/v1/Order/bulk"
    assert _body(rec.last) == {"data": [{"total": 1}, {"total": 2}]}

    await client.entities.Order.bulk_create([{"scan": b"raw"}])
    assert rec.last.headers["content-type"].startswith("multipart/form-data")
    assert b'name="data[0][scan]"' in rec.last.content

    form = FormData([("note", "hi")])
    await client.entities.Order.bulk_create(form)
    assert b'name="note"' in rec.last.content


@pytest.mark.asyncio
async def test_entity_import(make_client) -> None:
    client, rec = make_client(lambda r: json_response({"imported": 1}))

    await client.entities.Order.importEntities(UploadFile(b"a,b\n", filename="rows.csv"))
    assert str(rec.last.url) == "http://api.test/v1/Order/import"
    assert b'name="file"; filename="rows.csv"' in rec.last.content

    await client.entities.Order.import_entities(None)
    assert rec.last.headers["content-type"].startswith("multipart/form-data; boundary=")
    assert rec.last.content.endswith(b"--\r\n")


@pytest.mark.asyncio
async def test_entity_unknown_verb_reads_collection(make_client) -> None:
    client, rec = make_client(lambda r: json_response([]))

    await client.entities.Order.search({"status": "open"})
    assert rec.last.method == "GET"
    assert str(rec.last.url) == "http://api.test/v1/Order?status=open"

    await client.entities.Order.search("ignored")
    assert str(rec.last.url) == "http://api.test/v1/Order"


@pytest.mark.asyncio
async def test_integration_action(make_client) -> None:
    client, rec = make_client(lambda r: json_response({"sent": True}))

    res = await client.integrations.Core.SendEmail({"to": "a@b.c"})
    assert res == {"sent": True}
    assert rec.last.method == "POST"
    assert str(rec.last.url) == "http://api.test/v1/integrations/Core/SendEmail"
    assert _body(rec.last) == {"to": "a@b.c"}

    await client.integrations.Core.Ping()
    assert _body(rec.last) == {}

    await client.integrations.Core.UploadFile({"file": b"raw"})
    assert rec.last.headers["content-type"].startswith("multipart/form-data")


@pytest.mark.asyncio
async def test_service_role_uses_configured_token(make_client) -> None:
    storage = MemoryStorage({"access_token": "user"})
    client, rec = make_client(lambda r: json_response([]), token="svc", storage=storage)

    await client.entities.Order.list()
    assert rec.last.headers["authorization"] == "Bearer user"

    await client.as_service_role.entities.Order.list()
    assert rec.last.headers["authorization"] == "Bearer svc"

    await client.asServiceRole.appLogs.track({"page": "home"})
    assert str(rec.last.url) == "http://api.test/v1/appLogs/track"
    assert rec.last.headers["authorization"] == "Bearer svc"

    assert client.as_service_role.cleanup() is None


@pytest.mark.asyncio
async def test_service_role_401_leaves_user_session(make_client) -> None:
    storage = MemoryStorage({"access_token": "user"})
    client, _ = make_client(lambda r: httpx.Response(401), token="svc", storage=storage)

    with pytest.raises(AuthError):
        await client.as_service_role.entities.Order.list()

    assert storage.get_item("access_token") == "user"
    assert client.navigator.history == []


@pytest.mark.asyncio
async def test_member_names_reachable_by_item_access(make_client) -> None:
    storage = MemoryStorage()
    client, rec = make_client(lambda r: json_response({}), storage=storage)

    assert client.storage is storage
    assert client["storage"].base_path == "storage"

    await client["storage"].usage()
    assert str(rec.last.url) == "http://api.test/v1/storage/usage"

    await client.widgets["method"]({"x": 1})
    assert str(rec.last.url) == "http://api.test/v1/widgets/method"
