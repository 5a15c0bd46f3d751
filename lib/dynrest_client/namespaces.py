"""Namespaces whose method names are only known at call time.

Each module keeps an explicit dispatch table from method name to handler and a
fallback for names that are not in the table. Attribute access is sugar over
``method(name)``, e.g. ``client.widgets.frobnicate`` is
``client.namespace("widgets").method("frobnicate")``. Names starting with an
underscore never resolve dynamically.
"""
from __future__ import annotations

from collections.abc import Awaitable, Callable, Mapping
from typing import Any

from .encoding import (
    FormData,
    RequestDescriptor,
    call_request,
    dumps_json,
    file_form,
    form_request,
    has_file_like_deep,
    json_request,
    multipart_for,
    object_to_form_data,
    payload_request,
)
from .transport import Transport
from .urls import quote_segment

Handler = Callable[..., Awaitable[Any]]

LIST_OPTIONS = ("sort", "limit", "skip", "fields")


def check_dynamic_name(owner: object, name: str) -> None:
    if name.startswith("_"):
        raise AttributeError(f"{type(owner).__name__!s} has no attribute {name!r}")


def fields_csv(value: Any) -> str | None:
    if not value:
        return None
    if isinstance(value, (list, tuple)):
        return ",".join(str(v) for v in value)
    return str(value)


class DynamicModule:
    """Generic namespace: ``<name>(arg)`` calls ``<base_path>/<name>``.

    The argument picks the encoding (see ``encoding.call_request``): files go
    multipart, a non-empty mapping is POSTed as JSON, anything else becomes a
    GET with the mapping (if any) as query string.
    """

    def __init__(self, base_path: str, transport: Transport):
        self._base_path = base_path
        self._t = transport
        self._methods: dict[str, Handler] = {}

    @property
    def base_path(self) -> str:
        return self._base_path

    def method(self, name: str) -> Handler:
        """Handler for ``name``; use this or ``module[name]`` for ``method`` and ``base_path``."""
        handler = self._methods.get(name)
        if handler is None:
            handler = self._make_handler(name)
            self._methods[name] = handler
        return handler

    def _make_handler(self, name: str) -> Handler:
        path = f"{self._base_path}/{quote_segment(name)}"

        async def call(*args: Any) -> Any:
            return await self._t.send(call_request(path, args[0] if args else None))

        call.__name__ = name
        call.__qualname__ = f"{self._base_path}.{name}"
        return call

    def __getattr__(self, name: str) -> Handler:
        check_dynamic_name(self, name)
        return self.method(name)

    def __getitem__(self, name: str) -> Handler:
        return self.method(name)

    def __repr__(self) -> str:
        return f"DynamicModule({self._base_path!r})"


class EntityModule:
    """CRUD surface of one entity type, rooted at ``<entity>``."""

    _DISPATCH = {
        "list": "list",
        "filter": "filter",
        "get": "get",
        "create": "create",
        "update": "update",
        "delete": "delete",
        "delete_many": "delete_many",
        "deleteMany": "delete_many",
        "bulk_create": "bulk_create",
        "bulkCreate": "bulk_create",
        "import_entities": "import_entities",
        "importEntities": "import_entities",
    }

    def __init__(self, name: str, transport: Transport):
        self._name = name
        self._t = transport
        self._fallbacks: dict[str, Handler] = {}

    @property
    def name(self) -> str:
        return self._name

    def _item_path(self, entity_id: Any) -> str:
        return f"{self._name}/{quote_segment(entity_id)}"

    async def list(
            self,
            options: Mapping[str, Any] | str | None = None,
            limit: int | None = None,
            skip: int | None = None,
            fields: list[str] | str | None = None,
    ) -> Any:
        """``list({"sort": "-created", "limit": 10})`` or ``list("-created", 10)``."""
        if isinstance(options, Mapping):
            sort = options.get("sort")
            limit = options.get("limit", limit)
            skip = options.get("skip", skip)
            fields = options.get("fields", fields)
        else:
            sort = options
        query = {"sort": sort, "limit": limit, "skip": skip, "fields": fields_csv(fields)}
        return await self._t.send(RequestDescriptor(path=self._name, method="GET", query=query))

    async def filter(
            self,
            query: Mapping[str, Any] | None = None,
            *,
            sort: str | None = None,
            limit: int | None = None,
            skip: int | None = None,
            fields: list[str] | str | None = None,
    ) -> Any:
        """Filter by a JSON query document.

        Accepts ``{"q": {...}, "sort": ..., ...}`` or the bare filter document;
        list options found in the document are passed as query parameters.
        """
        p = dict(query or {})
        if p.get("q") is not None:
            flt = p["q"]
        else:
            flt = {k: v for k, v in p.items() if k not in LIST_OPTIONS and k != "q"}
        params = {
            "q": dumps_json(flt),
            "sort": sort if sort is not None else p.get("sort"),
            "limit": limit if limit is not None else p.get("limit"),
            "skip": skip if skip is not None else p.get("skip"),
            "fields": fields_csv(fields if fields is not None else p.get("fields")),
        }
        return await self._t.send(RequestDescriptor(path=self._name, method="GET", query=params))

    async def get(self, entity_id: Any) -> Any:
        return await self._t.send(RequestDescriptor(path=self._item_path(entity_id), method="GET"))

    async def create(self, data: Any) -> Any:
        return await self._t.send(payload_request("POST", self._name, data))

    async def update(self, entity_id: Any, data: Any) -> Any:
        return await self._t.send(payload_request("PUT", self._item_path(entity_id), data))

    async def delete(self, entity_id: Any) -> Any:
        return await self._t.send(RequestDescriptor(path=self._item_path(entity_id), method="DELETE"))

    async def delete_many(self, query: Any) -> Any:
        return await self._t.send(json_request("POST", f"{self._name}/deleteMany", {"query": query}))

    async def bulk_create(self, items: Any) -> Any:
        path = f"{self._name}/bulk"
        if isinstance(items, FormData):
            return await self._t.send(form_request("POST", path, items))
        if has_file_like_deep(items):
            return await self._t.send(form_request("POST", path, object_to_form_data({"data": items})))
        return await self._t.send(json_request("POST", path, {"data": items}))

    async def import_entities(self, file: Any) -> Any:
        form = file_form(file) if file is not None else FormData()
        return await self._t.send(form_request("POST", f"{self._name}/import", form))

    def method(self, name: str) -> Handler:
        attr = self._DISPATCH.get(name)
        if attr is not None:
            return getattr(self, attr)
        handler = self._fallbacks.get(name)
        if handler is None:
            handler = self._make_fallback(name)
            self._fallbacks[name] = handler
        return handler

    def _make_fallback(self, name: str) -> Handler:
        # Unknown verbs read the collection with the first argument as query.
        async def call(*args: Any) -> Any:
            first = args[0] if args else None
            query = first if isinstance(first, Mapping) else None
            return await self._t.send(RequestDescriptor(path=self._name, method="GET", query=query))

        call.__name__ = name
        return call

    def __getattr__(self, name: str) -> Handler:
        check_dynamic_name(self, name)
        return self.method(name)

    def __repr__(self) -> str:
        return f"EntityModule({self._name!r})"


class EntitiesModule:
    def __init__(self, transport: Transport):
        self._t = transport
        self._entities: dict[str, EntityModule] = {}

    def entity(self, name: str) -> EntityModule:
        module = self._entities.get(name)
        if module is None:
            module = EntityModule(name, self._t)
            self._entities[name] = module
        return module

    def __getattr__(self, name: str) -> EntityModule:
        check_dynamic_name(self, name)
        return self.entity(name)

    def __getitem__(self, name: str) -> EntityModule:
        return self.entity(name)


class IntegrationPackage:
    """``<action>(data)`` always POSTs to ``integrations/<package>/<action>``."""

    def __init__(self, package: str, transport: Transport):
        self._package = package
        self._t = transport
        self._actions: dict[str, Handler] = {}

    def action(self, name: str) -> Handler:
        handler = self._actions.get(name)
        if handler is None:
            path = f"integrations/{self._package}/{name}"

            async def call(data: Any = None) -> Any:
                form = multipart_for(data)
                if form is not None:
                    return await self._t.send(form_request("POST", path, form))
                return await self._t.send(json_request("POST", path, {} if data is None else data))

            call.__name__ = name
            handler = self._actions[name] = call
        return handler

    def __getattr__(self, name: str) -> Handler:
        check_dynamic_name(self, name)
        return self.action(name)

    def __getitem__(self, name: str) -> Handler:
        return self.action(name)


class IntegrationsModule:
    def __init__(self, transport: Transport):
        self._t = transport
        self._packages: dict[str, IntegrationPackage] = {}

    def package(self, name: str) -> IntegrationPackage:
        pkg = self._packages.get(name)
        if pkg is None:
            pkg = self._packages[name] = IntegrationPackage(name, self._t)
        return pkg

    def __getattr__(self, name: str) -> IntegrationPackage:
        check_dynamic_name(self, name)
        return self.package(name)

    def __getitem__(self, name: str) -> IntegrationPackage:
        return self.package(name)
