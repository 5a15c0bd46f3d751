"""Request body selection: no body + query string, JSON, or multipart form.

The wire format is chosen by inspecting the call argument at runtime:

1. a ``FormData`` is sent as-is (POST);
2. a single file-like value is wrapped in a form under ``file`` (POST);
3. a structure with a file-like value anywhere inside it is flattened into a
   form with bracketed keys, ``parent[child]`` / ``parent[0]`` (POST);
4. a non-empty mapping is sent as JSON (POST);
5. anything else becomes query parameters of a GET.
"""
from __future__ import annotations

import io
import json
import secrets
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterator

from .urls import stringify_query_value

JSON_CONTENT_TYPE = "application/json"
DEFAULT_FILE_FIELD = "file"


@dataclass(frozen=True)
class UploadFile:
    content: Any
    filename: str | None = None
    content_type: str | None = None

    @classmethod
    def from_path(cls, path: str | Path, content_type: str | None = None) -> "UploadFile":
        p = Path(path)
        return cls(content=p.read_bytes(), filename=p.name, content_type=content_type)


def is_file_like(value: Any) -> bool:
    if isinstance(value, (bytes, bytearray, memoryview, UploadFile)):
        return True
    return isinstance(value, io.IOBase) and not isinstance(value, io.TextIOBase)


class FormData:
    """Ordered multipart form. Keys may repeat."""

    def __init__(self, entries: list[tuple[str, Any]] | None = None):
        self._entries: list[tuple[str, Any]] = []
        for key, value in entries or []:
            self.append(key, value)

    def append(self, key: str, value: Any) -> None:
        if is_file_like(value):
            self._entries.append((str(key), value))
        else:
            self._entries.append((str(key), "" if value is None else stringify_query_value(value)))

    def keys(self) -> list[str]:
        return [k for k, _ in self._entries]

    def get_all(self, key: str) -> list[Any]:
        return [v for k, v in self._entries if k == key]

    def __iter__(self) -> Iterator[tuple[str, Any]]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"FormData(keys={self.keys()!r})"

    def request_kwargs(self) -> dict[str, Any]:
        """Keyword arguments for ``httpx.AsyncClient.request``.

        Text fields go through ``files`` with no filename so the body is always
        multipart/form-data, matching browser FormData.
        """
        if not self._entries:
            boundary = secrets.token_hex(16)
            return {
                "content": f"--{boundary}--\r\n".encode("ascii"),
                "headers": {"Content-Type": f"multipart/form-data; boundary={boundary}"},
            }
        files: list[tuple[str, Any]] = []
        for key, value in self._entries:
            if isinstance(value, str):
                files.append((key, (None, value)))
            else:
                files.append((key, _file_part(value)))
        return {"files": files}


def _file_part(value: Any) -> Any:
    if isinstance(value, UploadFile):
        content = bytes(value.content) if isinstance(value.content, (bytearray, memoryview)) else value.content
        return value.filename or "upload", content, value.content_type or "application/octet-stream"
    if isinstance(value, (bytearray, memoryview)):
        return bytes(value)
    return value


def has_file_like_deep(value: Any) -> bool:
    if isinstance(value, FormData) or is_file_like(value):
        return True
    if isinstance(value, (list, tuple)):
        return any(has_file_like_deep(v) for v in value)
    if isinstance(value, Mapping):
        return any(has_file_like_deep(v) for v in value.values())
    return False


def _merge_form(form: FormData, nested: FormData, ns: str) -> None:
    for k, v in nested:
        form.append(f"{ns}[{k}]", v)


def object_to_form_data(obj: Any, form: FormData | None = None, ns: str | None = None) -> FormData:
    if form is None:
        form = FormData()
    if obj is None:
        return form

    if is_file_like(obj):
        form.append(ns or DEFAULT_FILE_FIELD, obj)
        return form

    if isinstance(obj, (list, tuple)):
        for i, v in enumerate(obj):
            key = f"{ns}[{i}]" if ns else str(i)
            if isinstance(v, FormData):
                _merge_form(form, v, key)
            elif is_file_like(v):
                form.append(key, v)
            elif isinstance(v, (Mapping, list, tuple)):
                object_to_form_data(v, form, key)
            else:
                form.append(key, v)
        return form

    if isinstance(obj, Mapping):
        for k, v in obj.items():
            key = f"{ns}[{k}]" if ns else str(k)
            if v is None:
                continue
            if isinstance(v, FormData):
                _merge_form(form, v, key)
            elif is_file_like(v):
                form.append(key, v)
            elif isinstance(v, (Mapping, list, tuple)):
                object_to_form_data(v, form, key)
            else:
                form.append(key, v)
        return form

    form.append(ns or "value", obj)
    return form


def dumps_json(payload: Any) -> str:
    return json.dumps(payload, ensure_ascii=False, separators=(",", ":"))


@dataclass
class RequestDescriptor:
    path: str
    method: str = "GET"
    query: Mapping[str, Any] | None = None
    headers: dict[str, str] = field(default_factory=dict)
    body: str | FormData | None = None


def json_request(method: str, path: str, payload: Any) -> RequestDescriptor:
    return RequestDescriptor(
        path=path,
        method=method,
        headers={"Content-Type": JSON_CONTENT_TYPE},
        body=dumps_json(payload),
    )


def form_request(method: str, path: str, form: FormData) -> RequestDescriptor:
    return RequestDescriptor(path=path, method=method, body=form)


def file_form(value: Any) -> FormData:
    form = FormData()
    form.append(DEFAULT_FILE_FIELD, value)
    return form


def multipart_for(value: Any) -> FormData | None:
    """Return the form ``value`` must be sent as, or None when JSON will do."""
    if isinstance(value, FormData):
        return value
    if is_file_like(value):
        return file_form(value)
    if has_file_like_deep(value):
        return object_to_form_data(value)
    return None


def payload_request(method: str, path: str, data: Any) -> RequestDescriptor:
    """Body-carrying request: multipart when files are involved, JSON otherwise."""
    form = multipart_for(data)
    if form is not None:
        return form_request(method, path, form)
    return json_request(method, path, {} if data is None else data)


def call_request(path: str, first_arg: Any = None) -> RequestDescriptor:
    """Generic call encoding (rules 1-5 in the module docstring)."""
    form = multipart_for(first_arg)
    if form is not None:
        return form_request("POST", path, form)
    if isinstance(first_arg, Mapping) and len(first_arg) > 0:
        return json_request("POST", path, dict(first_arg))
    query = first_arg if isinstance(first_arg, Mapping) else None
    return RequestDescriptor(path=path, method="GET", query=query)
