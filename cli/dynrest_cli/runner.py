from __future__ import annotations

import asyncio
import json
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

import typer

from dynrest_client import DynrestClient, DynrestClientError, UploadFile

from . import console
from .config import load_config
from .http import make_client

T = TypeVar("T")


def report_error(e: DynrestClientError) -> None:
    status = f"HTTP {e.status}: " if e.status else ""
    console.err(f"{status}{e.message}")
    if e.code:
        console.info(f"code: {e.code}")
    if isinstance(e.data, (dict, list)):
        console.print_json(e.data)
    elif isinstance(e.data, str) and e.data:
        console.info(e.data[:1000])
    if e.status == 401:
        console.info("Session cleared. Run: dynrest auth login")


def run_with_client(
        call: Callable[[DynrestClient], Awaitable[T]],
        *,
        base_url: str | None = None,
        profile: str | None = None,
        open_browser: bool = False,
) -> T:
    cfg = load_config()
    client = make_client(cfg, profile=profile, base_url_override=base_url, open_browser=open_browser)

    async def _run() -> T:
        try:
            return await call(client)
        finally:
            await client.aclose()

    try:
        return asyncio.run(_run())
    except DynrestClientError as e:
        report_error(e)
        raise typer.Exit(code=2)


def parse_json_option(raw: str | None, *, option: str = "--data") -> Any:
    if raw is None or raw == "":
        return None
    try:
        return json.loads(raw)
    except ValueError as e:
        console.err(f"{option} is not valid JSON: {e}")
        raise typer.Exit(code=2)


def parse_file_options(values: list[str] | None) -> dict[str, UploadFile]:
    files: dict[str, UploadFile] = {}
    for item in values or []:
        field, sep, path = item.partition("=")
        if not sep or not field or not path:
            console.err(f"Invalid --file value {item!r}, expected field=path.")
            raise typer.Exit(code=2)
        try:
            files[field] = UploadFile.from_path(path)
        except OSError as e:
            console.err(f"Cannot read {path}: {e}")
            raise typer.Exit(code=2)
    return files


def build_payload(data: str | None, files: list[str] | None) -> Any:
    payload = parse_json_option(data)
    attachments = parse_file_options(files)
    if not attachments:
        return payload
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        console.err("--file requires --data to be a JSON object.")
        raise typer.Exit(code=2)
    payload.update(attachments)
    return payload
