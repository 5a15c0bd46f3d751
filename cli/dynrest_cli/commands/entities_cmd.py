from __future__ import annotations

from pathlib import Path

import typer
from rich.table import Table

from dynrest_client import UploadFile

from .. import console
from ..runner import build_payload, parse_json_option, run_with_client

app = typer.Typer(help="Entity CRUD commands.")

_BASE_URL = typer.Option(None, "--base-url", help="Override base URL.")
_PROFILE = typer.Option(None, "--profile", help="Config profile name.")


def _print_items(entity: str, items, columns: list[str] | None) -> None:
    if not isinstance(items, list) or not items or not all(isinstance(i, dict) for i in items):
        console.print_json(items)
        return
    if not columns:
        columns = list(items[0].keys())[:6]
    table = Table(title=entity)
    for col in columns:
        table.add_column(col, style="bold" if col == "id" else None)
    for item in items:
        table.add_row(*[str(item.get(col, "-")) for col in columns])
    console.console.print(table)


@app.command("list")
def list_cmd(
    entity: str = typer.Argument(..., help="Entity name, e.g. Order."),
    sort: str | None = typer.Option(None, "--sort", help="Sort field, prefix with - for descending."),
    limit: int | None = typer.Option(None, "--limit"),
    skip: int | None = typer.Option(None, "--skip"),
    fields: list[str] | None = typer.Option(None, "--field", "--fields", help="Field to return (repeatable)."),
    table: bool = typer.Option(False, "--table", help="Render a table instead of JSON."),
    base_url: str | None = _BASE_URL,
    profile: str | None = _PROFILE,
):
    async def _list(client):
        return await client.entities.entity(entity).list(
            {"sort": sort, "limit": limit, "skip": skip, "fields": fields or None}
        )

    items = run_with_client(_list, base_url=base_url, profile=profile)
    if table:
        _print_items(entity, items, fields)
    else:
        console.print_json(items)


@app.command("filter")
def filter_cmd(
    entity: str = typer.Argument(..., help="Entity name."),
    query: str = typer.Option("{}", "--query", "-q", help="JSON filter document."),
    sort: str | None = typer.Option(None, "--sort"),
    limit: int | None = typer.Option(None, "--limit"),
    skip: int | None = typer.Option(None, "--skip"),
    base_url: str | None = _BASE_URL,
    profile: str | None = _PROFILE,
):
    flt = parse_json_option(query, option="--query") or {}

    async def _filter(client):
        return await client.entities.entity(entity).filter({"q": flt}, sort=sort, limit=limit, skip=skip)

    console.print_json(run_with_client(_filter, base_url=base_url, profile=profile))


@app.command("get")
def get_cmd(
    entity: str = typer.Argument(..., help="Entity name."),
    entity_id: str = typer.Argument(..., help="Entity id."),
    base_url: str | None = _BASE_URL,
    profile: str | None = _PROFILE,
):
    async def _get(client):
        return await client.entities.entity(entity).get(entity_id)

    console.print_json(run_with_client(_get, base_url=base_url, profile=profile))


@app.command("create")
def create_cmd(
    entity: str = typer.Argument(..., help="Entity name."),
    data: str | None = typer.Option(None, "--data", "-d", help="JSON document."),
    files: list[str] | None = typer.Option(None, "--file", help="Attachment as field=path (repeatable)."),
    base_url: str | None = _BASE_URL,
    profile: str | None = _PROFILE,
):
    payload = build_payload(data, files)

    async def _create(client):
        return await client.entities.entity(entity).create(payload)

    console.print_json(run_with_client(_create, base_url=base_url, profile=profile))


@app.command("update")
def update_cmd(
    entity: str = typer.Argument(..., help="Entity name."),
    entity_id: str = typer.Argument(..., help="Entity id."),
    data: str | None = typer.Option(None, "--data", "-d", help="JSON patch document."),
    files: list[str] | None = typer.Option(None, "--file", help="Attachment as field=path (repeatable)."),
    base_url: str | None = _BASE_URL,
    profile: str | None = _PROFILE,
):
    payload = build_payload(data, files)

    async def _update(client):
        return await client.entities.entity(entity).update(entity_id, payload)

    console.print_json(run_with_client(_update, base_url=base_url, profile=profile))


@app.command("delete")
def delete_cmd(
    entity: str = typer.Argument(..., help="Entity name."),
    entity_id: str = typer.Argument(..., help="Entity id."),
    base_url: str | None = _BASE_URL,
    profile: str | None = _PROFILE,
):
    async def _delete(client):
        return await client.entities.entity(entity).delete(entity_id)

    run_with_client(_delete, base_url=base_url, profile=profile)
    console.ok(f"{entity} {entity_id} deleted.")


@app.command("import")
def import_cmd(
    entity: str = typer.Argument(..., help="Entity name."),
    path: Path = typer.Argument(..., exists=True, dir_okay=False, readable=True, help="File to import."),
    base_url: str | None = _BASE_URL,
    profile: str | None = _PROFILE,
):
    upload = UploadFile.from_path(path)

    async def _import(client):
        return await client.entities.entity(entity).import_entities(upload)

    console.print_json(run_with_client(_import, base_url=base_url, profile=profile))
