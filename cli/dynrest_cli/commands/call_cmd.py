from __future__ import annotations

import typer

from .. import console
from ..runner import build_payload, run_with_client

# Fixed client members; their verbs are not <namespace>/<method> calls.
_RESERVED = {
    "entities": "dynrest entities --help",
    "integrations": "dynrest integrations <package> <action>",
    "auth": "dynrest auth --help",
    "asServiceRole": None,
    "as_service_role": None,
}


def call(
    namespace: str = typer.Argument(..., help="Namespace, e.g. functions."),
    method: str = typer.Argument(..., help="Method name inside the namespace."),
    data: str | None = typer.Option(None, "--data", "-d", help="JSON argument."),
    files: list[str] | None = typer.Option(None, "--file", help="Attachment as field=path (repeatable)."),
    base_url: str | None = typer.Option(None, "--base-url", help="Override base URL."),
    profile: str | None = typer.Option(None, "--profile", help="Config profile name."),
):
    """
    Call <namespace>/<method>. A JSON object is POSTed, no data means GET.
    """
    if namespace in _RESERVED:
        hint = _RESERVED[namespace]
        console.err(f"{namespace!r} is not a generic namespace.")
        if hint:
            console.info(f"Use: {hint}")
        raise typer.Exit(code=2)

    payload = build_payload(data, files)

    async def _call(client):
        return await client.namespace(namespace).method(method)(payload)

    console.print_json(run_with_client(_call, base_url=base_url, profile=profile))


def integration(
    package: str = typer.Argument(..., help="Integration package, e.g. Core."),
    action: str = typer.Argument(..., help="Action name."),
    data: str | None = typer.Option(None, "--data", "-d", help="JSON argument."),
    files: list[str] | None = typer.Option(None, "--file", help="Attachment as field=path (repeatable)."),
    base_url: str | None = typer.Option(None, "--base-url", help="Override base URL."),
    profile: str | None = typer.Option(None, "--profile", help="Config profile name."),
):
    """
    POST integrations/<package>/<action>.
    """
    payload = build_payload(data, files)

    async def _invoke(client):
        return await client.integrations.package(package).action(action)(payload)

    console.print_json(run_with_client(_invoke, base_url=base_url, profile=profile))
