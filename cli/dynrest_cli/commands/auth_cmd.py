from __future__ import annotations

import typer

from .. import console
from ..runner import run_with_client

app = typer.Typer(help="Auth commands.")


@app.command("login")
def login(
    email: str = typer.Option(..., "--email", prompt=True, help="Account email."),
    password: str = typer.Option(..., "--password", prompt=True, hide_input=True, help="Account password."),
    verification_token: str | None = typer.Option(
        None, "--verification-token", help="Bot-protection token, when the backend requires one."
    ),
    base_url: str | None = typer.Option(None, "--base-url", help="Override base URL."),
    profile: str | None = typer.Option(None, "--profile", help="Config profile name."),
):
    async def _login(client):
        res = await client.auth.login_via_email_password(email, password, verification_token)
        return res, client.credential.get()

    _, token = run_with_client(_login, base_url=base_url, profile=profile)
    if not token:
        console.err("Login response did not contain a token.")
        raise typer.Exit(code=2)
    console.ok("Login successful. Token saved.")


@app.command("login-web", help="Open the backend login page in a browser.")
def login_web(
    next_url: str | None = typer.Option(None, "--next", help="Path to return to after login."),
    base_url: str | None = typer.Option(None, "--base-url", help="Override base URL."),
    profile: str | None = typer.Option(None, "--profile", help="Config profile name."),
):
    async def _open(client):
        client.auth.login(next_url)
        return client.navigator.location

    url = run_with_client(_open, base_url=base_url, profile=profile, open_browser=True)
    console.info(f"Opened {url}")


@app.command("logout", help="Notify the backend and clear the stored token.")
def logout(
    base_url: str | None = typer.Option(None, "--base-url", help="Override base URL."),
    profile: str | None = typer.Option(None, "--profile", help="Config profile name."),
):
    async def _logout(client):
        await client.auth.logout()

    run_with_client(_logout, base_url=base_url, profile=profile)
    console.ok("Token cleared.")


@app.command("status", help="Check whether the stored token is accepted.")
def status(
    base_url: str | None = typer.Option(None, "--base-url", help="Override base URL."),
    profile: str | None = typer.Option(None, "--profile", help="Config profile name."),
):
    async def _status(client):
        return await client.auth.is_authenticated()

    if run_with_client(_status, base_url=base_url, profile=profile):
        console.ok("Authenticated.")
        return
    console.warn("Not authenticated.")
    raise typer.Exit(code=1)


def whoami_impl(
    base_url: str | None = typer.Option(None, "--base-url", help="Override API base URL."),
    profile: str | None = typer.Option(None, "--profile", help="Config profile name."),
    verbose: bool = typer.Option(False, "--verbose", help="Print raw auth/me JSON."),
):
    """
    Show current authenticated user.
    """
    async def _me(client):
        return await client.auth.me()

    me = run_with_client(_me, base_url=base_url, profile=profile)
    if verbose or not isinstance(me, dict):
        console.print_json(me)
        return
    console.rule("Whoami")
    for key in ("id", "email", "full_name", "role"):
        if me.get(key) is not None:
            console.console.print(f"[bold]{key}:[/] {me[key]}")


app.command("whoami")(whoami_impl)
