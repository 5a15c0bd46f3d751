from __future__ import annotations

import typer

from .. import console
from ..config import load_config, normalize_base_url, resolve_base_url, save_config
from ..token_store import FileTokenStorage

app = typer.Typer(help="Local CLI configuration.")


@app.command("show")
def show():
    cfg = load_config()
    token_state = "(set)" if FileTokenStorage().get_item(cfg.auth.storage_key) else "(empty)"
    console.console.print(
        f"base_url={resolve_base_url(cfg)} storage_key={cfg.auth.storage_key} token={token_state}"
    )
    for name, prof in sorted(cfg.profiles.items()):
        console.console.print(f"  profile {name}: base_url={prof.base_url or '-'}")


@app.command("set")
def set_value(
    base_url: str | None = typer.Option(None, "--base-url", help="Backend base URL."),
    storage_key: str | None = typer.Option(None, "--storage-key", help="Key the token is stored under."),
):
    cfg = load_config()
    if base_url is not None:
        cfg.base_url = normalize_base_url(base_url, warn=True)
    if storage_key:
        cfg.auth.storage_key = storage_key
    path = save_config(cfg)
    console.ok(f"Config updated: {path}")
