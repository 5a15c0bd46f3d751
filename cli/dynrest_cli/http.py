from __future__ import annotations

from importlib import metadata

from dynrest_client import BrowserNavigator, ClientConfig, DynrestClient, Navigator

from .config import AppConfig, apply_profile, resolve_base_url
from .token_store import FileTokenStorage


def cli_version() -> str:
    try:
        return metadata.version("dynrest")
    except metadata.PackageNotFoundError:
        return "0.0.0"


def make_client(
    cfg: AppConfig,
    *,
    profile: str | None = None,
    base_url_override: str | None = None,
    open_browser: bool = False,
) -> DynrestClient:
    effective_cfg = apply_profile(cfg, profile)
    base_url = resolve_base_url(effective_cfg, base_url_override)
    navigator = BrowserNavigator() if open_browser else Navigator()
    return DynrestClient(
        ClientConfig(
            server_url=base_url,
            storage_key=effective_cfg.auth.storage_key,
            client_version=cli_version(),
        ),
        storage=FileTokenStorage(),
        navigator=navigator,
    )
