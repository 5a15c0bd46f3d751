from __future__ import annotations

import os
import tomllib
from dataclasses import dataclass, field
from typing import Any

import tomli_w
from platformdirs import user_config_dir

from dynrest_client.config_types import DEFAULT_STORAGE_KEY

from . import console

APP_NAME = "dynrest"
CONFIG_FILENAME = "config.toml"
ENV_BASE_URL = "DYNREST_BASE_URL"

_WARNED_BASE_URL_SCHEME = False


@dataclass
class AuthConfig:
    storage_key: str = DEFAULT_STORAGE_KEY


@dataclass
class ProfileConfig:
    base_url: str = ""
    storage_key: str | None = None


@dataclass
class AppConfig:
    base_url: str
    auth: AuthConfig
    profiles: dict[str, ProfileConfig] = field(default_factory=dict)


def config_path() -> str:
    return f"{user_config_dir(APP_NAME)}/{CONFIG_FILENAME}"


def default_config() -> AppConfig:
    return AppConfig(
        base_url="http://127.0.0.1:8000",
        auth=AuthConfig(storage_key=DEFAULT_STORAGE_KEY),
        profiles={},
    )


def normalize_base_url(raw: str | None, *, warn: bool = False) -> str:
    value = (raw or "").strip()
    if not value:
        return ""
    value = value.rstrip("/")
    lowered = value.lower()
    if lowered.startswith("http://") or lowered.startswith("https://"):
        return value

    host = value.split("/", 1)[0]
    host = host.split(":", 1)[0].lower()
    if host in {"localhost", "127.0.0.1", "0.0.0.0"}:
        scheme = "http://"
    else:
        scheme = "https://"

    normalized = f"{scheme}{value}"
    if warn:
        _warn_missing_scheme(normalized)
    return normalized


def _warn_missing_scheme(normalized: str) -> None:
    global _WARNED_BASE_URL_SCHEME
    if _WARNED_BASE_URL_SCHEME:
        return
    if not _is_interactive():
        return
    console.warn(f"base_url missing scheme, assuming {normalized}")
    _WARNED_BASE_URL_SCHEME = True


def _is_interactive() -> bool:
    import sys
    return bool(sys.stderr.isatty() or sys.stdout.isatty())


def ensure_parent_dir(path: str) -> None:
    os.makedirs(os.path.dirname(path), exist_ok=True)


def to_toml(cfg: AppConfig) -> dict[str, Any]:
    return _prune_none(
        {
            "base_url": cfg.base_url,
            "auth": {"storage_key": cfg.auth.storage_key},
            "profiles": {
                name: {"base_url": p.base_url, "storage_key": p.storage_key}
                for name, p in cfg.profiles.items()
            },
        }
    )


def _prune_none(value: Any) -> Any:
    if isinstance(value, dict):
        return {k: _prune_none(v) for k, v in value.items() if v is not None}
    if isinstance(value, list):
        return [_prune_none(item) for item in value if item is not None]
    return value


def from_toml(data: dict[str, Any]) -> AppConfig:
    cfg = default_config()
    base_url = normalize_base_url(str(data.get("base_url") or ""), warn=True)
    if base_url:
        cfg.base_url = base_url

    auth_raw = data.get("auth") or {}
    if isinstance(auth_raw, dict):
        cfg.auth.storage_key = str(auth_raw.get("storage_key") or DEFAULT_STORAGE_KEY)

    profiles_raw = data.get("profiles") or {}
    if isinstance(profiles_raw, dict):
        for name, v in profiles_raw.items():
            if not isinstance(v, dict):
                continue
            storage_key = v.get("storage_key")
            cfg.profiles[str(name)] = ProfileConfig(
                base_url=normalize_base_url(str(v.get("base_url") or ""), warn=True),
                storage_key=storage_key if isinstance(storage_key, str) and storage_key else None,
            )
    return cfg


def load_config() -> AppConfig:
    path = config_path()
    try:
        with open(path, "rb") as f:
            data = tomllib.load(f)
        return from_toml(data)
    except FileNotFoundError:
        return default_config()


def apply_profile(cfg: AppConfig, profile: str | None) -> AppConfig:
    if not profile:
        return cfg
    prof = cfg.profiles.get(profile)
    if prof is None:
        console.warn(f"Unknown profile {profile!r}, using defaults.")
        return cfg
    return AppConfig(
        base_url=prof.base_url or cfg.base_url,
        auth=AuthConfig(storage_key=prof.storage_key or cfg.auth.storage_key),
        profiles=cfg.profiles,
    )


def resolve_base_url(cfg: AppConfig, override: str | None = None) -> str:
    env_value = os.getenv(ENV_BASE_URL, "").strip()
    return normalize_base_url(override or env_value or cfg.base_url, warn=True)


def save_config(cfg: AppConfig) -> str:
    path = config_path()
    ensure_parent_dir(path)
    with open(path, "wb") as f:
        f.write(tomli_w.dumps(to_toml(cfg)).encode("utf-8"))
    os.chmod(path, 0o600)
    return path
