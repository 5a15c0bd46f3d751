from __future__ import annotations

import os
from datetime import datetime, timezone
from pathlib import Path

import tomllib
import tomli_w

from .config import config_path


SESSION_FILENAME = "session.toml"


def session_path() -> Path:
    return Path(config_path()).expanduser().parent / SESSION_FILENAME


class FileTokenStorage:
    """Client state persisted in ``session.toml`` next to the config file."""

    def __init__(self, path: Path | None = None):
        self._path = path or session_path()

    @property
    def path(self) -> Path:
        return self._path

    def _load(self) -> dict[str, str]:
        if not self._path.exists():
            return {}
        with self._path.open("rb") as f:
            data = tomllib.load(f)
        items = data.get("items") if isinstance(data, dict) else None
        if not isinstance(items, dict):
            return {}
        return {str(k): v for k, v in items.items() if isinstance(v, str)}

    def _save(self, items: dict[str, str]) -> None:
        if not items:
            self.clear()
            return
        self._path.parent.mkdir(parents=True, exist_ok=True)
        payload = {
            "updated_at": datetime.now(timezone.utc).isoformat(),
            "items": items,
        }
        self._path.write_bytes(tomli_w.dumps(payload).encode("utf-8"))
        os.chmod(self._path, 0o600)

    def get_item(self, key: str) -> str | None:
        return self._load().get(key)

    def set_item(self, key: str, value: str) -> None:
        items = self._load()
        items[key] = value
        self._save(items)

    def remove_item(self, key: str) -> None:
        items = self._load()
        if items.pop(key, None) is not None:
            self._save(items)

    def clear(self) -> None:
        if self._path.exists():
            self._path.unlink()
