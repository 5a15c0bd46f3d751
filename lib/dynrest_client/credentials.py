from __future__ import annotations

import threading
from typing import Protocol


class TokenStorage(Protocol):
    """Persistent key/value storage for client state (token and friends)."""

    def get_item(self, key: str) -> str | None: ...

    def set_item(self, key: str, value: str) -> None: ...

    def remove_item(self, key: str) -> None: ...

    def clear(self) -> None: ...


class MemoryStorage:
    def __init__(self, initial: dict[str, str] | None = None):
        self._items: dict[str, str] = dict(initial or {})

    def get_item(self, key: str) -> str | None:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._items[key] = value

    def remove_item(self, key: str) -> None:
        self._items.pop(key, None)

    def clear(self) -> None:
        self._items.clear()


class Credential:
    """Holder of the single active bearer token of a client.

    The persisted value is read on every ``get()`` so that a token rotated in
    storage by someone else is picked up by the next request. Every write
    bumps ``generation``; ``invalidate`` only acts on the generation it was
    given, so N concurrent 401 responses invalidate the session once.
    """

    def __init__(self, storage: TokenStorage | None, storage_key: str, token: str | None = None):
        self._storage = storage
        self._key = storage_key
        self._token = token or None
        self._generation = 0
        self._lock = threading.Lock()

    @property
    def storage_key(self) -> str:
        return self._key

    @property
    def generation(self) -> int:
        return self._generation

    def get(self) -> str | None:
        if self._storage is not None:
            stored = self._storage.get_item(self._key)
            if stored:
                return stored
        return self._token

    def set(self, token: str | None, persist: bool = False) -> None:
        with self._lock:
            self._token = token or None
            if persist and self._storage is not None:
                if token:
                    self._storage.set_item(self._key, token)
                else:
                    self._storage.remove_item(self._key)
            self._generation += 1

    def clear(self) -> None:
        self.set(None, persist=True)

    def invalidate(self, generation: int) -> bool:
        """Drop the session if nobody touched the credential since ``generation``."""
        with self._lock:
            if generation != self._generation:
                return False
            self._token = None
            if self._storage is not None:
                self._storage.clear()
            self._generation += 1
            return True
