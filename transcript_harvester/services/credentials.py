from __future__ import annotations

import logging
from threading import Lock
from typing import Protocol

LOGGER = logging.getLogger("transcript_harvester.credentials")

YOUTUBE_API_KEY_STATE_KEY = "youtube_api_key"


class KeyValueStore(Protocol):
    def get_value(self, key: str) -> str | None:
        ...

    def set_value(self, key: str, value: str) -> None:
        ...

    def delete_value(self, key: str) -> None:
        ...


class ApiKeyConfig:
    """
    The one configured YouTube Data API key.

    Held in memory once read. The backing store is consulted lazily on first
    access, and written on every `set_api_key`. `seed_value` (usually from the
    environment) is used only while the store holds nothing.
    """

    def __init__(
        self,
        store: KeyValueStore,
        *,
        seed_value: str | None = None,
        state_key: str = YOUTUBE_API_KEY_STATE_KEY,
    ) -> None:
        self._store = store
        self._seed_value = _normalize_key(seed_value)
        self._state_key = state_key
        self._api_key: str | None = None
        self._loaded = False
        self._lock = Lock()

    def get_api_key(self) -> str | None:
        with self._lock:
            if not self._loaded:
                stored = _normalize_key(self._store.get_value(self._state_key))
                self._api_key = stored if stored is not None else self._seed_value
                self._loaded = True
            return self._api_key

    def has_api_key(self) -> bool:
        return self.get_api_key() is not None

    def set_api_key(self, api_key: str) -> None:
        normalized = _normalize_key(api_key)
        if normalized is None:
            raise ValueError("API key must not be empty")
        with self._lock:
            self._store.set_value(self._state_key, normalized)
            self._api_key = normalized
            self._loaded = True
        LOGGER.info("credentials api_key_set state_key=%s", self._state_key)

    def clear_api_key(self) -> None:
        with self._lock:
            self._store.delete_value(self._state_key)
            self._api_key = None
            self._loaded = True
        LOGGER.info("credentials api_key_cleared state_key=%s", self._state_key)


def _normalize_key(raw_value: str | None) -> str | None:
    if raw_value is None:
        return None
    normalized = raw_value.strip()
    if not normalized:
        return None
    return normalized
