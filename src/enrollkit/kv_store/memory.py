"""In-process key-value store holding JSON text per key."""

from __future__ import annotations

import json
from typing import Any

from enrollkit.kv_store.exceptions import CorruptValueError, KeyValueStoreError
from enrollkit.kv_store.interfaces import KeyValueStore


class InMemoryKeyValueStore(KeyValueStore):
    """Dictionary-backed store.

    Values are kept as serialized JSON strings, so callers never share mutable
    state with the store.
    """

    def __init__(self, initial: dict[str, Any] | None = None) -> None:
        self._data: dict[str, str] = {}
        for key, value in (initial or {}).items():
            self._data[key] = json.dumps(value)

    async def get(self, key: str) -> Any | None:
        raw = self._data.get(key)
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except json.JSONDecodeError as e:
            raise CorruptValueError(f"Value under key '{key}' is not valid JSON") from e

    async def set(self, key: str, value: Any) -> None:
        try:
            self._data[key] = json.dumps(value)
        except (TypeError, ValueError) as e:
            raise KeyValueStoreError(f"Value for key '{key}' is not serializable") from e

    async def remove(self, key: str) -> None:
        self._data.pop(key, None)

    def put_raw(self, key: str, text: str) -> None:
        """Store already-serialized text under key without validation."""
        self._data[key] = text

    def keys(self) -> list[str]:
        """Return the stored keys in insertion order."""
        return list(self._data)

    def __contains__(self, key: object) -> bool:
        return key in self._data
