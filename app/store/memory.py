"""In-process key-value store."""
import json
from typing import Any, Optional

from app.store.base import KeyValueStore, StoreError


class MemoryKeyValueStore(KeyValueStore):
    """
    Dictionary-backed store.

    Values are kept as JSON text so that reads go through the same
    serialization boundary as a persisted store would.
    """

    def __init__(self, initial: Optional[dict[str, Any]] = None):
        self._data: dict[str, str] = {}
        for key, value in (initial or {}).items():
            self._data[key] = json.dumps(value)

    async def get(self, key: str) -> Any:
        raw = self._data.get(key)
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except json.JSONDecodeError as e:
            raise StoreError(f"Corrupt value under {key!r}: {e}") from e

    async def set(self, key: str, value: Any) -> None:
        try:
            self._data[key] = json.dumps(value)
        except (TypeError, ValueError) as e:
            raise StoreError(f"Value under {key!r} is not JSON-serializable: {e}") from e

    async def delete(self, key: str) -> None:
        self._data.pop(key, None)

    async def keys(self, prefix: str = "") -> list[str]:
        return [key for key in self._data if key.startswith(prefix)]

    def set_raw(self, key: str, raw: str) -> None:
        """Store raw text under key without encoding it."""
        self._data[key] = raw
