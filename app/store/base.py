"""Key-value store port."""
from abc import ABC, abstractmethod
from typing import Any

GOALS_KEY = "bestie-goals"
TASKS_KEY = "bestie-schedule-tasks"
MARKER_PREFIX = "notified:"


class StoreError(Exception):
    """Raised when the backing store cannot be read or written."""


class KeyValueStore(ABC):
    """
    Last-write-wins store of JSON-serializable values under string keys.

    Absent keys read as None. Adapters raise StoreError for driver failures
    and for values that cannot be decoded.
    """

    @abstractmethod
    async def get(self, key: str) -> Any:
        """Return the value stored under key, or None."""

    @abstractmethod
    async def set(self, key: str, value: Any) -> None:
        """Store value under key, replacing any previous value."""

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Remove key. Missing keys are ignored."""

    @abstractmethod
    async def keys(self, prefix: str = "") -> list[str]:
        """List keys starting with prefix."""
