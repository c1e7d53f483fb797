"""Async key-value storage contract for local client state.

The contract mirrors a mobile key-value store: string keys, string values,
no list or append primitives. Callers serialize structured values themselves.
"""

from abc import ABC, abstractmethod


class KeyValueStore(ABC):
    """Abstract base class for local key-value storage."""

    async def initialize(self) -> None:
        """Prepare the backing storage. No-op unless the backend needs it."""

    async def dispose(self) -> None:
        """Release the backing storage. No-op unless the backend needs it."""

    @abstractmethod
    async def get_item(self, key: str) -> str | None:
        """Get the stored value for a key.

        Args:
            key: Storage key

        Returns:
            Stored string, or None if the key is absent
        """

    @abstractmethod
    async def set_item(self, key: str, value: str) -> None:
        """Store a value, replacing any previous value for the key."""

    @abstractmethod
    async def remove_item(self, key: str) -> None:
        """Remove a key. Removing an absent key is not an error."""


class MemoryKeyValueStore(KeyValueStore):
    """Process-local store, used for ephemeral sessions and tests."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._items: dict[str, str] = dict(initial or {})

    async def get_item(self, key: str) -> str | None:
        """Get the stored value for a key."""
        return self._items.get(key)

    async def set_item(self, key: str, value: str) -> None:
        """Store a value."""
        self._items[key] = value

    async def remove_item(self, key: str) -> None:
        """Remove a key if present."""
        self._items.pop(key, None)

    def __len__(self) -> int:
        """Return the number of stored keys."""
        return len(self._items)
