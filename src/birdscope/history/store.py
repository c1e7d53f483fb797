"""Most-recent-first search history persisted in the local key-value store."""

import asyncio
import json
import logging
import time
from collections.abc import Callable

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from birdscope.search.models import BirdSuggestion
from birdscope.storage.key_value import KeyValueStore

logger = logging.getLogger(__name__)


def _now_ms() -> int:
    return int(time.time() * 1000)


class SearchHistoryEntry(BaseModel):
    """A bird the user picked from search results."""

    model_config = ConfigDict(populate_by_name=True)

    id: int
    name: str
    display_name: str = Field(alias="preferred_common_name")
    thumbnail: str | None = None
    timestamp: int  # Epoch milliseconds

    def to_storage(self) -> dict:
        """Serialize with the persisted field names."""
        return self.model_dump(by_alias=True, exclude_none=True)


class SearchHistoryStore:
    """Keeps the last few selected birds, unique by id, newest first.

    The stored value is a single JSON list. Reads that find a missing,
    unparsable or invalid list behave as an empty history; write failures
    propagate to the caller.
    """

    def __init__(
        self,
        storage: KeyValueStore,
        max_entries: int = 10,
        key: str = "@search_history",
        clock: Callable[[], int] = _now_ms,
    ) -> None:
        """Initialize the history store.

        Args:
            storage: Backing key-value store
            max_entries: History cap
            key: Storage key of the JSON list
            clock: Epoch-millisecond time source
        """
        self.storage = storage
        self.max_entries = max_entries
        self.key = key
        self._clock = clock
        self._lock = asyncio.Lock()

    async def list(self) -> list[SearchHistoryEntry]:
        """Return the history, most recent first."""
        raw = await self.storage.get_item(self.key)
        if not raw:
            return []

        try:
            items = json.loads(raw)
            if not isinstance(items, list):
                raise ValueError("history is not a list")
            return [SearchHistoryEntry.model_validate(item) for item in items]
        except (ValueError, ValidationError) as e:
            logger.warning("Ignoring unreadable search history: %s", e)
            return []

    async def record(self, bird: BirdSuggestion) -> SearchHistoryEntry:
        """Move a selected bird to the front of the history.

        Any earlier entry with the same id is replaced, and the list is
        trimmed to ``max_entries``.
        """
        entry = SearchHistoryEntry(
            id=bird.id,
            name=bird.name,
            display_name=bird.display_name,
            thumbnail=bird.default_photo.square_url if bird.default_photo else None,
            timestamp=self._clock(),
        )

        async with self._lock:
            history = [item for item in await self.list() if item.id != entry.id]
            updated = [entry, *history][: self.max_entries]
            await self.storage.set_item(
                self.key, json.dumps([item.to_storage() for item in updated])
            )

        logger.debug("Recorded search history entry %d (%d total)", entry.id, len(updated))
        return entry

    async def clear(self) -> None:
        """Remove the whole history."""
        async with self._lock:
            await self.storage.remove_item(self.key)
        logger.info("Search history cleared")
