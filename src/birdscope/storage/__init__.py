"""Local key-value storage for client state."""

from birdscope.storage.key_value import KeyValueStore, MemoryKeyValueStore
from birdscope.storage.sqlite import SQLiteKeyValueStore

__all__ = [
    "KeyValueStore",
    "MemoryKeyValueStore",
    "SQLiteKeyValueStore",
]
