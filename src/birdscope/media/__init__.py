"""Species media lookups."""

from birdscope.media.cache import TTLCache
from birdscope.media.client import MediaCacheClient, RestMediaFetcher

__all__ = ["MediaCacheClient", "RestMediaFetcher", "TTLCache"]
