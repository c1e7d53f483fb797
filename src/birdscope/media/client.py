"""Per-species media lookups with caching, a per-attempt timeout and retries."""

import asyncio
import logging
from collections.abc import Awaitable, Callable

from birdscope.config.models import MediaConfig
from birdscope.identification.models import BirdMedia
from birdscope.media.cache import TTLCache
from birdscope.remote.rest import RestClient

logger = logging.getLogger(__name__)

MediaFetcher = Callable[[str], Awaitable[BirdMedia]]
Sleeper = Callable[[float], Awaitable[None]]


class RestMediaFetcher:
    """Fetches species media from the fetch-bird-media function."""

    def __init__(self, rest: RestClient, function_name: str = "fetch-bird-media") -> None:
        self.rest = rest
        self.function_name = function_name

    async def __call__(self, scientific_name: str) -> BirdMedia:
        payload = await self.rest.invoke_function(
            self.function_name, {"scientific_name": scientific_name}
        )
        return BirdMedia.model_validate(payload or {})


class MediaCacheClient:
    """Looks up media by scientific name, reusing answers for the cache TTL.

    A miss calls the fetcher under a per-attempt timeout. Failed attempts are
    retried ``max_retries`` times with exponential backoff
    (``base_delay * 2**attempt``). When every attempt fails the last error is
    raised unchanged. Concurrent misses for the same name each call the
    fetcher; the last one to finish wins the cache slot.
    """

    def __init__(
        self,
        fetcher: MediaFetcher,
        ttl: float = 3600.0,
        max_retries: int = 2,
        base_delay: float = 0.5,
        attempt_timeout: float = 12.0,
        sleep: Sleeper = asyncio.sleep,
        cache: TTLCache[BirdMedia] | None = None,
    ) -> None:
        """Initialize the media client.

        Args:
            fetcher: Coroutine function returning media for a scientific name
            ttl: Cache entry lifetime in seconds
            max_retries: Additional attempts after the first failure
            base_delay: Backoff before the first retry, in seconds
            attempt_timeout: Upper bound for each attempt, in seconds
            sleep: Backoff sleeper, injectable for tests
            cache: Optional pre-built cache
        """
        self.fetcher = fetcher
        self.max_retries = max_retries
        self.base_delay = base_delay
        self.attempt_timeout = attempt_timeout
        self._sleep = sleep
        self.cache: TTLCache[BirdMedia] = cache if cache is not None else TTLCache(ttl)

    @classmethod
    def from_config(cls, rest: RestClient, config: MediaConfig) -> "MediaCacheClient":
        """Build a client that fetches through the backend function."""
        return cls(
            RestMediaFetcher(rest, config.function_name),
            ttl=config.cache_ttl_seconds,
            max_retries=config.max_retries,
            base_delay=config.base_delay_seconds,
            attempt_timeout=config.attempt_timeout_seconds,
        )

    async def fetch(self, scientific_name: str) -> BirdMedia:
        """Return media for a species, from cache when fresh.

        Raises:
            Exception: The last attempt's error once retries are exhausted
        """
        cached = self.cache.get(scientific_name)
        if cached is not None:
            logger.debug("Media cache hit: %s", scientific_name)
            return cached

        attempts = self.max_retries + 1
        attempt = 0
        while True:
            try:
                media = await asyncio.wait_for(
                    self.fetcher(scientific_name), timeout=self.attempt_timeout
                )
            except Exception as e:
                if attempt + 1 >= attempts:
                    logger.error(
                        "Media fetch failed after %d attempts: %s - %s",
                        attempts,
                        scientific_name,
                        str(e) or type(e).__name__,
                    )
                    raise

                delay = self.base_delay * 2**attempt
                logger.warning(
                    "Media fetch failed (attempt %d/%d): %s - %s, retrying in %.1fs",
                    attempt + 1,
                    attempts,
                    scientific_name,
                    str(e) or type(e).__name__,
                    delay,
                )
                await self._sleep(delay)
                attempt += 1
                continue

            self.cache.set(scientific_name, media)
            return media

    def clear_cache(self) -> None:
        """Forget every cached lookup."""
        self.cache.clear()
