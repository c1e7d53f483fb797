"""Free identification credit tracking.

The server owns the count. The client caches the last value it was told and
never advances it locally: a failed increment leaves ``used`` where it was.
"""

import logging
from typing import Protocol

from birdscope.config.models import UsageConfig
from birdscope.remote.errors import RemoteCallError
from birdscope.remote.rest import RestClient
from birdscope.remote.session import SessionContext

logger = logging.getLogger(__name__)

NO_ROWS_CODE = "PGRST116"


class UsageBackend(Protocol):
    """Remote source of truth for a user's identification count."""

    async def fetch_count(self, user_id: str) -> int | None:
        """Return the stored count, or None if the user has no profile row."""
        ...

    async def increment(self, user_id: str) -> int:
        """Atomically increment the count and return the new value."""
        ...


class RestUsageBackend:
    """Reads the profile column and calls the increment RPC."""

    def __init__(self, rest: RestClient, config: UsageConfig | None = None) -> None:
        self.rest = rest
        self.config = config or UsageConfig()

    async def fetch_count(self, user_id: str) -> int | None:
        try:
            row = await self.rest.select_single(
                self.config.profiles_table, self.config.count_column, id=user_id
            )
        except RemoteCallError as e:
            if e.code == NO_ROWS_CODE:
                return None
            raise
        return int(row.get(self.config.count_column) or 0)

    async def increment(self, user_id: str) -> int:
        result = await self.rest.rpc(self.config.increment_rpc, {"p_user_id": user_id})
        return int(result or 0)


class UsageCounter:
    """Cached view of how many free identifications the current user has used."""

    def __init__(
        self,
        backend: UsageBackend,
        session_context: SessionContext,
        limit: int = 7,
    ) -> None:
        """Initialize the counter with nothing used.

        Args:
            backend: Remote count storage
            session_context: Source of the current user
            limit: Free identifications before gating
        """
        self.backend = backend
        self.session_context = session_context
        self.limit = limit
        self.used = 0

    @property
    def is_privileged(self) -> bool:
        """Whether the current user is exempt from the free limit."""
        return self.session_context.current.is_privileged

    @property
    def remaining(self) -> int:
        """Free identifications left, never negative."""
        return max(0, self.limit - self.used)

    @property
    def gated(self) -> bool:
        """Whether new identifications should be blocked."""
        return not self.is_privileged and self.used >= self.limit

    async def fetch_count(self) -> int:
        """Refresh ``used`` from the server.

        A user without a profile row has used nothing. Other failures are
        logged and leave the cached value as it was.
        """
        user_id = self.session_context.current.user_id
        if not user_id:
            return self.used

        try:
            count = await self.backend.fetch_count(user_id)
        except Exception as e:
            logger.error("Error fetching usage count: %s", e, extra={"user_id": user_id})
            return self.used

        self.used = count if count is not None else 0
        return self.used

    async def increment(self) -> int:
        """Record one identification and return the server's new count.

        On failure ``used`` is not changed and the previous value is returned.
        """
        user_id = self.session_context.current.user_id
        if not user_id:
            return self.used

        try:
            self.used = await self.backend.increment(user_id)
        except Exception as e:
            logger.error("Error incrementing usage: %s", e, extra={"user_id": user_id})
        return self.used
