"""Authenticated session data contract shared by the remote clients."""

import logging

from pydantic import BaseModel

logger = logging.getLogger(__name__)


class UserSession(BaseModel):
    """Identity of the signed-in (or anonymous) user."""

    user_id: str | None = None
    access_token: str | None = None
    is_privileged: bool = False  # Active subscription, never gated by free credits


class SessionContext:
    """Holds the current session for every client built by the container.

    Sign-in and sign-out replace the session object; clients read
    ``current`` on each call instead of caching identity.
    """

    def __init__(self, session: UserSession | None = None) -> None:
        self._session = session or UserSession()

    @property
    def current(self) -> UserSession:
        """The active session (an anonymous one when signed out)."""
        return self._session

    def sign_in(self, session: UserSession) -> None:
        """Replace the active session."""
        self._session = session
        logger.info("Session started", extra={"user_id": session.user_id})

    def sign_out(self) -> None:
        """Drop back to an anonymous session."""
        self._session = UserSession()
        logger.info("Session ended")
