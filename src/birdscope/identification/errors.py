"""Failure classification for identification requests."""

from collections.abc import Iterable
from enum import Enum

from birdscope.remote.errors import RemoteCallError

DEFAULT_RATE_LIMIT_STATUS_CODES = (429,)
DEFAULT_RATE_LIMIT_MARKERS = ("Quota", "RESOURCE_EXHAUSTED")

RATE_LIMITED_MESSAGE = (
    "Our identification service is busy right now. Please try again in a moment."
)


class FailureKind(str, Enum):
    """How an identification failure should be presented."""

    RATE_LIMITED = "rate_limited"  # Come back shortly
    GENERIC = "generic"  # Show the underlying message


class IdentificationError(RemoteCallError):
    """An identification request failed.

    Raised for non-2xx responses, transport failures and in-band ``error``
    events. The original message and status are kept as-is.
    """

    def __init__(
        self,
        message: str,
        status: int | None = None,
        code: str | None = None,
        kind: FailureKind = FailureKind.GENERIC,
    ) -> None:
        super().__init__(message, status=status, code=code)
        self.kind = kind

    @property
    def is_rate_limited(self) -> bool:
        """Whether the backend asked us to slow down."""
        return self.kind is FailureKind.RATE_LIMITED


def classify_failure(
    status: int | None,
    message: str,
    status_codes: Iterable[int] = DEFAULT_RATE_LIMIT_STATUS_CODES,
    markers: Iterable[str] = DEFAULT_RATE_LIMIT_MARKERS,
) -> FailureKind:
    """Classify a failure as rate-limited or generic.

    Args:
        status: HTTP status, if the failure had one
        message: Failure message from the server or transport
        status_codes: Statuses that mean rate limiting
        markers: Substrings of the message that mean quota exhaustion

    Returns:
        The failure kind
    """
    if status is not None and status in set(status_codes):
        return FailureKind.RATE_LIMITED
    if any(marker in message for marker in markers):
        return FailureKind.RATE_LIMITED
    return FailureKind.GENERIC


def describe_failure(error: BaseException) -> str:
    """Return the user-facing message for an identification failure."""
    if isinstance(error, IdentificationError) and error.is_rate_limited:
        return RATE_LIMITED_MESSAGE
    return str(error)
