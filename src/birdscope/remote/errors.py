"""Errors raised by remote backend calls."""

import json
from typing import Any


class RemoteCallError(Exception):
    """A remote call answered with a non-success status.

    Carries the server's own message, HTTP status and (for data API calls)
    the backend error code so callers can inspect the specific failure.
    """

    def __init__(self, message: str, status: int | None = None, code: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.status = status
        self.code = code

    def __repr__(self) -> str:
        """Return a debug representation including status and code."""
        return (
            f"{type(self).__name__}(message={self.message!r}, "
            f"status={self.status!r}, code={self.code!r})"
        )


def parse_error_body(status: int, body: str) -> tuple[str, str | None]:
    """Extract a message and error code from an error response body.

    Prefers the JSON ``error`` field, then ``message``, then the raw text,
    and finally a generic ``Server error (<status>)``.

    Args:
        status: HTTP status code of the response
        body: Response body text

    Returns:
        Tuple of (message, code)
    """
    message = f"Server error ({status})"
    code = None

    if not body:
        return message, code

    try:
        payload: Any = json.loads(body)
    except json.JSONDecodeError:
        return body, code

    if isinstance(payload, dict):
        error = payload.get("error")
        if isinstance(error, dict):
            error = error.get("message")
        message = error or payload.get("message") or message
        code = payload.get("code")
        if code is not None:
            code = str(code)
    return str(message), code
