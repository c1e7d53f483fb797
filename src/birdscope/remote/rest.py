"""HTTP client for the hosted backend: edge functions, table API and RPC.

A thin wrapper around ``httpx.AsyncClient`` that adds the API key and bearer
token of the current session, and turns every non-success response into a
``RemoteCallError`` carrying the server's own message and status.
"""

import contextlib
import logging
from collections.abc import AsyncIterator
from typing import Any

import httpx

from birdscope.config.models import BackendConfig
from birdscope.remote.errors import RemoteCallError, parse_error_body
from birdscope.remote.session import SessionContext

logger = logging.getLogger(__name__)

SINGLE_OBJECT_MEDIA_TYPE = "application/vnd.pgrst.object+json"


def create_http_client(backend: BackendConfig) -> httpx.AsyncClient:
    """Create the shared HTTP client with reasonable defaults."""
    return httpx.AsyncClient(
        timeout=httpx.Timeout(backend.request_timeout),
        limits=httpx.Limits(max_keepalive_connections=10, max_connections=20),
        headers={"User-Agent": "BirdScope/1.0"},
    )


class RestClient:
    """Calls edge functions, tables and RPCs on the hosted backend."""

    def __init__(
        self,
        backend: BackendConfig,
        session_context: SessionContext,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the REST client.

        Args:
            backend: Backend connection settings
            session_context: Source of the current user's access token
            client: Optional pre-built HTTP client (shared or test transport)
        """
        self.base_url = backend.base_url.rstrip("/")
        self.api_key = backend.api_key
        self.session_context = session_context
        self.client = client or create_http_client(backend)

    async def aclose(self) -> None:
        """Close the underlying HTTP client."""
        await self.client.aclose()

    def _headers(self, extra: dict[str, str] | None = None) -> dict[str, str]:
        token = self.session_context.current.access_token or self.api_key
        headers = {"apikey": self.api_key, "Authorization": f"Bearer {token}"}
        if extra:
            headers.update(extra)
        return headers

    def function_url(self, name: str) -> str:
        """Return the URL of an edge function."""
        return f"{self.base_url}/functions/v1/{name}"

    def table_url(self, table: str) -> str:
        """Return the URL of a table in the data API."""
        return f"{self.base_url}/rest/v1/{table}"

    async def raise_for_status(self, response: httpx.Response) -> None:
        """Raise ``RemoteCallError`` for a non-2xx response.

        Reads the body first so this also works on streamed responses.
        """
        if response.is_success:
            return

        try:
            await response.aread()
            body = response.text
        except httpx.HTTPError:
            body = ""

        message, code = parse_error_body(response.status_code, body)
        logger.warning(
            "Remote call failed",
            extra={"url": str(response.request.url), "status": response.status_code},
        )
        raise RemoteCallError(message, status=response.status_code, code=code)

    async def invoke_function(
        self, name: str, body: dict[str, Any], timeout: float | None = None
    ) -> Any:  # noqa: ANN401
        """Invoke an edge function and return its decoded JSON response.

        Args:
            name: Function name (e.g. "fetch-bird-media")
            body: JSON request body
            timeout: Optional request timeout overriding the client default

        Returns:
            Decoded JSON response, or None for an empty body
        """
        kwargs: dict[str, Any] = {"json": body, "headers": self._headers()}
        if timeout is not None:
            kwargs["timeout"] = timeout

        response = await self.client.post(self.function_url(name), **kwargs)
        await self.raise_for_status(response)
        return response.json() if response.content else None

    @contextlib.asynccontextmanager
    async def stream_function(
        self, name: str, body: dict[str, Any], timeout: httpx.Timeout | None = None
    ) -> AsyncIterator[httpx.Response]:
        """Invoke an edge function and yield the still-open streamed response.

        Non-2xx responses raise before the caller reads the body.
        """
        kwargs: dict[str, Any] = {"json": body, "headers": self._headers()}
        if timeout is not None:
            kwargs["timeout"] = timeout

        async with self.client.stream("POST", self.function_url(name), **kwargs) as response:
            await self.raise_for_status(response)
            yield response

    async def insert(self, table: str, rows: list[dict[str, Any]]) -> None:
        """Insert rows into a table without reading them back."""
        response = await self.client.post(
            self.table_url(table),
            json=rows,
            headers=self._headers({"Prefer": "return=minimal"}),
        )
        await self.raise_for_status(response)

    async def select_single(self, table: str, columns: str, **filters: Any) -> dict[str, Any]:  # noqa: ANN401
        """Select exactly one row matching equality filters.

        Raises:
            RemoteCallError: With code "PGRST116" when no single row matches
        """
        params = {"select": columns}
        for column, value in filters.items():
            params[column] = f"eq.{value}"

        response = await self.client.get(
            self.table_url(table),
            params=params,
            headers=self._headers({"Accept": SINGLE_OBJECT_MEDIA_TYPE}),
        )
        await self.raise_for_status(response)
        return response.json()

    async def rpc(self, function: str, params: dict[str, Any]) -> Any:  # noqa: ANN401
        """Call a database function and return its decoded result."""
        response = await self.client.post(
            self.table_url(f"rpc/{function}"),
            json=params,
            headers=self._headers(),
        )
        await self.raise_for_status(response)
        return response.json() if response.content else None
