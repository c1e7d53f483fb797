"""Tests for the backend REST client and its error parsing."""

import httpx
import pytest

from birdscope.remote.errors import RemoteCallError, parse_error_body
from birdscope.remote.rest import RestClient, create_http_client
from birdscope.remote.session import SessionContext, UserSession


class TestParseErrorBody:
    """Test server error message extraction."""

    @pytest.mark.parametrize(
        "body,expected",
        [
            ('{"error": "Quota exceeded", "message": "ignored"}', ("Quota exceeded", None)),
            ('{"error": {"message": "Nested"}}', ("Nested", None)),
            ('{"message": "No rows", "code": "PGRST116"}', ("No rows", "PGRST116")),
            ('{"code": 42}', ("Server error (502)", "42")),
            ("Bad gateway", ("Bad gateway", None)),
            ("", ("Server error (502)", None)),
            ("[1, 2]", ("Server error (502)", None)),
        ],
    )
    def test_parse(self, body, expected):
        """Should prefer error, then message, then raw text, then a generic message."""
        assert parse_error_body(502, body) == expected

    def test_remote_call_error_attributes(self):
        """Should expose message, status and code."""
        error = RemoteCallError("Nope", status=403, code="42501")

        assert str(error) == "Nope"
        assert error.status == 403
        assert error.code == "42501"
        assert "status=403" in repr(error)


class TestRestClient:
    """Test request construction and status handling."""

    def test_urls(self, rest_factory):
        """Should build function and table URLs under the base URL."""
        rest = rest_factory(lambda r: httpx.Response(200))

        assert rest.function_url("identify-bird") == (
            "https://backend.test/functions/v1/identify-bird"
        )
        assert rest.table_url("profiles") == "https://backend.test/rest/v1/profiles"

    async def test_anonymous_requests_use_api_key_as_bearer(self, rest_factory, anonymous_session):
        """Should fall back to the API key when nobody is signed in."""
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["auth"] = request.headers["Authorization"]
            return httpx.Response(200, json={"ok": True})

        rest = rest_factory(handler, anonymous_session)

        assert await rest.invoke_function("ping", {}) == {"ok": True}
        assert seen["auth"] == "Bearer test-anon-key"

    async def test_session_changes_are_picked_up(self, rest_factory):
        """Should read the current session on every request."""
        tokens = []

        def handler(request: httpx.Request) -> httpx.Response:
            tokens.append(request.headers["Authorization"])
            return httpx.Response(204)

        session = SessionContext()
        rest = rest_factory(handler, session)

        await rest.invoke_function("ping", {})
        session.sign_in(UserSession(user_id="u", access_token="fresh"))
        await rest.invoke_function("ping", {})
        session.sign_out()
        await rest.invoke_function("ping", {})

        assert tokens == ["Bearer test-anon-key", "Bearer fresh", "Bearer test-anon-key"]

    async def test_empty_response_is_none(self, rest_factory):
        """Should return None for a response without a body."""
        rest = rest_factory(lambda r: httpx.Response(204))

        assert await rest.rpc("noop", {}) is None

    async def test_error_status_raises(self, rest_factory, caplog):
        """Should raise RemoteCallError with the parsed message and log a warning."""
        rest = rest_factory(lambda r: httpx.Response(400, json={"error": "Missing image"}))

        with pytest.raises(RemoteCallError) as exc_info:
            await rest.invoke_function("identify-bird", {})

        assert exc_info.value.message == "Missing image"
        assert exc_info.value.status == 400
        assert "Remote call failed" in caplog.text

    async def test_stream_function_raises_before_body(self, rest_factory):
        """Should raise for a streamed error response before yielding it."""
        rest = rest_factory(lambda r: httpx.Response(503, text="Service Unavailable"))

        with pytest.raises(RemoteCallError, match="Service Unavailable"):
            async with rest.stream_function("identify-bird", {}):
                pytest.fail("body should not be yielded")

    async def test_stream_function_yields_chunks(self, rest_factory):
        """Should yield the open response for a success status."""
        rest = rest_factory(lambda r: httpx.Response(200, content=b'{"type":"done"}\n'))

        async with rest.stream_function("identify-bird", {}) as response:
            body = b"".join([chunk async for chunk in response.aiter_bytes()])

        assert body == b'{"type":"done"}\n'

    async def test_aclose(self, backend_config, session_context):
        """Should close the underlying HTTP client."""
        rest = RestClient(backend_config, session_context)

        await rest.aclose()

        assert rest.client.is_closed

    def test_create_http_client(self, backend_config):
        """Should apply the configured timeout and user agent."""
        client = create_http_client(backend_config)

        assert client.timeout.read == 30.0
        assert client.headers["User-Agent"] == "BirdScope/1.0"
