"""Tests for feedback submission."""

import json

import httpx
import pytest

from birdscope.config.models import FeedbackConfig
from birdscope.feedback.client import FeedbackClient, FeedbackRecord, FeedbackType
from birdscope.remote.errors import RemoteCallError


class TestFeedbackClient:
    """Test feedback rows and error propagation."""

    async def test_submit_inserts_row(self, rest_factory, session_context):
        """Should insert one row with status new and the platform metadata."""
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["path"] = request.url.path
            seen["prefer"] = request.headers["Prefer"]
            seen["rows"] = json.loads(request.content)
            return httpx.Response(201)

        client = FeedbackClient(rest_factory(handler), session_context)
        record = FeedbackRecord(
            scientific_name="Turdus migratorius",
            feedback_type=FeedbackType.INCORRECT_ID,
            section_context="diet",
            user_message="This is a thrush",
            app_metadata={"app_version": "2.1.0"},
        )

        assert await client.submit(record) is True

        assert seen["path"] == "/rest/v1/user_feedback"
        assert seen["prefer"] == "return=minimal"
        assert seen["rows"] == [
            {
                "user_id": "user-123",
                "scientific_name": "Turdus migratorius",
                "feedback_type": "incorrect_id",
                "section_context": "diet",
                "user_message": "This is a thrush",
                "media_url": None,
                "app_metadata": {"platform": "mobile", "app_version": "2.1.0"},
                "status": "new",
            }
        ]

    def test_explicit_user_and_platform_override(self, rest_factory, session_context):
        """Should keep an explicit user id and let metadata override the platform."""
        client = FeedbackClient(
            rest_factory(lambda r: httpx.Response(201)),
            session_context,
            FeedbackConfig(platform="cli"),
        )
        record = FeedbackRecord(
            user_id="someone-else",
            scientific_name="Pica pica",
            feedback_type=FeedbackType.LIKE,
            app_metadata={"platform": "web"},
        )

        row = client.build_row(record)

        assert row["user_id"] == "someone-else"
        assert row["app_metadata"] == {"platform": "web"}

    def test_anonymous_feedback(self, rest_factory, anonymous_session):
        """Should leave the user id empty when nobody is signed in."""
        client = FeedbackClient(rest_factory(lambda r: httpx.Response(201)), anonymous_session)

        row = client.build_row(
            FeedbackRecord(scientific_name="Pica pica", feedback_type=FeedbackType.SUGGESTION)
        )

        assert row["user_id"] is None
        assert row["app_metadata"] == {"platform": "mobile"}

    async def test_remote_error_propagates_unchanged(self, rest_factory, session_context, caplog):
        """Should log and re-raise the backend's error."""

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(401, json={"message": "JWT expired", "code": "PGRST301"})

        client = FeedbackClient(rest_factory(handler), session_context)
        record = FeedbackRecord(scientific_name="Pica pica", feedback_type=FeedbackType.LIKE)

        with pytest.raises(RemoteCallError) as exc_info:
            await client.submit(record)

        assert exc_info.value.message == "JWT expired"
        assert exc_info.value.status == 401
        assert exc_info.value.code == "PGRST301"
        assert "Error submitting feedback" in caplog.text

    def test_invalid_feedback_type(self):
        """Should reject unknown feedback types."""
        with pytest.raises(ValueError):
            FeedbackRecord(scientific_name="Pica pica", feedback_type="dislike")
