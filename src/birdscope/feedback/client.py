"""User feedback submission."""

import logging
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field

from birdscope.config.models import FeedbackConfig
from birdscope.remote.errors import RemoteCallError
from birdscope.remote.rest import RestClient
from birdscope.remote.session import SessionContext

logger = logging.getLogger(__name__)


class FeedbackType(str, Enum):
    """What the feedback is about."""

    LIKE = "like"
    INCORRECT_ID = "incorrect_id"
    CONTENT_ERROR = "content_error"
    SUGGESTION = "suggestion"


class FeedbackRecord(BaseModel):
    """Feedback on one species profile or identification."""

    user_id: str | None = None
    scientific_name: str
    feedback_type: FeedbackType
    section_context: str | None = None  # Profile section the feedback refers to
    user_message: str | None = None
    media_url: str | None = None
    app_metadata: dict[str, Any] = Field(default_factory=dict)


class FeedbackClient:
    """Inserts feedback rows. Nothing is stored locally and nothing is retried."""

    def __init__(
        self,
        rest: RestClient,
        session_context: SessionContext,
        config: FeedbackConfig | None = None,
    ) -> None:
        self.rest = rest
        self.session_context = session_context
        self.config = config or FeedbackConfig()

    def build_row(self, record: FeedbackRecord) -> dict[str, Any]:
        """Build the table row, filling the user and platform when missing."""
        row = record.model_dump(mode="json")
        if row["user_id"] is None:
            row["user_id"] = self.session_context.current.user_id
        row["app_metadata"] = {"platform": self.config.platform, **record.app_metadata}
        row["status"] = "new"
        return row

    async def submit(self, record: FeedbackRecord) -> bool:
        """Submit feedback.

        Returns:
            True once the row is stored

        Raises:
            RemoteCallError: The backend rejected the insert
        """
        row = self.build_row(record)
        try:
            await self.rest.insert(self.config.table, [row])
        except RemoteCallError as e:
            logger.error(
                "Error submitting feedback: %s",
                e.message,
                extra={"status": e.status, "code": e.code},
            )
            raise

        logger.info(
            "Feedback submitted",
            extra={
                "feedback_type": row["feedback_type"],
                "scientific_name": row["scientific_name"],
            },
        )
        return True
