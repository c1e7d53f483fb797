"""Streaming identification requests against the identify-bird function."""

import asyncio
import base64
import logging
from typing import Any

import httpx

from birdscope.config.models import IdentificationConfig
from birdscope.identification.errors import IdentificationError, classify_failure
from birdscope.identification.reconciler import (
    EventCallback,
    IdentificationState,
    StreamOutcome,
    StreamReconciler,
)
from birdscope.remote.errors import RemoteCallError
from birdscope.remote.rest import RestClient

logger = logging.getLogger(__name__)


class IdentificationClient:
    """Sends a capture for identification and reconciles the streamed answer.

    Every call starts from an empty state; the previous request's candidates
    are never carried over.
    """

    def __init__(self, rest: RestClient, config: IdentificationConfig | None = None) -> None:
        self.rest = rest
        self.config = config or IdentificationConfig()

    def build_request_body(
        self, image: bytes | None = None, audio: bytes | None = None
    ) -> dict[str, Any]:
        """Encode the capture as the JSON request body.

        Raises:
            ValueError: If neither image nor audio is given
        """
        if image is None and audio is None:
            raise ValueError("An image or an audio recording is required")

        body: dict[str, Any] = {}
        if image is not None:
            body["image"] = base64.b64encode(image).decode("ascii")
        if audio is not None:
            body["audio"] = base64.b64encode(audio).decode("ascii")
        return body

    async def identify(
        self,
        image: bytes | None = None,
        audio: bytes | None = None,
        *,
        cancel_event: asyncio.Event | None = None,
        on_event: EventCallback | None = None,
    ) -> IdentificationState:
        """Identify a photo and/or a sound recording.

        Args:
            image: Raw JPEG bytes
            audio: Raw audio bytes
            cancel_event: Set it to stop applying events (e.g. the user navigated away)
            on_event: Called after each applied event with the updated state

        Returns:
            The reconciled state. ``outcome`` tells whether the stream finished,
            was cancelled or was cut short after candidates arrived.

        Raises:
            IdentificationError: For error responses, transport failures before
                any candidates arrived, and in-band error events
        """
        body = self.build_request_body(image, audio)
        reconciler = StreamReconciler(on_event=on_event)
        timeout = httpx.Timeout(self.config.connect_timeout, read=self.config.read_timeout)

        logger.info(
            "Starting identification",
            extra={"has_image": image is not None, "has_audio": audio is not None},
        )

        try:
            async with self.rest.stream_function(
                self.config.function_name, body, timeout=timeout
            ) as response:
                state = await reconciler.consume(response.aiter_bytes(), cancel_event)
        except RemoteCallError as e:
            raise self._classified(e.message, e.status, e.code) from e
        except httpx.HTTPError as e:
            raise self._classified(str(e) or type(e).__name__) from e

        if state.outcome is StreamOutcome.ERROR:
            raise self._classified(state.error_message or "Identification failed")

        logger.info(
            "Identification finished",
            extra={
                "outcome": state.outcome.value if state.outcome else None,
                "candidates": len(state.candidates),
                "duration": state.duration,
            },
        )
        return state

    def _classified(
        self, message: str, status: int | None = None, code: str | None = None
    ) -> IdentificationError:
        kind = classify_failure(
            status,
            message,
            status_codes=self.config.rate_limit_status_codes,
            markers=self.config.rate_limit_markers,
        )
        logger.error(
            "Identification failed",
            extra={"status": status, "kind": kind.value, "error": message},
        )
        return IdentificationError(message, status=status, code=code, kind=kind)
