"""Reconciles a streamed identification response into candidate records.

The reconciler reads a chunked NDJSON body, validates each line into a
typed ``StreamEvent`` and applies it to an ``IdentificationState``:

- ``candidates`` replaces the candidate list and the two views derived
  from it (the enriched list and the primary result).
- ``media`` and ``metadata`` patch one candidate by index. Indexes outside
  the current list are dropped, including enrichment that arrives before
  the candidate list.
- ``done`` and ``error`` end processing.

Malformed lines are logged and skipped. Reaching the end of the body
without a terminal event is a normal completion.
"""

import asyncio
import logging
from collections.abc import AsyncIterable, AsyncIterator, Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import assert_never

import httpx
from pydantic import ValidationError

from birdscope.identification.models import (
    BirdMedia,
    CandidateRecord,
    CandidatesEvent,
    DoneEvent,
    ErrorEvent,
    HeartbeatEvent,
    MediaEvent,
    MetadataEvent,
    ProgressEvent,
    StreamEvent,
    stream_event_adapter,
)
from birdscope.identification.ndjson import NDJSONDecoder, parse_ndjson_line

logger = logging.getLogger(__name__)

_END_OF_BODY = object()
_CANCELLED = object()


async def _read_chunk(iterator: AsyncIterator[bytes | str]) -> bytes | str | object:
    try:
        return await anext(iterator)
    except StopAsyncIteration:
        return _END_OF_BODY


class StreamOutcome(str, Enum):
    """How processing of one response body ended."""

    COMPLETED = "completed"  # Body ended without a terminal event
    DONE = "done"
    ERROR = "error"
    CANCELLED = "cancelled"
    INTERRUPTED = "interrupted"  # Transport failed after candidates arrived


@dataclass
class IdentificationState:
    """Client-side state built up by one identification request."""

    candidates: list[CandidateRecord] = field(default_factory=list)
    enriched: list[CandidateRecord] = field(default_factory=list)
    primary: CandidateRecord | None = None
    media_by_index: dict[int, BirdMedia] = field(default_factory=dict)
    last_progress: str | None = None
    duration: float | None = None
    error_message: str | None = None
    outcome: StreamOutcome | None = None
    received_candidates: bool = False
    events_applied: int = 0
    lines_dropped: int = 0


EventCallback = Callable[[StreamEvent, IdentificationState], None]


class StreamReconciler:
    """Applies stream events, in arrival order, to an identification state."""

    def __init__(
        self,
        on_event: EventCallback | None = None,
        interruption_errors: tuple[type[Exception], ...] = (httpx.TransportError,),
    ) -> None:
        """Initialize the reconciler with a fresh state.

        Args:
            on_event: Called after each applied event with the updated state
            interruption_errors: Read errors tolerated once candidates have arrived
        """
        self.state = IdentificationState()
        self.on_event = on_event
        self.interruption_errors = interruption_errors

    def apply(self, event: StreamEvent) -> bool:
        """Apply one event to the state.

        An enrichment payload that does not fit the media model is dropped
        and counted like a malformed line.

        Returns:
            True if the event is terminal
        """
        try:
            terminal = self._dispatch(event)
        except ValidationError as e:
            self.state.lines_dropped += 1
            logger.warning(
                "Dropping enrichment that does not fit its candidate",
                extra={"event_type": event.type, "errors": e.error_count()},
            )
            return False

        self.state.events_applied += 1
        if self.on_event is not None:
            self.on_event(event, self.state)
        return terminal

    def _dispatch(self, event: StreamEvent) -> bool:
        terminal = False

        if isinstance(event, CandidatesEvent):
            self._replace_candidates(event.data)
        elif isinstance(event, MediaEvent):
            self._merge_media(event.index, event.data)
        elif isinstance(event, MetadataEvent):
            self._merge_metadata(event.index, event.data)
        elif isinstance(event, ProgressEvent):
            self.state.last_progress = event.message
        elif isinstance(event, HeartbeatEvent):
            pass
        elif isinstance(event, DoneEvent):
            self.state.duration = event.duration
            terminal = True
        elif isinstance(event, ErrorEvent):
            self.state.error_message = event.message
            terminal = True
        else:
            assert_never(event)
        return terminal

    def handle_line(self, line: str) -> bool:
        """Parse, validate and apply one NDJSON line.

        Returns:
            True if the line carried a terminal event
        """
        payload = parse_ndjson_line(line)
        if payload is None:
            if line.strip():
                self.state.lines_dropped += 1
            return False

        try:
            event = stream_event_adapter.validate_python(payload)
        except ValidationError as e:
            self.state.lines_dropped += 1
            logger.warning(
                "Dropping malformed stream event",
                extra={"event_type": payload.get("type"), "errors": e.error_count()},
            )
            return False

        return self.apply(event)

    async def consume(
        self,
        chunks: AsyncIterable[bytes | str],
        cancel_event: asyncio.Event | None = None,
    ) -> IdentificationState:
        """Read a chunked body to completion, cancellation or a terminal event.

        Args:
            chunks: Response body chunks
            cancel_event: When set, no further line is applied and a pending
                read is abandoned

        Returns:
            The final state, with ``outcome`` set

        Raises:
            Exception: A read error from ``interruption_errors`` raised before
                any candidates arrived, or any other read error
        """
        decoder = NDJSONDecoder()
        iterator = aiter(chunks)

        while True:
            if self._cancelled(cancel_event):
                return self._finish(StreamOutcome.CANCELLED)

            try:
                chunk = await self._next_chunk(iterator, cancel_event)
            except self.interruption_errors as e:
                if not self.state.received_candidates:
                    raise
                logger.warning(
                    "Stream interrupted after candidates arrived, keeping results",
                    extra={"error": str(e)},
                )
                return self._finish(StreamOutcome.INTERRUPTED)

            if chunk is _CANCELLED:
                return self._finish(StreamOutcome.CANCELLED)
            if chunk is _END_OF_BODY:
                break

            for line in decoder.feed(chunk):
                if self._cancelled(cancel_event):
                    return self._finish(StreamOutcome.CANCELLED)
                if self.handle_line(line):
                    return self._finish(self._terminal_outcome())

        for line in decoder.flush():
            if self._cancelled(cancel_event):
                return self._finish(StreamOutcome.CANCELLED)
            if self.handle_line(line):
                return self._finish(self._terminal_outcome())

        return self._finish(StreamOutcome.COMPLETED)

    async def _next_chunk(
        self,
        iterator: AsyncIterator[bytes | str],
        cancel_event: asyncio.Event | None,
    ) -> bytes | str | object:
        """Read one chunk, giving up on the read as soon as cancellation is requested.

        Returns:
            The chunk, ``_END_OF_BODY`` when the body is exhausted, or
            ``_CANCELLED`` when ``cancel_event`` was set before a chunk arrived
        """
        if cancel_event is None:
            return await _read_chunk(iterator)

        read = asyncio.ensure_future(_read_chunk(iterator))
        cancelled = asyncio.ensure_future(cancel_event.wait())
        try:
            await asyncio.wait({read, cancelled}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            for task in (read, cancelled):
                if not task.done():
                    task.cancel()
            # Let the abandoned read unwind before the body is closed
            await asyncio.wait({read, cancelled})

        if cancel_event.is_set():
            if not read.cancelled():
                read.exception()
            return _CANCELLED
        return read.result()

    def _replace_candidates(self, records: list[CandidateRecord]) -> None:
        # Three independent views, later patched separately
        self.state.received_candidates = True
        self.state.candidates = list(records)
        self.state.enriched = [record.model_copy(deep=True) for record in records]
        self.state.primary = records[0].model_copy(deep=True) if records else None
        self.state.media_by_index = {}
        logger.debug("Received %d candidates", len(records))

    def _index_in_range(self, index: int, kind: str) -> bool:
        if 0 <= index < len(self.state.candidates):
            return True
        logger.debug(
            "Ignoring %s event for unknown candidate index %d (have %d)",
            kind,
            index,
            len(self.state.candidates),
        )
        return False

    def _merge_media(self, index: int, payload: dict) -> None:
        if not self._index_in_range(index, "media"):
            return
        # Build every view before assigning so a rejected payload changes nothing
        enriched = self.state.enriched[index].with_media(payload)
        primary = self.state.primary
        if index == 0 and primary is not None:
            primary = primary.with_media(payload)

        self.state.enriched[index] = enriched
        self.state.primary = primary
        if enriched.media is not None:
            self.state.media_by_index[index] = enriched.media

    def _merge_metadata(self, index: int, payload: dict) -> None:
        if not self._index_in_range(index, "metadata"):
            return
        self.state.enriched[index] = self.state.enriched[index].with_metadata(payload)
        if index == 0 and self.state.primary is not None:
            self.state.primary = self.state.primary.with_metadata(payload)

    def _terminal_outcome(self) -> StreamOutcome:
        if self.state.error_message is not None:
            return StreamOutcome.ERROR
        return StreamOutcome.DONE

    def _cancelled(self, cancel_event: asyncio.Event | None) -> bool:
        return cancel_event is not None and cancel_event.is_set()

    def _finish(self, outcome: StreamOutcome) -> IdentificationState:
        self.state.outcome = outcome
        logger.debug(
            "Stream finished",
            extra={
                "outcome": outcome.value,
                "candidates": len(self.state.candidates),
                "events": self.state.events_applied,
                "dropped": self.state.lines_dropped,
            },
        )
        return self.state
