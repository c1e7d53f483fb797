"""Newline-delimited JSON decoding for streamed response bodies."""

import codecs
import json
import logging
from typing import Any

logger = logging.getLogger(__name__)


def parse_ndjson_line(line: str) -> dict[str, Any] | None:
    """Parse a single NDJSON line into a JSON object.

    Lines with stray text around a JSON object (proxies and log prefixes do
    this) are retried on the outermost ``{...}`` span.

    Args:
        line: One line of the stream, with or without its newline

    Returns:
        The decoded object, or None for blank, unparsable or non-object lines
    """
    trimmed = line.strip()
    if not trimmed:
        return None

    try:
        parsed = json.loads(trimmed)
    except json.JSONDecodeError:
        parsed = _parse_json_island(trimmed)

    if isinstance(parsed, dict):
        return parsed

    logger.warning("Failed to parse NDJSON line: %s", trimmed[:100])
    return None


def _parse_json_island(text: str) -> Any:  # noqa: ANN401
    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end <= start:
        return None
    try:
        return json.loads(text[start : end + 1])
    except json.JSONDecodeError:
        return None


class NDJSONDecoder:
    """Splits a chunked byte stream into complete lines.

    Multi-byte characters and lines may be split across chunks; the trailing
    partial line stays buffered until the next ``feed`` or ``flush``.
    """

    def __init__(self, encoding: str = "utf-8") -> None:
        self._decoder = codecs.getincrementaldecoder(encoding)(errors="replace")
        self._buffer = ""

    def feed(self, chunk: bytes | str) -> list[str]:
        """Append a chunk and return every complete line now available."""
        if isinstance(chunk, bytes):
            chunk = self._decoder.decode(chunk)
        self._buffer += chunk

        *lines, self._buffer = self._buffer.split("\n")
        return lines

    def flush(self) -> list[str]:
        """Return the buffered tail once the stream has ended."""
        tail = self._buffer + self._decoder.decode(b"", final=True)
        self._buffer = ""
        return [tail] if tail.strip() else []

    @property
    def pending(self) -> str:
        """Text received after the last newline."""
        return self._buffer
