"""Tests for NDJSON line parsing and chunk decoding."""

import pytest

from birdscope.identification.ndjson import NDJSONDecoder, parse_ndjson_line


class TestParseNDJSONLine:
    """Test single-line parsing."""

    @pytest.mark.parametrize("line", ["", "   ", "\n", "\t \r"])
    def test_blank_lines(self, line):
        """Should return None for blank lines."""
        assert parse_ndjson_line(line) is None

    def test_valid_object(self):
        """Should decode a JSON object line."""
        assert parse_ndjson_line('{"type":"progress","message":"hi"}\n') == {
            "type": "progress",
            "message": "hi",
        }

    def test_object_with_surrounding_noise(self):
        """Should recover the outermost JSON object from a noisy line."""
        line = 'data: {"type":"done","duration":5} trailing'
        assert parse_ndjson_line(line) == {"type": "done", "duration": 5}

    def test_unrecoverable_line(self, caplog):
        """Should return None and warn for text with no JSON object."""
        assert parse_ndjson_line("not json at all") is None
        assert "Failed to parse NDJSON line" in caplog.text

    def test_non_object_json(self):
        """Should reject JSON values that are not objects."""
        assert parse_ndjson_line("[1, 2, 3]") is None
        assert parse_ndjson_line("42") is None


class TestNDJSONDecoder:
    """Test incremental decoding."""

    def test_complete_lines(self):
        """Should return every newline-terminated line."""
        decoder = NDJSONDecoder()

        assert decoder.feed(b'{"a":1}\n{"b":2}\n') == ['{"a":1}', '{"b":2}']
        assert decoder.pending == ""

    def test_partial_line_across_chunks(self):
        """Should keep a partial line buffered until its newline arrives."""
        decoder = NDJSONDecoder()

        assert decoder.feed(b'{"type":"pro') == []
        assert decoder.pending == '{"type":"pro'
        assert decoder.feed(b'gress"}\n{"x"') == ['{"type":"progress"}']
        assert decoder.pending == '{"x"'

    def test_multibyte_character_split_across_chunks(self):
        """Should reassemble UTF-8 sequences split between chunks."""
        decoder = NDJSONDecoder()
        encoded = '{"name":"Mésange"}\n'.encode()
        split = encoded.index(b"\xc3") + 1

        assert decoder.feed(encoded[:split]) == []
        assert decoder.feed(encoded[split:]) == ['{"name":"Mésange"}']

    def test_flush_returns_tail(self):
        """Should return the unterminated last line on flush."""
        decoder = NDJSONDecoder()
        decoder.feed('{"a":1}\n{"type":"done"}')

        assert decoder.flush() == ['{"type":"done"}']
        assert decoder.flush() == []

    def test_flush_ignores_blank_tail(self):
        """Should return nothing when only whitespace is buffered."""
        decoder = NDJSONDecoder()
        decoder.feed(b'{"a":1}\n  ')

        assert decoder.flush() == []
