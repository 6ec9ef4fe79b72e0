"""Unit tests for the transport-boundary chunk codec."""
import json

import pytest

from models.chunk_models import ChunkType, TableData
from utils.chunk_codec import ChunkParseError, decode_frame, encode_chunk, parse_chunk


class TestParseChunk:
    """Tests for normalizing inbound chunk payloads."""

    def test_parse_text_chunk(self):
        """Test a canonical text chunk."""
        chunk = parse_chunk({"type": "text", "data": "Hi", "is_complete": True})

        assert chunk.type is ChunkType.TEXT
        assert chunk.data == "Hi"
        assert chunk.metadata == {}
        assert chunk.is_complete is True
        assert chunk.message_id is None

    def test_camel_case_completion_flag(self):
        """Test that isComplete maps onto is_complete."""
        chunk = parse_chunk({"type": "button", "data": "Go", "isComplete": True})

        assert chunk.is_complete is True

    def test_completion_defaults_to_false(self):
        """Test that a missing completion flag means not complete."""
        assert parse_chunk({"type": "text", "data": "x"}).is_complete is False

    def test_legacy_top_level_hints_fold_into_metadata(self):
        """Test that alt, action and style move into metadata."""
        chunk = parse_chunk(
            {
                "type": "image",
                "data": "/img.png",
                "alt": "Analysis image",
                "style": {"width": "100%"},
                "metadata": {"caption": "Chart"},
            }
        )

        assert chunk.metadata["alt"] == "Analysis image"
        assert chunk.metadata["caption"] == "Chart"
        assert chunk.metadata["style"] == {"width": "100%"}

    def test_metadata_wins_over_legacy_hint(self):
        """Test that explicit metadata is not overridden by a top-level key."""
        chunk = parse_chunk({"type": "image", "data": "/a.png", "alt": "old", "metadata": {"alt": "new"}})

        assert chunk.metadata["alt"] == "new"

    def test_bold_style_becomes_formatting(self):
        """Test that a fontWeight style hint becomes the bold formatting hint."""
        chunk = parse_chunk({"type": "text", "data": "Hello", "style": {"fontWeight": "bold"}})

        assert chunk.metadata["formatting"] == "bold"

    def test_unknown_type_is_tolerated(self):
        """Test that an unknown tag becomes UNKNOWN and keeps the raw tag."""
        chunk = parse_chunk({"type": "video", "data": "/clip.mp4"})

        assert chunk.type is ChunkType.UNKNOWN
        assert chunk.tag == "video"

    def test_list_data_becomes_tuple(self):
        """Test list payload normalization."""
        chunk = parse_chunk({"type": "list", "data": ["a", "b"]})

        assert chunk.data == ("a", "b")

    def test_table_data_becomes_table_data(self):
        """Test table payload normalization."""
        chunk = parse_chunk({"type": "table", "data": {"headers": ["A", "B"], "rows": [[1, 2], [3, 4]]}})

        assert chunk.data == TableData(headers=("A", "B"), rows=((1, 2), (3, 4)))

    def test_table_without_rows_is_kept_raw(self):
        """Test that a malformed table payload reaches the renderer untouched."""
        chunk = parse_chunk({"type": "table", "data": {"headers": ["A"]}})

        assert chunk.data == {"headers": ["A"]}

    def test_numeric_message_id_becomes_string(self):
        """Test message id coercion."""
        assert parse_chunk({"type": "text", "data": "x", "message_id": 42}).message_id == "42"

    @pytest.mark.parametrize("payload", [None, [], "not json", {"data": "x"}, {"type": ""}, {"type": 5}])
    def test_non_chunks_raise(self, payload):
        """Test that payloads without a usable type are parse failures."""
        with pytest.raises(ChunkParseError):
            parse_chunk(payload)

    def test_parse_from_json_text(self):
        """Test parsing straight from a frame."""
        chunk = parse_chunk(json.dumps({"type": "text", "data": "x", "isComplete": False}))

        assert chunk.data == "x"


class TestDecodeFrame:
    """Tests for frame decoding."""

    def test_decode_object(self):
        """Test decoding a JSON object."""
        assert decode_frame('{"event": "error"}') == {"event": "error"}

    @pytest.mark.parametrize("raw", ["{", "[1, 2]", "3"])
    def test_decode_rejects_non_objects(self, raw):
        """Test that non-object frames raise."""
        with pytest.raises(ChunkParseError):
            decode_frame(raw)


class TestEncodeChunk:
    """Tests for the canonical outbound shape."""

    def test_encode_uses_canonical_fields(self):
        """Test that encoding emits is_complete and plain JSON types."""
        chunk = parse_chunk(
            {
                "type": "table",
                "data": {"headers": ["A"], "rows": [["x"]]},
                "isComplete": True,
                "message_id": "m1",
            }
        )

        payload = encode_chunk(chunk)

        assert payload == {
            "type": "table",
            "data": {"headers": ["A"], "rows": [["x"]]},
            "metadata": {},
            "is_complete": True,
            "message_id": "m1",
        }
        assert "isComplete" not in payload
        json.dumps(payload)

    def test_encode_keeps_unknown_tag(self):
        """Test that an unknown chunk keeps its wire tag."""
        chunk = parse_chunk({"type": "video", "data": "/clip.mp4"})

        assert encode_chunk(chunk)["type"] == "video"
